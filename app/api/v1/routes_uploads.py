"""
Upload API Routes
Relays single files to object storage and returns their public URL
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse

from app.api.dependencies import get_changelog_relay, get_document_service, get_image_relay
from app.core.auth import get_current_user
from app.core.logging import log_error
from app.models.upload import AttachmentUploadResponse, ImageUploadResponse
from app.services.document_service import DocumentNotFoundError, DocumentService
from app.services.storage_service import (
    AttachmentUploadRelay,
    FileTooLargeError,
    NoFileError,
    UnsupportedTypeError,
    UploadError,
)

router = APIRouter(prefix="/uploads", tags=["Uploads"])


def normalize_folder(folder: Optional[str]) -> Optional[str]:
    """Reduce a client folder name to one safe key segment"""
    cleaned = re.sub(r"[^a-z0-9_-]", "", (folder or "").lower())
    return cleaned or None


@router.post("/changelog", response_model=AttachmentUploadResponse)
async def upload_changelog_attachment(
    file: Optional[UploadFile] = File(default=None),
    docId: Optional[str] = Form(default=None),
    user=Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
    relay: AttachmentUploadRelay = Depends(get_changelog_relay)
):
    """
    Store a change log attachment under the document's prefix.

    Errors are returned as {"error": CODE, ...} with the matching status.
    """
    if docId:
        try:
            await documents.get_document(docId, user["id"])
        except DocumentNotFoundError:
            return JSONResponse({"error": "DOCUMENT_NOT_FOUND"}, status_code=404)
        except Exception as e:
            log_error(e, context="Upload changelog attachment", doc_id=docId)
            return JSONResponse({"error": "UPLOAD_FAILED"}, status_code=500)

    data = await file.read() if file is not None else None
    filename = file.filename if file is not None else None
    content_type = file.content_type if file is not None else None

    try:
        result = relay.upload(data, filename, content_type=content_type, prefix=docId)
        return result.to_dict()
    except UploadError as e:
        return JSONResponse(e.to_payload(), status_code=e.status_code)
    except Exception as e:
        log_error(e, context="Upload changelog attachment", doc_id=docId)
        return JSONResponse({"error": "UPLOAD_FAILED"}, status_code=500)


@router.post("/image", response_model=ImageUploadResponse)
async def upload_image(
    file: Optional[UploadFile] = File(default=None),
    folder: Optional[str] = Form(default=None),
    user=Depends(get_current_user),
    relay: AttachmentUploadRelay = Depends(get_image_relay)
):
    """
    Store an inline editor image.

    Responses always carry a `success` flag; rejections carry a
    human-readable `error`.
    """
    data = await file.read() if file is not None else None
    filename = file.filename if file is not None else None
    content_type = file.content_type if file is not None else None

    try:
        result = relay.upload(data, filename, content_type=content_type, prefix=normalize_folder(folder))
        return {
            "success": True,
            "url": result.url,
            "filename": result.stored_name,
            "req_id": result.req_id,
        }
    except (NoFileError, UnsupportedTypeError, FileTooLargeError) as e:
        payload = {"success": False, "error": str(e), "req_id": e.extra.get("req_id")}
        if isinstance(e, FileTooLargeError):
            payload.update(size=e.size, max=e.max_bytes)
        return JSONResponse(payload, status_code=e.status_code)
    except UploadError as e:
        payload = {"success": False, "error": e.code, "req_id": e.extra.get("req_id")}
        return JSONResponse(payload, status_code=e.status_code)
    except Exception as e:
        log_error(e, context="Upload image", folder=folder)
        return JSONResponse({"success": False, "error": "Internal server error"}, status_code=500)
