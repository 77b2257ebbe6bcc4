"""
Change Log API Routes
Per-document change log entries with optional attachments
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from app.api.dependencies import get_changelog_service, get_document_service
from app.core.auth import get_current_user
from app.core.logging import log_error
from app.models.changelog import ChangelogListResponse
from app.services.changelog_service import (
    AttachmentFile,
    ChangelogNotFoundError,
    ChangelogService,
    ChangelogValidationError,
    validate_entry,
)
from app.services.document_service import DocumentNotFoundError, DocumentService
from app.services.storage_service import UploadError

router = APIRouter(tags=["Changelogs"])


async def _read_attachment(file: Optional[UploadFile]) -> Optional[AttachmentFile]:
    if file is None or not file.filename:
        return None
    return AttachmentFile(
        data=await file.read(),
        filename=file.filename,
        content_type=file.content_type,
    )


@router.get("/documents/{doc_id}/changelogs", response_model=ChangelogListResponse)
async def list_changelogs(
    doc_id: str,
    user=Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
    service: ChangelogService = Depends(get_changelog_service)
):
    """Entries for one of the caller's documents, newest first"""
    try:
        await documents.get_document(doc_id, user["id"])
        changelogs = await service.list_changelogs(doc_id)
        return {"changelogs": changelogs, "total": len(changelogs)}
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except Exception as e:
        log_error(e, context="List changelogs", doc_id=doc_id)
        raise HTTPException(status_code=500, detail="Failed to fetch changelogs")


@router.post("/documents/{doc_id}/changelogs", status_code=201)
async def create_changelog(
    doc_id: str,
    version: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    user=Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
    service: ChangelogService = Depends(get_changelog_service)
):
    """
    Add a change log entry.

    Version and description are checked before the attachment is
    uploaded or anything is written.
    """
    try:
        version, description = validate_entry(version, description)
        await documents.get_document(doc_id, user["id"])
        entry = await service.create_changelog(
            doc_id,
            version,
            description,
            attachment=await _read_attachment(file),
        )
        return {"success": True, "changelog": entry}
    except ChangelogValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except UploadError as e:
        return JSONResponse(e.to_payload(), status_code=e.status_code)
    except Exception as e:
        log_error(e, context="Create changelog", doc_id=doc_id)
        raise HTTPException(status_code=500, detail="Failed to save changelog")


@router.put("/changelogs/{entry_id}")
async def update_changelog(
    entry_id: str,
    version: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    remove_attachment: bool = Form(default=False),
    file: Optional[UploadFile] = File(default=None),
    user=Depends(get_current_user),
    documents: DocumentService = Depends(get_document_service),
    service: ChangelogService = Depends(get_changelog_service)
):
    """Edit an entry in place; `remove_attachment` clears the file"""
    try:
        version, description = validate_entry(version, description)
        current = await service.get_changelog(entry_id)
        await documents.get_document(current["doc_id"], user["id"])
        entry = await service.update_changelog(
            entry_id,
            version,
            description,
            attachment=await _read_attachment(file),
            remove_attachment=remove_attachment,
            current=current,
        )
        return {"success": True, "changelog": entry}
    except ChangelogValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (ChangelogNotFoundError, DocumentNotFoundError):
        raise HTTPException(status_code=404, detail="Changelog not found")
    except UploadError as e:
        return JSONResponse(e.to_payload(), status_code=e.status_code)
    except Exception as e:
        log_error(e, context="Update changelog", entry_id=entry_id)
        raise HTTPException(status_code=500, detail="Failed to update changelog")
