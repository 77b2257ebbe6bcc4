"""
Document API Routes
Owner-scoped document CRUD and the autosave editing session
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from supabase import Client

from app.api.dependencies import get_document_service
from app.core.auth import get_current_user, resolve_user
from app.core.config import settings
from app.core.logging import logger, log_error
from app.db.supabase_client import get_supabase
from app.models.document import DocumentListResponse, DocumentResponse, DocumentUpdate
from app.services.autosave_service import AutosaveCoordinator
from app.services.document_service import (
    DocumentConflictError,
    DocumentNotFoundError,
    DocumentService,
    normalize_update,
)
from app.utils.toc import extract_headings

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = Query(default=None, max_length=200),
    user=Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """List the caller's documents, newest first"""
    try:
        return await service.list_documents(user["id"], page=page, page_size=page_size, search=search)
    except Exception as e:
        log_error(e, context="List documents")
        raise HTTPException(status_code=500, detail="Failed to fetch documents")


@router.post("", status_code=201)
async def create_document(
    user=Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """Create a new untitled, private document"""
    try:
        document = await service.create_document(user["id"])
        return {"success": True, "document": document}
    except Exception as e:
        log_error(e, context="Create document")
        raise HTTPException(status_code=500, detail="Failed to create document")


@router.get("/{slug}", response_model=DocumentResponse)
async def get_document(
    slug: str,
    user=Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """Load one of the caller's documents for editing"""
    try:
        return await service.get_document_by_slug(slug, user["id"])
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except Exception as e:
        log_error(e, context="Get document")
        raise HTTPException(status_code=500, detail="Failed to load document")


@router.patch("/{doc_id}")
async def update_document(
    doc_id: str,
    update: DocumentUpdate,
    user=Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """
    Persist one or more fields.

    With `expected_updated_at` the write is conditional and a stale
    token yields 409.
    """
    fields = update.model_dump(exclude_unset=True, exclude={"expected_updated_at"})
    if "category" in fields and fields["category"] is not None:
        fields["category"] = fields["category"].value

    try:
        document = await service.update_fields(
            doc_id,
            fields,
            user_id=user["id"],
            expected_updated_at=update.expected_updated_at,
        )
        return {"success": True, "document": document}
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except DocumentConflictError:
        raise HTTPException(status_code=409, detail="Document was modified since it was loaded")
    except Exception as e:
        log_error(e, context="Update document", document_id=doc_id)
        raise HTTPException(status_code=500, detail="Failed to save document")


@router.delete("/{doc_id}")
async def delete_document(
    doc_id: str,
    user=Depends(get_current_user),
    service: DocumentService = Depends(get_document_service)
):
    """Permanently delete a document"""
    try:
        await service.delete_document(doc_id, user["id"])
        return {"success": True}
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except Exception as e:
        log_error(e, context="Delete document", document_id=doc_id)
        raise HTTPException(status_code=500, detail="Failed to delete document")


@router.websocket("/{slug}/session")
async def document_session(
    websocket: WebSocket,
    slug: str,
    token: Optional[str] = Query(default=None),
    supabase: Client = Depends(get_supabase),
    service: DocumentService = Depends(get_document_service)
):
    """
    Autosave editing session.

    Client messages:
        {"type": "edit", "field": "content|title|category|is_public", "value": ...}
        {"type": "ping"}

    Server messages:
        loaded, status (saving/saved/error), toc, pong, error
    """
    user = resolve_user(supabase, token)
    if user is None:
        await websocket.close(code=4401)
        return

    await websocket.accept()

    try:
        document = await service.get_document_by_slug(slug, user["id"])
    except DocumentNotFoundError:
        await websocket.send_json({"type": "error", "detail": "Document not found"})
        await websocket.close(code=4404)
        return
    except Exception as e:
        log_error(e, context="Open editing session", slug=slug)
        await websocket.send_json({"type": "error", "detail": "Failed to load document"})
        await websocket.close(code=1011)
        return

    async def send_status(event):
        await websocket.send_json(event)

    async def persist(document_id, fields):
        await service.update_fields(document_id, fields, user_id=user["id"])

    coordinator = AutosaveCoordinator(persist=persist, on_status=send_status)
    coordinator.resolve(document["id"], {
        "content": document["content"],
        "title": document["title"],
        "category": document["category"],
        "is_public": document["is_public"],
    })

    await websocket.send_json({"type": "loaded", "document": document})
    logger.info(
        "[SESSION] Editing session opened",
        extra={"document_id": document["id"], "user_id": user["id"]},
    )

    try:
        while True:
            try:
                message = json.loads(await websocket.receive_text())
            except ValueError:
                await websocket.send_json({"type": "error", "detail": "Messages must be JSON"})
                continue

            message_type = message.get("type") if isinstance(message, dict) else None

            if message_type == "edit":
                field = message.get("field")
                try:
                    if not isinstance(field, str):
                        raise ValueError("field must be a string")
                    normalize_update({field: message.get("value")})
                    coordinator.edit(field, message.get("value"))
                except ValueError as e:
                    await websocket.send_json({"type": "error", "detail": str(e)})
                    continue

                if field == "content":
                    toc = extract_headings(coordinator.values.get("content"))
                    await websocket.send_json({
                        "type": "toc",
                        "items": [item.model_dump() for item in toc],
                    })

            elif message_type == "ping":
                await websocket.send_json({"type": "pong", **coordinator.status()})

            else:
                await websocket.send_json({"type": "error", "detail": f"Unknown message type: {message_type}"})

    except WebSocketDisconnect:
        logger.info("[SESSION] Editing session closed", extra={"document_id": document["id"]})
    except Exception as e:
        log_error(e, context="Editing session", document_id=document["id"])
    finally:
        coordinator.close()
