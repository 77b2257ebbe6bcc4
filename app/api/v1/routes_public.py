"""
Public Docs API Routes
Unauthenticated read path for published documents
"""

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_changelog_service, get_document_service
from app.core.logging import log_error
from app.models.document import AuthorInfo, PublicSection
from app.services.changelog_service import ChangelogService
from app.services.document_service import DocumentNotFoundError, DocumentService

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/documents")
async def list_public_documents(
    service: DocumentService = Depends(get_document_service)
):
    """Public documents grouped by category for the sidebar"""
    try:
        sections = await service.list_public_sections()
        return {"sections": [PublicSection(**section) for section in sections]}
    except Exception as e:
        log_error(e, context="List public documents")
        raise HTTPException(status_code=500, detail="Failed to fetch documents")


@router.get("/documents/{slug}")
async def get_public_document(
    slug: str,
    service: DocumentService = Depends(get_document_service),
    changelogs: ChangelogService = Depends(get_changelog_service)
):
    """
    Reading view payload: document, author byline, TOC and change log.

    Private documents are reported as not found.
    """
    try:
        document = await service.get_public_document(slug)
    except DocumentNotFoundError:
        raise HTTPException(status_code=404, detail="Document not found")
    except Exception as e:
        log_error(e, context="Get public document", slug=slug)
        raise HTTPException(status_code=500, detail="Failed to load document")

    author = None
    try:
        author_row = await service.get_author(document.get("user_id"))
        if author_row:
            info = AuthorInfo(**author_row)
            author = {**info.model_dump(), "display_name": info.display_name}
    except Exception as e:
        log_error(e, context="Get public author", slug=slug)

    try:
        entries = await changelogs.list_changelogs(document["id"])
    except Exception as e:
        log_error(e, context="Get public changelogs", slug=slug)
        entries = []

    toc = document.pop("toc", [])
    document.pop("user_id", None)

    return {
        "document": document,
        "author": author,
        "toc": toc,
        "changelogs": entries,
    }
