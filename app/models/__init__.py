"""Models module - Pydantic data models"""

from .document import (
    DEFAULT_TITLE,
    DEFAULT_CATEGORY,
    DocumentCategory,
    TocItem,
    DocumentUpdate,
    DocumentSummary,
    DocumentResponse,
    DocumentListResponse,
    AuthorInfo,
    PublicDocumentLink,
    PublicSection,
)
from .changelog import ChangelogEntry, ChangelogListResponse
from .upload import AttachmentUploadResponse, ImageUploadResponse

__all__ = [
    # Document models
    "DEFAULT_TITLE",
    "DEFAULT_CATEGORY",
    "DocumentCategory",
    "TocItem",
    "DocumentUpdate",
    "DocumentSummary",
    "DocumentResponse",
    "DocumentListResponse",
    "AuthorInfo",
    "PublicDocumentLink",
    "PublicSection",
    # Change log models
    "ChangelogEntry",
    "ChangelogListResponse",
    # Upload models
    "AttachmentUploadResponse",
    "ImageUploadResponse",
]
