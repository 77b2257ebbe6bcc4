"""Services module - Business logic layer"""

from .document_service import DocumentService, DocumentNotFoundError, DocumentConflictError
from .changelog_service import ChangelogService, ChangelogValidationError, ChangelogNotFoundError
from .user_service import UserService
from .storage_service import AttachmentUploadRelay, UploadError, build_storage_backend, create_upload_relays
from .autosave_service import AutosaveCoordinator
from .reading_progress import ReadingProgressTracker, MenuHeightSync, TocNavigator

__all__ = [
    "DocumentService",
    "DocumentNotFoundError",
    "DocumentConflictError",
    "ChangelogService",
    "ChangelogValidationError",
    "ChangelogNotFoundError",
    "UserService",
    "AttachmentUploadRelay",
    "UploadError",
    "build_storage_backend",
    "create_upload_relays",
    "AutosaveCoordinator",
    "ReadingProgressTracker",
    "MenuHeightSync",
    "TocNavigator",
]
