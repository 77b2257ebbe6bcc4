"""FastAPI dependencies for dependency injection."""

from fastapi import Depends, Request
from supabase import Client

from app.db.supabase_client import get_supabase
from app.services.changelog_service import ChangelogService
from app.services.document_service import DocumentService
from app.services.storage_service import AttachmentUploadRelay
from app.services.user_service import UserService


def get_changelog_relay(request: Request) -> AttachmentUploadRelay:
    """Relay for change log attachments, built at startup."""
    return request.app.state.upload_relays["changelog"]


def get_image_relay(request: Request) -> AttachmentUploadRelay:
    """Relay for inline editor images, built at startup."""
    return request.app.state.upload_relays["images"]


def get_document_service(supabase: Client = Depends(get_supabase)) -> DocumentService:
    return DocumentService(supabase)


def get_changelog_service(
    supabase: Client = Depends(get_supabase),
    relay: AttachmentUploadRelay = Depends(get_changelog_relay),
) -> ChangelogService:
    return ChangelogService(supabase, relay)


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)
