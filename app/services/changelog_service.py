"""
Changelog Service
Per-document change log entries with optional file attachments
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from supabase import Client

from app.core.logging import logger, log_service_call
from app.services.storage_service import AttachmentUploadRelay
from app.utils.html_sanitizer import sanitize_html, has_visible_text

CHANGELOG_COLUMNS = "id, created_at, doc_id, version, description, file_url, file_name"


class ChangelogValidationError(ValueError):
    """Version or description missing"""


class ChangelogNotFoundError(Exception):
    """No change log entry with that id"""


@dataclass
class AttachmentFile:
    """File received with a change log form"""
    data: bytes
    filename: Optional[str]
    content_type: Optional[str] = None


def validate_entry(version: Optional[str], description: Optional[str]) -> Tuple[str, str]:
    """
    Check the required fields of a change log form.

    Args:
        version: Free-form version label
        description: Rich-text HTML

    Returns:
        (trimmed version, sanitized description)

    Raises:
        ChangelogValidationError: Either field is empty
    """
    version = (version or "").strip()
    if not version or not has_visible_text(description):
        raise ChangelogValidationError("Version and description are required.")
    return version, sanitize_html(description)


def present_entry(row: Dict[str, Any]) -> Dict[str, Any]:
    """Re-sanitize a stored row before it leaves the service."""
    entry = dict(row)
    entry["description"] = sanitize_html(row.get("description"))
    return entry


class ChangelogService:
    """
    Service for change log entries.

    Entries are validated before any upload or insert, descriptions are
    sanitized on write and again on every read, and attachment url/name
    are always set or cleared as a pair.
    """

    TABLE = "doc_changelogs"

    def __init__(self, supabase: Client, relay: Optional[AttachmentUploadRelay] = None):
        self.supabase = supabase
        self.relay = relay

    async def list_changelogs(self, doc_id: str) -> List[Dict[str, Any]]:
        """
        Entries for a document, newest first.

        Args:
            doc_id: Owning document id

        Returns:
            List of entries with sanitized descriptions
        """
        result = self.supabase.table(self.TABLE)\
            .select(CHANGELOG_COLUMNS)\
            .eq("doc_id", doc_id)\
            .order("created_at", desc=True)\
            .execute()

        return [present_entry(row) for row in result.data or []]

    async def get_changelog(self, entry_id: str) -> Dict[str, Any]:
        """
        Load one entry.

        Raises:
            ChangelogNotFoundError
        """
        result = self.supabase.table(self.TABLE)\
            .select(CHANGELOG_COLUMNS)\
            .eq("id", entry_id)\
            .limit(1)\
            .execute()

        if not result.data:
            raise ChangelogNotFoundError(entry_id)
        return present_entry(result.data[0])

    def _upload(self, doc_id: str, attachment: AttachmentFile) -> Dict[str, Optional[str]]:
        log_service_call("CHANGELOG_SERVICE", "upload_attachment", doc_id=doc_id, original_name=attachment.filename)
        if self.relay is None:
            raise RuntimeError("ChangelogService has no upload relay")

        stored = self.relay.upload(
            attachment.data,
            attachment.filename,
            content_type=attachment.content_type,
            prefix=doc_id,
        )
        return {"file_url": stored.url, "file_name": stored.name or attachment.filename}

    async def create_changelog(
        self,
        doc_id: str,
        version: Optional[str],
        description: Optional[str],
        attachment: Optional[AttachmentFile] = None
    ) -> Dict[str, Any]:
        """
        Validate, upload the attachment if any, then insert.

        Args:
            doc_id: Owning document id
            version: Version label
            description: Rich-text HTML
            attachment: Optional file

        Returns:
            Created entry

        Raises:
            ChangelogValidationError: Before any network call
            UploadError: Attachment rejected or storage failure
        """
        version, description = validate_entry(version, description)

        row: Dict[str, Any] = {
            "doc_id": doc_id,
            "version": version,
            "description": description,
            "file_url": None,
            "file_name": None,
        }
        if attachment is not None:
            row.update(self._upload(doc_id, attachment))

        result = self.supabase.table(self.TABLE).insert(row).execute()
        if not result.data:
            raise RuntimeError("Change log insert returned no row")

        logger.info(
            "[CHANGELOG_SERVICE] Created change log",
            extra={"doc_id": doc_id, "version": version, "has_attachment": bool(row["file_url"])},
        )
        return present_entry(result.data[0])

    async def update_changelog(
        self,
        entry_id: str,
        version: Optional[str],
        description: Optional[str],
        attachment: Optional[AttachmentFile] = None,
        remove_attachment: bool = False,
        current: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Replace version/description and optionally the attachment.

        `remove_attachment` wins over a new file. Without either, the
        stored attachment is left untouched.

        Args:
            entry_id: Entry id
            version: Version label
            description: Rich-text HTML
            attachment: Replacement file
            remove_attachment: Clear url and name together
            current: Already-loaded entry, skips the lookup

        Returns:
            Updated entry

        Raises:
            ChangelogValidationError, ChangelogNotFoundError, UploadError
        """
        version, description = validate_entry(version, description)
        if current is None:
            current = await self.get_changelog(entry_id)

        patch: Dict[str, Any] = {"version": version, "description": description}
        if remove_attachment:
            patch["file_url"] = None
            patch["file_name"] = None
        elif attachment is not None:
            patch.update(self._upload(current["doc_id"], attachment))

        result = self.supabase.table(self.TABLE)\
            .update(patch)\
            .eq("id", entry_id)\
            .execute()

        if not result.data:
            raise ChangelogNotFoundError(entry_id)

        logger.info(
            "[CHANGELOG_SERVICE] Updated change log",
            extra={"entry_id": entry_id, "attachment_removed": remove_attachment},
        )
        return present_entry(result.data[0])

