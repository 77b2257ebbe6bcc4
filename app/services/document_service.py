"""
Document Service
CRUD over the `docs` table plus the public read path
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import Client

from app.core.logging import logger, log_error, log_service_call
from app.models.document import DEFAULT_CATEGORY, DEFAULT_TITLE, DocumentCategory
from app.utils.content_parser import parse_content, serialize_content
from app.utils.text_processing import slugify_title
from app.utils.toc import extract_headings

DOC_COLUMNS = "id, slug, title, content, category, is_public, user_id, created_at, updated_at"
SUMMARY_COLUMNS = "id, slug, title, category, is_public, created_at, updated_at"
PUBLIC_LINK_COLUMNS = "id, slug, title, category"
EDITABLE_FIELDS = ("title", "content", "category", "is_public")
UNCATEGORIZED = "Uncategorized"


class DocumentNotFoundError(Exception):
    """Document is missing, not owned by the caller, or not public"""


class DocumentConflictError(Exception):
    """Stored updated_at no longer matches the caller's expectation"""


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def hydrate_document(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Turn a stored row into its read form: parsed body plus TOC.

    Args:
        row: Row from the docs table

    Returns:
        New dict with `content` as a block list (or None) and `toc`
    """
    doc = dict(row)
    doc["content"] = parse_content(row.get("content"))
    doc["title"] = row.get("title") or DEFAULT_TITLE
    doc["toc"] = [item.model_dump() for item in extract_headings(doc["content"])]
    return doc


def normalize_update(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and convert editable fields to their stored form.

    Args:
        fields: Mapping of field name to new value

    Returns:
        Row patch ready for the docs table

    Raises:
        ValueError: Unknown field or invalid value
    """
    patch: Dict[str, Any] = {}
    for field, value in fields.items():
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Unknown document field: {field}")

        if field == "content":
            if value is not None and not isinstance(value, list):
                raise ValueError("content must be a list of blocks")
            patch["content"] = serialize_content(value)
        elif field == "title":
            if not isinstance(value, str):
                raise ValueError("title must be a string")
            patch["title"] = value
        elif field == "category":
            try:
                patch["category"] = DocumentCategory(value).value
            except ValueError:
                raise ValueError(f"Unknown category: {value}")
        elif field == "is_public":
            if not isinstance(value, bool):
                raise ValueError("is_public must be a boolean")
            patch["is_public"] = value

    return patch


class DocumentService:
    """
    Service for document storage.

    Handles:
    - Owner listing with pagination and title search
    - Creation, per-field updates and deletion
    - Public read path with author byline and category sidebar
    """

    TABLE = "docs"
    USERS_TABLE = "users"

    def __init__(self, supabase: Client):
        self.supabase = supabase

    async def list_documents(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = 12,
        search: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        List the caller's documents, newest first.

        Args:
            user_id: Owner id
            page: 1-based page number
            page_size: Items per page
            search: Optional case-insensitive title filter

        Returns:
            {"documents", "total", "page", "page_size"}
        """
        log_service_call("DOCUMENT_SERVICE", "list_documents", user_id=user_id, page=page, search=search)
        page = max(1, page)
        start = (page - 1) * page_size

        query = self.supabase.table(self.TABLE)\
            .select(SUMMARY_COLUMNS, count="exact")\
            .eq("user_id", user_id)

        term = (search or "").strip().replace("%", "").replace(",", " ")
        if term:
            query = query.ilike("title", f"%{term}%")

        result = query\
            .order("created_at", desc=True)\
            .range(start, start + page_size - 1)\
            .execute()

        documents = result.data or []
        total = result.count if result.count is not None else len(documents)

        return {
            "documents": documents,
            "total": total,
            "page": page,
            "page_size": page_size,
        }

    async def create_document(self, user_id: str) -> Dict[str, Any]:
        """
        Create an empty, private, untitled document.

        Args:
            user_id: Owner id

        Returns:
            Created row (hydrated)
        """
        slug = f"{slugify_title(DEFAULT_TITLE)}-{uuid.uuid4().hex[:8]}"
        row = {
            "user_id": user_id,
            "title": DEFAULT_TITLE,
            "slug": slug,
            "category": DEFAULT_CATEGORY.value,
            "is_public": False,
            "content": None,
        }

        result = self.supabase.table(self.TABLE).insert(row).execute()
        if not result.data:
            raise RuntimeError("Document insert returned no row")

        logger.info(
            "[DOCUMENT_SERVICE] Created document",
            extra={"document_id": result.data[0].get("id"), "slug": slug},
        )
        return hydrate_document(result.data[0])

    async def get_document_by_slug(self, slug: str, user_id: str) -> Dict[str, Any]:
        """
        Load one of the caller's documents for editing.

        Raises:
            DocumentNotFoundError
        """
        result = self.supabase.table(self.TABLE)\
            .select(DOC_COLUMNS)\
            .eq("slug", slug)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            raise DocumentNotFoundError(slug)
        return hydrate_document(result.data[0])

    async def get_document(self, doc_id: str, user_id: str) -> Dict[str, Any]:
        """
        Load one of the caller's documents by id.

        Raises:
            DocumentNotFoundError
        """
        result = self.supabase.table(self.TABLE)\
            .select(DOC_COLUMNS)\
            .eq("id", doc_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()

        if not result.data:
            raise DocumentNotFoundError(doc_id)
        return hydrate_document(result.data[0])

    async def update_fields(
        self,
        doc_id: str,
        fields: Dict[str, Any],
        user_id: Optional[str] = None,
        expected_updated_at: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Persist one or more editable fields.

        Writes unconditionally unless `expected_updated_at` is given, in
        which case the row must still carry that timestamp.

        Args:
            doc_id: Document id
            fields: Subset of title/content/category/is_public
            user_id: Owner id; restricts the update when given
            expected_updated_at: Optional optimistic concurrency token

        Returns:
            Updated row (hydrated)

        Raises:
            ValueError: Invalid fields
            DocumentNotFoundError: No such document
            DocumentConflictError: Token mismatch
        """
        patch = normalize_update(fields)
        if not patch:
            raise ValueError("No fields to update")
        patch["updated_at"] = _utcnow()

        query = self.supabase.table(self.TABLE).update(patch).eq("id", doc_id)
        if user_id:
            query = query.eq("user_id", user_id)
        if expected_updated_at:
            query = query.eq("updated_at", expected_updated_at)

        result = query.execute()

        if not result.data:
            if expected_updated_at and user_id:
                # distinguish a stale token from a missing row
                await self.get_document(doc_id, user_id)
                raise DocumentConflictError(doc_id)
            raise DocumentNotFoundError(doc_id)

        logger.debug(
            "[DOCUMENT_SERVICE] Updated document",
            extra={"document_id": doc_id, "fields": sorted(k for k in patch if k != "updated_at")},
        )
        return hydrate_document(result.data[0])

    async def delete_document(self, doc_id: str, user_id: str) -> None:
        """
        Permanently delete one of the caller's documents.

        Raises:
            DocumentNotFoundError
        """
        result = self.supabase.table(self.TABLE)\
            .delete()\
            .eq("id", doc_id)\
            .eq("user_id", user_id)\
            .execute()

        if not result.data:
            raise DocumentNotFoundError(doc_id)

        logger.info("[DOCUMENT_SERVICE] Deleted document", extra={"document_id": doc_id})

    async def get_public_document(self, slug: str) -> Dict[str, Any]:
        """
        Public read path.

        A private document is reported exactly like a missing one.

        Raises:
            DocumentNotFoundError
        """
        result = self.supabase.table(self.TABLE)\
            .select(DOC_COLUMNS)\
            .eq("slug", slug)\
            .eq("is_public", True)\
            .limit(1)\
            .execute()

        if not result.data:
            raise DocumentNotFoundError(slug)
        return hydrate_document(result.data[0])

    async def list_public_sections(self) -> List[Dict[str, Any]]:
        """
        Public documents grouped by category for the docs sidebar.

        Returns:
            [{"category", "documents": [{"id", "slug", "title"}]}] ordered
            by category, then title
        """
        result = self.supabase.table(self.TABLE)\
            .select(PUBLIC_LINK_COLUMNS)\
            .eq("is_public", True)\
            .order("category")\
            .order("title")\
            .execute()

        sections: Dict[str, List[Dict[str, Any]]] = {}
        for doc in result.data or []:
            category = doc.get("category") or UNCATEGORIZED
            sections.setdefault(category, []).append({
                "id": doc["id"],
                "slug": doc.get("slug") or doc["id"],
                "title": doc.get("title") or "Untitled",
            })

        return [
            {"category": category, "documents": documents}
            for category, documents in sections.items()
        ]

    async def get_author(self, user_id: Optional[str]) -> Optional[Dict[str, Any]]:
        """
        Resolve the byline for a document owner.

        Lookup failures are not fatal to the read path.

        Args:
            user_id: Identity provider id stored on the document

        Returns:
            {"id", "full_name", "email"} or None
        """
        if not user_id:
            return None

        try:
            result = self.supabase.table(self.USERS_TABLE)\
                .select("id, full_name, email")\
                .eq("auth_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            log_error(e, context="DocumentService.get_author", user_id=user_id)
            return None

        return result.data[0] if result.data else None

