"""
Text Processing Utilities
Slug and filename normalization shared by the TOC, documents and uploads
"""

import re
from typing import Optional


def slugify_anchor(text: str) -> str:
    """
    Turn heading text into an anchor id fragment.

    Lowercases, trims, turns whitespace and underscores into hyphens,
    drops everything outside [a-z0-9-] and collapses repeated hyphens.

    Args:
        text: Heading text

    Returns:
        Slug, possibly empty
    """
    if not text:
        return ""

    slug = text.lower().strip()
    slug = re.sub(r"[\s_]+", "-", slug)
    slug = re.sub(r"[^a-z0-9\-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug


def slugify_title(title: Optional[str], max_length: int = 60) -> str:
    """
    Slug for a document URL, without the uniqueness suffix.

    Args:
        title: Document title
        max_length: Maximum slug length

    Returns:
        Slug, "document" when nothing usable remains
    """
    slug = slugify_anchor(title or "").strip("-")
    return slug[:max_length].rstrip("-") or "document"


def sanitize_filename_base(base: str, fallback: str = "file", max_length: int = 50) -> str:
    """
    Normalize a filename stem for use in a storage key.

    Args:
        base: Filename without extension
        fallback: Value used when nothing survives normalization
        max_length: Maximum stem length

    Returns:
        Normalized stem
    """
    stem = (base or "").lower()
    stem = re.sub(r"[^a-z0-9\-_. ]", "", stem)
    stem = re.sub(r"\s+", "-", stem)
    stem = re.sub(r"-+", "-", stem)
    return stem[:max_length] or fallback


def sanitize_extension(ext: str) -> str:
    """Keep only [A-Za-z0-9.] in a file extension."""
    return re.sub(r"[^A-Za-z0-9.]", "", ext or "")
