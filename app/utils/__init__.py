"""Utilities module"""

from .text_processing import (
    slugify_anchor,
    slugify_title,
    sanitize_filename_base,
    sanitize_extension,
)
from .content_parser import parse_content, serialize_content
from .toc import extract_headings, assign_heading_ids, HeadingAnchorReconciler
from .html_sanitizer import sanitize_html, html_to_plain_text, has_visible_text

__all__ = [
    "slugify_anchor",
    "slugify_title",
    "sanitize_filename_base",
    "sanitize_extension",
    "parse_content",
    "serialize_content",
    "extract_headings",
    "assign_heading_ids",
    "HeadingAnchorReconciler",
    "sanitize_html",
    "html_to_plain_text",
    "has_visible_text",
]
