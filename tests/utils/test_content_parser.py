"""
Tests for document body (de)serialization and slug helpers
"""

from app.utils.content_parser import parse_content, serialize_content
from app.utils.text_processing import sanitize_filename_base, slugify_anchor, slugify_title


def test_round_trip(sample_blocks):
    assert parse_content(serialize_content(sample_blocks)) == sample_blocks


def test_absent_content():
    assert parse_content(None) is None
    assert parse_content("") is None
    assert serialize_content(None) is None


def test_malformed_content_degrades_to_none():
    assert parse_content("{not json") is None
    assert parse_content('{"type": "paragraph"}') is None


def test_already_decoded_and_bytes():
    blocks = [{"type": "paragraph"}]
    assert parse_content(blocks) == blocks
    assert parse_content(b'[{"type": "paragraph"}]') == blocks


def test_serialize_keeps_unicode():
    assert "Café" in serialize_content([{"type": "paragraph", "content": "Café"}])


def test_slugify_anchor():
    assert slugify_anchor("  Getting Started ") == "getting-started"
    assert slugify_anchor("snake_case -- Title!") == "snake-case-title"
    assert slugify_anchor("¿¡!") == ""


def test_slugify_title_fallback():
    assert slugify_title("Untitled Document") == "untitled-document"
    assert slugify_title("!!!") == "document"
    assert len(slugify_title("a" * 200)) == 60


def test_sanitize_filename_base():
    assert sanitize_filename_base("My Report (final)") == "my-report-final"
    assert sanitize_filename_base("***") == "file"
    assert sanitize_filename_base("***", fallback="img") == "img"
    assert len(sanitize_filename_base("x" * 80)) == 50
