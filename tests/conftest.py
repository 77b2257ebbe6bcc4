"""
Pytest Configuration and Fixtures
"""

import os

# Settings are read at import time; provide what is required before any
# application module is imported.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from unittest.mock import Mock

QUERY_METHODS = ("select", "insert", "update", "delete", "eq", "ilike", "order", "range", "limit")


def make_query(data=None, count=None):
    """
    Chainable Supabase query builder mock.

    Every builder method returns the same object, so the recorded calls
    can be inspected after the chain ran; `execute()` returns `data`.
    """
    query = Mock()
    for method in QUERY_METHODS:
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=data, count=count)
    return query


@pytest.fixture
def mock_supabase():
    """Create mock Supabase client."""
    mock = Mock()
    mock.table.return_value = make_query([])
    return mock


@pytest.fixture
def mock_user():
    """Authenticated identity as returned by get_current_user."""
    return {
        "id": "11111111-1111-1111-1111-111111111111",
        "email": "writer@example.com",
        "full_name": "Ada Writer",
    }


@pytest.fixture
def doc_id():
    return "00000000-0000-0000-0000-0000000000d1"


@pytest.fixture
def sample_blocks():
    """Block tree with a duplicate and a nested heading."""
    return [
        {"type": "heading", "props": {"level": 1}, "content": [{"type": "text", "text": "Getting Started"}]},
        {"type": "paragraph", "content": [{"type": "text", "text": "Intro"}]},
        {
            "type": "heading",
            "props": {"level": 2},
            "content": [{"type": "text", "text": "Getting Started"}],
            "children": [
                {"type": "heading", "props": {"level": 3}, "content": "Install"},
            ],
        },
    ]
