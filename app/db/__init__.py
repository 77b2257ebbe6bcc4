"""Database module exports"""

from .supabase_client import (
    create_supabase_client,
    create_supabase_admin_client,
    get_supabase,
)

__all__ = [
    "create_supabase_client",
    "create_supabase_admin_client",
    "get_supabase",
]
