"""
Authentication
Bearer access tokens are validated by Supabase Auth
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException
from supabase import Client

from app.core.logging import logger
from app.db.supabase_client import get_supabase


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header."""
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None

    return parts[1]


def resolve_user(supabase: Client, token: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Look up the identity behind an access token.

    Args:
        supabase: Supabase client
        token: Access token

    Returns:
        {"id", "email", "full_name"} or None when the token is invalid
    """
    if not token:
        return None

    try:
        response = supabase.auth.get_user(token)
    except Exception as e:
        logger.info(f"[AUTH] Token rejected: {e}")
        return None

    user = getattr(response, "user", None)
    if user is None:
        return None

    metadata = getattr(user, "user_metadata", None) or {}
    return {
        "id": user.id,
        "email": getattr(user, "email", None),
        "full_name": metadata.get("full_name") or metadata.get("name"),
    }


async def get_current_user(
    authorization: Optional[str] = Header(None),
    supabase: Client = Depends(get_supabase),
) -> Dict[str, Any]:
    """
    FastAPI dependency for authenticated routes.

    Raises:
        HTTPException: 401 when the token is missing or invalid
    """
    user = resolve_user(supabase, extract_bearer_token(authorization))
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
