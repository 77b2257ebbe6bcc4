"""
Supabase Client Factory
Clients are built once at application startup and injected from app.state
"""

from typing import Optional

from starlette.requests import HTTPConnection
from supabase import create_client, Client

from app.core.config import Settings
from app.core.logging import logger


def create_supabase_client(settings: Settings) -> Client:
    """
    Create the Supabase client used for table access.

    Prefers the anon key and falls back to the service role key.

    Args:
        settings: Application settings

    Returns:
        Client: Supabase client instance

    Raises:
        ValueError: If neither key is configured
    """
    key = settings.SUPABASE_KEY or settings.SUPABASE_SERVICE_ROLE_KEY
    if not key:
        raise ValueError("SUPABASE_KEY or SUPABASE_SERVICE_ROLE_KEY must be set")

    try:
        logger.info("Initializing Supabase client")
        client = create_client(settings.SUPABASE_URL, key)
        logger.info("Supabase client initialized successfully")
        return client

    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        raise


def create_supabase_admin_client(settings: Settings) -> Optional[Client]:
    """
    Create the privileged Supabase client (service role key).

    Used for Storage writes that bypass RLS. Returns None when the
    service role key is not configured, e.g. in S3-only deployments.

    Args:
        settings: Application settings

    Returns:
        Client or None
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        logger.info("SUPABASE_SERVICE_ROLE_KEY not set, admin client disabled")
        return None

    try:
        logger.info("Initializing Supabase admin client")
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        logger.info("Supabase admin client initialized successfully")
        return client

    except Exception as e:
        logger.error(f"Failed to initialize Supabase admin client: {e}")
        raise


def get_supabase(connection: HTTPConnection) -> Client:
    """FastAPI dependency: the table client created at startup (HTTP and WebSocket)."""
    return connection.app.state.supabase
