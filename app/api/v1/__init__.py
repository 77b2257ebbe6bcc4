"""
API v1 Router
Aggregates all API v1 route modules
"""

from fastapi import APIRouter
from .routes_documents import router as documents_router
from .routes_changelogs import router as changelogs_router
from .routes_uploads import router as uploads_router
from .routes_public import router as public_router
from .routes_users import router as users_router

# Create main v1 router
api_v1_router = APIRouter(prefix="/api/v1")

# Include all sub-routers
api_v1_router.include_router(documents_router)
api_v1_router.include_router(changelogs_router)
api_v1_router.include_router(uploads_router)
api_v1_router.include_router(public_router)
api_v1_router.include_router(users_router)

__all__ = ["api_v1_router"]
