"""
User API Routes
"""

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_user_service
from app.core.auth import get_current_user
from app.core.logging import log_error
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/sync")
async def sync_user(
    user=Depends(get_current_user),
    service: UserService = Depends(get_user_service)
):
    """Make sure the signed-in user has a row in `users`"""
    try:
        return await service.sync_user(user)
    except Exception as e:
        log_error(e, context="Sync user", auth_id=user["id"])
        raise HTTPException(status_code=500, detail="Failed to sync user")
