"""
User Service
Keeps the `users` projection in step with the identity provider
"""

from typing import Any, Dict

from supabase import Client

from app.core.logging import logger


class UserService:
    TABLE = "users"

    def __init__(self, supabase: Client):
        self.supabase = supabase

    async def sync_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Insert the authenticated user into `users` if missing.

        Args:
            user: Identity from `get_current_user` ({"id", "email", "full_name"})

        Returns:
            {"success": True, "created": bool}
        """
        existing = self.supabase.table(self.TABLE)\
            .select("id")\
            .eq("auth_id", user["id"])\
            .limit(1)\
            .execute()

        if existing.data:
            return {"success": True, "created": False}

        logger.info("[USER_SERVICE] Inserting new user", extra={"auth_id": user["id"]})
        self.supabase.table(self.TABLE).insert({
            "auth_id": user["id"],
            "email": user.get("email"),
            "full_name": user.get("full_name"),
        }).execute()

        return {"success": True, "created": True}
