# core/identity.py

from typing import Optional

from core.errors import QueryFailure
from core.logging_config import logger
from core.route_guard import SessionState
from models.profile import Profile


class IdentityProvider:
    """
    Session and profile lookups against Supabase.

    Token issuance belongs to Supabase Auth; this class only asks it who
    a bearer token belongs to, then reads that user's `profiles` row.
    """

    def __init__(self, client):
        self.client = client

    async def current_session(self, token: Optional[str]) -> Optional[str]:
        """Return the auth user id behind `token`, or None."""
        if not token:
            return None

        try:
            auth_resp = await self.client.auth.get_user(token)
        except Exception as e:
            # GoTrue raises for expired / malformed tokens
            logger.info(f"Session lookup rejected token: {e}")
            return None

        if not auth_resp or not auth_resp.user:
            return None
        return auth_resp.user.id

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        try:
            res = await (
                self.client.table("profiles")
                .select("id, full_name, role, created_at")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
        except Exception as e:
            logger.error(f"Profile lookup failed for {user_id}: {e}")
            raise QueryFailure("Failed to load profile", e) from e

        if res is None or not res.data:
            return None
        return Profile(**res.data)

    async def resolve_session(self, token: Optional[str]) -> SessionState:
        user_id = await self.current_session(token)
        if user_id is None:
            return SessionState.unauthenticated()

        # Profile rows are written by a sign-up trigger and may lag
        profile = await self.get_profile(user_id)
        return SessionState.authenticated(user_id, profile)
