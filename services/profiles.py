# services/profiles.py

from typing import List

from core import cache
from core.cache import cache_invalidate
from core.errors import NotFoundError, QueryFailure
from core.identity import IdentityProvider
from core.logging_config import logger
from core.roles import ADMIN_ONLY, require
from core.utils import sanitize
from models.profile import Profile, ProfileUpdate


async def list_profiles(client, user, order_by: str = "created_at") -> List[Profile]:
    require(user, ADMIN_ONLY, "list users")

    try:
        res = await (
            client.table("profiles")
            .select("*")
            .order(order_by, desc=(order_by == "created_at"))
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to fetch profiles", e) from e

    return [Profile(**row) for row in (res.data or [])]


async def get_profile(client, profile_id: str) -> Profile:
    profile = await IdentityProvider(client).get_profile(profile_id)
    if profile is None:
        raise NotFoundError(f"Profile '{profile_id}' not found")
    return profile


async def update_profile(client, user, profile_id: str, payload: ProfileUpdate) -> Profile:
    """Role and display name are editable by admins only."""
    require(user, ADMIN_ONLY, "edit users")
    data = sanitize(payload.model_dump(exclude_unset=True, exclude_none=True))

    if not data:
        return await get_profile(client, profile_id)

    try:
        res = await (
            client.table("profiles")
            .update(data)
            .eq("id", profile_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to update profile", e) from e

    if not res.data:
        raise NotFoundError(f"Profile '{profile_id}' not found")

    if "role" in data:
        logger.info(f"Role of {profile_id} set to {data['role']} by {user.id}")

    cache_invalidate(cache.PROFILES)
    return Profile(**res.data[0])
