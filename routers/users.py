# routers/users.py

from typing import List

from fastapi import APIRouter, Depends

from core.roles import ADMIN_ONLY
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, requires_access
from models.profile import Profile, ProfileUpdate
from services import profiles as profile_service


router = APIRouter(
    prefix="/users",
    tags=["Users"],
)


@router.get(
    "",
    response_model=List[Profile],
    summary="List user profiles",
)
async def list_users(
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await profile_service.list_profiles(client, current_user)


@router.put(
    "/{profile_id}",
    response_model=Profile,
    summary="Update a user's name or role",
    description="Only admins may change roles. Roles are limited to admin, staff and client.",
)
async def update_user(
    profile_id: str,
    payload: ProfileUpdate,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await profile_service.update_profile(client, current_user, profile_id, payload)
