# routers/admin.py

from fastapi import APIRouter, Depends, Query

from core.roles import ADMIN_ONLY
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, requires_access
from services.inspector import inspect_relationships


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


@router.get(
    "/inspector",
    summary="Relationship inspector",
    description="""
    Counts of profiles, sites, visits and sites without an owner, plus
    the most recent visits with their site, site owner and staff member.
    """,
)
async def inspector(
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await inspect_relationships(client, current_user, recent_limit=limit)
