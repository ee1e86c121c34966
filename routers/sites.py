# routers/sites.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.roles import ADMIN_ONLY, STAFF_OR_ADMIN
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, get_current_user, requires_access
from models.site import SiteCreate, SiteUpdate, SiteView
from services import sites as site_service


router = APIRouter(
    prefix="/sites",
    tags=["Sites"]
)


# ============================================================
# LIST SITES (role-filtered)
# ============================================================
@router.get(
    "",
    response_model=List[SiteView],
    summary="List Sites",
    description="""
    Sites with owner name and assigned checklist.

    **Caching:** Results are cached until a site, checklist or user changes.
    **Filtering:** Clients only see sites they own; staff and admins see all.

    Missing owners and checklists come back as `owner_label: "Unassigned"`
    and `checklist_label: "No checklist"`.
    """,
)
async def list_sites(
    current_user: CurrentUser = Depends(get_current_user),
    client=Depends(get_supabase_client),
):
    return await site_service.list_site_views(client, current_user)


# ============================================================
# LIST SITES WITH OWNERS (no checklist join)
# ============================================================
@router.get(
    "/owners",
    response_model=List[SiteView],
    summary="List Sites with owners only",
)
async def list_sites_with_owners(
    current_user: CurrentUser = Depends(requires_access(STAFF_OR_ADMIN)),
    client=Depends(get_supabase_client),
):
    return await site_service.list_sites_with_owners(client, current_user)


# ============================================================
# TODAY'S SCHEDULE
# ============================================================
@router.get(
    "/schedule",
    response_model=List[SiteView],
    summary="Sites scheduled for a day",
)
async def scheduled_sites(
    day: Optional[date] = Query(None, description="Defaults to today"),
    current_user: CurrentUser = Depends(requires_access(STAFF_OR_ADMIN)),
    client=Depends(get_supabase_client),
):
    return await site_service.sites_scheduled_for(client, current_user, day)


# ============================================================
# CREATE / UPDATE / DELETE SITE (admin)
# ============================================================
@router.post(
    "",
    summary="Create Site",
)
async def create_site(
    payload: SiteCreate,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await site_service.create_site(client, current_user, payload)


@router.put(
    "/{site_id}",
    summary="Update Site",
)
async def update_site(
    site_id: int,
    payload: SiteUpdate,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await site_service.update_site(client, current_user, site_id, payload)


@router.delete(
    "/{site_id}",
    summary="Delete Site",
)
async def delete_site(
    site_id: int,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await site_service.delete_site(client, current_user, site_id)
