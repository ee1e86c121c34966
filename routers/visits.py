# routers/visits.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.roles import STAFF_OR_ADMIN
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, get_current_user, requires_access
from models.enums import CompletionGrade
from models.visit import SiteVisitStats, VisitCreate, VisitRead
from services import visits as visit_service


router = APIRouter(
    prefix="/visits",
    tags=["Visits"],
)


# ============================================================
# LIST VISITS (role-scoped)
# ============================================================
@router.get(
    "",
    response_model=List[VisitRead],
    summary="List Visits",
    description="""
    - admin: every visit
    - staff: visits the caller performed
    - client: visits at sites the caller owns

    Each visit carries a `report` decoded from its notes
    (completed/total, percentage, grade).
    """,
)
async def list_visits(
    grade: Optional[CompletionGrade] = Query(None, description="Only visits with this completion grade"),
    site_id: Optional[int] = None,
    limit: int = Query(200, ge=1, le=1000),
    current_user: CurrentUser = Depends(get_current_user),
    client=Depends(get_supabase_client),
):
    return await visit_service.list_visits(client, current_user, grade=grade, site_id=site_id, limit=limit)


@router.get(
    "/site-stats",
    response_model=List[SiteVisitStats],
    summary="Visit count and last visit per site",
)
async def site_stats(
    current_user: CurrentUser = Depends(get_current_user),
    client=Depends(get_supabase_client),
):
    return await visit_service.site_visit_stats(client, current_user)


# ============================================================
# CREATE VISIT (staff / admin). Visits are never edited.
# ============================================================
@router.post(
    "",
    response_model=VisitRead,
    status_code=201,
    summary="Record a visit",
)
async def create_visit(
    payload: VisitCreate,
    current_user: CurrentUser = Depends(requires_access(STAFF_OR_ADMIN)),
    client=Depends(get_supabase_client),
):
    return await visit_service.create_visit(client, current_user, payload)
