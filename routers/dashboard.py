# routers/dashboard.py

from fastapi import APIRouter, Depends

from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, get_current_user
from services.dashboard import get_dashboard


router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


@router.get(
    "",
    summary="Role-specific dashboard",
    description="""
    Counts shown on the caller's dashboard.

    - admin: `sites`, `today_visits`, `users`, `checklists`
    - staff: `sites`, `my_visits`
    - client: `my_sites`, `total_visits`

    A failed count returns an error rather than a zero.
    """,
)
async def dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    client=Depends(get_supabase_client),
):
    return await get_dashboard(client, current_user)
