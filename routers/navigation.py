# routers/navigation.py

from fastapi import APIRouter, Depends, Query

from core.roles import role_profile
from core.route_guard import SessionState, evaluate, requirement_for
from dependencies.auth import CurrentUser, get_current_session, get_current_user


router = APIRouter(
    prefix="/navigation",
    tags=["Navigation"],
)


# -----------------------------------------------------
# GET /navigation/guard
# Route guard decision for a portal path
# Token optional: an anonymous caller gets a login redirect
# -----------------------------------------------------
@router.get(
    "/guard",
    summary="Evaluate the route guard for a path",
    description="""
    Returns one of `allow`, `pending`, `redirect_to_login` or
    `redirect_to_home` for the caller and the requested portal path.

    - `pending`: signed in, but the profile row has not been created yet
    - `redirect_to_login`: carries `return_to` so the UI can come back
    - `redirect_to_home`: role does not satisfy the route's requirement
    """,
)
async def guard(
    path: str = Query(..., description="Portal path being navigated to"),
    session: SessionState = Depends(get_current_session),
):
    decision = evaluate(session, requirement_for(path), path)
    return decision.to_dict()


# -----------------------------------------------------
# GET /navigation/menu
# -----------------------------------------------------
@router.get("/menu", summary="Navigation menu for the caller's role")
async def menu(current_user: CurrentUser = Depends(get_current_user)):
    profile = role_profile(current_user.role)
    return {
        "role": current_user.role.value,
        "role_label": profile.label,
        "home_path": profile.home_path,
        "can_record_visits": profile.can_record_visits,
        "can_manage": profile.can_manage,
        "items": [{"title": item.title, "url": item.url} for item in profile.menu],
    }
