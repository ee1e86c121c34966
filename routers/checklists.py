# routers/checklists.py

from typing import List

from fastapi import APIRouter, Depends

from core.errors import NotFoundError
from core.roles import ADMIN_ONLY, STAFF_OR_ADMIN
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, requires_access
from models.checklist import ChecklistCreate, ChecklistRead, ChecklistUpdate
from services import checklists as checklist_service


router = APIRouter(
    prefix="/checklists",
    tags=["Checklists"],
)


@router.get(
    "",
    response_model=List[ChecklistRead],
    summary="List Checklists",
    description="All checklists, newest first, with `site_count` (sites using each one).",
    dependencies=[Depends(requires_access(ADMIN_ONLY))],
)
async def list_checklists(client=Depends(get_supabase_client)):
    return await checklist_service.list_checklists(client)


@router.get(
    "/{checklist_id}",
    response_model=ChecklistRead,
    summary="Get Checklist",
    dependencies=[Depends(requires_access(STAFF_OR_ADMIN))],
)
async def get_checklist(checklist_id: int, client=Depends(get_supabase_client)):
    checklist = await checklist_service.get_checklist(client, checklist_id)
    if checklist is None:
        raise NotFoundError(f"Checklist '{checklist_id}' not found")
    return checklist


@router.post(
    "",
    response_model=ChecklistRead,
    summary="Create Checklist",
)
async def create_checklist(
    payload: ChecklistCreate,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await checklist_service.create_checklist(client, current_user, payload)


@router.put(
    "/{checklist_id}",
    response_model=ChecklistRead,
    summary="Update Checklist",
)
async def update_checklist(
    checklist_id: int,
    payload: ChecklistUpdate,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await checklist_service.update_checklist(client, current_user, checklist_id, payload)


@router.delete(
    "/{checklist_id}",
    summary="Delete Checklist",
    description="""
    Rejected with **409** while any site still uses the checklist. The
    response body carries `referencing_count`.
    """,
)
async def delete_checklist(
    checklist_id: int,
    current_user: CurrentUser = Depends(requires_access(ADMIN_ONLY)),
    client=Depends(get_supabase_client),
):
    return await checklist_service.delete_checklist(client, current_user, checklist_id)
