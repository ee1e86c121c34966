# services/checklists.py

from collections import Counter
from typing import List, Optional

from core import cache
from core.cache import cache_get, cache_set, cache_invalidate
from core.config import settings
from core.errors import IntegrityViolation, NotFoundError, QueryFailure
from core.logging_config import logger
from core.roles import ADMIN_ONLY, require
from models.checklist import ChecklistCreate, ChecklistRead, ChecklistUpdate


LIST_CACHE_KEY = "checklists:list"


def _payload(model) -> dict:
    data = model.model_dump(exclude_unset=True)
    if data.get("title") is not None:
        data["title"] = data["title"].strip()
    return data


# ============================================================
# Reads
# ============================================================
async def list_checklists(client) -> List[ChecklistRead]:
    """All checklists, newest first, each with the number of sites using it."""
    cached = cache_get(LIST_CACHE_KEY)
    if cached is not None:
        return cached

    try:
        res = await (
            client.table("checklists")
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        rows = res.data or []

        counts = Counter()
        if rows:
            sites_res = await (
                client.table("sites")
                .select("checklist_id")
                .in_("checklist_id", [row["id"] for row in rows])
                .execute()
            )
            counts = Counter(site["checklist_id"] for site in (sites_res.data or []))
    except Exception as e:
        raise QueryFailure("Failed to fetch checklists", e) from e

    checklists = [ChecklistRead(**row, site_count=counts.get(row["id"], 0)) for row in rows]
    cache_set(
        LIST_CACHE_KEY,
        checklists,
        settings.CACHE_TTL_SECONDS,
        groups=(cache.CHECKLISTS, cache.SITES),
    )
    return checklists


async def get_checklist(client, checklist_id: int) -> Optional[ChecklistRead]:
    try:
        res = await (
            client.table("checklists")
            .select("*")
            .eq("id", checklist_id)
            .maybe_single()
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to fetch checklist", e) from e

    if res is None or not res.data:
        return None
    return ChecklistRead(**res.data)


async def count_referencing_sites(client, checklist_id: int) -> int:
    try:
        res = await (
            client.table("sites")
            .select("id", count="exact")
            .eq("checklist_id", checklist_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to count sites using checklist", e) from e
    return res.count if res.count is not None else len(res.data or [])


# ============================================================
# Mutations (admin only)
# ============================================================
async def create_checklist(client, user, payload: ChecklistCreate) -> ChecklistRead:
    require(user, ADMIN_ONLY, "create checklists")

    try:
        insert_res = await client.table("checklists").insert(_payload(payload)).execute()
    except Exception as e:
        raise QueryFailure("Failed to create checklist", e) from e

    if not insert_res.data:
        raise QueryFailure("Failed to create checklist: insert returned no data")

    cache_invalidate(cache.CHECKLISTS)
    return ChecklistRead(**insert_res.data[0])


async def update_checklist(client, user, checklist_id: int, payload: ChecklistUpdate) -> ChecklistRead:
    require(user, ADMIN_ONLY, "edit checklists")
    data = _payload(payload)

    if not data:
        checklist = await get_checklist(client, checklist_id)
        if checklist is None:
            raise NotFoundError(f"Checklist '{checklist_id}' not found")
        return checklist

    try:
        update_res = await (
            client.table("checklists")
            .update(data)
            .eq("id", checklist_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to update checklist", e) from e

    if not update_res.data:
        raise NotFoundError(f"Checklist '{checklist_id}' not found")

    cache_invalidate(cache.CHECKLISTS)
    return ChecklistRead(**update_res.data[0])


async def delete_checklist(client, user, checklist_id: int) -> dict:
    """
    Refuse to delete a checklist that any site still uses. The check
    runs before the delete is attempted.
    """
    require(user, ADMIN_ONLY, "delete checklists")

    site_count = await count_referencing_sites(client, checklist_id)
    if site_count > 0:
        logger.info(f"Blocked delete of checklist {checklist_id}: used by {site_count} site(s)")
        raise IntegrityViolation(
            f"This checklist is being used by {site_count} site(s). Remove it from all sites first.",
            referencing_count=site_count,
        )

    try:
        delete_res = await (
            client.table("checklists")
            .delete()
            .eq("id", checklist_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to delete checklist", e) from e

    if not delete_res.data:
        raise NotFoundError(f"Checklist '{checklist_id}' not found")

    cache_invalidate(cache.CHECKLISTS)
    return {"success": True, "deleted_id": checklist_id}
