# services/sites.py

from datetime import date
from typing import List, Optional

from core import cache
from core.cache import cache_get, cache_set, cache_invalidate
from core.config import settings
from core.errors import IntegrityViolation, NotFoundError, QueryFailure
from core.logging_config import logger
from core.relational_resolver import (
    fetch_site_views,
    fetch_sites_with_owners,
    site_query_for,
)
from core.roles import ADMIN_ONLY, require
from core.utils import sanitize
from models.enums import VisitDay
from models.site import SiteCreate, SiteUpdate, SiteView


VIEW_GROUPS = (cache.SITES, cache.CHECKLISTS, cache.PROFILES)


# ============================================================
# Read views
# ============================================================
async def list_site_views(client, user) -> List[SiteView]:
    """
    Sites the caller may see, with owner name and checklist.
    Cached per scope until a site, checklist or profile write.
    """
    query = site_query_for(user)
    cache_key = f"sites:views:{query.owner_id or '*'}"

    cached = cache_get(cache_key)
    if cached is not None:
        return cached

    views = await fetch_site_views(client, query)
    cache_set(cache_key, views, settings.CACHE_TTL_SECONDS, groups=VIEW_GROUPS)
    return views


async def list_sites_with_owners(client, user) -> List[SiteView]:
    """Owner-only view (no checklist join), sorted by name for pickers."""
    query = site_query_for(user, order_by="site_name", descending=False)
    return await fetch_sites_with_owners(client, query)


async def sites_scheduled_for(client, user, day: Optional[date] = None) -> List[SiteView]:
    """Sites whose weekly visit falls on `day`, earliest slot first."""
    weekday = VisitDay.for_date(day or date.today())
    query = site_query_for(
        user,
        visit_day=weekday.value,
        order_by="visit_time",
        descending=False,
    )
    return await fetch_site_views(client, query)


# ============================================================
# Mutations (admin only)
# ============================================================
async def _get_site_row(client, site_id: int) -> dict:
    try:
        res = await (
            client.table("sites")
            .select("*")
            .eq("id", site_id)
            .maybe_single()
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to fetch site", e) from e

    if res is None or not res.data:
        raise NotFoundError(f"Site '{site_id}' not found")
    return res.data


async def create_site(client, user, payload: SiteCreate) -> dict:
    require(user, ADMIN_ONLY, "create sites")
    data = sanitize(payload.model_dump())

    try:
        insert_res = await client.table("sites").insert(data).execute()
    except Exception as e:
        raise QueryFailure("Failed to create site", e) from e

    if not insert_res.data:
        raise QueryFailure("Failed to create site: insert returned no data")

    cache_invalidate(cache.SITES)
    logger.info(f"Site {insert_res.data[0].get('id')} created by {user.id}")
    return insert_res.data[0]


async def update_site(client, user, site_id: int, payload: SiteUpdate) -> dict:
    require(user, ADMIN_ONLY, "edit sites")
    update_data = sanitize(payload.model_dump(exclude_unset=True))

    if not update_data:
        return await _get_site_row(client, site_id)

    try:
        update_res = await (
            client.table("sites")
            .update(update_data)
            .eq("id", site_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to update site", e) from e

    if not update_res.data:
        raise NotFoundError(f"Site '{site_id}' not found")

    cache_invalidate(cache.SITES)
    return update_res.data[0]


async def count_site_visits(client, site_id: int) -> int:
    try:
        res = await (
            client.table("visits")
            .select("id", count="exact")
            .eq("site_id", site_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to count site visits", e) from e
    return res.count if res.count is not None else len(res.data or [])


async def delete_site(client, user, site_id: int) -> dict:
    """Sites with recorded visits cannot be deleted; visits are permanent."""
    require(user, ADMIN_ONLY, "delete sites")

    visit_count = await count_site_visits(client, site_id)
    if visit_count > 0:
        raise IntegrityViolation(
            f"Site has {visit_count} recorded visit(s) and cannot be deleted",
            referencing_count=visit_count,
        )

    try:
        delete_res = await (
            client.table("sites")
            .delete()
            .eq("id", site_id)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to delete site", e) from e

    if not delete_res.data:
        raise NotFoundError(f"Site '{site_id}' not found")

    cache_invalidate(cache.SITES)
    return {"success": True, "deleted_id": site_id}
