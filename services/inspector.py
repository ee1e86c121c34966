# services/inspector.py

"""
Admin view of how profiles, sites and visits link up: headline counts
(including sites with no owner) and the most recent visits with the
site, its owner and the staff member resolved.
"""

import asyncio
from typing import Dict, List

from core.dashboard import count_metrics
from core.errors import QueryFailure
from core.roles import ADMIN_ONLY, require
from models.site import UNASSIGNED_LABEL


INSPECTOR_METRICS = ("users", "sites", "visits", "unassigned_sites")

RECENT_VISIT_SELECT = (
    "id, visit_date, profile_id, site_id, "
    "sites(site_name, profile_id), "
    "profiles(full_name, role)"
)


def _one(value):
    if isinstance(value, list):
        return value[0] if value else None
    return value


async def _fetch(query, operation: str):
    try:
        res = await query.execute()
    except Exception as e:
        raise QueryFailure(operation, e) from e
    return res.data or []


async def inspect_relationships(client, user, recent_limit: int = 10) -> dict:
    require(user, ADMIN_ONLY, "inspect the database")

    counts, visits, profiles = await asyncio.gather(
        count_metrics(client, user, INSPECTOR_METRICS),
        _fetch(
            client.table("visits")
            .select(RECENT_VISIT_SELECT)
            .order("visit_date", desc=True)
            .limit(recent_limit),
            "Failed to fetch recent visits",
        ),
        _fetch(client.table("profiles").select("id, full_name"), "Failed to fetch profiles"),
    )

    names: Dict[str, str] = {p["id"]: p.get("full_name") or "Unnamed" for p in profiles}

    recent: List[dict] = []
    for row in visits:
        site = _one(row.get("sites")) or {}
        staff = _one(row.get("profiles")) or {}
        owner_id = site.get("profile_id")
        recent.append({
            "id": row["id"],
            "visit_date": row.get("visit_date"),
            "site_id": row.get("site_id"),
            "site_name": site.get("site_name"),
            "site_owner": names.get(owner_id, "Unknown") if owner_id else UNASSIGNED_LABEL,
            "staff_name": staff.get("full_name"),
            "staff_role": staff.get("role"),
        })

    return {"counts": counts, "recent_visits": recent}
