# services/visits.py

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from core import cache
from core.cache import cache_invalidate
from core.errors import InvalidInputError, NotFoundError, QueryFailure
from core.logging_config import logger
from core.roles import STAFF_OR_ADMIN, require
from core.utils import sanitize
from core.visit_report import decode_report, encode_report, summarize_items
from models.enums import CompletionGrade, Role
from models.visit import (
    ChecklistItemResult,
    SiteVisitStats,
    VisitCreate,
    VisitRead,
)
from services.checklists import get_checklist


VISIT_SELECT = (
    "*, "
    "sites!inner(site_name, site_address, profile_id), "
    "checklists(title), "
    "profiles(full_name)"
)


def _as_date(value) -> Optional[date]:
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def _embedded(row: dict, name: str) -> dict:
    value = row.get(name)
    if isinstance(value, list):
        value = value[0] if value else None
    return value or {}


def to_visit_read(row: dict) -> VisitRead:
    site = _embedded(row, "sites")
    checklist = _embedded(row, "checklists")
    staff = _embedded(row, "profiles")
    fields = {k: v for k, v in row.items() if k not in ("sites", "checklists", "profiles")}

    return VisitRead(
        **fields,
        site_name=site.get("site_name"),
        site_address=site.get("site_address"),
        staff_name=staff.get("full_name"),
        checklist_title=checklist.get("title"),
        report=decode_report(row.get("notes")),
    )


def merge_item_results(labels: List[str], submitted: List[ChecklistItemResult]) -> List[ChecklistItemResult]:
    """
    The checklist's own items, in checklist order, with completion and
    notes taken from the submitted results by label. Labels the
    checklist does not have are rejected.
    """
    by_label: Dict[str, ChecklistItemResult] = {item.text: item for item in submitted}
    unknown = [text for text in by_label if text not in labels]
    if unknown:
        raise InvalidInputError(
            f"Items not on the site's checklist: {', '.join(sorted(unknown))}"
        )

    merged = []
    for label in labels:
        result = by_label.get(label)
        merged.append(ChecklistItemResult(
            text=label,
            completed=result.completed if result else False,
            notes=result.notes if result else None,
        ))
    return merged


# ============================================================
# Create (staff / admin). Visits are never updated afterwards
# ============================================================
async def create_visit(client, user, payload: VisitCreate, now: Optional[datetime] = None) -> VisitRead:
    require(user, STAFF_OR_ADMIN, "record visits")

    try:
        site_res = await (
            client.table("sites")
            .select("id, site_name, site_address, checklist_id")
            .eq("id", payload.site_id)
            .maybe_single()
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to fetch site", e) from e

    if site_res is None or not site_res.data:
        raise NotFoundError(f"Site '{payload.site_id}' not found")
    site = site_res.data

    # Snapshot the checklist in effect right now
    checklist = None
    if site.get("checklist_id") is not None:
        checklist = await get_checklist(client, site["checklist_id"])
        if checklist is None:
            logger.warning(f"Site {site['id']} references missing checklist {site['checklist_id']}")

    if checklist is None:
        title, items = None, []
    else:
        title = checklist.title
        items = merge_item_results(checklist.items, payload.items or [])

    now = now or datetime.now(timezone.utc)
    checkin = payload.visit_checkin_time or now
    checkout = max(now, checkin)

    row = sanitize({
        "site_id": site["id"],
        "profile_id": user.id,
        "checklist_id": checklist.id if checklist else None,
        "visit_date": payload.visit_date,
        "visit_checkin_time": checkin,
        "visit_checkout_time": checkout,
    })
    # The report body is stored verbatim; sanitize() would strip it
    row["notes"] = encode_report(title, items, payload.notes)

    try:
        insert_res = await client.table("visits").insert(row).execute()
    except Exception as e:
        raise QueryFailure("Failed to create visit", e) from e

    if not insert_res.data:
        raise QueryFailure("Failed to create visit: insert returned no data")

    cache_invalidate(cache.VISITS)

    created = insert_res.data[0]
    report = summarize_items(title, items)
    logger.info(
        f"Visit {created.get('id')} recorded at site {site['id']} by {user.id}: {report.label}"
    )

    return VisitRead(
        **created,
        site_name=site.get("site_name"),
        site_address=site.get("site_address"),
        staff_name=user.full_name,
        checklist_title=title,
        report=report,
    )


# ============================================================
# Reads (role-scoped)
# ============================================================
def _scoped_visits(client, user, columns: str):
    query = client.table("visits").select(columns)

    if user.role is Role.staff:
        query = query.eq("profile_id", user.id)
    elif user.role is Role.client:
        query = query.eq("sites.profile_id", user.id)

    return query


async def list_visits(
    client,
    user,
    grade: Optional[CompletionGrade] = None,
    site_id: Optional[int] = None,
    limit: int = 200,
) -> List[VisitRead]:
    """
    Admin: every visit. Staff: visits they performed. Client: visits at
    sites they own. Optionally filtered by completion grade, which is
    decoded from each report body.
    """
    query = _scoped_visits(client, user, VISIT_SELECT)
    if site_id is not None:
        query = query.eq("site_id", site_id)

    try:
        res = await (
            query
            .order("visit_date", desc=True)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to fetch visits", e) from e

    visits = [to_visit_read(row) for row in (res.data or [])]
    if grade is not None:
        visits = [v for v in visits if v.report.grade is grade]
    return visits


async def site_visit_stats(client, user) -> List[SiteVisitStats]:
    """Visit count and most recent visit date per site the caller can see."""
    try:
        res = await (
            _scoped_visits(client, user, "site_id, visit_date, sites!inner(profile_id)")
            .order("visit_date", desc=True)
            .execute()
        )
    except Exception as e:
        raise QueryFailure("Failed to fetch visit stats", e) from e

    stats: Dict[int, SiteVisitStats] = {}
    for row in res.data or []:
        visit_date = _as_date(row.get("visit_date"))
        entry = stats.get(row["site_id"])
        if entry is None:
            stats[row["site_id"]] = SiteVisitStats(
                site_id=row["site_id"],
                total_visits=1,
                last_visit=visit_date,
            )
            continue
        entry.total_visits += 1
        if visit_date and (entry.last_visit is None or visit_date > entry.last_visit):
            entry.last_visit = visit_date

    return sorted(stats.values(), key=lambda s: s.site_id)
