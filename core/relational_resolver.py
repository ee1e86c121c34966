# core/relational_resolver.py

"""
Site view resolution.

`sites` has foreign keys to both `profiles` (owner) and `checklists`,
and the schema has carried more than one path between some of these
tables over time. PostgREST rejects an embed whose join path is
ambiguous, so the combined view is fetched through an ordered list of
strategies. A strategy only falls through to the next one when the
error is a relationship ambiguity; anything else is a QueryFailure.

Every strategy returns the same SiteView shape.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from core.config import settings
from core.errors import QueryFailure, is_relationship_ambiguity
from core.logging_config import logger
from core.roles import SITE_SCOPE_OWNED, role_profile
from models.site import ChecklistRef, SiteView


# ============================================================
# Query description
# ============================================================
@dataclass(frozen=True)
class SiteQuery:
    owner_id: Optional[str] = None
    site_ids: Optional[Sequence[int]] = None
    visit_day: Optional[str] = None
    order_by: str = "created_at"
    descending: bool = True


def site_query_for(user, **kwargs) -> SiteQuery:
    """Role-filtered query: clients only ever see the sites they own."""
    if role_profile(user.role).site_scope == SITE_SCOPE_OWNED:
        kwargs["owner_id"] = user.id
    return SiteQuery(**kwargs)


# ============================================================
# Select clauses
# ============================================================
def owner_embed() -> str:
    return f"profiles!{settings.SITE_OWNER_FK}(full_name)"


def checklist_embed() -> str:
    return f"checklists!{settings.SITE_CHECKLIST_FK}(id, title)"


def _sites_select(client, columns: str, query: SiteQuery):
    builder = client.table("sites").select(columns)

    if query.owner_id is not None:
        builder = builder.eq("profile_id", query.owner_id)
    if query.site_ids is not None:
        builder = builder.in_("id", list(query.site_ids))
    if query.visit_day is not None:
        builder = builder.eq("visit_day", query.visit_day)

    return builder.order(query.order_by, desc=query.descending)


# ============================================================
# Row → SiteView
# ============================================================
def _embedded_one(value) -> Optional[Dict[str, Any]]:
    # PostgREST returns a to-one embed as an object; tolerate a list too
    if isinstance(value, list):
        return value[0] if value else None
    return value or None


def to_site_view(row: Dict[str, Any], checklist: Optional[Dict[str, Any]]) -> SiteView:
    owner = _embedded_one(row.get("profiles"))
    fields = {k: v for k, v in row.items() if k not in ("profiles", "checklists")}

    checklist_ref = None
    if checklist and checklist.get("id") is not None:
        checklist_ref = ChecklistRef(id=checklist["id"], title=checklist.get("title") or "")

    return SiteView(
        **fields,
        owner_name=(owner or {}).get("full_name"),
        checklist=checklist_ref,
    )


# ============================================================
# Strategies
# ============================================================
async def fetch_joined(client, query: SiteQuery) -> List[SiteView]:
    """Single query: site → owner → checklist via named foreign keys."""
    res = await _sites_select(
        client, f"*, {owner_embed()}, {checklist_embed()}", query
    ).execute()

    return [
        to_site_view(row, _embedded_one(row.get("checklists")))
        for row in (res.data or [])
    ]


async def _fetch_checklist_ref(client, checklist_id) -> Optional[Dict[str, Any]]:
    res = await (
        client.table("checklists")
        .select("id, title")
        .eq("id", checklist_id)
        .maybe_single()
        .execute()
    )
    # maybe_single() yields no response at all when the row is missing
    return res.data if res is not None else None


async def fetch_owner_then_checklists(client, query: SiteQuery) -> List[SiteView]:
    """
    Site → owner join, then one point query per distinct checklist id,
    issued concurrently. A failed lookup leaves that site's checklist
    empty instead of failing the batch.
    """
    res = await _sites_select(client, f"*, {owner_embed()}", query).execute()
    rows = res.data or []

    checklist_ids = list(dict.fromkeys(
        row["checklist_id"] for row in rows if row.get("checklist_id") is not None
    ))

    outcomes = await asyncio.gather(
        *(_fetch_checklist_ref(client, cid) for cid in checklist_ids),
        return_exceptions=True,
    )

    checklists: Dict[Any, Optional[Dict[str, Any]]] = {}
    for cid, outcome in zip(checklist_ids, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning(f"Checklist {cid} lookup failed; leaving it unresolved: {outcome}")
            checklists[cid] = None
        else:
            checklists[cid] = outcome

    return [to_site_view(row, checklists.get(row.get("checklist_id"))) for row in rows]


@dataclass(frozen=True)
class ResolutionStrategy:
    name: str
    fetch: Callable[[Any, SiteQuery], Awaitable[List[SiteView]]]


SITE_VIEW_STRATEGIES: List[ResolutionStrategy] = [
    ResolutionStrategy("named_fk_join", fetch_joined),
    ResolutionStrategy("owner_join_then_checklists", fetch_owner_then_checklists),
]


async def resolve(
    client,
    query: SiteQuery,
    strategies: Sequence[ResolutionStrategy],
    should_fall_back: Callable[[BaseException], bool] = is_relationship_ambiguity,
    operation: str = "Failed to fetch sites",
):
    """
    Try each strategy in order. Fall through only on errors accepted by
    `should_fall_back`; raise QueryFailure for anything else, or when
    every strategy has fallen through.
    """
    last_error: Optional[BaseException] = None

    for strategy in strategies:
        try:
            return await strategy.fetch(client, query)
        except Exception as e:
            if not should_fall_back(e):
                logger.error(f"{operation} ({strategy.name}): {e}")
                raise QueryFailure(operation, e) from e
            logger.warning(f"Site view strategy '{strategy.name}' hit a relationship ambiguity, falling back: {e}")
            last_error = e

    raise QueryFailure(operation, last_error) from last_error


# ============================================================
# Public operations
# ============================================================
async def fetch_site_views(client, query: Optional[SiteQuery] = None) -> List[SiteView]:
    """Sites with owner name and checklist, whichever path succeeds."""
    return await resolve(client, query or SiteQuery(), SITE_VIEW_STRATEGIES)


async def fetch_sites_with_owners(client, query: Optional[SiteQuery] = None) -> List[SiteView]:
    """
    Lighter view for callers that only need owner names. Not part of the
    fallback chain; `checklist` is always None here.
    """
    query = query or SiteQuery()
    try:
        res = await _sites_select(client, f"*, {owner_embed()}", query).execute()
    except Exception as e:
        logger.error(f"Failed to fetch sites with owners: {e}")
        raise QueryFailure("Failed to fetch sites with owners", e) from e

    return [to_site_view(row, None) for row in (res.data or [])]
