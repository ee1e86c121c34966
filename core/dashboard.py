# core/dashboard.py

"""
Role-specific dashboard counts.

Which metrics a role gets comes from ROLE_PROFILES; this module only
knows how to count each metric. All counts for one dashboard run
concurrently and the result is produced once every query has settled.
A failed count raises instead of reporting zero.
"""

import asyncio
from datetime import date
from typing import Callable, Dict, Optional, Sequence

from core.errors import QueryFailure
from core.logging_config import logger
from core.roles import role_profile


def _count_query(client, table: str, columns: str = "id"):
    return client.table(table).select(columns, count="exact")


# ============================================================
# Metric → query builder
# ============================================================
# Each builder takes (client, user, today) and returns an unexecuted query
METRIC_QUERIES: Dict[str, Callable] = {
    "sites": lambda client, user, today: _count_query(client, "sites"),
    "users": lambda client, user, today: _count_query(client, "profiles"),
    "checklists": lambda client, user, today: _count_query(client, "checklists"),
    "today_visits": lambda client, user, today: (
        _count_query(client, "visits").gte("visit_date", today.isoformat())
    ),
    "my_visits": lambda client, user, today: (
        _count_query(client, "visits").eq("profile_id", user.id)
    ),
    "my_sites": lambda client, user, today: (
        _count_query(client, "sites").eq("profile_id", user.id)
    ),
    "total_visits": lambda client, user, today: (
        _count_query(client, "visits", "id, sites!inner(profile_id)")
        .eq("sites.profile_id", user.id)
    ),
    "visits": lambda client, user, today: _count_query(client, "visits"),
    "unassigned_sites": lambda client, user, today: (
        _count_query(client, "sites").is_("profile_id", "null")
    ),
}


def _result_count(res) -> int:
    if res.count is not None:
        return res.count
    return len(res.data or [])


async def _run_count(query) -> int:
    res = await query.execute()
    return _result_count(res)


async def count_metrics(client, user, metrics: Sequence[str], today: Optional[date] = None) -> Dict[str, int]:
    """
    Run the named METRIC_QUERIES concurrently and wait for all of them.

    Returns:
        {metric_name: count} in the order of `metrics`

    Raises:
        QueryFailure if any count failed
    """
    today = today or date.today()

    outcomes = await asyncio.gather(
        *(_run_count(METRIC_QUERIES[name](client, user, today)) for name in metrics),
        return_exceptions=True,
    )

    result = {}
    for name, outcome in zip(metrics, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(f"Count '{name}' failed for {user.role}: {outcome}")
            raise QueryFailure(f"Failed to count {name}", outcome) from outcome
        result[name] = outcome

    return result


async def aggregate_dashboard(client, user, today: Optional[date] = None) -> Dict[str, int]:
    """
    Count every metric declared for the caller's role.

    Returns:
        {metric_name: count}, e.g. {"sites": 10, "today_visits": 2, ...}
    """
    metrics = role_profile(user.role).dashboard_metrics
    return await count_metrics(client, user, metrics, today)
