# services/dashboard.py

from datetime import date
from typing import Optional

from core import cache
from core.cache import cache_get, cache_set
from core.config import settings
from core.dashboard import aggregate_dashboard
from core.roles import role_profile


DASHBOARD_GROUPS = (cache.SITES, cache.CHECKLISTS, cache.PROFILES, cache.VISITS)


async def get_dashboard(client, user, today: Optional[date] = None) -> dict:
    """
    Dashboard payload for the caller: greeting, role, menu and counts.
    Counts are cached briefly; any write to a counted table clears them.
    """
    today = today or date.today()
    cache_key = f"dashboard:{user.role.value}:{user.id}:{today.isoformat()}"

    stats = cache_get(cache_key)
    if stats is None:
        stats = await aggregate_dashboard(client, user, today)
        cache_set(cache_key, stats, settings.DASHBOARD_CACHE_TTL_SECONDS, groups=DASHBOARD_GROUPS)

    profile = role_profile(user.role)
    return {
        "greeting": f"Welcome back, {user.first_name}",
        "role": user.role.value,
        "stats": stats,
        "quick_links": [
            {"title": item.title, "url": item.url}
            for item in profile.menu
            if item.url != "/"
        ],
    }
