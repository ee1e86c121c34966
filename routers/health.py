# routers/health.py

from fastapi import APIRouter

from core.cache import get_cache
from core.config import settings
from core.config_validator import validate_optional_config, validate_required_config
from core.supabase_client import create_supabase_client, ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/app
# Process is up; touches nothing external
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return {
        "service": settings.PROJECT_NAME,
        "env": settings.ENV,
        "cache_entries": get_cache().size(),
        "status": "ok",
    }


# -----------------------------------------------------
# GET /health/db
# One probe query per portal table (profiles, sites,
# checklists, visits). No auth required.
# -----------------------------------------------------
@router.get("/db", summary="Supabase table reachability")
async def health_db():
    """
    Opens a fresh service-role client and probes every portal table.
    `degraded` means at least one table query failed; per-table errors
    are in `details.tables`.
    """
    try:
        probe_client = await create_supabase_client()
        report = await ping_supabase(probe_client)
    except Exception as e:
        return {"service": "Supabase", "status": "error", "error": str(e)}

    return {
        "service": "Supabase",
        "status": report.get("status", "unknown"),
        "details": report,
    }


# -----------------------------------------------------
# GET /health/config
# -----------------------------------------------------
@router.get("/config", summary="Configuration check (names only, never values)")
async def health_config():
    missing = validate_required_config()
    return {
        "status": "ok" if not missing else "misconfigured",
        "missing_required": missing,
        "warnings": validate_optional_config(),
    }
