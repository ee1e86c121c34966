# core/supabase_client.py

from typing import Optional

from fastapi import HTTPException
from supabase import AsyncClient, acreate_client

from core.config import settings
from core.logging_config import logger


_client: Optional[AsyncClient] = None


# ============================================================
# Supabase Client Factory (ALWAYS service role)
# ============================================================

async def create_supabase_client() -> Optional[AsyncClient]:
    """
    Creates an async Supabase client using the SERVICE ROLE KEY.
    Row access is decided by this API (role scoping), not by RLS,
    so the service role is required for full read/write on all tables.
    """
    supabase_url = settings.SUPABASE_URL
    supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY  # MUST be service-role

    if not supabase_url or not supabase_key:
        logger.error("Missing Supabase credentials")
        logger.error(f"   URL: {supabase_url}")
        logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
        return None

    try:
        return await acreate_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


async def get_supabase_client() -> AsyncClient:
    """
    FastAPI dependency returning the shared client.
    The client is created once and reused for the process lifetime.
    """
    global _client

    if _client is None:
        _client = await create_supabase_client()

    if _client is None:
        raise HTTPException(500, "Supabase client not configured")

    return _client


# ============================================================
# Ping Supabase for health checks
# ============================================================

HEALTH_TABLES = ["profiles", "sites", "checklists", "visits"]


async def ping_supabase(client: Optional[AsyncClient]) -> dict:
    """
    Simple connectivity check.
    Does NOT query auth tables.
    """
    if client is None:
        return {"service": "Supabase", "status": "not_configured"}

    results = {}
    status = "ok"

    for t in HEALTH_TABLES:
        try:
            res = await client.table(t).select("id").limit(1).execute()
            results[t] = {
                "status": "ok",
                "rows_found": len(res.data or []),
            }
        except Exception as err:
            status = "degraded"
            results[t] = {"status": "error", "detail": str(err)}

    return {
        "service": "Supabase",
        "status": status,
        "tables": results,
    }
