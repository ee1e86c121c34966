import os
import sys
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import IntegrityViolation, PortalError, QueryFailure, handle_supabase_error
from core.logging_config import logger

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers import (
    admin_router,
    checklists_router,
    dashboard_router,
    health_router,
    navigation_router,
    sites_router,
    users_router,
    visits_router,
)


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Facility inspection portal: sites, checklists, visit reports and role dashboards",
    )

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------
    # Startup logging
    # -------------------------------------------------
    @app.on_event("startup")
    async def on_startup():
        logger.info(f"Starting {settings.PROJECT_NAME} ({settings.ENV})")
        validate_config_on_startup(strict=settings.ENV == "production")
        for route in app.routes:
            methods = ",".join(sorted(getattr(route, "methods", None) or []))
            logger.debug(f"Route {methods:10s} {getattr(route, 'path', '')}")

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 500):
            logger.warning(
                f"HTTP {exc.status_code} at {request.url}: {exc.detail}"
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(QueryFailure)
    async def handle_query_failure(request: Request, exc: QueryFailure):
        http_exc = handle_supabase_error(exc, exc.operation)
        return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

    @app.exception_handler(IntegrityViolation)
    async def handle_integrity(request: Request, exc: IntegrityViolation):
        logger.info(f"Rejected at {request.url}: {exc.message}")
        content = {"detail": exc.message}
        if exc.referencing_count is not None:
            content["referencing_count"] = exc.referencing_count
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(PortalError)
    async def handle_portal_error(request: Request, exc: PortalError):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__} at {request.url}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------

    # Navigation + dashboard
    app.include_router(navigation_router)
    app.include_router(dashboard_router)

    # Core Data Routers
    app.include_router(sites_router)
    app.include_router(checklists_router)
    app.include_router(visits_router)

    # Admin
    app.include_router(users_router)
    app.include_router(admin_router)

    # Health
    app.include_router(health_router)

    return app


# Create the global FastAPI instance
app = create_app()
