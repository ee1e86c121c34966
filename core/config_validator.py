# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Variables the portal cannot serve a single request without.
    Returns list of missing required variables.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    """
    Settings that are not fatal but usually mean a misconfigured deploy.
    """
    warnings = []

    if not settings.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (optional but recommended)")
    if settings.ENV == "production" and not settings.FRONTEND_DOMAIN:
        warnings.append("FRONTEND_DOMAIN (CORS only allows local portal domains)")
    if not settings.SITE_OWNER_FK or not settings.SITE_CHECKLIST_FK:
        warnings.append("SITE_OWNER_FK / SITE_CHECKLIST_FK (named joins will fall back)")

    return warnings


def validate_config_on_startup(strict: bool = True):
    """
    Validate configuration on application startup.

    strict=True raises RuntimeError when required config is missing;
    otherwise the problem is logged and the app still starts (local dev,
    tests). Optional config only ever produces warnings.
    """
    missing_required = validate_required_config()
    missing_optional = validate_optional_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        if strict:
            raise RuntimeError(error_msg)

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    if not missing_required:
        logger.info("Configuration validation passed")
