# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger


def validate_required_config() -> List[str]:
    """
    Returns list of missing required variables.
    Without these no request can be authenticated.
    """
    missing = []

    if not settings.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    return missing


def validate_optional_config() -> List[str]:
    warnings = []

    if not settings.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (optional but recommended)")
    if settings.MAX_PAGE_SIZE < settings.DEFAULT_PAGE_SIZE:
        warnings.append("MAX_PAGE_SIZE is below DEFAULT_PAGE_SIZE")

    return warnings


def validate_config_on_startup(strict: bool = False):
    """
    Validate configuration on application startup.

    Missing required config raises RuntimeError in production (or when
    strict=True); elsewhere it is logged so the app can boot for local work,
    and every authenticated request then fails with 500.
    """
    missing_required = validate_required_config()

    if missing_required:
        error_msg = f"Missing required environment variables: {', '.join(missing_required)}"
        logger.error(error_msg)
        if strict or settings.ENV == "production":
            raise RuntimeError(error_msg)

    for warning in validate_optional_config():
        logger.warning(f"Optional configuration missing: {warning}")

    if not missing_required:
        logger.info("Configuration validation passed")
