# routers/health.py

from fastapi import APIRouter

from core.config import settings
from core.supabase_client import ping_supabase
from core.utils import envelope

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Checks Supabase connection + table queries
# No auth required
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
def health_db():
    """
    Verifies Supabase connectivity.
    - Checks if URL + key are configured
    - Attempts to query the core tables
    - Returns per-table status only; delegate error text stays in the server log

    Safe for external health monitors (no auth required).
    """
    status = ping_supabase()
    return envelope(
        service="Supabase",
        status=status.get("status", "unknown"),
        details=status,
    )


# -----------------------------------------------------
# GET /health/app
# Simple API health check for uptime monitors
# -----------------------------------------------------
@router.get("/app", summary="App health check")
async def health_app():
    return envelope(service=settings.PROJECT_NAME, status="ok", env=settings.ENV)
