from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "AquaFlow Utility API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Frontend Domains (CORS auto-built below)
    # -------------------------------------------------
    FRONTEND_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = Field(None)
    SUPABASE_ANON_KEY: Optional[str] = Field(None)
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = Field(None)

    # Cookie carrying the access token for browser sessions
    SESSION_COOKIE_NAME: str = "sb-access-token"

    # -------------------------------------------------
    # Sequence numbers (CMP / SRV)
    # -------------------------------------------------
    # First attempt + one retry after a unique-constraint conflict
    SEQUENCE_MAX_ATTEMPTS: int = Field(2, ge=1, description="Insert attempts before a sequence conflict surfaces as 409")

    # -------------------------------------------------
    # Listing / pagination
    # -------------------------------------------------
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # -------------------------------------------------
    # Parallel stat queries
    # -------------------------------------------------
    PARALLEL_QUERY_TIMEOUT_SECONDS: float = Field(15.0, description="Deadline for a fan-out of independent queries")
    # Rows per request when an aggregate reads a whole table; at most PostgREST max-rows
    STATS_PAGE_SIZE: int = Field(1000, ge=1)

    # -------------------------------------------------
    # Technician scheduling
    # -------------------------------------------------
    TECHNICIAN_WORKDAY_HOURS: float = 8.0

    # -------------------------------------------------
    # Password reset throttling
    # -------------------------------------------------
    PASSWORD_RESET_MAX_REQUESTS: int = 5
    PASSWORD_RESET_WINDOW_SECONDS: int = 900

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
cors_origins = []

for origin in settings.FRONTEND_ORIGINS:
    if not origin.startswith("http"):
        origin = f"https://{origin}"
    cors_origins.append(origin.rstrip("/"))

# remove duplicates
settings.BACKEND_CORS_ORIGINS = sorted(list(set(cors_origins)))
