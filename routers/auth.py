from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from core.config import settings
from core.errors import InfrastructureError, Unauthenticated, extract_supabase_error
from core.logging_config import logger
from core.navigation import permissions_payload
from core.rate_limiter import require_rate_limit
from core.supabase_helpers import require_client
from core.utils import envelope
from dependencies.auth import Principal, get_current_principal, resolve_principal
from models.user import LoginRequest, PasswordResetRequest


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# Login attempts per client IP per minute
LOGIN_MAX_REQUESTS = 10


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    user: Principal


# ============================================================
# LOGIN (SUPABASE AUTH)
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
def login(payload: LoginRequest, request: Request):
    require_rate_limit(request, "login", max_requests=LOGIN_MAX_REQUESTS, window_seconds=60)

    email = payload.email.strip().lower()
    client = require_client()

    try:
        response = client.auth.sign_in_with_password(
            {"email": email, "password": payload.password}
        )
    except Exception as e:
        status = getattr(e, "status", None)
        if isinstance(status, int) and 400 <= status < 500:
            # Don't expose provider details to the caller
            logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
            raise Unauthenticated("Invalid email or password") from e
        logger.error(f"Identity provider error during login: {extract_supabase_error(e)}", exc_info=e)
        raise InfrastructureError("Identity provider unavailable") from e

    session = getattr(response, "session", None)
    if not session or not session.access_token:
        raise Unauthenticated("Invalid email or password")

    # A login without a profile (or with an unknown role) is not a user of this app
    principal = resolve_principal(session.access_token)
    if principal is None or not principal.is_active:
        logger.warning(f"Login rejected for {email}: no active profile")
        raise Unauthenticated("Invalid email or password")

    logger.info(f"User {principal.id} ({principal.role}) signed in")

    return TokenResponse(
        access_token=session.access_token,
        expires_in=getattr(session, "expires_in", None),
        refresh_token=getattr(session, "refresh_token", None),
        user=principal,
    )


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", summary="Current authenticated user")
def read_me(principal: Principal = Depends(get_current_principal)):
    return envelope(user=principal.model_dump(mode="json"))


# ============================================================
# NAVIGATION + CAPABILITIES (UI gating)
# ============================================================
@router.get("/permissions", summary="Navigation and capability map for the current user")
def read_permissions(principal: Principal = Depends(get_current_principal)):
    """
    Generated from the same grant table the server enforces.
    The UI uses it to hide links; every endpoint still checks on its own.
    """
    return envelope(**permissions_payload(principal))


# ============================================================
# PASSWORD RESET (delegated to Supabase)
# ============================================================
@router.post("/password-reset", summary="Send a password reset email")
def request_password_reset(payload: PasswordResetRequest, request: Request):
    email = payload.email.strip().lower()

    require_rate_limit(
        request,
        "password-reset",
        key=email,
        max_requests=settings.PASSWORD_RESET_MAX_REQUESTS,
        window_seconds=settings.PASSWORD_RESET_WINDOW_SECONDS,
    )

    client = require_client()
    options = {"redirect_to": payload.redirect_to} if payload.redirect_to else {}

    try:
        client.auth.reset_password_for_email(email, options)
    except Exception as e:
        status = getattr(e, "status", None)
        if isinstance(status, int) and 400 <= status < 500:
            # Unknown addresses look the same as known ones
            logger.warning(f"Password reset not sent for {email}: {type(e).__name__}")
        else:
            logger.error(f"Password reset failed: {extract_supabase_error(e)}", exc_info=e)
            raise InfrastructureError("Identity provider unavailable") from e

    return envelope(message="If the address is registered, a reset link has been sent.")
