from typing import Optional, Set

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core.config import settings
from core.errors import InfrastructureError, Unauthenticated, extract_supabase_error
from core.logging_config import logger
from core.roles import Role, is_valid_role
from core.supabase_client import get_supabase_client


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Principal (resolved identity)
# ============================================================
class Principal(BaseModel):
    id: str
    email: str
    role: Role
    is_active: bool = True

    full_name: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None

    # customers.id linked to this login (customer role only)
    customer_id: Optional[str] = None

    @property
    def owner_refs(self) -> Set[str]:
        return {ref for ref in (self.id, self.customer_id) if ref}


# ============================================================
# Identity provider errors
# ============================================================
def _is_rejected_credential(error: Exception) -> bool:
    """
    GoTrue answers a bad/expired JWT with a 4xx AuthApiError. Transport
    failures and 5xx come back without a 4xx status and are infrastructure.
    """
    status = getattr(error, "status", None)
    return isinstance(status, int) and 400 <= status < 500


# ============================================================
# PRINCIPAL RESOLVER (Supabase: validates JWT + loads profile)
# ============================================================
def resolve_principal(token: Optional[str]) -> Optional[Principal]:
    """
    Exchange a bearer token for a Principal.

    Returns None for a missing/invalid/expired token, an unknown subject,
    or a profile with an unknown role. Raises InfrastructureError when the
    identity provider or profile store cannot be reached, so callers can
    answer 500 instead of 401.
    """
    if not token:
        return None

    client: Client = get_supabase_client()
    if not client:
        raise InfrastructureError("Supabase client not configured")

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception as e:
        if _is_rejected_credential(e):
            return None
        logger.error(f"Identity provider error: {extract_supabase_error(e)}", exc_info=e)
        raise InfrastructureError("Identity provider unavailable") from e

    auth_user = getattr(auth_resp, "user", None) if auth_resp else None
    if not auth_user or not auth_user.id:
        return None

    # ---------------------------------------------------------
    # Load profile (never fabricate a default role)
    # ---------------------------------------------------------
    try:
        result = (
            client.table("users")
            .select("id, email, full_name, phone, role, department, is_active")
            .eq("id", auth_user.id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        logger.error(f"Profile store error: {extract_supabase_error(e)}", exc_info=e)
        raise InfrastructureError("Profile store unavailable") from e

    if not result.data:
        logger.warning(f"No profile for authenticated subject {auth_user.id}")
        return None

    profile = result.data[0]
    role = profile.get("role")

    if not is_valid_role(role):
        logger.warning(f"Profile {auth_user.id} has unknown role {role!r}")
        return None

    principal = Principal(
        id=profile["id"],
        email=profile.get("email") or auth_user.email or "",
        role=Role(role),
        is_active=bool(profile.get("is_active", False)),
        full_name=profile.get("full_name"),
        phone=profile.get("phone"),
        department=profile.get("department"),
    )

    # ---------------------------------------------------------
    # Customer logins own a customers row
    # ---------------------------------------------------------
    if principal.role == Role.customer:
        try:
            customer = (
                client.table("customers")
                .select("id")
                .eq("user_id", principal.id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error(f"Customer lookup error: {extract_supabase_error(e)}", exc_info=e)
            raise InfrastructureError("Profile store unavailable") from e

        if customer.data:
            principal.customer_id = customer.data[0]["id"]

    return principal


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the browser session cookie."""
    if credentials and credentials.scheme.lower() == "bearer" and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME) or None


# ============================================================
# FastAPI dependencies
# ============================================================
def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    principal = resolve_principal(extract_token(request, credentials))
    if principal is None:
        raise Unauthenticated()
    return principal


def get_optional_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Principal]:
    """
    Optional authentication for public endpoints.
    Returns None if no token or an invalid token is provided.
    """
    return resolve_principal(extract_token(request, credentials))
