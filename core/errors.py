# core/errors.py

from typing import List, Optional

from core.logging_config import logger


# ============================================================
# Error taxonomy
# ============================================================
# Every failure a handler can surface is one of these. The
# exception handler in main.py turns them into JSON bodies:
#   { "error": ..., "reason": ..., "timestamp": ... }
# ============================================================

class AppError(Exception):
    status_code: int = 500
    reason: str = "error"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[str] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict:
        body = {"error": self.message, "reason": self.reason}
        if self.details:
            body["details"] = self.details
        return body


class Unauthenticated(AppError):
    """No credential, or a credential the identity provider rejected."""
    status_code = 401
    reason = "unauthenticated"
    default_message = "Unauthorized"


class Forbidden(AppError):
    """Valid credential, but the role has no grant for the action."""
    status_code = 403
    reason = "forbidden"
    default_message = "Forbidden"


class NotOwner(AppError):
    """Owner-qualified grant, but the record belongs to someone else."""
    status_code = 403
    reason = "not_owner"
    default_message = "Access denied"


class InvalidTransition(AppError):
    status_code = 400
    reason = "invalid_transition"
    default_message = "Status change not permitted"


class ValidationError(AppError):
    status_code = 400
    reason = "validation_error"
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, *, fields: Optional[List[str]] = None, details: Optional[str] = None):
        super().__init__(message, details=details)
        self.fields = fields or []

    def to_body(self) -> dict:
        body = super().to_body()
        if self.fields:
            body["fields"] = self.fields
        return body


class NotFoundError(AppError):
    status_code = 404
    reason = "not_found"
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    reason = "conflict"
    default_message = "Record already exists"


class InfrastructureError(AppError):
    """
    Persistence or identity provider unreachable / erroring.
    The message shown to clients is always generic; the delegate's own
    error text only goes to the server log.
    """
    status_code = 500
    reason = "infrastructure_error"
    default_message = "Internal server error"

    def to_body(self) -> dict:
        return {"error": self.default_message, "reason": self.reason}


def required_field(field: str) -> ValidationError:
    return ValidationError(f"{field} is required", fields=[field])


# ============================================================
# Supabase error helpers
# ============================================================

# Postgres SQLSTATE codes surfaced by PostgREST
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
CHECK_VIOLATION = "23514"
NOT_NULL_VIOLATION = "23502"


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: PostgREST / GoTrue errors carry a message attribute
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    return str(error) or type(error).__name__


def extract_supabase_code(error: Exception) -> Optional[str]:
    code = getattr(error, "code", None)
    return str(code) if code is not None else None


def handle_supabase_error(error: Exception, operation: str = "Database operation") -> AppError:
    """
    Classify a delegate exception into the taxonomy.
    Returns the AppError (doesn't raise) so caller can re-raise with `from`.

    Args:
        error: The exception that occurred
        operation: Description of what failed (e.g., "Failed to create complaint")
    """
    if isinstance(error, AppError):
        return error

    detail = extract_supabase_error(error)
    code = extract_supabase_code(error)

    if code == UNIQUE_VIOLATION:
        logger.warning(f"{operation}: unique constraint violation ({detail})")
        return ConflictError(f"{operation}: record already exists")

    if code == FOREIGN_KEY_VIOLATION:
        logger.warning(f"{operation}: foreign key violation ({detail})")
        return ValidationError(f"{operation}: invalid reference")

    if code in (CHECK_VIOLATION, NOT_NULL_VIOLATION):
        logger.warning(f"{operation}: constraint violation ({detail})")
        return ValidationError(f"{operation}: invalid value")

    logger.error(f"{operation}: {detail}", exc_info=error)
    return InfrastructureError(f"{operation} failed")
