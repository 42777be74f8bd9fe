import os
import sys
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Ensure local imports resolve
sys.path.append(os.path.dirname(__file__))

# Core
from core.config import settings
from core.config_validator import validate_config_on_startup
from core.errors import AppError, InfrastructureError
from core.logging_config import logger
from core.utils import utc_now_iso

# -------------------------------------------------
# Routers
# -------------------------------------------------
from routers import api_router


# -------------------------------------------------
# Error bodies
# -------------------------------------------------
def error_response(status_code: int, body: dict, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={**body, "timestamp": utc_now_iso()},
        headers=headers,
    )


def _field_name(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if not isinstance(part, int)]
    if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
        loc = loc[1:]
    return ".".join(loc) or "body"


def describe_validation_error(error: dict) -> str:
    """
    Human message for one pydantic error:
      missing / blank  → "<field> is required"
      explicit null    → "<field> cannot be null"
      custom validator → the validator's own message
      anything else    → "<field>: <pydantic message>"
    """
    field = _field_name(error)
    kind = error.get("type", "")
    ctx = error.get("ctx") or {}

    if kind == "missing" or (kind == "string_too_short" and ctx.get("min_length") == 1):
        return f"{field} is required"
    if kind == "null_not_allowed":
        return f"{field} cannot be null"
    if kind == "json_invalid":
        return "Request body is not valid JSON"
    if kind == "value_error" and ctx.get("error"):
        return str(ctx["error"])
    return f"{field}: {error.get('msg', 'invalid value')}"


# -------------------------------------------------
# Create the Application
# -------------------------------------------------
def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        description="Water utility operations API: complaints, services, billing, inventory and distribution",
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
        validate_config_on_startup()
        for route in app.routes:
            methods = ",".join(sorted(getattr(route, "methods", None) or []))
            logger.debug(f"Route {methods:18s} {getattr(route, 'path', '')}")

    # -------------------------------------------------
    # Error handling
    # -------------------------------------------------
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code in (401, 403):
            logger.warning(f"HTTP {exc.status_code} at {request.method} {request.url.path}: {exc.reason}")
        elif exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code} at {request.method} {request.url.path}: {exc.message}")
        return error_response(exc.status_code, exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        fields = []
        for error in errors:
            name = _field_name(error)
            if name not in fields:
                fields.append(name)

        message = describe_validation_error(errors[0]) if errors else "Invalid request"
        return error_response(
            400,
            {"error": message, "reason": "validation_error", "fields": fields},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (401, 403, 429):
            logger.warning(f"HTTP {exc.status_code} at {request.url.path}: {exc.detail}")
        return error_response(
            exc.status_code,
            {"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error("Unhandled error at %s", request.url, exc_info=exc)
        return error_response(500, InfrastructureError().to_body())

    # -------------------------------------------------
    # Register Routers
    # -------------------------------------------------
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root():
        return RedirectResponse("/docs")

    return app


# Create the global FastAPI instance
app = create_app()
