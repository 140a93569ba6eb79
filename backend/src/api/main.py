"""FastAPI application entry point."""
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.routers import containers, descriptions, health, templates, videos
from core.config import get_settings
from services.exceptions import (
    InvalidTemplateOrderError,
    InvalidVariableError,
    NotFoundError,
    PreconditionFailedError,
    PushRequestError,
)

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


def _error_response(
    status_code: int, error: str, message: str, hint: str = "",
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Error body shared by all domain errors: a stable code, a message and a hint."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": {"error": error, "message": message, "hint": hint}},
        headers=headers,
    )


app_settings = get_settings()

app = FastAPI(
    title="Description Composer API",
    description="Compose YouTube video descriptions from reusable templates.",
    version="0.1.0",
)


@app.exception_handler(NotFoundError)
async def not_found_exception_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    """Unknown ids, and ids owned by another user."""
    return _error_response(404, exc.error_code, str(exc), exc.hint)


@app.exception_handler(PreconditionFailedError)
async def precondition_failed_exception_handler(
    _request: Request, exc: PreconditionFailedError,
) -> JSONResponse:
    """Operations impossible for the resource's current state; retrying won't help."""
    return _error_response(409, exc.error_code, exc.message, exc.hint)


@app.exception_handler(InvalidVariableError)
async def invalid_variable_exception_handler(
    _request: Request, exc: InvalidVariableError,
) -> JSONResponse:
    """Variable writes for keys the video's container does not define."""
    return _error_response(
        422,
        "invalid_variable",
        str(exc),
        "List the video's variables to see which names its container defines.",
    )


@app.exception_handler(InvalidTemplateOrderError)
async def invalid_template_order_exception_handler(
    _request: Request, exc: InvalidTemplateOrderError,
) -> JSONResponse:
    """Container template lists with duplicates or unknown templates."""
    return _error_response(
        422,
        "invalid_template_order",
        str(exc),
        "Each template may appear once and must be one of your templates.",
    )


@app.exception_handler(PushRequestError)
async def push_request_exception_handler(
    _request: Request, exc: PushRequestError,
) -> JSONResponse:
    """Push could not be requested; nothing changed, safe to retry."""
    logger.warning("Push request failed: %s", exc.message)
    return _error_response(
        503,
        exc.error_code,
        exc.message,
        "This is temporary. Try again in a moment.",
        headers={"Retry-After": "30"},
    )


# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(templates.router)
app.include_router(containers.router)
app.include_router(videos.router)
app.include_router(descriptions.router)
