"""
Error taxonomy for authentication flows and the HTTP handlers that render it.

AuthenticationFailure is intentionally undifferentiated: bad credentials, an
unknown email, a reused or expired refresh token and malformed input all look
the same to the caller. StoreFailure is kept separate so the HTTP layer can
answer 503 instead of asking the user to log in again.
"""

import logging
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


class AuthApiError(Exception):
    """Base class for errors raised by authapi."""


class ConfigurationError(AuthApiError):
    """Signing configuration is missing or invalid. Fatal at startup."""


class AuthenticationFailure(AuthApiError):
    """Credentials or refresh token rejected."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class StoreFailure(AuthApiError):
    """The credential store is unavailable or rejected a write."""


def _trace_id(request: Request) -> str:
    return request.headers.get("X-Request-ID") or hex(id(request))


def problem_response(
    request: Request,
    status: int,
    title: str,
    detail: str,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {
        "status": status,
        "title": title,
        "detail": detail,
        "instance": request.url.path,
        "traceId": _trace_id(request),
    }
    if extra:
        body.update(extra)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_JSON, headers=headers)


def _status_for(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, ValueError):
        return 400, "Bad Request"
    if isinstance(exc, PermissionError):
        return 401, "Unauthorized"
    if isinstance(exc, LookupError):
        return 404, "Not Found"
    return 500, "Internal Server Error"


def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def _http_exc_handler(request: Request, exc: StarletteHTTPException):
        try:
            title = HTTPStatus(exc.status_code).phrase
        except ValueError:
            title = "HTTP error"
        return problem_response(
            request, exc.status_code, title, str(exc.detail or title), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(AuthenticationFailure)
    async def _auth_failure_handler(request: Request, exc: AuthenticationFailure):
        return problem_response(request, 401, "Unauthorized", str(exc))

    @app.exception_handler(StoreFailure)
    async def _store_failure_handler(request: Request, exc: StoreFailure):
        logger.error("Credential store failure on %s: %s", request.url.path, exc)
        detail = str(exc) if debug else "Service temporarily unavailable."
        return problem_response(request, 503, "Service Unavailable", detail)

    @app.exception_handler(Exception)
    async def _generic_handler(request: Request, exc: Exception):
        status, title = _status_for(exc)
        logger.exception("Unhandled exception on %s", request.url.path)
        detail = str(exc) if debug else "An error occurred processing your request."
        return problem_response(request, status, title, detail)
