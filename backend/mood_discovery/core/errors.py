"""
Centralized error handling for API and recommendation-service failures.
Error types, the JSON error shape and the rules that map remote failures to HTTP statuses live here
so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

import logging
import traceback
from http import HTTPStatus
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_BAD_GATEWAY = 502
STATUS_SERVICE_UNAVAILABLE = 503  # rate limit, provider down, not configured
STATUS_INTERNAL_ERROR = 500

INTERNAL_SERVER_ERROR = "Internal Server Error"
MSG_NOT_FOUND = "The requested resource was not found"

# Messages produced by the recommendation client for known remote failures
MSG_YELP_AUTH_FAILED = "Yelp API authentication failed"
MSG_YELP_RATE_LIMITED = "Yelp API rate limit exceeded"
YELP_SERVER_ERROR_PREFIX = "Yelp API server error"


class AppError(Exception):
    """Operational error carrying the HTTP status to respond with."""

    status_code = STATUS_INTERNAL_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UnauthorizedError(AppError):
    status_code = 401


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ServiceUnavailableError(AppError):
    status_code = STATUS_SERVICE_UNAVAILABLE


class RecommendationAPIError(Exception):
    """Any failure from the recommendation service. Only the message is guaranteed."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# ---------------------------------------------------------------------------
# Error rules: (predicate, status_code, detail_message)
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

def _is_auth_failure(msg: str) -> bool:
    return msg == MSG_YELP_AUTH_FAILED


def _is_rate_limited(msg: str) -> bool:
    return msg == MSG_YELP_RATE_LIMITED


def _is_server_error(msg: str) -> bool:
    return msg.startswith(YELP_SERVER_ERROR_PREFIX)


# List of (predicate, status_code, detail). First match wins. detail=None keeps the original message.
RECOMMENDATION_ERROR_RULES: list[tuple[Callable[[str], bool], int, str | None]] = [
    (_is_auth_failure, STATUS_BAD_GATEWAY, "Recommendation service is misconfigured"),
    (_is_rate_limited, STATUS_SERVICE_UNAVAILABLE, "Recommendation service is busy, please try again shortly"),
    (_is_server_error, STATUS_BAD_GATEWAY, None),
]


def recommendation_error_to_app_error(exc: RecommendationAPIError) -> AppError:
    """
    Map a RecommendationAPIError into an AppError.
    Uses RECOMMENDATION_ERROR_RULES for known failures; otherwise 502 with the original message.
    """
    msg = exc.message
    for predicate, status_code, detail in RECOMMENDATION_ERROR_RULES:
        if predicate(msg):
            return AppError(detail or msg, status_code)
    return AppError(msg, STATUS_BAD_GATEWAY)


def error_body(status_code: int, message: str, error: str | None = None) -> dict:
    """JSON body for every error response: {error, message, statusCode}."""
    if status_code >= 500:
        label = INTERNAL_SERVER_ERROR
    else:
        label = error or _reason_phrase(status_code)
    return {"error": label, "message": message or label, "statusCode": status_code}


def _reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


def _json_error(status_code: int, message: str, *, exc: BaseException | None = None, debug: bool = False) -> JSONResponse:
    body = error_body(status_code, message)
    if debug and exc is not None and status_code >= 500:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Install the centralized handlers; every error leaves as {error, message, statusCode}."""

    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("Server error on %s %s: %s", request.method, request.url.path, exc.message)
        return _json_error(exc.status_code, exc.message, exc=exc, debug=debug)

    @app.exception_handler(RecommendationAPIError)
    async def _recommendation_error(request: Request, exc: RecommendationAPIError):
        mapped = recommendation_error_to_app_error(exc)
        logger.warning("Recommendation service failed on %s: %s", request.url.path, exc.message)
        return _json_error(mapped.status_code, mapped.message, exc=exc, debug=debug)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail in (None, "Not Found"):
            message = MSG_NOT_FOUND
        else:
            message = str(exc.detail) if exc.detail else _reason_phrase(exc.status_code)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        parts = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
            parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
        return JSONResponse(status_code=400, content=error_body(400, "; ".join(parts) or "Invalid request"))

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _json_error(STATUS_INTERNAL_ERROR, INTERNAL_SERVER_ERROR, exc=exc, debug=debug)
