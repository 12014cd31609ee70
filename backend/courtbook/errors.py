# backend/courtbook/errors.py
"""
RFC 7807 problem+json rendering for every error the API returns.

Booking failures carry a stable ``code`` (SLOT_HELD, SLOT_TAKEN,
PROMOTION_INVALID, ...) next to the human readable ``detail`` so clients can
branch without parsing messages.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

STATUS_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}


def _problem_response(
    request: Request,
    status: int,
    *,
    detail: Optional[str] = None,
    code: Optional[str] = None,
    errors: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    problem: Dict[str, Any] = {
        "type": "about:blank",
        "title": STATUS_TITLES.get(status, "Error"),
        "status": status,
        "detail": detail or "",
        "instance": request.url.path,
    }
    if code:
        problem["code"] = code
    if errors is not None:
        problem["errors"] = jsonable_encoder(errors)
    return JSONResponse(problem, status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=headers)


def _unpack_detail(detail: Any) -> tuple[Optional[str], Optional[str], Optional[Any]]:
    """Split a DomainException-style detail dict into (message, code, errors)."""
    if isinstance(detail, dict):
        code = detail.get("code") if isinstance(detail.get("code"), str) else None
        message = detail.get("message") or detail.get("detail")
        return (
            message if isinstance(message, str) else None,
            code,
            detail.get("details") or detail.get("errors"),
        )
    if detail is None:
        return None, None, None
    return str(detail), None, None


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(location) or "body", "message": error.get("msg", "")})
    return errors


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail, code, errors = _unpack_detail(exc.detail)
        if exc.status_code == 409:
            logger.info("booking_conflict", extra={"path": request.url.path, "code": code})
        return _problem_response(
            request,
            exc.status_code,
            detail=detail,
            code=code,
            errors=errors,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Domain error", extra={"path": request.url.path, "code": exc.code})
        return _problem_response(
            request,
            exc.status_code,
            detail=exc.message,
            code=exc.code,
            errors=exc.details or None,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        # Malformed booking input is a client error like any other business validation failure
        return _problem_response(
            request,
            400,
            detail="Request validation failed",
            code="validation_error",
            errors=_field_errors(exc),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error",
            extra={"path": request.url.path, "error_type": type(exc).__name__},
            exc_info=exc,
        )
        return _problem_response(
            request, 500, detail="Internal Server Error", code="internal_server_error"
        )
