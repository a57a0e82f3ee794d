"""Domain error taxonomy and the DRF exception handler.

Services raise subclasses of the four semantic families below; the API
layer never maps them one by one.  ``api_exception_handler`` renders every
error (domain, DRF, Pydantic, unexpected) in one shape::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Unexpected exceptions are logged with their traceback and surfaced as a
generic 500; they are never absorbed.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business-rule violations raised by services."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "permission_denied"


class BadRequest(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _error(code: str, detail: Any, attr: Optional[str] = None) -> dict[str, Any]:
    return {"code": code, "detail": str(detail), "attr": attr}


def _flatten_drf_detail(detail: Any, attr: Optional[str] = None) -> list[dict]:
    if isinstance(detail, dict):
        errors: list[dict] = []
        for key, value in detail.items():
            nested = key if attr is None else f"{attr}.{key}"
            if key == "detail" and attr is None:
                nested = None
            errors.extend(_flatten_drf_detail(value, nested))
        return errors
    if isinstance(detail, list):
        errors = []
        for item in detail:
            errors.extend(_flatten_drf_detail(item, attr))
        return errors
    code = getattr(detail, "code", "error")
    return [_error(code, detail, attr)]


def _body(error_type: str, errors: list[dict]) -> dict[str, Any]:
    return {"type": error_type, "errors": errors}


def api_exception_handler(exc: Exception, context: dict) -> Response:
    """DRF ``EXCEPTION_HANDLER`` producing the standard error envelope."""
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else None

    if isinstance(exc, DomainError):
        logger.info(
            "api.domain_error",
            view=view_name,
            error=exc.__class__.__name__,
            detail=str(exc),
        )
        return Response(
            _body("client_error", [_error(exc.code, exc)]),
            status=exc.status_code,
        )

    if isinstance(exc, PydanticValidationError):
        errors = [
            _error(
                "invalid",
                err["msg"],
                ".".join(str(part) for part in err["loc"]) or None,
            )
            for err in exc.errors()
        ]
        return Response(
            _body("validation_error", errors),
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is not None:
        error_type = (
            "validation_error" if isinstance(exc, ValidationError) else "client_error"
        )
        detail = exc.detail if isinstance(exc, APIException) else response.data
        errors = _flatten_drf_detail(detail)
        response.data = _body(error_type, errors)
        return response

    logger.exception("api.unhandled_error", view=view_name)
    return Response(
        _body("server_error", [_error("error", "A server error occurred.")]),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
