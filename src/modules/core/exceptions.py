"""Domain error base class and the standard API error body.

Every error returned by the API has the shape::

    {"type": "client_error", "errors": [{"code": ..., "detail": ..., "attr": ...}]}

Domain exceptions carry a stable ``code`` and optional structured fields
(``extra``) which are merged into the error entry.  Views decide the HTTP
status; ``standard_exception_handler`` renders DRF framework errors
(authentication, parsing, serializer validation) in the same shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business rule violations raised by services."""

    code = "domain_error"
    default_detail = "The operation violates a business rule."

    def __init__(self, detail: Optional[str] = None, **extra: Any) -> None:
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)


def _error_type(status_code: int) -> str:
    return "server_error" if status_code >= 500 else "client_error"


def error_response(
    exc: DomainError, status_code: int, attr: Optional[str] = None
) -> Response:
    """Translate a domain exception into the standard error response."""
    entry: Dict[str, Any] = {"code": exc.code, "detail": exc.detail, "attr": attr}
    entry.update(exc.extra)
    return Response(
        {"type": _error_type(status_code), "errors": [entry]},
        status=status_code,
    )


def first_error_message(exc) -> str:
    """First message of a pydantic ``ValidationError``, without its prefix."""
    errors = exc.errors()
    if not errors:
        return str(exc)
    return str(errors[0]["msg"]).removeprefix("Value error, ")


def _flatten_validation(data: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in data.items():
            name = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                name = attr
            errors.extend(_flatten_validation(value, name))
        return errors
    if isinstance(data, list):
        errors = []
        for index, item in enumerate(data):
            if isinstance(item, (dict, list)):
                name = f"{attr}.{index}" if attr else str(index)
                errors.extend(_flatten_validation(item, name))
            else:
                errors.extend(_flatten_validation(item, attr))
        return errors
    return [
        {
            "code": getattr(data, "code", "invalid"),
            "detail": str(data),
            "attr": attr,
        }
    ]


def standard_exception_handler(exc, context) -> Optional[Response]:
    """DRF ``EXCEPTION_HANDLER`` producing the standard error body."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        errors = _flatten_validation(exc.detail)
    else:
        detail = getattr(exc, "detail", str(exc))
        errors = [
            {
                "code": getattr(detail, "code", None) or "error",
                "detail": str(detail),
                "attr": None,
            }
        ]

    if response.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("api.server_error", error=str(exc))

    response.data = {"type": _error_type(response.status_code), "errors": errors}
    return response
