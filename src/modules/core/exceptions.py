"""Shared error primitives and the DRF exception handler.

Every domain exception carries a human-readable ``message`` and a stable
machine ``code``.  Store failures may additionally carry the raw code of
the underlying driver; it is appended to the readable message for
diagnostics, never substituted for it.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for errors raised by the service layer."""

    code = "domain_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "The operation could not be completed."

    def __init__(
        self, message: Optional[str] = None, store_code: Optional[str] = None
    ) -> None:
        self.message = message or self.default_message
        self.store_code = store_code
        super().__init__(self.detail)

    @property
    def detail(self) -> str:
        """Readable message, with the raw store code appended when known."""
        if self.store_code:
            return f"{self.message} (store code: {self.store_code})"
        return self.message

    def as_payload(self) -> dict[str, Any]:
        return {"detail": self.detail, "code": self.code}


class StoreError(DomainError):
    """The underlying document store failed (I/O or transport error)."""

    code = "store_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "The order store is temporarily unavailable. Try again."


def domain_error_response(exc: DomainError) -> Response:
    """Translate a domain exception into an HTTP response."""
    return Response(exc.as_payload(), status=exc.status_code)


def standard_exception_handler(exc: Exception, context: dict) -> Optional[Response]:
    """DRF exception handler producing ``{"type", "errors": [...]}`` bodies.

    Domain errors that escape a view are translated as well; anything else
    is left to Django (500) so programming errors are never masked.
    """
    if isinstance(exc, DomainError):
        logger.warning("api.domain_error", code=exc.code, detail=exc.detail)
        return Response(
            {
                "type": "client_error" if exc.status_code < 500 else "server_error",
                "errors": [{"code": exc.code, "detail": exc.detail, "attr": None}],
            },
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is None or not isinstance(exc, APIException):
        return response

    if isinstance(exc, ValidationError):
        error_type = "validation_error"
    elif response.status_code < 500:
        error_type = "client_error"
    else:
        error_type = "server_error"

    errors = list(_flatten_validation_errors(exc.get_full_details()))
    response.data = {"type": error_type, "errors": errors}
    return response


def _flatten_validation_errors(details: Any, attr: Optional[str] = None):
    if isinstance(details, dict) and "message" in details and "code" in details:
        yield {"code": details["code"], "detail": str(details["message"]), "attr": attr}
    elif isinstance(details, dict):
        for key, value in details.items():
            child = key if attr is None else f"{attr}.{key}"
            if key == "non_field_errors":
                child = attr
            yield from _flatten_validation_errors(value, child)
    elif isinstance(details, list):
        for index, value in enumerate(details):
            child = attr
            if isinstance(value, dict) and "code" not in value:
                child = f"{attr}.{index}" if attr else str(index)
            yield from _flatten_validation_errors(value, child)
