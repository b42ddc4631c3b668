"""
Exception types raised by the service layer.

Endpoints translate these into HTTP responses; nothing below the API
layer knows about status codes except ``TransportError``, which
records the status returned by the remote record store when there was
one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from service_desk_api.app.schemas.intake import FieldError


class ServiceDeskError(Exception):
    """Base class for all service desk errors."""


class ValidationError(ServiceDeskError):
    """A payload failed the local lifecycle checks.

    Never reaches the record store.  ``errors`` lists every violated
    field so the caller can show them all at once.
    """

    def __init__(self, errors: List["FieldError"]) -> None:
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.reason}" for e in self.errors)
        super().__init__(summary or "Validation failed")


class TransportError(ServiceDeskError):
    """The record store was unreachable or answered with something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RemoteValidationError(TransportError):
    """The record store rejected a create or update payload."""


class RenderPreconditionError(ServiceDeskError):
    """The slip capture is missing or empty, so no document can be produced."""


class QueryParameterError(ServiceDeskError, ValueError):
    """A query parameter (sort key, date bound) is malformed."""


class RecordNotFoundError(ServiceDeskError, LookupError):
    """No record with the requested identifier exists in the snapshot."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Service record {record_id} not found")
