"""
Request dependencies shared by the v1 endpoints.

``get_record_service`` hands the handlers the ``ServiceRecordService``
assembled by ``create_app``.  ``http_error`` translates the service
layer's exceptions into ``HTTPException``; handlers raise its result
``from`` the original exception.
"""

from fastapi import HTTPException, Request, status

from service_desk_api.app.core.exceptions import (
    QueryParameterError,
    RecordNotFoundError,
    RemoteValidationError,
    RenderPreconditionError,
    ServiceDeskError,
    TransportError,
    ValidationError,
)
from service_desk_api.app.services.service_record_service import ServiceRecordService


def get_record_service(request: Request) -> ServiceRecordService:
    return request.app.state.service_records


def http_error(exc: ServiceDeskError) -> HTTPException:
    """Map a service desk error to the HTTP response the client sees."""
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Validation failed", "errors": [error.model_dump() for error in exc.errors]},
        )
    if isinstance(exc, RemoteValidationError):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
    if isinstance(exc, TransportError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
    if isinstance(exc, QueryParameterError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, RenderPreconditionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
