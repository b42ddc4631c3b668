"""
Information endpoints for API v1.

``/health`` reports liveness together with the configured record
store host and the state of the slip number cache.  ``/options``
lists the values clients need to build their forms and filters.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from service_desk_api.app.api.deps import get_record_service
from service_desk_api.app.core.config import settings
from service_desk_api.app.schemas.query import ALL_STATUSES
from service_desk_api.app.schemas.service_record import SERVICE_TYPES, ServiceStatus, WarrantyClass
from service_desk_api.app.services.service_record_service import ServiceRecordService
from service_desk_api.app.services.slip_service import DocumentMode, PageFormat

router = APIRouter()


@router.get("/health", response_model=Dict[str, Any])
async def health(service: ServiceRecordService = Depends(get_record_service)) -> Dict[str, Any]:
    """Liveness check.  Does not contact the record store."""
    sequencer = service.sequencer
    return {
        "status": "ok",
        "version": settings.api_version,
        "recordStore": service.store.host,
        "slipNumber": {
            "provisional": sequencer.peek(),
            "stale": sequencer.is_stale,
            "fetchedAt": sequencer.fetched_at.isoformat() if sequencer.fetched_at else None,
        },
    }


@router.get("/options", response_model=Dict[str, Any])
async def options() -> Dict[str, Any]:
    return {
        "statuses": [member.value for member in ServiceStatus],
        "statusFilters": [ALL_STATUSES] + [member.value for member in ServiceStatus],
        "warrantyClasses": [member.value for member in WarrantyClass],
        "serviceTypes": list(SERVICE_TYPES),
        "pageFormats": [member.value for member in PageFormat],
        "documentModes": [member.value for member in DocumentMode],
    }
