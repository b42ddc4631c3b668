"""
Top-level router for version 1 of the API.

Service records and their slips share the ``/services`` prefix; the
slip router only defines ``/{record_id}/slip`` below it.
"""

from fastapi import APIRouter

from .endpoints import info, services, slips

router = APIRouter()

router.include_router(services.router, prefix="/services", tags=["services"])
router.include_router(slips.router, prefix="/services", tags=["slips"])
router.include_router(info.router, prefix="/info", tags=["info"])
