"""
Main entrypoint for the Service Desk API.

This module assembles the FastAPI application, sets up logging,
wires the record store and the slip components into a
``ServiceRecordService`` and includes the versioned routers.  The
application is instantiated at import time as ``app``, so it can be
served with::

    uvicorn service_desk_api.app.main:app --reload
"""

import logging
from typing import Optional

from fastapi import FastAPI

from .api.v1.router import router as v1_router
from .core.config import settings
from .core.logging_config import setup_logging
from .services.query_service import configure_collation
from .services.record_store import RecordStore
from .services.sequence_service import SlipSequencer
from .services.service_record_service import ServiceRecordService
from .services.slip_service import ShopDetails, SlipComposer, SlipRenderer


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    store : Optional[RecordStore]
        Record store to use.  When omitted one is built from
        ``settings.record_store_endpoint()``.  Tests pass a fake.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    # Logging first so that everything below can log.
    setup_logging(settings.log_level, settings.log_file)
    logger = logging.getLogger(__name__)
    collation = configure_collation(settings.collation_locale)
    logger.debug("Text columns are ordered with the %s collation", collation)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)
    app.include_router(v1_router, prefix="/api/v1")

    record_store = store if store is not None else RecordStore(settings.record_store_endpoint())
    sequencer = SlipSequencer()
    composer = SlipComposer(
        ShopDetails.from_settings(settings),
        width=settings.slip_capture_width,
        scale=settings.slip_capture_scale,
    )
    renderer = SlipRenderer(creator=settings.project_name)

    app.state.record_store = record_store
    app.state.sequencer = sequencer
    app.state.renderer = renderer
    app.state.service_records = ServiceRecordService(record_store, sequencer, composer, renderer)

    @app.on_event("startup")
    async def startup_event() -> None:
        logger.info("Using record store at %s", record_store.host)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        await record_store.aclose()

    return app


# Create the application instance at import time so that uvicorn can
# discover it without calling create_app manually.
app = create_app()
