"""
Business flows for service records.

``ServiceRecordService`` is what the API handlers call.  It reads the
record snapshot from the record store and runs it through
``QueryEngine``, validates intake and update drafts with
``LifecycleModel`` before anything is submitted, assigns slip numbers
through ``SlipSequencer`` and produces slips with ``SlipComposer`` and
``SlipRenderer``.

Errors are not translated here: ``ValidationError``, ``TransportError``
and friends propagate to the endpoint, which maps them to HTTP
responses.  No operation is retried.
"""

import logging
from typing import List, Union

from service_desk_api.app.core.exceptions import RecordNotFoundError, TransportError
from service_desk_api.app.schemas.intake import ServiceIntake, ServiceUpdate, ValidationMode
from service_desk_api.app.schemas.query import QueryParams
from service_desk_api.app.schemas.service_record import ServiceRecord, ServiceStatus
from service_desk_api.app.services.lifecycle_service import LifecycleModel
from service_desk_api.app.services.query_service import QueryEngine
from service_desk_api.app.services.record_store import RecordStore
from service_desk_api.app.services.sequence_service import SlipSequencer
from service_desk_api.app.services.slip_service import (
    DocumentMode,
    PageFormat,
    PrintRequest,
    SlipComposer,
    SlipDocument,
    SlipRenderer,
)


logger = logging.getLogger(__name__)


class ServiceRecordService:
    """Listing, intake, update and slip flows over one record store."""

    def __init__(
        self,
        store: RecordStore,
        sequencer: SlipSequencer,
        composer: SlipComposer,
        renderer: SlipRenderer,
    ) -> None:
        self.store = store
        self.sequencer = sequencer
        self.composer = composer
        self.renderer = renderer

    async def list_records(self, params: QueryParams) -> List[ServiceRecord]:
        """Fetch a fresh snapshot and return the filtered, ordered view."""
        records = await self.store.fetch_all()
        view = QueryEngine.apply(records, params)
        logger.debug("Query matched %d of %d record(s)", len(view), len(records))
        return view

    async def get_record(self, record_id: str) -> ServiceRecord:
        for record in await self.store.fetch_all():
            if record.record_id == record_id:
                return record
        raise RecordNotFoundError(record_id)

    async def next_slip_number(self) -> int:
        return await self.sequencer.provisional(self.store)

    async def create_record(self, intake: ServiceIntake) -> ServiceRecord:
        """Validate and submit a new service request.

        The slip number is taken from the sequencer while holding its
        submission lock, so two requests handled by this process never
        share a number.  The sequencer is refreshed after the attempt
        whatever its outcome.

        Raises:
            ValidationError: the intake failed local checks; nothing
                was sent to the record store.
            RemoteValidationError: the record store rejected the payload.
            TransportError: the record store could not be reached.
        """
        payload = LifecycleModel.validate(intake, ValidationMode.CREATE).raise_for_errors()

        async with self.sequencer.submission_lock:
            slip_no = await self.sequencer.provisional(self.store)
            payload["slipNo"] = str(slip_no)
            try:
                record_id = await self.store.create(payload)
            finally:
                await self._after_submission()

        logger.info("Service request %s accepted for %s", slip_no, payload.get("customerName"))
        return ServiceRecord.model_validate(
            {**payload, "serviceId": record_id, "serviceStatus": ServiceStatus.NEW.value, "imageUrl": ""}
        )

    async def update_record(self, record_id: str, changes: ServiceUpdate) -> ServiceRecord:
        """Apply ``changes`` to the current record and submit it.

        Omitted fields keep their current value.  Customer and product
        details are carried over unchanged.
        """
        current = await self.get_record(record_id)
        draft = current.model_dump()
        draft["service_types"] = current.service_types
        draft.update(changes.model_dump(exclude_none=True))

        payload = LifecycleModel.validate(draft, ValidationMode.UPDATE).raise_for_errors()
        try:
            await self.store.update(payload)
        finally:
            await self._after_submission()

        data = {key: value for key, value in payload.items() if key not in ("image", "imageName", "imageMimeType")}
        # A new photo gets its URL from the store on the next fetch.
        data["imageUrl"] = data.pop("imageUrl_existing", "")
        return ServiceRecord.model_validate(data)

    async def render_slip(
        self,
        record_id: str,
        page_format: PageFormat,
        mode: DocumentMode = DocumentMode.DOWNLOAD,
    ) -> Union[SlipDocument, PrintRequest]:
        record = await self.get_record(record_id)
        snapshot = await self.composer.capture(record)
        return self.renderer.render(snapshot, page_format, mode)

    async def _after_submission(self) -> None:
        self.sequencer.mark_stale()
        try:
            await self.sequencer.refresh(self.store)
        except TransportError as exc:
            # Stays stale; the next provisional() call retries the fetch.
            logger.warning("Could not refresh the slip number after submission: %s", exc)
