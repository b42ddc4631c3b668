"""Tests for the intake and update flows of ``ServiceRecordService``."""

import asyncio

import pytest

from service_desk_api.app.core.exceptions import TransportError, ValidationError
from service_desk_api.app.schemas.intake import ImagePayload, ServiceIntake
from service_desk_api.app.services.sequence_service import SlipSequencer
from service_desk_api.app.services.service_record_service import ServiceRecordService
from service_desk_api.app.services.slip_service import ShopDetails, SlipComposer, SlipRenderer

from .conftest import FakeRecordStore


class SlowRecordStore(FakeRecordStore):
    """Suspends inside ``create`` so concurrent submissions interleave."""

    async def create(self, payload):
        await asyncio.sleep(0.01)
        return await super().create(payload)


def _service(store):
    return ServiceRecordService(
        store,
        SlipSequencer(),
        SlipComposer(ShopDetails(name="Roshan Bags")),
        SlipRenderer(),
    )


def _intake(customer_name):
    return ServiceIntake(
        created_date="2025-03-04",
        customer_name=customer_name,
        contact_number="9876543210",
        product_name="Trolley Bag",
        brand="Skybags",
        color="Blue",
        size="Large",
        service_types=["Zip Repair/Replacement"],
        warranty_class="Non-Warranty",
        estimate_amount="450",
        image=ImagePayload(name="bag.jpg", mime_type="image/jpeg", data="aGVsbG8="),
    )


class TestCreateRecord:
    @pytest.mark.asyncio
    async def test_concurrent_submissions_get_consecutive_slip_numbers(self, sample_rows):
        store = SlowRecordStore(sample_rows)
        service = _service(store)

        first, second = await asyncio.gather(
            service.create_record(_intake("Roshan Kumar")),
            service.create_record(_intake("Priya Nair")),
        )

        assert {first.sequence_no, second.sequence_no} == {"4", "5"}
        assert [payload["slipNo"] for payload in store.created] == ["4", "5"]
        assert store.last_sequence == 5

    @pytest.mark.asyncio
    async def test_invalid_intake_is_not_submitted(self, sample_rows):
        store = FakeRecordStore(sample_rows)
        with pytest.raises(ValidationError):
            await _service(store).create_record(_intake(""))
        assert store.created == []
        assert store.sequence_reads == 0

    @pytest.mark.asyncio
    async def test_failed_submission_still_marks_the_number_stale(self, sample_rows):
        store = FakeRecordStore(sample_rows)
        store.fail_with = TransportError("offline")
        service = _service(store)

        with pytest.raises(TransportError):
            await service.create_record(_intake("Roshan Kumar"))

        assert not service.sequencer.submission_lock.locked()
        assert store.sequence_reads == 2
        store.fail_with = None
        created = await service.create_record(_intake("Roshan Kumar"))
        assert created.sequence_no == "4"
