"""Pytest configuration and fixtures."""

import os

# Settings are read at import time.
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RECORD_STORE_URL", "https://records.test/exec")

import pytest
from fastapi.testclient import TestClient

from service_desk_api.app.core.exceptions import RecordNotFoundError
from service_desk_api.app.main import create_app
from service_desk_api.app.schemas.service_record import ServiceRecord


SAMPLE_ROWS = [
    {
        "serviceId": "SRV-1",
        "slipNo": 1,
        "date": "2025-01-10T00:00:00.000Z",
        "customerName": "Roshan Kumar",
        "contact": "9876543210",
        "productName": "Trolley Bag",
        "brand": "Skybags",
        "colorAndSize": "Blue / Large",
        "serviceType": "Zip Repair/Replacement, Stitching",
        "warrantyStatus": "Non-Warranty",
        "estimateAmount": 450,
        "warrantyInvoiceNumber": "",
        "warrantyDate": "",
        "imageUrl": "https://drive.test/img-1",
        "serviceStatus": "New",
        "servicemanName": "",
        "servicemanAmount": "",
        "customerPaidAmount": "",
        "invoiceNumber": "",
    },
    {
        "serviceId": "SRV-2",
        "slipNo": 2,
        "date": "2025-01-12",
        "customerName": "Priya Nair",
        "contact": "9123456780",
        "productName": "Backpack",
        "brand": "Wildcraft",
        "colorAndSize": "Black / Medium",
        "serviceType": "Strap Adjustment/Replacement",
        "warrantyStatus": "Warranty",
        "estimateAmount": "",
        "warrantyInvoiceNumber": "INV-778",
        "warrantyDate": "2024-11-02",
        "imageUrl": "https://drive.test/img-2",
        "serviceStatus": "Completed",
        "servicemanName": "Ravi",
        "servicemanAmount": 200,
        "customerPaidAmount": "",
        "invoiceNumber": "",
    },
    {
        "serviceId": "SRV-3",
        "slipNo": 3,
        "date": "2025-02-01",
        "customerName": "Arun Prakash",
        "contact": "9000011111",
        "productName": "Laptop Sleeve",
        "brand": "American Tourister",
        "colorAndSize": "Grey / 15 inch",
        "serviceType": "Professional Cleaning",
        "warrantyStatus": "Non-Warranty",
        "estimateAmount": "1200",
        "warrantyInvoiceNumber": "",
        "warrantyDate": "",
        "imageUrl": "",
        "serviceStatus": "In Service",
        "servicemanName": "",
        "servicemanAmount": "",
        "customerPaidAmount": "",
        "invoiceNumber": "",
    },
]


class FakeRecordStore:
    """In-memory stand-in for ``RecordStore``."""

    host = "records.test"

    def __init__(self, rows=None, last_sequence=None):
        self.records = [ServiceRecord.model_validate(row) for row in (rows or [])]
        if last_sequence is None:
            last_sequence = max((int(r.sequence_no) for r in self.records), default=0)
        self.last_sequence = last_sequence
        self.created = []
        self.updated = []
        self.sequence_reads = 0
        self.fail_with = None
        self.closed = False

    async def fetch_all(self):
        return list(self.records)

    async def fetch_last_sequence(self):
        self.sequence_reads += 1
        return self.last_sequence

    async def create(self, payload):
        if self.fail_with is not None:
            raise self.fail_with
        self.created.append(dict(payload))
        record_id = f"SRV-{len(self.records) + 1}"
        self.records.append(
            ServiceRecord.model_validate({**payload, "serviceId": record_id, "serviceStatus": "New"})
        )
        self.last_sequence = int(payload["slipNo"])
        return record_id

    async def update(self, payload):
        if self.fail_with is not None:
            raise self.fail_with
        self.updated.append(dict(payload))
        for index, record in enumerate(self.records):
            if record.record_id == payload["serviceId"]:
                self.records[index] = ServiceRecord.model_validate(
                    {**payload, "imageUrl": payload.get("imageUrl_existing", "")}
                )
                return
        raise RecordNotFoundError(payload["serviceId"])

    async def aclose(self):
        self.closed = True


@pytest.fixture
def sample_rows():
    return [dict(row) for row in SAMPLE_ROWS]


@pytest.fixture
def sample_records(sample_rows):
    return [ServiceRecord.model_validate(row) for row in sample_rows]


@pytest.fixture
def fake_store(sample_rows):
    return FakeRecordStore(sample_rows)


@pytest.fixture
def app(fake_store):
    return create_app(store=fake_store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
