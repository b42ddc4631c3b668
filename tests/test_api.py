"""Tests for the v1 HTTP endpoints."""

from fastapi.testclient import TestClient

from service_desk_api.app.core.exceptions import RemoteValidationError, TransportError
from service_desk_api.app.main import create_app

from .conftest import FakeRecordStore


INTAKE_FORM = {
    "created_date": "2025-03-04",
    "customer_name": "Roshan Kumar",
    "contact_number": "9876543210",
    "product_name": "Trolley Bag",
    "brand": "Skybags",
    "color": "Blue",
    "size": "Large",
    "service_types": ["Zip Repair/Replacement", "Stitching"],
    "warranty_class": "Non-Warranty",
    "estimate_amount": "450",
}

PHOTO = {"image": ("bag.jpg", b"\xff\xd8jpeg-bytes", "image/jpeg")}


def _ids(response):
    return [row["serviceId"] for row in response.json()]


class TestInfo:
    def test_health(self, client):
        response = client.get("/api/v1/info/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["recordStore"] == "records.test"
        assert body["slipNumber"]["stale"] is True

    def test_options(self, client):
        body = client.get("/api/v1/info/options").json()
        assert len(body["serviceTypes"]) == 10
        assert body["statuses"][0] == "New"
        assert body["statusFilters"][0] == "All"
        assert body["pageFormats"] == ["a4", "a5"]


class TestListing:
    def test_default_order_is_newest_first(self, client):
        response = client.get("/api/v1/services/")
        assert response.status_code == 200
        assert _ids(response) == ["SRV-3", "SRV-2", "SRV-1"]
        assert response.json()[0]["slipNo"] == "3"

    def test_status_filter(self, client):
        assert _ids(client.get("/api/v1/services/", params={"status": "Completed"})) == ["SRV-2"]

    def test_search(self, client):
        assert _ids(client.get("/api/v1/services/", params={"q": "SHAN"})) == ["SRV-1"]

    def test_sort_and_pagination(self, client):
        params = {"sort_by": "sequence_no", "order": "asc", "limit": 2, "offset": 1}
        assert _ids(client.get("/api/v1/services/", params=params)) == ["SRV-2", "SRV-3"]

    def test_unknown_sort_key(self, client):
        assert client.get("/api/v1/services/", params={"sort_by": "colour"}).status_code == 400

    def test_malformed_date_bound(self, client):
        assert client.get("/api/v1/services/", params={"date_from": "yesterday"}).status_code == 400

    def test_get_one(self, client):
        body = client.get("/api/v1/services/SRV-2").json()
        assert body["customerName"] == "Priya Nair"
        assert body["warrantyStatus"] == "Warranty"
        assert body["estimateAmount"] == ""

    def test_get_missing(self, client):
        response = client.get("/api/v1/services/SRV-99")
        assert response.status_code == 404
        assert "SRV-99" in response.json()["detail"]

    def test_transport_failure_is_bad_gateway(self, client, fake_store):
        async def broken():
            raise TransportError("HTTP error! status: 503, message: ")

        fake_store.fetch_all = broken
        assert client.get("/api/v1/services/").status_code == 502


class TestIntake:
    def test_next_slip_number(self, client):
        body = client.get("/api/v1/services/next-slip-number").json()
        assert body["slipNumber"] == 4
        assert body["lastKnown"] == 3

    def test_create(self, client, fake_store):
        response = client.post("/api/v1/services/", data=INTAKE_FORM, files=PHOTO)
        assert response.status_code == 201
        body = response.json()
        record = body["record"]
        assert record["serviceId"] == "SRV-4"
        assert record["slipNo"] == "4"
        assert record["serviceStatus"] == "New"
        assert record["colorAndSize"] == "Blue / Large"
        assert record["serviceType"] == "Zip Repair/Replacement, Stitching"
        assert body["slips"]["a4"].endswith("/api/v1/services/SRV-4/slip?format=a4")

        submitted = fake_store.created[0]
        assert submitted["slipNo"] == "4"
        assert submitted["imageName"] == "bag.jpg"
        assert submitted["imageMimeType"] == "image/jpeg"

    def test_slip_number_moves_on_after_submission(self, client):
        client.post("/api/v1/services/", data=INTAKE_FORM, files=PHOTO)
        assert client.get("/api/v1/services/next-slip-number").json()["slipNumber"] == 5

    def test_local_validation_errors(self, client, fake_store):
        form = dict(INTAKE_FORM, service_types=[], contact_number="123")
        response = client.post("/api/v1/services/", data=form)
        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["detail"]["errors"]}
        assert fields == {"service_types", "contact_number", "image"}
        assert fake_store.created == []
        assert fake_store.sequence_reads == 0

    def test_remote_rejection_refreshes_slip_number(self, client, fake_store):
        fake_store.fail_with = RemoteValidationError("Duplicate slip number")
        response = client.post("/api/v1/services/", data=INTAKE_FORM, files=PHOTO)
        assert response.status_code == 422
        assert response.json()["detail"] == "Duplicate slip number"
        assert fake_store.sequence_reads == 2

    def test_transport_failure_on_create(self, client, fake_store):
        fake_store.fail_with = TransportError("Record store unreachable during addService: timeout")
        response = client.post("/api/v1/services/", data=INTAKE_FORM, files=PHOTO)
        assert response.status_code == 502


class TestUpdate:
    def test_update_status_and_amounts(self, client, fake_store):
        form = {"status": "Delivered to Customer", "customer_paid_amount": "250", "final_invoice_number": "B-100"}
        response = client.put("/api/v1/services/SRV-2", data=form)
        assert response.status_code == 200
        body = response.json()
        assert body["serviceStatus"] == "Delivered to Customer"
        assert body["customerPaidAmount"] == "250"
        assert body["invoiceNumber"] == "B-100"
        assert body["customerName"] == "Priya Nair"
        assert body["imageUrl"] == "https://drive.test/img-2"
        assert fake_store.updated[0]["imageUrl_existing"] == "https://drive.test/img-2"

    def test_update_with_new_photo(self, client, fake_store):
        response = client.put("/api/v1/services/SRV-1", data={"status": "In Service"}, files=PHOTO)
        assert response.status_code == 200
        assert fake_store.updated[0]["imageName"] == "bag.jpg"
        assert "imageUrl_existing" not in fake_store.updated[0]

    def test_update_rejects_unknown_status(self, client, fake_store):
        response = client.put("/api/v1/services/SRV-2", data={"status": "Lost"})
        assert response.status_code == 422
        assert fake_store.updated == []

    def test_update_missing_record(self, client):
        assert client.put("/api/v1/services/SRV-99", data={"status": "New"}).status_code == 404


class TestSlips:
    def test_download(self, client):
        response = client.get("/api/v1/services/SRV-2/slip", params={"format": "a4"})
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="Priya_Nair_2.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_print(self, client):
        response = client.get("/api/v1/services/SRV-1/slip", params={"format": "a5", "mode": "print"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "window.print()" in response.text

    def test_unknown_format(self, client):
        assert client.get("/api/v1/services/SRV-1/slip", params={"format": "a3"}).status_code == 422

    def test_missing_record(self, client):
        assert client.get("/api/v1/services/SRV-99/slip").status_code == 404


def test_shutdown_closes_the_store(sample_rows):
    store = FakeRecordStore(sample_rows)
    with TestClient(create_app(store=store)):
        assert not store.closed
    assert store.closed
