"""Tests for reading product photos."""

import base64

import pytest

from service_desk_api.app.services.image_service import read_image


class FakeUpload:
    def __init__(self, data=b"", filename="bag.jpg", content_type="image/jpeg", fail=False):
        self.filename = filename
        self.content_type = content_type
        self._data = data
        self._fail = fail
        self.closed = False

    async def read(self, size=-1):
        if self._fail:
            raise OSError("disk went away")
        return self._data

    async def close(self):
        self.closed = True


@pytest.mark.asyncio
async def test_upload_is_encoded_and_closed():
    upload = FakeUpload(b"\xff\xd8jpeg-bytes")
    image = await read_image(upload)
    assert upload.closed
    assert image.name == "bag.jpg"
    assert image.mime_type == "image/jpeg"
    assert base64.b64decode(image.data) == b"\xff\xd8jpeg-bytes"


@pytest.mark.asyncio
async def test_empty_upload_counts_as_no_image():
    upload = FakeUpload(b"")
    assert await read_image(upload) is None
    assert upload.closed


@pytest.mark.asyncio
async def test_no_upload():
    assert await read_image(None) is None


@pytest.mark.asyncio
async def test_upload_is_closed_when_reading_fails():
    upload = FakeUpload(fail=True)
    with pytest.raises(OSError):
        await read_image(upload)
    assert upload.closed
