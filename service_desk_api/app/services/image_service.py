"""
Reading product photos into memory.

The record store takes the photo inline as base64 text, so uploads are
read completely before the payload is built.  The upload's file handle
is released as soon as the bytes are in memory, whatever happens to
the submission afterwards.
"""

import base64
import logging
from typing import Optional, Protocol

from service_desk_api.app.schemas.intake import ImagePayload


logger = logging.getLogger(__name__)


class ImageUpload(Protocol):
    """The subset of ``fastapi.UploadFile`` used here."""

    filename: Optional[str]
    content_type: Optional[str]

    async def read(self, size: int = -1) -> bytes: ...

    async def close(self) -> None: ...


async def read_image(upload: Optional[ImageUpload]) -> Optional[ImagePayload]:
    """Read ``upload`` into an ``ImagePayload`` and close it.

    Returns ``None`` when there is no upload or it is empty; whether a
    photo is required is decided by the lifecycle rules.
    """
    if upload is None:
        return None
    try:
        data = await upload.read()
    finally:
        await upload.close()
    if not data:
        return None
    logger.debug("Read product image %s (%d bytes)", upload.filename, len(data))
    return ImagePayload(
        name=upload.filename or "image",
        mime_type=upload.content_type or "application/octet-stream",
        data=base64.b64encode(data).decode("ascii"),
    )
