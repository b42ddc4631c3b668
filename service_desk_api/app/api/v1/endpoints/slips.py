"""
Slip endpoint for API v1.

``mode=download`` returns the slip as a one-page PDF attachment named
after the customer and slip number.  ``mode=print`` returns an HTML
page sized to the chosen paper format that opens the browser's print
dialog; no file is produced.
"""

from urllib.parse import quote

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, Response

from service_desk_api.app.api.deps import get_record_service, http_error
from service_desk_api.app.core.exceptions import ServiceDeskError
from service_desk_api.app.services.service_record_service import ServiceRecordService
from service_desk_api.app.services.slip_service import DocumentMode, PageFormat, PrintRequest


router = APIRouter()


def content_disposition(filename: str) -> str:
    """``attachment`` header value with an ASCII fallback and the UTF-8 name."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/{record_id}/slip")
async def get_slip(
    record_id: str,
    page_format: PageFormat = Query(PageFormat.A4, alias="format"),
    mode: DocumentMode = Query(DocumentMode.DOWNLOAD),
    service: ServiceRecordService = Depends(get_record_service),
) -> Response:
    try:
        document = await service.render_slip(record_id, page_format, mode)
    except ServiceDeskError as e:
        raise http_error(e) from e

    if isinstance(document, PrintRequest):
        return HTMLResponse(content=document.html)
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": content_disposition(document.filename)},
    )
