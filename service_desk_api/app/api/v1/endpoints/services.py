"""
Service record endpoints for API v1.

Listing runs the record snapshot through the query engine (status
filter, date range, free-text search, sort) and pages the result.
Intake and update take multipart forms because they carry the product
photo as a file upload; the photo is read into memory and the upload
closed before validation runs.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status

from service_desk_api.app.api.deps import get_record_service, http_error
from service_desk_api.app.core.exceptions import ServiceDeskError
from service_desk_api.app.schemas.intake import ServiceIntake, ServiceUpdate
from service_desk_api.app.schemas.query import QueryParams, SortConfig, SortDirection
from service_desk_api.app.schemas.service_record import ServiceCreated, ServiceRecord
from service_desk_api.app.services.image_service import read_image
from service_desk_api.app.services.service_record_service import ServiceRecordService
from service_desk_api.app.services.slip_service import PageFormat


router = APIRouter()


@router.get("/", response_model=List[ServiceRecord])
async def list_services(
    status_filter: Optional[str] = Query(None, alias="status"),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    sort_by: str = Query("created_date"),
    order: str = Query("desc"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    service: ServiceRecordService = Depends(get_record_service),
) -> List[ServiceRecord]:
    """List service records with filters and sorting.

    - **status**: one of the five statuses, or `All`.
    - **date_from**, **date_to**: inclusive bounds on the record date (`YYYY-MM-DD`).
    - **q**: case-insensitive text matched against every field.
    - **sort_by**: field name (`created_date`, `sequence_no`, `customer_name`, ...).
    - **order**: `asc` or `desc`.  Records without a value sort last either way.
    - **limit**, **offset**: pagination, applied after sorting.
    """
    try:
        params = QueryParams(
            status_filter=status_filter,
            date_from=date_from,
            date_to=date_to,
            search_term=q,
            sort=SortConfig(key=sort_by, direction=SortDirection.from_param(order)),
        )
        records = await service.list_records(params)
    except ServiceDeskError as e:
        raise http_error(e) from e
    return records[offset:offset + limit]


@router.get("/next-slip-number")
async def next_slip_number(service: ServiceRecordService = Depends(get_record_service)) -> dict:
    """Provisional number for the next slip.

    The number is only reserved once the intake is submitted; another
    operator may take it first.
    """
    try:
        slip_number = await service.next_slip_number()
    except ServiceDeskError as e:
        raise http_error(e) from e
    sequencer = service.sequencer
    return {
        "slipNumber": slip_number,
        "lastKnown": sequencer.last_known,
        "fetchedAt": sequencer.fetched_at.isoformat() if sequencer.fetched_at else None,
    }


@router.get("/{record_id}", response_model=ServiceRecord)
async def get_service(record_id: str, service: ServiceRecordService = Depends(get_record_service)) -> ServiceRecord:
    try:
        return await service.get_record(record_id)
    except ServiceDeskError as e:
        raise http_error(e) from e


@router.post("/", response_model=ServiceCreated, status_code=status.HTTP_201_CREATED)
async def create_service(
    request: Request,
    created_date: Optional[str] = Form(None),
    customer_name: str = Form(""),
    contact_number: str = Form(""),
    product_name: str = Form(""),
    brand: str = Form(""),
    color: str = Form(""),
    size: str = Form(""),
    service_types: List[str] = Form([]),
    warranty_class: Optional[str] = Form(None),
    estimate_amount: str = Form(""),
    warranty_invoice_number: str = Form(""),
    warranty_date: str = Form(""),
    image: Optional[UploadFile] = File(None),
    service: ServiceRecordService = Depends(get_record_service),
) -> ServiceCreated:
    """Register a new service request.

    Every field problem is reported at once (422).  The slip number is
    assigned at submission time, so it may differ from the one shown
    by ``/next-slip-number`` earlier.
    """
    fields = dict(
        customer_name=customer_name,
        contact_number=contact_number,
        product_name=product_name,
        brand=brand,
        color=color,
        size=size,
        service_types=service_types,
        warranty_class=warranty_class,
        estimate_amount=estimate_amount,
        warranty_invoice_number=warranty_invoice_number,
        warranty_date=warranty_date,
        image=await read_image(image),
    )
    if created_date:
        fields["created_date"] = created_date
    try:
        record = await service.create_record(ServiceIntake(**fields))
    except ServiceDeskError as e:
        raise http_error(e) from e

    slip_url = request.url_for("get_slip", record_id=record.record_id)
    slips = {fmt.value: str(slip_url.include_query_params(format=fmt.value)) for fmt in PageFormat}
    return ServiceCreated(record=record, slips=slips)


@router.put("/{record_id}", response_model=ServiceRecord)
async def update_service(
    record_id: str,
    status_value: Optional[str] = Form(None, alias="status"),
    warranty_class: Optional[str] = Form(None),
    estimate_amount: Optional[str] = Form(None),
    warranty_invoice_number: Optional[str] = Form(None),
    warranty_date: Optional[str] = Form(None),
    service_types: Optional[List[str]] = Form(None),
    serviceman_name: Optional[str] = Form(None),
    serviceman_amount: Optional[str] = Form(None),
    customer_paid_amount: Optional[str] = Form(None),
    final_invoice_number: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: ServiceRecordService = Depends(get_record_service),
) -> ServiceRecord:
    """Update the mutable fields of a service record.

    Omitted fields keep their current value.  Customer and product
    details cannot be changed.  Without a new photo the existing one
    is kept.
    """
    changes = ServiceUpdate(
        status=status_value,
        warranty_class=warranty_class,
        estimate_amount=estimate_amount,
        warranty_invoice_number=warranty_invoice_number,
        warranty_date=warranty_date,
        service_types=service_types,
        serviceman_name=serviceman_name,
        serviceman_amount=serviceman_amount,
        customer_paid_amount=customer_paid_amount,
        final_invoice_number=final_invoice_number,
        image=await read_image(image),
    )
    try:
        return await service.update_record(record_id, changes)
    except ServiceDeskError as e:
        raise http_error(e) from e
