"""
Pydantic models for service records.

``ServiceRecord`` is the strict shape every record takes once it has
crossed the record store boundary.  Attribute names are snake_case;
each attribute carries the remote store's column name as its alias, so
``ServiceRecord.model_validate(row)`` ingests a raw row and
``model_dump(by_alias=True)`` produces one.  Ingestion never fails on
messy cells: numbers become strings, dates that do not start with
``YYYY-MM-DD`` become empty and unknown status or warranty values
become ``None``.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

SERVICE_TYPE_SEPARATOR = ", "
COLOR_SIZE_SEPARATOR = " / "

# Labels offered by the intake form, in display order.
SERVICE_TYPES = (
    "Stitching",
    "Zip Repair/Replacement",
    "Runner Replacement",
    "Handle Repair/Replacement",
    "Strolly Wheel/Handle Repair",
    "Buckle Repair/Replacement",
    "Professional Cleaning",
    "Strap Adjustment/Replacement",
    "Lock Repair/Replacement",
    "Bags",
)

# Fixed at intake; the update flow never changes them.
IMMUTABLE_FIELDS = ("customer_name", "contact_number", "product_name", "brand", "color_and_size")


def normalize_date(value: Any) -> str:
    """Return the ``YYYY-MM-DD`` prefix of ``value`` or ``""``."""
    if value is None:
        return ""
    match = DATE_PREFIX.match(str(value).strip())
    return match.group(0) if match else ""


def leading_int(value: Any) -> Optional[int]:
    """Parse the integer prefix of ``value`` (``"12abc"`` -> 12), else ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _squash(text: str) -> str:
    return re.sub(r"[^a-z0-9]", "", text.lower())


class _LenientEnum(str, Enum):
    @classmethod
    def parse(cls, value: Any):
        """Resolve a wire value, member name or spacing variant; ``None`` if unknown.

        ``"Non-Warranty"``, ``"NonWarranty"`` and ``"non_warranty"`` all
        resolve to the same member.
        """
        if isinstance(value, cls):
            return value
        key = _squash(as_text(value))
        if not key:
            return None
        for member in cls:
            if key in (_squash(member.value), _squash(member.name)):
                return member
        return None


class ServiceStatus(_LenientEnum):
    NEW = "New"
    IN_SERVICE = "In Service"
    COMPLETED = "Completed"
    INFORMED_TO_CUSTOMER = "Informed to Customer"
    DELIVERED_TO_CUSTOMER = "Delivered to Customer"


class WarrantyClass(_LenientEnum):
    WARRANTY = "Warranty"
    NON_WARRANTY = "Non-Warranty"


_TEXT_FIELDS = (
    "record_id",
    "sequence_no",
    "customer_name",
    "contact_number",
    "product_name",
    "brand",
    "color_and_size",
    "service_description",
    "estimate_amount",
    "warranty_invoice_number",
    "image_reference",
    "serviceman_name",
    "serviceman_amount",
    "customer_paid_amount",
    "final_invoice_number",
)


class ServiceRecord(BaseModel):
    """A repair-service record as held in the client-side snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    record_id: str = Field("", alias="serviceId")
    sequence_no: str = Field("", alias="slipNo")
    created_date: str = Field("", alias="date")
    customer_name: str = Field("", alias="customerName")
    contact_number: str = Field("", alias="contact")
    product_name: str = Field("", alias="productName")
    brand: str = Field("", alias="brand")
    color_and_size: str = Field("", alias="colorAndSize")
    service_description: str = Field("", alias="serviceType")
    warranty_class: Optional[WarrantyClass] = Field(None, alias="warrantyStatus")
    estimate_amount: str = Field("", alias="estimateAmount")
    warranty_invoice_number: str = Field("", alias="warrantyInvoiceNumber")
    warranty_date: str = Field("", alias="warrantyDate")
    image_reference: str = Field("", alias="imageUrl")
    status: Optional[ServiceStatus] = Field(None, alias="serviceStatus")
    serviceman_name: str = Field("", alias="servicemanName")
    serviceman_amount: str = Field("", alias="servicemanAmount")
    customer_paid_amount: str = Field("", alias="customerPaidAmount")
    final_invoice_number: str = Field("", alias="invoiceNumber")

    @field_validator(*_TEXT_FIELDS, mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return as_text(value)

    @field_validator("created_date", "warranty_date", mode="before")
    @classmethod
    def _coerce_date(cls, value: Any) -> str:
        return normalize_date(value)

    @field_validator("warranty_class", mode="before")
    @classmethod
    def _coerce_warranty(cls, value: Any) -> Optional[WarrantyClass]:
        return WarrantyClass.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: Any) -> Optional[ServiceStatus]:
        return ServiceStatus.parse(value)

    @model_validator(mode="after")
    def _blank_inactive_warranty_fields(self) -> "ServiceRecord":
        # Only one warranty branch is meaningful; the other is dropped
        # whatever the sheet still holds.
        if self.warranty_class is WarrantyClass.WARRANTY:
            self.estimate_amount = ""
        elif self.warranty_class is WarrantyClass.NON_WARRANTY:
            self.warranty_invoice_number = ""
            self.warranty_date = ""
        return self

    @property
    def service_types(self) -> List[str]:
        """Selected service labels in the order they were entered."""
        return [part.strip() for part in self.service_description.split(",") if part.strip()]

    def searchable_values(self) -> Iterator[str]:
        """String form of every populated attribute."""
        for name in type(self).model_fields:
            value = getattr(self, name)
            if value is None:
                continue
            yield as_text(value)

    def to_wire(self) -> dict:
        """Serialise with the remote store's column names."""
        data = self.model_dump(by_alias=True, mode="json")
        return {key: ("" if value is None else value) for key, value in data.items()}


class ServiceCreated(BaseModel):
    """Response to a successful intake: the new record and where its slips live."""

    record: ServiceRecord
    slips: Dict[str, str] = Field(default_factory=dict, description="Slip URL per page format")
