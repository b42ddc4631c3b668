"""
Pydantic models for the write path.

``ServiceIntake`` carries a new service request as entered at the
counter, ``ServiceUpdate`` the fields an operator may change later.
Both are deliberately loose (plain strings): deciding what is valid
is the job of ``LifecycleModel``, which reports every problem at once
as a ``ValidationResult`` instead of failing on the first one.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from service_desk_api.app.core.exceptions import ValidationError


class ValidationMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class FieldError(BaseModel):
    field: str
    reason: str


class ImagePayload(BaseModel):
    """A product photo read into memory and base64 encoded."""

    name: str
    mime_type: str
    data: str = Field(..., description="Base64 encoded image bytes")

    def to_wire(self) -> Dict[str, str]:
        return {"image": self.data, "imageName": self.name, "imageMimeType": self.mime_type}


class ServiceIntake(BaseModel):
    """Schema for a new service request."""

    created_date: str = Field(default_factory=lambda: date.today().isoformat(), example="2025-01-15")
    customer_name: str = Field("", example="Roshan Kumar")
    contact_number: str = Field("", example="9876543210")
    product_name: str = Field("", example="Trolley Bag")
    brand: str = Field("", example="Skybags")
    color: str = Field("", example="Blue")
    size: str = Field("", example="Large")
    service_types: List[str] = Field(default_factory=list, example=["Zip Repair/Replacement"])
    warranty_class: Optional[str] = Field(None, example="Non-Warranty")
    estimate_amount: str = Field("", example="450")
    warranty_invoice_number: str = ""
    warranty_date: str = ""
    image: Optional[ImagePayload] = None


class ServiceUpdate(BaseModel):
    """Schema for updating a service record.

    All fields are optional; omitted fields keep their current value.
    Customer and product details are not part of this schema because
    they are fixed once the record is created.
    """

    warranty_class: Optional[str] = None
    estimate_amount: Optional[str] = None
    warranty_invoice_number: Optional[str] = None
    warranty_date: Optional[str] = None
    service_types: Optional[List[str]] = None
    status: Optional[str] = None
    serviceman_name: Optional[str] = None
    serviceman_amount: Optional[str] = None
    customer_paid_amount: Optional[str] = None
    final_invoice_number: Optional[str] = None
    image: Optional[ImagePayload] = None


class ValidationResult(BaseModel):
    """Outcome of ``LifecycleModel.validate``.

    ``payload`` is the normalised, wire-keyed payload and is only set
    when ``errors`` is empty.
    """

    payload: Optional[Dict[str, Any]] = None
    errors: List[FieldError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> Dict[str, Any]:
        """Return the normalised payload or raise ``ValidationError``."""
        if self.errors:
            raise ValidationError(self.errors)
        return dict(self.payload or {})
