"""
Lifecycle rules for service records.

``LifecycleModel.validate`` checks an intake or update draft before it
is submitted and produces the normalised payload the record store
expects.  Which fields are required depends on the warranty class: a
non-warranty job needs an estimate, a warranty job needs the original
invoice number and date.  The fields of the inactive branch are
always blanked in the output.

Status is a plain tag.  Any of the five values may follow any other;
no transition table is enforced.

The model is pure: it never talks to the record store and never
raises for bad data, it reports it.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from service_desk_api.app.schemas.intake import FieldError, ImagePayload, ValidationMode, ValidationResult
from service_desk_api.app.schemas.service_record import (
    COLOR_SIZE_SEPARATOR,
    SERVICE_TYPE_SEPARATOR,
    SERVICE_TYPES,
    ServiceStatus,
    WarrantyClass,
    normalize_date,
)


CONTACT_PATTERN = re.compile(r"^\d{10,}$")
AMOUNT_PATTERN = re.compile(r"^\d+(\.\d+)?$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if hasattr(value, "value"):
        value = value.value
    return str(value).strip()


def _image(data: Mapping[str, Any]) -> Optional[ImagePayload]:
    image = data.get("image")
    if image is None:
        return None
    if isinstance(image, ImagePayload):
        return image if image.data else None
    parsed = ImagePayload.model_validate(image)
    return parsed if parsed.data else None


class LifecycleModel:
    """Validation and normalisation of intake and update drafts."""

    @classmethod
    def validate(
        cls,
        payload: Union[BaseModel, Mapping[str, Any]],
        mode: ValidationMode,
    ) -> ValidationResult:
        """Validate ``payload`` for ``mode``.

        ``payload`` is a ``ServiceIntake``/``ServiceUpdate`` or a mapping
        keyed by snake_case attribute names.  For updates the mapping is
        the current record merged with the requested changes, so it
        also carries ``record_id`` and the immutable customer fields,
        which are passed through unchecked.
        """
        data: Dict[str, Any] = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
        errors: List[FieldError] = []
        normalized = cls._warranty_fields(data, errors)

        if mode is ValidationMode.CREATE:
            normalized.update(cls._create_fields(data, errors))
        else:
            normalized.update(cls._update_fields(data, errors))

        if errors:
            return ValidationResult(errors=errors)
        return ValidationResult(payload=normalized)

    @staticmethod
    def _warranty_fields(data: Mapping[str, Any], errors: List[FieldError]) -> Dict[str, Any]:
        warranty = WarrantyClass.parse(data.get("warranty_class"))
        fields = {
            "warrantyStatus": warranty.value if warranty else "",
            "estimateAmount": "",
            "warrantyInvoiceNumber": "",
            "warrantyDate": "",
        }
        if warranty is None:
            errors.append(FieldError(field="warranty_class", reason="must be Warranty or Non-Warranty"))
            return fields

        if warranty is WarrantyClass.NON_WARRANTY:
            estimate = _text(data, "estimate_amount")
            if not estimate:
                errors.append(FieldError(field="estimate_amount", reason="is required for non-warranty service"))
            elif not AMOUNT_PATTERN.match(estimate):
                errors.append(FieldError(field="estimate_amount", reason="must be a number"))
            fields["estimateAmount"] = estimate
            return fields

        invoice = _text(data, "warranty_invoice_number")
        warranty_date = normalize_date(_text(data, "warranty_date"))
        if not invoice:
            errors.append(FieldError(field="warranty_invoice_number", reason="is required for warranty service"))
        if not warranty_date:
            errors.append(FieldError(field="warranty_date", reason="is required for warranty service (YYYY-MM-DD)"))
        fields["warrantyInvoiceNumber"] = invoice
        fields["warrantyDate"] = warranty_date
        return fields

    @staticmethod
    def _service_types(data: Mapping[str, Any]) -> List[str]:
        raw = data.get("service_types")
        if raw is None:
            return []
        if isinstance(raw, str):
            raw = raw.split(",")
        return [str(item).strip() for item in raw if str(item).strip()]

    @classmethod
    def _create_fields(cls, data: Mapping[str, Any], errors: List[FieldError]) -> Dict[str, Any]:
        created_date = _text(data, "created_date")
        if not DATE_PATTERN.match(created_date):
            errors.append(FieldError(field="created_date", reason="must be a YYYY-MM-DD date"))

        customer_name = _text(data, "customer_name")
        if not customer_name:
            errors.append(FieldError(field="customer_name", reason="is required"))

        contact = _text(data, "contact_number")
        if not CONTACT_PATTERN.match(contact):
            errors.append(FieldError(field="contact_number", reason="must be at least 10 digits"))

        service_types = cls._service_types(data)
        if not service_types:
            errors.append(FieldError(field="service_types", reason="select at least one service"))
        unknown = [label for label in service_types if label not in SERVICE_TYPES]
        if unknown:
            errors.append(FieldError(field="service_types", reason=f"unknown service type(s): {', '.join(unknown)}"))

        image = _image(data)
        if image is None:
            errors.append(FieldError(field="image", reason="product image is required"))

        color, size = _text(data, "color"), _text(data, "size")
        if color or size:
            color_and_size = f"{color}{COLOR_SIZE_SEPARATOR}{size}"
        else:
            color_and_size = _text(data, "color_and_size")

        fields: Dict[str, Any] = {
            "date": created_date,
            "customerName": customer_name,
            "contact": contact,
            "productName": _text(data, "product_name"),
            "brand": _text(data, "brand"),
            "colorAndSize": color_and_size,
            "serviceType": SERVICE_TYPE_SEPARATOR.join(service_types),
            "servicemanAmount": "",
            "customerPaidAmount": "",
            "invoiceNumber": "",
        }
        if image is not None:
            fields.update(image.to_wire())
        return fields

    @classmethod
    def _update_fields(cls, data: Mapping[str, Any], errors: List[FieldError]) -> Dict[str, Any]:
        if not _text(data, "record_id"):
            errors.append(FieldError(field="record_id", reason="is required"))

        status = ServiceStatus.parse(data.get("status"))
        if status is None:
            allowed = ", ".join(member.value for member in ServiceStatus)
            errors.append(FieldError(field="status", reason=f"must be one of: {allowed}"))

        for key in ("serviceman_amount", "customer_paid_amount"):
            amount = _text(data, key)
            if amount and not AMOUNT_PATTERN.match(amount):
                errors.append(FieldError(field=key, reason="must be a number"))

        fields: Dict[str, Any] = {
            "serviceId": _text(data, "record_id"),
            "slipNo": _text(data, "sequence_no"),
            "date": normalize_date(_text(data, "created_date")),
            "customerName": _text(data, "customer_name"),
            "contact": _text(data, "contact_number"),
            "productName": _text(data, "product_name"),
            "brand": _text(data, "brand"),
            "colorAndSize": _text(data, "color_and_size"),
            "serviceType": SERVICE_TYPE_SEPARATOR.join(cls._service_types(data)),
            "serviceStatus": status.value if status else "",
            "servicemanName": _text(data, "serviceman_name"),
            "servicemanAmount": _text(data, "serviceman_amount"),
            "customerPaidAmount": _text(data, "customer_paid_amount"),
            "invoiceNumber": _text(data, "final_invoice_number"),
        }
        image = _image(data)
        if image is not None:
            fields.update(image.to_wire())
        else:
            fields["imageUrl_existing"] = _text(data, "image_reference")
        return fields
