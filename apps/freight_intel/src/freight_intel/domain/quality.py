"""Weighted completeness scoring for extracted document fields."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from freight_intel.domain.extraction.dates import parse_date
from freight_intel.domain.extraction.identifiers import CONTAINER_SHAPE

INVALID_FIELD_FACTOR = 0.7
DEFAULT_FIELD_WEIGHT = 5

REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "booking_confirmation": (
        "booking_number",
        "vessel_name",
        "voyage_number",
        "etd",
        "eta",
        "port_of_loading",
        "port_of_discharge",
    ),
    "si_draft": (
        "shipper_name",
        "consignee_name",
        "notify_party",
        "commodity_description",
        "gross_weight",
        "container_numbers",
        "port_of_loading",
        "port_of_discharge",
    ),
    "si_final": (
        "shipper_name",
        "consignee_name",
        "notify_party",
        "commodity_description",
        "gross_weight",
        "container_numbers",
        "seal_numbers",
    ),
    "hbl": (
        "bl_number",
        "shipper_name",
        "consignee_name",
        "notify_party",
        "vessel_name",
        "voyage_number",
        "container_numbers",
        "gross_weight",
    ),
    "mbl": (
        "mbl_number",
        "vessel_name",
        "voyage_number",
        "container_numbers",
        "port_of_loading",
        "port_of_discharge",
    ),
    "arrival_notice": ("vessel_name", "eta", "container_numbers", "charges"),
    "delivery_order": ("bl_number", "container_numbers", "release_date"),
}

FIELD_WEIGHTS: dict[str, int] = {
    "booking_number": 15,
    "bl_number": 15,
    "mbl_number": 15,
    "container_numbers": 12,
    "shipper_name": 10,
    "consignee_name": 10,
    "vessel_name": 8,
    "etd": 8,
    "eta": 8,
    "gross_weight": 7,
    "voyage_number": 5,
    "commodity_description": 5,
    "port_of_loading": 5,
    "port_of_discharge": 5,
    "notify_party": 5,
    "seal_numbers": 5,
    "charges": 5,
    "release_date": 5,
}

_NUMBER = re.compile(r"^\s*\d+(?:[.,]\d+)*\s*(?:KGS?|KG|LBS?|MT)?\s*$", re.I)


@dataclass(slots=True, frozen=True)
class QualityAssessment:
    document_type: str
    score: float
    missing_fields: tuple[str, ...]
    invalid_fields: tuple[str, ...]
    validation_errors: tuple[str, ...]


def _is_present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, dict)):
        return bool(value)
    return True


def _validate_containers(value: object) -> str | None:
    items = [value] if isinstance(value, str) else value
    if not isinstance(items, (list, tuple)):
        return "container_numbers must be a list of container numbers"
    bad = [
        str(item)
        for item in items
        if not isinstance(item, str) or not CONTAINER_SHAPE.match(item.strip().upper())
    ]
    if bad:
        return f"Invalid container number format: {', '.join(bad)}"
    return None


def _validate_weight(value: object) -> str | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return None
    if isinstance(value, str) and _NUMBER.match(value):
        return None
    return f"Gross weight is not numeric: {value}"


def _date_validator(field_name: str) -> Callable[[object], str | None]:
    def validate(value: object) -> str | None:
        if isinstance(value, str) and parse_date(value) is not None:
            return None
        return f"Invalid {field_name.upper()} date: {value}"

    return validate


def _validate_booking_number(value: object) -> str | None:
    if len(str(value).strip()) < 5:
        return f"Booking number too short: {value}"
    return None


FIELD_VALIDATORS: dict[str, Callable[[object], str | None]] = {
    "container_numbers": _validate_containers,
    "gross_weight": _validate_weight,
    "etd": _date_validator("etd"),
    "eta": _date_validator("eta"),
    "booking_number": _validate_booking_number,
}


def required_fields_for(document_type: str) -> tuple[str, ...]:
    return REQUIRED_FIELDS.get(document_type, ())


def assess_document_quality(
    document_type: str, fields: Mapping[str, object]
) -> QualityAssessment:
    """Score ``fields`` against the required fields of ``document_type``.

    Present and valid fields earn their full weight, present but invalid
    fields earn 70 % of it, and absent fields earn nothing. Document types
    without required fields score 0 and report nothing missing.
    """

    required = required_fields_for(document_type)
    if not required:
        return QualityAssessment(document_type, 0.0, (), (), ())

    total = 0.0
    earned = 0.0
    missing: list[str] = []
    invalid: list[str] = []
    errors: list[str] = []
    for name in required:
        weight = FIELD_WEIGHTS.get(name, DEFAULT_FIELD_WEIGHT)
        total += weight
        value = fields.get(name)
        if not _is_present(value):
            missing.append(name)
            continue
        validator = FIELD_VALIDATORS.get(name)
        error = validator(value) if validator is not None else None
        if error is None:
            earned += weight
        else:
            earned += weight * INVALID_FIELD_FACTOR
            invalid.append(name)
            errors.append(error)

    score = max(0.0, min(100.0, earned / total * 100))
    return QualityAssessment(
        document_type=document_type,
        score=round(score, 2),
        missing_fields=tuple(missing),
        invalid_fields=tuple(invalid),
        validation_errors=tuple(errors),
    )
