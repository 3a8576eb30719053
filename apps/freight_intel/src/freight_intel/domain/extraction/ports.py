"""Port names, UN/LOCODEs, vessel names and voyage numbers."""

from __future__ import annotations

import re
from dataclasses import dataclass

from freight_intel.domain.extraction.identifiers import match_pattern
from freight_intel.domain.extraction.models import (
    ExtractedEntity,
    ExtractorInput,
    IdentifierPattern,
    context_window,
)

LOCODE_AFTER_LABEL = re.compile(r"^([A-Z]{2}[A-Z0-9]{3})\b")
PORT_NAME_AFTER_LABEL = re.compile(
    r"^([A-Za-z][A-Za-z .,'()-]*?)\s*(?:[|\n]|\s-\s|\s+[A-Z]{2,}\s*:|$)"
)
LOCODE_CONFIDENCE = 92
PORT_NAME_CONFIDENCE = 78


@dataclass(slots=True, frozen=True)
class PortContext:
    entity_type: str
    label: re.Pattern[str]


PORT_CONTEXTS: tuple[PortContext, ...] = (
    PortContext(
        "port_of_loading",
        re.compile(
            r"(?:Port\s+of\s+Loading|\bPOL\b|Load(?:ing)?\s+Port|Origin\s+Port)"
            r"\s*:?\s*",
            re.I,
        ),
    ),
    PortContext(
        "port_of_discharge",
        re.compile(
            r"(?:Port\s+of\s+Discharge|\bPOD\b|Discharge\s+Port|Destination\s+Port)"
            r"\s*:?\s*",
            re.I,
        ),
    ),
    PortContext(
        "place_of_receipt",
        re.compile(r"(?:Place\s+of\s+Receipt|\bPOR\b)\s*:?\s*", re.I),
    ),
    PortContext(
        "place_of_delivery",
        re.compile(r"(?:Place\s+of\s+Delivery|Final\s+Destination)\s*:?\s*", re.I),
    ),
)

ORIGIN_PORT_CODES = re.compile(r"\b(INMUN|INPAV|INNSA|INMAA|INHZA)\b")
DESTINATION_PORT_CODES = re.compile(
    r"\b(USHOU|USEWR|USLAX|USLGB|USCHS|USSAV|USNYC)\b"
)
KNOWN_PORT_CODE_CONFIDENCE = 95

VESSEL_PATTERNS: tuple[IdentifierPattern, ...] = (
    IdentifierPattern(
        re.compile(
            r"Vessel\s+Name\s*:?\s*([A-Z][A-Za-z ]+?)(?:\s*\n|\s+V\.|,|\s+\d|$)", re.I
        ),
        90,
        "Vessel Name label",
    ),
    IdentifierPattern(
        re.compile(
            r"(?:M/V|\bMV|\bVessel)\s*:?\s*([A-Z][A-Za-z ]+?)"
            r"(?:\s+V\.|,|\s+\d|\s*\n|$)",
            re.I,
        ),
        88,
        "Vessel prefix",
    ),
)

VOYAGE_PATTERNS: tuple[IdentifierPattern, ...] = (
    IdentifierPattern(
        re.compile(r"Voyage\s*(?:No\.?|Number|#)?\s*:?\s*([A-Z0-9]{3,10})\b", re.I),
        90,
        "Voyage with label",
    ),
    IdentifierPattern(
        re.compile(r"\b([A-Z]{2}\d/\d{3}[ENSW])\b"), 94, "Service voyage"
    ),
    IdentifierPattern(
        re.compile(r"\b(\d{3,4}[ENSW])\b"), 92, "Numeric voyage with direction"
    ),
    IdentifierPattern(
        re.compile(r"\b([A-Z]{2}\d{2,4}[ENSW])\b"), 90, "Alpha-numeric voyage"
    ),
    IdentifierPattern(
        re.compile(r"\bV\.?\s*(\d{3,4}[A-Z]?)\b"), 88, "V-prefixed voyage"
    ),
)
VESSEL_NAME_LENGTH = (3, 50)


def extract_ports(source: ExtractorInput) -> list[ExtractedEntity]:
    """First port per context label, preferring a UN/LOCODE right after the label."""

    text = source.full_text
    results: list[ExtractedEntity] = []
    for context in PORT_CONTEXTS:
        label = context.label.search(text)
        if label is None:
            continue
        tail = text[label.end() : label.end() + 100]
        code = LOCODE_AFTER_LABEL.match(tail)
        if code is not None:
            value = code.group(1)
            confidence, description = LOCODE_CONFIDENCE, "UN/LOCODE"
        else:
            name = PORT_NAME_AFTER_LABEL.match(tail)
            if name is None or not name.group(1).strip(" ,"):
                continue
            value = name.group(1).strip(" ,")
            confidence, description = PORT_NAME_CONFIDENCE, "Port name"
        results.append(
            ExtractedEntity(
                entity_type=context.entity_type,
                value=value,
                confidence=confidence,
                method="regex_context",
                pattern=description,
                position=label.end(),
                context=context_window(text, label.start()),
            )
        )
    return results


def extract_port_codes(source: ExtractorInput) -> list[ExtractedEntity]:
    """Known origin and destination UN/LOCODEs anywhere in the text."""

    text = source.full_text
    results: list[ExtractedEntity] = []
    for entity_type, pattern in (
        ("port_of_loading_code", ORIGIN_PORT_CODES),
        ("port_of_discharge_code", DESTINATION_PORT_CODES),
    ):
        match = pattern.search(text)
        if match is None:
            continue
        results.append(
            ExtractedEntity(
                entity_type=entity_type,
                value=match.group(1),
                confidence=KNOWN_PORT_CODE_CONFIDENCE,
                pattern="Known port code",
                position=match.start(),
                context=context_window(text, match.start()),
            )
        )
    return results


def extract_vessel(source: ExtractorInput) -> ExtractedEntity | None:
    text = source.full_text
    low, high = VESSEL_NAME_LENGTH
    candidates = [
        found
        for pattern in VESSEL_PATTERNS
        for found in match_pattern(text, pattern, entity_type="vessel_name")
        if low <= len(found.value) <= high
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda item: item.confidence)


def extract_voyage(source: ExtractorInput) -> ExtractedEntity | None:
    for pattern in VOYAGE_PATTERNS:
        found = match_pattern(source.full_text, pattern, entity_type="voyage_number")
        if found:
            return found[0]
    return None
