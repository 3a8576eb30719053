"""Booking, container, bill of lading and customs entry number extraction."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import replace
from string import ascii_uppercase

from freight_intel.domain.extraction.models import (
    ExtractedEntity,
    ExtractorInput,
    IdentifierPattern,
    context_window,
    deduplicate_extractions,
)

PHONE_CONTEXT = re.compile(
    r"(?:\+\d{1,3}[-\s]?|(?:phone|mobile|cell|tel|fax|contact)[-:\s]*)$", re.I
)

BOOKING_NUMBER_PATTERNS: tuple[IdentifierPattern, ...] = (
    IdentifierPattern(
        re.compile(r"\b(26\d{7})\b"), 96, "Maersk 9-digit booking", "maersk"
    ),
    IdentifierPattern(
        re.compile(r"\bHL-?(\d{8})\b", re.I),
        95,
        "Hapag-Lloyd HL- booking",
        "hapag-lloyd",
    ),
    IdentifierPattern(
        re.compile(r"\b(HLCU\d{7,10})\b", re.I),
        93,
        "Hapag-Lloyd HLCU booking",
        "hapag-lloyd",
    ),
    IdentifierPattern(
        re.compile(r"\b(CEI\d{7})\b", re.I), 94, "CMA CGM CEI booking", "cma-cgm"
    ),
    IdentifierPattern(
        re.compile(r"\b(AMC\d{7})\b", re.I), 94, "CMA CGM AMC booking", "cma-cgm"
    ),
    IdentifierPattern(
        re.compile(r"\b(CAD\d{7})\b", re.I), 94, "CMA CGM CAD booking", "cma-cgm"
    ),
    IdentifierPattern(
        re.compile(r"\b(COSU\d{10})\b", re.I), 96, "COSCO COSU booking", "cosco"
    ),
    IdentifierPattern(
        re.compile(r"\b(MSC[A-Z]{2}\d{6,8})\b", re.I), 88, "MSC booking", "msc"
    ),
    IdentifierPattern(
        re.compile(r"\b(2\d{8})\b"),
        78,
        "Generic 9-digit booking",
        reject_before=PHONE_CONTEXT,
    ),
    IdentifierPattern(
        re.compile(
            r"(?:Booking|BKG|Ref(?:erence)?)\s*(?:#|No\.?|Number)?\s*:?\s*(\d{9,10})\b",
            re.I,
        ),
        75,
        "Booking number with label",
    ),
)

CONTAINER_NUMBER_PATTERNS: tuple[IdentifierPattern, ...] = (
    IdentifierPattern(re.compile(r"\b([A-Z]{4}\d{7})\b"), 94, "ISO 6346 container"),
    IdentifierPattern(
        re.compile(r"\b(MAEU\d{7})\b", re.I), 96, "Maersk container", "maersk"
    ),
    IdentifierPattern(
        re.compile(r"\b(MSKU\d{7})\b", re.I), 96, "Maersk container", "maersk"
    ),
    IdentifierPattern(
        re.compile(r"\b(HLCU\d{7})\b", re.I),
        96,
        "Hapag-Lloyd container",
        "hapag-lloyd",
    ),
    IdentifierPattern(
        re.compile(r"\b(HLXU\d{7})\b", re.I),
        96,
        "Hapag-Lloyd container",
        "hapag-lloyd",
    ),
    IdentifierPattern(
        re.compile(r"\b(CMAU\d{7})\b", re.I), 96, "CMA CGM container", "cma-cgm"
    ),
    IdentifierPattern(
        re.compile(r"\b(COSU\d{7})\b", re.I), 96, "COSCO container", "cosco"
    ),
    IdentifierPattern(re.compile(r"\b(MSCU\d{7})\b", re.I), 96, "MSC container", "msc"),
    IdentifierPattern(re.compile(r"\b(TCLU\d{7})\b", re.I), 94, "Leasing container"),
    IdentifierPattern(
        re.compile(r"\b(TRLU\d{7})\b", re.I), 94, "Triton leasing container"
    ),
)

BL_NUMBER_PATTERNS: tuple[IdentifierPattern, ...] = (
    IdentifierPattern(re.compile(r"\b(SE\d{10,})\b", re.I), 94, "House BL SE format"),
    IdentifierPattern(
        re.compile(r"\b(MAEU\d{9,})\b", re.I), 92, "Maersk MBL", "maersk"
    ),
    IdentifierPattern(
        re.compile(r"\b(HLCU\d{9,})\b", re.I), 92, "Hapag-Lloyd MBL", "hapag-lloyd"
    ),
    IdentifierPattern(re.compile(r"\b(COAU\d{9,})\b", re.I), 92, "COSCO MBL", "cosco"),
    IdentifierPattern(
        re.compile(r"\b(CMAU\d{9,})\b", re.I), 92, "CMA CGM MBL", "cma-cgm"
    ),
    IdentifierPattern(
        re.compile(r"B/L\s*(?:#|No\.?|Number)?\s*:?\s*([A-Z0-9]{8,20})", re.I),
        82,
        "BL with label",
    ),
    IdentifierPattern(
        re.compile(
            r"Bill\s+of\s+Lading\s*(?:#|No\.?|Number)?\s*:?\s*([A-Z0-9]{8,20})", re.I
        ),
        85,
        "Bill of Lading with label",
    ),
    IdentifierPattern(
        re.compile(
            r"(?:Master\s+)?(?:MBL|M\.B\.L)\s*(?:#|No\.?)?\s*:?\s*([A-Z0-9]{8,20})",
            re.I,
        ),
        88,
        "Master BL with label",
    ),
    IdentifierPattern(
        re.compile(
            r"(?:House\s+)?(?:HBL|H\.B\.L)\s*(?:#|No\.?)?\s*:?\s*([A-Z0-9]{8,20})",
            re.I,
        ),
        88,
        "House BL with label",
    ),
)

ENTRY_NUMBER_PATTERNS: tuple[IdentifierPattern, ...] = (
    IdentifierPattern(re.compile(r"\b(\d{3}-\d{7}-\d)\b"), 96, "US customs entry"),
    IdentifierPattern(
        re.compile(r"\b([A-Z0-9]{3}-\d{8})\b"), 90, "Alternative entry format"
    ),
    IdentifierPattern(
        re.compile(
            r"Entry\s*(?:#|No\.?|Number)?\s*:?\s*"
            r"([A-Z0-9]{3}[-\s]?\d{7,8}[-\s]?\d?)\b",
            re.I,
        ),
        88,
        "Entry with label",
    ),
)

CONTAINER_SHAPE = re.compile(r"^[A-Z]{4}\d{7}$")


def _letter_values() -> dict[str, int]:
    values: dict[str, int] = {}
    value = 10
    for letter in ascii_uppercase:
        if value % 11 == 0:
            value += 1
        values[letter] = value
        value += 1
    return values


LETTER_VALUES = _letter_values()


def container_check_digit(container_number: str) -> int:
    """ISO 6346 check digit for the first ten characters of a container number."""

    total = 0
    for index, char in enumerate(container_number[:10].upper()):
        value = LETTER_VALUES[char] if char.isalpha() else int(char)
        total += value * (2**index)
    return total % 11 % 10


def is_valid_container_number(container_number: str) -> bool:
    normalized = container_number.strip().upper()
    if not CONTAINER_SHAPE.match(normalized):
        return False
    return container_check_digit(normalized) == int(normalized[10])


def _skipped(pattern: IdentifierPattern, carrier: str | None) -> bool:
    return bool(pattern.carrier and carrier and pattern.carrier != carrier)


def match_pattern(
    text: str,
    pattern: IdentifierPattern,
    *,
    entity_type: str,
    method: str = "regex",
) -> list[ExtractedEntity]:
    """Every match of one pattern, honoring its capture group and rejection context."""

    found: list[ExtractedEntity] = []
    for match in pattern.pattern.finditer(text):
        if pattern.reject_before is not None and pattern.reject_before.search(
            text[max(0, match.start() - 20) : match.start()]
        ):
            continue
        value = match.group(pattern.group) if pattern.pattern.groups else match.group(0)
        found.append(
            ExtractedEntity(
                entity_type=entity_type,
                value=value.strip(),
                confidence=pattern.confidence,
                method=method,
                pattern=pattern.description,
                position=match.start(),
                context=context_window(text, match.start()),
            )
        )
    return found


def _collect(
    text: str,
    patterns: Sequence[IdentifierPattern],
    *,
    entity_type: str,
    carrier: str | None,
    normalize: bool = True,
) -> list[ExtractedEntity]:
    """Matches of every applicable pattern, best confidence per value.

    Patterns tied to the detected carrier get +3 (capped at 99), so a
    carrier-specific row outranks the generic shape for the same value.
    """

    results: list[ExtractedEntity] = []
    for pattern in patterns:
        if _skipped(pattern, carrier):
            continue
        boost = 3 if pattern.carrier and pattern.carrier == carrier else 0
        for found in match_pattern(text, pattern, entity_type=entity_type):
            results.append(
                replace(
                    found,
                    value=found.value.upper() if normalize else found.value,
                    confidence=min(found.confidence + boost, 99),
                )
            )
    return deduplicate_extractions(results)


def _by_confidence(items: Iterable[ExtractedEntity]) -> list[ExtractedEntity]:
    return sorted(items, key=lambda item: item.confidence, reverse=True)


def extract_booking_numbers(source: ExtractorInput) -> list[ExtractedEntity]:
    """Subject matches first (+3), then body matches (+3 for the detected carrier)."""

    results: list[ExtractedEntity] = []
    seen: set[str] = set()
    for pattern in BOOKING_NUMBER_PATTERNS:
        if _skipped(pattern, source.carrier):
            continue
        for found in match_pattern(
            source.subject,
            pattern,
            entity_type="booking_number",
            method="regex_subject",
        ):
            if found.value in seen:
                continue
            seen.add(found.value)
            results.append(found.with_confidence(min(found.confidence + 3, 99)))

    for pattern in BOOKING_NUMBER_PATTERNS:
        if _skipped(pattern, source.carrier):
            continue
        boost = 3 if pattern.carrier and pattern.carrier == source.carrier else 0
        for found in match_pattern(
            source.body_text, pattern, entity_type="booking_number"
        ):
            if found.value in seen:
                continue
            seen.add(found.value)
            results.append(found.with_confidence(min(found.confidence + boost, 99)))
    return _by_confidence(results)


def extract_container_numbers(source: ExtractorInput) -> list[ExtractedEntity]:
    """Container numbers that pass the ISO 6346 check digit."""

    candidates = _collect(
        source.full_text,
        CONTAINER_NUMBER_PATTERNS,
        entity_type="container_number",
        carrier=source.carrier,
    )
    return [item for item in candidates if is_valid_container_number(item.value)]


def extract_bl_numbers(source: ExtractorInput) -> list[ExtractedEntity]:
    return _collect(
        source.full_text,
        BL_NUMBER_PATTERNS,
        entity_type="bl_number",
        carrier=source.carrier,
    )


def extract_entry_numbers(source: ExtractorInput) -> list[ExtractedEntity]:
    return _collect(
        source.full_text,
        ENTRY_NUMBER_PATTERNS,
        entity_type="entry_number",
        carrier=None,
        normalize=False,
    )
