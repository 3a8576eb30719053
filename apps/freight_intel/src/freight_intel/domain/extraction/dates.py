"""Date parsing plus ETD and ETA extraction."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from freight_intel.domain.extraction.models import (
    ExtractedEntity,
    ExtractorInput,
    context_window,
)

MIN_YEAR = 2020
MAX_YEAR = 2035
KEYWORD_WINDOW = 100

MONTHS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}
MONTH_NAMES = r"(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"


@dataclass(slots=True, frozen=True)
class DatePattern:
    pattern: re.Pattern[str]
    confidence: int
    description: str
    build: Callable[[re.Match[str]], tuple[int, int, int]]


def _month(name: str) -> int:
    return MONTHS[name[:3].lower()]


DATE_PATTERNS: tuple[DatePattern, ...] = (
    DatePattern(
        re.compile(r"\b(\d{4})-(\d{2})-(\d{2})(?:[T ]\d{2}:\d{2}(?::\d{2})?)?\b"),
        96,
        "ISO date",
        lambda m: (int(m.group(1)), int(m.group(2)), int(m.group(3))),
    ),
    DatePattern(
        re.compile(rf"\b(\d{{1,2}})[-\s]{MONTH_NAMES}[-\s](\d{{4}})\b", re.I),
        92,
        "DD-Mon-YYYY",
        lambda m: (int(m.group(3)), _month(m.group(2)), int(m.group(1))),
    ),
    DatePattern(
        re.compile(rf"\b{MONTH_NAMES}\.?\s+(\d{{1,2}}),?\s+(\d{{4}})\b", re.I),
        88,
        "Mon DD, YYYY",
        lambda m: (int(m.group(3)), _month(m.group(1)), int(m.group(2))),
    ),
    DatePattern(
        re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b"),
        85,
        "DD/MM/YYYY",
        lambda m: (int(m.group(3)), int(m.group(2)), int(m.group(1))),
    ),
    DatePattern(
        re.compile(r"\b(\d{1,2})-(\d{1,2})-(\d{4})\b"),
        82,
        "DD-MM-YYYY",
        lambda m: (int(m.group(3)), int(m.group(2)), int(m.group(1))),
    ),
)

ETD_KEYWORDS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bETD\b\s*:?", re.I),
    re.compile(r"Estimated\s+Time\s+of\s+Departure\s*:?", re.I),
    re.compile(r"Departure\s+Date\s*:?", re.I),
    re.compile(r"Sailing\s+Date\s*:?", re.I),
)

ETA_KEYWORDS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bETA\b\s*:?", re.I),
    re.compile(r"Estimated\s+Time\s+of\s+Arrival\s*:?", re.I),
    re.compile(r"Arrival\s+Date\s*:?", re.I),
)


def _to_date(year: int, month: int, day: int) -> date | None:
    if not MIN_YEAR <= year <= MAX_YEAR:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: str) -> date | None:
    """Parse a date in any supported format; None when invalid or out of range."""

    for candidate in DATE_PATTERNS:
        match = candidate.pattern.search(value.strip())
        if match is not None:
            parsed = _to_date(*candidate.build(match))
            if parsed is not None:
                return parsed
    return None


def extract_dates(text: str, *, entity_type: str = "date") -> list[ExtractedEntity]:
    """Every valid date in ``text``, highest confidence first."""

    results: list[ExtractedEntity] = []
    seen: set[tuple[int, str]] = set()
    for candidate in DATE_PATTERNS:
        for match in candidate.pattern.finditer(text):
            parsed = _to_date(*candidate.build(match))
            if parsed is None:
                continue
            key = (match.start(), parsed.isoformat())
            if key in seen:
                continue
            seen.add(key)
            results.append(
                ExtractedEntity(
                    entity_type=entity_type,
                    value=match.group(0),
                    confidence=candidate.confidence,
                    pattern=candidate.description,
                    position=match.start(),
                    context=context_window(text, match.start()),
                    normalized=parsed.isoformat(),
                )
            )
    results.sort(key=lambda item: (-item.confidence, item.position or 0))
    return results


def _date_after_keywords(
    text: str, keywords: Sequence[re.Pattern[str]], entity_type: str
) -> ExtractedEntity | None:
    for keyword in keywords:
        match = keyword.search(text)
        if match is None:
            continue
        window = text[match.end() : match.end() + KEYWORD_WINDOW]
        dates = extract_dates(window, entity_type=entity_type)
        if not dates:
            continue
        nearest = min(dates, key=lambda item: (item.position or 0, -item.confidence))
        return ExtractedEntity(
            entity_type=entity_type,
            value=nearest.value,
            confidence=min(nearest.confidence + 5, 99),
            method="regex_context",
            pattern=f"{entity_type.upper()} {nearest.pattern}",
            position=match.end() + (nearest.position or 0),
            context=context_window(text, match.start()),
            normalized=nearest.normalized,
        )
    return None


def extract_etd(source: ExtractorInput) -> ExtractedEntity | None:
    return _date_after_keywords(source.full_text, ETD_KEYWORDS, "etd")


def extract_eta(source: ExtractorInput) -> ExtractedEntity | None:
    return _date_after_keywords(source.full_text, ETA_KEYWORDS, "eta")
