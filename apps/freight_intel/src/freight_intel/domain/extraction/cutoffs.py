"""Cutoff deadline extraction (SI, VGM, cargo, gate, port)."""

from __future__ import annotations

import re
from dataclasses import dataclass

from freight_intel.domain.extraction.dates import KEYWORD_WINDOW, extract_dates
from freight_intel.domain.extraction.models import (
    ExtractedEntity,
    ExtractorInput,
    context_window,
)


@dataclass(slots=True, frozen=True)
class CutoffDefinition:
    cutoff_type: str
    keywords: tuple[re.Pattern[str], ...]
    confidence: int


CUTOFF_DEFINITIONS: tuple[CutoffDefinition, ...] = (
    CutoffDefinition(
        "si_cutoff",
        (
            re.compile(r"SI\s*cut-?\s*off", re.I),
            re.compile(r"Shipping\s+Instruction\s*cut-?\s*off", re.I),
            re.compile(r"Documentation\s*cut-?\s*off", re.I),
            re.compile(r"Doc\s*cut-?\s*off", re.I),
        ),
        88,
    ),
    CutoffDefinition(
        "vgm_cutoff",
        (
            re.compile(r"VGM\s*cut-?\s*off", re.I),
            re.compile(r"Verified\s+Gross\s+Mass\s*cut-?\s*off", re.I),
            re.compile(r"VGM\s+deadline", re.I),
        ),
        90,
    ),
    CutoffDefinition(
        "cargo_cutoff",
        (
            re.compile(r"Cargo\s*cut-?\s*off", re.I),
            re.compile(r"CY\s*cut-?\s*off", re.I),
            re.compile(r"FCL\s*cut-?\s*off", re.I),
            re.compile(r"Container\s+Yard\s*cut-?\s*off", re.I),
        ),
        88,
    ),
    CutoffDefinition(
        "gate_cutoff",
        (
            re.compile(r"Gate\s*cut-?\s*off", re.I),
            re.compile(r"Gate\s*closing", re.I),
            re.compile(r"Gate\s*close", re.I),
        ),
        85,
    ),
    CutoffDefinition(
        "port_cutoff",
        (
            re.compile(r"Port\s*cut-?\s*off", re.I),
            re.compile(r"Terminal\s*cut-?\s*off", re.I),
        ),
        82,
    ),
)


def _nearest_after(window: str) -> ExtractedEntity | None:
    dates = extract_dates(window)
    if not dates:
        return None
    return min(dates, key=lambda item: (item.position or 0, -item.confidence))


def _nearest_before(window: str) -> ExtractedEntity | None:
    dates = extract_dates(window)
    if not dates:
        return None
    return max(
        dates,
        key=lambda item: ((item.position or 0) + len(item.value), item.confidence),
    )


def _cutoff_at(
    text: str, match: re.Match[str], definition: CutoffDefinition
) -> ExtractedEntity | None:
    after = _nearest_after(text[match.end() : match.end() + KEYWORD_WINDOW])
    if after is not None:
        confidence = min((definition.confidence + after.confidence) / 2 + 5, 99)
        found, method, offset = after, "regex_context_after", match.end()
    else:
        start = max(0, match.start() - KEYWORD_WINDOW)
        before = _nearest_before(text[start : match.start()])
        if before is None:
            return None
        confidence = min((definition.confidence + before.confidence) / 2, 95)
        found, method, offset = before, "regex_context_before", start

    return ExtractedEntity(
        entity_type=definition.cutoff_type,
        value=found.value,
        confidence=confidence,
        method=method,
        pattern=f"{definition.cutoff_type} {found.pattern}",
        position=offset + (found.position or 0),
        context=context_window(text, match.start()),
        normalized=found.normalized,
    )


def extract_cutoffs(source: ExtractorInput) -> list[ExtractedEntity]:
    """Best date per cutoff type, looking after the keyword before looking behind it.

    Every keyword occurrence is considered; on each side the date closest to the
    keyword wins.
    """

    text = source.full_text
    best: dict[str, ExtractedEntity] = {}
    for definition in CUTOFF_DEFINITIONS:
        for keyword in definition.keywords:
            for match in keyword.finditer(text):
                found = _cutoff_at(text, match, definition)
                if found is None:
                    continue
                current = best.get(definition.cutoff_type)
                if current is None or found.confidence > current.confidence:
                    best[definition.cutoff_type] = found
    return list(best.values())
