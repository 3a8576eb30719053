"""Value types shared by the regex extractors."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from re import Pattern


@dataclass(slots=True, frozen=True)
class ExtractorInput:
    subject: str = ""
    body_text: str = ""
    carrier: str | None = None

    @property
    def full_text(self) -> str:
        return f"{self.subject}\n{self.body_text}"


@dataclass(slots=True, frozen=True)
class IdentifierPattern:
    """One extraction pattern; ``group`` selects the captured value."""

    pattern: Pattern[str]
    confidence: int
    description: str
    carrier: str | None = None
    group: int = 1
    reject_before: Pattern[str] | None = None


@dataclass(slots=True, frozen=True)
class ExtractedEntity:
    entity_type: str
    value: str
    confidence: float
    method: str = "regex"
    pattern: str | None = None
    position: int | None = None
    context: str | None = None
    normalized: str | None = None

    def with_confidence(self, confidence: float) -> ExtractedEntity:
        return replace(self, confidence=confidence)

    def with_type(self, entity_type: str) -> ExtractedEntity:
        return replace(self, entity_type=entity_type)


def deduplicate_extractions(items: Iterable[ExtractedEntity]) -> list[ExtractedEntity]:
    """Keep the highest-confidence extraction per ``(entity_type, value)``."""

    best: dict[tuple[str, str], ExtractedEntity] = {}
    for item in items:
        key = (item.entity_type, item.value)
        current = best.get(key)
        if current is None or item.confidence > current.confidence:
            best[key] = item
    return sorted(best.values(), key=lambda item: item.confidence, reverse=True)


def context_window(text: str, position: int, radius: int = 50) -> str:
    start = max(0, position - radius)
    end = min(len(text), position + radius)
    return " ".join(text[start:end].split())
