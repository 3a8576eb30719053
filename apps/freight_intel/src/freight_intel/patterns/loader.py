"""Load, validate and compile the versioned JSON pattern tables.

Tables are read once per directory and cached. A rule whose regex fails to
compile is logged and dropped; the rest of its table still loads. A table
that cannot be read or does not match its schema raises
``PatternConfigurationError``.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from freight_intel.core.settings import get_settings
from freight_intel.domain.errors import PatternConfigurationError
from freight_intel.patterns.schema import (
    CarrierTableDocument,
    ContentMarkerDocument,
    DirectionDocument,
    PatternRow,
    PatternTableDocument,
)

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

DocumentT = TypeVar("DocumentT", bound=BaseModel)


@dataclass(slots=True, frozen=True)
class PatternRule:
    """Compiled table row. ``order`` is the declaration index in its table."""

    pattern: re.Pattern[str]
    type: str
    priority: int
    order: int
    category: str | None = None

    @property
    def source(self) -> str:
        return self.pattern.pattern


@dataclass(slots=True, frozen=True)
class CarrierRule:
    pattern: re.Pattern[str]
    type: str
    priority: int
    order: int
    requires_pdf: bool = False
    content_patterns: tuple[re.Pattern[str], ...] = ()

    @property
    def source(self) -> str:
        return self.pattern.pattern


@dataclass(slots=True, frozen=True)
class CarrierProfile:
    """A shipping line with its sender domains and priority-sorted rules."""

    id: str
    name: str
    domains: tuple[str, ...]
    rules: tuple[CarrierRule, ...]

    def owns_domain(self, domain: str) -> bool:
        return any(
            domain == known or domain.endswith(f".{known}") for known in self.domains
        )


@dataclass(slots=True, frozen=True)
class ContentMarkerRule:
    required: tuple[str, ...]
    optional: tuple[str, ...]
    exclude: tuple[str, ...]
    confidence: int


@dataclass(slots=True, frozen=True)
class ContentMarkerConfig:
    document_type: str
    markers: tuple[ContentMarkerRule, ...]
    order: int


@dataclass(slots=True, frozen=True)
class RelayRule:
    """Named exception: an internal relay address forwarding carrier templates."""

    name: str
    senders: frozenset[str]
    subject_patterns: tuple[re.Pattern[str], ...]

    def applies_to(self, sender_address: str, subject: str) -> bool:
        if sender_address not in self.senders:
            return False
        return any(pattern.search(subject) for pattern in self.subject_patterns)


@dataclass(slots=True, frozen=True)
class DirectionTables:
    internal_domains: tuple[str, ...]
    carrier_domains: tuple[str, ...]
    reply_prefix: re.Pattern[str]
    via_marker: re.Pattern[str]
    relay_rules: tuple[RelayRule, ...]


@dataclass(slots=True, frozen=True)
class PatternTables:
    """Every compiled signal table used by matchers and direction detection."""

    attachment: tuple[PatternRule, ...]
    body: tuple[PatternRule, ...]
    subject: tuple[PatternRule, ...]
    partner: tuple[PatternRule, ...]
    internal: tuple[PatternRule, ...]
    carriers: tuple[CarrierProfile, ...]
    min_content_length: int
    content_markers: tuple[ContentMarkerConfig, ...]
    optional_boost: int
    max_optional_boost: int
    max_content_confidence: int
    direction: DirectionTables
    version: str = "unversioned"

    def carrier_by_id(self, carrier_id: str) -> CarrierProfile | None:
        for carrier in self.carriers:
            if carrier.id == carrier_id:
                return carrier
        return None


def compile_pattern(
    source: str,
    *,
    table: str,
    ignore_case: bool = True,
) -> re.Pattern[str] | None:
    """Compile one regex, logging and returning None when it is invalid."""

    flags = re.IGNORECASE if ignore_case else 0
    try:
        return re.compile(source, flags)
    except re.error as exc:
        logger.warning(
            "pattern_rule_dropped",
            extra={"table": table, "pattern": source, "error": str(exc)},
        )
        return None


def compile_rules(rows: Iterable[PatternRow], *, table: str) -> tuple[PatternRule, ...]:
    compiled: list[PatternRule] = []
    for index, row in enumerate(rows):
        pattern = compile_pattern(row.pattern, table=table, ignore_case=row.ignore_case)
        if pattern is None:
            continue
        compiled.append(
            PatternRule(
                pattern=pattern,
                type=row.type,
                priority=row.priority,
                order=index,
                category=row.category,
            )
        )
    return tuple(compiled)


def read_table(
    name: str,
    document_type: type[DocumentT],
    directory: Path | None = None,
) -> DocumentT:
    """Read one JSON resource and validate it against its schema model."""

    path = (directory or DATA_DIR) / name
    try:
        payload: Any = json.loads(path.read_text(encoding="utf-8"))
        return document_type.model_validate(payload)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise PatternConfigurationError(
            details={"table": name, "path": str(path), "error": str(exc)}
        ) from exc


def _compile_carriers(
    document: CarrierTableDocument,
) -> tuple[CarrierProfile, ...]:
    carriers: list[CarrierProfile] = []
    for carrier in document.carriers:
        table = f"carrier:{carrier.id}"
        rules: list[CarrierRule] = []
        for index, row in enumerate(carrier.rules):
            pattern = compile_pattern(
                row.pattern, table=table, ignore_case=row.ignore_case
            )
            if pattern is None:
                continue
            content_patterns = [
                compile_pattern(source, table=table) for source in row.content_patterns
            ]
            if any(compiled is None for compiled in content_patterns):
                continue
            rules.append(
                CarrierRule(
                    pattern=pattern,
                    type=row.type,
                    priority=row.priority,
                    order=index,
                    requires_pdf=row.requires_pdf,
                    content_patterns=tuple(
                        compiled for compiled in content_patterns if compiled
                    ),
                )
            )
        rules.sort(key=lambda rule: (-rule.priority, rule.order))
        carriers.append(
            CarrierProfile(
                id=carrier.id,
                name=carrier.name,
                domains=tuple(carrier.domains),
                rules=tuple(rules),
            )
        )
    return tuple(carriers)


def _compile_content_markers(
    document: ContentMarkerDocument,
) -> tuple[ContentMarkerConfig, ...]:
    def upper(terms: list[str]) -> tuple[str, ...]:
        return tuple(term.upper() for term in terms)

    return tuple(
        ContentMarkerConfig(
            document_type=config.document_type,
            markers=tuple(
                ContentMarkerRule(
                    required=upper(marker.required),
                    optional=upper(marker.optional),
                    exclude=upper(marker.exclude),
                    confidence=marker.confidence,
                )
                for marker in config.markers
            ),
            order=index,
        )
        for index, config in enumerate(document.configs)
    )


def _compile_direction(document: DirectionDocument) -> DirectionTables:
    reply_prefix = compile_pattern(document.reply_prefix_pattern, table="direction")
    via_marker = compile_pattern(document.via_pattern, table="direction")
    if reply_prefix is None or via_marker is None:
        raise PatternConfigurationError(
            details={"table": "direction_rules.json", "error": "invalid core regex"}
        )

    relay_rules: list[RelayRule] = []
    for rule in document.relay_rules:
        compiled = [
            compile_pattern(source, table=f"relay:{rule.name}")
            for source in rule.subject_patterns
        ]
        relay_rules.append(
            RelayRule(
                name=rule.name,
                senders=frozenset(sender.strip().lower() for sender in rule.senders),
                subject_patterns=tuple(pattern for pattern in compiled if pattern),
            )
        )

    return DirectionTables(
        internal_domains=tuple(domain.lower() for domain in document.internal_domains),
        carrier_domains=tuple(domain.lower() for domain in document.carrier_domains),
        reply_prefix=reply_prefix,
        via_marker=via_marker,
        relay_rules=tuple(relay_rules),
    )


@lru_cache(maxsize=4)
def load_pattern_tables(directory: str | None = None) -> PatternTables:
    """Load and compile every table from ``directory`` (package data by default)."""

    base = Path(directory) if directory else None
    attachment = read_table("attachment_patterns.json", PatternTableDocument, base)
    body = read_table("body_patterns.json", PatternTableDocument, base)
    subject = read_table("subject_patterns.json", PatternTableDocument, base)
    partner = read_table("partner_patterns.json", PatternTableDocument, base)
    internal = read_table("internal_patterns.json", PatternTableDocument, base)
    carriers = read_table("carrier_rules.json", CarrierTableDocument, base)
    markers = read_table("content_markers.json", ContentMarkerDocument, base)
    direction = read_table("direction_rules.json", DirectionDocument, base)

    tables = PatternTables(
        attachment=compile_rules(attachment.rules, table="attachment"),
        body=compile_rules(body.rules, table="body"),
        subject=compile_rules(subject.rules, table="subject"),
        partner=compile_rules(partner.rules, table="partner"),
        internal=compile_rules(internal.rules, table="internal"),
        carriers=_compile_carriers(carriers),
        min_content_length=carriers.min_content_length,
        content_markers=_compile_content_markers(markers),
        optional_boost=markers.optional_boost,
        max_optional_boost=markers.max_optional_boost,
        max_content_confidence=markers.max_confidence,
        direction=_compile_direction(direction),
        version=subject.version,
    )
    logger.info(
        "pattern_tables_loaded",
        extra={
            "directory": str(base or DATA_DIR),
            "attachment_rules": len(tables.attachment),
            "subject_rules": len(tables.subject),
            "carriers": len(tables.carriers),
        },
    )
    return tables


def default_pattern_tables() -> PatternTables:
    """Return tables for the directory configured in settings."""

    return load_pattern_tables(get_settings().pattern_tables_dir)
