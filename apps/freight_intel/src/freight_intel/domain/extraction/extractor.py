"""Regex extraction facade: runs every extractor over one email."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from freight_intel.domain.extraction.carriers import detect_carrier
from freight_intel.domain.extraction.cutoffs import extract_cutoffs
from freight_intel.domain.extraction.dates import extract_eta, extract_etd
from freight_intel.domain.extraction.identifiers import (
    extract_bl_numbers,
    extract_booking_numbers,
    extract_container_numbers,
    extract_entry_numbers,
)
from freight_intel.domain.extraction.models import (
    ExtractedEntity,
    ExtractorInput,
    deduplicate_extractions,
)
from freight_intel.domain.extraction.ports import (
    extract_port_codes,
    extract_ports,
    extract_vessel,
    extract_voyage,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ExtractionReport:
    carrier: str | None
    booking_numbers: tuple[ExtractedEntity, ...] = ()
    container_numbers: tuple[ExtractedEntity, ...] = ()
    bl_numbers: tuple[ExtractedEntity, ...] = ()
    entry_numbers: tuple[ExtractedEntity, ...] = ()
    etd: ExtractedEntity | None = None
    eta: ExtractedEntity | None = None
    cutoffs: tuple[ExtractedEntity, ...] = ()
    ports: tuple[ExtractedEntity, ...] = ()
    vessel: ExtractedEntity | None = None
    voyage: ExtractedEntity | None = None
    entities: tuple[ExtractedEntity, ...] = field(default=())

    def best(self, entity_type: str) -> ExtractedEntity | None:
        for entity in self.entities:
            if entity.entity_type == entity_type:
                return entity
        return None

    def as_fields(self) -> dict[str, object]:
        """Flatten into the field mapping used by quality scoring."""

        fields: dict[str, object] = {}
        containers: list[str] = []
        for entity in self.entities:
            if entity.entity_type == "container_number":
                containers.append(entity.value)
                continue
            fields.setdefault(entity.entity_type, entity.normalized or entity.value)
        if containers:
            fields["container_numbers"] = containers
        return fields


class RegexExtractor:
    """Deterministic entity extraction for shipping emails.

    The carrier is detected first (unless the caller already knows it) so
    carrier-specific identifier patterns for other carriers are skipped.
    """

    def extract(self, source: ExtractorInput) -> ExtractionReport:
        carrier = source.carrier or detect_carrier(source)
        scoped = ExtractorInput(
            subject=source.subject, body_text=source.body_text, carrier=carrier
        )

        booking_numbers = extract_booking_numbers(scoped)
        container_numbers = extract_container_numbers(scoped)
        bl_numbers = extract_bl_numbers(scoped)
        entry_numbers = extract_entry_numbers(scoped)
        etd = extract_etd(scoped)
        eta = extract_eta(scoped)
        cutoffs = extract_cutoffs(scoped)
        ports = extract_ports(scoped) + extract_port_codes(scoped)
        vessel = extract_vessel(scoped)
        voyage = extract_voyage(scoped)

        collected = [
            *booking_numbers,
            *container_numbers,
            *bl_numbers,
            *entry_numbers,
            *cutoffs,
            *ports,
        ]
        collected.extend(
            item for item in (etd, eta, vessel, voyage) if item is not None
        )
        entities = deduplicate_extractions(collected)

        logger.debug(
            "regex_extraction_completed",
            extra={"carrier": carrier, "entities": len(entities)},
        )
        return ExtractionReport(
            carrier=carrier,
            booking_numbers=tuple(booking_numbers),
            container_numbers=tuple(container_numbers),
            bl_numbers=tuple(bl_numbers),
            entry_numbers=tuple(entry_numbers),
            etd=etd,
            eta=eta,
            cutoffs=tuple(cutoffs),
            ports=tuple(ports),
            vessel=vessel,
            voyage=voyage,
            entities=tuple(entities),
        )
