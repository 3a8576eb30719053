"""Shared enumerations for classification and workflow tracking."""

from __future__ import annotations

from enum import StrEnum


class Direction(StrEnum):
    """Message direction relative to the internal operations team."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


class ClassificationMethod(StrEnum):
    """How a classification was produced."""

    DETERMINISTIC = "deterministic"
    AI = "ai"


class SignalSource(StrEnum):
    """Signal category that produced the winning match."""

    ATTACHMENT = "attachment"
    BODY = "body"
    SUBJECT = "subject"
    CARRIER = "carrier"
    INTERNAL = "internal"
    PARTNER = "partner"
    CONTENT = "content"
    AI = "ai"
    THREAD = "thread"
    FALLBACK = "fallback"


class WorkflowPhase(StrEnum):
    """Ordered shipment lifecycle phases."""

    PRE_SHIPMENT = "pre_shipment"
    IN_TRANSIT = "in_transit"
    ARRIVAL = "arrival"
    DELIVERY = "delivery"

    @property
    def rank(self) -> int:
        return list(WorkflowPhase).index(self)


class TransitionType(StrEnum):
    """Origin of a persisted workflow transition."""

    INITIAL = "initial"
    MANUAL = "manual"
    AUTOMATIC = "automatic"


GENERAL_CORRESPONDENCE = "general_correspondence"
MIN_CONFIDENCE_THRESHOLD = 70
