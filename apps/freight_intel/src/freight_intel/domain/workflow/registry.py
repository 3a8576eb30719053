"""Workflow state catalogue with an explicit TTL cache."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from freight_intel.core.settings import get_settings
from freight_intel.domain.errors import UnknownWorkflowStateError
from freight_intel.domain.value_objects import Direction, WorkflowPhase
from freight_intel.patterns.loader import read_table
from freight_intel.patterns.schema import WorkflowCatalogueDocument

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class WorkflowStateDefinition:
    code: str
    label: str
    phase: WorkflowPhase
    order: int
    document_types: tuple[str, ...]
    direction: str
    next_states: tuple[str, ...]
    is_optional: bool
    is_milestone: bool
    is_terminal: bool


@dataclass(slots=True, frozen=True)
class WorkflowCatalogue:
    """Immutable snapshot of every state plus the document mapping tables."""

    version: str
    initial_state: str
    states: Mapping[str, WorkflowStateDefinition]
    document_state_map: Mapping[str, str]
    si_document_types: frozenset[str]
    carrier_sender_keywords: tuple[str, ...]


def load_workflow_catalogue(directory: str | None = None) -> WorkflowCatalogue:
    """Read ``workflow_states.json`` and return an ordered catalogue."""

    base = Path(directory) if directory else None
    document = read_table("workflow_states.json", WorkflowCatalogueDocument, base)
    ordered = sorted(document.states, key=lambda state: state.order)
    states = {
        row.code: WorkflowStateDefinition(
            code=row.code,
            label=row.label,
            phase=row.phase,
            order=row.order,
            document_types=tuple(row.document_types),
            direction=row.direction,
            next_states=tuple(row.next_states),
            is_optional=row.is_optional,
            is_milestone=row.is_milestone,
            is_terminal=row.is_terminal,
        )
        for row in ordered
    }
    return WorkflowCatalogue(
        version=document.version,
        initial_state=document.initial_state,
        states=MappingProxyType(states),
        document_state_map=MappingProxyType(dict(document.document_state_map)),
        si_document_types=frozenset(document.si_document_types),
        carrier_sender_keywords=tuple(
            keyword.lower() for keyword in document.carrier_sender_keywords
        ),
    )


def default_catalogue_loader() -> WorkflowCatalogue:
    return load_workflow_catalogue(get_settings().pattern_tables_dir)


class WorkflowStateRegistry:
    """Cached access to state definitions.

    The catalogue is reloaded through ``loader`` once ``ttl_seconds`` have
    elapsed on ``clock``, or immediately on ``refresh()``.
    """

    def __init__(
        self,
        loader: Callable[[], WorkflowCatalogue] = default_catalogue_loader,
        *,
        ttl_seconds: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._catalogue: WorkflowCatalogue | None = None
        self._loaded_at = 0.0

    @property
    def catalogue(self) -> WorkflowCatalogue:
        if self._catalogue is None or (
            self._clock() - self._loaded_at >= self._ttl_seconds
        ):
            return self.refresh()
        return self._catalogue

    def refresh(self) -> WorkflowCatalogue:
        catalogue = self._loader()
        self._catalogue = catalogue
        self._loaded_at = self._clock()
        logger.info(
            "workflow_cache_refreshed",
            extra={"version": catalogue.version, "states": len(catalogue.states)},
        )
        return catalogue

    def get(self, code: str | None) -> WorkflowStateDefinition | None:
        if not code:
            return None
        return self.catalogue.states.get(code)

    def require(self, code: str) -> WorkflowStateDefinition:
        definition = self.get(code)
        if definition is None:
            raise UnknownWorkflowStateError(details={"state": code})
        return definition

    @property
    def initial_state(self) -> WorkflowStateDefinition:
        return self.require(self.catalogue.initial_state)

    def all_states(self) -> list[WorkflowStateDefinition]:
        return list(self.catalogue.states.values())

    def states_in_phase(self, phase: WorkflowPhase) -> list[WorkflowStateDefinition]:
        return [state for state in self.all_states() if state.phase == phase]

    def states_between(
        self, lower_order: int, upper_order: int
    ) -> list[WorkflowStateDefinition]:
        """States whose order lies strictly between the two bounds."""

        return [
            state
            for state in self.all_states()
            if lower_order < state.order < upper_order
        ]

    def progress_bounds(self) -> tuple[int, int]:
        orders = [state.order for state in self.all_states() if not state.is_terminal]
        if not orders:
            return (0, 0)
        return (min(orders), max(orders))

    def is_carrier_sender(self, sender_email: str | None) -> bool:
        lowered = (sender_email or "").lower()
        return bool(lowered) and any(
            keyword in lowered for keyword in self.catalogue.carrier_sender_keywords
        )

    def state_for_document(
        self,
        document_type: str,
        direction: Direction | str,
        sender_email: str | None = None,
    ) -> str | None:
        """Resolve ``(document_type, direction)`` to a state code.

        Shipping-instruction types mean different things depending on who
        sent them, so they are resolved from the sender before the static
        ``"{document_type}:{direction}"`` table is consulted.
        """

        direction_value = Direction(direction)
        catalogue = self.catalogue
        if document_type in catalogue.si_document_types:
            if direction_value == Direction.INBOUND:
                if document_type == "si_submission" or self.is_carrier_sender(
                    sender_email
                ):
                    return "si_confirmed"
                return "si_draft_received"
            if document_type == "si_submission":
                return "si_submitted"
            return "si_draft_sent"
        return catalogue.document_state_map.get(f"{document_type}:{direction_value}")

    def candidate_states(self, document_type: str) -> list[WorkflowStateDefinition]:
        """States that list ``document_type``, ascending by order."""

        return [
            state
            for state in self.all_states()
            if document_type in state.document_types
        ]
