"""Forward-only shipment workflow state machine."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from freight_intel.db.models.document_classification import DocumentClassification
from freight_intel.db.models.shipment import Shipment
from freight_intel.db.models.workflow_transition import WorkflowTransition
from freight_intel.domain.errors import ShipmentNotFoundError
from freight_intel.domain.value_objects import Direction, TransitionType, WorkflowPhase
from freight_intel.domain.workflow.registry import (
    WorkflowCatalogue,
    WorkflowStateDefinition,
    WorkflowStateRegistry,
)
from freight_intel.domain.workflow.rules import (
    compute_progress,
    resolve_auto_target,
    valid_transitions,
    validate_transition,
)
from freight_intel.repositories.shipment_repository import (
    TransitionRecordCreate,
    WorkflowStateUpdate,
)

logger = logging.getLogger(__name__)


class SessionProtocol(Protocol):
    """Subset of SQLAlchemy session APIs used by the workflow service."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class ShipmentRepositoryProtocol(Protocol):
    """Shipment repository contract consumed by the workflow service."""

    def get(self, shipment_id: UUID) -> Shipment | None: ...

    def update_workflow_state(self, change: WorkflowStateUpdate) -> bool: ...

    def force_workflow_state(
        self,
        shipment: Shipment,
        *,
        state: str,
        phase: WorkflowPhase,
    ) -> Shipment: ...

    def add_transition(self, payload: TransitionRecordCreate) -> WorkflowTransition: ...

    def list_transitions(self, shipment_id: UUID) -> list[WorkflowTransition]: ...


class ClassificationLookupProtocol(Protocol):
    """Read access to persisted classifications."""

    def get_by_email_id(self, email_id: str) -> DocumentClassification | None: ...


@dataclass(slots=True, frozen=True)
class TransitionResult:
    """Outcome of a transition attempt; rejections are not exceptions."""

    success: bool
    from_state: str | None
    to_state: str | None
    transition_id: UUID | None = None
    error: str | None = None


@dataclass(slots=True, frozen=True)
class WorkflowStatus:
    shipment_id: UUID
    current_state: str | None
    current_phase: WorkflowPhase | None
    state_name: str | None
    progress_percentage: int
    next_states: tuple[str, ...]
    is_complete: bool


class WorkflowStateService:
    """Validate and apply workflow transitions for shipments."""

    def __init__(
        self,
        *,
        session: SessionProtocol,
        shipment_repository: ShipmentRepositoryProtocol,
        classification_repository: ClassificationLookupProtocol,
        registry: WorkflowStateRegistry,
    ) -> None:
        self._session = session
        self._shipments = shipment_repository
        self._classifications = classification_repository
        self._registry = registry

    def transition_to(
        self,
        shipment_id: UUID,
        target_state: str,
        *,
        skip_validation: bool = False,
        document_type: str | None = None,
        email_id: str | None = None,
        notes: str | None = None,
        transition_type: TransitionType = TransitionType.MANUAL,
    ) -> TransitionResult:
        """Move a shipment to ``target_state`` and append an audit row.

        ``skip_validation`` is for trusted automatic transitions: it skips
        the edge, ordering and skip-ahead checks but never the existence or
        terminal-state checks.
        """

        shipment = self._get_shipment(shipment_id)
        from_state = shipment.workflow_state
        error = validate_transition(
            self._registry,
            from_state,
            target_state,
            skip_validation=skip_validation,
        )
        if error is not None:
            return self._reject(shipment_id, from_state, target_state, error)

        target = self._registry.require(target_state)
        if from_state is None:
            transition_type = TransitionType.INITIAL

        try:
            applied = self._shipments.update_workflow_state(
                WorkflowStateUpdate(
                    shipment_id=shipment.id,
                    expected_version=shipment.version,
                    state=target.code,
                    phase=target.phase,
                )
            )
            if not applied:
                self._session.rollback()
                return self._reject(
                    shipment_id,
                    from_state,
                    target_state,
                    "Concurrent update detected for this shipment; reload and retry.",
                )
            transition = self._shipments.add_transition(
                TransitionRecordCreate(
                    shipment_id=shipment.id,
                    from_state=from_state,
                    to_state=target.code,
                    transition_type=transition_type,
                    triggered_by_document_type=document_type,
                    triggered_by_email_id=email_id,
                    notes=notes,
                )
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info(
            "workflow_transitioned",
            extra={
                "shipment_id": str(shipment_id),
                "from_state": from_state,
                "to_state": target.code,
                "transition_type": transition_type.value,
                "document_type": document_type,
            },
        )
        return TransitionResult(
            success=True,
            from_state=from_state,
            to_state=target.code,
            transition_id=transition.id,
        )

    def force_set_state(self, shipment_id: UUID, state: str) -> Shipment:
        """Overwrite the state for data migration: no validation, no audit row."""

        shipment = self._get_shipment(shipment_id)
        definition = self._registry.require(state)
        previous_state = shipment.workflow_state
        try:
            self._shipments.force_workflow_state(
                shipment, state=definition.code, phase=definition.phase
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.warning(
            "workflow_state_forced",
            extra={
                "shipment_id": str(shipment_id),
                "from_state": previous_state,
                "to_state": definition.code,
            },
        )
        return shipment

    def auto_transition_from_document(
        self,
        shipment_id: UUID,
        document_type: str,
        email_id: str | None = None,
        *,
        direction: Direction | None = None,
        sender_email: str | None = None,
    ) -> TransitionResult:
        """Advance the shipment from a newly classified document, forward only."""

        shipment = self._get_shipment(shipment_id)
        resolved_direction, resolved_sender = self._resolve_origin(
            email_id, direction, sender_email
        )
        current = self._registry.get(shipment.workflow_state)
        if current is not None and current.is_terminal:
            return self._reject(
                shipment_id,
                current.code,
                None,
                f"Shipment is in terminal state {current.code}",
            )

        target = resolve_auto_target(
            self._registry,
            shipment.workflow_state,
            document_type,
            resolved_direction,
            resolved_sender,
        )
        if target is None:
            return self._reject(
                shipment_id,
                shipment.workflow_state,
                None,
                f"No forward workflow state for {document_type}:{resolved_direction}",
            )

        return self.transition_to(
            shipment_id,
            target.code,
            skip_validation=True,
            document_type=document_type,
            email_id=email_id,
            notes=f"Auto-transition from {document_type} ({resolved_direction}).",
            transition_type=TransitionType.AUTOMATIC,
        )

    def initialize_workflow(self, shipment_id: UUID) -> TransitionResult:
        shipment = self._get_shipment(shipment_id)
        if shipment.workflow_state is not None:
            return self._reject(
                shipment_id,
                shipment.workflow_state,
                None,
                "Workflow already initialized",
            )
        return self.transition_to(
            shipment_id,
            self._registry.catalogue.initial_state,
            transition_type=TransitionType.INITIAL,
            notes="Workflow initialized.",
        )

    def get_shipment_workflow_status(self, shipment_id: UUID) -> WorkflowStatus:
        shipment = self._get_shipment(shipment_id)
        current = self._registry.get(shipment.workflow_state)
        return WorkflowStatus(
            shipment_id=shipment.id,
            current_state=shipment.workflow_state,
            current_phase=current.phase if current else shipment.workflow_phase,
            state_name=current.label if current else None,
            progress_percentage=compute_progress(
                self._registry, shipment.workflow_state
            ),
            next_states=current.next_states if current else (),
            is_complete=bool(current and current.is_terminal),
        )

    def get_valid_transitions(self, shipment_id: UUID) -> list[WorkflowStateDefinition]:
        shipment = self._get_shipment(shipment_id)
        return valid_transitions(self._registry, shipment.workflow_state)

    @property
    def catalogue_version(self) -> str:
        return self._registry.catalogue.version

    def get_state(self, state: str) -> WorkflowStateDefinition | None:
        return self._registry.get(state)

    def get_all_states(self) -> list[WorkflowStateDefinition]:
        return self._registry.all_states()

    def can_skip_state(self, state: str) -> bool:
        return self._registry.require(state).is_optional

    def get_states_in_phase(
        self, phase: WorkflowPhase
    ) -> list[WorkflowStateDefinition]:
        return self._registry.states_in_phase(phase)

    def get_workflow_history(self, shipment_id: UUID) -> list[WorkflowTransition]:
        self._get_shipment(shipment_id)
        return self._shipments.list_transitions(shipment_id)

    def get_workflow_state_for_document(
        self,
        document_type: str,
        direction: Direction,
        sender_email: str | None = None,
    ) -> str | None:
        return self._registry.state_for_document(document_type, direction, sender_email)

    def refresh_cache(self) -> WorkflowCatalogue:
        return self._registry.refresh()

    def _get_shipment(self, shipment_id: UUID) -> Shipment:
        shipment = self._shipments.get(shipment_id)
        if shipment is None:
            raise ShipmentNotFoundError(details={"shipment_id": str(shipment_id)})
        return shipment

    def _resolve_origin(
        self,
        email_id: str | None,
        direction: Direction | None,
        sender_email: str | None,
    ) -> tuple[Direction, str | None]:
        if email_id and (direction is None or sender_email is None):
            stored = self._classifications.get_by_email_id(email_id)
            if stored is not None:
                direction = direction or stored.direction
                sender_email = sender_email or stored.sender_email
        return direction or Direction.INBOUND, sender_email

    @staticmethod
    def _reject(
        shipment_id: UUID,
        from_state: str | None,
        to_state: str | None,
        error: str,
    ) -> TransitionResult:
        logger.info(
            "workflow_transition_rejected",
            extra={
                "shipment_id": str(shipment_id),
                "from_state": from_state,
                "to_state": to_state,
                "error": error,
            },
        )
        return TransitionResult(
            success=False,
            from_state=from_state,
            to_state=to_state,
            error=error,
        )
