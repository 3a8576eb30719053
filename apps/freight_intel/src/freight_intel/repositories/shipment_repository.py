"""Persistence operations for shipments and their workflow transitions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from freight_intel.db.models.shipment import Shipment
from freight_intel.db.models.workflow_transition import WorkflowTransition
from freight_intel.domain.value_objects import TransitionType, WorkflowPhase


@dataclass(slots=True, frozen=True)
class WorkflowStateUpdate:
    """Conditional state update guarded by the shipment version."""

    shipment_id: UUID
    expected_version: int
    state: str
    phase: WorkflowPhase


@dataclass(slots=True, frozen=True)
class TransitionRecordCreate:
    """Input payload used to append one audit row."""

    shipment_id: UUID
    from_state: str | None
    to_state: str
    transition_type: TransitionType
    triggered_by_document_type: str | None = None
    triggered_by_email_id: str | None = None
    notes: str | None = None


class ShipmentRepository:
    """Repository for shipment workflow fields and the transition log."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, shipment_id: UUID) -> Shipment | None:
        """Fetch shipment by id."""

        statement = select(Shipment).where(Shipment.id == shipment_id)
        return self._session.scalar(statement)

    def add(
        self,
        *,
        reference: str | None = None,
        booking_number: str | None = None,
        carrier_id: str | None = None,
    ) -> Shipment:
        """Persist a new shipment without a workflow state."""

        now = datetime.now(tz=UTC)
        shipment = Shipment(
            reference=reference,
            booking_number=booking_number,
            carrier_id=carrier_id,
            workflow_state=None,
            workflow_phase=None,
            workflow_state_updated_at=None,
            version=1,
            created_at=now,
            updated_at=now,
        )
        self._session.add(shipment)
        self._session.flush()
        return shipment

    def update_workflow_state(self, change: WorkflowStateUpdate) -> bool:
        """Apply the change only if nobody bumped the version since it was read."""

        now = datetime.now(tz=UTC)
        statement = (
            update(Shipment)
            .where(
                Shipment.id == change.shipment_id,
                Shipment.version == change.expected_version,
            )
            .values(
                workflow_state=change.state,
                workflow_phase=change.phase,
                workflow_state_updated_at=now,
                updated_at=now,
                version=Shipment.version + 1,
            )
            .execution_options(synchronize_session="evaluate")
        )
        result = self._session.execute(statement)
        return result.rowcount == 1

    def force_workflow_state(
        self,
        shipment: Shipment,
        *,
        state: str,
        phase: WorkflowPhase,
    ) -> Shipment:
        """Overwrite workflow fields without any ordering checks."""

        now = datetime.now(tz=UTC)
        shipment.workflow_state = state
        shipment.workflow_phase = phase
        shipment.workflow_state_updated_at = now
        shipment.updated_at = now
        shipment.version += 1
        self._session.flush()
        return shipment

    def add_transition(self, payload: TransitionRecordCreate) -> WorkflowTransition:
        """Append one workflow transition audit row."""

        transition = WorkflowTransition(
            shipment_id=payload.shipment_id,
            from_state=payload.from_state,
            to_state=payload.to_state,
            transition_type=payload.transition_type,
            triggered_by_document_type=payload.triggered_by_document_type,
            triggered_by_email_id=payload.triggered_by_email_id,
            notes=payload.notes,
            created_at=datetime.now(tz=UTC),
        )
        self._session.add(transition)
        self._session.flush()
        return transition

    def list_transitions(self, shipment_id: UUID) -> list[WorkflowTransition]:
        """List transitions for one shipment, oldest first."""

        statement = (
            select(WorkflowTransition)
            .where(WorkflowTransition.shipment_id == shipment_id)
            .order_by(WorkflowTransition.created_at.asc(), WorkflowTransition.id.asc())
        )
        return list(self._session.scalars(statement))
