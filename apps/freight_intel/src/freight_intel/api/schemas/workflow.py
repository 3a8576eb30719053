"""Pydantic schemas for shipment and workflow endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from freight_intel.db.models.shipment import Shipment
from freight_intel.db.models.workflow_transition import WorkflowTransition
from freight_intel.domain.value_objects import Direction, TransitionType, WorkflowPhase
from freight_intel.domain.workflow.registry import WorkflowStateDefinition
from freight_intel.services.workflow_state_service import (
    TransitionResult,
    WorkflowStatus,
)


class CreateShipmentRequest(BaseModel):
    reference: str | None = Field(default=None, max_length=64)
    booking_number: str | None = Field(default=None, max_length=64)
    carrier_id: str | None = Field(default=None, max_length=64)


class ShipmentResponse(BaseModel):
    id: UUID
    reference: str | None
    booking_number: str | None
    carrier_id: str | None
    workflow_state: str | None
    workflow_phase: WorkflowPhase | None
    workflow_state_updated_at: datetime | None
    version: int

    @classmethod
    def from_model(cls, shipment: Shipment) -> ShipmentResponse:
        return cls(
            id=shipment.id,
            reference=shipment.reference,
            booking_number=shipment.booking_number,
            carrier_id=shipment.carrier_id,
            workflow_state=shipment.workflow_state,
            workflow_phase=shipment.workflow_phase,
            workflow_state_updated_at=shipment.workflow_state_updated_at,
            version=shipment.version,
        )


class TransitionRequest(BaseModel):
    target_state: str = Field(min_length=1, max_length=64)
    skip_validation: bool = False
    document_type: str | None = Field(default=None, max_length=64)
    email_id: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=2000)


class AutoTransitionRequest(BaseModel):
    document_type: str = Field(min_length=1, max_length=64)
    email_id: str | None = Field(default=None, max_length=255)
    direction: Direction | None = None
    sender_email: str | None = Field(default=None, max_length=320)


class ForceStateRequest(BaseModel):
    state: str = Field(min_length=1, max_length=64)


class TransitionResponse(BaseModel):
    success: bool
    from_state: str | None
    to_state: str | None
    transition_id: UUID | None = None
    error: str | None = None

    @classmethod
    def from_result(cls, result: TransitionResult) -> TransitionResponse:
        return cls(
            success=result.success,
            from_state=result.from_state,
            to_state=result.to_state,
            transition_id=result.transition_id,
            error=result.error,
        )


class WorkflowStatusResponse(BaseModel):
    shipment_id: UUID
    current_state: str | None
    current_phase: WorkflowPhase | None
    state_name: str | None
    progress_percentage: int
    next_states: list[str]
    is_complete: bool

    @classmethod
    def from_status(cls, status: WorkflowStatus) -> WorkflowStatusResponse:
        return cls(
            shipment_id=status.shipment_id,
            current_state=status.current_state,
            current_phase=status.current_phase,
            state_name=status.state_name,
            progress_percentage=status.progress_percentage,
            next_states=list(status.next_states),
            is_complete=status.is_complete,
        )


class WorkflowStateResponse(BaseModel):
    code: str
    label: str
    phase: WorkflowPhase
    order: int
    document_types: list[str]
    direction: str
    next_states: list[str]
    is_optional: bool
    is_milestone: bool
    is_terminal: bool

    @classmethod
    def from_definition(cls, state: WorkflowStateDefinition) -> WorkflowStateResponse:
        return cls(
            code=state.code,
            label=state.label,
            phase=state.phase,
            order=state.order,
            document_types=list(state.document_types),
            direction=state.direction,
            next_states=list(state.next_states),
            is_optional=state.is_optional,
            is_milestone=state.is_milestone,
            is_terminal=state.is_terminal,
        )


class WorkflowStateListResponse(BaseModel):
    version: str
    states: list[WorkflowStateResponse]

    @classmethod
    def from_definitions(
        cls, version: str, states: list[WorkflowStateDefinition]
    ) -> WorkflowStateListResponse:
        return cls(
            version=version,
            states=[WorkflowStateResponse.from_definition(item) for item in states],
        )


class TransitionHistoryItem(BaseModel):
    id: UUID
    from_state: str | None
    to_state: str
    transition_type: TransitionType
    triggered_by_document_type: str | None
    triggered_by_email_id: str | None
    notes: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, row: WorkflowTransition) -> TransitionHistoryItem:
        return cls(
            id=row.id,
            from_state=row.from_state,
            to_state=row.to_state,
            transition_type=row.transition_type,
            triggered_by_document_type=row.triggered_by_document_type,
            triggered_by_email_id=row.triggered_by_email_id,
            notes=row.notes,
            created_at=row.created_at,
        )


class TransitionHistoryResponse(BaseModel):
    shipment_id: UUID
    transitions: list[TransitionHistoryItem]


class DocumentStateResponse(BaseModel):
    document_type: str
    direction: Direction
    workflow_state: str | None
