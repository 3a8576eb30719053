"""Shipment and shipment workflow routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from freight_intel.api.dependencies import (
    get_shipment_service,
    get_workflow_state_service,
)
from freight_intel.api.schemas.workflow import (
    AutoTransitionRequest,
    CreateShipmentRequest,
    ForceStateRequest,
    ShipmentResponse,
    TransitionHistoryItem,
    TransitionHistoryResponse,
    TransitionRequest,
    TransitionResponse,
    WorkflowStateListResponse,
    WorkflowStatusResponse,
)
from freight_intel.services.shipment_service import (
    CreateShipmentInput,
    ShipmentService,
)
from freight_intel.services.workflow_state_service import (
    TransitionResult,
    WorkflowStateService,
)

router = APIRouter(prefix="/shipments", tags=["Shipments"])

WorkflowService = Annotated[WorkflowStateService, Depends(get_workflow_state_service)]

TRANSITION_RESPONSES: dict[int | str, dict[str, str]] = {
    404: {"description": "Shipment not found"},
    422: {"description": "Transition rejected by workflow rules"},
}


def _transition_response(
    result: TransitionResult, response: Response
) -> TransitionResponse:
    if not result.success:
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    return TransitionResponse.from_result(result)


@router.post(
    "",
    response_model=ShipmentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid payload"}},
)
def create_shipment(
    payload: CreateShipmentRequest,
    service: Annotated[ShipmentService, Depends(get_shipment_service)],
) -> ShipmentResponse:
    """Create one shipment without a workflow state."""

    shipment = service.create_shipment(
        CreateShipmentInput(
            reference=payload.reference,
            booking_number=payload.booking_number,
            carrier_id=payload.carrier_id,
        )
    )
    return ShipmentResponse.from_model(shipment)


@router.get(
    "/{shipment_id}",
    response_model=ShipmentResponse,
    responses={404: {"description": "Shipment not found"}},
)
def get_shipment(
    shipment_id: UUID,
    service: Annotated[ShipmentService, Depends(get_shipment_service)],
) -> ShipmentResponse:
    return ShipmentResponse.from_model(service.get_shipment(shipment_id))


@router.get(
    "/{shipment_id}/workflow",
    response_model=WorkflowStatusResponse,
    responses={404: {"description": "Shipment not found"}},
)
def get_workflow_status(
    shipment_id: UUID,
    service: WorkflowService,
) -> WorkflowStatusResponse:
    """Current state, phase and progress for one shipment."""

    return WorkflowStatusResponse.from_status(
        service.get_shipment_workflow_status(shipment_id)
    )


@router.post(
    "/{shipment_id}/workflow/initialize",
    response_model=TransitionResponse,
    responses=TRANSITION_RESPONSES,
)
def initialize_workflow(
    shipment_id: UUID,
    service: WorkflowService,
    response: Response,
) -> TransitionResponse:
    return _transition_response(service.initialize_workflow(shipment_id), response)


@router.post(
    "/{shipment_id}/workflow/transitions",
    response_model=TransitionResponse,
    responses=TRANSITION_RESPONSES,
)
def transition_shipment(
    shipment_id: UUID,
    payload: TransitionRequest,
    service: WorkflowService,
    response: Response,
) -> TransitionResponse:
    """Move a shipment forward; rejected moves answer 422 with the reason."""

    result = service.transition_to(
        shipment_id,
        payload.target_state,
        skip_validation=payload.skip_validation,
        document_type=payload.document_type,
        email_id=payload.email_id,
        notes=payload.notes,
    )
    return _transition_response(result, response)


@router.post(
    "/{shipment_id}/workflow/auto-transition",
    response_model=TransitionResponse,
    responses=TRANSITION_RESPONSES,
)
def auto_transition_shipment(
    shipment_id: UUID,
    payload: AutoTransitionRequest,
    service: WorkflowService,
    response: Response,
) -> TransitionResponse:
    """Advance a shipment from a classified document."""

    result = service.auto_transition_from_document(
        shipment_id,
        payload.document_type,
        payload.email_id,
        direction=payload.direction,
        sender_email=payload.sender_email,
    )
    return _transition_response(result, response)


@router.get(
    "/{shipment_id}/workflow/valid-transitions",
    response_model=WorkflowStateListResponse,
    responses={404: {"description": "Shipment not found"}},
)
def list_valid_transitions(
    shipment_id: UUID,
    service: WorkflowService,
) -> WorkflowStateListResponse:
    states = service.get_valid_transitions(shipment_id)
    return WorkflowStateListResponse.from_definitions(service.catalogue_version, states)


@router.get(
    "/{shipment_id}/workflow/history",
    response_model=TransitionHistoryResponse,
    responses={404: {"description": "Shipment not found"}},
)
def get_workflow_history(
    shipment_id: UUID,
    service: WorkflowService,
) -> TransitionHistoryResponse:
    """Audit trail of transitions, oldest first."""

    rows = service.get_workflow_history(shipment_id)
    return TransitionHistoryResponse(
        shipment_id=shipment_id,
        transitions=[TransitionHistoryItem.from_model(row) for row in rows],
    )


@router.put(
    "/{shipment_id}/workflow/state",
    response_model=ShipmentResponse,
    responses={
        404: {"description": "Shipment not found"},
        422: {"description": "Unknown workflow state"},
    },
)
def force_workflow_state(
    shipment_id: UUID,
    payload: ForceStateRequest,
    service: WorkflowService,
) -> ShipmentResponse:
    """Overwrite the workflow state for data migration. Writes no audit row."""

    shipment = service.force_set_state(shipment_id, payload.state)
    return ShipmentResponse.from_model(shipment)
