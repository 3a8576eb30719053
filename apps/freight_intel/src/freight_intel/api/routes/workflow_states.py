"""Workflow state catalogue routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from freight_intel.api.dependencies import get_workflow_state_service
from freight_intel.api.schemas.workflow import (
    DocumentStateResponse,
    WorkflowStateListResponse,
    WorkflowStateResponse,
)
from freight_intel.domain.errors import UnknownWorkflowStateError
from freight_intel.domain.value_objects import Direction, WorkflowPhase
from freight_intel.services.workflow_state_service import WorkflowStateService

router = APIRouter(prefix="/workflow", tags=["Workflow States"])

WorkflowService = Annotated[WorkflowStateService, Depends(get_workflow_state_service)]


@router.get("/states", response_model=WorkflowStateListResponse)
def list_workflow_states(
    service: WorkflowService,
    phase: Annotated[WorkflowPhase | None, Query()] = None,
) -> WorkflowStateListResponse:
    """List state definitions ordered by workflow order."""

    states = (
        service.get_states_in_phase(phase)
        if phase is not None
        else service.get_all_states()
    )
    return WorkflowStateListResponse.from_definitions(service.catalogue_version, states)


@router.get(
    "/states/{state_code}",
    response_model=WorkflowStateResponse,
    responses={422: {"description": "Unknown workflow state"}},
)
def get_workflow_state(
    state_code: str,
    service: WorkflowService,
) -> WorkflowStateResponse:
    state = service.get_state(state_code)
    if state is None:
        raise UnknownWorkflowStateError(details={"state": state_code})
    return WorkflowStateResponse.from_definition(state)


@router.get("/document-state", response_model=DocumentStateResponse)
def resolve_document_state(
    service: WorkflowService,
    document_type: Annotated[str, Query(min_length=1, max_length=64)],
    direction: Annotated[Direction, Query()],
    sender_email: Annotated[str | None, Query(max_length=320)] = None,
) -> DocumentStateResponse:
    """Resolve which workflow state a document type maps to."""

    return DocumentStateResponse(
        document_type=document_type,
        direction=direction,
        workflow_state=service.get_workflow_state_for_document(
            document_type, direction, sender_email
        ),
    )


@router.post("/cache/refresh", response_model=WorkflowStateListResponse)
def refresh_workflow_cache(service: WorkflowService) -> WorkflowStateListResponse:
    """Reload state definitions immediately instead of waiting for the TTL."""

    catalogue = service.refresh_cache()
    return WorkflowStateListResponse.from_definitions(
        catalogue.version, list(catalogue.states.values())
    )
