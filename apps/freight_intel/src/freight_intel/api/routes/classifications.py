"""Email classification routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from freight_intel.api.dependencies import (
    get_classification_orchestrator,
    get_classification_service,
)
from freight_intel.api.schemas.classifications import (
    BatchClassificationResponse,
    BatchClassifyRequest,
    ClassificationResponse,
    ClassifyEmailRequest,
    DetectDirectionRequest,
    DirectionResponse,
    StoredClassificationResponse,
)
from freight_intel.application.services.classification_orchestrator import (
    ClassificationOrchestrator,
)
from freight_intel.application.services.classification_service import (
    ClassificationOutcome,
    ClassificationService,
)
from freight_intel.domain.errors import ClassificationNotFoundError

router = APIRouter(prefix="/classifications", tags=["Classifications"])


@router.post(
    "",
    response_model=ClassificationResponse,
    responses={400: {"description": "Invalid payload"}},
)
def classify_email(
    payload: ClassifyEmailRequest,
    service: Annotated[ClassificationService, Depends(get_classification_service)],
    save: Annotated[bool, Query()] = True,
) -> ClassificationResponse:
    """Classify one email; ``saved`` is false when persistence failed or was skipped."""

    email = payload.to_input()
    if save:
        return ClassificationResponse.from_outcome(service.classify_and_save(email))
    return ClassificationResponse.from_outcome(
        ClassificationOutcome(result=service.classify(email), saved=False)
    )


@router.post(
    "/batch",
    response_model=BatchClassificationResponse,
    responses={400: {"description": "Invalid payload"}},
)
def classify_batch(
    payload: BatchClassifyRequest,
    service: Annotated[ClassificationService, Depends(get_classification_service)],
    save: Annotated[bool, Query()] = True,
) -> BatchClassificationResponse:
    """Classify several emails sequentially; each item succeeds or fails alone."""

    outcomes = service.classify_batch(
        [item.to_input() for item in payload.emails],
        save=save,
    )
    return BatchClassificationResponse.from_outcomes(outcomes)


@router.post("/direction", response_model=DirectionResponse)
def detect_direction(
    payload: DetectDirectionRequest,
    orchestrator: Annotated[
        ClassificationOrchestrator, Depends(get_classification_orchestrator)
    ],
) -> DirectionResponse:
    """Detect whether an email is inbound or outbound."""

    detector = orchestrator.direction_detector
    sender = payload.true_sender_email or payload.sender_email
    return DirectionResponse(
        direction=detector.detect(
            payload.sender_email, payload.subject, payload.true_sender_email
        ),
        is_reply=detector.is_reply(payload.subject),
        is_carrier_sender=detector.is_carrier_sender(sender),
        is_internal_sender=detector.is_internal_sender(sender),
    )


@router.get(
    "/{email_id}",
    response_model=StoredClassificationResponse,
    responses={404: {"description": "Classification not found"}},
)
def get_classification(
    email_id: str,
    service: Annotated[ClassificationService, Depends(get_classification_service)],
) -> StoredClassificationResponse:
    """Return the stored classification for one email."""

    row = service.get_classification(email_id)
    if row is None:
        raise ClassificationNotFoundError(details={"email_id": email_id})
    return StoredClassificationResponse.from_model(row)
