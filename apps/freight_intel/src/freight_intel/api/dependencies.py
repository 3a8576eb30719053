"""API dependency providers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from freight_intel.application.services.classification_orchestrator import (
    ClassificationOrchestrator,
    build_orchestrator,
)
from freight_intel.application.services.classification_service import (
    ClassificationService,
)
from freight_intel.core.settings import get_settings
from freight_intel.db.session import get_db_session
from freight_intel.domain.extraction.extractor import RegexExtractor
from freight_intel.domain.workflow.registry import WorkflowStateRegistry
from freight_intel.repositories.classification_repository import (
    ClassificationRepository,
)
from freight_intel.repositories.shipment_repository import ShipmentRepository
from freight_intel.services.shipment_service import ShipmentService
from freight_intel.services.workflow_state_service import WorkflowStateService


@lru_cache(maxsize=1)
def get_workflow_registry() -> WorkflowStateRegistry:
    """Process-wide state registry with the configured cache TTL."""

    return WorkflowStateRegistry(
        ttl_seconds=get_settings().workflow_cache_ttl_seconds,
    )


@lru_cache(maxsize=1)
def get_classification_orchestrator() -> ClassificationOrchestrator:
    """Build the orchestrator once: pattern tables compile at first use."""

    return build_orchestrator(get_settings(), get_workflow_registry())


def get_regex_extractor() -> RegexExtractor:
    return RegexExtractor()


def get_classification_service(
    session: Annotated[Session, Depends(get_db_session)],
    orchestrator: Annotated[
        ClassificationOrchestrator, Depends(get_classification_orchestrator)
    ],
) -> ClassificationService:
    """Build classification service with per-request session."""

    settings = get_settings()
    return ClassificationService(
        session=session,
        classifier=orchestrator,
        repository=ClassificationRepository(session),
        ai_model_name=settings.openai_model if orchestrator.ai_enabled else None,
        prompt_version=settings.prompt_version,
    )


def get_shipment_service(
    session: Annotated[Session, Depends(get_db_session)],
) -> ShipmentService:
    """Build shipment service with per-request session."""

    return ShipmentService(session=session, repository=ShipmentRepository(session))


def get_workflow_state_service(
    session: Annotated[Session, Depends(get_db_session)],
    registry: Annotated[WorkflowStateRegistry, Depends(get_workflow_registry)],
) -> WorkflowStateService:
    """Build workflow service sharing the process-wide state registry."""

    return WorkflowStateService(
        session=session,
        shipment_repository=ShipmentRepository(session),
        classification_repository=ClassificationRepository(session),
        registry=registry,
    )
