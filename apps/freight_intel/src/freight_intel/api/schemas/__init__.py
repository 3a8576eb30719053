"""API request and response schemas."""

from freight_intel.api.schemas.classifications import (
    ClassificationResponse,
    ClassifyEmailRequest,
)
from freight_intel.api.schemas.extractions import ExtractionResponse
from freight_intel.api.schemas.workflow import (
    TransitionResponse,
    WorkflowStatusResponse,
)

__all__ = [
    "ClassificationResponse",
    "ClassifyEmailRequest",
    "ExtractionResponse",
    "TransitionResponse",
    "WorkflowStatusResponse",
]
