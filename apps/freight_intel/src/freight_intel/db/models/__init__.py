"""ORM models for the freight_intel domain."""

from freight_intel.db.models.document_classification import DocumentClassification
from freight_intel.db.models.shipment import Shipment
from freight_intel.db.models.workflow_transition import WorkflowTransition

__all__ = [
    "DocumentClassification",
    "Shipment",
    "WorkflowTransition",
]
