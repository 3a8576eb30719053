"""Pydantic schemas for classification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from freight_intel.application.schemas.classification import (
    ClassificationInput,
    ClassificationResult,
)
from freight_intel.application.services.classification_service import (
    ClassificationOutcome,
)
from freight_intel.db.models.document_classification import DocumentClassification
from freight_intel.domain.value_objects import (
    ClassificationMethod,
    Direction,
    SignalSource,
)


class ClassifyEmailRequest(BaseModel):
    """One email to classify."""

    email_id: str = Field(min_length=1, max_length=255)
    subject: str = Field(default="", max_length=2000)
    sender_email: str = Field(default="", max_length=320)
    true_sender_email: str | None = Field(default=None, max_length=320)
    body_text: str | None = None
    has_attachments: bool = False
    attachment_filenames: list[str] = Field(default_factory=list)
    attachment_content: str | None = None
    existing_doc_types_in_thread: list[str] = Field(default_factory=list)

    def to_input(self) -> ClassificationInput:
        return ClassificationInput(
            email_id=self.email_id,
            subject=self.subject,
            sender_email=self.sender_email,
            true_sender_email=self.true_sender_email,
            body_text=self.body_text,
            has_attachments=self.has_attachments or bool(self.attachment_filenames),
            attachment_filenames=tuple(self.attachment_filenames),
            attachment_content=self.attachment_content,
            existing_doc_types_in_thread=tuple(self.existing_doc_types_in_thread),
        )


class BatchClassifyRequest(BaseModel):
    emails: list[ClassifyEmailRequest] = Field(min_length=1, max_length=200)


class ClassificationResponse(BaseModel):
    """Classification result plus persistence outcome."""

    result: ClassificationResult
    saved: bool
    error: str | None = None

    @classmethod
    def from_outcome(cls, outcome: ClassificationOutcome) -> ClassificationResponse:
        return cls(result=outcome.result, saved=outcome.saved, error=outcome.error)


class BatchClassificationResponse(BaseModel):
    items: list[ClassificationResponse]
    saved_count: int
    failed_count: int

    @classmethod
    def from_outcomes(
        cls, outcomes: list[ClassificationOutcome]
    ) -> BatchClassificationResponse:
        saved = sum(1 for outcome in outcomes if outcome.saved)
        failed = sum(1 for outcome in outcomes if outcome.error is not None)
        return cls(
            items=[ClassificationResponse.from_outcome(item) for item in outcomes],
            saved_count=saved,
            failed_count=failed,
        )


class StoredClassificationResponse(BaseModel):
    """Persisted classification row."""

    email_id: str
    sender_email: str | None
    document_type: str
    sub_type: str | None
    carrier_id: str | None
    carrier_name: str | None
    confidence: int
    method: ClassificationMethod
    signal: SignalSource
    matched_pattern: str
    direction: Direction
    workflow_state: str | None
    needs_manual_review: bool
    classification_reason: str
    labels: list[str]
    model_name: str
    model_version: str
    classified_at: datetime

    @classmethod
    def from_model(cls, row: DocumentClassification) -> StoredClassificationResponse:
        return cls(
            email_id=row.email_id,
            sender_email=row.sender_email,
            document_type=row.document_type,
            sub_type=row.sub_type,
            carrier_id=row.carrier_id,
            carrier_name=row.carrier_name,
            confidence=row.confidence,
            method=row.method,
            signal=row.signal,
            matched_pattern=row.matched_pattern,
            direction=row.direction,
            workflow_state=row.workflow_state,
            needs_manual_review=row.needs_manual_review,
            classification_reason=row.classification_reason,
            labels=list(row.labels or []),
            model_name=row.model_name,
            model_version=row.model_version,
            classified_at=row.classified_at,
        )


class DetectDirectionRequest(BaseModel):
    sender_email: str = Field(min_length=1, max_length=320)
    subject: str | None = None
    true_sender_email: str | None = None


class DirectionResponse(BaseModel):
    direction: Direction
    is_reply: bool
    is_carrier_sender: bool
    is_internal_sender: bool
