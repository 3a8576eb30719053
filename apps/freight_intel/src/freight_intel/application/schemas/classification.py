"""Schemas for the email classification pipeline."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from freight_intel.domain.value_objects import (
    ClassificationMethod,
    Direction,
    SignalSource,
)


class ClassificationInput(BaseModel):
    """One email as seen by the classifier."""

    model_config = ConfigDict(frozen=True)

    email_id: str = Field(min_length=1)
    subject: str = ""
    sender_email: str = ""
    true_sender_email: str | None = None
    body_text: str | None = None
    has_attachments: bool = False
    attachment_filenames: tuple[str, ...] = ()
    attachment_content: str | None = None
    existing_doc_types_in_thread: tuple[str, ...] = ()

    @property
    def has_pdf_attachment(self) -> bool:
        return any(name.lower().endswith(".pdf") for name in self.attachment_filenames)


class ClassificationResult(BaseModel):
    """Immutable outcome of classifying one email."""

    model_config = ConfigDict(frozen=True)

    email_id: str
    document_type: str
    sub_type: str | None = None
    carrier_id: str | None = None
    carrier_name: str | None = None
    confidence: int = Field(ge=0, le=100)
    method: ClassificationMethod
    matched_pattern: str
    signal: SignalSource
    direction: Direction
    workflow_state: str | None = None
    needs_manual_review: bool
    classification_reason: str
    labels: tuple[str, ...] = ()


class AIClassificationRequest(BaseModel):
    """Fields forwarded to the AI fallback."""

    model_config = ConfigDict(frozen=True)

    subject: str
    sender_email: str
    body_text: str | None = None
    attachment_filenames: tuple[str, ...] = ()
    attachment_content: str | None = None


class AIClassification(BaseModel):
    """Validated structured output of the AI fallback."""

    document_type: str = Field(min_length=1)
    sub_type: str | None = None
    confidence: int = Field(ge=0, le=100)
    labels: list[str] = Field(default_factory=list)
    carrier: str | None = None
    reasoning: str = ""
