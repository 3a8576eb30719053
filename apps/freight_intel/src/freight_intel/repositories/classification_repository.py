"""Persistence operations for email classifications."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from freight_intel.application.schemas.classification import ClassificationResult
from freight_intel.db.models.document_classification import DocumentClassification


class ClassificationRepository:
    """Repository keyed by ``email_id`` with replace-on-write semantics."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_email_id(self, email_id: str) -> DocumentClassification | None:
        """Fetch the stored classification for one email."""

        statement = select(DocumentClassification).where(
            DocumentClassification.email_id == email_id
        )
        return self._session.scalar(statement)

    def replace(
        self,
        result: ClassificationResult,
        *,
        sender_email: str | None,
        model_name: str,
        model_version: str,
    ) -> DocumentClassification:
        """Delete any prior row for the email and insert the new result."""

        self._session.execute(
            delete(DocumentClassification).where(
                DocumentClassification.email_id == result.email_id
            )
        )
        row = DocumentClassification(
            email_id=result.email_id,
            sender_email=sender_email,
            document_type=result.document_type,
            sub_type=result.sub_type,
            carrier_id=result.carrier_id,
            carrier_name=result.carrier_name,
            confidence=result.confidence,
            method=result.method,
            signal=result.signal,
            matched_pattern=result.matched_pattern,
            direction=result.direction,
            workflow_state=result.workflow_state,
            needs_manual_review=result.needs_manual_review,
            classification_reason=result.classification_reason,
            labels=list(result.labels),
            model_name=model_name,
            model_version=model_version,
            classified_at=datetime.now(tz=UTC),
        )
        self._session.add(row)
        self._session.flush()
        return row
