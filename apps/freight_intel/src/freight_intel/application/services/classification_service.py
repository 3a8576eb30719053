"""Classify emails and persist the result with replace semantics."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from freight_intel.application.schemas.classification import (
    ClassificationInput,
    ClassificationResult,
)
from freight_intel.db.models.document_classification import DocumentClassification
from freight_intel.domain.value_objects import ClassificationMethod

logger = logging.getLogger(__name__)

DETERMINISTIC_MODEL_NAME = "pattern_tables"


class SessionProtocol(Protocol):
    """Subset of SQLAlchemy session APIs used by the classification service."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class EmailClassifier(Protocol):
    """Classifier contract consumed by the service."""

    @property
    def pattern_version(self) -> str: ...

    def classify(self, email: ClassificationInput) -> ClassificationResult: ...


class ClassificationRepositoryProtocol(Protocol):
    """Classification repository contract consumed by the service."""

    def get_by_email_id(self, email_id: str) -> DocumentClassification | None: ...

    def replace(
        self,
        result: ClassificationResult,
        *,
        sender_email: str | None,
        model_name: str,
        model_version: str,
    ) -> DocumentClassification: ...


@dataclass(slots=True, frozen=True)
class ClassificationOutcome:
    """Computed result plus whether it reached the store."""

    result: ClassificationResult
    saved: bool
    error: str | None = None


class ClassificationService:
    """Runs the orchestrator and writes one row per email."""

    def __init__(
        self,
        *,
        session: SessionProtocol,
        classifier: EmailClassifier,
        repository: ClassificationRepositoryProtocol,
        ai_model_name: str | None = None,
        prompt_version: str | None = None,
    ) -> None:
        self._session = session
        self._classifier = classifier
        self._repository = repository
        self._ai_model_name = ai_model_name
        self._prompt_version = prompt_version

    def classify(self, email: ClassificationInput) -> ClassificationResult:
        return self._classifier.classify(email)

    def classify_and_save(self, email: ClassificationInput) -> ClassificationOutcome:
        """Classify and persist; a failed save still returns the result."""

        result = self._classifier.classify(email)
        model_name, model_version = self._model_identity(result)
        try:
            self._repository.replace(
                result,
                sender_email=email.true_sender_email or email.sender_email or None,
                model_name=model_name,
                model_version=model_version,
            )
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.error(
                "classification_save_failed",
                extra={"email_id": email.email_id, "error": str(exc)},
            )
            return ClassificationOutcome(result=result, saved=False, error=str(exc))
        return ClassificationOutcome(result=result, saved=True)

    def classify_batch(
        self,
        emails: Iterable[ClassificationInput],
        *,
        save: bool = True,
    ) -> list[ClassificationOutcome]:
        """Classify emails one after another; each item stands alone."""

        outcomes: list[ClassificationOutcome] = []
        for email in emails:
            if save:
                outcomes.append(self.classify_and_save(email))
            else:
                outcomes.append(
                    ClassificationOutcome(result=self.classify(email), saved=False)
                )
        return outcomes

    def get_classification(self, email_id: str) -> DocumentClassification | None:
        return self._repository.get_by_email_id(email_id)

    def _model_identity(self, result: ClassificationResult) -> tuple[str, str]:
        if result.method == ClassificationMethod.AI and self._ai_model_name:
            return self._ai_model_name, self._prompt_version or "unversioned"
        return DETERMINISTIC_MODEL_NAME, self._classifier.pattern_version
