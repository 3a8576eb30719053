from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy.exc import OperationalError

from freight_intel.application.schemas.classification import (
    ClassificationInput,
    ClassificationResult,
)
from freight_intel.application.services.classification_service import (
    DETERMINISTIC_MODEL_NAME,
    ClassificationService,
)
from freight_intel.db.models.document_classification import DocumentClassification
from freight_intel.domain.value_objects import (
    ClassificationMethod,
    Direction,
    SignalSource,
)


class FakeSession:
    def __init__(self) -> None:
        self.committed = False
        self.rolled_back = False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        self.rolled_back = True


@dataclass
class FakeClassifier:
    method: ClassificationMethod = ClassificationMethod.DETERMINISTIC
    pattern_version: str = "2025.01"
    seen: list[str] = field(default_factory=list)

    def classify(self, email: ClassificationInput) -> ClassificationResult:
        self.seen.append(email.email_id)
        return ClassificationResult(
            email_id=email.email_id,
            document_type="arrival_notice",
            confidence=95,
            method=self.method,
            matched_pattern=r"\barrival\s+notice\b",
            signal=(
                SignalSource.AI
                if self.method == ClassificationMethod.AI
                else SignalSource.SUBJECT
            ),
            direction=Direction.INBOUND,
            workflow_state="arrival_notice_received",
            needs_manual_review=False,
            classification_reason="Subject matched arrival notice.",
        )


@dataclass
class FakeRepository:
    error: Exception | None = None
    saved: list[dict[str, object]] = field(default_factory=list)
    rows: dict[str, DocumentClassification] = field(default_factory=dict)

    def get_by_email_id(self, email_id: str) -> DocumentClassification | None:
        return self.rows.get(email_id)

    def replace(
        self,
        result: ClassificationResult,
        *,
        sender_email: str | None,
        model_name: str,
        model_version: str,
    ) -> DocumentClassification:
        if self.error is not None:
            raise self.error
        self.saved.append(
            {
                "email_id": result.email_id,
                "sender_email": sender_email,
                "model_name": model_name,
                "model_version": model_version,
            }
        )
        return DocumentClassification(email_id=result.email_id)


def build_service(
    *,
    session: FakeSession,
    classifier: FakeClassifier | None = None,
    repository: FakeRepository | None = None,
) -> ClassificationService:
    return ClassificationService(
        session=session,
        classifier=classifier or FakeClassifier(),
        repository=repository or FakeRepository(),
        ai_model_name="gpt-4o-mini",
        prompt_version="v2",
    )


def test_classify_and_save_commits_with_pattern_version() -> None:
    session = FakeSession()
    repository = FakeRepository()
    service = build_service(session=session, repository=repository)

    outcome = service.classify_and_save(
        ClassificationInput(
            email_id="msg-001",
            subject="Arrival Notice",
            sender_email="ops@relay.example",
            true_sender_email="notify@maersk.com",
        )
    )

    assert outcome.saved is True
    assert outcome.error is None
    assert outcome.result.document_type == "arrival_notice"
    assert session.committed is True
    assert repository.saved == [
        {
            "email_id": "msg-001",
            "sender_email": "notify@maersk.com",
            "model_name": DETERMINISTIC_MODEL_NAME,
            "model_version": "2025.01",
        }
    ]


def test_ai_results_are_stored_with_model_and_prompt_version() -> None:
    repository = FakeRepository()
    service = build_service(
        session=FakeSession(),
        classifier=FakeClassifier(method=ClassificationMethod.AI),
        repository=repository,
    )

    service.classify_and_save(
        ClassificationInput(email_id="msg-002", sender_email="a@b.example")
    )

    assert repository.saved[0]["model_name"] == "gpt-4o-mini"
    assert repository.saved[0]["model_version"] == "v2"


def test_failed_save_rolls_back_and_still_returns_result() -> None:
    session = FakeSession()
    service = build_service(
        session=session,
        repository=FakeRepository(
            error=OperationalError("INSERT", {}, Exception("database is locked"))
        ),
    )

    outcome = service.classify_and_save(ClassificationInput(email_id="msg-003"))

    assert outcome.saved is False
    assert outcome.error is not None
    assert "database is locked" in outcome.error
    assert outcome.result.workflow_state == "arrival_notice_received"
    assert session.rolled_back is True
    assert session.committed is False


def test_classify_batch_without_saving_skips_repository() -> None:
    classifier = FakeClassifier()
    repository = FakeRepository()
    session = FakeSession()
    service = build_service(
        session=session, classifier=classifier, repository=repository
    )

    outcomes = service.classify_batch(
        [ClassificationInput(email_id="msg-a"), ClassificationInput(email_id="msg-b")],
        save=False,
    )

    assert [outcome.result.email_id for outcome in outcomes] == ["msg-a", "msg-b"]
    assert all(outcome.saved is False for outcome in outcomes)
    assert classifier.seen == ["msg-a", "msg-b"]
    assert repository.saved == []
    assert session.committed is False


def test_classify_batch_saves_each_email() -> None:
    repository = FakeRepository()
    service = build_service(session=FakeSession(), repository=repository)

    outcomes = service.classify_batch(
        [ClassificationInput(email_id="msg-a"), ClassificationInput(email_id="msg-b")]
    )

    assert all(outcome.saved for outcome in outcomes)
    assert [row["email_id"] for row in repository.saved] == ["msg-a", "msg-b"]


def test_get_classification_reads_repository() -> None:
    row = DocumentClassification(email_id="msg-001")
    service = build_service(
        session=FakeSession(), repository=FakeRepository(rows={"msg-001": row})
    )

    assert service.get_classification("msg-001") is row
    assert service.get_classification("missing") is None
