from __future__ import annotations

import time
from dataclasses import dataclass, field

import pytest

from freight_intel.application.schemas.classification import (
    AIClassification,
    AIClassificationRequest,
    ClassificationInput,
)
from freight_intel.application.services.classification_orchestrator import (
    ClassificationOrchestrator,
)
from freight_intel.domain.value_objects import (
    GENERAL_CORRESPONDENCE,
    ClassificationMethod,
    Direction,
    SignalSource,
)
from freight_intel.domain.workflow.registry import WorkflowStateRegistry
from freight_intel.patterns.loader import PatternTables

BOOKING_PDF_TEXT = (
    "BOOKING CONFIRMATION\n"
    "Booking No.: 263522431\n"
    "Vessel: MAERSK KENSINGTON  Voyage: 245E\n"
    "Port of Loading: Nhava Sheva\n"
)


@dataclass
class FakeAIClassifier:
    output: AIClassification | Exception
    delay_seconds: float = 0.0
    requests: list[AIClassificationRequest] = field(default_factory=list)

    def classify_document(self, request: AIClassificationRequest) -> AIClassification:
        self.requests.append(request)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if isinstance(self.output, Exception):
            raise self.output
        return self.output


@pytest.fixture
def orchestrator(
    pattern_tables: PatternTables, workflow_registry: WorkflowStateRegistry
) -> ClassificationOrchestrator:
    return ClassificationOrchestrator(
        tables=pattern_tables,
        workflow_states=workflow_registry,
    )


def build_orchestrator_with_ai(
    tables: PatternTables,
    registry: WorkflowStateRegistry,
    ai_classifier: FakeAIClassifier,
    *,
    timeout_seconds: float = 1.0,
) -> ClassificationOrchestrator:
    return ClassificationOrchestrator(
        tables=tables,
        workflow_states=registry,
        ai_classifier=ai_classifier,
        ai_timeout_seconds=timeout_seconds,
    )


def test_attachment_signal_wins_over_subject_on_reply(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-001",
            subject="Re: booking",
            sender_email="exports@acme-textiles.example",
            has_attachments=True,
            attachment_filenames=("SI_draft_2345.pdf",),
        )
    )

    assert result.document_type == "si_draft"
    assert result.confidence == 100
    assert result.signal == SignalSource.ATTACHMENT
    assert result.method == ClassificationMethod.DETERMINISTIC
    assert result.direction == Direction.INBOUND
    assert result.workflow_state == "si_draft_received"
    assert result.needs_manual_review is False


def test_carrier_rule_requiring_pdf_is_skipped_without_attachment(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-002",
            subject="Booking Confirmation : 263522431",
            sender_email="notify@maersk.com",
        )
    )

    assert result.document_type == GENERAL_CORRESPONDENCE
    assert result.confidence == 0
    assert result.signal == SignalSource.FALLBACK
    assert result.needs_manual_review is True
    assert result.workflow_state is None
    assert result.classification_reason.endswith("is disabled.")


def test_carrier_rule_matches_with_pdf_and_content(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-003",
            subject="Booking Confirmation : 263522431",
            sender_email="notify@maersk.com",
            has_attachments=True,
            attachment_filenames=("booking.pdf",),
            attachment_content=BOOKING_PDF_TEXT,
        )
    )

    assert result.document_type == "booking_confirmation"
    assert result.confidence == 100
    assert result.signal == SignalSource.CARRIER
    assert result.carrier_id == "maersk"
    assert result.carrier_name == "Maersk Line"
    assert result.workflow_state == "booking_confirmation_received"


def test_curated_subject_from_partner_maps_workflow_state(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-004",
            subject="Arrival Notice for BL 123",
            sender_email="agent@global-partner.example",
        )
    )

    assert result.document_type == "arrival_notice"
    assert result.confidence == 95
    assert result.signal == SignalSource.SUBJECT
    assert result.workflow_state == "arrival_notice_received"


def test_outbound_mail_uses_internal_table(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-005",
            subject="Booking request for 2x40HC Mundra to Newark",
            sender_email="alice@intoglo.com",
        )
    )

    assert result.direction == Direction.OUTBOUND
    assert result.document_type == "booking_request"
    assert result.signal == SignalSource.INTERNAL
    assert result.workflow_state is None


def test_weak_subject_rule_runs_after_other_signals(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-006",
            subject="Revised ETD / ETA for SHP-001",
            sender_email="agent@global-partner.example",
        )
    )

    assert result.document_type == "vessel_schedule"
    assert result.confidence == 80
    assert result.signal == SignalSource.SUBJECT
    assert "schedule" in result.labels


def test_reply_ignores_inherited_subject(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-007",
            subject="RE: Arrival Notice for BL 123",
            sender_email="agent@global-partner.example",
            body_text="Thanks, noted.",
        )
    )

    assert result.document_type == GENERAL_CORRESPONDENCE
    assert result.signal == SignalSource.FALLBACK


def test_reply_body_signal_is_penalised(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-008",
            subject="RE: Container status",
            sender_email="agent@global-partner.example",
            body_text="Container shipped on board on 12-Mar-2025.",
        )
    )

    assert result.document_type == "sob_confirmation"
    assert result.confidence == 85
    assert result.signal == SignalSource.BODY


def test_reply_repeating_thread_document_becomes_correspondence(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-009",
            subject="RE: Container status",
            sender_email="agent@global-partner.example",
            body_text="Container shipped on board on 12-Mar-2025.",
            existing_doc_types_in_thread=("sob_confirmation",),
        )
    )

    assert result.document_type == GENERAL_CORRESPONDENCE
    assert result.confidence == 70
    assert result.signal == SignalSource.THREAD
    assert result.needs_manual_review is False


def test_quoted_history_is_ignored_in_body(
    orchestrator: ClassificationOrchestrator,
) -> None:
    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-010",
            subject="Status",
            sender_email="agent@global-partner.example",
            body_text="Will revert shortly.\n\nOn Mon, Ops wrote:\n> please pay now",
        )
    )

    assert result.document_type == GENERAL_CORRESPONDENCE


def test_ai_fallback_used_when_no_deterministic_match(
    pattern_tables: PatternTables, workflow_registry: WorkflowStateRegistry
) -> None:
    ai_classifier = FakeAIClassifier(
        output=AIClassification(
            document_type="Booking Confirmation",
            confidence=82,
            labels=["urgent"],
            reasoning="Carrier booking template.",
        )
    )
    orchestrator = build_orchestrator_with_ai(
        pattern_tables, workflow_registry, ai_classifier
    )

    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-011",
            subject="Booking Confirmation : 263522431",
            sender_email="notify@maersk.com",
            body_text="x" * 3000,
        )
    )

    assert result.method == ClassificationMethod.AI
    assert result.signal == SignalSource.AI
    assert result.document_type == "booking_confirmation"
    assert result.confidence == 82
    assert result.carrier_name == "Maersk Line"
    assert result.workflow_state == "booking_confirmation_received"
    assert "urgent" in result.labels
    sent_body = ai_classifier.requests[0].body_text
    assert sent_body is not None
    assert len(sent_body) == 2000


def test_low_confidence_ai_result_needs_review(
    pattern_tables: PatternTables, workflow_registry: WorkflowStateRegistry
) -> None:
    ai_classifier = FakeAIClassifier(
        output=AIClassification(document_type="invoice", confidence=55)
    )
    orchestrator = build_orchestrator_with_ai(
        pattern_tables, workflow_registry, ai_classifier
    )

    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-012", subject="Hello", sender_email="a@b.example"
        )
    )

    assert result.document_type == "invoice"
    assert result.needs_manual_review is True


def test_ai_failure_degrades_to_general_correspondence(
    pattern_tables: PatternTables, workflow_registry: WorkflowStateRegistry
) -> None:
    orchestrator = build_orchestrator_with_ai(
        pattern_tables,
        workflow_registry,
        FakeAIClassifier(output=RuntimeError("upstream unavailable")),
    )

    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-013", subject="Hello", sender_email="a@b.example"
        )
    )

    assert result.document_type == GENERAL_CORRESPONDENCE
    assert result.confidence == 0
    assert result.needs_manual_review is True
    assert result.classification_reason.endswith("failed.")


def test_ai_timeout_degrades_to_general_correspondence(
    pattern_tables: PatternTables, workflow_registry: WorkflowStateRegistry
) -> None:
    orchestrator = build_orchestrator_with_ai(
        pattern_tables,
        workflow_registry,
        FakeAIClassifier(
            output=AIClassification(document_type="invoice", confidence=90),
            delay_seconds=0.5,
        ),
        timeout_seconds=0.05,
    )

    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-014", subject="Hello", sender_email="a@b.example"
        )
    )

    assert result.document_type == GENERAL_CORRESPONDENCE
    assert result.method == ClassificationMethod.DETERMINISTIC


def test_ai_result_on_thread_reply_gets_reply_penalty(
    pattern_tables: PatternTables, workflow_registry: WorkflowStateRegistry
) -> None:
    orchestrator = build_orchestrator_with_ai(
        pattern_tables,
        workflow_registry,
        FakeAIClassifier(
            output=AIClassification(
                document_type="invoice", confidence=90, reasoning="Freight invoice."
            )
        ),
    )

    result = orchestrator.classify(
        ClassificationInput(
            email_id="msg-016", subject="RE: Hello", sender_email="a@b.example"
        )
    )

    assert result.method == ClassificationMethod.AI
    assert result.document_type == "invoice"
    assert result.confidence == 80
    assert result.classification_reason == (
        "Freight invoice. Thread reply penalty applied."
    )


def test_classification_is_deterministic(
    orchestrator: ClassificationOrchestrator,
) -> None:
    email = ClassificationInput(
        email_id="msg-015",
        subject="Arrival Notice for BL 123",
        sender_email="agent@global-partner.example",
        attachment_filenames=("scan.pdf",),
        attachment_content="ARRIVAL NOTICE\nETA 10-Mar-2025",
    )

    assert orchestrator.classify(email) == orchestrator.classify(email)
