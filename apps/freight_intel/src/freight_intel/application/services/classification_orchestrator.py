"""Deterministic multi-signal email classifier with optional AI fallback."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from freight_intel.application.schemas.classification import (
    AIClassification,
    AIClassificationRequest,
    ClassificationInput,
    ClassificationResult,
)
from freight_intel.core.settings import Settings
from freight_intel.domain.direction import DirectionDetector, extract_domain
from freight_intel.domain.document_hints import (
    clean_subject,
    detect_sub_type,
    fresh_body,
    infer_labels,
    truncate,
)
from freight_intel.domain.matchers import (
    AttachmentMatcher,
    BodyIndicatorMatcher,
    CarrierSubjectMatcher,
    ContentMarkerMatcher,
    DirectionalSubjectMatcher,
    MatchCandidate,
    MatchContext,
    SignalMatcher,
    SubjectTableMatcher,
)
from freight_intel.domain.value_objects import (
    GENERAL_CORRESPONDENCE,
    MIN_CONFIDENCE_THRESHOLD,
    ClassificationMethod,
    Direction,
    SignalSource,
)
from freight_intel.domain.workflow.registry import WorkflowStateRegistry
from freight_intel.infrastructure.llm.openai_classifier import (
    HTTPOpenAIClient,
    OpenAIDocumentClassifier,
)
from freight_intel.patterns.loader import (
    CarrierProfile,
    PatternTables,
    load_pattern_tables,
)

logger = logging.getLogger(__name__)

SUBJECT_SHORT_CIRCUIT_CONFIDENCE = 85
REPLY_PENALTY = 10
REPLY_CONFIDENCE_FLOOR = 50
THREAD_DUPLICATE_CONFIDENCE = 70
AI_BODY_LIMIT = 2000
AI_ATTACHMENT_LIMIT = 1500
NO_MATCH_PATTERN = "no_match"
PENALISED_REPLY_SIGNALS = frozenset(
    {SignalSource.BODY, SignalSource.CONTENT, SignalSource.AI}
)


class AIDocumentClassifier(Protocol):
    """Protocol for the external AI fallback."""

    def classify_document(self, request: AIClassificationRequest) -> AIClassification:
        """Classify one email into structured output."""
        ...


def build_ai_classifier(settings: Settings) -> AIDocumentClassifier | None:
    """Build the OpenAI fallback when it is enabled and has an API key."""

    if not settings.ai_classifier_configured or settings.openai_api_key is None:
        return None
    client = HTTPOpenAIClient(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.ai_timeout_seconds,
    )
    return OpenAIDocumentClassifier(
        client,
        model=settings.openai_model,
        prompt_version=settings.prompt_version,
    )


class ClassificationOrchestrator:
    """Run the matcher chain for one email and stamp direction and workflow state.

    Original emails try attachment, body, curated subject (>= 85), carrier,
    directional subject, content markers and then weaker subject matches.
    Thread replies never trust the inherited subject: only attachment, body
    and content markers are tried. The AI fallback runs when every
    deterministic matcher declines.
    """

    def __init__(
        self,
        *,
        tables: PatternTables,
        workflow_states: WorkflowStateRegistry,
        ai_classifier: AIDocumentClassifier | None = None,
        ai_timeout_seconds: float = 15.0,
    ) -> None:
        self._tables = tables
        self._workflow_states = workflow_states
        self._ai_classifier = ai_classifier
        self._ai_timeout_seconds = ai_timeout_seconds
        self._direction = DirectionDetector(tables.direction)

        attachment = AttachmentMatcher(tables.attachment)
        body = BodyIndicatorMatcher(tables.body)
        content = ContentMarkerMatcher(
            tables.content_markers,
            optional_boost=tables.optional_boost,
            max_optional_boost=tables.max_optional_boost,
            max_confidence=tables.max_content_confidence,
        )
        self._original_chain: tuple[SignalMatcher, ...] = (
            attachment,
            body,
            SubjectTableMatcher(
                tables.subject, min_confidence=SUBJECT_SHORT_CIRCUIT_CONFIDENCE
            ),
            CarrierSubjectMatcher(min_content_length=tables.min_content_length),
            DirectionalSubjectMatcher(tables.internal, tables.partner),
            content,
            SubjectTableMatcher(
                tables.subject, min_confidence=MIN_CONFIDENCE_THRESHOLD
            ),
        )
        self._reply_chain: tuple[SignalMatcher, ...] = (attachment, body, content)

    @property
    def direction_detector(self) -> DirectionDetector:
        return self._direction

    @property
    def ai_enabled(self) -> bool:
        return self._ai_classifier is not None

    @property
    def pattern_version(self) -> str:
        return self._tables.version

    def carrier_for_sender(self, *senders: str | None) -> CarrierProfile | None:
        for sender in senders:
            domain = extract_domain(sender)
            if not domain:
                continue
            for carrier in self._tables.carriers:
                if carrier.owns_domain(domain):
                    return carrier
        return None

    def classify(self, email: ClassificationInput) -> ClassificationResult:
        direction = self._direction.detect(
            email.sender_email, email.subject, email.true_sender_email
        )
        is_reply = self._direction.is_reply(email.subject)
        carrier = self.carrier_for_sender(email.true_sender_email, email.sender_email)
        context = MatchContext(
            subject=clean_subject(email.subject),
            body_text=fresh_body(email.body_text),
            attachment_filenames=email.attachment_filenames,
            attachment_content=email.attachment_content or "",
            has_pdf_attachment=email.has_pdf_attachment,
            direction=direction,
            from_carrier=carrier is not None
            or self._direction.is_carrier_sender(email.true_sender_email)
            or self._direction.is_carrier_sender(email.sender_email),
            carrier=carrier,
        )

        chain = self._reply_chain if is_reply else self._original_chain
        candidate = self._first_match(chain, context)
        method = ClassificationMethod.DETERMINISTIC
        ai_output: AIClassification | None = None
        if candidate is None:
            ai_output = self._classify_with_ai(email)
            if ai_output is not None:
                candidate = self._candidate_from_ai(ai_output)
                method = ClassificationMethod.AI

        if candidate is None:
            result = self._fallback_result(email, direction)
        else:
            if is_reply:
                candidate = self._apply_reply_rules(candidate, email)
            result = self._build_result(
                email, candidate, method, direction, carrier, ai_output
            )

        logger.info(
            "classification_completed",
            extra={
                "email_id": email.email_id,
                "document_type": result.document_type,
                "confidence": result.confidence,
                "method": result.method.value,
                "signal": result.signal.value,
                "direction": result.direction.value,
            },
        )
        return result

    @staticmethod
    def _first_match(
        chain: Sequence[SignalMatcher], context: MatchContext
    ) -> MatchCandidate | None:
        for matcher in chain:
            candidate = matcher.match(context)
            if candidate is not None:
                return candidate
        return None

    def _classify_with_ai(self, email: ClassificationInput) -> AIClassification | None:
        if self._ai_classifier is None:
            return None

        request = AIClassificationRequest(
            subject=email.subject,
            sender_email=email.sender_email,
            body_text=truncate(email.body_text, AI_BODY_LIMIT),
            attachment_filenames=email.attachment_filenames,
            attachment_content=truncate(email.attachment_content, AI_ATTACHMENT_LIMIT),
        )
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self._ai_classifier.classify_document, request)
            return future.result(timeout=self._ai_timeout_seconds)
        except TimeoutError:
            logger.warning(
                "ai_fallback_failed",
                extra={"email_id": email.email_id, "reason": "timeout"},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "ai_fallback_failed",
                extra={
                    "email_id": email.email_id,
                    "reason": type(exc).__name__,
                    "error": str(exc),
                },
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return None

    @staticmethod
    def _candidate_from_ai(output: AIClassification) -> MatchCandidate:
        document_type = output.document_type.strip().lower().replace(" ", "_")
        return MatchCandidate(
            document_type=document_type or GENERAL_CORRESPONDENCE,
            confidence=output.confidence,
            matched_pattern="ai_fallback",
            signal=SignalSource.AI,
            reason=output.reasoning or "Classified by AI fallback.",
        )

    @staticmethod
    def _apply_reply_rules(
        candidate: MatchCandidate, email: ClassificationInput
    ) -> MatchCandidate:
        if (
            candidate.signal != SignalSource.ATTACHMENT
            and candidate.document_type in email.existing_doc_types_in_thread
        ):
            return MatchCandidate(
                document_type=GENERAL_CORRESPONDENCE,
                confidence=THREAD_DUPLICATE_CONFIDENCE,
                matched_pattern=candidate.matched_pattern,
                signal=SignalSource.THREAD,
                reason=(
                    f"Thread already holds a {candidate.document_type}; "
                    "reply treated as correspondence."
                ),
            )
        if candidate.signal in PENALISED_REPLY_SIGNALS:
            return MatchCandidate(
                document_type=candidate.document_type,
                confidence=max(
                    candidate.confidence - REPLY_PENALTY, REPLY_CONFIDENCE_FLOOR
                ),
                matched_pattern=candidate.matched_pattern,
                signal=candidate.signal,
                reason=f"{candidate.reason} Thread reply penalty applied.",
                carrier_id=candidate.carrier_id,
            )
        return candidate

    def _build_result(
        self,
        email: ClassificationInput,
        candidate: MatchCandidate,
        method: ClassificationMethod,
        direction: Direction,
        sender_carrier: CarrierProfile | None,
        ai_output: AIClassification | None,
    ) -> ClassificationResult:
        carrier = sender_carrier
        if candidate.carrier_id is not None:
            carrier = self._tables.carrier_by_id(candidate.carrier_id) or carrier
        carrier_name = carrier.name if carrier is not None else None
        if carrier_name is None and ai_output is not None:
            carrier_name = ai_output.carrier

        labels = list(infer_labels(email.subject, email.body_text))
        if ai_output is not None:
            labels.extend(label for label in ai_output.labels if label not in labels)

        sub_type = detect_sub_type(email.subject)
        if ai_output is not None and ai_output.sub_type:
            sub_type = ai_output.sub_type

        return ClassificationResult(
            email_id=email.email_id,
            document_type=candidate.document_type,
            sub_type=sub_type,
            carrier_id=carrier.id if carrier is not None else None,
            carrier_name=carrier_name,
            confidence=candidate.confidence,
            method=method,
            matched_pattern=candidate.matched_pattern,
            signal=candidate.signal,
            direction=direction,
            workflow_state=self._workflow_states.state_for_document(
                candidate.document_type,
                direction,
                email.true_sender_email or email.sender_email,
            ),
            needs_manual_review=candidate.confidence < MIN_CONFIDENCE_THRESHOLD,
            classification_reason=candidate.reason,
            labels=tuple(labels),
        )

    def _fallback_result(
        self, email: ClassificationInput, direction: Direction
    ) -> ClassificationResult:
        return ClassificationResult(
            email_id=email.email_id,
            document_type=GENERAL_CORRESPONDENCE,
            confidence=0,
            method=ClassificationMethod.DETERMINISTIC,
            matched_pattern=NO_MATCH_PATTERN,
            signal=SignalSource.FALLBACK,
            direction=direction,
            workflow_state=None,
            needs_manual_review=True,
            classification_reason="No deterministic signal matched and AI fallback "
            + ("failed." if self.ai_enabled else "is disabled."),
            labels=infer_labels(email.subject, email.body_text),
        )


def build_orchestrator(
    settings: Settings,
    workflow_states: WorkflowStateRegistry | None = None,
) -> ClassificationOrchestrator:
    """Wire pattern tables, state registry and AI fallback from settings."""

    return ClassificationOrchestrator(
        tables=load_pattern_tables(settings.pattern_tables_dir),
        workflow_states=workflow_states
        or WorkflowStateRegistry(ttl_seconds=settings.workflow_cache_ttl_seconds),
        ai_classifier=build_ai_classifier(settings),
        ai_timeout_seconds=settings.ai_timeout_seconds,
    )
