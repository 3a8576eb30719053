"""Signal matchers: each scans one pattern category and returns its best match."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from freight_intel.domain.value_objects import Direction, SignalSource
from freight_intel.patterns.loader import (
    CarrierProfile,
    ContentMarkerConfig,
    ContentMarkerRule,
    PatternRule,
)


@dataclass(slots=True, frozen=True)
class MatchContext:
    """Normalized view of one email shared by every matcher."""

    subject: str
    body_text: str
    attachment_filenames: tuple[str, ...]
    attachment_content: str
    has_pdf_attachment: bool
    direction: Direction
    from_carrier: bool
    carrier: CarrierProfile | None = None


@dataclass(slots=True, frozen=True)
class MatchCandidate:
    document_type: str
    confidence: int
    matched_pattern: str
    signal: SignalSource
    reason: str
    carrier_id: str | None = None


class SignalMatcher(Protocol):
    """Uniform matcher capability used by the orchestrator chain."""

    signal: SignalSource

    def match(self, context: MatchContext) -> MatchCandidate | None: ...


def best_rule(rules: Sequence[PatternRule], text: str) -> PatternRule | None:
    """Highest-priority matching rule; earliest declaration wins ties."""

    if not text:
        return None
    best: PatternRule | None = None
    for rule in rules:
        if best is not None and rule.priority <= best.priority:
            continue
        if rule.pattern.search(text):
            best = rule
    return best


class AttachmentMatcher:
    signal = SignalSource.ATTACHMENT

    def __init__(self, rules: Sequence[PatternRule]) -> None:
        self._rules = tuple(rules)

    def match(self, context: MatchContext) -> MatchCandidate | None:
        winner: tuple[int, int, int, PatternRule, str] | None = None
        for file_index, filename in enumerate(context.attachment_filenames):
            name = filename.strip()
            for rule in self._rules:
                if not rule.pattern.search(name):
                    continue
                key = (-rule.priority, rule.order, file_index, rule, name)
                if winner is None or key[:3] < winner[:3]:
                    winner = key
        if winner is None:
            return None
        _, _, _, rule, filename = winner
        return MatchCandidate(
            document_type=rule.type,
            confidence=min(rule.priority, 100),
            matched_pattern=rule.source,
            signal=self.signal,
            reason=f"Attachment '{filename}' matched filename pattern.",
        )


class BodyIndicatorMatcher:
    signal = SignalSource.BODY

    def __init__(self, rules: Sequence[PatternRule]) -> None:
        self._rules = tuple(rules)

    def match(self, context: MatchContext) -> MatchCandidate | None:
        rule = best_rule(self._rules, context.body_text)
        if rule is None:
            return None
        return MatchCandidate(
            document_type=rule.type,
            confidence=min(rule.priority, 100),
            matched_pattern=rule.source,
            signal=self.signal,
            reason="Body text contains a document indicator phrase.",
        )


class ContentMarkerMatcher:
    """Evaluate required/optional/exclude marker rules on attachment text."""

    signal = SignalSource.CONTENT

    def __init__(
        self,
        configs: Sequence[ContentMarkerConfig],
        *,
        optional_boost: int = 2,
        max_optional_boost: int = 6,
        max_confidence: int = 99,
    ) -> None:
        self._configs = tuple(configs)
        self._optional_boost = optional_boost
        self._max_optional_boost = max_optional_boost
        self._max_confidence = max_confidence

    def score(self, marker: ContentMarkerRule, text: str) -> int | None:
        if any(term in text for term in marker.exclude):
            return None
        if not all(term in text for term in marker.required):
            return None
        hits = sum(1 for term in marker.optional if term in text)
        boost = min(hits * self._optional_boost, self._max_optional_boost)
        return min(marker.confidence + boost, self._max_confidence)

    def match(self, context: MatchContext) -> MatchCandidate | None:
        text = context.attachment_content.upper()
        if not text.strip():
            return None

        best: tuple[int, ContentMarkerConfig, ContentMarkerRule] | None = None
        for config in self._configs:
            for marker in config.markers:
                confidence = self.score(marker, text)
                if confidence is None:
                    continue
                if best is None or confidence > best[0]:
                    best = (confidence, config, marker)
                break
        if best is None:
            return None
        confidence, config, marker = best
        return MatchCandidate(
            document_type=config.document_type,
            confidence=confidence,
            matched_pattern="content:" + "+".join(marker.required),
            signal=self.signal,
            reason="Attachment text contains the document's content markers.",
        )


class CarrierSubjectMatcher:
    """Per-carrier subject rules with PDF and content-marker gating."""

    signal = SignalSource.CARRIER

    def __init__(self, *, min_content_length: int = 50) -> None:
        self._min_content_length = min_content_length

    def match(self, context: MatchContext) -> MatchCandidate | None:
        carrier = context.carrier
        if carrier is None or not context.subject:
            return None

        content = context.attachment_content
        for rule in carrier.rules:
            if not rule.pattern.search(context.subject):
                continue
            if rule.requires_pdf and not context.has_pdf_attachment:
                continue
            if rule.content_patterns and (
                len(content) < self._min_content_length
                or not any(pattern.search(content) for pattern in rule.content_patterns)
            ):
                continue
            return MatchCandidate(
                document_type=rule.type,
                confidence=min(rule.priority, 100),
                matched_pattern=rule.source,
                signal=self.signal,
                reason=f"{carrier.name} subject rule matched.",
                carrier_id=carrier.id,
            )
        return None


class SubjectTableMatcher:
    """Curated general subject table, gated by a minimum confidence."""

    signal = SignalSource.SUBJECT

    def __init__(self, rules: Sequence[PatternRule], *, min_confidence: int) -> None:
        self._rules = tuple(rules)
        self._min_confidence = min_confidence

    def match(self, context: MatchContext) -> MatchCandidate | None:
        rule = best_rule(self._rules, context.subject)
        if rule is None or rule.priority < self._min_confidence:
            return None
        return MatchCandidate(
            document_type=rule.type,
            confidence=rule.priority,
            matched_pattern=rule.source,
            signal=self.signal,
            reason="Subject matched the curated subject table.",
        )


class DirectionalSubjectMatcher:
    """Internal subject table for outbound mail, partner table for inbound."""

    signal = SignalSource.PARTNER

    def __init__(
        self,
        internal_rules: Sequence[PatternRule],
        partner_rules: Sequence[PatternRule],
    ) -> None:
        self._internal_rules = tuple(internal_rules)
        self._partner_rules = tuple(partner_rules)

    def match(self, context: MatchContext) -> MatchCandidate | None:
        if context.direction == Direction.OUTBOUND:
            rules, signal = self._internal_rules, SignalSource.INTERNAL
        elif not context.from_carrier:
            rules, signal = self._partner_rules, SignalSource.PARTNER
        else:
            return None

        rule = best_rule(rules, context.subject)
        if rule is None:
            return None
        return MatchCandidate(
            document_type=rule.type,
            confidence=rule.priority,
            matched_pattern=rule.source,
            signal=signal,
            reason=f"Subject matched {rule.category or signal.value} pattern table.",
        )
