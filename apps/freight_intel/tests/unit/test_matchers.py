from __future__ import annotations

from dataclasses import replace

from freight_intel.domain.matchers import (
    AttachmentMatcher,
    BodyIndicatorMatcher,
    CarrierSubjectMatcher,
    ContentMarkerMatcher,
    DirectionalSubjectMatcher,
    MatchContext,
    SubjectTableMatcher,
    best_rule,
)
from freight_intel.domain.value_objects import Direction, SignalSource
from freight_intel.patterns.loader import PatternTables


def build_context(**overrides: object) -> MatchContext:
    context = MatchContext(
        subject="",
        body_text="",
        attachment_filenames=(),
        attachment_content="",
        has_pdf_attachment=False,
        direction=Direction.INBOUND,
        from_carrier=False,
    )
    return replace(context, **overrides)


def content_matcher(tables: PatternTables) -> ContentMarkerMatcher:
    return ContentMarkerMatcher(
        tables.content_markers,
        optional_boost=tables.optional_boost,
        max_optional_boost=tables.max_optional_boost,
        max_confidence=tables.max_content_confidence,
    )


def test_attachment_matcher_picks_highest_priority_filename(
    pattern_tables: PatternTables,
) -> None:
    matcher = AttachmentMatcher(pattern_tables.attachment)
    context = build_context(
        attachment_filenames=("HBL_Draft_8891.pdf", "SI_draft_2345.pdf")
    )

    candidate = matcher.match(context)

    assert candidate is not None
    assert candidate.document_type == "si_draft"
    assert candidate.confidence == 100
    assert candidate.signal == SignalSource.ATTACHMENT
    assert "SI_draft_2345.pdf" in candidate.reason


def test_attachment_matcher_honours_case_sensitive_rules(
    pattern_tables: PatternTables,
) -> None:
    matcher = AttachmentMatcher(pattern_tables.attachment)

    assert matcher.match(build_context(attachment_filenames=("podium.jpg",))) is None
    candidate = matcher.match(build_context(attachment_filenames=("POD_1234.pdf",)))
    assert candidate is not None
    assert candidate.document_type == "proof_of_delivery"


def test_body_matcher_detects_indicator_phrase(pattern_tables: PatternTables) -> None:
    matcher = BodyIndicatorMatcher(pattern_tables.body)

    candidate = matcher.match(
        build_context(body_text="Dear team, container was shipped on board today.")
    )

    assert candidate is not None
    assert candidate.document_type == "sob_confirmation"
    assert candidate.confidence == 95
    assert matcher.match(build_context(body_text="Thanks, noted.")) is None


def test_best_rule_prefers_priority_then_declaration_order(
    pattern_tables: PatternTables,
) -> None:
    rule = best_rule(pattern_tables.body, "Please pay the amount due by Friday")

    assert rule is not None
    assert rule.type == "invoice"
    assert rule.priority == 90
    assert best_rule(pattern_tables.body, "") is None


def test_subject_table_matcher_enforces_minimum_confidence(
    pattern_tables: PatternTables,
) -> None:
    strict = SubjectTableMatcher(pattern_tables.subject, min_confidence=85)
    context = build_context(subject="Arrival Notice for BL 123")

    candidate = strict.match(context)

    assert candidate is not None
    assert candidate.document_type == "arrival_notice"
    assert candidate.confidence == 95
    assert candidate.signal == SignalSource.SUBJECT


def test_carrier_matcher_requires_pdf_when_rule_demands_it(
    pattern_tables: PatternTables,
) -> None:
    maersk = pattern_tables.carrier_by_id("maersk")
    matcher = CarrierSubjectMatcher(
        min_content_length=pattern_tables.min_content_length
    )
    context = build_context(
        subject="Booking Confirmation : 263522431",
        carrier=maersk,
        from_carrier=True,
    )

    assert matcher.match(context) is None


def test_carrier_matcher_requires_content_marker_when_configured(
    pattern_tables: PatternTables,
) -> None:
    maersk = pattern_tables.carrier_by_id("maersk")
    matcher = CarrierSubjectMatcher(
        min_content_length=pattern_tables.min_content_length
    )
    content = (
        "BOOKING CONFIRMATION\nBooking No: 263522431\n"
        "Vessel: MAERSK KENSINGTON  Voyage: 245E\n"
    )
    with_pdf = build_context(
        subject="Booking Confirmation : 263522431",
        carrier=maersk,
        from_carrier=True,
        has_pdf_attachment=True,
        attachment_filenames=("booking.pdf",),
    )

    assert matcher.match(with_pdf) is None

    candidate = matcher.match(replace(with_pdf, attachment_content=content))

    assert candidate is not None
    assert candidate.document_type == "booking_confirmation"
    assert candidate.confidence == 100
    assert candidate.carrier_id == "maersk"
    assert candidate.signal == SignalSource.CARRIER


def test_carrier_matcher_without_gating_matches_subject_only(
    pattern_tables: PatternTables,
) -> None:
    maersk = pattern_tables.carrier_by_id("maersk")
    matcher = CarrierSubjectMatcher()

    candidate = matcher.match(
        build_context(subject="Arrival notice 263522431", carrier=maersk)
    )

    assert candidate is not None
    assert candidate.document_type == "arrival_notice"
    assert candidate.confidence == 90


def test_directional_matcher_uses_internal_table_for_outbound(
    pattern_tables: PatternTables,
) -> None:
    matcher = DirectionalSubjectMatcher(pattern_tables.internal, pattern_tables.partner)

    candidate = matcher.match(
        build_context(
            subject="Rate quote for Mundra to Newark",
            direction=Direction.OUTBOUND,
        )
    )

    assert candidate is not None
    assert candidate.document_type == "rate_quote"
    assert candidate.signal == SignalSource.INTERNAL


def test_directional_matcher_uses_partner_table_for_inbound_non_carrier(
    pattern_tables: PatternTables,
) -> None:
    matcher = DirectionalSubjectMatcher(pattern_tables.internal, pattern_tables.partner)
    context = build_context(subject="OOC copy for SB 1234567")

    candidate = matcher.match(context)

    assert candidate is not None
    assert candidate.signal == SignalSource.PARTNER
    assert matcher.match(replace(context, from_carrier=True)) is None


def test_content_matcher_adds_capped_optional_boost(
    pattern_tables: PatternTables,
) -> None:
    matcher = content_matcher(pattern_tables)

    candidate = matcher.match(
        build_context(attachment_content="Arrival Notice\nETA 10-Mar-2025\n")
    )

    assert candidate is not None
    assert candidate.document_type == "arrival_notice"
    assert candidate.confidence == 97
    assert candidate.signal == SignalSource.CONTENT


def test_content_matcher_respects_exclude_terms(pattern_tables: PatternTables) -> None:
    matcher = content_matcher(pattern_tables)

    candidate = matcher.match(
        build_context(attachment_content="BOOKING CONFIRMATION - AMENDMENT No. 2")
    )

    assert candidate is not None
    assert candidate.document_type != "booking_confirmation"
    assert matcher.match(build_context(attachment_content="   ")) is None
