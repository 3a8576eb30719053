from __future__ import annotations

from pathlib import Path

import pytest

from freight_intel.domain.errors import PatternConfigurationError
from freight_intel.patterns.loader import (
    PatternTables,
    compile_pattern,
    compile_rules,
    read_table,
)
from freight_intel.patterns.schema import PatternRow, PatternTableDocument


def test_invalid_regex_row_is_dropped_and_remaining_rules_keep_order() -> None:
    rules = compile_rules(
        [
            PatternRow(
                pattern=r"\barrival\s+notice\b", type="arrival_notice", priority=95
            ),
            PatternRow(pattern=r"([unclosed", type="broken", priority=99),
            PatternRow(
                pattern=r"\bdelivery\s+order\b", type="delivery_order", priority=95
            ),
        ],
        table="subject",
    )

    assert [rule.type for rule in rules] == ["arrival_notice", "delivery_order"]
    assert [rule.order for rule in rules] == [0, 2]


def test_compile_pattern_respects_case_flag() -> None:
    insensitive = compile_pattern("^POD", table="attachment")
    sensitive = compile_pattern("^POD", table="attachment", ignore_case=False)

    assert insensitive is not None and insensitive.search("pod_scan.pdf")
    assert sensitive is not None and sensitive.search("pod_scan.pdf") is None
    assert compile_pattern("(?P<bad", table="attachment") is None


def test_read_table_raises_configuration_error_for_missing_file(
    tmp_path: Path,
) -> None:
    with pytest.raises(PatternConfigurationError) as exc_info:
        read_table("subject_patterns.json", PatternTableDocument, tmp_path)

    assert exc_info.value.code == "PATTERN_CONFIGURATION_ERROR"
    assert exc_info.value.details["table"] == "subject_patterns.json"


def test_read_table_raises_configuration_error_for_invalid_document(
    tmp_path: Path,
) -> None:
    (tmp_path / "subject_patterns.json").write_text(
        '{"version": "x", "rules": [{"pattern": "a", "type": "b", "priority": 300}]}',
        encoding="utf-8",
    )

    with pytest.raises(PatternConfigurationError):
        read_table("subject_patterns.json", PatternTableDocument, tmp_path)


def test_packaged_tables_load_with_version(pattern_tables: PatternTables) -> None:
    assert pattern_tables.version == "2025.01"
    assert pattern_tables.attachment
    assert pattern_tables.subject
    assert pattern_tables.carrier_by_id("maersk") is not None
    assert pattern_tables.carrier_by_id("unknown") is None
    assert "intoglo.com" in pattern_tables.direction.internal_domains


def test_carrier_rules_are_sorted_by_priority(pattern_tables: PatternTables) -> None:
    maersk = pattern_tables.carrier_by_id("maersk")

    assert maersk is not None
    priorities = [rule.priority for rule in maersk.rules]
    assert priorities == sorted(priorities, reverse=True)
    assert maersk.owns_domain("maersk.com")
