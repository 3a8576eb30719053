from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from uuid import UUID

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker
from typer.testing import CliRunner

from freight_intel.cli import app
from freight_intel.db.models.shipment import Shipment
from freight_intel.db.models.workflow_transition import WorkflowTransition

runner = CliRunner()


def write_json(tmp_path: Path, payload: dict[str, object]) -> Path:
    input_file = tmp_path / "input.json"
    input_file.write_text(json.dumps(payload), encoding="utf-8")
    return input_file


def test_healthcheck_reports_pattern_version() -> None:
    result = runner.invoke(app, ["healthcheck"])

    assert result.exit_code == 0
    assert "freight-intel is ready (patterns 2025.01)" in result.stdout


def test_classify_prints_result_without_saving(tmp_path: Path) -> None:
    input_file = write_json(
        tmp_path,
        {
            "email_id": "msg-001",
            "subject": "Re: booking",
            "sender_email": "exports@acme-textiles.example",
            "has_attachments": True,
            "attachment_filenames": ["SI_draft_2345.pdf"],
        },
    )

    result = runner.invoke(app, ["classify", "--input", str(input_file)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["document_type"] == "si_draft"
    assert payload["signal"] == "attachment"
    assert payload["workflow_state"] == "si_draft_received"


def test_detect_direction_for_internal_sender() -> None:
    result = runner.invoke(
        app, ["detect-direction", "--sender", "alice@intoglo.com", "--subject", "Hi"]
    )

    assert result.exit_code == 0
    assert result.stdout.strip() == "outbound"


def test_extract_prints_entities_and_quality(tmp_path: Path) -> None:
    input_file = write_json(
        tmp_path,
        {
            "subject": "Booking Confirmation : 263522431",
            "body_text": (
                "Vessel Name: MAERSK KENSINGTON\n"
                "Voyage: 245E\n"
                "Port of Loading: Nhava Sheva\n"
                "Port of Discharge: Newark\n"
                "ETD: 15-Mar-2025\n"
                "ETA: 2025-04-02\n"
            ),
        },
    )

    result = runner.invoke(
        app,
        [
            "extract",
            "--input",
            str(input_file),
            "--document-type",
            "booking_confirmation",
        ],
    )

    assert result.exit_code == 0
    assert "Carrier: maersk" in result.stdout
    assert "booking_number: 263522431 (99)" in result.stdout
    assert "etd: 2025-03-15 (97)" in result.stdout
    assert "Quality score: 100" in result.stdout


def test_workflow_states_filters_by_phase() -> None:
    result = runner.invoke(app, ["workflow-states", "--phase", "delivery"])

    assert result.exit_code == 0
    lines = result.stdout.strip().splitlines()
    assert "delivery_order_received" in lines[0]
    assert all("delivery" in line for line in lines)


def test_force_state_overwrites_without_audit_row(
    monkeypatch: pytest.MonkeyPatch,
    sqlite_session_factory: sessionmaker[Session],
    make_shipment: Callable[..., UUID],
) -> None:
    monkeypatch.setattr("freight_intel.cli.SessionFactory", sqlite_session_factory)
    shipment_id = make_shipment("arrival_notice_received")

    result = runner.invoke(
        app, ["force-state", str(shipment_id), "booking_confirmation_shared"]
    )

    assert result.exit_code == 0
    assert "forced to booking_confirmation_shared" in result.stdout
    with sqlite_session_factory() as session:
        shipment = session.get(Shipment, shipment_id)
        assert shipment is not None
        assert shipment.workflow_state == "booking_confirmation_shared"
        assert session.scalar(
            select(func.count()).select_from(WorkflowTransition)
        ) == 0


def test_force_state_rejects_unknown_state(
    monkeypatch: pytest.MonkeyPatch,
    sqlite_session_factory: sessionmaker[Session],
    make_shipment: Callable[..., UUID],
) -> None:
    monkeypatch.setattr("freight_intel.cli.SessionFactory", sqlite_session_factory)
    shipment_id = make_shipment()

    result = runner.invoke(app, ["force-state", str(shipment_id), "teleported"])

    assert result.exit_code == 1
    assert "Workflow state code is not defined" in result.output
