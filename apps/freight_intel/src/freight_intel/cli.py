"""CLI bootstrap for freight-intel."""

import json
from pathlib import Path
from uuid import UUID

import typer

from freight_intel.application.schemas.classification import ClassificationInput
from freight_intel.application.services.classification_orchestrator import (
    build_orchestrator,
)
from freight_intel.application.services.classification_service import (
    ClassificationService,
)
from freight_intel.core.settings import get_settings
from freight_intel.db.session import SessionFactory
from freight_intel.domain.direction import DirectionDetector
from freight_intel.domain.errors import DomainError
from freight_intel.domain.extraction.extractor import RegexExtractor
from freight_intel.domain.extraction.models import ExtractorInput
from freight_intel.domain.quality import assess_document_quality
from freight_intel.domain.value_objects import WorkflowPhase
from freight_intel.domain.workflow.registry import WorkflowStateRegistry
from freight_intel.patterns.loader import load_pattern_tables
from freight_intel.repositories.classification_repository import (
    ClassificationRepository,
)
from freight_intel.repositories.shipment_repository import ShipmentRepository
from freight_intel.services.workflow_state_service import WorkflowStateService

app = typer.Typer(help="CLI for freight email classification and shipment workflow.")
INPUT_FILE_OPTION = typer.Option(..., exists=True, dir_okay=False)


@app.command("healthcheck")
def healthcheck() -> None:
    """Verify that the CLI entrypoint and pattern tables are available."""
    tables = load_pattern_tables(get_settings().pattern_tables_dir)
    typer.echo(f"freight-intel is ready (patterns {tables.version})")


@app.command("classify")
def classify(
    input: Path = INPUT_FILE_OPTION,
    save: bool = typer.Option(False, "--save/--no-save"),
) -> None:
    """Classify one email described by a JSON file."""
    payload = json.loads(input.read_text(encoding="utf-8"))
    email = ClassificationInput.model_validate(payload)
    orchestrator = build_orchestrator(get_settings())

    if not save:
        result = orchestrator.classify(email)
        typer.echo(result.model_dump_json(indent=2))
        return

    settings = get_settings()
    with SessionFactory() as session:
        service = ClassificationService(
            session=session,
            classifier=orchestrator,
            repository=ClassificationRepository(session),
            ai_model_name=settings.openai_model if orchestrator.ai_enabled else None,
            prompt_version=settings.prompt_version,
        )
        outcome = service.classify_and_save(email)
    typer.echo(outcome.result.model_dump_json(indent=2))
    if not outcome.saved:
        typer.echo(f"Classification not saved: {outcome.error}", err=True)
        raise typer.Exit(code=1)


@app.command("detect-direction")
def detect_direction(
    sender: str = typer.Option(..., "--sender"),
    subject: str = typer.Option("", "--subject"),
    true_sender: str | None = typer.Option(None, "--true-sender"),
) -> None:
    """Print inbound or outbound for a sender and subject."""
    tables = load_pattern_tables(get_settings().pattern_tables_dir)
    detector = DirectionDetector(tables.direction)
    typer.echo(detector.detect(sender, subject, true_sender).value)


@app.command("extract")
def extract(
    input: Path = INPUT_FILE_OPTION,
    document_type: str | None = typer.Option(None, "--document-type"),
) -> None:
    """Extract entities from a JSON file with subject and body_text."""
    payload = json.loads(input.read_text(encoding="utf-8"))
    report = RegexExtractor().extract(
        ExtractorInput(
            subject=str(payload.get("subject", "")),
            body_text=str(payload.get("body_text", "")),
            carrier=payload.get("carrier"),
        )
    )
    typer.echo(f"Carrier: {report.carrier or '-'}")
    for entity in report.entities:
        value = entity.normalized or entity.value
        typer.echo(f"{entity.entity_type}: {value} ({entity.confidence:g})")
    if document_type:
        quality = assess_document_quality(document_type, report.as_fields())
        typer.echo(f"Quality score: {quality.score:g}")
        if quality.missing_fields:
            typer.echo(f"Missing: {', '.join(quality.missing_fields)}")


@app.command("workflow-states")
def workflow_states(
    phase: WorkflowPhase | None = typer.Option(None, "--phase"),
) -> None:
    """List workflow states in order."""
    registry = WorkflowStateRegistry()
    states = registry.states_in_phase(phase) if phase else registry.all_states()
    for state in states:
        flags = "".join(
            marker
            for marker, enabled in (
                ("O", state.is_optional),
                ("M", state.is_milestone),
                ("T", state.is_terminal),
            )
            if enabled
        )
        typer.echo(f"{state.order:>4} {state.code:<40} {state.phase.value:<16} {flags}")


@app.command("force-state")
def force_state(shipment_id: UUID, state: str) -> None:
    """Overwrite a shipment's workflow state for data migration (no audit row)."""
    with SessionFactory() as session:
        service = WorkflowStateService(
            session=session,
            shipment_repository=ShipmentRepository(session),
            classification_repository=ClassificationRepository(session),
            registry=WorkflowStateRegistry(),
        )
        try:
            shipment = service.force_set_state(shipment_id, state)
        except DomainError as exc:
            typer.echo(exc.message, err=True)
            raise typer.Exit(code=1) from exc
    typer.echo(f"Shipment {shipment.id} forced to {shipment.workflow_state}")


def main() -> None:
    """Run the freight-intel CLI application."""
    app()


if __name__ == "__main__":
    main()
