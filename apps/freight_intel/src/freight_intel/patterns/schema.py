"""Pydantic models describing the JSON pattern and workflow resources."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from freight_intel.domain.value_objects import WorkflowPhase


class PatternRow(BaseModel):
    """One `(regex, label, priority)` row of a signal table."""

    pattern: str = Field(min_length=1)
    type: str = Field(min_length=1)
    priority: int = Field(ge=0, le=100)
    ignore_case: bool = True
    category: str | None = None


class PatternTableDocument(BaseModel):
    version: str
    rules: list[PatternRow]


class CarrierRuleRow(PatternRow):
    requires_pdf: bool = False
    content_patterns: list[str] = Field(default_factory=list)


class CarrierRow(BaseModel):
    id: str = Field(min_length=1)
    name: str
    domains: list[str] = Field(min_length=1)
    rules: list[CarrierRuleRow]

    @field_validator("domains")
    @classmethod
    def normalize_domains(cls, value: list[str]) -> list[str]:
        return [domain.strip().lower() for domain in value if domain.strip()]


class CarrierTableDocument(BaseModel):
    version: str
    min_content_length: int = Field(default=50, ge=0)
    carriers: list[CarrierRow]


class ContentMarkerRow(BaseModel):
    required: list[str] = Field(min_length=1)
    optional: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    confidence: int = Field(ge=0, le=100)


class ContentMarkerConfigRow(BaseModel):
    document_type: str
    markers: list[ContentMarkerRow] = Field(min_length=1)


class ContentMarkerDocument(BaseModel):
    version: str
    optional_boost: int = Field(default=2, ge=0)
    max_optional_boost: int = Field(default=6, ge=0)
    max_confidence: int = Field(default=99, ge=0, le=100)
    configs: list[ContentMarkerConfigRow]


class RelayRuleRow(BaseModel):
    name: str
    senders: list[str] = Field(min_length=1)
    subject_patterns: list[str] = Field(min_length=1)


class DirectionDocument(BaseModel):
    version: str
    internal_domains: list[str] = Field(min_length=1)
    carrier_domains: list[str]
    reply_prefix_pattern: str
    via_pattern: str
    relay_rules: list[RelayRuleRow] = Field(default_factory=list)


class WorkflowStateRow(BaseModel):
    code: str = Field(min_length=1)
    label: str
    phase: WorkflowPhase
    order: int = Field(ge=0)
    document_types: list[str] = Field(default_factory=list)
    direction: Literal["inbound", "outbound", "internal"]
    next_states: list[str] = Field(default_factory=list)
    is_optional: bool = False
    is_milestone: bool = False
    is_terminal: bool = False


class WorkflowCatalogueDocument(BaseModel):
    """Full workflow catalogue: states, document mapping and SI hints."""

    version: str
    initial_state: str
    states: list[WorkflowStateRow] = Field(min_length=1)
    document_state_map: dict[str, str]
    si_document_types: list[str] = Field(default_factory=list)
    carrier_sender_keywords: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_references(self) -> WorkflowCatalogueDocument:
        codes = {state.code for state in self.states}
        if len(codes) != len(self.states):
            raise ValueError("Workflow state codes must be unique.")
        if self.initial_state not in codes:
            raise ValueError("initial_state must reference a defined state.")

        unknown_next = {
            next_state
            for state in self.states
            for next_state in state.next_states
            if next_state not in codes
        }
        unknown_mapped = set(self.document_state_map.values()) - codes
        if unknown_next or unknown_mapped:
            raise ValueError(
                "Workflow catalogue references undefined states: "
                f"{sorted(unknown_next | unknown_mapped)}"
            )

        ordered = sorted(self.states, key=lambda state: state.order)
        for previous, current in zip(ordered, ordered[1:], strict=False):
            if current.phase.rank < previous.phase.rank:
                raise ValueError(
                    f"State {current.code} breaks phase ordering after {previous.code}."
                )
        return self
