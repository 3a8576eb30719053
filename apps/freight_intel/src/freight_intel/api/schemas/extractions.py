"""Pydantic schemas for entity extraction endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field

from freight_intel.domain.extraction.extractor import ExtractionReport
from freight_intel.domain.extraction.models import ExtractedEntity
from freight_intel.domain.quality import QualityAssessment


class ExtractEntitiesRequest(BaseModel):
    subject: str = ""
    body_text: str = ""
    carrier: str | None = Field(default=None, max_length=64)
    document_type: str | None = Field(
        default=None,
        description="When set, the extracted fields are scored for completeness.",
    )


class EntityResponse(BaseModel):
    entity_type: str
    value: str
    confidence: float
    method: str
    pattern: str | None = None
    normalized: str | None = None
    context: str | None = None

    @classmethod
    def from_entity(cls, entity: ExtractedEntity) -> EntityResponse:
        return cls(
            entity_type=entity.entity_type,
            value=entity.value,
            confidence=entity.confidence,
            method=entity.method,
            pattern=entity.pattern,
            normalized=entity.normalized,
            context=entity.context,
        )


class QualityResponse(BaseModel):
    document_type: str
    score: float
    missing_fields: list[str]
    invalid_fields: list[str]
    validation_errors: list[str]

    @classmethod
    def from_assessment(cls, assessment: QualityAssessment) -> QualityResponse:
        return cls(
            document_type=assessment.document_type,
            score=assessment.score,
            missing_fields=list(assessment.missing_fields),
            invalid_fields=list(assessment.invalid_fields),
            validation_errors=list(assessment.validation_errors),
        )


class ExtractionResponse(BaseModel):
    carrier: str | None
    entities: list[EntityResponse]
    quality: QualityResponse | None = None

    @classmethod
    def from_report(
        cls,
        report: ExtractionReport,
        quality: QualityAssessment | None = None,
    ) -> ExtractionResponse:
        return cls(
            carrier=report.carrier,
            entities=[EntityResponse.from_entity(item) for item in report.entities],
            quality=QualityResponse.from_assessment(quality) if quality else None,
        )
