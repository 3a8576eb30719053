"""Entity extraction routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from freight_intel.api.dependencies import get_regex_extractor
from freight_intel.api.schemas.extractions import (
    ExtractEntitiesRequest,
    ExtractionResponse,
)
from freight_intel.domain.extraction.extractor import RegexExtractor
from freight_intel.domain.extraction.models import ExtractorInput
from freight_intel.domain.quality import assess_document_quality

router = APIRouter(prefix="/extractions", tags=["Extractions"])


@router.post(
    "",
    response_model=ExtractionResponse,
    responses={400: {"description": "Invalid payload"}},
)
def extract_entities(
    payload: ExtractEntitiesRequest,
    extractor: Annotated[RegexExtractor, Depends(get_regex_extractor)],
) -> ExtractionResponse:
    """Extract identifiers, dates, ports and vessel data from email text."""

    report = extractor.extract(
        ExtractorInput(
            subject=payload.subject,
            body_text=payload.body_text,
            carrier=payload.carrier,
        )
    )
    quality = (
        assess_document_quality(payload.document_type, report.as_fields())
        if payload.document_type
        else None
    )
    return ExtractionResponse.from_report(report, quality)
