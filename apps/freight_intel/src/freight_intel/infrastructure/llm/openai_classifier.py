"""OpenAI adapter for the document-type fallback using strict JSON schema output."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from freight_intel.application.schemas.classification import (
    AIClassification,
    AIClassificationRequest,
)

STRICT_DOCUMENT_CLASSIFICATION_SCHEMA: dict[str, Any] = {
    "name": "shipping_document_classification",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "required": [
            "document_type",
            "sub_type",
            "confidence",
            "labels",
            "carrier",
            "reasoning",
        ],
        "properties": {
            "document_type": {
                "type": "string",
            },
            "sub_type": {
                "type": ["string", "null"],
            },
            "confidence": {
                "type": "integer",
                "minimum": 0,
                "maximum": 100,
            },
            "labels": {
                "type": "array",
                "items": {"type": "string"},
            },
            "carrier": {
                "type": ["string", "null"],
            },
            "reasoning": {
                "type": "string",
            },
        },
    },
}

SYSTEM_PROMPT = (
    "You classify freight-forwarding emails into shipping document types such as "
    "booking_confirmation, booking_amendment, shipping_instruction, si_draft, "
    "vgm_submission, bill_of_lading, hbl_draft, arrival_notice, delivery_order, "
    "customs_clearance, entry_summary, invoice, rate_quote or general_correspondence. "
    "Use snake_case document types. Report confidence 0-100 and a short reasoning."
)


class OpenAIClient(Protocol):
    """Minimum client protocol expected by the adapter."""

    def responses_create(self, **kwargs: Any) -> dict[str, Any]:
        """Call OpenAI Responses API and return payload as dict."""


@dataclass(slots=True, frozen=True)
class HTTPOpenAIClient:
    """Responses API client over ``httpx``."""

    api_key: str
    base_url: str
    timeout_seconds: float

    def responses_create(self, **kwargs: Any) -> dict[str, Any]:
        with httpx.Client(
            base_url=self.base_url.rstrip("/"),
            timeout=self.timeout_seconds,
            headers={"Authorization": f"Bearer {self.api_key}"},
        ) as client:
            response = client.post("/responses", json=kwargs)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("OpenAI response body is not a JSON object")
        return payload


class OpenAIDocumentClassifier:
    """Classifies one email with a strict JSON schema response."""

    def __init__(
        self,
        client: OpenAIClient,
        *,
        model: str,
        prompt_version: str,
    ) -> None:
        self._client = client
        self._model = model
        self._prompt_version = prompt_version

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def prompt_version(self) -> str:
        return self._prompt_version

    def classify_document(self, request: AIClassificationRequest) -> AIClassification:
        response = self._client.responses_create(
            model=self._model,
            temperature=0,
            metadata={"prompt_version": self._prompt_version},
            input=[
                {
                    "role": "system",
                    "content": SYSTEM_PROMPT,
                },
                {
                    "role": "user",
                    "content": self._render_request(request),
                },
            ],
            text={
                "format": {
                    "type": "json_schema",
                    **STRICT_DOCUMENT_CLASSIFICATION_SCHEMA,
                }
            },
        )
        payload = self._extract_payload(response)
        return AIClassification.model_validate(payload)

    @staticmethod
    def _render_request(request: AIClassificationRequest) -> str:
        sections = [
            f"Subject: {request.subject}",
            f"From: {request.sender_email}",
        ]
        if request.attachment_filenames:
            sections.append("Attachments: " + ", ".join(request.attachment_filenames))
        if request.body_text:
            sections.append(f"Body:\n{request.body_text}")
        if request.attachment_content:
            sections.append(f"Attachment text:\n{request.attachment_content}")
        return "\n\n".join(sections)

    def _extract_payload(self, response: dict[str, Any]) -> dict[str, Any]:
        output = response.get("output")
        if not isinstance(output, list) or not output:
            raise ValueError("OpenAI response does not contain output items")

        first_item = output[0]
        if not isinstance(first_item, dict):
            raise ValueError("OpenAI output item has invalid format")

        content = first_item.get("content")
        if not isinstance(content, list) or not content:
            raise ValueError("OpenAI output does not contain content")

        content_item = content[0]
        if not isinstance(content_item, dict):
            raise ValueError("OpenAI content item has invalid format")

        parsed = content_item.get("parsed")
        if isinstance(parsed, dict):
            return parsed

        text = content_item.get("text")
        if isinstance(text, str):
            try:
                decoded = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ValueError("OpenAI output text is not valid JSON") from exc
            if isinstance(decoded, dict):
                return decoded

        raise ValueError("OpenAI response does not contain parsed JSON schema output")
