"""MCP server exposing freight_intel API capabilities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, Protocol

import httpx
from fastmcp import FastMCP

from freight_intel.core.settings import get_settings

DirectionValue = Literal["inbound", "outbound"]
PhaseFilter = Literal["pre_shipment", "in_transit", "arrival", "delivery"]
ParamValue = str | int | float | bool | None
ParamsMapping = Mapping[str, ParamValue]


class APIRequester(Protocol):
    """Requester abstraction to simplify HTTP boundary testing."""

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: ParamsMapping | None = None,
        json_body: Mapping[str, object] | None = None,
    ) -> object: ...


@dataclass(slots=True, frozen=True)
class HTTPAPIRequester:
    """HTTP client wrapper for freight_intel API."""

    base_url: str
    timeout_seconds: float

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: ParamsMapping | None = None,
        json_body: Mapping[str, object] | None = None,
    ) -> object:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
        ) as client:
            response = await client.request(
                method=method,
                url=path,
                params=params,
                json=dict(json_body) if json_body else None,
            )

        if response.is_success:
            return _parse_json_response(response)
        raise RuntimeError(_build_api_error(response))


def _parse_json_response(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise RuntimeError(
            f"API returned a non-JSON response with status {response.status_code}."
        ) from exc


def _build_api_error(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        text = response.text.strip()
        if text:
            return f"API request failed with status {response.status_code}: {text}"
        return f"API request failed with status {response.status_code}."

    if isinstance(payload, Mapping):
        error_code = payload.get("code")
        error_message = payload.get("message")
        details = payload.get("details")
        if isinstance(error_code, str) and isinstance(error_message, str):
            if details is None:
                return f"API error {error_code}: {error_message}"
            return f"API error {error_code}: {error_message} | details={details}"
        if "success" in payload and payload.get("error"):
            return f"Transition rejected: {payload['error']}"

    return f"API request failed with status {response.status_code}: {payload}"


def _normalize_base_url(value: str) -> str:
    return value.rstrip("/")


def create_mcp_server(
    *,
    api_base_url: str | None = None,
    timeout_seconds: float | None = None,
    requester: APIRequester | None = None,
) -> FastMCP:
    """Create MCP server with curated tools mapped to REST endpoints."""

    settings = get_settings()
    resolved_base_url = _normalize_base_url(api_base_url or settings.mcp_api_base_url)
    resolved_timeout = (
        settings.mcp_api_timeout_seconds if timeout_seconds is None else timeout_seconds
    )
    if resolved_timeout <= 0:
        raise ValueError("MCP API timeout must be greater than zero.")

    mcp = FastMCP(name="Freight Intel")
    api_requester: APIRequester = requester or HTTPAPIRequester(
        base_url=resolved_base_url,
        timeout_seconds=resolved_timeout,
    )

    @mcp.tool
    async def classify_email(
        email_id: str,
        subject: str,
        sender_email: str,
        body_text: str | None = None,
        true_sender_email: str | None = None,
        attachment_filenames: list[str] | None = None,
        attachment_content: str | None = None,
        existing_doc_types_in_thread: list[str] | None = None,
        save: bool = True,
    ) -> object:
        """Classify one freight email into a shipping document type."""

        payload: dict[str, object] = {
            "email_id": email_id,
            "subject": subject,
            "sender_email": sender_email,
        }
        if body_text is not None:
            payload["body_text"] = body_text
        if true_sender_email is not None:
            payload["true_sender_email"] = true_sender_email
        if attachment_filenames:
            payload["attachment_filenames"] = attachment_filenames
        if attachment_content is not None:
            payload["attachment_content"] = attachment_content
        if existing_doc_types_in_thread:
            payload["existing_doc_types_in_thread"] = existing_doc_types_in_thread

        return await api_requester.request(
            "POST",
            "/v1/classifications",
            params=None if save else {"save": False},
            json_body=payload,
        )

    @mcp.tool
    async def get_classification(email_id: str) -> object:
        """Return the stored classification for one email."""

        return await api_requester.request("GET", f"/v1/classifications/{email_id}")

    @mcp.tool
    async def detect_direction(
        sender_email: str,
        subject: str | None = None,
        true_sender_email: str | None = None,
    ) -> object:
        """Detect whether an email is inbound or outbound."""

        payload: dict[str, object] = {"sender_email": sender_email}
        if subject is not None:
            payload["subject"] = subject
        if true_sender_email is not None:
            payload["true_sender_email"] = true_sender_email
        return await api_requester.request(
            "POST", "/v1/classifications/direction", json_body=payload
        )

    @mcp.tool
    async def extract_entities(
        subject: str = "",
        body_text: str = "",
        carrier: str | None = None,
        document_type: str | None = None,
    ) -> object:
        """Extract booking, container, BL numbers, dates, ports and vessel data."""

        payload: dict[str, object] = {"subject": subject, "body_text": body_text}
        if carrier is not None:
            payload["carrier"] = carrier
        if document_type is not None:
            payload["document_type"] = document_type
        return await api_requester.request("POST", "/v1/extractions", json_body=payload)

    @mcp.tool
    async def get_shipment_workflow(shipment_id: str) -> object:
        """Return current workflow state and progress for a shipment."""

        return await api_requester.request(
            "GET", f"/v1/shipments/{shipment_id}/workflow"
        )

    @mcp.tool
    async def transition_shipment(
        shipment_id: str,
        target_state: str,
        document_type: str | None = None,
        email_id: str | None = None,
        notes: str | None = None,
    ) -> object:
        """Move a shipment to a later workflow state."""

        payload: dict[str, object] = {"target_state": target_state}
        if document_type is not None:
            payload["document_type"] = document_type
        if email_id is not None:
            payload["email_id"] = email_id
        if notes is not None:
            payload["notes"] = notes
        return await api_requester.request(
            "POST",
            f"/v1/shipments/{shipment_id}/workflow/transitions",
            json_body=payload,
        )

    @mcp.tool
    async def auto_transition_shipment(
        shipment_id: str,
        document_type: str,
        email_id: str | None = None,
        direction: DirectionValue | None = None,
    ) -> object:
        """Advance a shipment from a newly classified document."""

        payload: dict[str, object] = {"document_type": document_type}
        if email_id is not None:
            payload["email_id"] = email_id
        if direction is not None:
            payload["direction"] = direction
        return await api_requester.request(
            "POST",
            f"/v1/shipments/{shipment_id}/workflow/auto-transition",
            json_body=payload,
        )

    @mcp.tool
    async def list_workflow_states(phase: PhaseFilter | None = None) -> object:
        """List workflow state definitions, optionally for one phase."""

        return await api_requester.request(
            "GET",
            "/v1/workflow/states",
            params={"phase": phase} if phase is not None else None,
        )

    return mcp


def main() -> None:
    """Run the MCP server over stdio."""

    create_mcp_server().run()
