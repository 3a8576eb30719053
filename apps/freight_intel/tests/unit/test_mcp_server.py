from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field

import httpx
import pytest
from fastmcp import Client

from freight_intel.mcp.server import _build_api_error, create_mcp_server


@dataclass
class FakeRequester:
    responses: dict[tuple[str, str], object]
    calls: list[dict[str, object]] = field(default_factory=list)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str | int | float | bool | None] | None = None,
        json_body: Mapping[str, object] | None = None,
    ) -> object:
        self.calls.append(
            {
                "method": method,
                "path": path,
                "params": dict(params) if params else None,
                "json_body": dict(json_body) if json_body else None,
            }
        )

        value = self.responses[(method, path)]
        if isinstance(value, Exception):
            raise value
        return value


def run_tool(
    fake_requester: FakeRequester, name: str, arguments: dict[str, object]
) -> object:
    async def scenario() -> object:
        server = create_mcp_server(
            api_base_url="http://example.test",
            timeout_seconds=1,
            requester=fake_requester,
        )
        async with Client(server) as client:
            result = await client.call_tool(name, arguments)
        return result.data

    return asyncio.run(scenario())


def test_create_mcp_server_registers_expected_tools() -> None:
    async def scenario() -> list[str]:
        fake_requester = FakeRequester(responses={})
        server = create_mcp_server(
            api_base_url="http://example.test",
            timeout_seconds=1,
            requester=fake_requester,
        )
        async with Client(server) as client:
            tools = await client.list_tools()
        return sorted(tool.name for tool in tools)

    tool_names = asyncio.run(scenario())

    assert tool_names == [
        "auto_transition_shipment",
        "classify_email",
        "detect_direction",
        "extract_entities",
        "get_classification",
        "get_shipment_workflow",
        "list_workflow_states",
        "transition_shipment",
    ]


def test_classify_email_tool_sends_expected_payload() -> None:
    fake_requester = FakeRequester(
        responses={("POST", "/v1/classifications"): {"document_type": "si_draft"}}
    )

    run_tool(
        fake_requester,
        "classify_email",
        {
            "email_id": "msg-001",
            "subject": "SI draft",
            "sender_email": "exports@acme-textiles.example",
            "attachment_filenames": ["SI_draft_2345.pdf"],
            "save": False,
        },
    )

    assert fake_requester.calls[0] == {
        "method": "POST",
        "path": "/v1/classifications",
        "params": {"save": False},
        "json_body": {
            "email_id": "msg-001",
            "subject": "SI draft",
            "sender_email": "exports@acme-textiles.example",
            "attachment_filenames": ["SI_draft_2345.pdf"],
        },
    }


def test_get_shipment_workflow_tool_returns_api_payload() -> None:
    shipment_id = "5f0c3c8e-7a55-4f4b-9a59-0d7e1d4b6c11"
    expected_payload = {
        "shipment_id": shipment_id,
        "current_state": "hbl_released",
        "progress_percentage": 53,
    }
    fake_requester = FakeRequester(
        responses={("GET", f"/v1/shipments/{shipment_id}/workflow"): expected_payload}
    )

    tool_result = run_tool(
        fake_requester, "get_shipment_workflow", {"shipment_id": shipment_id}
    )

    assert tool_result == expected_payload


def test_auto_transition_tool_forwards_direction() -> None:
    shipment_id = "5f0c3c8e-7a55-4f4b-9a59-0d7e1d4b6c11"
    path = f"/v1/shipments/{shipment_id}/workflow/auto-transition"
    fake_requester = FakeRequester(responses={("POST", path): {"success": True}})

    run_tool(
        fake_requester,
        "auto_transition_shipment",
        {
            "shipment_id": shipment_id,
            "document_type": "arrival_notice",
            "direction": "inbound",
        },
    )

    assert fake_requester.calls[0] == {
        "method": "POST",
        "path": path,
        "params": None,
        "json_body": {"document_type": "arrival_notice", "direction": "inbound"},
    }


def test_list_workflow_states_tool_forwards_phase() -> None:
    fake_requester = FakeRequester(
        responses={("GET", "/v1/workflow/states"): {"states": []}}
    )

    run_tool(fake_requester, "list_workflow_states", {"phase": "arrival"})

    assert fake_requester.calls[0]["params"] == {"phase": "arrival"}


def test_create_mcp_server_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError, match="greater than zero"):
        create_mcp_server(api_base_url="http://example.test", timeout_seconds=0)


def test_build_api_error_uses_contract_payload_shape() -> None:
    response = httpx.Response(
        status_code=404,
        json={
            "code": "SHIPMENT_NOT_FOUND",
            "message": "Cause: Shipment does not exist. Action: Verify the id.",
            "details": {"shipment_id": "abc"},
        },
        request=httpx.Request("GET", "http://example.test/v1/shipments/abc/workflow"),
    )

    error_message = _build_api_error(response)

    assert "SHIPMENT_NOT_FOUND" in error_message
    assert "details={'shipment_id': 'abc'}" in error_message


def test_build_api_error_reports_rejected_transition() -> None:
    response = httpx.Response(
        status_code=422,
        json={
            "success": False,
            "from_state": "arrival_notice_received",
            "to_state": "booking_confirmation_received",
            "error": "Cannot move backward",
        },
        request=httpx.Request("POST", "http://example.test/v1/shipments/x/workflow"),
    )

    assert _build_api_error(response) == "Transition rejected: Cannot move backward"
