from __future__ import annotations

from types import MappingProxyType

import pytest

from freight_intel.domain.errors import UnknownWorkflowStateError
from freight_intel.domain.value_objects import Direction, WorkflowPhase
from freight_intel.domain.workflow.registry import (
    WorkflowCatalogue,
    WorkflowStateDefinition,
    WorkflowStateRegistry,
    load_workflow_catalogue,
)
from freight_intel.domain.workflow.rules import (
    compute_progress,
    resolve_auto_target,
    valid_transitions,
    validate_transition,
)


def test_catalogue_is_ordered_and_starts_at_booking_confirmation(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    states = workflow_registry.all_states()
    orders = [state.order for state in states]

    assert orders == sorted(orders)
    assert workflow_registry.initial_state.code == "booking_confirmation_received"
    assert workflow_registry.require("hbl_released").order == 132


def test_require_raises_for_unknown_state(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    with pytest.raises(UnknownWorkflowStateError):
        workflow_registry.require("teleported")


def test_states_in_phase_filters_by_phase(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    delivery = workflow_registry.states_in_phase(WorkflowPhase.DELIVERY)

    assert delivery[0].code == "delivery_order_received"
    assert all(state.phase == WorkflowPhase.DELIVERY for state in delivery)


def test_next_state_edge_is_valid(workflow_registry: WorkflowStateRegistry) -> None:
    error = validate_transition(
        workflow_registry,
        "booking_confirmation_received",
        "booking_confirmation_shared",
    )

    assert error is None


def test_backward_move_is_rejected(workflow_registry: WorkflowStateRegistry) -> None:
    error = validate_transition(
        workflow_registry, "arrival_notice_received", "booking_confirmation_received"
    )

    assert error is not None
    assert "backward" in error


def test_skipping_required_state_is_rejected(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    error = validate_transition(
        workflow_registry, "booking_confirmation_shared", "si_submitted"
    )

    assert error is not None
    assert "si_draft_received" in error
    assert "commercial_invoice_received" not in error


def test_skipping_only_optional_states_is_allowed(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    registry = workflow_registry

    assert validate_transition(registry, "si_draft_received", "si_submitted") is None
    assert validate_transition(registry, "vgm_submitted", "vessel_departed") is None


def test_skip_validation_bypasses_ordering_but_not_existence(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    assert (
        validate_transition(
            workflow_registry,
            "arrival_notice_received",
            "booking_confirmation_received",
            skip_validation=True,
        )
        is None
    )
    unknown = validate_transition(
        workflow_registry, None, "teleported", skip_validation=True
    )
    assert unknown == "Unknown workflow state: teleported"


def test_terminal_state_blocks_every_transition(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    error = validate_transition(
        workflow_registry, "pod_received", "empty_returned", skip_validation=True
    )

    assert error == "Shipment is in terminal state pod_received"


def test_uninitialised_shipment_must_start_at_initial_state(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    registry = workflow_registry
    initial = "booking_confirmation_received"

    assert validate_transition(registry, None, initial) is None
    assert validate_transition(registry, None, "booking_cancelled") is None
    assert validate_transition(registry, None, "si_draft_received") is not None


def test_valid_transitions_lists_next_and_optional_reachable_states(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    states = valid_transitions(workflow_registry, "si_draft_received")
    codes = [state.code for state in states]

    assert codes[:3] == ["si_draft_sent", "checklist_received", "checklist_shared"]
    assert "si_submitted" in codes
    assert "si_confirmed" not in codes
    assert "si_draft_received" not in codes


@pytest.mark.parametrize(
    ("state", "expected"),
    [
        (None, 0),
        ("booking_confirmation_received", 0),
        ("hbl_released", 53),
        ("empty_returned", 100),
        ("pod_received", 100),
        ("shipment_closed", 100),
        ("booking_cancelled", 100),
    ],
)
def test_compute_progress(
    workflow_registry: WorkflowStateRegistry, state: str | None, expected: int
) -> None:
    assert compute_progress(workflow_registry, state) == expected


def test_auto_target_moves_forward_from_document(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    target = resolve_auto_target(
        workflow_registry, "hbl_released", "arrival_notice", Direction.INBOUND
    )

    assert target is not None
    assert target.code == "arrival_notice_received"


def test_auto_target_never_moves_backward(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    target = resolve_auto_target(
        workflow_registry,
        "arrival_notice_received",
        "booking_confirmation",
        Direction.INBOUND,
    )

    assert target is None


def test_auto_target_falls_back_to_state_listing_document_type(
    workflow_registry: WorkflowStateRegistry,
) -> None:
    target = resolve_auto_target(
        workflow_registry,
        "delivery_order_shared",
        "pickup_confirmation",
        Direction.INBOUND,
    )

    assert target is not None
    assert target.code == "container_released"


@pytest.mark.parametrize(
    ("document_type", "direction", "sender", "expected"),
    [
        ("si_draft", Direction.INBOUND, "shipper@acme.example", "si_draft_received"),
        ("si_draft", Direction.INBOUND, "docs@maersk.com", "si_confirmed"),
        ("si_submission", Direction.INBOUND, None, "si_confirmed"),
        ("si_submission", Direction.OUTBOUND, None, "si_submitted"),
        ("shipping_instruction", Direction.OUTBOUND, None, "si_draft_sent"),
        ("bill_of_lading", Direction.OUTBOUND, None, "hbl_released"),
        ("arrival_notice", "inbound", None, "arrival_notice_received"),
        ("rate_quote", Direction.OUTBOUND, None, None),
    ],
)
def test_state_for_document(
    workflow_registry: WorkflowStateRegistry,
    document_type: str,
    direction: Direction | str,
    sender: str | None,
    expected: str | None,
) -> None:
    assert workflow_registry.state_for_document(document_type, direction, sender) == (
        expected
    )


def build_catalogue(version: str) -> WorkflowCatalogue:
    state = WorkflowStateDefinition(
        code="only_state",
        label="Only",
        phase=WorkflowPhase.PRE_SHIPMENT,
        order=1,
        document_types=(),
        direction="inbound",
        next_states=(),
        is_optional=False,
        is_milestone=False,
        is_terminal=False,
    )
    return WorkflowCatalogue(
        version=version,
        initial_state="only_state",
        states=MappingProxyType({"only_state": state}),
        document_state_map=MappingProxyType({}),
        si_document_types=frozenset(),
        carrier_sender_keywords=(),
    )


def test_registry_reloads_after_ttl_expires() -> None:
    now = [0.0]
    loads: list[str] = []

    def loader() -> WorkflowCatalogue:
        version = f"v{len(loads) + 1}"
        loads.append(version)
        return build_catalogue(version)

    registry = WorkflowStateRegistry(loader, ttl_seconds=60, clock=lambda: now[0])

    assert registry.catalogue.version == "v1"
    now[0] = 59.0
    assert registry.catalogue.version == "v1"
    now[0] = 61.0
    assert registry.catalogue.version == "v2"
    assert registry.refresh().version == "v3"
    assert loads == ["v1", "v2", "v3"]


def test_load_workflow_catalogue_reads_packaged_resource() -> None:
    catalogue = load_workflow_catalogue()

    assert catalogue.version
    assert "si_draft" in catalogue.si_document_types
    assert "maersk" in catalogue.carrier_sender_keywords
