"""Pure forward-only transition rules over a workflow state registry."""

from __future__ import annotations

from freight_intel.domain.value_objects import Direction
from freight_intel.domain.workflow.registry import (
    WorkflowStateDefinition,
    WorkflowStateRegistry,
)

CANCELLED_STATE = "booking_cancelled"


def validate_transition(
    registry: WorkflowStateRegistry,
    current_code: str | None,
    target_code: str,
    *,
    skip_validation: bool = False,
) -> str | None:
    """Return a rejection reason, or None when the move is allowed.

    Existence and terminal checks always apply. ``skip_validation`` only
    bypasses the edge, ordering and skip-ahead checks.
    """

    target = registry.get(target_code)
    if target is None:
        return f"Unknown workflow state: {target_code}"

    current = registry.get(current_code)
    if current_code and current is None:
        return f"Current state {current_code} is not defined"
    if current is not None and current.is_terminal:
        return f"Shipment is in terminal state {current.code}"

    if skip_validation:
        return None

    if current is None:
        allowed = {registry.catalogue.initial_state, CANCELLED_STATE}
        if target.code not in allowed:
            return (
                f"Workflow must start at {registry.catalogue.initial_state}, "
                f"not {target.code}"
            )
        return None

    if target.order <= current.order:
        return (
            f"Cannot move backward from {current.code} (order {current.order}) "
            f"to {target.code} (order {target.order})"
        )

    if target.code in current.next_states:
        return None

    blocking = [
        state.code
        for state in registry.states_between(current.order, target.order)
        if not state.is_optional and not state.is_terminal
    ]
    if blocking:
        return (
            f"Cannot skip required states between {current.code} and "
            f"{target.code}: {', '.join(blocking)}"
        )
    return None


def valid_transitions(
    registry: WorkflowStateRegistry, current_code: str | None
) -> list[WorkflowStateDefinition]:
    """Configured next states plus every state reachable by skipping optionals."""

    return [
        state
        for state in registry.all_states()
        if validate_transition(registry, current_code, state.code) is None
    ]


def compute_progress(registry: WorkflowStateRegistry, current_code: str | None) -> int:
    current = registry.get(current_code)
    if current is None:
        return 0
    if current.is_terminal:
        return 100
    lower, upper = registry.progress_bounds()
    if upper <= lower:
        return 100
    ratio = (current.order - lower) / (upper - lower)
    return max(0, min(100, round(ratio * 100)))


def resolve_auto_target(
    registry: WorkflowStateRegistry,
    current_code: str | None,
    document_type: str,
    direction: Direction | str,
    sender_email: str | None = None,
) -> WorkflowStateDefinition | None:
    """Pick the state a new document advances the shipment to.

    The direct mapping is used first; otherwise the nearest forward state
    listing the document type. Returns None when nothing moves forward.
    """

    current = registry.get(current_code)
    floor = current.order if current is not None else -1

    mapped = registry.get(
        registry.state_for_document(document_type, direction, sender_email)
    )
    if mapped is not None:
        return mapped if mapped.order > floor else None

    forward = [
        state
        for state in registry.candidate_states(document_type)
        if state.order > floor
    ]
    return forward[0] if forward else None
