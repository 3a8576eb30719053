"""Domain exceptions used across API and services."""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any


def compose_error_message(*, cause: str, action: str) -> str:
    """Build a user-facing error message with cause and corrective action."""

    return f"Cause: {cause} Action: {action}"


@dataclass(slots=True)
class DomainError(Exception):
    """Base exception for predictable domain failures."""

    code: str
    message: str
    status_code: int
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(DomainError):
    """Raised when user sends semantically invalid input."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="INVALID_REQUEST",
            message=message
            or compose_error_message(
                cause="Request data violates business rules.",
                action="Adjust the input fields and try again.",
            ),
            status_code=HTTPStatus.BAD_REQUEST,
            details=details or {},
        )


class ShipmentNotFoundError(DomainError):
    """Raised when a shipment id does not resolve to a stored shipment."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="SHIPMENT_NOT_FOUND",
            message=message
            or compose_error_message(
                cause="Shipment does not exist.",
                action="Verify the shipment_id and retry.",
            ),
            status_code=HTTPStatus.NOT_FOUND,
            details=details or {},
        )


class ClassificationNotFoundError(DomainError):
    """Raised when no classification is stored for an email."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="CLASSIFICATION_NOT_FOUND",
            message=message
            or compose_error_message(
                cause="No classification is stored for this email.",
                action="Classify the email first or check the email_id.",
            ),
            status_code=HTTPStatus.NOT_FOUND,
            details=details or {},
        )


class UnknownWorkflowStateError(DomainError):
    """Raised when a workflow state code is not part of the configured catalogue."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="UNKNOWN_WORKFLOW_STATE",
            message=message
            or compose_error_message(
                cause="Workflow state code is not defined.",
                action="Use one of the codes returned by /v1/workflow/states.",
            ),
            status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
            details=details or {},
        )


class PatternConfigurationError(DomainError):
    """Raised when a pattern table resource cannot be read at all."""

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            code="PATTERN_CONFIGURATION_ERROR",
            message=message
            or compose_error_message(
                cause="A pattern table resource is missing or malformed.",
                action="Fix the JSON table or PATTERN_TABLES_DIR and restart.",
            ),
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            details=details or {},
        )
