"""Shipment creation and lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from freight_intel.db.models.shipment import Shipment
from freight_intel.domain.errors import ShipmentNotFoundError


class SessionProtocol(Protocol):
    """Subset of SQLAlchemy session APIs used by the shipment service."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def refresh(self, instance: object) -> None: ...


class ShipmentRepositoryProtocol(Protocol):
    def get(self, shipment_id: UUID) -> Shipment | None: ...

    def add(
        self,
        *,
        reference: str | None = None,
        booking_number: str | None = None,
        carrier_id: str | None = None,
    ) -> Shipment: ...


@dataclass(slots=True, frozen=True)
class CreateShipmentInput:
    """Input model for shipment creation."""

    reference: str | None = None
    booking_number: str | None = None
    carrier_id: str | None = None


class ShipmentService:
    def __init__(
        self,
        *,
        session: SessionProtocol,
        repository: ShipmentRepositoryProtocol,
    ) -> None:
        self._session = session
        self._repository = repository

    def create_shipment(self, payload: CreateShipmentInput) -> Shipment:
        try:
            shipment = self._repository.add(
                reference=payload.reference,
                booking_number=payload.booking_number,
                carrier_id=payload.carrier_id,
            )
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        self._session.refresh(shipment)
        return shipment

    def get_shipment(self, shipment_id: UUID) -> Shipment:
        shipment = self._repository.get(shipment_id)
        if shipment is None:
            raise ShipmentNotFoundError(details={"shipment_id": str(shipment_id)})
        return shipment
