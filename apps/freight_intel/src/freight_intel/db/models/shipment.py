"""Shipment ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freight_intel.db.base import Base
from freight_intel.domain.value_objects import WorkflowPhase


class Shipment(Base):
    """Shipment tracked through the workflow state machine."""

    __tablename__ = "shipments"
    __table_args__ = (
        CheckConstraint("version > 0", name="ck_shipments_version_positive"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    reference: Mapped[str | None] = mapped_column(String(64), nullable=True)
    booking_number: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    carrier_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    workflow_state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    workflow_phase: Mapped[WorkflowPhase | None] = mapped_column(
        Enum(
            WorkflowPhase,
            name="workflow_phase",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=True,
    )
    workflow_state_updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default="1"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    transitions: Mapped[list[Any]] = relationship(
        "WorkflowTransition",
        back_populates="shipment",
        cascade="all, delete-orphan",
        order_by="WorkflowTransition.created_at",
    )
