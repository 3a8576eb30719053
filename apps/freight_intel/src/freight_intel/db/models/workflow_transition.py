"""Append-only workflow transition audit ORM model."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from freight_intel.db.base import Base
from freight_intel.domain.value_objects import TransitionType


class WorkflowTransition(Base):
    """One successful workflow state change for a shipment."""

    __tablename__ = "workflow_transitions"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    shipment_id: Mapped[UUID] = mapped_column(
        ForeignKey("shipments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    to_state: Mapped[str] = mapped_column(String(64), nullable=False)
    triggered_by_document_type: Mapped[str | None] = mapped_column(
        String(64), nullable=True
    )
    triggered_by_email_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    transition_type: Mapped[TransitionType] = mapped_column(
        Enum(
            TransitionType,
            name="workflow_transition_type",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    shipment: Mapped[Any] = relationship("Shipment", back_populates="transitions")
