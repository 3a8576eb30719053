"""Persisted email classification ORM model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from freight_intel.db.base import Base
from freight_intel.domain.value_objects import (
    ClassificationMethod,
    Direction,
    SignalSource,
)


class DocumentClassification(Base):
    """Latest classification of one email; reclassification replaces the row."""

    __tablename__ = "document_classifications"
    __table_args__ = (
        CheckConstraint(
            "confidence BETWEEN 0 AND 100",
            name="ck_document_classifications_confidence_range",
        ),
        UniqueConstraint("email_id", name="uq_document_classifications_email_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email_id: Mapped[str] = mapped_column(String(255), nullable=False)
    sender_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    document_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    sub_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    carrier_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    carrier_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    confidence: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    method: Mapped[ClassificationMethod] = mapped_column(
        Enum(
            ClassificationMethod,
            name="classification_method",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
    )
    signal: Mapped[SignalSource] = mapped_column(
        Enum(
            SignalSource,
            name="classification_signal",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
    )
    matched_pattern: Mapped[str] = mapped_column(Text, nullable=False)
    direction: Mapped[Direction] = mapped_column(
        Enum(
            Direction,
            name="email_direction",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
            validate_strings=True,
        ),
        nullable=False,
    )
    workflow_state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    needs_manual_review: Mapped[bool] = mapped_column(Boolean, nullable=False)
    classification_reason: Mapped[str] = mapped_column(Text, nullable=False)
    labels: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
    )
    model_name: Mapped[str] = mapped_column(String(64), nullable=False)
    model_version: Mapped[str] = mapped_column(String(64), nullable=False)
    classified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
