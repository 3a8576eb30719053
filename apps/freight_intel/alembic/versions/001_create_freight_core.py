"""Create shipments, workflow transitions and document classifications.

Revision ID: 001_create_freight_core
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_create_freight_core"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


workflow_phase_enum = sa.Enum(
    "pre_shipment", "in_transit", "arrival", "delivery", name="workflow_phase"
)
transition_type_enum = sa.Enum(
    "initial", "manual", "automatic", name="workflow_transition_type"
)
classification_method_enum = sa.Enum(
    "deterministic", "ai", name="classification_method"
)
classification_signal_enum = sa.Enum(
    "attachment",
    "body",
    "subject",
    "carrier",
    "internal",
    "partner",
    "content",
    "ai",
    "thread",
    "fallback",
    name="classification_signal",
)
email_direction_enum = sa.Enum("inbound", "outbound", name="email_direction")


def upgrade() -> None:
    op.create_table(
        "shipments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("reference", sa.String(length=64), nullable=True),
        sa.Column("booking_number", sa.String(length=64), nullable=True),
        sa.Column("carrier_id", sa.String(length=64), nullable=True),
        sa.Column("workflow_state", sa.String(length=64), nullable=True),
        sa.Column("workflow_phase", workflow_phase_enum, nullable=True),
        sa.Column(
            "workflow_state_updated_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column(
            "version",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("version > 0", name="ck_shipments_version_positive"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_shipments_booking_number",
        "shipments",
        ["booking_number"],
        unique=False,
    )

    op.create_table(
        "workflow_transitions",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("shipment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("from_state", sa.String(length=64), nullable=True),
        sa.Column("to_state", sa.String(length=64), nullable=False),
        sa.Column("triggered_by_document_type", sa.String(length=64), nullable=True),
        sa.Column("triggered_by_email_id", sa.String(length=255), nullable=True),
        sa.Column("transition_type", transition_type_enum, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(
            ["shipment_id"],
            ["shipments.id"],
            name="fk_workflow_transitions_shipment_id",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_workflow_transitions_shipment_id",
        "workflow_transitions",
        ["shipment_id"],
        unique=False,
    )

    op.create_table(
        "document_classifications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("email_id", sa.String(length=255), nullable=False),
        sa.Column("sender_email", sa.String(length=320), nullable=True),
        sa.Column("document_type", sa.String(length=64), nullable=False),
        sa.Column("sub_type", sa.String(length=32), nullable=True),
        sa.Column("carrier_id", sa.String(length=64), nullable=True),
        sa.Column("carrier_name", sa.String(length=120), nullable=True),
        sa.Column("confidence", sa.SmallInteger(), nullable=False),
        sa.Column("method", classification_method_enum, nullable=False),
        sa.Column("signal", classification_signal_enum, nullable=False),
        sa.Column("matched_pattern", sa.Text(), nullable=False),
        sa.Column("direction", email_direction_enum, nullable=False),
        sa.Column("workflow_state", sa.String(length=64), nullable=True),
        sa.Column("needs_manual_review", sa.Boolean(), nullable=False),
        sa.Column("classification_reason", sa.Text(), nullable=False),
        sa.Column(
            "labels",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("model_name", sa.String(length=64), nullable=False),
        sa.Column("model_version", sa.String(length=64), nullable=False),
        sa.Column(
            "classified_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "confidence BETWEEN 0 AND 100",
            name="ck_document_classifications_confidence_range",
        ),
        sa.UniqueConstraint("email_id", name="uq_document_classifications_email_id"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_document_classifications_document_type",
        "document_classifications",
        ["document_type"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_document_classifications_document_type",
        table_name="document_classifications",
    )
    op.drop_table("document_classifications")
    op.drop_index(
        "ix_workflow_transitions_shipment_id",
        table_name="workflow_transitions",
    )
    op.drop_table("workflow_transitions")
    op.drop_index("ix_shipments_booking_number", table_name="shipments")
    op.drop_table("shipments")
    email_direction_enum.drop(op.get_bind(), checkfirst=True)
    classification_signal_enum.drop(op.get_bind(), checkfirst=True)
    classification_method_enum.drop(op.get_bind(), checkfirst=True)
    transition_type_enum.drop(op.get_bind(), checkfirst=True)
    workflow_phase_enum.drop(op.get_bind(), checkfirst=True)
