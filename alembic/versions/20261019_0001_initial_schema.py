"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("customer", "therapist", "business", "admin", name="role_enum", native_enum=False)
slot_status_enum = sa.Enum("available", "booked", "unavailable", "on-leave", name="slot_status_enum", native_enum=False)
booking_status_enum = sa.Enum(
    "pending",
    "therapist_confirmed",
    "therapist_rejected",
    "confirmed",
    "paid",
    "completed",
    "cancelled",
    "no-show",
    "rescheduled",
    name="booking_status_enum",
    native_enum=False,
)
booking_payment_status_enum = sa.Enum(
    "pending", "partial", "completed", name="booking_payment_status_enum", native_enum=False
)
payout_status_enum = sa.Enum("pending", "paid", name="payout_status_enum", native_enum=False)
payment_type_enum = sa.Enum("FULL", "ADVANCE", name="payment_type_enum", native_enum=False)
payment_method_enum = sa.Enum("cash", "card", "gateway", name="payment_method_enum", native_enum=False)
payment_status_enum = sa.Enum("pending", "completed", "failed", "refunded", name="payment_status_enum", native_enum=False)
notification_status_enum = sa.Enum("pending", "sent", "failed", name="notification_status_enum", native_enum=False)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _user_fk(name: str, *, nullable: bool = True, ondelete: str = "SET NULL") -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete=ondelete),
        nullable=nullable,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "businesses",
        _id_col(),
        _created_col(),
        _updated_col(),
        _user_fk("owner_id", nullable=False, ondelete="RESTRICT"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("opening_time", sa.String(length=5), nullable=False),
        sa.Column("closing_time", sa.String(length=5), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
    )
    op.create_index("ix_businesses_owner_id", "businesses", ["owner_id"])

    op.create_table(
        "services",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column(
            "business_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
    )
    op.create_index("ix_services_business_id", "services", ["business_id"])

    op.create_table(
        "therapist_availability",
        _id_col(),
        _created_col(),
        _updated_col(),
        _user_fk("therapist_id", nullable=False, ondelete="CASCADE"),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("status", slot_status_enum, nullable=False),
        sa.CheckConstraint("end_time > start_time", name="ck_therapist_availability_window_order"),
    )
    op.create_index("ix_therapist_availability_therapist_id", "therapist_availability", ["therapist_id"])
    op.create_index("ix_therapist_availability_date", "therapist_availability", ["date"])
    op.create_index("ix_therapist_availability_status", "therapist_availability", ["status"])

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        _user_fk("customer_id", nullable=False, ondelete="CASCADE"),
        _user_fk("therapist_id"),
        sa.Column(
            "service_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("services.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "business_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("businesses.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "availability_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("therapist_availability.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.String(length=5), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("service_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("payment_status", booking_payment_status_enum, nullable=False),
        sa.Column("assigned_by_admin", sa.Boolean(), nullable=False),
        sa.Column("response_visible_to_business_only", sa.Boolean(), nullable=False),
        sa.Column("therapist_responded", sa.Boolean(), nullable=False),
        _user_fk("assigned_by_id"),
        _user_fk("confirmed_by"),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        _user_fk("cancelled_by"),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=512), nullable=True),
        _user_fk("rescheduled_by"),
        sa.Column("rescheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("original_date", sa.Date(), nullable=True),
        sa.Column("original_time", sa.String(length=5), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("therapist_payout_status", payout_status_enum, nullable=True),
        sa.Column("therapist_payout_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("therapist_paid_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_therapist_id", "bookings", ["therapist_id"])
    op.create_index("ix_bookings_business_id", "bookings", ["business_id"])
    op.create_index("ix_bookings_date", "bookings", ["date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_payment_status", "bookings", ["payment_status"])

    op.create_table(
        "payments",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column(
            "booking_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("advance_paid", sa.Numeric(10, 2), nullable=False),
        sa.Column("remaining_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_type", payment_type_enum, nullable=False),
        sa.Column("method", payment_method_enum, nullable=False),
        sa.Column("status", payment_status_enum, nullable=False),
        sa.Column("external_reference", sa.String(length=128), nullable=True),
        sa.Column("gateway_order_id", sa.String(length=128), nullable=True),
        _user_fk("recorded_by"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_payments_booking_id", "payments", ["booking_id"])
    op.create_index("ix_payments_status", "payments", ["status"])
    op.create_index("ix_payments_external_reference", "payments", ["external_reference"])

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        _user_fk("actor_id"),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=128), nullable=False),
        sa.Column("aggregate_id", sa.String(length=128), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"])
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"])
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"])
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"])

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        _user_fk("user_id", nullable=False, ondelete="CASCADE"),
        sa.Column("channel", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("status", notification_status_enum, nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_status", "notifications", ["status"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("outbox_events")
    op.drop_table("audit_logs")
    op.drop_table("payments")
    op.drop_table("bookings")
    op.drop_table("therapist_availability")
    op.drop_table("services")
    op.drop_table("businesses")
    op.drop_table("users")
