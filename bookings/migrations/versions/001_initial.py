"""Initial booking schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "admin",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("full_name", sa.String(200)),
        sa.Column("role", sa.String(20), nullable=False, server_default="staff"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_admin_email", "admin", ["email"])

    op.create_table(
        "working_hours_config",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("day_of_week", sa.Integer, nullable=False, unique=True),
        sa.Column("day_name_en", sa.String(20), nullable=False),
        sa.Column("day_name_ar", sa.String(20), nullable=False),
        sa.Column("start_time", sa.String(8), nullable=False, server_default="09:00:00"),
        sa.Column("end_time", sa.String(8), nullable=False, server_default="17:00:00"),
        sa.Column("last_appointment_time", sa.String(8), nullable=False, server_default="16:30:00"),
        sa.Column("slot_interval_minutes", sa.Integer, nullable=False, server_default="30"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_working_hours_config_day_of_week", "working_hours_config", ["day_of_week"])

    op.create_table(
        "day_specific_hours",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("date", sa.Date, nullable=False, unique=True),
        sa.Column("start_time", sa.String(8)),
        sa.Column("end_time", sa.String(8)),
        sa.Column("last_appointment_time", sa.String(8)),
        sa.Column("slot_interval_minutes", sa.Integer, nullable=False, server_default="30"),
        sa.Column("break_times", sa.JSON),
        sa.Column("is_holiday", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("holiday_reason_en", sa.String(200)),
        sa.Column("holiday_reason_ar", sa.String(200)),
        *_timestamps(),
    )
    op.create_index("ix_day_specific_hours_date", "day_specific_hours", ["date"])

    op.create_table(
        "booking_service",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("name_en", sa.String(200), nullable=False),
        sa.Column("name_ar", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_booking_service_slug", "booking_service", ["slug"])

    op.create_table(
        "booking",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_reference", sa.String(30), nullable=False, unique=True),
        sa.Column("service_id", sa.Uuid, sa.ForeignKey("booking_service.id", ondelete="CASCADE"), nullable=False),
        sa.Column("full_name_en", sa.String(200), nullable=False),
        sa.Column("full_name_ar", sa.String(200)),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("booking_date", sa.Date),
        sa.Column("start_time", sa.Time),
        sa.Column("end_time", sa.Time),
        sa.Column("status", sa.String(30), nullable=False, server_default="submitted"),
        sa.Column("notes", sa.Text),
        sa.Column("admin_notes", sa.Text),
        sa.Column("assigned_admin_id", sa.Uuid, sa.ForeignKey("admin.id", ondelete="SET NULL")),
        sa.Column("fee_amount", sa.Numeric(10, 2)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index("ix_booking_booking_reference", "booking", ["booking_reference"])
    op.create_index("ix_booking_service_id", "booking", ["service_id"])
    op.create_index("ix_booking_email", "booking", ["email"])
    op.create_index("ix_booking_service_date", "booking", ["service_id", "booking_date", "start_time"])


def downgrade() -> None:
    op.drop_table("booking")
    op.drop_table("booking_service")
    op.drop_table("day_specific_hours")
    op.drop_table("working_hours_config")
    op.drop_table("admin")
