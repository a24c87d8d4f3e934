"""initial skystatus schema

Revision ID: 3b8e41c0d7a2
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3b8e41c0d7a2"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _member_id() -> sa.Column:
    return sa.Column(
        "member_id",
        sa.Uuid(as_uuid=True),
        sa.ForeignKey("members_member.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "members_member",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=True),
        sa.Column("flying_blue_number", sa.String(length=32), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("password_hash", sa.String(length=200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
    )
    op.create_index("ix_members_member_email", "members_member", ["email"], unique=True)

    op.create_table(
        "imports_run",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        _member_id(),
        sa.Column("filename", sa.String(length=512), nullable=False),
        sa.Column("content_type", sa.String(length=200), nullable=True),
        sa.Column("byte_size", sa.Integer(), nullable=False),
        sa.Column("sha256", sa.String(length=64), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=False),
        sa.Column("status", sa.String(length=9), nullable=False),
        sa.Column("language", sa.String(length=2), nullable=True),
        sa.Column("result", sa.JSON(), nullable=True),
        sa.Column("conflicts", sa.JSON(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("committed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("storage_key", name="uq_imports_run_storage_key"),
    )
    op.create_index("ix_imports_run_member_id", "imports_run", ["member_id"])
    op.create_index("ix_imports_run_sha256", "imports_run", ["sha256"])
    op.create_index("ix_imports_run_status", "imports_run", ["status"])

    op.create_table(
        "imports_flight",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        _member_id(),
        sa.Column(
            "source_import_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("imports_run.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("external_id", sa.String(length=128), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("flight_number", sa.String(length=16), nullable=False),
        sa.Column("route", sa.String(length=16), nullable=False),
        sa.Column("airline", sa.String(length=64), nullable=False),
        sa.Column("earned_xp", sa.Integer(), nullable=False),
        sa.Column("earned_miles", sa.Integer(), nullable=False),
        sa.Column("saf_xp", sa.Integer(), nullable=False),
        sa.Column("uxp", sa.Integer(), nullable=False),
        sa.Column("ticket_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=True),
        sa.Column("is_manual", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("member_id", "external_id", name="uq_imports_flight_external"),
    )
    op.create_index("ix_imports_flight_member_id", "imports_flight", ["member_id"])
    op.create_index("ix_imports_flight_date", "imports_flight", ["date"])

    op.create_table(
        "imports_miles_month",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        _member_id(),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("flight_miles", sa.Integer(), nullable=False),
        sa.Column("subscription_miles", sa.Integer(), nullable=False),
        sa.Column("amex_miles", sa.Integer(), nullable=False),
        sa.Column("hotel_miles", sa.Integer(), nullable=False),
        sa.Column("other_miles", sa.Integer(), nullable=False),
        sa.Column("purchased_miles", sa.Integer(), nullable=False),
        sa.Column("transfer_miles", sa.Integer(), nullable=False),
        sa.Column("miles_debit", sa.Integer(), nullable=False),
        sa.Column("total_miles", sa.Integer(), nullable=False),
        sa.UniqueConstraint("member_id", "month", name="uq_imports_miles_month"),
    )
    op.create_index("ix_imports_miles_month_member_id", "imports_miles_month", ["member_id"])

    op.create_table(
        "imports_qualification",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        _member_id(),
        sa.Column("cycle_start_month", sa.String(length=7), nullable=False),
        sa.Column("cycle_start_date", sa.String(length=10), nullable=True),
        sa.Column("starting_status", sa.String(length=8), nullable=False),
        sa.Column("starting_xp", sa.Integer(), nullable=False),
        sa.Column("starting_uxp", sa.Integer(), nullable=False),
        sa.Column("rollover_xp", sa.Integer(), nullable=False),
        sa.UniqueConstraint("member_id", name="uq_imports_qualification_member"),
    )
    op.create_index("ix_imports_qualification_member_id", "imports_qualification", ["member_id"])

    op.create_table(
        "imports_manual_ledger",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        *_timestamps(),
        _member_id(),
        sa.Column("month", sa.String(length=7), nullable=False),
        sa.Column("amex_xp", sa.Integer(), nullable=False),
        sa.Column("bonus_saf_xp", sa.Integer(), nullable=False),
        sa.Column("misc_xp", sa.Integer(), nullable=False),
        sa.Column("correction_xp", sa.Integer(), nullable=False),
        sa.UniqueConstraint("member_id", "month", name="uq_imports_manual_ledger_month"),
    )
    op.create_index("ix_imports_manual_ledger_member_id", "imports_manual_ledger", ["member_id"])


def downgrade() -> None:
    op.drop_index("ix_imports_manual_ledger_member_id", table_name="imports_manual_ledger")
    op.drop_table("imports_manual_ledger")
    op.drop_index("ix_imports_qualification_member_id", table_name="imports_qualification")
    op.drop_table("imports_qualification")
    op.drop_index("ix_imports_miles_month_member_id", table_name="imports_miles_month")
    op.drop_table("imports_miles_month")
    op.drop_index("ix_imports_flight_date", table_name="imports_flight")
    op.drop_index("ix_imports_flight_member_id", table_name="imports_flight")
    op.drop_table("imports_flight")
    op.drop_index("ix_imports_run_status", table_name="imports_run")
    op.drop_index("ix_imports_run_sha256", table_name="imports_run")
    op.drop_index("ix_imports_run_member_id", table_name="imports_run")
    op.drop_table("imports_run")
    op.drop_index("ix_members_member_email", table_name="members_member")
    op.drop_table("members_member")
