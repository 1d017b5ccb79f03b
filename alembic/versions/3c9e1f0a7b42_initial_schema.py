"""Initial schema: users, workplaces, shifts, exchange requests, reports

Revision ID: 3c9e1f0a7b42
Revises:
Create Date: 2026-10-19 10:12:44.318201
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3c9e1f0a7b42"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

USER_ROLE_ENUM = "user_role"
WORKPLACE_TYPE_ENUM = "workplace_type"
EXCHANGE_STATUS_ENUM = "exchange_status"


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(length=32), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=64), nullable=True),
        sa.Column("role", sa.Enum("admin", "worker", name=USER_ROLE_ENUM), nullable=False),
        sa.Column("hourly_wage", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "workplaces",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "type",
            sa.Enum("warehouse", "event", "club", "office", "other", name=WORKPLACE_TYPE_ENUM),
            nullable=False,
        ),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("manager_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_workplaces_manager_id"), "workplaces", ["manager_id"], unique=False)

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("workplace_id", sa.Integer(), nullable=False),
        sa.Column("worker_id", sa.Integer(), nullable=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["workplace_id"], ["workplaces.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["worker_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shifts_workplace_id"), "shifts", ["workplace_id"], unique=False)
    op.create_index(op.f("ix_shifts_worker_id"), "shifts", ["worker_id"], unique=False)
    op.create_index("ix_shifts_worker_start", "shifts", ["worker_id", "start_at"], unique=False)
    op.create_index("ix_shifts_date", "shifts", ["date"], unique=False)

    op.create_table(
        "exchange_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("requester_id", sa.Integer(), nullable=False),
        sa.Column("requestee_id", sa.Integer(), nullable=True),
        sa.Column("request_shift_id", sa.Integer(), nullable=True),
        sa.Column("offered_shift_id", sa.Integer(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "approved", "rejected", name=EXCHANGE_STATUS_ENUM),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolved_by", sa.Integer(), nullable=True),
        sa.Column("resolution_note", sa.Text(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.ForeignKeyConstraint(["requester_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["requestee_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["request_shift_id"], ["shifts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["offered_shift_id"], ["shifts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["resolved_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_exchange_requests_requester_id"), "exchange_requests", ["requester_id"], unique=False)
    op.create_index(op.f("ix_exchange_requests_requestee_id"), "exchange_requests", ["requestee_id"], unique=False)
    op.create_index(op.f("ix_exchange_requests_request_shift_id"), "exchange_requests", ["request_shift_id"], unique=False)
    op.create_index(op.f("ix_exchange_requests_offered_shift_id"), "exchange_requests", ["offered_shift_id"], unique=False)
    op.create_index("ix_exchange_requests_status", "exchange_requests", ["status"], unique=False)

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("total_minutes", sa.Integer(), nullable=False),
        sa.Column("shift_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_reports_month"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_reports_user_id"), "reports", ["user_id"], unique=False)
    op.create_index("ix_reports_user_period", "reports", ["user_id", "year", "month"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_reports_user_period", table_name="reports")
    op.drop_index(op.f("ix_reports_user_id"), table_name="reports")
    op.drop_table("reports")

    op.drop_index("ix_exchange_requests_status", table_name="exchange_requests")
    op.drop_index(op.f("ix_exchange_requests_offered_shift_id"), table_name="exchange_requests")
    op.drop_index(op.f("ix_exchange_requests_request_shift_id"), table_name="exchange_requests")
    op.drop_index(op.f("ix_exchange_requests_requestee_id"), table_name="exchange_requests")
    op.drop_index(op.f("ix_exchange_requests_requester_id"), table_name="exchange_requests")
    op.drop_table("exchange_requests")

    op.drop_index("ix_shifts_date", table_name="shifts")
    op.drop_index("ix_shifts_worker_start", table_name="shifts")
    op.drop_index(op.f("ix_shifts_worker_id"), table_name="shifts")
    op.drop_index(op.f("ix_shifts_workplace_id"), table_name="shifts")
    op.drop_table("shifts")

    op.drop_index(op.f("ix_workplaces_manager_id"), table_name="workplaces")
    op.drop_table("workplaces")
    op.drop_table("users")

    for name in (EXCHANGE_STATUS_ENUM, WORKPLACE_TYPE_ENUM, USER_ROLE_ENUM):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
