"""accounts, workplaces, shifts and shift boards

Revision ID: 20250601_090000
Revises:
Create Date: 2025-06-01 09:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20250601_090000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


shift_part_enum = sa.Enum("morning", "noon", "evening", name="shift_part")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("username", sa.String(length=120), nullable=False),
        sa.Column("full_name", sa.String(), nullable=False),
        sa.Column("is_manager", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_approved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("workplace_id", sa.Integer(), nullable=True),
        sa.Column("external_ref", sa.String(), nullable=True),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), onupdate=sa.func.now()),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"])

    op.create_table(
        "workplaces",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("business_name", sa.String(), nullable=False),
        sa.Column("manager_id", sa.String(length=64), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_workplaces_business_name", "workplaces", ["business_name"], unique=True)

    op.create_foreign_key(
        "accounts_workplace_id_fkey",
        "accounts",
        "workplaces",
        ["workplace_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "invites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("code", sa.String(length=64), nullable=False, unique=True),
        sa.Column("is_used", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "shifts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workplace_id", sa.Integer(), sa.ForeignKey("workplaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("shift_date", sa.Date(), nullable=False),
        sa.Column("shift_part", shift_part_enum, nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("workplace_id", "shift_date", "shift_part", name="uq_shift_slot"),
    )
    op.create_index("ix_shifts_workplace_id", "shifts", ["workplace_id"])

    op.create_table(
        "shift_assignments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("shift_id", sa.Integer(), sa.ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.String(length=64), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("assigned_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("shift_id", "account_id", name="uq_shift_assignment_account"),
    )
    op.create_index("ix_shift_assignments_shift_id", "shift_assignments", ["shift_id"])
    op.create_index("ix_shift_assignments_account_id", "shift_assignments", ["account_id"])

    op.create_table(
        "shift_boards",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("workplace_id", sa.Integer(), sa.ForeignKey("workplaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("week_start_date", sa.Date(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("preferences", sa.JSON(), nullable=True),
        sa.Column("requests_window_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("requests_window_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("content", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint("workplace_id", "week_start_date", name="uq_shift_board_week"),
    )

    op.create_table(
        "user_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_id", sa.String(length=64), sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("workplace_id", sa.Integer(), sa.ForeignKey("workplaces.id", ondelete="CASCADE"), nullable=False),
        sa.Column("requests", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), onupdate=sa.func.now()),
        sa.UniqueConstraint("account_id", "workplace_id", name="uq_user_request_account_workplace"),
    )


def downgrade() -> None:
    op.drop_table("user_requests")
    op.drop_table("shift_boards")
    op.drop_index("ix_shift_assignments_account_id", table_name="shift_assignments")
    op.drop_index("ix_shift_assignments_shift_id", table_name="shift_assignments")
    op.drop_table("shift_assignments")
    op.drop_index("ix_shifts_workplace_id", table_name="shifts")
    op.drop_table("shifts")
    shift_part_enum.drop(op.get_bind(), checkfirst=True)
    op.drop_table("invites")
    op.drop_constraint("accounts_workplace_id_fkey", "accounts", type_="foreignkey")
    op.drop_index("ix_workplaces_business_name", table_name="workplaces")
    op.drop_table("workplaces")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
