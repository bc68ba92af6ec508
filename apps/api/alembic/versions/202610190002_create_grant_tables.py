"""create tenant and individual grant tables

Revision ID: 202610190002
Revises: 202610190001
Create Date: 2026-10-19 09:30:00
"""

from __future__ import annotations

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190002"
down_revision: str | None = "202610190001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "gym_permission",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=False),
        sa.Column("personal_id", sa.Uuid(), nullable=False),
        sa.Column("can_edit_diets", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("can_edit_trainings", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["personal_id"], ["gym_member.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("gym_id", "personal_id", name="uq_gym_permission_pair"),
    )
    op.create_index("ix_gym_permission_personal", "gym_permission", ["personal_id", "is_active"], unique=False)

    op.create_table(
        "user_permission",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("grantee_type", sa.String(length=16), nullable=False),
        sa.Column("grantee_id", sa.Uuid(), nullable=False),
        sa.Column("can_edit_diets", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("can_edit_trainings", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["gym_member.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "grantee_type", "grantee_id", name="uq_user_permission_pair"),
    )
    op.create_index(
        "ix_user_permission_grantee",
        "user_permission",
        ["grantee_type", "grantee_id", "is_active"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_user_permission_grantee", table_name="user_permission")
    op.drop_table("user_permission")
    op.drop_index("ix_gym_permission_personal", table_name="gym_permission")
    op.drop_table("gym_permission")
