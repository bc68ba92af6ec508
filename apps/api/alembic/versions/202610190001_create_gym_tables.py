"""create gym, member and resource tables

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610190001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "gym",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "gym_member",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="client"),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("diet_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_gym_member_gym_role", "gym_member", ["gym_id", "role"], unique=False)
    op.create_index("ix_gym_member_diet", "gym_member", ["diet_id"], unique=False)

    op.create_table(
        "diet",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=False),
        sa.Column("creator_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("proteins", sa.Integer(), nullable=True),
        sa.Column("carbohydrates", sa.Integer(), nullable=True),
        sa.Column("fats", sa.Integer(), nullable=True),
        sa.Column("is_reusable", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["creator_id"], ["gym_member.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_diet_gym", "diet", ["gym_id"], unique=False)
    op.create_index("ix_diet_creator", "diet", ["creator_id"], unique=False)
    op.create_index("ix_diet_reusable", "diet", ["is_reusable"], unique=False)

    # member.diet_id and diet.creator_id reference each other
    op.create_foreign_key(
        "fk_gym_member_diet_id",
        "gym_member",
        "diet",
        ["diet_id"],
        ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "training",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=False),
        sa.Column("coach_id", sa.Uuid(), nullable=True),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_reusable", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["coach_id"], ["gym_member.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["user_id"], ["gym_member.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_training_gym", "training", ["gym_id"], unique=False)
    op.create_index("ix_training_coach", "training", ["coach_id"], unique=False)
    op.create_index("ix_training_user", "training", ["user_id"], unique=False)
    op.create_index("ix_training_reusable", "training", ["is_reusable"], unique=False)

    op.create_table(
        "exercise",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("reps", sa.String(length=32), nullable=False, server_default="3x12"),
        sa.Column("weight", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rest_seconds", sa.Integer(), nullable=False, server_default="60"),
        sa.Column("video_link", sa.String(length=512), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "product",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(12, 2), nullable=False),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("image_link", sa.String(length=512), nullable=True),
        sa.Column("category", sa.String(length=128), nullable=True),
        sa.Column("code", sa.String(length=64), nullable=True),
        sa.Column("published", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["gym_id"], ["gym.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_gym", "product", ["gym_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_product_gym", table_name="product")
    op.drop_table("product")
    op.drop_table("exercise")
    op.drop_index("ix_training_reusable", table_name="training")
    op.drop_index("ix_training_user", table_name="training")
    op.drop_index("ix_training_coach", table_name="training")
    op.drop_index("ix_training_gym", table_name="training")
    op.drop_table("training")
    op.drop_constraint("fk_gym_member_diet_id", "gym_member", type_="foreignkey")
    op.drop_index("ix_diet_reusable", table_name="diet")
    op.drop_index("ix_diet_creator", table_name="diet")
    op.drop_index("ix_diet_gym", table_name="diet")
    op.drop_table("diet")
    op.drop_index("ix_gym_member_diet", table_name="gym_member")
    op.drop_index("ix_gym_member_gym_role", table_name="gym_member")
    op.drop_table("gym_member")
    op.drop_table("gym")
