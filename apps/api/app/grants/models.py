from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.gyms.models import Gym, Member


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GymPermission(Base):
    """Tenant grant: a gym lets an external coach edit its diets/trainings."""

    __tablename__ = "gym_permission"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    gym_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(Gym.id, ondelete="CASCADE"),
        nullable=False,
    )
    personal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(Member.id, ondelete="CASCADE"),
        nullable=False,
    )
    can_edit_diets: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    can_edit_trainings: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("gym_id", "personal_id", name="uq_gym_permission_pair"),
        Index("ix_gym_permission_personal", "personal_id", "is_active"),
    )


class UserPermission(Base):
    """Individual grant: a client lets a coach or a whole gym edit their resources."""

    __tablename__ = "user_permission"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(Member.id, ondelete="CASCADE"),
        nullable=False,
    )
    grantee_type: Mapped[str] = mapped_column(String(16), nullable=False)
    grantee_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    can_edit_diets: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    can_edit_trainings: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "grantee_type", "grantee_id", name="uq_user_permission_pair"),
        Index("ix_user_permission_grantee", "grantee_type", "grantee_id", "is_active"),
    )
