from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.gyms.models import Diet, Exercise, Member, Product, Training
from app.platform.security.repository import BaseRepository
from app.platform.security.resources import ResourceType


class DietRepository(BaseRepository):
    resource_type = ResourceType.DIET
    model = Diet
    owner_attr = "creator_id"
    reusable_attr = "is_reusable"

    def load_assignees(self, session: Session, rows: Sequence[Diet]) -> dict[uuid.UUID, frozenset[uuid.UUID]]:
        diet_ids = [row.id for row in rows]
        if not diet_ids:
            return {}

        grouped: dict[uuid.UUID, set[uuid.UUID]] = {}
        stmt = select(Member.diet_id, Member.id).where(Member.diet_id.in_(diet_ids))
        for diet_id, member_id in session.execute(stmt).all():
            grouped.setdefault(diet_id, set()).add(member_id)
        return {diet_id: frozenset(members) for diet_id, members in grouped.items()}


class TrainingRepository(BaseRepository):
    resource_type = ResourceType.TRAINING
    model = Training
    owner_attr = "coach_id"
    assignee_attr = "user_id"
    reusable_attr = "is_reusable"


class ExerciseRepository(BaseRepository):
    resource_type = ResourceType.EXERCISE
    model = Exercise
    tenant_attr = None


class ProductRepository(BaseRepository):
    resource_type = ResourceType.PRODUCT
    model = Product
