from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.platform.security.grants import GrantKind, GranteeType


class TenantGrantCreate(BaseModel):
    gym_id: UUID | None = None
    personal_id: UUID
    can_edit_diets: bool = False
    can_edit_trainings: bool = False


class IndividualGrantCreate(BaseModel):
    grantee_type: GranteeType
    grantee_id: UUID
    can_edit_diets: bool = False
    can_edit_trainings: bool = False


class GrantUpdate(BaseModel):
    can_edit_diets: bool | None = None
    can_edit_trainings: bool | None = None
    active: bool | None = None


class TenantGrantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: GrantKind
    tenant_id: UUID
    coach_id: UUID
    can_edit_diets: bool
    can_edit_trainings: bool
    active: bool
    created_at: datetime | None


class IndividualGrantRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: GrantKind
    user_id: UUID
    grantee_type: GranteeType
    grantee_id: UUID
    can_edit_diets: bool
    can_edit_trainings: bool
    active: bool
    created_at: datetime | None


class TenantGrantPage(BaseModel):
    data: list[TenantGrantRead]
    meta: dict[str, Any]


class IndividualGrantPage(BaseModel):
    data: list[IndividualGrantRead]
    meta: dict[str, Any]
