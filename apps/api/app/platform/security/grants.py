from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal, Protocol

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.grants.models import GymPermission, UserPermission
from app.metrics import observe_grant_store_query
from app.platform.security.errors import GrantConflictError, NotFoundError
from app.platform.security.resources import Capability


class GrantKind(StrEnum):
    TENANT = "tenant"
    INDIVIDUAL = "individual"


class GranteeType(StrEnum):
    PERSONAL = "personal"
    GYM = "gym"


@dataclass(frozen=True, slots=True)
class TenantGrant:
    id: uuid.UUID
    tenant_id: uuid.UUID
    coach_id: uuid.UUID
    can_edit_diets: bool
    can_edit_trainings: bool
    active: bool
    created_at: datetime | None = None
    kind: Literal[GrantKind.TENANT] = GrantKind.TENANT


@dataclass(frozen=True, slots=True)
class IndividualGrant:
    id: uuid.UUID
    user_id: uuid.UUID
    grantee_type: GranteeType
    grantee_id: uuid.UUID
    can_edit_diets: bool
    can_edit_trainings: bool
    active: bool
    created_at: datetime | None = None
    kind: Literal[GrantKind.INDIVIDUAL] = GrantKind.INDIVIDUAL


Grant = TenantGrant | IndividualGrant


class GrantStore(Protocol):
    """Read side of the grant relations consumed by the permission resolver."""

    def has_tenant_grant(self, coach_id: uuid.UUID, tenant_id: uuid.UUID, capability: Capability) -> bool:
        ...

    def has_individual_grant(
        self,
        assignee_id: uuid.UUID,
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> bool:
        ...

    def list_individual_grants_for_assignees(
        self,
        assignee_ids: Iterable[uuid.UUID],
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> set[uuid.UUID]:
        ...

    def list_tenants_granted_to(self, coach_id: uuid.UUID, capability: Capability) -> set[uuid.UUID]:
        ...


_MODELS: dict[GrantKind, type[GymPermission] | type[UserPermission]] = {
    GrantKind.TENANT: GymPermission,
    GrantKind.INDIVIDUAL: UserPermission,
}


class DbGrantStore:
    """Grant store backed by the ``gym_permission`` and ``user_permission`` tables."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def has_tenant_grant(self, coach_id: uuid.UUID, tenant_id: uuid.UUID, capability: Capability) -> bool:
        stmt = (
            select(GymPermission.id)
            .where(
                GymPermission.personal_id == coach_id,
                GymPermission.gym_id == tenant_id,
                GymPermission.is_active.is_(True),
                getattr(GymPermission, capability.value).is_(True),
            )
            .limit(1)
        )
        observe_grant_store_query("has_tenant_grant")
        return self._session.scalar(stmt) is not None

    def has_individual_grant(
        self,
        assignee_id: uuid.UUID,
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> bool:
        stmt = (
            select(UserPermission.id)
            .where(
                UserPermission.user_id == assignee_id,
                UserPermission.grantee_type == grantee_type.value,
                UserPermission.grantee_id == grantee_id,
                UserPermission.is_active.is_(True),
                getattr(UserPermission, capability.value).is_(True),
            )
            .limit(1)
        )
        observe_grant_store_query("has_individual_grant")
        return self._session.scalar(stmt) is not None

    def list_individual_grants_for_assignees(
        self,
        assignee_ids: Iterable[uuid.UUID],
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> set[uuid.UUID]:
        wanted = set(assignee_ids)
        if not wanted:
            return set()

        stmt = select(UserPermission.user_id).where(
            UserPermission.user_id.in_(wanted),
            UserPermission.grantee_type == grantee_type.value,
            UserPermission.grantee_id == grantee_id,
            UserPermission.is_active.is_(True),
            getattr(UserPermission, capability.value).is_(True),
        )
        observe_grant_store_query("list_individual_grants_for_assignees")
        return set(self._session.scalars(stmt).all())

    def list_tenants_granted_to(self, coach_id: uuid.UUID, capability: Capability) -> set[uuid.UUID]:
        stmt = select(GymPermission.gym_id).where(
            GymPermission.personal_id == coach_id,
            GymPermission.is_active.is_(True),
            getattr(GymPermission, capability.value).is_(True),
        )
        observe_grant_store_query("list_tenants_granted_to")
        return set(self._session.scalars(stmt).all())

    def create_tenant_grant(
        self,
        *,
        tenant_id: uuid.UUID,
        coach_id: uuid.UUID,
        can_edit_diets: bool = False,
        can_edit_trainings: bool = False,
    ) -> TenantGrant:
        existing = self._session.scalar(
            select(GymPermission).where(GymPermission.gym_id == tenant_id, GymPermission.personal_id == coach_id)
        )
        if existing is not None:
            raise GrantConflictError(_to_grant(existing))

        row = GymPermission(
            gym_id=tenant_id,
            personal_id=coach_id,
            can_edit_diets=can_edit_diets,
            can_edit_trainings=can_edit_trainings,
            is_active=True,
        )
        self._insert(
            row,
            select(GymPermission).where(GymPermission.gym_id == tenant_id, GymPermission.personal_id == coach_id),
        )
        return _to_tenant_grant(row)

    def create_individual_grant(
        self,
        *,
        user_id: uuid.UUID,
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        can_edit_diets: bool = False,
        can_edit_trainings: bool = False,
    ) -> IndividualGrant:
        lookup = select(UserPermission).where(
            UserPermission.user_id == user_id,
            UserPermission.grantee_type == grantee_type.value,
            UserPermission.grantee_id == grantee_id,
        )
        existing = self._session.scalar(lookup)
        if existing is not None:
            raise GrantConflictError(_to_grant(existing))

        row = UserPermission(
            user_id=user_id,
            grantee_type=grantee_type.value,
            grantee_id=grantee_id,
            can_edit_diets=can_edit_diets,
            can_edit_trainings=can_edit_trainings,
            is_active=True,
        )
        self._insert(row, lookup)
        return _to_individual_grant(row)

    def get_grant(self, kind: GrantKind, grant_id: uuid.UUID) -> Grant:
        return _to_grant(self._load(kind, grant_id))

    def update_grant(
        self,
        kind: GrantKind,
        grant_id: uuid.UUID,
        *,
        can_edit_diets: bool | None = None,
        can_edit_trainings: bool | None = None,
        active: bool | None = None,
    ) -> Grant:
        row = self._load(kind, grant_id)
        if can_edit_diets is not None:
            row.can_edit_diets = can_edit_diets
        if can_edit_trainings is not None:
            row.can_edit_trainings = can_edit_trainings
        if active is not None:
            row.is_active = active

        self._session.commit()
        self._session.refresh(row)
        return _to_grant(row)

    def set_grant_active(self, kind: GrantKind, grant_id: uuid.UUID, active: bool) -> Grant:
        return self.update_grant(kind, grant_id, active=active)

    def delete_grant(self, kind: GrantKind, grant_id: uuid.UUID) -> None:
        row = self._load(kind, grant_id)
        self._session.delete(row)
        self._session.commit()

    def list_tenant_grants(
        self,
        *,
        tenant_id: uuid.UUID | None = None,
        coach_id: uuid.UUID | None = None,
        active_only: bool = False,
    ) -> list[TenantGrant]:
        stmt = select(GymPermission)
        if tenant_id is not None:
            stmt = stmt.where(GymPermission.gym_id == tenant_id)
        if coach_id is not None:
            stmt = stmt.where(GymPermission.personal_id == coach_id)
        if active_only:
            stmt = stmt.where(GymPermission.is_active.is_(True))

        rows = self._session.scalars(stmt.order_by(GymPermission.created_at.desc())).all()
        return [_to_tenant_grant(row) for row in rows]

    def list_individual_grants(
        self,
        *,
        user_id: uuid.UUID | None = None,
        grantee_type: GranteeType | None = None,
        grantee_id: uuid.UUID | None = None,
        active_only: bool = False,
    ) -> list[IndividualGrant]:
        stmt = select(UserPermission)
        if user_id is not None:
            stmt = stmt.where(UserPermission.user_id == user_id)
        if grantee_type is not None:
            stmt = stmt.where(UserPermission.grantee_type == grantee_type.value)
        if grantee_id is not None:
            stmt = stmt.where(UserPermission.grantee_id == grantee_id)
        if active_only:
            stmt = stmt.where(UserPermission.is_active.is_(True))

        rows = self._session.scalars(stmt.order_by(UserPermission.created_at.desc())).all()
        return [_to_individual_grant(row) for row in rows]

    def _load(self, kind: GrantKind, grant_id: uuid.UUID) -> GymPermission | UserPermission:
        row = self._session.get(_MODELS[kind], grant_id)
        if row is None:
            raise NotFoundError(f"{kind.value}_grant", grant_id)
        return row

    def _insert(self, row: GymPermission | UserPermission, lookup: Select[Any]) -> None:
        """Commit a new grant row, turning a unique-constraint race into a conflict."""

        self._session.add(row)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            existing = self._session.scalar(lookup)
            if existing is None:
                raise
            raise GrantConflictError(_to_grant(existing))
        self._session.refresh(row)


def _to_tenant_grant(row: GymPermission) -> TenantGrant:
    return TenantGrant(
        id=row.id,
        tenant_id=row.gym_id,
        coach_id=row.personal_id,
        can_edit_diets=row.can_edit_diets,
        can_edit_trainings=row.can_edit_trainings,
        active=row.is_active,
        created_at=row.created_at,
    )


def _to_individual_grant(row: UserPermission) -> IndividualGrant:
    return IndividualGrant(
        id=row.id,
        user_id=row.user_id,
        grantee_type=GranteeType(row.grantee_type),
        grantee_id=row.grantee_id,
        can_edit_diets=row.can_edit_diets,
        can_edit_trainings=row.can_edit_trainings,
        active=row.is_active,
        created_at=row.created_at,
    )


def _to_grant(row: GymPermission | UserPermission) -> Grant:
    if isinstance(row, GymPermission):
        return _to_tenant_grant(row)
    return _to_individual_grant(row)
