from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from app.api.pagination import paginate_items
from app.grants.schemas import (
    GrantUpdate,
    IndividualGrantCreate,
    IndividualGrantRead,
    TenantGrantCreate,
    TenantGrantRead,
)
from app.gyms.models import Gym, Member
from app.platform.security.context import Principal, Role
from app.platform.security.errors import AuthorizationDenied, InvalidRequestError, NotFoundError
from app.platform.security.grants import DbGrantStore, GrantKind, GranteeType
from app.platform.security.policies import PolicyGate
from app.platform.security.resources import ResourceAction, ResourceType


logger = logging.getLogger("app.grants")


def _require_gym(session: Session, gym_id: uuid.UUID) -> Gym:
    gym = session.get(Gym, gym_id)
    if gym is None:
        raise NotFoundError("gym", gym_id)
    return gym


def _require_coach(session: Session, member_id: uuid.UUID, field: str) -> Member:
    member = session.get(Member, member_id)
    if member is None:
        raise NotFoundError("member", member_id)
    if member.role != Role.PERSONAL.value:
        raise InvalidRequestError(field, "grantee must be a personal trainer")
    return member


class TenantGrantService:
    """Gym-level grants: a gym lets an external coach edit its diets or trainings."""

    resource_type = ResourceType.TENANT_GRANT

    def list(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        gym_id: uuid.UUID | None = None,
        personal_id: uuid.UUID | None = None,
        active_only: bool = False,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.INDEX, principal, self.resource_type)
        tenant_id = gym_id if principal.is_super else principal.tenant_id

        if tenant_id is None and not principal.is_super:
            grants = []
        else:
            grants = DbGrantStore(session).list_tenant_grants(
                tenant_id=tenant_id,
                coach_id=personal_id,
                active_only=active_only,
            )
        items, meta = paginate_items(grants, page=page, limit=limit)
        return {"data": [TenantGrantRead.model_validate(item) for item in items], "meta": meta}

    def list_received(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.LIST_RECEIVED, principal, self.resource_type)
        coach_id = None if principal.is_super else principal.id

        grants = DbGrantStore(session).list_tenant_grants(coach_id=coach_id, active_only=True)
        items, meta = paginate_items(grants, page=page, limit=limit)
        return {"data": [TenantGrantRead.model_validate(item) for item in items], "meta": meta}

    def create(self, session: Session, principal: Principal, gate: PolicyGate, dto: TenantGrantCreate) -> TenantGrantRead:
        gate.authorize(ResourceAction.CREATE, principal, self.resource_type)

        if principal.is_super:
            tenant_id = dto.gym_id or principal.tenant_id
            if tenant_id is None:
                raise InvalidRequestError("gym_id", "gym_id is required")
        else:
            if principal.tenant_id is None or (dto.gym_id is not None and dto.gym_id != principal.tenant_id):
                raise AuthorizationDenied(action=ResourceAction.CREATE.value, resource=self.resource_type.value)
            tenant_id = principal.tenant_id

        _require_gym(session, tenant_id)
        _require_coach(session, dto.personal_id, "personal_id")

        grant = DbGrantStore(session).create_tenant_grant(
            tenant_id=tenant_id,
            coach_id=dto.personal_id,
            can_edit_diets=dto.can_edit_diets,
            can_edit_trainings=dto.can_edit_trainings,
        )
        logger.info(
            "grant.created",
            extra={"grant_kind": grant.kind.value, "grant_id": str(grant.id), "principal_id": str(principal.id)},
        )
        return TenantGrantRead.model_validate(grant)

    def get(self, session: Session, principal: Principal, gate: PolicyGate, grant_id: uuid.UUID) -> TenantGrantRead:
        grant = DbGrantStore(session).get_grant(GrantKind.TENANT, grant_id)
        gate.authorize(ResourceAction.SHOW, principal, self.resource_type, grant)
        return TenantGrantRead.model_validate(grant)

    def update(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        grant_id: uuid.UUID,
        dto: GrantUpdate,
    ) -> TenantGrantRead:
        store = DbGrantStore(session)
        grant = store.get_grant(GrantKind.TENANT, grant_id)
        gate.authorize(ResourceAction.UPDATE, principal, self.resource_type, grant)

        updated = store.update_grant(GrantKind.TENANT, grant_id, **dto.model_dump(exclude_none=True))
        logger.info(
            "grant.updated",
            extra={"grant_kind": updated.kind.value, "grant_id": str(updated.id), "principal_id": str(principal.id)},
        )
        return TenantGrantRead.model_validate(updated)

    def delete(self, session: Session, principal: Principal, gate: PolicyGate, grant_id: uuid.UUID) -> None:
        store = DbGrantStore(session)
        grant = store.get_grant(GrantKind.TENANT, grant_id)
        gate.authorize(ResourceAction.DELETE, principal, self.resource_type, grant)

        store.delete_grant(GrantKind.TENANT, grant_id)
        logger.info(
            "grant.deleted",
            extra={"grant_kind": GrantKind.TENANT.value, "grant_id": str(grant_id), "principal_id": str(principal.id)},
        )


class IndividualGrantService:
    """Client-level grants: a client lets a coach or a whole gym edit their own diet or trainings."""

    resource_type = ResourceType.INDIVIDUAL_GRANT

    def list(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        active_only: bool = False,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.INDEX, principal, self.resource_type)
        user_id = None if principal.is_super else principal.id

        grants = DbGrantStore(session).list_individual_grants(user_id=user_id, active_only=active_only)
        items, meta = paginate_items(grants, page=page, limit=limit)
        return {"data": [IndividualGrantRead.model_validate(item) for item in items], "meta": meta}

    def list_received(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.LIST_RECEIVED, principal, self.resource_type)
        store = DbGrantStore(session)

        if principal.is_super:
            grants = store.list_individual_grants(active_only=True)
        elif principal.role == Role.PERSONAL:
            grants = store.list_individual_grants(
                grantee_type=GranteeType.PERSONAL,
                grantee_id=principal.id,
                active_only=True,
            )
        elif principal.tenant_id is not None:
            grants = store.list_individual_grants(
                grantee_type=GranteeType.GYM,
                grantee_id=principal.tenant_id,
                active_only=True,
            )
        else:
            grants = []

        items, meta = paginate_items(grants, page=page, limit=limit)
        return {"data": [IndividualGrantRead.model_validate(item) for item in items], "meta": meta}

    def create(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        dto: IndividualGrantCreate,
    ) -> IndividualGrantRead:
        gate.authorize(ResourceAction.CREATE, principal, self.resource_type)

        if dto.grantee_type == GranteeType.PERSONAL:
            _require_coach(session, dto.grantee_id, "grantee_id")
        else:
            _require_gym(session, dto.grantee_id)

        grant = DbGrantStore(session).create_individual_grant(
            user_id=principal.id,
            grantee_type=dto.grantee_type,
            grantee_id=dto.grantee_id,
            can_edit_diets=dto.can_edit_diets,
            can_edit_trainings=dto.can_edit_trainings,
        )
        logger.info(
            "grant.created",
            extra={"grant_kind": grant.kind.value, "grant_id": str(grant.id), "principal_id": str(principal.id)},
        )
        return IndividualGrantRead.model_validate(grant)

    def get(self, session: Session, principal: Principal, gate: PolicyGate, grant_id: uuid.UUID) -> IndividualGrantRead:
        grant = DbGrantStore(session).get_grant(GrantKind.INDIVIDUAL, grant_id)
        gate.authorize(ResourceAction.SHOW, principal, self.resource_type, grant)
        return IndividualGrantRead.model_validate(grant)

    def update(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        grant_id: uuid.UUID,
        dto: GrantUpdate,
    ) -> IndividualGrantRead:
        store = DbGrantStore(session)
        grant = store.get_grant(GrantKind.INDIVIDUAL, grant_id)
        gate.authorize(ResourceAction.UPDATE, principal, self.resource_type, grant)

        updated = store.update_grant(GrantKind.INDIVIDUAL, grant_id, **dto.model_dump(exclude_none=True))
        logger.info(
            "grant.updated",
            extra={"grant_kind": updated.kind.value, "grant_id": str(updated.id), "principal_id": str(principal.id)},
        )
        return IndividualGrantRead.model_validate(updated)

    def delete(self, session: Session, principal: Principal, gate: PolicyGate, grant_id: uuid.UUID) -> None:
        store = DbGrantStore(session)
        grant = store.get_grant(GrantKind.INDIVIDUAL, grant_id)
        gate.authorize(ResourceAction.DELETE, principal, self.resource_type, grant)

        store.delete_grant(GrantKind.INDIVIDUAL, grant_id)
        logger.info(
            "grant.deleted",
            extra={"grant_kind": GrantKind.INDIVIDUAL.value, "grant_id": str(grant_id), "principal_id": str(principal.id)},
        )


tenant_grant_service = TenantGrantService()
individual_grant_service = IndividualGrantService()
