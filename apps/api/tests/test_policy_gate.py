from __future__ import annotations

import uuid
from collections.abc import Iterable

import pytest

from app.platform.security.cache import PermissionCache
from app.platform.security.context import Principal, Role
from app.platform.security.errors import AuthorizationDenied
from app.platform.security.grants import GranteeType, IndividualGrant, TenantGrant
from app.platform.security.policies import PolicyGate
from app.platform.security.resolver import PermissionResolver
from app.platform.security.resources import Capability, ResourceAction, ResourceSummary, ResourceType


class EmptyGrantStore:
    def has_tenant_grant(self, coach_id: uuid.UUID, tenant_id: uuid.UUID, capability: Capability) -> bool:
        return False

    def has_individual_grant(
        self,
        assignee_id: uuid.UUID,
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> bool:
        return False

    def list_individual_grants_for_assignees(
        self,
        assignee_ids: Iterable[uuid.UUID],
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> set[uuid.UUID]:
        return set()

    def list_tenants_granted_to(self, coach_id: uuid.UUID, capability: Capability) -> set[uuid.UUID]:
        return set()


TENANT = uuid.uuid4()
OTHER_TENANT = uuid.uuid4()


@pytest.fixture()
def gate() -> PolicyGate:
    return PolicyGate(PermissionResolver(EmptyGrantStore(), PermissionCache()))


def _principal(role: Role, tenant_id: uuid.UUID | None = TENANT) -> Principal:
    return Principal(id=uuid.uuid4(), role=role, tenant_id=tenant_id)


def _tenant_grant(tenant_id: uuid.UUID) -> TenantGrant:
    return TenantGrant(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        coach_id=uuid.uuid4(),
        can_edit_diets=True,
        can_edit_trainings=False,
        active=True,
    )


def _individual_grant(user_id: uuid.UUID) -> IndividualGrant:
    return IndividualGrant(
        id=uuid.uuid4(),
        user_id=user_id,
        grantee_type=GranteeType.GYM,
        grantee_id=TENANT,
        can_edit_diets=True,
        can_edit_trainings=True,
        active=True,
    )


@pytest.mark.parametrize(
    ("role", "allowed"),
    [(Role.SUPER, True), (Role.ADMIN, True), (Role.PERSONAL, True), (Role.CLIENT, False)],
)
def test_create_is_role_only(gate: PolicyGate, role: Role, allowed: bool) -> None:
    for resource_type in (ResourceType.DIET, ResourceType.TRAINING, ResourceType.EXERCISE, ResourceType.PRODUCT):
        assert gate.allows(ResourceAction.CREATE, _principal(role), resource_type) is allowed


def test_update_delegates_to_resolver(gate: PolicyGate) -> None:
    coach = _principal(Role.PERSONAL)
    home = ResourceSummary(id=uuid.uuid4(), tenant_id=TENANT)
    foreign = ResourceSummary(id=uuid.uuid4(), tenant_id=OTHER_TENANT)

    gate.authorize(ResourceAction.UPDATE, coach, ResourceType.DIET, home)
    with pytest.raises(AuthorizationDenied) as exc_info:
        gate.authorize(ResourceAction.DELETE, coach, ResourceType.DIET, foreign)

    assert exc_info.value.action == "delete"
    assert exc_info.value.resource == "diet"


def test_index_and_show_are_open_for_plans(gate: PolicyGate) -> None:
    client = _principal(Role.CLIENT)
    foreign = ResourceSummary(id=uuid.uuid4(), tenant_id=OTHER_TENANT)

    assert gate.allows(ResourceAction.INDEX, client, ResourceType.TRAINING) is True
    assert gate.allows(ResourceAction.SHOW, client, ResourceType.TRAINING, foreign) is True


def test_product_show_is_tenant_bound(gate: PolicyGate) -> None:
    product = ResourceSummary(id=uuid.uuid4(), tenant_id=OTHER_TENANT)

    assert gate.allows(ResourceAction.SHOW, _principal(Role.CLIENT), ResourceType.PRODUCT, product) is False
    assert gate.allows(ResourceAction.SHOW, _principal(Role.CLIENT, OTHER_TENANT), ResourceType.PRODUCT, product) is True
    assert gate.allows(ResourceAction.SHOW, _principal(Role.SUPER, None), ResourceType.PRODUCT, product) is True


def test_exercise_edits_are_admin_only(gate: PolicyGate) -> None:
    exercise = ResourceSummary(id=uuid.uuid4())

    assert gate.allows(ResourceAction.UPDATE, _principal(Role.ADMIN), ResourceType.EXERCISE, exercise) is True
    assert gate.allows(ResourceAction.DELETE, _principal(Role.PERSONAL), ResourceType.EXERCISE, exercise) is False


def test_clone_requires_reusable_or_full_access(gate: PolicyGate) -> None:
    coach = _principal(Role.PERSONAL)
    shared = ResourceSummary(id=uuid.uuid4(), tenant_id=OTHER_TENANT, is_reusable=True)
    private = ResourceSummary(id=uuid.uuid4(), tenant_id=OTHER_TENANT)
    home = ResourceSummary(id=uuid.uuid4(), tenant_id=TENANT)

    assert gate.allows(ResourceAction.CLONE, coach, ResourceType.DIET, shared) is True
    assert gate.allows(ResourceAction.CLONE, coach, ResourceType.DIET, private) is False
    assert gate.allows(ResourceAction.CLONE, coach, ResourceType.DIET, home) is True
    assert gate.allows(ResourceAction.CLONE, _principal(Role.CLIENT), ResourceType.DIET, shared) is False


def test_tenant_grant_actions(gate: PolicyGate) -> None:
    admin = _principal(Role.ADMIN)
    own = _tenant_grant(TENANT)
    foreign = _tenant_grant(OTHER_TENANT)

    assert gate.allows(ResourceAction.CREATE, admin, ResourceType.TENANT_GRANT) is True
    assert gate.allows(ResourceAction.CREATE, _principal(Role.PERSONAL), ResourceType.TENANT_GRANT) is False
    assert gate.allows(ResourceAction.UPDATE, admin, ResourceType.TENANT_GRANT, own) is True
    assert gate.allows(ResourceAction.DELETE, admin, ResourceType.TENANT_GRANT, foreign) is False
    assert gate.allows(ResourceAction.SHOW, _principal(Role.SUPER, None), ResourceType.TENANT_GRANT, foreign) is True
    assert gate.allows(ResourceAction.LIST_RECEIVED, _principal(Role.PERSONAL), ResourceType.TENANT_GRANT) is True
    assert gate.allows(ResourceAction.LIST_RECEIVED, admin, ResourceType.TENANT_GRANT) is False


def test_individual_grant_actions(gate: PolicyGate) -> None:
    client = _principal(Role.CLIENT)
    grant = _individual_grant(client.id)

    assert gate.allows(ResourceAction.CREATE, client, ResourceType.INDIVIDUAL_GRANT) is True
    assert gate.allows(ResourceAction.UPDATE, client, ResourceType.INDIVIDUAL_GRANT, grant) is True
    assert gate.allows(ResourceAction.DELETE, _principal(Role.ADMIN), ResourceType.INDIVIDUAL_GRANT, grant) is False
    assert gate.allows(ResourceAction.LIST_RECEIVED, _principal(Role.ADMIN), ResourceType.INDIVIDUAL_GRANT) is True
    assert gate.allows(ResourceAction.LIST_RECEIVED, client, ResourceType.INDIVIDUAL_GRANT) is False


def test_mutations_without_resource_are_programming_errors(gate: PolicyGate) -> None:
    with pytest.raises(ValueError):
        gate.allows(ResourceAction.UPDATE, _principal(Role.ADMIN), ResourceType.DIET)
