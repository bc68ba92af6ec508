from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import assert_never

from app.platform.security.cache import PermissionCache
from app.platform.security.context import Principal, Role
from app.platform.security.grants import GranteeType, GrantStore
from app.platform.security.resources import Capability, ResourceSummary, ResourceType, capability_for


_TENANT_SCOPED = (ResourceType.DIET, ResourceType.TRAINING, ResourceType.PRODUCT)


class PermissionResolver:
    """Decides edit rights and full-vs-limited visibility for diets, trainings,
    exercises and products.

    One resolver is built per request together with its ``PermissionCache``. Every
    decision and every grant lookup is memoized there, so repeated checks for the
    same resource inside a request hit the grant tables once.

    Listing decisions (``full_access_ids``) use ownership, home tenant and the
    coach's tenant grants only. Individual grants from clients are honoured by the
    single-resource decisions but not by the batch one, which keeps listings at a
    constant number of queries.
    """

    def __init__(self, grant_store: GrantStore, cache: PermissionCache | None = None) -> None:
        self._grants = grant_store
        self._cache = cache if cache is not None else PermissionCache()

    @property
    def cache(self) -> PermissionCache:
        return self._cache

    def can_edit(self, principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        key = ("can_edit", principal.id, resource_type.value, resource.id)
        return self._cache.get_or_compute(key, lambda: self._can_edit(principal, resource_type, resource))

    def can_delete(self, principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        return self.can_edit(principal, resource_type, resource)

    def has_full_access(self, principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        key = ("has_full_access", principal.id, resource_type.value, resource.id)
        return self._cache.get_or_compute(key, lambda: self._has_full_access(principal, resource_type, resource))

    def granted_tenant_ids(self, principal: Principal, resource_type: ResourceType) -> set[uuid.UUID]:
        """Tenants whose ``resource_type`` rows a coach may edit through tenant grants."""

        if principal.role != Role.PERSONAL:
            return set()
        return self._granted_tenants(principal.id, capability_for(resource_type))

    def full_access_ids(
        self,
        principal: Principal,
        resource_type: ResourceType,
        resources: Iterable[ResourceSummary],
    ) -> set[uuid.UUID]:
        items = list(resources)
        if not items:
            return set()

        key = ("full_access_ids", principal.id, resource_type.value, frozenset(item.id for item in items))
        return self._cache.get_or_compute(key, lambda: self._full_access_ids(principal, resource_type, items))

    def _full_access_ids(
        self,
        principal: Principal,
        resource_type: ResourceType,
        items: list[ResourceSummary],
    ) -> set[uuid.UUID]:
        role = principal.role
        if role == Role.SUPER:
            return {item.id for item in items}

        if resource_type == ResourceType.EXERCISE:
            if role in (Role.ADMIN, Role.PERSONAL):
                return {item.id for item in items}
            return set()

        if resource_type == ResourceType.PRODUCT:
            return {item.id for item in items if principal.in_tenant(item.tenant_id)}

        if role == Role.ADMIN:
            return {item.id for item in items if principal.in_tenant(item.tenant_id)}
        if role == Role.PERSONAL:
            tenants = {principal.tenant_id} | self._granted_tenants(principal.id, capability_for(resource_type))
            return {
                item.id
                for item in items
                if item.owner_id == principal.id or (item.tenant_id is not None and item.tenant_id in tenants)
            }
        if role == Role.CLIENT:
            return {item.id for item in items if self._is_assigned(principal, resource_type, item)}
        assert_never(role)

    def _can_edit(self, principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        if resource_type == ResourceType.EXERCISE:
            return principal.role in (Role.SUPER, Role.ADMIN)
        if resource_type not in _TENANT_SCOPED:
            raise ValueError(f"Resource type '{resource_type}' has no edit rule")

        role = principal.role
        if role == Role.SUPER:
            return True
        if role == Role.ADMIN:
            return principal.in_tenant(resource.tenant_id)
        if role == Role.CLIENT:
            return False
        if role == Role.PERSONAL:
            if resource_type == ResourceType.PRODUCT:
                return principal.in_tenant(resource.tenant_id)
            return self._coach_can_edit(principal, resource_type, resource)
        assert_never(role)

    def _has_full_access(self, principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        role = principal.role
        if role == Role.SUPER:
            return True

        if resource_type == ResourceType.EXERCISE:
            return role in (Role.ADMIN, Role.PERSONAL)
        if resource_type == ResourceType.PRODUCT:
            return principal.in_tenant(resource.tenant_id)
        if resource_type not in _TENANT_SCOPED:
            raise ValueError(f"Resource type '{resource_type}' has no visibility rule")

        if role == Role.ADMIN:
            return principal.in_tenant(resource.tenant_id)
        if role == Role.PERSONAL:
            return self.can_edit(principal, resource_type, resource)
        if role == Role.CLIENT:
            return self._is_assigned(principal, resource_type, resource)
        assert_never(role)

    def _coach_can_edit(self, principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        if resource.owner_id is not None and resource.owner_id == principal.id:
            return True
        if principal.in_tenant(resource.tenant_id):
            return True

        capability = capability_for(resource_type)
        if resource.tenant_id is not None and self._has_tenant_grant(principal.id, resource.tenant_id, capability):
            return True

        if not resource.assignee_ids:
            return False
        if self._assignees_granting(resource.assignee_ids, GranteeType.PERSONAL, principal.id, capability):
            return True
        if principal.tenant_id is not None and self._assignees_granting(
            resource.assignee_ids, GranteeType.GYM, principal.tenant_id, capability
        ):
            return True
        return False

    @staticmethod
    def _is_assigned(principal: Principal, resource_type: ResourceType, resource: ResourceSummary) -> bool:
        if principal.id in resource.assignee_ids:
            return True
        return resource_type == ResourceType.DIET and principal.diet_id is not None and principal.diet_id == resource.id

    def _has_tenant_grant(self, coach_id: uuid.UUID, tenant_id: uuid.UUID, capability: Capability) -> bool:
        key = ("has_tenant_grant", coach_id, tenant_id, capability.value)
        return self._cache.get_or_compute(key, lambda: self._grants.has_tenant_grant(coach_id, tenant_id, capability))

    def _granted_tenants(self, coach_id: uuid.UUID, capability: Capability) -> set[uuid.UUID]:
        key = ("list_tenants_granted_to", coach_id, capability.value)
        return self._cache.get_or_compute(key, lambda: self._grants.list_tenants_granted_to(coach_id, capability))

    def _assignees_granting(
        self,
        assignee_ids: frozenset[uuid.UUID],
        grantee_type: GranteeType,
        grantee_id: uuid.UUID,
        capability: Capability,
    ) -> set[uuid.UUID]:
        if len(assignee_ids) == 1:
            (assignee_id,) = assignee_ids
            key = ("has_individual_grant", assignee_id, grantee_type.value, grantee_id, capability.value)
            granted = self._cache.get_or_compute(
                key,
                lambda: self._grants.has_individual_grant(assignee_id, grantee_type, grantee_id, capability),
            )
            return {assignee_id} if granted else set()

        key = ("list_individual_grants_for_assignees", assignee_ids, grantee_type.value, grantee_id, capability.value)
        return self._cache.get_or_compute(
            key,
            lambda: self._grants.list_individual_grants_for_assignees(assignee_ids, grantee_type, grantee_id, capability),
        )
