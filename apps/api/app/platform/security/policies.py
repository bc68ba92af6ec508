from __future__ import annotations

from typing import Any

from app.platform.security.context import Principal, Role
from app.platform.security.errors import AuthorizationDenied
from app.platform.security.grants import IndividualGrant, TenantGrant
from app.platform.security.resolver import PermissionResolver
from app.platform.security.resources import ResourceAction, ResourceSummary, ResourceType


_CREATORS = frozenset({Role.SUPER, Role.ADMIN, Role.PERSONAL})


class PolicyGate:
    """Per-action gates invoked by routes before touching a resource.

    ``create`` style actions are role-only. ``update``/``delete`` on diets,
    trainings and products delegate to the resolver. Grant actions check the
    grantor relation on the grant itself.
    """

    def __init__(self, resolver: PermissionResolver) -> None:
        self._resolver = resolver

    @property
    def resolver(self) -> PermissionResolver:
        return self._resolver

    def authorize(
        self,
        action: ResourceAction,
        principal: Principal,
        resource_type: ResourceType,
        resource: Any = None,
    ) -> None:
        if not self.allows(action, principal, resource_type, resource):
            raise AuthorizationDenied(action=action.value, resource=resource_type.value)

    def allows(
        self,
        action: ResourceAction,
        principal: Principal,
        resource_type: ResourceType,
        resource: Any = None,
    ) -> bool:
        if resource_type in (ResourceType.DIET, ResourceType.TRAINING):
            return self._plan_rule(action, principal, resource_type, resource)
        if resource_type == ResourceType.PRODUCT:
            return self._product_rule(action, principal, resource)
        if resource_type == ResourceType.EXERCISE:
            return self._exercise_rule(action, principal)
        if resource_type == ResourceType.TENANT_GRANT:
            return self._tenant_grant_rule(action, principal, resource)
        if resource_type == ResourceType.INDIVIDUAL_GRANT:
            return self._individual_grant_rule(action, principal, resource)
        raise ValueError(f"No policy registered for resource type '{resource_type}'")

    def _plan_rule(
        self,
        action: ResourceAction,
        principal: Principal,
        resource_type: ResourceType,
        resource: ResourceSummary | None,
    ) -> bool:
        if action in (ResourceAction.INDEX, ResourceAction.SHOW):
            return True
        if action == ResourceAction.CREATE:
            return principal.role in _CREATORS
        if action in (ResourceAction.UPDATE, ResourceAction.DELETE):
            return self._resolver.can_edit(principal, resource_type, _require(resource, action))
        if action == ResourceAction.CLONE:
            source = _require(resource, action)
            if principal.role not in _CREATORS:
                return False
            return source.is_reusable or self._resolver.has_full_access(principal, resource_type, source)
        return False

    def _product_rule(self, action: ResourceAction, principal: Principal, resource: ResourceSummary | None) -> bool:
        if action == ResourceAction.INDEX:
            return True
        if action == ResourceAction.SHOW:
            return principal.is_super or principal.in_tenant(_require(resource, action).tenant_id)
        if action == ResourceAction.CREATE:
            return principal.role in _CREATORS
        if action in (ResourceAction.UPDATE, ResourceAction.DELETE):
            return self._resolver.can_edit(principal, ResourceType.PRODUCT, _require(resource, action))
        return False

    @staticmethod
    def _exercise_rule(action: ResourceAction, principal: Principal) -> bool:
        if action in (ResourceAction.INDEX, ResourceAction.SHOW):
            return True
        if action == ResourceAction.CREATE:
            return principal.role in _CREATORS
        if action in (ResourceAction.UPDATE, ResourceAction.DELETE):
            return principal.role in (Role.SUPER, Role.ADMIN)
        return False

    @staticmethod
    def _tenant_grant_rule(action: ResourceAction, principal: Principal, grant: TenantGrant | None) -> bool:
        if action in (ResourceAction.INDEX, ResourceAction.CREATE):
            return principal.role in (Role.SUPER, Role.ADMIN)
        if action in (ResourceAction.SHOW, ResourceAction.UPDATE, ResourceAction.DELETE):
            granted = _require(grant, action)
            if principal.is_super:
                return True
            return principal.role == Role.ADMIN and principal.in_tenant(granted.tenant_id)
        if action == ResourceAction.LIST_RECEIVED:
            return principal.role in (Role.SUPER, Role.PERSONAL)
        return False

    @staticmethod
    def _individual_grant_rule(action: ResourceAction, principal: Principal, grant: IndividualGrant | None) -> bool:
        if action in (ResourceAction.INDEX, ResourceAction.CREATE):
            return True
        if action in (ResourceAction.SHOW, ResourceAction.UPDATE, ResourceAction.DELETE):
            granted = _require(grant, action)
            return principal.is_super or granted.user_id == principal.id
        if action == ResourceAction.LIST_RECEIVED:
            return principal.role in (Role.SUPER, Role.PERSONAL, Role.ADMIN)
        return False


def _require(resource: Any, action: ResourceAction) -> Any:
    if resource is None:
        raise ValueError(f"Action '{action.value}' requires a resource")
    return resource
