from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from sqlalchemy import false, or_
from sqlalchemy.sql import ColumnElement, Select

from app.platform.security.context import Principal, Role
from app.platform.security.resolver import PermissionResolver
from app.platform.security.resources import ResourceType


@dataclass(frozen=True, slots=True)
class ScopeColumns:
    id: Any
    tenant: Any | None = None
    owner: Any | None = None
    assignee: Any | None = None
    reusable: Any | None = None


def apply_listing_scope(
    query: Select[Any],
    resource_type: ResourceType,
    columns: ScopeColumns,
    principal: Principal,
    resolver: PermissionResolver,
) -> Select[Any]:
    """Restrict a listing query to rows the principal may see in any projection.

    Reusable rows are always included; whether they come back full or limited is
    decided afterwards by the resolver.
    """

    if principal.is_super or resource_type == ResourceType.EXERCISE:
        return query

    if resource_type == ResourceType.PRODUCT:
        return query.where(_tenant_clause(columns, principal.tenant_id))

    clauses: list[ColumnElement[bool]] = []
    if columns.reusable is not None:
        clauses.append(columns.reusable.is_(True))

    role = principal.role
    if role == Role.ADMIN:
        clauses.append(_tenant_clause(columns, principal.tenant_id))
    elif role == Role.PERSONAL:
        if columns.owner is not None:
            clauses.append(columns.owner == principal.id)
        tenants = {principal.tenant_id} | resolver.granted_tenant_ids(principal, resource_type)
        tenants.discard(None)
        if tenants and columns.tenant is not None:
            clauses.append(columns.tenant.in_(tenants))
    elif role == Role.CLIENT:
        if columns.assignee is not None:
            clauses.append(columns.assignee == principal.id)
        if resource_type == ResourceType.DIET and principal.diet_id is not None:
            clauses.append(columns.id == principal.diet_id)

    if not clauses:
        return query.where(false())
    return query.where(or_(*clauses))


def apply_reusable_scope(query: Select[Any], columns: ScopeColumns) -> Select[Any]:
    """Restrict a listing to shared templates, visible across every tenant."""

    if columns.reusable is None:
        return query.where(false())
    return query.where(columns.reusable.is_(True))


def _tenant_clause(columns: ScopeColumns, tenant_id: Any) -> ColumnElement[bool]:
    if columns.tenant is None or tenant_id is None:
        return false()
    return columns.tenant == tenant_id
