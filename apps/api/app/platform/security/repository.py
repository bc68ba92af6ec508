from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any, ClassVar

from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from app.platform.security.context import Principal
from app.platform.security.resolver import PermissionResolver
from app.platform.security.resources import ResourceSummary, ResourceType
from app.platform.security.scope import ScopeColumns, apply_listing_scope, apply_reusable_scope
from app.platform.security.visibility import project, project_many


class BaseRepository:
    """Binds a resource type to its ORM columns for scoping, summaries and projection."""

    resource_type: ClassVar[ResourceType]
    model: ClassVar[type[Any]]
    tenant_attr: ClassVar[str | None] = "gym_id"
    owner_attr: ClassVar[str | None] = None
    assignee_attr: ClassVar[str | None] = None
    reusable_attr: ClassVar[str | None] = None

    def scope_columns(self) -> ScopeColumns:
        return ScopeColumns(
            id=self.model.id,
            tenant=_column(self.model, self.tenant_attr),
            owner=_column(self.model, self.owner_attr),
            assignee=_column(self.model, self.assignee_attr),
            reusable=_column(self.model, self.reusable_attr),
        )

    def apply_scope_query(self, query: Select[Any], principal: Principal, resolver: PermissionResolver) -> Select[Any]:
        return apply_listing_scope(query, self.resource_type, self.scope_columns(), principal, resolver)

    def apply_reusable_query(self, query: Select[Any]) -> Select[Any]:
        return apply_reusable_scope(query, self.scope_columns())

    def summarize(self, session: Session, row: Any) -> ResourceSummary:
        return self.summarize_many(session, [row])[0]

    def summarize_many(self, session: Session, rows: Sequence[Any]) -> list[ResourceSummary]:
        assignees = self.load_assignees(session, rows)
        return [
            ResourceSummary(
                id=row.id,
                tenant_id=_value(row, self.tenant_attr),
                owner_id=_value(row, self.owner_attr),
                assignee_ids=assignees.get(row.id, frozenset()),
                is_reusable=bool(_value(row, self.reusable_attr)),
            )
            for row in rows
        ]

    def load_assignees(self, session: Session, rows: Sequence[Any]) -> dict[uuid.UUID, frozenset[uuid.UUID]]:
        if self.assignee_attr is None:
            return {}
        output: dict[uuid.UUID, frozenset[uuid.UUID]] = {}
        for row in rows:
            assignee = getattr(row, self.assignee_attr)
            output[row.id] = frozenset({assignee}) if assignee is not None else frozenset()
        return output

    def apply_read_security(
        self,
        record: dict[str, Any],
        summary: ResourceSummary,
        principal: Principal,
        resolver: PermissionResolver,
    ) -> dict[str, Any]:
        return project(self.resource_type, record, resolver.has_full_access(principal, self.resource_type, summary))

    def apply_read_security_many(
        self,
        records: list[dict[str, Any]],
        summaries: list[ResourceSummary],
        principal: Principal,
        resolver: PermissionResolver,
    ) -> list[dict[str, Any]]:
        full_ids = resolver.full_access_ids(principal, self.resource_type, summaries)
        return project_many(self.resource_type, records, full_ids)


def _column(model: type[Any], attr: str | None) -> Any:
    return getattr(model, attr) if attr is not None else None


def _value(row: Any, attr: str | None) -> Any:
    return getattr(row, attr) if attr is not None else None
