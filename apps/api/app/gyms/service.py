from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.api.pagination import paginate
from app.context import get_correlation_id
from app.gyms.models import Diet, Exercise, Gym, Member, Product, Training
from app.gyms.repository import DietRepository, ExerciseRepository, ProductRepository, TrainingRepository
from app.gyms.schemas import (
    DietCreate,
    DietRead,
    ExerciseCreate,
    ExerciseRead,
    ProductCreate,
    ProductRead,
    TrainingCreate,
    TrainingRead,
)
from app.otel import get_tracer
from app.platform.security.context import Principal, Role
from app.platform.security.errors import AuthorizationDenied, InvalidRequestError, NotFoundError
from app.platform.security.policies import PolicyGate
from app.platform.security.repository import BaseRepository
from app.platform.security.resources import ResourceAction, ResourceSummary


logger = logging.getLogger("app.gyms")
tracer = get_tracer("app.gyms")

CLONE_SUFFIX = " (copy)"
ASSIGNEE_FILTER_ROLES = frozenset({Role.ADMIN, Role.PERSONAL})
OWNER_FILTER_ROLES = frozenset({Role.SUPER, Role.ADMIN, Role.PERSONAL})


class ResourceService:
    """Shared read/update/delete flow for gym resources.

    Every read goes through the repository projection, so callers always get a
    ``dict`` carrying ``_access``.
    """

    repository: ClassVar[BaseRepository]
    read_schema: ClassVar[type[BaseModel]]

    @property
    def label(self) -> str:
        return self.repository.resource_type.value

    def get(self, session: Session, principal: Principal, gate: PolicyGate, resource_id: uuid.UUID) -> dict[str, Any]:
        row = self._load(session, resource_id)
        summary = self.repository.summarize(session, row)
        gate.authorize(ResourceAction.SHOW, principal, self.repository.resource_type, summary)
        return self._secure(row, summary, principal, gate)

    def update(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        resource_id: uuid.UUID,
        dto: BaseModel,
    ) -> dict[str, Any]:
        row = self._load(session, resource_id)
        summary = self.repository.summarize(session, row)
        gate.authorize(ResourceAction.UPDATE, principal, self.repository.resource_type, summary)

        changes = dto.model_dump(mode="python", exclude_unset=True)
        self._check_changes(session, principal, row, changes)
        for field_name, value in changes.items():
            setattr(row, field_name, value)
        session.commit()
        session.refresh(row)

        logger.info(
            f"{self.label}.updated",
            extra={
                "resource": self.label,
                "resource_id": str(row.id),
                "principal_id": str(principal.id),
                "fields": sorted(changes),
            },
        )
        return self._secure(row, self.repository.summarize(session, row), principal, gate)

    def delete(self, session: Session, principal: Principal, gate: PolicyGate, resource_id: uuid.UUID) -> None:
        row = self._load(session, resource_id)
        summary = self.repository.summarize(session, row)
        gate.authorize(ResourceAction.DELETE, principal, self.repository.resource_type, summary)

        session.delete(row)
        session.commit()
        logger.info(
            f"{self.label}.deleted",
            extra={"resource": self.label, "resource_id": str(resource_id), "principal_id": str(principal.id)},
        )

    def _create(self, session: Session, principal: Principal, gate: PolicyGate, row: Any) -> dict[str, Any]:
        session.add(row)
        session.commit()
        session.refresh(row)

        logger.info(
            f"{self.label}.created",
            extra={
                "resource": self.label,
                "resource_id": str(row.id),
                "principal_id": str(principal.id),
                "tenant_id": str(getattr(row, "gym_id", None) or ""),
            },
        )
        return self._secure(row, self.repository.summarize(session, row), principal, gate)

    def _list(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        stmt: Any,
        *,
        page: int,
        limit: int | None,
    ) -> dict[str, Any]:
        with tracer.start_as_current_span(f"{self.label}.list") as span:
            rows, meta = paginate(session, stmt, page=page, limit=limit)
            records = [self._serialize(row) for row in rows]
            summaries = self.repository.summarize_many(session, rows)
            data = self.repository.apply_read_security_many(records, summaries, principal, gate.resolver)

            span.set_attribute("resource", self.label)
            span.set_attribute("result_count", len(data))
            correlation_id = get_correlation_id()
            if correlation_id:
                span.set_attribute("correlation_id", correlation_id)
        return {"data": data, "meta": meta}

    def _check_changes(self, session: Session, principal: Principal, row: Any, changes: dict[str, Any]) -> None:
        """Hook for cross-row checks on a patch before it is applied."""

    def _load(self, session: Session, resource_id: uuid.UUID) -> Any:
        row = session.get(self.repository.model, resource_id)
        if row is None:
            raise NotFoundError(self.label, resource_id)
        return row

    def _serialize(self, row: Any) -> dict[str, Any]:
        return self.read_schema.model_validate(row).model_dump(mode="python")

    def _secure(self, row: Any, summary: ResourceSummary, principal: Principal, gate: PolicyGate) -> dict[str, Any]:
        return self.repository.apply_read_security(self._serialize(row), summary, principal, gate.resolver)

    def _target_tenant(self, session: Session, principal: Principal, requested: uuid.UUID | None) -> uuid.UUID:
        """Tenant a new row lands in: super may pick any gym, everyone else gets their own."""

        if principal.is_super:
            tenant_id = requested or principal.tenant_id
            if tenant_id is None:
                raise InvalidRequestError("gym_id", "gym_id is required")
            if session.get(Gym, tenant_id) is None:
                raise NotFoundError("gym", tenant_id)
            return tenant_id

        if principal.tenant_id is None or (requested is not None and requested != principal.tenant_id):
            raise AuthorizationDenied(action=ResourceAction.CREATE.value, resource=self.label)
        return principal.tenant_id


class PlanService(ResourceService, ABC):
    """Diets and trainings: tenant scoped, owner bound, reusable and clonable.

    Listings take two optional narrowing filters on top of the scope: ``assignee_id``
    (the client the plan is assigned to, honoured for admins and coaches) and
    ``owner_id`` (the author, honoured for super users, admins and coaches). Other
    roles have them ignored.
    """

    def list(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        page: int = 1,
        limit: int | None = None,
        search: str | None = None,
        shared: bool = False,
        assignee_id: uuid.UUID | None = None,
        owner_id: uuid.UUID | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.INDEX, principal, self.repository.resource_type)
        model = self.repository.model

        stmt = select(model)
        if shared:
            stmt = self.repository.apply_reusable_query(stmt)
        else:
            stmt = self.repository.apply_scope_query(stmt, principal, gate.resolver)
        if search:
            stmt = stmt.where(model.name.ilike(f"%{search}%"))
        if assignee_id is not None and principal.role in ASSIGNEE_FILTER_ROLES:
            stmt = stmt.where(self._assigned_to(assignee_id))
        if owner_id is not None and principal.role in OWNER_FILTER_ROLES:
            stmt = stmt.where(getattr(model, self.repository.owner_attr) == owner_id)

        stmt = stmt.order_by(model.created_at.desc(), model.id)
        return self._list(session, principal, gate, stmt, page=page, limit=limit)

    def clone(self, session: Session, principal: Principal, gate: PolicyGate, resource_id: uuid.UUID) -> dict[str, Any]:
        source = self._load(session, resource_id)
        summary = self.repository.summarize(session, source)
        gate.authorize(ResourceAction.CLONE, principal, self.repository.resource_type, summary)

        tenant_id = principal.tenant_id
        if tenant_id is None and principal.is_super:
            tenant_id = source.gym_id
        if tenant_id is None:
            raise AuthorizationDenied(action=ResourceAction.CLONE.value, resource=self.label)

        copy = self._copy(source, principal, tenant_id)
        result = self._create(session, principal, gate, copy)
        logger.info(
            f"{self.label}.cloned",
            extra={"resource": self.label, "resource_id": str(copy.id), "source_id": str(source.id)},
        )
        return result

    @abstractmethod
    def _assigned_to(self, user_id: uuid.UUID) -> Any:
        """SQL condition selecting plans assigned to ``user_id``."""

    @abstractmethod
    def _copy(self, source: Any, principal: Principal, tenant_id: uuid.UUID) -> Any:
        """Unsaved clone of ``source`` owned by ``principal`` in ``tenant_id``."""


class DietService(PlanService):
    repository = DietRepository()
    read_schema = DietRead

    def create(self, session: Session, principal: Principal, gate: PolicyGate, dto: DietCreate) -> dict[str, Any]:
        gate.authorize(ResourceAction.CREATE, principal, self.repository.resource_type)
        tenant_id = self._target_tenant(session, principal, dto.gym_id)

        payload = dto.model_dump(mode="python", exclude={"gym_id"})
        return self._create(session, principal, gate, Diet(**payload, gym_id=tenant_id, creator_id=principal.id))

    def _assigned_to(self, user_id: uuid.UUID) -> Any:
        return Diet.id.in_(select(Member.diet_id).where(Member.id == user_id))

    def _copy(self, source: Diet, principal: Principal, tenant_id: uuid.UUID) -> Diet:
        return Diet(
            gym_id=tenant_id,
            creator_id=principal.id,
            name=f"{source.name}{CLONE_SUFFIX}",
            description=source.description,
            calories=source.calories,
            proteins=source.proteins,
            carbohydrates=source.carbohydrates,
            fats=source.fats,
            is_reusable=False,
        )


class TrainingService(PlanService):
    repository = TrainingRepository()
    read_schema = TrainingRead

    def create(self, session: Session, principal: Principal, gate: PolicyGate, dto: TrainingCreate) -> dict[str, Any]:
        gate.authorize(ResourceAction.CREATE, principal, self.repository.resource_type)
        tenant_id = self._target_tenant(session, principal, dto.gym_id)

        if dto.user_id is not None:
            self._require_assignee(session, principal, ResourceAction.CREATE, dto.user_id, tenant_id)

        payload = dto.model_dump(mode="python", exclude={"gym_id"})
        return self._create(session, principal, gate, Training(**payload, gym_id=tenant_id, coach_id=principal.id))

    def _check_changes(self, session: Session, principal: Principal, row: Training, changes: dict[str, Any]) -> None:
        user_id = changes.get("user_id")
        if user_id is not None and user_id != row.user_id:
            self._require_assignee(session, principal, ResourceAction.UPDATE, user_id, row.gym_id)

    def _require_assignee(
        self,
        session: Session,
        principal: Principal,
        action: ResourceAction,
        user_id: uuid.UUID,
        tenant_id: uuid.UUID | None,
    ) -> Member:
        """A training can only be assigned to a member of the gym it belongs to."""

        member = session.get(Member, user_id)
        if member is None:
            raise NotFoundError("member", user_id)
        if member.gym_id != tenant_id:
            logger.info(
                "training.assignee_rejected",
                extra={"principal_id": str(principal.id), "user_id": str(user_id), "tenant_id": str(tenant_id or "")},
            )
            raise AuthorizationDenied(action=action.value, resource=self.label)
        return member

    def _assigned_to(self, user_id: uuid.UUID) -> Any:
        return Training.user_id == user_id

    def _copy(self, source: Training, principal: Principal, tenant_id: uuid.UUID) -> Training:
        return Training(
            gym_id=tenant_id,
            coach_id=principal.id,
            user_id=None,
            name=f"{source.name}{CLONE_SUFFIX}",
            description=source.description,
            is_reusable=False,
        )


class ExerciseService(ResourceService):
    repository = ExerciseRepository()
    read_schema = ExerciseRead

    def list(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        page: int = 1,
        limit: int | None = None,
        search: str | None = None,
        exercise_type: str | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.INDEX, principal, self.repository.resource_type)

        stmt = self.repository.apply_scope_query(select(Exercise), principal, gate.resolver)
        if search:
            stmt = stmt.where(Exercise.name.ilike(f"%{search}%"))
        if exercise_type:
            stmt = stmt.where(Exercise.type == exercise_type)

        stmt = stmt.order_by(Exercise.name.asc(), Exercise.id)
        return self._list(session, principal, gate, stmt, page=page, limit=limit)

    def create(self, session: Session, principal: Principal, gate: PolicyGate, dto: ExerciseCreate) -> dict[str, Any]:
        gate.authorize(ResourceAction.CREATE, principal, self.repository.resource_type)
        return self._create(session, principal, gate, Exercise(**dto.model_dump(mode="python")))


class ProductService(ResourceService):
    repository = ProductRepository()
    read_schema = ProductRead

    def list(
        self,
        session: Session,
        principal: Principal,
        gate: PolicyGate,
        *,
        page: int = 1,
        limit: int | None = None,
        search: str | None = None,
        category: str | None = None,
        published: bool | None = None,
    ) -> dict[str, Any]:
        gate.authorize(ResourceAction.INDEX, principal, self.repository.resource_type)

        stmt = self.repository.apply_scope_query(select(Product), principal, gate.resolver)
        if search:
            stmt = stmt.where(or_(Product.name.ilike(f"%{search}%"), Product.code.ilike(f"%{search}%")))
        if category:
            stmt = stmt.where(Product.category == category)
        if principal.role == Role.CLIENT:
            stmt = stmt.where(Product.published.is_(True))
        elif published is not None:
            stmt = stmt.where(Product.published.is_(published))

        stmt = stmt.order_by(Product.name.asc(), Product.id)
        return self._list(session, principal, gate, stmt, page=page, limit=limit)

    def create(self, session: Session, principal: Principal, gate: PolicyGate, dto: ProductCreate) -> dict[str, Any]:
        gate.authorize(ResourceAction.CREATE, principal, self.repository.resource_type)
        tenant_id = self._target_tenant(session, principal, dto.gym_id)

        payload = dto.model_dump(mode="python", exclude={"gym_id"})
        return self._create(session, principal, gate, Product(**payload, gym_id=tenant_id))


diet_service = DietService()
training_service = TrainingService()
exercise_service = ExerciseService()
product_service = ProductService()
