from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_principal, get_policy_gate
from app.core.database import get_db
from app.grants.schemas import (
    GrantUpdate,
    IndividualGrantCreate,
    IndividualGrantPage,
    IndividualGrantRead,
    TenantGrantCreate,
    TenantGrantPage,
    TenantGrantRead,
)
from app.grants.service import individual_grant_service, tenant_grant_service
from app.platform.security.context import Principal
from app.platform.security.policies import PolicyGate


router = APIRouter(prefix="/api", tags=["grants"])


@router.get("/gym-permissions", response_model=TenantGrantPage)
def list_gym_permissions(
    gym_id: uuid.UUID | None = Query(default=None),
    personal_id: uuid.UUID | None = Query(default=None),
    active_only: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return tenant_grant_service.list(
        db,
        principal,
        gate,
        gym_id=gym_id,
        personal_id=personal_id,
        active_only=active_only,
        page=page,
        limit=limit,
    )


@router.post("/gym-permissions", response_model=TenantGrantRead, status_code=status.HTTP_201_CREATED)
def create_gym_permission(
    payload: TenantGrantCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> TenantGrantRead:
    return tenant_grant_service.create(db, principal, gate, payload)


@router.get("/gym-permissions/{grant_id}", response_model=TenantGrantRead)
def get_gym_permission(
    grant_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> TenantGrantRead:
    return tenant_grant_service.get(db, principal, gate, grant_id)


@router.patch("/gym-permissions/{grant_id}", response_model=TenantGrantRead)
def update_gym_permission(
    grant_id: uuid.UUID,
    payload: GrantUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> TenantGrantRead:
    return tenant_grant_service.update(db, principal, gate, grant_id, payload)


@router.delete("/gym-permissions/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_gym_permission(
    grant_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> Response:
    tenant_grant_service.delete(db, principal, gate, grant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/my-gym-permissions", response_model=TenantGrantPage)
def list_my_gym_permissions(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return tenant_grant_service.list_received(db, principal, gate, page=page, limit=limit)


@router.get("/user-permissions", response_model=IndividualGrantPage)
def list_user_permissions(
    active_only: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return individual_grant_service.list(db, principal, gate, active_only=active_only, page=page, limit=limit)


@router.post("/user-permissions", response_model=IndividualGrantRead, status_code=status.HTTP_201_CREATED)
def create_user_permission(
    payload: IndividualGrantCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> IndividualGrantRead:
    return individual_grant_service.create(db, principal, gate, payload)


@router.get("/user-permissions/{grant_id}", response_model=IndividualGrantRead)
def get_user_permission(
    grant_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> IndividualGrantRead:
    return individual_grant_service.get(db, principal, gate, grant_id)


@router.patch("/user-permissions/{grant_id}", response_model=IndividualGrantRead)
def update_user_permission(
    grant_id: uuid.UUID,
    payload: GrantUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> IndividualGrantRead:
    return individual_grant_service.update(db, principal, gate, grant_id, payload)


@router.delete("/user-permissions/{grant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user_permission(
    grant_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> Response:
    individual_grant_service.delete(db, principal, gate, grant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/granted-to-me", response_model=IndividualGrantPage)
def list_granted_to_me(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return individual_grant_service.list_received(db, principal, gate, page=page, limit=limit)
