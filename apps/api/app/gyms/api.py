from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_principal, get_policy_gate
from app.core.database import get_db
from app.gyms.schemas import (
    DietCreate,
    DietUpdate,
    ExerciseCreate,
    ExerciseUpdate,
    PageRead,
    ProductCreate,
    ProductUpdate,
    TrainingCreate,
    TrainingUpdate,
)
from app.gyms.service import diet_service, exercise_service, product_service, training_service
from app.platform.security.context import Principal
from app.platform.security.policies import PolicyGate


diets_router = APIRouter(prefix="/api/diets", tags=["diets"])
trainings_router = APIRouter(prefix="/api/trainings", tags=["trainings"])
exercises_router = APIRouter(prefix="/api/exercises", tags=["exercises"])
products_router = APIRouter(prefix="/api/products", tags=["products"])


@diets_router.get("", response_model=PageRead)
def list_diets(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    user_id: uuid.UUID | None = Query(default=None),
    creator_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return diet_service.list(
        db,
        principal,
        gate,
        page=page,
        limit=limit,
        search=search,
        assignee_id=user_id,
        owner_id=creator_id,
    )


@diets_router.get("/shared", response_model=PageRead)
def list_shared_diets(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return diet_service.list(db, principal, gate, page=page, limit=limit, search=search, shared=True)


@diets_router.post("", status_code=status.HTTP_201_CREATED)
def create_diet(
    payload: DietCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return diet_service.create(db, principal, gate, payload)


@diets_router.get("/{diet_id}")
def get_diet(
    diet_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return diet_service.get(db, principal, gate, diet_id)


@diets_router.patch("/{diet_id}")
def update_diet(
    diet_id: uuid.UUID,
    payload: DietUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return diet_service.update(db, principal, gate, diet_id, payload)


@diets_router.delete("/{diet_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_diet(
    diet_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> Response:
    diet_service.delete(db, principal, gate, diet_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@diets_router.post("/{diet_id}/clone", status_code=status.HTTP_201_CREATED)
def clone_diet(
    diet_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return diet_service.clone(db, principal, gate, diet_id)


@trainings_router.get("", response_model=PageRead)
def list_trainings(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    user_id: uuid.UUID | None = Query(default=None),
    coach_id: uuid.UUID | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return training_service.list(
        db,
        principal,
        gate,
        page=page,
        limit=limit,
        search=search,
        assignee_id=user_id,
        owner_id=coach_id,
    )


@trainings_router.get("/shared", response_model=PageRead)
def list_shared_trainings(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return training_service.list(db, principal, gate, page=page, limit=limit, search=search, shared=True)


@trainings_router.post("", status_code=status.HTTP_201_CREATED)
def create_training(
    payload: TrainingCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return training_service.create(db, principal, gate, payload)


@trainings_router.get("/{training_id}")
def get_training(
    training_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return training_service.get(db, principal, gate, training_id)


@trainings_router.patch("/{training_id}")
def update_training(
    training_id: uuid.UUID,
    payload: TrainingUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return training_service.update(db, principal, gate, training_id, payload)


@trainings_router.delete("/{training_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_training(
    training_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> Response:
    training_service.delete(db, principal, gate, training_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@trainings_router.post("/{training_id}/clone", status_code=status.HTTP_201_CREATED)
def clone_training(
    training_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return training_service.clone(db, principal, gate, training_id)


@exercises_router.get("", response_model=PageRead)
def list_exercises(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    exercise_type: str | None = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return exercise_service.list(
        db,
        principal,
        gate,
        page=page,
        limit=limit,
        search=search,
        exercise_type=exercise_type,
    )


@exercises_router.post("", status_code=status.HTTP_201_CREATED)
def create_exercise(
    payload: ExerciseCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return exercise_service.create(db, principal, gate, payload)


@exercises_router.get("/{exercise_id}")
def get_exercise(
    exercise_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return exercise_service.get(db, principal, gate, exercise_id)


@exercises_router.patch("/{exercise_id}")
def update_exercise(
    exercise_id: uuid.UUID,
    payload: ExerciseUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return exercise_service.update(db, principal, gate, exercise_id, payload)


@exercises_router.delete("/{exercise_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_exercise(
    exercise_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> Response:
    exercise_service.delete(db, principal, gate, exercise_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@products_router.get("", response_model=PageRead)
def list_products(
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    published: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return product_service.list(
        db,
        principal,
        gate,
        page=page,
        limit=limit,
        search=search,
        category=category,
        published=published,
    )


@products_router.post("", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return product_service.create(db, principal, gate, payload)


@products_router.get("/{product_id}")
def get_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return product_service.get(db, principal, gate, product_id)


@products_router.patch("/{product_id}")
def update_product(
    product_id: uuid.UUID,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> dict[str, Any]:
    return product_service.update(db, principal, gate, product_id, payload)


@products_router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    gate: PolicyGate = Depends(get_policy_gate),
) -> Response:
    product_service.delete(db, principal, gate, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
