from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


ExerciseType = Literal["aerobic", "strength", "flexibility", "other"]


def reject_null(value: Any) -> Any:
    # Omitting a field leaves it unchanged; an explicit null would clear a required column.
    if value is None:
        raise ValueError("may not be null")
    return value


class DietCreate(BaseModel):
    gym_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    calories: int | None = Field(default=None, ge=0)
    proteins: int | None = Field(default=None, ge=0)
    carbohydrates: int | None = Field(default=None, ge=0)
    fats: int | None = Field(default=None, ge=0)
    is_reusable: bool = False


class DietUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    calories: int | None = Field(default=None, ge=0)
    proteins: int | None = Field(default=None, ge=0)
    carbohydrates: int | None = Field(default=None, ge=0)
    fats: int | None = Field(default=None, ge=0)
    is_reusable: bool | None = None

    @field_validator("name", "is_reusable")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return reject_null(value)


class DietRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gym_id: UUID
    creator_id: UUID | None
    name: str
    description: str | None
    calories: int | None
    proteins: int | None
    carbohydrates: int | None
    fats: int | None
    is_reusable: bool
    created_at: datetime


class TrainingCreate(BaseModel):
    gym_id: UUID | None = None
    user_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    is_reusable: bool = False


class TrainingUpdate(BaseModel):
    user_id: UUID | None = None
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    is_reusable: bool | None = None

    @field_validator("name", "is_reusable")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return reject_null(value)


class TrainingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gym_id: UUID
    coach_id: UUID | None
    user_id: UUID | None
    name: str
    description: str | None
    is_reusable: bool
    created_at: datetime


class ExerciseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: ExerciseType
    reps: str = Field(default="3x12", max_length=32)
    weight: int = Field(default=0, ge=0)
    rest_seconds: int = Field(default=60, ge=0)
    video_link: str | None = None
    priority: int = 0


class ExerciseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: ExerciseType | None = None
    reps: str | None = Field(default=None, max_length=32)
    weight: int | None = Field(default=None, ge=0)
    rest_seconds: int | None = Field(default=None, ge=0)
    video_link: str | None = None
    priority: int | None = None

    @field_validator("name", "type", "reps", "weight", "rest_seconds", "priority")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return reject_null(value)


class ExerciseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    type: str
    reps: str
    weight: int
    rest_seconds: int
    video_link: str | None
    priority: int
    created_at: datetime


class ProductCreate(BaseModel):
    gym_id: UUID | None = None
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    image_link: str | None = None
    category: str | None = None
    code: str | None = None
    published: bool = True


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    image_link: str | None = None
    category: str | None = None
    code: str | None = None
    published: bool | None = None

    @field_validator("name", "price", "stock", "published")
    @classmethod
    def required_columns_not_null(cls, value: Any) -> Any:
        return reject_null(value)


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    gym_id: UUID
    name: str
    description: str | None
    price: Decimal
    stock: int
    image_link: str | None
    category: str | None
    code: str | None
    published: bool
    created_at: datetime


class PageMeta(BaseModel):
    total: int
    per_page: int
    current_page: int
    last_page: int


class PageRead(BaseModel):
    data: list[dict[str, Any]]
    meta: PageMeta
