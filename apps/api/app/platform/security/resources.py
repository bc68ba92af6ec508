from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import StrEnum


class ResourceType(StrEnum):
    DIET = "diet"
    TRAINING = "training"
    EXERCISE = "exercise"
    PRODUCT = "product"
    TENANT_GRANT = "tenant_grant"
    INDIVIDUAL_GRANT = "individual_grant"


class ResourceAction(StrEnum):
    INDEX = "index"
    SHOW = "show"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CLONE = "clone"
    LIST_RECEIVED = "list_received"


class Capability(StrEnum):
    EDIT_DIETS = "can_edit_diets"
    EDIT_TRAININGS = "can_edit_trainings"


GRANTABLE_CAPABILITIES: dict[ResourceType, Capability] = {
    ResourceType.DIET: Capability.EDIT_DIETS,
    ResourceType.TRAINING: Capability.EDIT_TRAININGS,
}


def capability_for(resource_type: ResourceType) -> Capability:
    try:
        return GRANTABLE_CAPABILITIES[resource_type]
    except KeyError:
        raise ValueError(f"Resource type '{resource_type}' cannot be granted") from None


@dataclass(frozen=True, slots=True)
class ResourceSummary:
    """Minimal projection of a protected resource.

    ``owner_id`` is the creator (diet) or coach (training). ``assignee_ids`` are the
    clients the resource belongs to. ``tenant_id`` is ``None`` for the global
    exercise catalog. ``is_reusable`` only widens listing and cloning, never edit
    rights.
    """

    id: uuid.UUID
    tenant_id: uuid.UUID | None = None
    owner_id: uuid.UUID | None = None
    assignee_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)
    is_reusable: bool = False
