from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from app.platform.security.resources import ResourceType


ACCESS_KEY = "_access"

AccessLevel = Literal["full", "limited"]

LIMITED_FIELDS: dict[ResourceType, tuple[str, ...]] = {
    ResourceType.DIET: ("id", "name", "calories", "is_reusable"),
    ResourceType.TRAINING: ("id", "name", "coach_id", "is_reusable"),
    ResourceType.EXERCISE: ("id", "name", "type"),
    ResourceType.PRODUCT: ("id", "name", "price", "category"),
}


def project(resource_type: ResourceType, record: Mapping[str, Any], has_full_access: bool) -> dict[str, Any]:
    """Shape a serialized resource for a viewer with full or limited access."""

    if has_full_access:
        return {**record, ACCESS_KEY: "full"}

    try:
        fields = LIMITED_FIELDS[resource_type]
    except KeyError:
        raise ValueError(f"No limited projection for resource type '{resource_type}'") from None

    output = {field_name: record.get(field_name) for field_name in fields}
    output[ACCESS_KEY] = "limited"
    return output


def project_many(
    resource_type: ResourceType,
    records: Iterable[Mapping[str, Any]],
    full_access_ids: set[uuid.UUID],
) -> list[dict[str, Any]]:
    """Project a page of records using a batch verdict keyed by record ``id``."""

    return [project(resource_type, record, record.get("id") in full_access_ids) for record in records]
