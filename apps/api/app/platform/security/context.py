from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    SUPER = "super"
    ADMIN = "admin"
    PERSONAL = "personal"
    CLIENT = "client"


@dataclass(frozen=True, slots=True)
class Principal:
    """The authenticated actor of one request.

    ``tenant_id`` is the principal's gym. ``diet_id`` is the diet assigned to a
    client, if any. ``approved`` is enforced when the token is resolved and is
    never consulted by the resolver.
    """

    id: uuid.UUID
    role: Role
    tenant_id: uuid.UUID | None = None
    approved: bool = True
    diet_id: uuid.UUID | None = None
    correlation_id: str | None = None

    @property
    def is_super(self) -> bool:
        return self.role == Role.SUPER

    def in_tenant(self, tenant_id: uuid.UUID | None) -> bool:
        return tenant_id is not None and self.tenant_id == tenant_id
