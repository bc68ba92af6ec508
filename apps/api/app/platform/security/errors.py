from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.platform.security.grants import Grant


class AuthorizationError(Exception):
    """Base authorization error for gate and resolver failures."""


class AuthorizationDenied(AuthorizationError):
    """Raised when a policy gate refuses an action."""

    def __init__(self, action: str, resource: str) -> None:
        self.action = action
        self.resource = resource
        super().__init__(f"Action '{action}' denied on resource '{resource}'")


class NotFoundError(Exception):
    def __init__(self, resource: str, resource_id: uuid.UUID | str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} '{resource_id}' not found")


class GrantConflictError(Exception):
    """Raised when a grant already exists for the (grantor, grantee) pair."""

    def __init__(self, existing: Grant) -> None:
        self.existing = existing
        super().__init__(f"{existing.kind.value} grant already exists: {existing.id}")


class InvalidRequestError(Exception):
    """Raised when a request is well formed but names an unusable target (missing gym, wrong role)."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)
