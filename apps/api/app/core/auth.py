from __future__ import annotations

import uuid
from typing import Any

from fastapi import Depends, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from starlette.requests import Request

from app.context import get_correlation_id
from app.core.config import get_settings
from app.core.database import get_db
from app.otel import annotate_current_span
from app.platform.security.cache import PermissionCache
from app.platform.security.context import Principal, Role
from app.platform.security.grants import DbGrantStore
from app.platform.security.policies import PolicyGate
from app.platform.security.resolver import PermissionResolver


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _optional_uuid(value: Any) -> uuid.UUID | None:
    if value in (None, ""):
        return None
    return uuid.UUID(str(value))


def principal_from_claims(payload: dict[str, Any], correlation_id: str | None = None) -> Principal:
    """Build a principal from decoded token claims; raises ValueError on malformed claims."""

    return Principal(
        id=uuid.UUID(str(payload["sub"])),
        role=Role(str(payload["role"])),
        tenant_id=_optional_uuid(payload.get("gym_id")),
        approved=payload.get("approved") is True,
        diet_id=_optional_uuid(payload.get("diet_id")),
        correlation_id=correlation_id,
    )


async def get_current_principal(request: Request) -> Principal:
    auth_header = request.headers.get("authorization", "")
    token = auth_header.replace("Bearer ", "") if auth_header.startswith("Bearer ") else ""
    if not token:
        raise _unauthorized("Missing bearer token")

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        principal = principal_from_claims(payload, correlation_id=get_correlation_id())
    except (JWTError, KeyError, ValueError):
        raise _unauthorized("Invalid bearer token") from None

    if not principal.approved and not principal.is_super:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account pending approval")

    request.state.principal_id = str(principal.id)
    annotate_current_span(
        **{"enduser.id": principal.id, "enduser.role": principal.role.value, "tenant_id": principal.tenant_id}
    )
    return principal


def get_permission_resolver(db: Session = Depends(get_db)) -> PermissionResolver:
    return PermissionResolver(DbGrantStore(db), PermissionCache())


def get_policy_gate(resolver: PermissionResolver = Depends(get_permission_resolver)) -> PolicyGate:
    return PolicyGate(resolver)
