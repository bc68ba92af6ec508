from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from fastapi import FastAPI, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.requests import Request

from app.context import get_correlation_id
from app.metrics import observe_authorization_denied
from app.platform.security.errors import AuthorizationDenied, GrantConflictError, InvalidRequestError, NotFoundError


logger = logging.getLogger("app.errors")


@dataclass
class ErrorEnvelope:
    code: str
    message: str
    details: Any
    correlation_id: str | None


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None)
    payload = ErrorEnvelope(
        code=code,
        message=message,
        details=details,
        correlation_id=correlation_id,
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(asdict(payload)))


async def handle_authorization_denied(request: Request, exc: AuthorizationDenied) -> JSONResponse:
    observe_authorization_denied(resource=exc.resource, action=exc.action)
    logger.info(
        "authorization.denied",
        extra={
            "resource": exc.resource,
            "action": exc.action,
            "principal_id": getattr(request.state, "principal_id", None),
        },
    )
    return error_response(
        request,
        status_code=status.HTTP_403_FORBIDDEN,
        code="forbidden",
        message=str(exc),
        details={"resource": exc.resource, "action": exc.action},
    )


async def handle_not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(
        request,
        status_code=status.HTTP_404_NOT_FOUND,
        code="not_found",
        message=str(exc),
        details={"resource": exc.resource, "id": str(exc.resource_id)},
    )


async def handle_invalid_request(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return error_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="invalid_request",
        message=str(exc),
        details={"field": exc.field},
    )


async def handle_grant_conflict(request: Request, exc: GrantConflictError) -> JSONResponse:
    logger.info(
        "grant.conflict",
        extra={"grant_kind": exc.existing.kind.value, "grant_id": str(exc.existing.id)},
    )
    return error_response(
        request,
        status_code=status.HTTP_409_CONFLICT,
        code="conflict",
        message=str(exc),
        details={"existing": asdict(exc.existing)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthorizationDenied, handle_authorization_denied)  # type: ignore[arg-type]
    app.add_exception_handler(NotFoundError, handle_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(GrantConflictError, handle_grant_conflict)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidRequestError, handle_invalid_request)  # type: ignore[arg-type]
