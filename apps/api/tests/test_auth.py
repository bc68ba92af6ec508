from __future__ import annotations

import uuid
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app.core.auth import principal_from_claims
from app.core.config import get_settings
from app.main import app
from app.platform.security.context import Role


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


def _token(secret: str = "test-secret", **claims: Any) -> str:
    return jwt.encode(claims, secret, algorithm="HS256")


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def test_me_returns_principal_from_token(client: TestClient) -> None:
    user_id = uuid.uuid4()
    gym_id = uuid.uuid4()
    token = _token(sub=str(user_id), role="personal", gym_id=str(gym_id), approved=True)

    response = client.get("/me", headers=_bearer(token))

    assert response.status_code == 200
    assert response.json() == {
        "id": str(user_id),
        "role": "personal",
        "gym_id": str(gym_id),
        "diet_id": None,
        "approved": True,
    }


def test_missing_token_is_unauthorized(client: TestClient) -> None:
    response = client.get("/me")

    assert response.status_code == 401
    assert response.headers.get("www-authenticate") == "Bearer"


def test_token_signed_with_other_secret_is_rejected(client: TestClient) -> None:
    token = _token(secret="other-secret", sub=str(uuid.uuid4()), role="admin", approved=True)

    response = client.get("/me", headers=_bearer(token))

    assert response.status_code == 401


def test_unknown_role_is_rejected(client: TestClient) -> None:
    token = _token(sub=str(uuid.uuid4()), role="janitor", approved=True)

    response = client.get("/me", headers=_bearer(token))

    assert response.status_code == 401


def test_unapproved_account_is_forbidden(client: TestClient) -> None:
    token = _token(sub=str(uuid.uuid4()), role="client", gym_id=str(uuid.uuid4()), approved=False)

    response = client.get("/me", headers=_bearer(token))

    assert response.status_code == 403
    assert response.json()["detail"] == "Account pending approval"


def test_super_does_not_need_approval(client: TestClient) -> None:
    token = _token(sub=str(uuid.uuid4()), role="super")

    response = client.get("/me", headers=_bearer(token))

    assert response.status_code == 200
    assert response.json()["role"] == "super"
    assert response.json()["gym_id"] is None


def test_principal_from_claims_parses_optional_ids() -> None:
    diet_id = uuid.uuid4()

    principal = principal_from_claims(
        {"sub": str(uuid.uuid4()), "role": "client", "gym_id": "", "diet_id": str(diet_id), "approved": True},
        correlation_id="corr-1",
    )

    assert principal.role == Role.CLIENT
    assert principal.tenant_id is None
    assert principal.diet_id == diet_id
    assert principal.correlation_id == "corr-1"


@pytest.mark.parametrize("claim", ["false", "true", 1, "yes"])
def test_non_boolean_approved_claim_is_not_approval(client: TestClient, claim: Any) -> None:
    token = _token(sub=str(uuid.uuid4()), role="personal", gym_id=str(uuid.uuid4()), approved=claim)

    response = client.get("/me", headers=_bearer(token))

    assert response.status_code == 403
    assert principal_from_claims({"sub": str(uuid.uuid4()), "role": "personal", "approved": claim}).approved is False
