from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.auth import get_current_principal
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.gyms.models import Gym, Member
from app.main import app
from app.platform.security.context import Principal, Role


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clear_settings() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def acting() -> dict[str, Principal | None]:
    return {"principal": None}


@pytest.fixture()
def client(db_session: Session, acting: dict[str, Principal | None]) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_principal] = lambda: acting["principal"]
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def people(db_session: Session) -> dict[str, Member | Gym]:
    north = Gym(name="North")
    south = Gym(name="South")
    db_session.add_all([north, south])
    db_session.flush()

    members = {
        "admin_north": Member(gym_id=north.id, name="Admin N", email="an@example.com", role="admin", approved=True),
        "admin_south": Member(gym_id=south.id, name="Admin S", email="as@example.com", role="admin", approved=True),
        "coach_north": Member(gym_id=north.id, name="Coach N", email="cn@example.com", role="personal", approved=True),
        "client_south": Member(gym_id=south.id, name="Client S", email="cs@example.com", role="client", approved=True),
    }
    db_session.add_all(members.values())
    db_session.commit()
    return {"north": north, "south": south, **members}


def _as(acting: dict[str, Principal | None], member: Member) -> None:
    acting["principal"] = Principal(id=member.id, role=Role(member.role), tenant_id=member.gym_id)


def test_admin_grants_external_coach_and_coach_sees_it(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["admin_south"])
    created = client.post(
        "/api/gym-permissions",
        json={"personal_id": str(people["coach_north"].id), "can_edit_trainings": True},
    )
    assert created.status_code == 201
    grant = created.json()
    assert grant["kind"] == "tenant"
    assert grant["tenant_id"] == str(people["south"].id)
    assert grant["active"] is True

    listed = client.get("/api/gym-permissions")
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()["data"]] == [grant["id"]]

    _as(acting, people["coach_north"])
    received = client.get("/api/my-gym-permissions")
    assert received.status_code == 200
    assert [item["id"] for item in received.json()["data"]] == [grant["id"]]


def test_duplicate_gym_permission_returns_conflict_with_existing(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["admin_south"])
    payload = {"personal_id": str(people["coach_north"].id), "can_edit_diets": True}
    first = client.post("/api/gym-permissions", json=payload)
    assert first.status_code == 201

    second = client.post("/api/gym-permissions", json=payload)

    assert second.status_code == 409
    body = second.json()
    assert body["code"] == "conflict"
    assert body["details"]["existing"]["id"] == first.json()["id"]


def test_gym_permission_grantee_must_be_a_coach(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["admin_south"])

    not_coach = client.post("/api/gym-permissions", json={"personal_id": str(people["client_south"].id)})
    unknown = client.post("/api/gym-permissions", json={"personal_id": str(uuid.uuid4())})

    assert not_coach.status_code == 422
    assert not_coach.json()["code"] == "invalid_request"
    assert not_coach.json()["details"] == {"field": "personal_id"}
    assert unknown.status_code == 404


def test_only_granting_gym_admin_manages_its_grants(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["admin_south"])
    grant_id = client.post("/api/gym-permissions", json={"personal_id": str(people["coach_north"].id)}).json()["id"]

    _as(acting, people["admin_north"])
    assert client.get(f"/api/gym-permissions/{grant_id}").status_code == 403
    assert client.delete(f"/api/gym-permissions/{grant_id}").status_code == 403

    _as(acting, people["coach_north"])
    assert client.post("/api/gym-permissions", json={"personal_id": str(people["coach_north"].id)}).status_code == 403

    _as(acting, people["admin_south"])
    toggled = client.patch(f"/api/gym-permissions/{grant_id}", json={"active": False})
    assert toggled.status_code == 200
    assert toggled.json()["active"] is False
    assert client.delete(f"/api/gym-permissions/{grant_id}").status_code == 204
    assert client.get(f"/api/gym-permissions/{grant_id}").status_code == 404


def test_inactive_grants_are_hidden_from_the_coach(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["admin_south"])
    grant_id = client.post("/api/gym-permissions", json={"personal_id": str(people["coach_north"].id)}).json()["id"]
    client.patch(f"/api/gym-permissions/{grant_id}", json={"active": False})

    _as(acting, people["coach_north"])
    received = client.get("/api/my-gym-permissions")

    assert received.json()["data"] == []


def test_client_grants_coach_and_gym(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["client_south"])
    to_coach = client.post(
        "/api/user-permissions",
        json={"grantee_type": "personal", "grantee_id": str(people["coach_north"].id), "can_edit_diets": True},
    )
    to_gym = client.post(
        "/api/user-permissions",
        json={"grantee_type": "gym", "grantee_id": str(people["north"].id), "can_edit_trainings": True},
    )
    assert to_coach.status_code == 201
    assert to_gym.status_code == 201
    assert to_coach.json()["user_id"] == str(people["client_south"].id)

    mine = client.get("/api/user-permissions")
    assert {item["id"] for item in mine.json()["data"]} == {to_coach.json()["id"], to_gym.json()["id"]}

    _as(acting, people["coach_north"])
    coach_view = client.get("/api/granted-to-me")
    assert [item["id"] for item in coach_view.json()["data"]] == [to_coach.json()["id"]]
    assert client.delete(f"/api/user-permissions/{to_coach.json()['id']}").status_code == 403

    _as(acting, people["admin_north"])
    gym_view = client.get("/api/granted-to-me")
    assert [item["id"] for item in gym_view.json()["data"]] == [to_gym.json()["id"]]


def test_user_permission_duplicate_and_unknown_grantee(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["client_south"])
    payload = {"grantee_type": "gym", "grantee_id": str(people["north"].id)}

    assert client.post("/api/user-permissions", json=payload).status_code == 201
    assert client.post("/api/user-permissions", json=payload).status_code == 409
    assert (
        client.post(
            "/api/user-permissions",
            json={"grantee_type": "personal", "grantee_id": str(people["admin_north"].id)},
        ).status_code
        == 422
    )
    assert (
        client.post("/api/user-permissions", json={"grantee_type": "gym", "grantee_id": str(uuid.uuid4())}).status_code
        == 404
    )


def test_client_cannot_list_received_grants(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    _as(acting, people["client_south"])

    assert client.get("/api/granted-to-me").status_code == 403
    assert client.get("/api/my-gym-permissions").status_code == 403
    assert client.get("/api/gym-permissions").status_code == 403


def test_super_must_name_the_granting_gym(
    client: TestClient,
    people: dict,
    acting: dict[str, Principal | None],
) -> None:
    acting["principal"] = Principal(id=uuid.uuid4(), role=Role.SUPER, tenant_id=None)

    missing = client.post("/api/gym-permissions", json={"personal_id": str(people["coach_north"].id)})
    named = client.post(
        "/api/gym-permissions",
        json={"personal_id": str(people["coach_north"].id), "gym_id": str(people["south"].id)},
    )

    assert missing.status_code == 422
    assert missing.json()["details"] == {"field": "gym_id"}
    assert named.status_code == 201
    assert named.json()["tenant_id"] == str(people["south"].id)
