from __future__ import annotations

import os
import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("OTEL_ENABLED", "true")

from app.core.auth import get_current_principal
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.gyms.models import Diet, Gym
from app.main import app
from app.otel import setup_inmemory_otel
from app.platform.security.context import Principal, Role


TENANT_ID = uuid.uuid4()


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
    session.add(Gym(id=TENANT_ID, name="Traced Gym"))
    session.commit()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def setup_env() -> Generator[None, None, None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def span_exporter() -> InMemorySpanExporter:
    exporter = setup_inmemory_otel("api")
    exporter.clear()
    return exporter


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_principal] = lambda: Principal(
        id=uuid.uuid4(),
        role=Role.ADMIN,
        tenant_id=TENANT_ID,
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_request_span_contains_correlation_id(client: TestClient, span_exporter: InMemorySpanExporter) -> None:
    response = client.post("/api/diets", json={"name": "Traced"}, headers={"X-Correlation-Id": "otel-corr-1"})
    assert response.status_code == 201

    spans = span_exporter.get_finished_spans()
    assert spans
    assert any(span.attributes.get("correlation_id") == "otel-corr-1" for span in spans)


def test_listing_span_reports_resource_and_count(
    client: TestClient,
    db_session: Session,
    span_exporter: InMemorySpanExporter,
) -> None:
    db_session.add_all(
        [
            Diet(gym_id=TENANT_ID, creator_id=uuid.uuid4(), name="One"),
            Diet(gym_id=TENANT_ID, creator_id=uuid.uuid4(), name="Two"),
        ]
    )
    db_session.commit()

    response = client.get("/api/diets", headers={"X-Correlation-Id": "otel-list-1"})
    assert response.status_code == 200

    list_spans = [span for span in span_exporter.get_finished_spans() if span.name == "diet.list"]
    assert list_spans
    assert any(
        span.attributes.get("resource") == "diet"
        and span.attributes.get("result_count") == 2
        and span.attributes.get("correlation_id") == "otel-list-1"
        for span in list_spans
    )
