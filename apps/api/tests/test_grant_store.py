from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.grants.models import GymPermission
from app.gyms.models import Gym, Member
from app.platform.security.errors import GrantConflictError, NotFoundError
from app.platform.security.grants import DbGrantStore, GrantKind, GranteeType, IndividualGrant, TenantGrant
from app.platform.security.resources import Capability


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


def _seed_gym(session: Session, name: str) -> Gym:
    gym = Gym(name=name)
    session.add(gym)
    session.commit()
    return gym


def _seed_member(session: Session, gym: Gym | None, role: str) -> Member:
    member = Member(gym_id=gym.id if gym else None, name=f"{role}-member", email=f"{uuid.uuid4()}@example.com", role=role)
    session.add(member)
    session.commit()
    return member


def test_tenant_grant_lookup_honours_capability_and_active(db_session: Session) -> None:
    gym = _seed_gym(db_session, "North")
    coach = _seed_member(db_session, None, "personal")
    store = DbGrantStore(db_session)

    grant = store.create_tenant_grant(tenant_id=gym.id, coach_id=coach.id, can_edit_diets=True)

    assert isinstance(grant, TenantGrant)
    assert grant.kind == GrantKind.TENANT
    assert grant.active is True
    assert store.has_tenant_grant(coach.id, gym.id, Capability.EDIT_DIETS) is True
    assert store.has_tenant_grant(coach.id, gym.id, Capability.EDIT_TRAININGS) is False
    assert store.list_tenants_granted_to(coach.id, Capability.EDIT_DIETS) == {gym.id}

    store.set_grant_active(GrantKind.TENANT, grant.id, False)

    assert store.has_tenant_grant(coach.id, gym.id, Capability.EDIT_DIETS) is False
    assert store.list_tenants_granted_to(coach.id, Capability.EDIT_DIETS) == set()
    assert store.get_grant(GrantKind.TENANT, grant.id).active is False


def test_duplicate_tenant_grant_conflicts_with_existing(db_session: Session) -> None:
    gym = _seed_gym(db_session, "North")
    coach = _seed_member(db_session, None, "personal")
    store = DbGrantStore(db_session)
    first = store.create_tenant_grant(tenant_id=gym.id, coach_id=coach.id, can_edit_trainings=True)

    with pytest.raises(GrantConflictError) as exc_info:
        store.create_tenant_grant(tenant_id=gym.id, coach_id=coach.id, can_edit_diets=True)

    assert exc_info.value.existing.id == first.id
    assert exc_info.value.existing.can_edit_diets is False
    assert len(store.list_tenant_grants(tenant_id=gym.id)) == 1


def test_individual_grants_batch_lookup(db_session: Session) -> None:
    gym = _seed_gym(db_session, "South")
    coach = _seed_member(db_session, None, "personal")
    clients = [_seed_member(db_session, gym, "client") for _ in range(3)]
    store = DbGrantStore(db_session)

    store.create_individual_grant(
        user_id=clients[0].id,
        grantee_type=GranteeType.PERSONAL,
        grantee_id=coach.id,
        can_edit_diets=True,
    )
    store.create_individual_grant(
        user_id=clients[1].id,
        grantee_type=GranteeType.PERSONAL,
        grantee_id=coach.id,
        can_edit_trainings=True,
    )
    store.create_individual_grant(
        user_id=clients[2].id,
        grantee_type=GranteeType.GYM,
        grantee_id=gym.id,
        can_edit_diets=True,
    )

    client_ids = [client.id for client in clients]
    assert store.list_individual_grants_for_assignees(
        client_ids, GranteeType.PERSONAL, coach.id, Capability.EDIT_DIETS
    ) == {clients[0].id}
    assert store.list_individual_grants_for_assignees(
        client_ids, GranteeType.GYM, gym.id, Capability.EDIT_DIETS
    ) == {clients[2].id}
    assert store.list_individual_grants_for_assignees([], GranteeType.GYM, gym.id, Capability.EDIT_DIETS) == set()
    assert store.has_individual_grant(clients[1].id, GranteeType.PERSONAL, coach.id, Capability.EDIT_TRAININGS) is True
    assert store.has_individual_grant(clients[1].id, GranteeType.GYM, coach.id, Capability.EDIT_TRAININGS) is False


def test_duplicate_individual_grant_conflicts(db_session: Session) -> None:
    gym = _seed_gym(db_session, "South")
    client = _seed_member(db_session, gym, "client")
    store = DbGrantStore(db_session)
    existing = store.create_individual_grant(user_id=client.id, grantee_type=GranteeType.GYM, grantee_id=gym.id)

    with pytest.raises(GrantConflictError) as exc_info:
        store.create_individual_grant(user_id=client.id, grantee_type=GranteeType.GYM, grantee_id=gym.id)

    assert exc_info.value.existing == existing
    assert isinstance(exc_info.value.existing, IndividualGrant)


def test_update_grant_changes_only_provided_fields(db_session: Session) -> None:
    gym = _seed_gym(db_session, "East")
    client = _seed_member(db_session, gym, "client")
    store = DbGrantStore(db_session)
    grant = store.create_individual_grant(
        user_id=client.id,
        grantee_type=GranteeType.GYM,
        grantee_id=gym.id,
        can_edit_diets=True,
    )

    updated = store.update_grant(GrantKind.INDIVIDUAL, grant.id, can_edit_trainings=True)

    assert updated.can_edit_diets is True
    assert updated.can_edit_trainings is True
    assert updated.active is True


def test_delete_and_missing_grants(db_session: Session) -> None:
    gym = _seed_gym(db_session, "West")
    coach = _seed_member(db_session, None, "personal")
    store = DbGrantStore(db_session)
    grant = store.create_tenant_grant(tenant_id=gym.id, coach_id=coach.id)

    store.delete_grant(GrantKind.TENANT, grant.id)

    with pytest.raises(NotFoundError):
        store.get_grant(GrantKind.TENANT, grant.id)
    with pytest.raises(NotFoundError):
        store.delete_grant(GrantKind.INDIVIDUAL, uuid.uuid4())


def test_list_filters(db_session: Session) -> None:
    north = _seed_gym(db_session, "North")
    south = _seed_gym(db_session, "South")
    coach = _seed_member(db_session, None, "personal")
    other_coach = _seed_member(db_session, None, "personal")
    store = DbGrantStore(db_session)
    store.create_tenant_grant(tenant_id=north.id, coach_id=coach.id)
    inactive = store.create_tenant_grant(tenant_id=south.id, coach_id=coach.id)
    store.create_tenant_grant(tenant_id=south.id, coach_id=other_coach.id)
    store.set_grant_active(GrantKind.TENANT, inactive.id, False)

    assert len(store.list_tenant_grants(coach_id=coach.id)) == 2
    assert {grant.tenant_id for grant in store.list_tenant_grants(coach_id=coach.id, active_only=True)} == {north.id}
    assert {grant.coach_id for grant in store.list_tenant_grants(tenant_id=south.id)} == {coach.id, other_coach.id}


def test_unique_constraint_race_surfaces_as_conflict(db_session: Session) -> None:
    gym = _seed_gym(db_session, "North")
    coach = _seed_member(db_session, None, "personal")
    store = DbGrantStore(db_session)
    first = store.create_tenant_grant(tenant_id=gym.id, coach_id=coach.id)
    racing = GymPermission(gym_id=gym.id, personal_id=coach.id, can_edit_diets=True, is_active=True)
    lookup = select(GymPermission).where(GymPermission.gym_id == gym.id, GymPermission.personal_id == coach.id)

    with pytest.raises(GrantConflictError) as exc_info:
        store._insert(racing, lookup)

    assert exc_info.value.existing.id == first.id
    assert len(store.list_tenant_grants(tenant_id=gym.id)) == 1
