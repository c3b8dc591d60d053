from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker

from fleetfuel.db import create_db_engine, init_db
from fleetfuel.domain.approval import ApprovalEngine
from fleetfuel.domain.attachments import InMemoryBlobStore
from fleetfuel.domain.identity import Role

from tests.fixtures.factories import make_identity, make_vehicle


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine, seed_vehicle_types=False)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def approval_engine(db, blob_store) -> ApprovalEngine:
    return ApprovalEngine(db, blob_store=blob_store)


@pytest.fixture
def driver(db):
    return make_identity(db, Role.DRIVER, email="driver@fleet.test")


@pytest.fixture
def supervisor(db):
    return make_identity(db, Role.SUPERVISOR, email="supervisor@fleet.test")


@pytest.fixture
def fueler(db):
    return make_identity(db, Role.FUELER, email="fueler@fleet.test")


@pytest.fixture
def director(db):
    return make_identity(db, Role.DIRECTOR, email="director@fleet.test")


@pytest.fixture
def admin(db):
    return make_identity(db, Role.ADMIN, email="admin@fleet.test")


@pytest.fixture
def vehicle(db):
    return make_vehicle(db, plate="AB-123-CD")
