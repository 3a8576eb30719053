from __future__ import annotations

from collections.abc import Callable, Generator
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from freight_intel.api.app import create_app
from freight_intel.db.base import Base, import_orm_models
from freight_intel.db.models.shipment import Shipment
from freight_intel.db.session import get_db_session
from freight_intel.domain.workflow.registry import (
    WorkflowStateRegistry,
    load_workflow_catalogue,
)
from freight_intel.patterns.loader import PatternTables, load_pattern_tables


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker[Session], None, None]:
    import_orm_models()
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(
        bind=engine,
        class_=Session,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)


@pytest.fixture
def client(
    sqlite_session_factory: sessionmaker[Session],
) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db_session() -> Generator[Session, None, None]:
        with sqlite_session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def pattern_tables() -> PatternTables:
    return load_pattern_tables()


@pytest.fixture
def workflow_registry() -> WorkflowStateRegistry:
    return WorkflowStateRegistry(load_workflow_catalogue)


def seed_shipment(
    session: Session,
    *,
    workflow_state: str | None = None,
    booking_number: str | None = "263522431",
) -> Shipment:
    shipment = Shipment(
        reference="SHP-001",
        booking_number=booking_number,
        carrier_id="maersk",
        workflow_state=workflow_state,
        version=1,
    )
    session.add(shipment)
    session.commit()
    return shipment


@pytest.fixture
def make_shipment(
    sqlite_session_factory: sessionmaker[Session],
) -> Callable[..., UUID]:
    def factory(workflow_state: str | None = None) -> UUID:
        with sqlite_session_factory() as session:
            return seed_shipment(session, workflow_state=workflow_state).id

    return factory
