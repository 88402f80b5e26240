from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from data_explorer import models  # noqa: F401
from data_explorer.api.deps import get_db, get_target_connection
from data_explorer.main import app
from data_explorer.store import KeyValueTemplateStore
from tests.utils.db import make_target_connection


@pytest.fixture()
def store_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine standing in for the store database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(store_engine: Engine) -> Generator[Session, None, None]:
    with Session(store_engine) as session:
        yield session


@pytest.fixture()
def store(db: Session) -> KeyValueTemplateStore:
    return KeyValueTemplateStore(db)


@pytest.fixture()
def target_conn() -> MagicMock:
    """Mock psycopg connection to the target database (one-row result by default)."""
    return make_target_connection(columns=["n"], rows=[(1,)])


@pytest.fixture()
def client(
    store_engine: Engine, target_conn: MagicMock
) -> Generator[TestClient, None, None]:
    def _get_db() -> Generator[Session, None, None]:
        with Session(store_engine) as session:
            yield session

    def _get_target_connection() -> Generator[Any, None, None]:
        yield target_conn

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_target_connection] = _get_target_connection
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
