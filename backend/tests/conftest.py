"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside an outer transaction on a single in-memory SQLite
connection; ``session.commit()`` only releases a SAVEPOINT, so nothing leaks
between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from usermgmt.core.config import TestingConfig
from usermgmt.core.extensions import db as _db
from usermgmt.factory import create_app


class TestConfig(TestingConfig):
    """Testing configuration: in-memory SQLite, no Redis, fixed JWT settings."""

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "unit-test-signing-key-0123456789abcdef0123456789"
    JWT_ISSUER = "usermgmt-tests"
    JWT_AUDIENCE = "usermgmt-tests-clients"
    ACCESS_TOKEN_EXPIRES_MINUTES = 15
    REFRESH_TOKEN_EXPIRES_DAYS = 7
    PASSWORD_RESET_TOKEN_EXPIRES_HOURS = 1
    REDIS_URL = None


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing."""
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig, instance_relative_config=False)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create tables once per test session inside a pushed app context.

    pysqlite defers ``BEGIN`` on its own, which breaks SAVEPOINT semantics;
    the driver is put in autocommit mode and SQLAlchemy emits ``BEGIN``.
    """
    with app.app_context():
        engine = _db.engine

        @event.listens_for(engine, "connect")
        def _sqlite_autocommit(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a scoped session bound to an outer, always-rolled-back transaction.

    ``join_transaction_mode="create_savepoint"`` turns every session-level
    commit/rollback into a SAVEPOINT release/rollback, so services can commit
    freely.
    """
    outer = connection.begin()
    factory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(factory)

    original_session = db.session
    db.session = scoped
    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        outer.rollback()


@pytest.fixture
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture
def reset_store(app, monkeypatch):
    """Fresh in-memory reset-token store installed on the app per test."""
    from usermgmt.services._shared.ports import InMemoryPasswordResetTokenStore

    store = InMemoryPasswordResetTokenStore()
    monkeypatch.setitem(app.extensions, "password_reset_store", store)
    return store


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
    SQLAlchemySession.set(None)
