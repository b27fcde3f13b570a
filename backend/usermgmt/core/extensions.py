"""Extension singletons (database, migrations, JWT) and their app binding."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Named constraints keep Alembic batch migrations on SQLite deterministic;
# explicit names on the models (uq_users_email, uq_roles_name) win over these.
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()

REDIS_EXTENSION_KEY = "redis_client"
RESET_STORE_EXTENSION_KEY = "password_reset_store"


def _connect_redis(url: str) -> redis.Redis:
    """Open a client and ping it so a bad ``REDIS_URL`` fails at startup."""
    client = redis.Redis.from_url(url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {url!r}") from exc
    return client


def build_reset_token_store(client: redis.Redis | None):
    """Redis-backed reset token store when a client is given, else in-memory."""
    if client is not None:
        from usermgmt.infra.redis.redis_password_reset_store import RedisPasswordResetTokenStore

        return RedisPasswordResetTokenStore(client)

    from usermgmt.services._shared.ports import InMemoryPasswordResetTokenStore

    return InMemoryPasswordResetTokenStore()


def init_app(app: Flask) -> None:
    """Bind the extensions to ``app``.

    The models package is imported here so the metadata is complete before
    ``create_all`` or a migration runs. With ``REDIS_URL`` set, the connected
    client is published as ``app.extensions["redis_client"]``. The
    password reset token store is built once here, on Redis when available.
    """
    db.init_app(app)

    from usermgmt import models as _models  # noqa: F401

    migrate.init_app(app, db)
    jwt.init_app(app)

    url = app.config.get("REDIS_URL")
    client = _connect_redis(url) if url else None
    if client is not None:
        app.extensions[REDIS_EXTENSION_KEY] = client
    else:
        app.extensions.pop(REDIS_EXTENSION_KEY, None)
    app.extensions[RESET_STORE_EXTENSION_KEY] = build_reset_token_store(client)
