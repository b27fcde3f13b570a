"""Shared API helpers: auth guards, service wiring, parsing and timing."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from usermgmt.core.errors import Forbidden
from usermgmt.core.extensions import RESET_STORE_EXTENSION_KEY
from usermgmt.schemas.common import PaginationQuerySchema
from usermgmt.services._shared.dto import PaginationIn
from usermgmt.services._shared.policies.password import PasswordPolicy
from usermgmt.services._shared.ports import PasswordResetTokenStore
from usermgmt.services.auth.dto import AuthTokenConfig
from usermgmt.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])


def parse_pagination(default_limit: int = 20, max_limit: int = 200) -> PaginationIn:
    """Parse pagination parameters from ``request.args`` using Marshmallow."""
    data = PaginationQuerySchema(default_limit=default_limit, max_limit=max_limit).load(
        request.args
    )
    return PaginationIn(page=data["page"], limit=data["limit"], sort=tuple(data["sort"]))


def load_json(schema) -> dict[str, Any]:
    """Validate the JSON body with ``schema``; a missing body counts as ``{}``."""
    return cast(dict[str, Any], schema.load(request.get_json(silent=True) or {}))


# ------------------------------ Service wiring ------------------------------


def get_reset_token_store() -> PasswordResetTokenStore:
    """The store built by :func:`usermgmt.core.extensions.init_app`."""
    return cast(PasswordResetTokenStore, current_app.extensions[RESET_STORE_EXTENSION_KEY])


def build_auth_service() -> AuthService:
    """Assemble :class:`AuthService` from the current app configuration."""
    from usermgmt.infra.jwt.flask_jwt_token_issuer import JWTTokenIssuer

    config = current_app.config
    return AuthService(
        token_issuer=JWTTokenIssuer(),
        reset_store=get_reset_token_store(),
        token_cfg=AuthTokenConfig.from_config(config),
        password_policy=PasswordPolicy.from_config(config),
        on_reset_token=current_app.extensions.get("password_reset_notifier"),
    )


# ------------------------------ Auth guards ---------------------------------


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(required: str | None = None) -> Callable[[F], F]:
    """Ensure the verified JWT lists ``required`` (default ``ADMIN_ROLE``) in ``roles``."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            role = required or current_app.config.get("ADMIN_ROLE", "Admin")
            roles = set((get_jwt() or {}).get("roles", []))
            if role not in roles:
                raise Forbidden("Insufficient role")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


# ------------------------------ Responses -----------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""
    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
