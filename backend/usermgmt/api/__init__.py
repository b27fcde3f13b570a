"""API blueprint package."""

from __future__ import annotations

from collections.abc import Iterable
from typing import cast

from flask import Blueprint, Flask

from usermgmt.core.errors import APIError, render_api_error
from usermgmt.services._shared.base import BaseService
from usermgmt.services._shared.errors import ServiceError


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register related blueprints beneath a common prefix.

    Parameters
    ----------
    app:
        Application instance receiving the blueprints.
    base_prefix:
        Prefix applied to all entries, typically ``API_BASE_PREFIX``.
    entries:
        Iterable of ``(blueprint, relative_prefix)`` pairs where
        ``relative_prefix`` is appended to ``base_prefix``.
    """
    for bp, rel_prefix in entries:
        full_prefix = "/".join(
            segment for segment in [base_prefix.strip("/"), rel_prefix.strip("/")] if segment
        )
        app.register_blueprint(bp, url_prefix="/" + full_prefix)


def init_app(app: Flask) -> None:
    """Mount the blueprints and translate service errors into API errors."""
    from usermgmt.api.auth import bp as auth_bp
    from usermgmt.api.health import bp as health_bp
    from usermgmt.api.users import bp as users_bp

    registry: list[tuple[Blueprint, str]] = [
        (health_bp, ""),
        (auth_bp, "/auth"),
        (users_bp, "/users"),
    ]
    register_blueprint_group(
        app, base_prefix=app.config.get("API_BASE_PREFIX", "/api"), entries=registry
    )

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = BaseService.translate_exceptions(err)
        return render_api_error(cast(APIError, translated))


__all__ = ["init_app", "register_blueprint_group"]
