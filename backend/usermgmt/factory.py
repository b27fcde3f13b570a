"""Application factory wiring Flask extensions and blueprints."""

from __future__ import annotations

from flask import Flask

from usermgmt.core.config import (
    BaseConfig,
    apply_jwt_settings,
    get_config,
    validate_security_settings,
)
from usermgmt.core.logger import configure_logging
from usermgmt.core.logger import init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class/object or import path; defaults to the class
        selected by ``APP_ENV``.
    :raises RuntimeError: If the JWT settings are unsafe.
    """
    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    apply_jwt_settings(app.config)
    validate_security_settings(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from usermgmt.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from usermgmt.core import cors

    cors.init_app(app)

    from usermgmt.api import init_app as init_api

    init_api(app)

    from usermgmt.core import errors

    errors.init_app(app)

    from usermgmt import cli as app_cli

    app_cli.init_app(app)

    return app
