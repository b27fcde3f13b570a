"""Flask CLI commands for seeding roles and the administrator account."""

from __future__ import annotations

import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from usermgmt.services._shared.errors import PasswordPolicyError
from usermgmt.services._shared.policies.password import PasswordPolicy
from usermgmt.services.users.service import UserService

LOGGER = logging.getLogger(__name__)


def _default_roles() -> tuple[str, ...]:
    config = current_app.config
    return (config.get("ADMIN_ROLE", "Admin"), config.get("DEFAULT_ROLE", "User"))


@click.group("seed")
def seed_cli() -> None:
    """Idempotent seeding commands."""


@seed_cli.command("roles")
@click.argument("names", nargs=-1)
@with_appcontext
def roles_command(names: tuple[str, ...]) -> None:
    """Ensure the given roles exist (defaults to the admin and default roles)."""
    ensured = UserService().ensure_roles(names or _default_roles())
    for name in ensured:
        click.echo(f"  role {name}: ok")


@seed_cli.command("admin")
@click.option("--email", required=True, help="Administrator login email.")
@click.option(
    "--password",
    required=True,
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Password used only when the account is created.",
)
@click.option("--first-name", default="Admin", show_default=True)
@click.option("--last-name", default="User", show_default=True)
@with_appcontext
def admin_command(email: str, password: str, first_name: str, last_name: str) -> None:
    """Create the administrator account if missing and grant it the admin role."""
    config = current_app.config
    service = UserService()
    service.ensure_roles(_default_roles())
    try:
        user, created = service.ensure_admin(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            admin_role=config.get("ADMIN_ROLE", "Admin"),
            password_policy=PasswordPolicy.from_config(config),
        )
    except PasswordPolicyError as exc:
        raise click.ClickException(f"Password rejected: {exc}") from exc
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    LOGGER.info("seed.admin", extra={"user_id": user.id})
    click.echo(f"Admin {user.email} {'created' if created else 'already present'}.")
