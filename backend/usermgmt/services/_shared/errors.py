"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or HTTP.
The translation to RFC 7807 responses happens in
:meth:`usermgmt.services._shared.base.BaseService.translate_exceptions`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, *constraint_hints: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name (``uq_users_email``); SQLite only
    reports the column (``users.email``), so several hints may be given.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_hints: Constraint names or ``table.column`` markers.
    :returns: ``True`` if any hint appears in the driver message.
    :rtype: bool
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return any(hint.lower() in message for hint in constraint_hints)


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` via ``BaseService``.
    """


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class PasswordPolicyError(ServiceError):
    """
    Raised when a password does not satisfy the configured policy.

    :param errors: One human-readable message per violated rule.
    """

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__(", ".join(self.errors))
