from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from usermgmt.services.users.dto import UserOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: Login email (normalized by the model).
    :param password: Raw password, checked against the password policy.
    :param first_name: Given name.
    :param last_name: Family name.
    :param phone_number: Optional phone number.
    """

    email: str
    password: str
    first_name: str
    last_name: str
    phone_number: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param access_token: Last access token, possibly expired.
    :param refresh_token: Opaque refresh token paired with it.
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    user_id: str
    current_password: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    """
    Input DTO for completing a password reset.

    :param email: Account email.
    :param token: Token delivered by the forgot-password flow.
    :param new_password: Replacement password.
    """

    email: str
    token: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


class ErrorKind(str, Enum):
    """Category of an expected authentication failure."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Outcome of an authentication operation.

    Expected failures are values, not exceptions.

    :param success: Whether the operation succeeded.
    :param message: Human-readable outcome; joined reasons on validation errors.
    :param token: New access token, on session-issuing success.
    :param refresh_token: New refresh token, on session-issuing success.
    :param token_expiration: Access token expiry (UTC).
    :param user: Account projection, on session-issuing success.
    :param error: Failure category, ``None`` on success.
    :param errors: Individual failure reasons.
    """

    success: bool
    message: str
    token: str | None = None
    refresh_token: str | None = None
    token_expiration: datetime | None = None
    user: UserOut | None = None
    error: ErrorKind | None = None
    errors: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls, message: str, **kwargs) -> AuthResult:
        return cls(success=True, message=message, **kwargs)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str, errors: tuple[str, ...] = ()) -> AuthResult:
        return cls(success=False, message=message, error=kind, errors=errors or (message,))


# ------------------------ Config DTO --------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :param refresh_expires: Refresh token lifetime.
    :param reset_expires: Password reset token lifetime.
    :param default_role: Role granted on registration.
    """

    access_expires: timedelta = timedelta(minutes=60)
    refresh_expires: timedelta = timedelta(days=7)
    reset_expires: timedelta = timedelta(hours=24)
    default_role: str = "User"

    @classmethod
    def from_config(cls, config) -> AuthTokenConfig:
        return cls(
            access_expires=timedelta(minutes=int(config.get("ACCESS_TOKEN_EXPIRES_MINUTES", 60))),
            refresh_expires=timedelta(days=int(config.get("REFRESH_TOKEN_EXPIRES_DAYS", 7))),
            reset_expires=timedelta(
                hours=int(config.get("PASSWORD_RESET_TOKEN_EXPIRES_HOURS", 24))
            ),
            default_role=str(config.get("DEFAULT_ROLE", "User")),
        )

    def access_token_expires_at(self, issued_at: datetime) -> datetime:
        """Expiry reported to clients for an access token minted at ``issued_at``."""
        return issued_at + self.access_expires
