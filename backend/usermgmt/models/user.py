"""Account model: credentials, profile and the current refresh token."""

from __future__ import annotations

import hmac
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from usermgmt.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, as_utc
from .role import Role, user_roles


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account holding login credentials and the single active refresh token.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed), so lookups are
        case-insensitive.
    password_hash : str
        Hashed password (write-only setter via ``password``).
    first_name, last_name : str
        Display name parts.
    phone_number : str | None
        Optional contact number.
    is_active : bool
        Inactive accounts cannot log in or refresh.
    last_login_at : datetime | None
        Set on every successful login.
    refresh_token : str | None
        Opaque secret of the current session pair. Always written together
        with ``refresh_token_expires_at``.
    refresh_token_expires_at : datetime | None
        Expiry of ``refresh_token``.
    roles : list[Role]
        Many-to-many role membership.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    refresh_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    refresh_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    roles: Mapped[list[Role]] = relationship(
        Role,
        secondary=user_roles,
        lazy="selectin",
        order_by=Role.name,
    )

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; otherwise ``False``.
        :rtype: bool
        """
        if not self.password_hash or not isinstance(raw, str):
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Roles --------------------
    @property
    def role_names(self) -> list[str]:
        """Names of the roles held by the account, sorted."""
        return sorted(role.name for role in self.roles)

    def has_role(self, name: str) -> bool:
        return any(role.name == name for role in self.roles)

    # -------------------- Refresh token --------------------
    def has_refresh_token(self, token: str | None, now: datetime) -> bool:
        """
        Tell whether ``token`` is the stored refresh token and still valid.

        :param token: Presented refresh token.
        :param now: Reference time (aware UTC).
        :returns: ``True`` only when the token matches and has not expired.
        :rtype: bool
        """
        if not token or not self.refresh_token:
            return False
        expires_at = as_utc(self.refresh_token_expires_at)
        if expires_at is None or expires_at <= now:
            return False
        return hmac.compare_digest(self.refresh_token.encode(), token.encode())

    # -------------------- Validators --------------------
    @validates("first_name", "last_name")
    def _strip_name(self, key: str, value: str) -> str:
        """:raises ValueError: If the name is missing or blank."""
        v = (value or "").strip()
        if not v:
            label = "First name" if key == "first_name" else "Last name"
            raise ValueError(f"{label} is required.")
        return v

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v
