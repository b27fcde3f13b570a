from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from usermgmt.models.base import as_utc
from usermgmt.models.user import User


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public projection of an account.

    :param id: Account identifier.
    :param email: Normalized email.
    :param first_name: Given name.
    :param last_name: Family name.
    :param phone_number: Optional phone number.
    :param is_active: Whether the account may log in.
    :param created_at: Creation time (UTC).
    :param last_login_at: Last successful login (UTC) or ``None``.
    :param roles: Role names, sorted.
    """

    id: str
    email: str
    first_name: str
    last_name: str
    phone_number: str | None
    is_active: bool
    created_at: datetime | None
    last_login_at: datetime | None
    roles: tuple[str, ...]

    @classmethod
    def from_model(cls, user: User) -> UserOut:
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            phone_number=user.phone_number,
            is_active=user.is_active,
            created_at=as_utc(user.created_at),
            last_login_at=as_utc(user.last_login_at),
            roles=tuple(user.role_names),
        )


@dataclass(frozen=True, slots=True)
class UserUpdateIn:
    """
    Profile changes. Blank or ``None`` values leave the field untouched.

    :param first_name: New given name.
    :param last_name: New family name.
    :param phone_number: New phone number.
    """

    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None

    def non_blank(self) -> dict[str, str]:
        fields = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
        }
        return {k: v.strip() for k, v in fields.items() if v is not None and v.strip()}
