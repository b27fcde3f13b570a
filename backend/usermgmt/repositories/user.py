"""User repository: lookups, profile updates and refresh-token storage."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from usermgmt.models.user import User
from usermgmt.repositories.base import BaseRepository


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Never mints tokens; it only stores the refresh token the service hands it,
    always together with its expiry.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _sortable_fields(self):
        return {
            "email": User.email,
            "created_at": User.created_at,
            "last_login_at": User.last_login_at,
            "last_name": User.last_name,
        }

    def _updatable_fields(self):
        """Profile fields only; credentials and tokens have dedicated methods."""
        return {"first_name", "last_name", "phone_number"}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == normalize_email(email))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(func.count(User.id)).where(User.email == normalize_email(email))
        return bool(self.session.execute(stmt).scalar())

    # ---------------------------- Credentials ----------------------------

    def update_password(self, user: User, new_password: str) -> None:
        """Hash and store ``new_password`` (the model setter does the hashing)."""
        user.password = new_password
        self.flush()

    # ---------------------------- Refresh token ----------------------------

    def store_refresh_token(self, user: User, token: str, expires_at: datetime) -> None:
        """Overwrite the account's refresh token (last write wins)."""
        user.refresh_token = token
        user.refresh_token_expires_at = expires_at
        self.flush()

    def clear_refresh_token(self, user: User) -> None:
        user.refresh_token = None
        user.refresh_token_expires_at = None
        self.flush()

    def swap_refresh_token(
        self,
        user_id: str,
        *,
        expected: str,
        new_token: str,
        new_expires_at: datetime,
        now: datetime,
    ) -> bool:
        """
        Replace the refresh token only if ``expected`` is still the current,
        unexpired one.

        Runs as a single conditional ``UPDATE`` so two concurrent refreshes
        with the same token cannot both succeed.

        :param user_id: Account identifier.
        :param expected: Refresh token presented by the caller.
        :param new_token: Replacement token.
        :param new_expires_at: Expiry of the replacement token.
        :param now: Reference time for the expiry check.
        :returns: ``True`` when exactly one row was updated.
        :rtype: bool
        """
        # pending ORM changes must hit the DB before the raw UPDATE
        self.flush()
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.refresh_token == expected,
                User.refresh_token_expires_at > now,
            )
            .values(refresh_token=new_token, refresh_token_expires_at=new_expires_at)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self._expire_cached(user_id)
        return result.rowcount == 1

    def _expire_cached(self, user_id: str) -> None:
        key = Session.identity_key(User, user_id)
        instance = self.session.identity_map.get(key)
        if instance is not None:
            self.session.expire(instance)
