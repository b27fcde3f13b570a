from __future__ import annotations

import logging
from collections.abc import Iterable

from usermgmt.models.user import User
from usermgmt.repositories.base import Page
from usermgmt.services._shared.base import BaseService
from usermgmt.services._shared.dto import PaginationIn
from usermgmt.services._shared.errors import (
    ConflictError,
    NotFoundError,
    PasswordPolicyError,
    ServiceError,
)
from usermgmt.services._shared.policies.password import PasswordPolicy, check_password_policy
from usermgmt.services.users.dto import UserOut, UserUpdateIn
from usermgmt.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

logger = logging.getLogger(__name__)


class UserService(BaseService):
    """
    Account administration: profile reads and updates, activation, roles.

    Raises service errors (``NotFoundError``, ``ConflictError``,
    ``ServiceError``) which the API layer translates to HTTP problems.
    """

    def _require(self, uow: SQLAlchemyUnitOfWork, user_id: str) -> User:
        user = uow.users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    # ------------------------------ Queries ----------------------------------

    def get_user(self, user_id: str) -> UserOut:
        """
        :raises NotFoundError: If the account does not exist.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return UserOut.from_model(user)

    def get_user_by_email(self, email: str) -> UserOut:
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            if user is None:
                raise NotFoundError("User", email)
            return UserOut.from_model(user)

    def list_users(self, pagination: PaginationIn) -> Page[UserOut]:
        """
        Return one page of accounts.

        :param pagination: Page, size and sort tokens (``email``,
            ``created_at``, ``last_login_at``, ``last_name``).
        :rtype: Page[UserOut]
        """
        pg = self.ensure_pagination(
            page=pagination.page, limit=pagination.limit, sort=pagination.sort
        )
        with self.ro_uow() as uow:
            page = uow.users.paginate(pg)
            return Page(
                items=[UserOut.from_model(u) for u in page.items],
                total=page.total,
                page=page.page,
                limit=page.limit,
            )

    def get_roles(self, user_id: str) -> list[str]:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return user.role_names

    # ------------------------------ Commands ---------------------------------

    def update_user(self, user_id: str, dto: UserUpdateIn) -> UserOut:
        """
        Apply the non-blank profile fields of ``dto``.

        :raises NotFoundError: If the account does not exist.
        """
        with self.rw_uow() as uow:
            user = self._require(uow, user_id)
            uow.users.assign_updates(user, dto.non_blank())
            out = UserOut.from_model(user)
        logger.info("users.updated", extra={"user_id": user_id})
        return out

    def delete_user(self, user_id: str) -> None:
        with self.rw_uow() as uow:
            uow.users.delete(self._require(uow, user_id))
        logger.info("users.deleted", extra={"user_id": user_id})

    def set_active(self, user_id: str, active: bool) -> UserOut:
        """
        Activate or deactivate an account. Deactivation also drops the stored
        refresh token so the account cannot refresh.
        """
        with self.rw_uow() as uow:
            user = self._require(uow, user_id)
            user.is_active = active
            if not active:
                uow.users.clear_refresh_token(user)
            uow.users.flush()
            out = UserOut.from_model(user)
        logger.info(
            "users.activated" if active else "users.deactivated", extra={"user_id": user_id}
        )
        return out

    def add_role(self, user_id: str, role: str) -> list[str]:
        """
        Grant ``role``, creating it if it does not exist yet.

        :raises ConflictError: If the account already holds the role.
        """
        role = role.strip()
        if not role:
            raise ServiceError("Role name is required.")
        with self.rw_uow() as uow:
            user = self._require(uow, user_id)
            if user.has_role(role):
                raise ConflictError("User", f"already in role '{role}'")
            user.roles.append(uow.roles.get_or_create(role))
            uow.users.flush()
            names = user.role_names
        logger.info("users.role_added", extra={"user_id": user_id})
        return names

    def remove_role(self, user_id: str, role: str) -> list[str]:
        """
        :raises ServiceError: If the account does not hold ``role``.
        """
        with self.rw_uow() as uow:
            user = self._require(uow, user_id)
            held = [r for r in user.roles if r.name == role.strip()]
            if not held:
                raise ServiceError(f"User is not in role '{role}'.")
            for r in held:
                user.roles.remove(r)
            uow.users.flush()
            names = user.role_names
        logger.info("users.role_removed", extra={"user_id": user_id})
        return names

    # ------------------------------ Seeding ----------------------------------

    def ensure_roles(self, names: Iterable[str]) -> list[str]:
        """Create any missing roles; existing ones are left alone."""
        with self.rw_uow() as uow:
            return [role.name for role in uow.roles.ensure_many(names)]

    def ensure_admin(
        self,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        admin_role: str = "Admin",
        password_policy: PasswordPolicy | None = None,
    ) -> tuple[UserOut, bool]:
        """
        Make sure an account with ``email`` exists and holds ``admin_role``.

        :returns: The account and whether it was created by this call.
        :raises PasswordPolicyError: If a new account's password is too weak.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(email)
            created = user is None
            if user is None:
                errors = check_password_policy(password, password_policy or PasswordPolicy())
                if errors:
                    raise PasswordPolicyError(errors)
                user = User(email=email, first_name=first_name, last_name=last_name)
                user.password = password
                uow.users.add(user)
            if not user.has_role(admin_role):
                user.roles.append(uow.roles.get_or_create(admin_role))
            uow.users.flush()
            out = UserOut.from_model(user)
        return out, created
