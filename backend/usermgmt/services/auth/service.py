from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from usermgmt.models.user import User
from usermgmt.services._shared.base import BaseService
from usermgmt.services._shared.errors import violates
from usermgmt.services._shared.policies.password import PasswordPolicy, check_password_policy
from usermgmt.services._shared.ports import PasswordResetTokenStore, TokenIssuer
from usermgmt.services.auth.dto import (
    AuthResult,
    AuthTokenConfig,
    ChangePasswordIn,
    ErrorKind,
    LoginIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
)
from usermgmt.services.users.dto import UserOut
from usermgmt.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

logger = logging.getLogger(__name__)

MSG_EMAIL_TAKEN = "User with this email already exists."
MSG_BAD_CREDENTIALS = "Invalid email or password."
MSG_BAD_ACCESS_TOKEN = "Invalid access token."
MSG_BAD_CLAIMS = "Invalid token claims."
MSG_BAD_REFRESH_TOKEN = "Invalid or expired refresh token."
MSG_USER_NOT_FOUND = "User not found."
MSG_WRONG_PASSWORD = "Incorrect password."
MSG_BAD_RESET_TOKEN = "Invalid or expired password reset token."
MSG_RESET_REQUESTED = "If the email exists, a password reset link has been sent."

ResetTokenHook = Callable[[str, str], None]


def log_reset_token_issued(email: str, token: str) -> None:
    """Default delivery hook: no mail is sent, only the fact is logged."""
    logger.info("auth.password_reset.issued", extra={"event": "password_reset_issued"})


class AuthService(BaseService):
    """
    Session lifecycle: register, login, refresh, logout and password flows.

    Each account holds exactly one refresh token. Issuing a session overwrites
    it; refreshing swaps it atomically against the presented value, so a
    refresh token can be exchanged at most once.

    Expected failures come back as :class:`AuthResult` values with an
    :class:`ErrorKind`; database and configuration failures propagate.
    """

    def __init__(
        self,
        *,
        token_issuer: TokenIssuer,
        reset_store: PasswordResetTokenStore,
        token_cfg: AuthTokenConfig | None = None,
        password_policy: PasswordPolicy | None = None,
        on_reset_token: ResetTokenHook | None = None,
    ) -> None:
        """
        :param token_issuer: Mints access tokens and refresh secrets.
        :param reset_store: Keeps password reset tokens.
        :param token_cfg: Lifetimes and default role.
        :param password_policy: Rules for new passwords.
        :param on_reset_token: Receives ``(email, token)`` for delivery.
        """
        self.tokens = token_issuer
        self.reset_store = reset_store
        self.cfg = token_cfg or AuthTokenConfig()
        self.password_policy = password_policy or PasswordPolicy()
        self.on_reset_token = on_reset_token or log_reset_token_issued

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _issue_session(
        self, uow: SQLAlchemyUnitOfWork, user: User, now: datetime, message: str
    ) -> AuthResult:
        """Mint a new pair, persist the refresh token and build the result."""
        access = self.tokens.issue_access_token(
            user_id=user.id,
            email=user.email,
            roles=user.role_names,
            expires_delta=self.cfg.access_expires,
        )
        refresh = self.tokens.issue_refresh_token()
        uow.users.store_refresh_token(user, refresh, now + self.cfg.refresh_expires)
        return AuthResult.ok(
            message,
            token=access,
            refresh_token=refresh,
            token_expiration=self.cfg.access_token_expires_at(now),
            user=UserOut.from_model(user),
        )

    def _policy_failure(self, password: str) -> AuthResult | None:
        errors = check_password_policy(password, self.password_policy)
        if not errors:
            return None
        return AuthResult.fail(ErrorKind.VALIDATION, ", ".join(errors), tuple(errors))

    # ------------------------------------------------------------------ #
    # Register / login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthResult:
        """
        Create an active account with the default role and open a session.

        :param dto: Registration input.
        :returns: Session result, or ``CONFLICT`` / ``VALIDATION`` failure.
        :rtype: AuthResult
        """
        now = self.now_utc()
        try:
            with self.rw_uow() as uow:
                if uow.users.exists_by_email(dto.email):
                    return AuthResult.fail(ErrorKind.CONFLICT, MSG_EMAIL_TAKEN)

                failure = self._policy_failure(dto.password)
                if failure is not None:
                    return failure

                try:
                    user = User(
                        email=dto.email,
                        first_name=dto.first_name.strip(),
                        last_name=dto.last_name.strip(),
                        phone_number=(dto.phone_number or "").strip() or None,
                        is_active=True,
                    )
                except ValueError as exc:
                    return AuthResult.fail(ErrorKind.VALIDATION, str(exc))
                user.password = dto.password
                user.roles.append(uow.roles.get_or_create(self.cfg.default_role))
                uow.users.add(user)

                result = self._issue_session(uow, user, now, "Registration successful.")
        except IntegrityError as exc:
            # concurrent registration with the same email
            if violates(exc, "uq_users_email", "users.email"):
                return AuthResult.fail(ErrorKind.CONFLICT, MSG_EMAIL_TAKEN)
            raise

        logger.info("auth.register.succeeded", extra={"user_id": result.user.id})
        return result

    def login(self, dto: LoginIn) -> AuthResult:
        """
        Verify credentials and open a fresh session.

        A missing account, an inactive account and a wrong password all fail
        with the same message.

        :param dto: Login input.
        :rtype: AuthResult
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            if user is None or not user.is_active or not user.verify_password(dto.password):
                logger.info("auth.login.failed")
                return AuthResult.fail(ErrorKind.UNAUTHORIZED, MSG_BAD_CREDENTIALS)

            user.last_login_at = now
            result = self._issue_session(uow, user, now, "Login successful.")

        logger.info("auth.login.succeeded", extra={"user_id": result.user.id})
        return result

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> AuthResult:
        """
        Exchange an (expired) access token plus its refresh token for a new pair.

        The access token only identifies the account; its expiry is ignored
        but its signature, issuer and audience are not. The refresh token
        must equal the stored one and be unexpired. The swap is a
        compare-and-swap, so a second refresh with the same token fails.

        :param dto: Refresh input.
        :rtype: AuthResult
        """
        claims = self.tokens.extract_principal_from_expired_token(dto.access_token)
        if claims is None:
            logger.info("auth.refresh.rejected", extra={"event": "bad_access_token"})
            return AuthResult.fail(ErrorKind.UNAUTHORIZED, MSG_BAD_ACCESS_TOKEN)

        user_id = claims.get("sub")
        if not user_id:
            return AuthResult.fail(ErrorKind.UNAUTHORIZED, MSG_BAD_CLAIMS)

        now = self.now_utc()
        with self.rw_uow() as uow:
            user = uow.users.get(str(user_id))
            if (
                user is None
                or not user.is_active
                or not user.has_refresh_token(dto.refresh_token, now)
            ):
                logger.info("auth.refresh.rejected", extra={"user_id": str(user_id)})
                return AuthResult.fail(ErrorKind.UNAUTHORIZED, MSG_BAD_REFRESH_TOKEN)

            new_refresh = self.tokens.issue_refresh_token()
            swapped = uow.users.swap_refresh_token(
                user.id,
                expected=dto.refresh_token,
                new_token=new_refresh,
                new_expires_at=now + self.cfg.refresh_expires,
                now=now,
            )
            if not swapped:
                logger.info("auth.refresh.lost_race", extra={"user_id": user.id})
                return AuthResult.fail(ErrorKind.UNAUTHORIZED, MSG_BAD_REFRESH_TOKEN)

            access = self.tokens.issue_access_token(
                user_id=user.id,
                email=user.email,
                roles=user.role_names,
                expires_delta=self.cfg.access_expires,
            )
            result = AuthResult.ok(
                "Token refreshed successfully.",
                token=access,
                refresh_token=new_refresh,
                token_expiration=self.cfg.access_token_expires_at(now),
                user=UserOut.from_model(user),
            )

        logger.info("auth.refresh.succeeded", extra={"user_id": result.user.id})
        return result

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, user_id: str) -> bool:
        """
        Drop the stored refresh token. Outstanding access tokens stay valid
        until they expire.

        :returns: ``False`` when the account does not exist.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                return False
            uow.users.clear_refresh_token(user)

        logger.info("auth.logout", extra={"user_id": user_id})
        return True

    # ------------------------------------------------------------------ #
    # Password lifecycle
    # ------------------------------------------------------------------ #

    def change_password(self, dto: ChangePasswordIn) -> AuthResult:
        """
        Replace the password after verifying the current one. Also ends the
        refresh session and revokes pending reset tokens.
        """
        with self.rw_uow() as uow:
            user = uow.users.get(dto.user_id)
            if user is None:
                return AuthResult.fail(ErrorKind.NOT_FOUND, MSG_USER_NOT_FOUND)
            if not user.verify_password(dto.current_password):
                return AuthResult.fail(ErrorKind.VALIDATION, MSG_WRONG_PASSWORD)
            failure = self._policy_failure(dto.new_password)
            if failure is not None:
                return failure

            uow.users.update_password(user, dto.new_password)
            uow.users.clear_refresh_token(user)

        self.reset_store.revoke_all(dto.user_id)
        logger.info("auth.password.changed", extra={"user_id": dto.user_id})
        return AuthResult.ok("Password changed successfully.")

    def forgot_password(self, email: str) -> AuthResult:
        """
        Issue a reset token for an active account and hand it to the delivery
        hook. The result is identical whether or not the email is known.
        """
        issued: tuple[str, str] | None = None
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            if user is not None and user.is_active:
                token = self.reset_store.new_token()
                self.reset_store.save(
                    token=token,
                    user_id=user.id,
                    expires_at=self.now_utc() + self.cfg.reset_expires,
                )
                issued = (user.email, token)

        if issued is not None:
            self.on_reset_token(*issued)
        return AuthResult.ok(MSG_RESET_REQUESTED)

    def reset_password(self, dto: ResetPasswordIn) -> AuthResult:
        """
        Set a new password using a token from :meth:`forgot_password`.

        The token must be live and bound to the account owning ``dto.email``;
        on success every reset token of the account is revoked and the refresh
        session is ended.
        """
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            bound_user_id = self.reset_store.lookup(dto.token) if dto.token else None
            if user is None or bound_user_id is None or bound_user_id != user.id:
                return AuthResult.fail(ErrorKind.VALIDATION, MSG_BAD_RESET_TOKEN)

            failure = self._policy_failure(dto.new_password)
            if failure is not None:
                return failure

            if not self.reset_store.consume(dto.token):
                return AuthResult.fail(ErrorKind.VALIDATION, MSG_BAD_RESET_TOKEN)

            uow.users.update_password(user, dto.new_password)
            uow.users.clear_refresh_token(user)
            user_id = user.id

        self.reset_store.revoke_all(user_id)
        logger.info("auth.password.reset", extra={"user_id": user_id})
        return AuthResult.ok("Password reset successfully.")
