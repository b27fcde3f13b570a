"""
Unit tests for AuthService: sessions, refresh rotation and password flows.
"""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest
from flask_jwt_extended import decode_token
from freezegun import freeze_time

from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from usermgmt.infra.jwt.flask_jwt_token_issuer import JWTTokenIssuer
from usermgmt.models import User
from usermgmt.models.base import utcnow
from usermgmt.services._shared.policies.password import PasswordPolicy
from usermgmt.services._shared.ports import InMemoryPasswordResetTokenStore, StubTokenIssuer
from usermgmt.services.auth.dto import (
    AuthTokenConfig,
    ChangePasswordIn,
    ErrorKind,
    LoginIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
)
from usermgmt.services.auth.service import (
    MSG_BAD_ACCESS_TOKEN,
    MSG_BAD_CLAIMS,
    MSG_BAD_CREDENTIALS,
    MSG_BAD_REFRESH_TOKEN,
    MSG_BAD_RESET_TOKEN,
    MSG_EMAIL_TAKEN,
    MSG_RESET_REQUESTED,
    MSG_USER_NOT_FOUND,
    MSG_WRONG_PASSWORD,
    AuthService,
)

NEW_PASSWORD = "N3wPassw0rd!"


@pytest.fixture()
def reset_tokens() -> InMemoryPasswordResetTokenStore:
    return InMemoryPasswordResetTokenStore()


@pytest.fixture()
def delivered() -> list[tuple[str, str]]:
    """Collects ``(email, token)`` pairs handed to the delivery hook."""
    return []


@pytest.fixture()
def service(app, reset_tokens, delivered) -> AuthService:
    return AuthService(
        token_issuer=JWTTokenIssuer(),
        reset_store=reset_tokens,
        token_cfg=AuthTokenConfig.from_config(app.config),
        password_policy=PasswordPolicy(),
        on_reset_token=lambda email, token: delivered.append((email, token)),
    )


def _register(service: AuthService, email: str = "a@x.com"):
    return service.register(
        RegisterIn(email=email, password="Passw0rd!", first_name="Ada", last_name="Lovelace")
    )


def _expired_access_token(user: User) -> str:
    return JWTTokenIssuer().issue_access_token(
        user_id=user.id,
        email=user.email,
        roles=user.role_names,
        expires_delta=timedelta(seconds=-30),
    )


class TestRegister:
    def test_register_opens_a_session(self, service, session):
        before = utcnow()

        result = _register(service)

        assert result.success
        assert result.message == "Registration successful."
        assert result.token and result.refresh_token
        assert result.user.email == "a@x.com"
        assert result.user.roles == ("User",)
        assert result.user.is_active
        assert before + timedelta(minutes=15) <= result.token_expiration
        assert result.token_expiration <= utcnow() + timedelta(minutes=15)

        stored = session.get(User, result.user.id)
        assert stored.verify_password("Passw0rd!")
        assert stored.refresh_token == result.refresh_token

    def test_access_token_carries_identity_claims(self, service):
        result = _register(service)

        claims = decode_token(result.token)

        assert claims["sub"] == result.user.id
        assert claims["email"] == "a@x.com"
        assert claims["roles"] == ["User"]
        assert claims["iss"] == "usermgmt-tests"
        assert claims["type"] == "access"

    def test_duplicate_email_is_a_conflict(self, service):
        UserFactory(email="taken@example.com")

        result = _register(service, email="TAKEN@example.com")

        assert not result.success
        assert result.error is ErrorKind.CONFLICT
        assert result.message == MSG_EMAIL_TAKEN
        assert result.token is None

    def test_weak_password_lists_every_violation(self, service, session):
        result = service.register(
            RegisterIn(email="weak@example.com", password="abc", first_name="W", last_name="K")
        )

        assert result.error is ErrorKind.VALIDATION
        assert len(result.errors) == 4
        assert result.message == ", ".join(result.errors)
        assert session.query(User).filter_by(email="weak@example.com").count() == 0

    def test_blank_names_are_rejected_after_trimming(self, service, session):
        result = service.register(
            RegisterIn(
                email="blank@example.com", password="Passw0rd!", first_name="   ", last_name="K"
            )
        )

        assert result.error is ErrorKind.VALIDATION
        assert result.message == "First name is required."
        assert session.query(User).filter_by(email="blank@example.com").count() == 0


class TestLogin:
    def test_login_rotates_refresh_token_and_stamps_last_login(self, service, session):
        user = UserFactory(with_refresh_token=True)
        previous = user.refresh_token

        result = service.login(LoginIn(email=user.email.upper(), password=DEFAULT_PASSWORD))

        assert result.success
        assert result.message == "Login successful."
        assert result.refresh_token != previous
        assert result.user.last_login_at is not None
        stored = session.get(User, user.id)
        assert stored.refresh_token == result.refresh_token
        assert stored.last_login_at is not None

    @pytest.mark.parametrize("case", ["unknown", "wrong_password", "inactive"])
    def test_failures_share_one_message(self, service, case):
        user = UserFactory(is_active=case != "inactive")
        email = "ghost@example.com" if case == "unknown" else user.email
        password = "Wr0ng!pass" if case == "wrong_password" else DEFAULT_PASSWORD

        result = service.login(LoginIn(email=email, password=password))

        assert not result.success
        assert result.error is ErrorKind.UNAUTHORIZED
        assert result.message == MSG_BAD_CREDENTIALS


class TestRefresh:
    def test_expired_access_token_and_current_refresh_token_rotate(self, service, session):
        user = UserFactory(with_refresh_token=True)
        old_refresh = user.refresh_token

        result = service.refresh(
            RefreshIn(access_token=_expired_access_token(user), refresh_token=old_refresh)
        )

        assert result.success
        assert result.message == "Token refreshed successfully."
        assert result.refresh_token != old_refresh
        assert decode_token(result.token)["sub"] == user.id
        assert session.get(User, user.id).refresh_token == result.refresh_token

    def test_refresh_token_is_single_use(self, service):
        registered = _register(service)
        dto = RefreshIn(access_token=registered.token, refresh_token=registered.refresh_token)

        first = service.refresh(dto)
        second = service.refresh(dto)

        assert first.success
        assert not second.success
        assert second.message == MSG_BAD_REFRESH_TOKEN

    def test_rotated_pair_can_refresh_again(self, service):
        registered = _register(service)
        first = service.refresh(
            RefreshIn(access_token=registered.token, refresh_token=registered.refresh_token)
        )

        second = service.refresh(
            RefreshIn(access_token=first.token, refresh_token=first.refresh_token)
        )

        assert second.success

    def test_stale_refresh_token_after_new_login(self, service):
        registered = _register(service)
        service.login(LoginIn(email="a@x.com", password="Passw0rd!"))

        result = service.refresh(
            RefreshIn(access_token=registered.token, refresh_token=registered.refresh_token)
        )

        assert result.error is ErrorKind.UNAUTHORIZED
        assert result.message == MSG_BAD_REFRESH_TOKEN

    def test_expired_refresh_token(self, service):
        user = UserFactory(
            refresh_token="expired-refresh",
            refresh_token_expires_at=utcnow() - timedelta(minutes=1),
        )

        result = service.refresh(
            RefreshIn(access_token=_expired_access_token(user), refresh_token="expired-refresh")
        )

        assert result.message == MSG_BAD_REFRESH_TOKEN

    def test_inactive_account_cannot_refresh(self, service):
        user = UserFactory(with_refresh_token=True, is_active=False)

        result = service.refresh(
            RefreshIn(access_token=_expired_access_token(user), refresh_token=user.refresh_token)
        )

        assert result.message == MSG_BAD_REFRESH_TOKEN

    @pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
    def test_malformed_access_token(self, service, token):
        result = service.refresh(RefreshIn(access_token=token, refresh_token="whatever"))

        assert result.error is ErrorKind.UNAUTHORIZED
        assert result.message == MSG_BAD_ACCESS_TOKEN

    def test_forged_access_token(self, service, app):
        user = UserFactory(with_refresh_token=True)
        forged = jwt.encode(
            {
                "sub": user.id,
                "type": "access",
                "iss": app.config["JWT_ISSUER"],
                "aud": app.config["JWT_AUDIENCE"],
            },
            "some-other-signing-key-that-is-long-enough-too",
            algorithm="HS256",
        )

        result = service.refresh(RefreshIn(access_token=forged, refresh_token=user.refresh_token))

        assert result.message == MSG_BAD_ACCESS_TOKEN

    def test_claims_without_subject(self, app, reset_tokens):
        issuer = StubTokenIssuer()
        issuer.register_claims("no-sub", {"type": "access", "email": "a@x.com"})
        service = AuthService(token_issuer=issuer, reset_store=reset_tokens)

        result = service.refresh(RefreshIn(access_token="no-sub", refresh_token="r"))

        assert result.error is ErrorKind.UNAUTHORIZED
        assert result.message == MSG_BAD_CLAIMS

    def test_works_with_stub_issuer(self, app, reset_tokens):
        service = AuthService(token_issuer=StubTokenIssuer(), reset_store=reset_tokens)
        registered = _register(service, email="stub@example.com")

        result = service.refresh(
            RefreshIn(access_token=registered.token, refresh_token=registered.refresh_token)
        )

        assert result.success
        assert result.token.startswith(f"access.{registered.user.id}.")


class TestLogout:
    def test_logout_revokes_refresh(self, service, session):
        registered = _register(service)

        assert service.logout(registered.user.id) is True
        assert session.get(User, registered.user.id).refresh_token is None

        result = service.refresh(
            RefreshIn(access_token=registered.token, refresh_token=registered.refresh_token)
        )
        assert result.message == MSG_BAD_REFRESH_TOKEN

    def test_logout_unknown_user(self, service):
        assert service.logout("0" * 32) is False


class TestChangePassword:
    def test_change_password_replaces_hash_and_ends_session(self, service, session):
        user = UserFactory(with_refresh_token=True)

        result = service.change_password(
            ChangePasswordIn(
                user_id=user.id, current_password=DEFAULT_PASSWORD, new_password=NEW_PASSWORD
            )
        )

        assert result.success
        assert result.message == "Password changed successfully."
        stored = session.get(User, user.id)
        assert stored.verify_password(NEW_PASSWORD)
        assert stored.refresh_token is None
        assert service.login(LoginIn(email=user.email, password=NEW_PASSWORD)).success

    def test_wrong_current_password(self, service, session):
        user = UserFactory()

        result = service.change_password(
            ChangePasswordIn(user_id=user.id, current_password="nope", new_password=NEW_PASSWORD)
        )

        assert result.error is ErrorKind.VALIDATION
        assert result.message == MSG_WRONG_PASSWORD
        assert session.get(User, user.id).verify_password(DEFAULT_PASSWORD)

    def test_unknown_user(self, service):
        result = service.change_password(
            ChangePasswordIn(user_id="0" * 32, current_password="x", new_password=NEW_PASSWORD)
        )

        assert result.error is ErrorKind.NOT_FOUND
        assert result.message == MSG_USER_NOT_FOUND

    def test_weak_new_password(self, service):
        user = UserFactory()

        result = service.change_password(
            ChangePasswordIn(user_id=user.id, current_password=DEFAULT_PASSWORD, new_password="short")
        )

        assert result.error is ErrorKind.VALIDATION
        assert "Passwords must be at least 6 characters." in result.errors


class TestPasswordReset:
    def test_forgot_password_is_indistinguishable(self, service, delivered):
        user = UserFactory()
        inactive = UserFactory(is_active=False)

        known = service.forgot_password(user.email)
        unknown = service.forgot_password("ghost@example.com")
        disabled = service.forgot_password(inactive.email)

        assert known.success and unknown.success and disabled.success
        assert known.message == unknown.message == disabled.message == MSG_RESET_REQUESTED
        assert [email for email, _ in delivered] == [user.email]

    def test_reset_with_delivered_token(self, service, delivered, session):
        user = UserFactory(with_refresh_token=True)
        service.forgot_password(user.email)
        _, token = delivered[0]

        result = service.reset_password(
            ResetPasswordIn(email=user.email, token=token, new_password=NEW_PASSWORD)
        )

        assert result.success
        assert result.message == "Password reset successfully."
        stored = session.get(User, user.id)
        assert stored.verify_password(NEW_PASSWORD)
        assert stored.refresh_token is None

    def test_token_is_single_use(self, service, delivered):
        user = UserFactory()
        service.forgot_password(user.email)
        _, token = delivered[0]
        dto = ResetPasswordIn(email=user.email, token=token, new_password=NEW_PASSWORD)

        assert service.reset_password(dto).success
        second = service.reset_password(dto)

        assert second.error is ErrorKind.VALIDATION
        assert second.message == MSG_BAD_RESET_TOKEN

    def test_token_is_bound_to_its_account(self, service, delivered):
        owner = UserFactory()
        other = UserFactory()
        service.forgot_password(owner.email)
        _, token = delivered[0]

        result = service.reset_password(
            ResetPasswordIn(email=other.email, token=token, new_password=NEW_PASSWORD)
        )

        assert result.message == MSG_BAD_RESET_TOKEN

    def test_unknown_token(self, service):
        user = UserFactory()

        result = service.reset_password(
            ResetPasswordIn(email=user.email, token="made-up", new_password=NEW_PASSWORD)
        )

        assert result.message == MSG_BAD_RESET_TOKEN

    def test_weak_password_keeps_token_usable(self, service, delivered):
        user = UserFactory()
        service.forgot_password(user.email)
        _, token = delivered[0]

        weak = service.reset_password(
            ResetPasswordIn(email=user.email, token=token, new_password="weak")
        )
        strong = service.reset_password(
            ResetPasswordIn(email=user.email, token=token, new_password=NEW_PASSWORD)
        )

        assert weak.error is ErrorKind.VALIDATION
        assert strong.success

    def test_expired_token(self, service, delivered):
        user = UserFactory()

        with freeze_time(utcnow()) as frozen:
            service.forgot_password(user.email)
            _, token = delivered[0]
            frozen.tick(timedelta(hours=1, seconds=1))

            result = service.reset_password(
                ResetPasswordIn(email=user.email, token=token, new_password=NEW_PASSWORD)
            )

        assert result.message == MSG_BAD_RESET_TOKEN

    def test_newer_request_supersedes_older_token(self, service, delivered):
        user = UserFactory()
        service.forgot_password(user.email)
        service.forgot_password(user.email)
        (_, older), (_, newer) = delivered

        assert service.reset_password(
            ResetPasswordIn(email=user.email, token=newer, new_password=NEW_PASSWORD)
        ).success
        replay = service.reset_password(
            ResetPasswordIn(email=user.email, token=older, new_password="An0ther!pass")
        )

        assert replay.message == MSG_BAD_RESET_TOKEN

    def test_change_password_revokes_pending_token(self, service, delivered, session):
        user = UserFactory()
        service.forgot_password(user.email)
        _, token = delivered[0]

        assert service.change_password(
            ChangePasswordIn(
                user_id=user.id, current_password=DEFAULT_PASSWORD, new_password=NEW_PASSWORD
            )
        ).success
        result = service.reset_password(
            ResetPasswordIn(email=user.email, token=token, new_password="An0ther!pass")
        )

        assert result.message == MSG_BAD_RESET_TOKEN
        assert session.get(User, user.id).verify_password(NEW_PASSWORD)


class TestSessionScenario:
    def test_register_login_refresh_logout(self, service, session):
        registered = _register(service)
        assert registered.success
        assert registered.user.roles == ("User",)

        login = service.login(LoginIn(email="a@x.com", password="Passw0rd!"))
        assert login.success
        assert login.refresh_token != registered.refresh_token

        stored = session.get(User, login.user.id)
        stale_access = _expired_access_token(stored)
        refreshed = service.refresh(
            RefreshIn(access_token=stale_access, refresh_token=login.refresh_token)
        )
        assert refreshed.success
        assert refreshed.refresh_token != login.refresh_token
        replay = service.refresh(
            RefreshIn(access_token=stale_access, refresh_token=login.refresh_token)
        )
        assert replay.error is ErrorKind.UNAUTHORIZED

        assert service.logout(login.user.id)
        after_logout = service.refresh(
            RefreshIn(access_token=refreshed.token, refresh_token=refreshed.refresh_token)
        )
        assert after_logout.error is ErrorKind.UNAUTHORIZED
        assert after_logout.message == MSG_BAD_REFRESH_TOKEN
