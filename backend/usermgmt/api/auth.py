"""Authentication endpoints: sessions and password lifecycle."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint
from flask_jwt_extended import get_jwt_identity

from usermgmt.api.deps import build_auth_service, json_response, load_json, require_auth, timing
from usermgmt.schemas import (
    AuthResponseSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    MessageSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
)
from usermgmt.services.auth.dto import (
    AuthResult,
    ChangePasswordIn,
    LoginIn,
    RefreshIn,
    RegisterIn,
    ResetPasswordIn,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
change_password_schema = ChangePasswordSchema()
forgot_password_schema = ForgotPasswordSchema()
reset_password_schema = ResetPasswordSchema()
auth_response_schema = AuthResponseSchema()
message_schema = MessageSchema()


def _session_response(result: AuthResult, failure_status: int):
    status = HTTPStatus.OK if result.success else failure_status
    return json_response(auth_response_schema.dump(result), status=status)


def _message(success: bool, message: str, errors=(), *, status: int = HTTPStatus.OK):
    body = message_schema.dump({"success": success, "message": message, "errors": list(errors)})
    return json_response(body, status=status)


@bp.post("/register")
@timing
def register():
    """Create an account and return the first session pair."""
    data = load_json(register_schema)
    result = build_auth_service().register(RegisterIn(**data))
    return _session_response(result, HTTPStatus.BAD_REQUEST)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and return a new session pair."""
    data = load_json(login_schema)
    result = build_auth_service().login(LoginIn(**data))
    return _session_response(result, HTTPStatus.UNAUTHORIZED)


@bp.post("/refresh-token")
@timing
def refresh_token():
    """Rotate the session pair using the last access token and its refresh token."""
    data = load_json(refresh_schema)
    result = build_auth_service().refresh(RefreshIn(**data))
    return _session_response(result, HTTPStatus.UNAUTHORIZED)


@bp.post("/logout")
@require_auth
@timing
def logout():
    if not build_auth_service().logout(str(get_jwt_identity())):
        return _message(False, "Logout failed", status=HTTPStatus.BAD_REQUEST)
    return _message(True, "Logged out successfully")


@bp.post("/change-password")
@require_auth
@timing
def change_password():
    data = load_json(change_password_schema)
    result = build_auth_service().change_password(
        ChangePasswordIn(user_id=str(get_jwt_identity()), **data)
    )
    status = HTTPStatus.OK if result.success else HTTPStatus.BAD_REQUEST
    return _message(result.success, result.message, result.errors, status=status)


@bp.post("/forgot-password")
@timing
def forgot_password():
    """Always 200 so callers cannot probe which emails are registered."""
    data = load_json(forgot_password_schema)
    result = build_auth_service().forgot_password(data["email"])
    return _message(True, result.message)


@bp.post("/reset-password")
@timing
def reset_password():
    data = load_json(reset_password_schema)
    result = build_auth_service().reset_password(ResetPasswordIn(**data))
    if not result.success:
        return _message(
            False, "Password reset failed", result.errors, status=HTTPStatus.BAD_REQUEST
        )
    return _message(True, "Password reset successfully")
