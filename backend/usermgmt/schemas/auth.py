"""Authentication request and response schemas (camelCase on the wire)."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .common import RequestSchema
from .user import UserSchema

_email = dict(required=True, validate=validate.Length(max=254))
_password = dict(required=True, validate=validate.Length(min=1, max=128))
_name = [validate.Length(max=100), validate.Regexp(r"\s*\S", error="Must not be blank.")]


class RegisterSchema(RequestSchema):
    """Input payload for account registration."""

    email = fields.Email(**_email)
    password = fields.String(**_password)
    first_name = fields.String(required=True, data_key="firstName", validate=_name)
    last_name = fields.String(required=True, data_key="lastName", validate=_name)
    phone_number = fields.String(
        load_default=None, allow_none=True, data_key="phoneNumber", validate=validate.Length(max=32)
    )


class LoginSchema(RequestSchema):
    email = fields.Email(**_email)
    password = fields.String(**_password)


class RefreshTokenSchema(RequestSchema):
    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")


class ChangePasswordSchema(RequestSchema):
    current_password = fields.String(data_key="currentPassword", **_password)
    new_password = fields.String(data_key="newPassword", **_password)


class ForgotPasswordSchema(RequestSchema):
    email = fields.Email(**_email)


class ResetPasswordSchema(RequestSchema):
    email = fields.Email(**_email)
    token = fields.String(required=True, validate=validate.Length(min=1, max=512))
    new_password = fields.String(data_key="newPassword", **_password)


class AuthResponseSchema(Schema):
    """Session payload returned by register, login and refresh."""

    success = fields.Boolean(required=True)
    message = fields.String(required=True)
    token = fields.String(allow_none=True)
    refresh_token = fields.String(allow_none=True, data_key="refreshToken")
    token_expiration = fields.DateTime(allow_none=True, data_key="tokenExpiration")
    user = fields.Nested(UserSchema, allow_none=True)
    errors = fields.List(fields.String())


class MessageSchema(Schema):
    """Plain ``{success, message, errors}`` acknowledgement."""

    success = fields.Boolean(required=True)
    message = fields.String(required=True)
    errors = fields.List(fields.String())
