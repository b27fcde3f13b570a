"""User-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .common import RequestSchema


class UserSchema(Schema):
    """Public account representation."""

    id = fields.String(required=True)
    email = fields.Email(required=True)
    first_name = fields.String(data_key="firstName")
    last_name = fields.String(data_key="lastName")
    phone_number = fields.String(allow_none=True, data_key="phoneNumber")
    created_at = fields.DateTime(allow_none=True, data_key="createdAt")
    last_login_at = fields.DateTime(allow_none=True, data_key="lastLoginAt")
    is_active = fields.Boolean(data_key="isActive")
    roles = fields.List(fields.String())


class UpdateUserSchema(RequestSchema):
    """Profile changes; omitted or blank fields are left untouched."""

    first_name = fields.String(
        load_default=None, allow_none=True, data_key="firstName", validate=validate.Length(max=100)
    )
    last_name = fields.String(
        load_default=None, allow_none=True, data_key="lastName", validate=validate.Length(max=100)
    )
    phone_number = fields.String(
        load_default=None, allow_none=True, data_key="phoneNumber", validate=validate.Length(max=32)
    )


class RolesSchema(Schema):
    user_id = fields.String(required=True, data_key="userId")
    roles = fields.List(fields.String(), required=True)
