"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AuthResponseSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    MessageSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
)
from .common import MetaSchema, PaginationQuerySchema, build_meta
from .user import RolesSchema, UpdateUserSchema, UserSchema

__all__ = [
    "AuthResponseSchema",
    "ChangePasswordSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "MessageSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "ResetPasswordSchema",
    "MetaSchema",
    "PaginationQuerySchema",
    "build_meta",
    "RolesSchema",
    "UpdateUserSchema",
    "UserSchema",
]
