"""Service layer public API.

Callers can import from :mod:`usermgmt.services` without knowing the
internal structure.

Re-exports
----------
- Base primitives: :class:`BaseService`, :class:`PaginationIn`
- Auth service: :class:`AuthService`, :class:`AuthResult`, :class:`ErrorKind`
  and the input DTOs
- User service: :class:`UserService`, :class:`UserOut`, :class:`UserUpdateIn`
"""

from __future__ import annotations

from usermgmt.services._shared.base import BaseService
from usermgmt.services._shared.dto import PaginationIn
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
from usermgmt.services.auth.service import AuthService
from usermgmt.services.users.dto import UserOut, UserUpdateIn
from usermgmt.services.users.service import UserService

__all__ = [
    "AuthResult",
    "AuthService",
    "AuthTokenConfig",
    "BaseService",
    "ChangePasswordIn",
    "ErrorKind",
    "LoginIn",
    "PaginationIn",
    "RefreshIn",
    "RegisterIn",
    "ResetPasswordIn",
    "UserOut",
    "UserService",
    "UserUpdateIn",
]
