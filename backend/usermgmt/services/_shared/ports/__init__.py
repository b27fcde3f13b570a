"""
usermgmt.services._shared.ports
===============================

Ports (hexagonal interfaces) the services depend on, plus in-memory
implementations used by tests and single-process deployments.

- :mod:`token_issuer`: :class:`~.TokenIssuer` mints and inspects tokens.
- :mod:`password_reset_store`: :class:`~.PasswordResetTokenStore` keeps
  single-use password reset tokens.

Concrete adapters live under ``usermgmt.infra``.
"""

from __future__ import annotations

from .password_reset_store import (
    InMemoryPasswordResetTokenStore,
    PasswordResetTokenStore,
    token_digest,
)
from .token_issuer import ACCESS_TOKEN_TYPE, StubTokenIssuer, TokenIssuer, new_refresh_token

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "InMemoryPasswordResetTokenStore",
    "PasswordResetTokenStore",
    "StubTokenIssuer",
    "TokenIssuer",
    "new_refresh_token",
    "token_digest",
]
