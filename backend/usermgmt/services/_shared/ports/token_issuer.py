from __future__ import annotations

import secrets
from collections.abc import Sequence
from datetime import timedelta
from typing import Any, Protocol

ACCESS_TOKEN_TYPE = "access"


def new_refresh_token() -> str:
    """512 bits of randomness, URL-safe base64."""
    return secrets.token_urlsafe(64)


class TokenIssuer(Protocol):
    """Port for minting access tokens and opaque refresh tokens."""

    def issue_access_token(
        self,
        *,
        user_id: str,
        email: str,
        roles: Sequence[str],
        expires_delta: timedelta | None = None,
    ) -> str:
        """Signed access token carrying ``sub``, ``email`` and ``roles``."""

    def issue_refresh_token(self) -> str:
        """Fresh opaque refresh secret."""

    def extract_principal_from_expired_token(self, token: str) -> dict[str, Any] | None:
        """
        Validate everything but the expiry and return the claims.

        :returns: Claims, or ``None`` when the token is malformed, forged,
            issued for another audience/issuer or not an access token.
        """


class StubTokenIssuer(TokenIssuer):
    """Deterministic issuer used in unit tests; tokens are lookup keys."""

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def issue_access_token(
        self,
        *,
        user_id: str,
        email: str,
        roles: Sequence[str],
        expires_delta: timedelta | None = None,
    ) -> str:
        self._seq += 1
        token = f"access.{user_id}.{self._seq}"
        self._issued[token] = {
            "sub": user_id,
            "email": email,
            "roles": list(roles),
            "type": ACCESS_TOKEN_TYPE,
        }
        return token

    def issue_refresh_token(self) -> str:
        return new_refresh_token()

    def extract_principal_from_expired_token(self, token: str) -> dict[str, Any] | None:
        claims = self._issued.get(token)
        return dict(claims) if claims is not None else None

    def register_claims(self, token: str, claims: dict[str, Any]) -> None:
        """Make ``token`` decode to arbitrary ``claims`` (e.g. without ``sub``)."""
        self._issued[token] = dict(claims)
