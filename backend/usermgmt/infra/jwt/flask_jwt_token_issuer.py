from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt import InvalidTokenError

from usermgmt.services._shared.ports import ACCESS_TOKEN_TYPE, TokenIssuer, new_refresh_token


@dataclass(slots=True)
class JWTTokenIssuer(TokenIssuer):
    """
    Adapter for Flask-JWT-Extended.

    Signing key, algorithm, issuer, audience and default lifetime all come
    from the app config (see :func:`usermgmt.core.config.apply_jwt_settings`).

    .. note::
       Requires an active Flask app context.
    """

    def issue_access_token(
        self,
        *,
        user_id: str,
        email: str,
        roles: Sequence[str],
        expires_delta: timedelta | None = None,
    ) -> str:
        return cast(
            str,
            create_access_token(
                identity=str(user_id),
                additional_claims={"email": email, "roles": list(roles)},
                expires_delta=expires_delta,
            ),
        )

    def issue_refresh_token(self) -> str:
        return new_refresh_token()

    def extract_principal_from_expired_token(self, token: str) -> dict[str, Any] | None:
        if not token:
            return None
        try:
            # signature, iss and aud are still verified; only exp is skipped
            claims = cast(dict[str, Any], decode_token(token, allow_expired=True))
        except (InvalidTokenError, JWTExtendedException):
            return None
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            return None
        return claims
