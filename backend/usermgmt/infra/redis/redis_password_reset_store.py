from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]

from usermgmt.services._shared.ports import PasswordResetTokenStore, token_digest


@dataclass(slots=True)
class RedisPasswordResetTokenStore(PasswordResetTokenStore):
    """
    Redis-backed reset token store; expiry is delegated to key TTLs.

    Layout: ``<prefix>:<digest>`` holds the user id and ``<prefix>:u:<user_id>``
    holds the digest of that user's live token. Both share the same TTL.

    :param r: A Redis client (already connected).
    :param prefix: Key namespace.
    """

    r: redis.Redis
    prefix: str = "pwreset"

    def _k(self, token: str) -> str:
        return self._kd(token_digest(token))

    def _kd(self, digest: str) -> str:
        return f"{self.prefix}:{digest}"

    def _ku(self, user_id: str) -> str:
        return f"{self.prefix}:u:{user_id}"

    @staticmethod
    def _s(raw: bytes | str) -> str:
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

    def save(self, *, token: str, user_id: str, expires_at: datetime) -> None:
        ttl = max(1, int((expires_at - datetime.now(UTC)).total_seconds()))
        digest = token_digest(token)
        key_u = self._ku(user_id)

        previous = self.r.get(key_u)
        pipe = self.r.pipeline(transaction=True)
        if previous is not None:
            pipe.delete(self._kd(self._s(previous)))
        pipe.set(self._kd(digest), user_id, ex=ttl)
        pipe.set(key_u, digest, ex=ttl)
        pipe.execute()

    def lookup(self, token: str) -> str | None:
        raw = self.r.get(self._k(token))
        if raw is None:
            return None
        return self._s(raw)

    def consume(self, token: str) -> bool:
        # DEL is atomic: only one concurrent caller sees 1
        return int(self.r.delete(self._k(token))) == 1

    def revoke_all(self, user_id: str) -> None:
        key_u = self._ku(user_id)
        digest = self.r.get(key_u)
        pipe = self.r.pipeline(transaction=True)
        if digest is not None:
            pipe.delete(self._kd(self._s(digest)))
        pipe.delete(key_u)
        pipe.execute()
