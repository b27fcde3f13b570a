from __future__ import annotations

import hashlib
import secrets
import threading
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


def token_digest(token: str) -> str:
    """Key under which a reset token is stored (SHA-256 hex)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class PasswordResetTokenStore(Protocol):
    """
    Port for single-use, expiring password reset tokens.

    A user has at most one live token: saving a new one supersedes the
    previous token for the same user.
    """

    def new_token(self) -> str:
        """Generate a new random reset token."""
        return secrets.token_urlsafe(32)

    def save(self, *, token: str, user_id: str, expires_at: datetime) -> None:
        """Bind ``token`` to ``user_id`` until ``expires_at``."""

    def lookup(self, token: str) -> str | None:
        """Return the bound user id, or ``None`` when unknown or expired."""

    def consume(self, token: str) -> bool:
        """
        Invalidate ``token``.

        :returns: ``True`` if this call removed a live token.
        """

    def revoke_all(self, user_id: str) -> None:
        """Invalidate every outstanding token of ``user_id``."""


@dataclass(frozen=True, slots=True)
class _Entry:
    user_id: str
    expires_at: datetime


class InMemoryPasswordResetTokenStore(PasswordResetTokenStore):
    """
    Process-local store.

    Entries are indexed by digest and by user, so the store never holds more
    than one entry per user. Expired entries are purged on every save.

    .. note::
       Guarded by a lock; entries are not shared across workers.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._by_user: dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def __len__(self) -> int:
        return len(self._entries)

    def _drop(self, digest: str) -> _Entry | None:
        entry = self._entries.pop(digest, None)
        if entry is not None and self._by_user.get(entry.user_id) == digest:
            del self._by_user[entry.user_id]
        return entry

    def _purge_expired(self) -> None:
        now = self._now()
        for digest in [d for d, e in self._entries.items() if e.expires_at <= now]:
            self._drop(digest)

    def save(self, *, token: str, user_id: str, expires_at: datetime) -> None:
        digest = token_digest(token)
        with self._lock:
            self._purge_expired()
            previous = self._by_user.get(user_id)
            if previous is not None:
                self._drop(previous)
            self._entries[digest] = _Entry(user_id=user_id, expires_at=expires_at)
            self._by_user[user_id] = digest

    def lookup(self, token: str) -> str | None:
        digest = token_digest(token)
        with self._lock:
            entry = self._entries.get(digest)
            if entry is None:
                return None
            if entry.expires_at <= self._now():
                self._drop(digest)
                return None
            return entry.user_id

    def consume(self, token: str) -> bool:
        with self._lock:
            entry = self._drop(token_digest(token))
            return entry is not None and entry.expires_at > self._now()

    def revoke_all(self, user_id: str) -> None:
        with self._lock:
            digest = self._by_user.get(user_id)
            if digest is not None:
                self._drop(digest)
