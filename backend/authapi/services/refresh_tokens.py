"""Opaque refresh tokens: generation, hashing and single-use rotation."""

from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from authapi.models.refresh_token import RefreshToken
from authapi.models.user import User
from authapi.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 64


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_refresh_token() -> str:
    """64 random bytes, URL-safe base64 (cookie and header safe)."""
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def hash_refresh_token(token: str) -> str:
    """SHA256 hex digest of refresh token; this is what gets stored and looked up."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class RefreshTokenManager:
    """
    Issues refresh tokens and redeems them with strict rotation.

    A redeemed token is revoked and replaced by a new one for the same user.
    Unknown, expired, already-used and orphaned tokens all redeem to None.
    """

    def __init__(
        self,
        store: CredentialStore,
        *,
        ttl_days: int,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_refresh_token,
    ):
        self._store = store
        self._ttl = timedelta(days=ttl_days)
        self._clock = clock
        self._token_factory = token_factory

    async def issue(self, user_id: str) -> tuple[str, RefreshToken]:
        """Create and persist a new record; return (raw secret, record)."""
        now = self._clock()
        secret = self._token_factory()
        record = RefreshToken(
            id=str(uuid.uuid4()),
            user_id=user_id,
            token_hash=hash_refresh_token(secret),
            created_at=now,
            expires_at=now + self._ttl,
        )
        await self._store.insert_refresh_token(record)
        return secret, record

    async def redeem(self, secret: str) -> tuple[User, str] | None:
        """Consume `secret` and return (owning user, new secret), or None if it is not redeemable."""
        now = self._clock()
        record = await self._store.find_active_refresh_token_by_hash(hash_refresh_token(secret), now)
        if record is None or record.user is None or not record.is_active(now):
            return None
        if not await self._store.mark_refresh_token_revoked(record.id, now):
            return None
        new_secret, _ = await self.issue(record.user_id)
        logger.debug("Rotated refresh token %s for user %s", record.id, record.user_id)
        return record.user, new_secret
