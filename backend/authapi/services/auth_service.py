"""Login and refresh: the externally visible auth contract."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from datetime import datetime
from functools import lru_cache

from pydantic import BaseModel

from authapi.config import Settings, settings as default_settings
from authapi.core.auth import create_access_token, hash_password, verify_password
from authapi.core.exceptions import AuthenticationFailure
from authapi.models.user import User
from authapi.services.credential_store import CredentialStore
from authapi.services.refresh_tokens import RefreshTokenManager, generate_refresh_token, utc_now

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


class AuthResult(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int  # seconds until access token expires
    token_type: str = TOKEN_TYPE


class AuthService:
    def __init__(
        self,
        store: CredentialStore,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_refresh_token,
    ):
        self._store = store
        self._settings = settings or default_settings
        self._clock = clock
        self._refresh_tokens = RefreshTokenManager(
            store,
            ttl_days=self._settings.refresh_token_expire_days,
            clock=clock,
            token_factory=token_factory,
        )

    def _mint_access_token(self, user: User) -> str:
        s = self._settings
        return create_access_token(
            user.id,
            user.email,
            user.role_list,
            issuer=s.jwt_issuer,
            audience=s.jwt_audience,
            secret=s.jwt_secret,
            ttl_minutes=s.access_token_expire_minutes,
            now=self._clock(),
        )

    def _result(self, access_token: str, refresh_token: str) -> AuthResult:
        return AuthResult(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._settings.access_token_expire_seconds,
        )

    async def login(self, email: str | None, password: str | None) -> AuthResult:
        """Verify email/password and issue an access + refresh token pair."""
        if not email or not password:
            raise AuthenticationFailure()
        normalized = email.strip().lower()
        if not normalized:
            raise AuthenticationFailure()
        user = await self._store.find_user_by_email(normalized)
        if user is None:
            # Same bcrypt cost as a real mismatch so unknown emails are not faster.
            verify_password(password, _dummy_password_hash())
            raise AuthenticationFailure()
        if not verify_password(password, user.password_hash):
            raise AuthenticationFailure()
        access_token = self._mint_access_token(user)
        refresh_token, _ = await self._refresh_tokens.issue(user.id)
        await self._store.commit()
        logger.info("User %s logged in successfully", user.email)
        return self._result(access_token, refresh_token)

    async def refresh(self, refresh_token: str | None) -> AuthResult:
        """Exchange a refresh token for a new pair (rotation); the presented token is spent."""
        if not refresh_token or not refresh_token.strip():
            raise AuthenticationFailure()
        redeemed = await self._refresh_tokens.redeem(refresh_token.strip())
        if redeemed is None:
            raise AuthenticationFailure()
        user, new_refresh_token = redeemed
        await self._store.commit()
        access_token = self._mint_access_token(user)
        logger.info("Token refreshed successfully for %s", user.email)
        return self._result(access_token, new_refresh_token)
