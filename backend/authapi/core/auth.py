"""Password hashing and access-token (JWT) creation/verification."""

import uuid
from collections.abc import Iterable
from datetime import datetime, timezone, timedelta
from typing import Any

import bcrypt
from jose import jwt

from authapi.config import settings
from authapi.core.exceptions import ConfigurationError

# Verification options: every registered claim we issue is mandatory, no clock skew allowed.
_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_aud": True,
    "verify_iss": True,
    "verify_exp": True,
    "verify_iat": True,
    "require_exp": True,
    "require_iat": True,
    "require_sub": True,
    "require_jti": True,
    "leeway": 0,
}


def hash_password(password: str) -> str:
    """Hash password with bcrypt. Bytes truncated to 72 (bcrypt limit); no passlib re-encoding."""
    pwd_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(pwd_bytes, bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify password with bcrypt. A malformed stored hash counts as a mismatch."""
    if not password_hash:
        return False
    plain_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(plain_bytes, password_hash.encode("utf-8"))
    except ValueError:
        return False


def _signing_secret(secret: str | None) -> str:
    key = settings.jwt_secret if secret is None else secret
    if not key or not key.strip():
        raise ConfigurationError("JWT secret is not configured")
    return key


def create_access_token(
    user_id: str,
    email: str,
    roles: Iterable[str],
    *,
    issuer: str | None = None,
    audience: str | None = None,
    secret: str | None = None,
    ttl_minutes: int | None = None,
    now: datetime | None = None,
) -> str:
    """
    Mint a signed access token.

    Claims: sub, email, jti, iat, roles (one entry per role), iss, aud and
    exp = iat + ttl. Unset arguments fall back to settings.
    """
    key = _signing_secret(secret)
    ttl = settings.access_token_expire_minutes if ttl_minutes is None else ttl_minutes
    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    expire = issued_at + timedelta(minutes=ttl)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "email": email,
        "jti": str(uuid.uuid4()),
        "iat": int(issued_at.timestamp()),
        "roles": list(roles),
        "iss": issuer or settings.jwt_issuer,
        "aud": audience or settings.jwt_audience,
        "exp": int(expire.timestamp()),
    }
    result = jwt.encode(payload, key, algorithm=settings.jwt_algorithm)
    return result if isinstance(result, str) else result.decode("utf-8")


def decode_access_token(
    token: str,
    *,
    secret: str | None = None,
    issuer: str | None = None,
    audience: str | None = None,
) -> dict[str, Any]:
    """Verify signature, issuer, audience and expiry; raises jose.JWTError on any mismatch."""
    return jwt.decode(
        token,
        _signing_secret(secret),
        algorithms=[settings.jwt_algorithm],
        audience=audience or settings.jwt_audience,
        issuer=issuer or settings.jwt_issuer,
        options=_DECODE_OPTIONS,
    )
