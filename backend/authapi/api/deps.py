"""FastAPI dependencies: credential store, auth service, current user from JWT."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from jose import ExpiredSignatureError, JWTError
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from authapi.core.auth import decode_access_token
from authapi.db.session import get_db
from authapi.services.auth_service import AuthService
from authapi.services.credential_store import CredentialStore, SqlAlchemyCredentialStore


class CurrentUser(BaseModel):
    user_id: str
    email: str | None = None
    roles: list[str] = []


def get_credential_store(
    session: Annotated[AsyncSession, Depends(get_db)],
) -> CredentialStore:
    return SqlAlchemyCredentialStore(session)


def get_auth_service(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> AuthService:
    return AuthService(store)


async def get_current_user(request: Request) -> CurrentUser:
    """Identity from a verified bearer access token; no database round trip."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    token = auth_header[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated", headers={"WWW-Authenticate": "Bearer"})
    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=401,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer", "X-Token-Expired": "true"},
        )
    except JWTError:
        raise HTTPException(
            status_code=401,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    roles = payload.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    return CurrentUser(user_id=payload["sub"], email=payload.get("email"), roles=roles)


def require_roles(*roles: str):
    """Dependency factory: 403 unless the current user carries at least one of `roles`."""

    async def _require(user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
        if roles and not any(r in user.roles for r in roles):
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return _require
