"""
Credential store: users and refresh-token records.

The auth flow only talks to the CredentialStore protocol. SqlAlchemyCredentialStore
is the production implementation over an AsyncSession; any SQLAlchemy error is
re-raised as StoreFailure so callers never confuse an outage with bad credentials.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from authapi.core.exceptions import StoreFailure
from authapi.models.refresh_token import RefreshToken
from authapi.models.user import User

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    async def find_user_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup by email."""
        ...

    async def find_active_refresh_token_by_hash(self, token_hash: str, now: datetime) -> RefreshToken | None:
        """Return the active record for this digest with its user loaded, or None."""
        ...

    async def insert_refresh_token(self, record: RefreshToken) -> None:
        ...

    async def mark_refresh_token_revoked(self, token_id: str, revoked_at: datetime) -> bool:
        """Revoke only if still unrevoked. False means someone else got there first."""
        ...

    async def commit(self) -> None:
        """Make the unit of work durable; must succeed before tokens are handed out."""
        ...


class SqlAlchemyCredentialStore:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def find_user_by_email(self, email: str) -> User | None:
        try:
            r = await self._session.execute(
                select(User).where(func.lower(User.email) == email.strip().lower())
            )
            return r.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreFailure(f"User lookup failed: {type(e).__name__}") from e

    async def find_active_refresh_token_by_hash(self, token_hash: str, now: datetime) -> RefreshToken | None:
        try:
            r = await self._session.execute(
                select(RefreshToken)
                .options(selectinload(RefreshToken.user))
                .where(RefreshToken.token_hash == token_hash)
            )
            row = r.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreFailure(f"Refresh token lookup failed: {type(e).__name__}") from e
        # Activity is checked in Python: drivers disagree on tz-aware comparisons.
        if row is None or not row.is_active(now):
            return None
        return row

    async def insert_refresh_token(self, record: RefreshToken) -> None:
        try:
            self._session.add(record)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise StoreFailure(f"Refresh token insert failed: {type(e).__name__}") from e

    async def mark_refresh_token_revoked(self, token_id: str, revoked_at: datetime) -> bool:
        try:
            result = await self._session.execute(
                update(RefreshToken)
                .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
                .values(revoked_at=revoked_at)
                .execution_options(synchronize_session="fetch")
            )
        except SQLAlchemyError as e:
            raise StoreFailure(f"Refresh token revoke failed: {type(e).__name__}") from e
        if result.rowcount != 1:
            logger.warning("Refresh token %s was already revoked (concurrent redemption)", token_id)
            return False
        return True

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            raise StoreFailure(f"Commit failed: {type(e).__name__}") from e
