#!/usr/bin/env python3
"""Create (or update the password/roles of) a user; there is no self-registration endpoint.
Usage: EMAIL=alice@example.com PASSWORD=secret ROLES=User,Admin python scripts/create_user.py"""
import asyncio
import os

from sqlalchemy import func, select

from authapi.core.auth import hash_password
from authapi.db.session import async_session_maker, init_db
from authapi.models import User
from authapi.models.user import parse_roles

EMAIL = os.environ.get("EMAIL", "").strip().lower()
PASSWORD = os.environ.get("PASSWORD", "")
ROLES = os.environ.get("ROLES", "User")


async def main():
    if not EMAIL or not PASSWORD:
        print("Set EMAIL and PASSWORD in environment")
        return
    roles = ",".join(parse_roles(ROLES)) or "User"
    await init_db()
    async with async_session_maker() as session:
        r = await session.execute(select(User).where(func.lower(User.email) == EMAIL))
        user = r.scalar_one_or_none()
        if user is None:
            user = User(email=EMAIL, password_hash=hash_password(PASSWORD), roles=roles)
            session.add(user)
            action = "Created"
        else:
            user.password_hash = hash_password(PASSWORD)
            user.roles = roles
            action = "Updated"
        await session.commit()
        print(f"{action} user {user.id} <{user.email}> roles={roles}")


if __name__ == "__main__":
    asyncio.run(main())
