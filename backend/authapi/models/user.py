from __future__ import annotations

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from authapi.db.base import Base


def parse_roles(roles: str | None) -> list[str]:
    """Split a comma-separated role string; blanks are dropped."""
    if not roles:
        return []
    return [r.strip() for r in roles.split(",") if r.strip()]


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(256), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # Comma-separated role names, e.g. "User,Admin"
    roles: Mapped[str] = mapped_column(String(512), nullable=False, default="User")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    refresh_tokens: Mapped[list["RefreshToken"]] = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def role_list(self) -> list[str]:
        return parse_roles(self.roles)
