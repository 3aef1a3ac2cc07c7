"""Health check: one database connectivity check."""

import logging
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str  # "ok" or "unhealthy"
    timestamp: datetime
    database: str  # "connected" or "disconnected"
    version: str


def get_api_version() -> str:
    try:
        return version("authapi")
    except PackageNotFoundError:
        return "1.0.0"


async def check_database(session: AsyncSession) -> str:
    try:
        await session.execute(text("SELECT 1"))
        return "connected"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database health check failed: %s", e)
        return "disconnected"


async def check_health(session: AsyncSession) -> HealthResponse:
    database = await check_database(session)
    status = "ok" if database == "connected" else "unhealthy"
    logger.info("Health check completed. Status: %s, Database: %s", status, database)
    return HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc),
        database=database,
        version=get_api_version(),
    )
