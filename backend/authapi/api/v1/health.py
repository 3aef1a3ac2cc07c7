from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from authapi.core.rate_limit import limiter
from authapi.db.session import get_db
from authapi.services.health import HealthResponse, check_health

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Database connectivity check")
@limiter.exempt
async def health(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> HealthResponse:
    return await check_health(session)
