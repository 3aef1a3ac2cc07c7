"""Auth: login, refresh, me."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from authapi.api.deps import CurrentUser, get_auth_service, get_current_user
from authapi.config import settings
from authapi.core.exceptions import AuthenticationFailure
from authapi.core.rate_limit import auth_limit
from authapi.services.auth_service import AuthResult, AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


class LoginBody(BaseModel):
    email: str = ""
    password: str = ""


class RefreshBody(BaseModel):
    refresh_token: str | None = None


def _set_refresh_cookie(request: Request, response: Response, refresh_token: str) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        httponly=True,
        secure=request.url.scheme == "https",
        samesite="strict",
    )


@router.post(
    "/login",
    response_model=AuthResult,
    summary="Login with email and password",
    responses={
        401: {"description": "Invalid email or password"},
        429: {"description": "Too many attempts"},
        503: {"description": "Credential store unavailable"},
    },
)
@auth_limit
async def login(
    request: Request,
    response: Response,
    body: LoginBody,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResult:
    try:
        result = await service.login(body.email, body.password)
    except AuthenticationFailure:
        logger.warning("Failed login attempt for %s", body.email)
        raise
    _set_refresh_cookie(request, response, result.refresh_token)
    return result


@router.post(
    "/refresh",
    response_model=AuthResult,
    summary="Exchange refresh token for new access and refresh tokens",
    responses={
        401: {"description": "Refresh token required, invalid, expired or already used"},
        429: {"description": "Too many attempts"},
        503: {"description": "Credential store unavailable"},
    },
)
@auth_limit
async def refresh_tokens(
    request: Request,
    response: Response,
    service: Annotated[AuthService, Depends(get_auth_service)],
    body: RefreshBody | None = None,
) -> AuthResult:
    """Exchange refresh_token (body, else cookie) for a new pair; the old one is revoked."""
    presented = body.refresh_token if body and body.refresh_token and body.refresh_token.strip() else None
    if presented is None:
        presented = request.cookies.get(settings.refresh_cookie_name)
    try:
        result = await service.refresh(presented)
    except AuthenticationFailure:
        logger.warning("Invalid refresh token attempt")
        raise
    _set_refresh_cookie(request, response, result.refresh_token)
    return result


@router.get(
    "/me",
    response_model=CurrentUser,
    summary="Get current authenticated user",
    responses={
        401: {"description": "Not authenticated or invalid token"},
    },
)
async def me(user: Annotated[CurrentUser, Depends(get_current_user)]) -> CurrentUser:
    return user
