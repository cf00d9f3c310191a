"""
dependencies.py
---------------
FastAPI dependency injection functions for database access and authentication.

Flow:
  1. get_bearer_token pulls the token out of `Authorization: Bearer <token>`.
  2. get_identity_user has the IdentityProvider verify it (no DB round-trip).
  3. get_current_user maps the provider's subject id to the local User row.
     No row means the caller never finished sign-up: 404, no auto-provisioning.

The Database and IdentityProvider handles live on app.state and are built
once by create_application(); tests swap them by building their own app.
"""

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from promptdepot.core.config import Settings
from promptdepot.core.exceptions import AuthenticationError
from promptdepot.core.logging import get_logger
from promptdepot.core.security import IdentityProvider, IdentityUser
from promptdepot.models.user import User
from promptdepot.services.user_service import UserService

logger = get_logger(__name__)

_BEARER_PREFIX = "Bearer "


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Yields a request-scoped session: committed when the handler returns,
    rolled back on exceptions.

    Usage:
        @router.get("/example")
        async def handler(db: Annotated[AsyncSession, Depends(get_db)]):
            ...
    """
    async with request.app.state.db.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity


def get_bearer_token(request: Request) -> str:
    header = request.headers.get("Authorization")
    if not header or not header.startswith(_BEARER_PREFIX):
        logger.warning(
            "Rejected request without bearer token",
            path=request.url.path,
            auth_header_provided=header is not None,
        )
        raise AuthenticationError(
            "No or invalid Authorization Header format. Expected Bearer token."
        )

    token = header[len(_BEARER_PREFIX):].strip()
    if not token:
        raise AuthenticationError("No token provided in Authorization Header.")
    return token


def get_identity_user(
    request: Request,
    token: Annotated[str, Depends(get_bearer_token)],
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> IdentityUser:
    try:
        return identity.get_user(token)
    except AuthenticationError as exc:
        logger.warning("Token verification failed", path=request.url.path, error=exc.message)
        raise


async def get_current_user(
    identity_user: Annotated[IdentityUser, Depends(get_identity_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    user = await UserService.get_user_by_external_id(db, identity_user.id)
    if user is None:
        logger.warning("Authenticated identity has no local user", external_id=identity_user.id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found in database. Please complete signup process.",
        )
    return user
