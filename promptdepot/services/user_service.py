"""
services/user_service.py
------------------------
Local user records mirrored from the identity provider.

Sign-up is idempotent on external_id: the client may retry the call after
a network error, or two tabs may race, and both get the same row back.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from promptdepot.core.exceptions import ConflictError, service_operation
from promptdepot.core.logging import get_logger
from promptdepot.models.user import User
from promptdepot.schemas.user import UserCreate

logger = get_logger(__name__)


class UserService:

    @staticmethod
    @service_operation("create user")
    async def create_user(db: AsyncSession, data: UserCreate) -> tuple[User, bool]:
        """
        Insert the user, or return the existing row for the same external_id.
        The flag is True only when this call inserted the row.
        Raises ConflictError if the email belongs to a different identity.
        """
        user = User(
            external_id=data.external_id,
            email=data.email.lower(),
            name=data.name,
            avatar=data.avatar,
        )
        try:
            async with db.begin_nested():
                db.add(user)
        except IntegrityError as exc:
            existing = await UserService.get_user_by_external_id(db, data.external_id)
            if existing is None:
                raise ConflictError(f"Email '{data.email}' is already registered") from exc
            return existing, False

        await db.refresh(user)
        logger.info("User created", user_id=user.id)
        return user, True

    @staticmethod
    async def get_user_by_external_id(db: AsyncSession, external_id: str) -> User | None:
        result = await db.execute(select(User).where(User.external_id == external_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
        """Email lookup is case-insensitive."""
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()
