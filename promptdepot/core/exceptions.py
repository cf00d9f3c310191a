"""
core/exceptions.py
------------------
Domain error taxonomy.

Every error carries the HTTP status it maps to, so the global handlers in
main.py can derive the response code from the error itself. Services raise
these; routes translate them into the `{message, error}` JSON envelope.

Reads that may not reveal whether a row exists do NOT raise; they return
the NotFoundOrDenied variant from services/access.py instead.
"""

import functools
from typing import Any, Awaitable, Callable, TypeVar

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError

T = TypeVar("T")


class PromptDepotError(Exception):
    """Base class for all errors raised by the service layer."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(PromptDepotError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class PermissionDeniedError(PromptDepotError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Permission denied"


class ConflictError(PromptDepotError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class ForbiddenError(PromptDepotError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class AuthenticationError(ForbiddenError):
    """Bearer token missing, malformed, expired or rejected."""

    default_message = "Authentication failed."


class PersistenceError(PromptDepotError):
    default_message = "Database operation failed"


def service_operation(
    action: str,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Wrap a service coroutine so every failure reads "Failed to <action>: <cause>".

    Domain errors keep their class (and therefore their status code);
    SQLAlchemy errors are surfaced as PersistenceError.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except PromptDepotError as exc:
                raise type(exc)(f"Failed to {action}: {exc.message}") from exc
            except SQLAlchemyError as exc:
                raise PersistenceError(f"Failed to {action}: {exc}") from exc

        return wrapper

    return decorator
