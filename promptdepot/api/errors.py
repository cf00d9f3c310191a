"""
api/errors.py
-------------
Translate service-layer errors into HTTP responses.

Every failure body has the shape {"message": ..., "error"?: ...}: `message`
names the operation the client attempted, `error` carries the cause.
"""

from fastapi import HTTPException

from promptdepot.core.exceptions import PromptDepotError
from promptdepot.core.logging import get_logger

logger = get_logger(__name__)


def failure(message: str, exc: PromptDepotError) -> HTTPException:
    """Build the HTTPException to raise for a failed service call."""
    log = logger.error if exc.status_code >= 500 else logger.info
    log(message, error=exc.message, status_code=exc.status_code)
    return HTTPException(
        status_code=exc.status_code,
        detail={"message": message, "error": exc.message},
    )
