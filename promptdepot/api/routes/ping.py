"""
api/routes/ping.py
------------------
Liveness probe under the API prefix. Takes no auth and touches no database.
"""

from fastapi import APIRouter

from promptdepot.schemas.base import MessageResponse

router = APIRouter(tags=["Health"])


@router.get("/ping", response_model=MessageResponse, summary="Ping")
async def ping() -> MessageResponse:
    return MessageResponse(message="Pong")
