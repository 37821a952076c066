"""Liveness endpoint."""

from fastapi import APIRouter, Depends

from ...server import QuizHubServer
from ..dependencies import get_server
from ..responses import ok

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(server: QuizHubServer = Depends(get_server)):
    connected = server.database is not None and server.database.is_connected
    return ok(
        {
            "status": "OK",
            "database": "connected" if connected else "disconnected",
            "uptime": server.uptime,
        },
        "QuizHub API is running",
    )
