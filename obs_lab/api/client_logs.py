from __future__ import annotations

import logging
from typing import Any

import structlog
from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from obs_lab.models.schemas import ClientLogRequest


router = APIRouter(tags=["client-logs"])

# Browser loggers use npm-style level names.
CLIENT_LEVELS = {
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "http": logging.INFO,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
    "silly": logging.DEBUG,
}


def resolve_level(level: Any) -> int:
    if level is None or level == "":
        return logging.INFO
    return CLIENT_LEVELS.get(str(level).strip().lower(), logging.INFO)


def _event_text(message: Any) -> str:
    if message is None or message == "":
        return "Client log"
    return message if isinstance(message, str) else str(message)


@router.post("/client-logs", response_class=PlainTextResponse)
async def client_logs(payload: ClientLogRequest | None = None) -> PlainTextResponse:
    payload = payload or ClientLogRequest()
    structlog.get_logger("frontend").log(
        resolve_level(payload.level),
        _event_text(payload.message),
        source="frontend",
        client_level=payload.level,
        stack=payload.stack,
        meta=payload.meta,
    )
    return PlainTextResponse("Log received")
