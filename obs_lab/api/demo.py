from __future__ import annotations

import asyncio
import math
import secrets
from typing import Any

import structlog
from fastapi import APIRouter, Depends

from obs_lab.config import Settings
from obs_lab.errors import InvalidCredentials, InvalidParams, MissingParams
from obs_lab.models.schemas import (
    CalcResponse,
    HelloResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
)
from obs_lab.observability.metrics import MetricsRegistry
from obs_lab.services.dependencies import get_app_settings, get_correlation_id, get_metrics


router = APIRouter(prefix="/api", tags=["demo"])

FAKE_TOKEN = "fake-token"


def _credentials_match(supplied: Any, expected: str) -> bool:
    if not isinstance(supplied, str):
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest | None = None,
    metrics: MetricsRegistry = Depends(get_metrics),
    settings: Settings = Depends(get_app_settings),
) -> LoginResponse:
    payload = payload or LoginRequest()

    user_ok = _credentials_match(payload.username, settings.demo_username)
    password_ok = _credentials_match(payload.password, settings.demo_password)
    if not (user_ok and password_ok):
        metrics.inc_login_error()
        structlog.get_logger("auth").warning("login_failed", user=payload.username)
        raise InvalidCredentials()

    return LoginResponse(token=FAKE_TOKEN)


@router.get("/hello", response_model=HelloResponse)
async def hello(correlation_id: str = Depends(get_correlation_id)) -> HelloResponse:
    structlog.get_logger("demo").info("hello_called")
    return HelloResponse(message="Hello World", cid=correlation_id)


@router.get("/slow", response_model=MessageResponse)
async def slow(settings: Settings = Depends(get_app_settings)) -> MessageResponse:
    delay_ms = settings.slow_delay_ms
    await asyncio.sleep(delay_ms / 1000.0)

    structlog.get_logger("demo").warning("slow_endpoint_called", duration_ms=delay_ms)
    return MessageResponse(message=f"Slow response after {delay_ms}ms")


@router.get("/error")
async def error() -> None:
    raise RuntimeError("Simulated Backend Failure")


def _to_number(raw: str) -> float:
    try:
        value = float(raw.strip())
    except ValueError as exc:
        raise InvalidParams() from exc
    if not math.isfinite(value):
        raise InvalidParams()
    return value


@router.get("/calc", response_model=CalcResponse)
async def calc(a: str | None = None, b: str | None = None, op: str | None = None) -> CalcResponse:
    structlog.get_logger("demo").info("calculation_requested", params={"a": a, "b": b, "op": op})

    if not a or not b:
        raise MissingParams()

    # op is accepted for compatibility but the endpoint only adds.
    result = _to_number(a) + _to_number(b)
    if not math.isfinite(result):
        raise InvalidParams()
    return CalcResponse(result=int(result) if result.is_integer() else result)
