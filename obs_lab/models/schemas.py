from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class StatusResponse(BaseModel):
    status: str


class LoginRequest(BaseModel):
    # Any JSON value is accepted; non-strings simply never match.
    username: Any = None
    password: Any = None


class LoginResponse(BaseModel):
    token: str


class HelloResponse(BaseModel):
    message: str
    cid: str


class MessageResponse(BaseModel):
    message: str


class CalcResponse(BaseModel):
    result: int | float


class ClientLogRequest(BaseModel):
    level: Any = None
    message: Any = None
    stack: Any = None
    meta: Any = None
