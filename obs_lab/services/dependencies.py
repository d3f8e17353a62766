from __future__ import annotations

from fastapi import Request

from obs_lab.config import Settings
from obs_lab.observability.metrics import MetricsRegistry
from obs_lab.observability.middleware import SENTINEL_CORRELATION_ID
from obs_lab.state import ReadinessFlag


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_metrics(request: Request) -> MetricsRegistry:
    return request.app.state.metrics


def get_readiness(request: Request) -> ReadinessFlag:
    return request.app.state.readiness


def get_correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", SENTINEL_CORRELATION_ID)
