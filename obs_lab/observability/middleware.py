from __future__ import annotations

import uuid
from time import perf_counter
from typing import Any, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders

from obs_lab.errors import classify, error_response
from obs_lab.observability.metrics import MetricsRegistry


SENTINEL_CORRELATION_ID = "unknown"
ALTERNATE_CORRELATION_HEADERS = ("x-correlation-id",)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
}


def new_correlation_id() -> str:
    try:
        return str(uuid.uuid4())
    except Exception:  # noqa: BLE001
        return SENTINEL_CORRELATION_ID


def get_correlation_id() -> str:
    """Correlation id bound for the request currently being handled."""

    return structlog.contextvars.get_contextvars().get("correlation_id", SENTINEL_CORRELATION_ID)


class RequestContextMiddleware:
    """Correlation ids, access logs, HTTP metrics, and the terminal error stage."""

    def __init__(
        self,
        app: Callable[..., Any],
        metrics: MetricsRegistry,
        header_name: str = "X-Request-ID",
    ) -> None:
        self.app = app
        self.metrics = metrics
        self.header_name = header_name
        self._incoming_headers = (header_name.lower(), *ALTERNATE_CORRELATION_HEADERS)

    def _resolve_correlation_id(self, scope: dict[str, Any]) -> str:
        headers = Headers(scope=scope)
        for name in self._incoming_headers:
            supplied = headers.get(name)
            if supplied and supplied.strip():
                return supplied.strip()
        return new_correlation_id()

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = self._resolve_correlation_id(scope)
        path = scope.get("path")
        method = scope.get("method")
        scope.setdefault("state", {})["correlation_id"] = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            path=path,
            method=method,
        )
        structlog.get_logger("access").debug("request_started")

        start = perf_counter()
        status_code: int = 500
        response_started = False

        async def send_wrapper(message: dict[str, Any]) -> None:
            nonlocal status_code, response_started

            if message.get("type") == "http.response.start":
                response_started = True
                status_code = int(message.get("status", 500))
                headers = MutableHeaders(scope=message)
                headers[self.header_name] = correlation_id

            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            error_status, error_message = classify(exc)
            structlog.get_logger("errors").error(
                "unhandled_error",
                error=error_message,
                error_type=exc.__class__.__name__,
                exc_info=exc,
            )
            await error_response(error_status, error_message)(scope, receive, send_wrapper)
        finally:
            elapsed = perf_counter() - start
            route = getattr(scope.get("route"), "path", None) or path or ""

            # Update metrics first so they update even if logging misbehaves.
            self.metrics.record_request(method or "", route, status_code, elapsed)

            structlog.get_logger("access").info(
                "http_request",
                route=route,
                status_code=status_code,
                elapsed_ms=round(elapsed * 1000.0, 2),
            )

            structlog.contextvars.clear_contextvars()


class SecurityHeadersMiddleware:
    """Stamps a baseline set of hardening headers on every HTTP response."""

    def __init__(self, app: Callable[..., Any], headers: dict[str, str] | None = None) -> None:
        self.app = app
        self.headers = headers if headers is not None else SECURITY_HEADERS

    async def __call__(self, scope: dict[str, Any], receive: Callable[..., Any], send: Callable[..., Any]) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        async def send_wrapper(message: dict[str, Any]) -> None:
            if message.get("type") == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in self.headers.items():
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, send_wrapper)
