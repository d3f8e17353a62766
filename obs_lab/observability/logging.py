from __future__ import annotations

import asyncio
import logging
import sys
import threading
from pathlib import Path
from types import TracebackType
from typing import Any

import structlog
from structlog.typing import EventDict, WrappedLogger

from obs_lab.config import Settings, get_settings
from obs_lab.observability.rotation import DailyRotatingFileHandler


_CONFIGURED = False

EXCEPTIONS_LOGGER = "crash.exceptions"
REJECTIONS_LOGGER = "crash.rejections"


def _service_tagger(service: str) -> Any:
    def add_service(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def _build_formatters(service: str) -> tuple[logging.Formatter, logging.Formatter]:
    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_tagger(service),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    json_formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
    )
    console_formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )
    return json_formatter, console_formatter


def _attach_file(logger_name: str, path: Path, formatter: logging.Formatter) -> None:
    logger = logging.getLogger(logger_name)
    for handler in logger.handlers:
        handler.close()
    handler = logging.FileHandler(path, encoding="utf-8", delay=True)
    handler.setFormatter(formatter)
    logger.handlers = [handler]


def configure_logging(settings: Settings | None = None, force: bool = False) -> None:
    """Configure structlog + stdlib logging: daily JSON files, console, crash logs.

    Safe to call multiple times (no-op after first call unless ``force``).
    """

    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    json_formatter, console_formatter = _build_formatters(settings.service_name)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(console_formatter)
    handlers: list[logging.Handler] = [console]

    file_error: OSError | None = None
    try:
        rotating = DailyRotatingFileHandler(
            settings.log_path,
            prefix="app",
            max_bytes=settings.log_max_bytes,
            retention_days=settings.log_retention_days,
            compress=settings.log_compress,
        )
        rotating.setFormatter(json_formatter)
        handlers.append(rotating)
        _attach_file(EXCEPTIONS_LOGGER, settings.log_path / "exceptions.log", json_formatter)
        _attach_file(REJECTIONS_LOGGER, settings.log_path / "rejections.log", json_formatter)
    except OSError as exc:
        file_error = exc

    root = logging.getLogger()
    for old in root.handlers:
        old.close()
    root.handlers = list(handlers)
    root.setLevel(level)

    # Keep uvicorn's own loggers consistent with our handlers.
    for name in ("uvicorn", "uvicorn.error"):
        logger = logging.getLogger(name)
        logger.handlers = list(handlers)
        logger.propagate = False
        logger.setLevel(level)

    _CONFIGURED = True

    if file_error is not None:
        structlog.get_logger(__name__).warning(
            "file_logging_disabled",
            log_dir=str(settings.log_path),
            error=str(file_error),
        )


def _log_uncaught(
    exc_type: type[BaseException],
    exc: BaseException,
    tb: TracebackType | None,
    **context: Any,
) -> None:
    structlog.get_logger(EXCEPTIONS_LOGGER).critical(
        "uncaught_exception",
        error=str(exc),
        exc_info=(exc_type, exc, tb),
        **context,
    )


def _excepthook(exc_type: type[BaseException], exc: BaseException, tb: TracebackType | None) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    _log_uncaught(exc_type, exc, tb)


def _thread_excepthook(args: threading.ExceptHookArgs) -> None:
    if args.exc_type is SystemExit or args.exc_value is None:
        return
    thread_name = args.thread.name if args.thread is not None else None
    _log_uncaught(args.exc_type, args.exc_value, args.exc_traceback, thread=thread_name)


def asyncio_exception_handler(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Record failures the event loop could not deliver to any awaiting caller."""

    _ = loop
    exc = context.get("exception")
    task = context.get("task") or context.get("future")
    structlog.get_logger(REJECTIONS_LOGGER).error(
        "unhandled_async_error",
        detail=context.get("message"),
        task=repr(task) if task is not None else None,
        exc_info=exc if isinstance(exc, BaseException) else None,
    )


def install_crash_handlers(loop: asyncio.AbstractEventLoop | None = None) -> None:
    sys.excepthook = _excepthook
    threading.excepthook = _thread_excepthook
    if loop is not None:
        loop.set_exception_handler(asyncio_exception_handler)
