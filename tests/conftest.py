from __future__ import annotations

import json
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from obs_lab.config import get_settings
from obs_lab.main import create_app
from obs_lab.observability.logging import configure_logging


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    get_settings.cache_clear()
    configure_logging(get_settings(), force=True)

    yield

    get_settings.cache_clear()


@pytest.fixture
def log_dir() -> Path:
    return get_settings().log_path


@pytest.fixture
def log_records(log_dir: Path) -> Callable[[], list[dict]]:
    """Parse every JSON line written to the daily app log so far."""

    def _read() -> list[dict]:
        records: list[dict] = []
        for path in sorted(log_dir.glob("app-*.log")):
            for line in path.read_text(encoding="utf-8").splitlines():
                if line.strip():
                    records.append(json.loads(line))
        return records

    return _read


@pytest.fixture
def app() -> FastAPI:
    return create_app(get_settings())


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
