import gzip
import logging
from datetime import date

import pytest

from obs_lab.observability.rotation import DailyRotatingFileHandler


class _Clock:
    def __init__(self, today: date) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def make_logger(request):
    def _make(handler: logging.Handler) -> logging.Logger:
        logger = logging.getLogger(f"test.rotation.{request.node.name}")
        logger.propagate = False
        logger.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.handlers = [handler]
        request.addfinalizer(handler.close)
        return logger

    return _make


def test_writes_one_file_per_day(tmp_path, make_logger) -> None:
    clock = _Clock(date(2025, 3, 1))
    handler = DailyRotatingFileHandler(tmp_path, clock=clock)
    logger = make_logger(handler)

    logger.info("first day")
    clock.today = date(2025, 3, 2)
    logger.info("second day")

    assert (tmp_path / "app-2025-03-02.log").read_text(encoding="utf-8") == "second day\n"
    archive = tmp_path / "app-2025-03-01.1.log.gz"
    assert gzip.decompress(archive.read_bytes()).decode("utf-8") == "first day\n"
    assert not (tmp_path / "app-2025-03-01.log").exists()


def test_size_cap_rolls_within_a_day(tmp_path, make_logger) -> None:
    clock = _Clock(date(2025, 3, 1))
    handler = DailyRotatingFileHandler(tmp_path, max_bytes=50, clock=clock)
    logger = make_logger(handler)

    for i in range(10):
        logger.info("record %02d %s", i, "x" * 10)

    archives = sorted(tmp_path.glob("app-2025-03-01.*.log.gz"))
    assert len(archives) >= 2
    current = (tmp_path / "app-2025-03-01.log").read_text(encoding="utf-8")
    assert len(current.encode("utf-8")) <= 50
    assert "record 09" in current


def test_oversized_record_still_written(tmp_path, make_logger) -> None:
    handler = DailyRotatingFileHandler(tmp_path, max_bytes=10, clock=_Clock(date(2025, 3, 1)))
    logger = make_logger(handler)

    logger.info("a message much longer than ten bytes")
    assert (tmp_path / "app-2025-03-01.log").read_text(encoding="utf-8").startswith("a message")
    assert not list(tmp_path.glob("*.gz"))


def test_uncompressed_archives(tmp_path, make_logger) -> None:
    clock = _Clock(date(2025, 3, 1))
    handler = DailyRotatingFileHandler(tmp_path, compress=False, clock=clock)
    logger = make_logger(handler)

    logger.info("plain")
    clock.today = date(2025, 3, 2)
    logger.info("next")

    assert (tmp_path / "app-2025-03-01.1.log").read_text(encoding="utf-8") == "plain\n"


def test_retention_removes_old_files(tmp_path, make_logger) -> None:
    for name in ("app-2025-01-01.log.gz", "app-2025-01-02.3.log.gz", "app-2025-02-20.1.log.gz", "other.log"):
        (tmp_path / name).write_bytes(b"")

    clock = _Clock(date(2025, 3, 1))
    handler = DailyRotatingFileHandler(tmp_path, retention_days=14, clock=clock)
    logger = make_logger(handler)
    logger.info("today")
    clock.today = date(2025, 3, 2)
    logger.info("tomorrow")

    names = {p.name for p in tmp_path.iterdir()}
    assert "app-2025-01-01.log.gz" not in names
    assert "app-2025-01-02.3.log.gz" not in names
    assert "app-2025-02-20.1.log.gz" in names
    assert "other.log" in names


def test_retention_applied_when_handler_starts(tmp_path) -> None:
    (tmp_path / "app-2025-01-01.1.log.gz").write_bytes(b"")
    (tmp_path / "app-2025-02-25.1.log.gz").write_bytes(b"")

    handler = DailyRotatingFileHandler(tmp_path, retention_days=14, clock=_Clock(date(2025, 3, 1)))
    handler.close()

    names = {p.name for p in tmp_path.iterdir()}
    assert "app-2025-01-01.1.log.gz" not in names
    assert "app-2025-02-25.1.log.gz" in names
