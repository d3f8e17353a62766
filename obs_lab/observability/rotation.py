from __future__ import annotations

import gzip
import os
import re
import shutil
import sys
from datetime import date, timedelta
from logging import LogRecord
from logging.handlers import BaseRotatingHandler
from pathlib import Path
from typing import Callable


def _gzip_namer(name: str) -> str:
    return f"{name}.gz"


def _gzip_rotator(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


class DailyRotatingFileHandler(BaseRotatingHandler):
    """File handler writing one ``<prefix>-YYYY-MM-DD.log`` file per calendar day.

    The active file is archived when the day changes or when the next record
    would push it past ``max_bytes``. Archives are named
    ``<prefix>-YYYY-MM-DD.<n>.log`` (plus ``.gz`` when compressed) and anything
    dated more than ``retention_days`` ago is deleted on rollover.
    """

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "app",
        max_bytes: int = 0,
        retention_days: int = 14,
        compress: bool = True,
        encoding: str = "utf-8",
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.prefix = prefix
        self.max_bytes = max_bytes
        self.retention_days = retention_days
        self._clock = clock
        self._day = clock()
        self._pattern = re.compile(
            rf"^{re.escape(prefix)}-(\d{{4}}-\d{{2}}-\d{{2}})(?:\.\d+)?\.log(?:\.gz)?$"
        )
        super().__init__(str(self._path_for(self._day)), mode="a", encoding=encoding, delay=True)
        if compress:
            self.namer = _gzip_namer
            self.rotator = _gzip_rotator
        try:
            self.purge()
        except OSError as exc:
            # No handler is attached yet, so report straight to stderr.
            sys.stderr.write(f"--- Log retention purge failed in {self.directory}: {exc}\n")

    def _path_for(self, day: date) -> Path:
        return self.directory / f"{self.prefix}-{day.isoformat()}.log"

    def _next_archive(self, day: date) -> str:
        index = 1
        while True:
            candidate = self.rotation_filename(
                str(self.directory / f"{self.prefix}-{day.isoformat()}.{index}.log")
            )
            if not os.path.exists(candidate):
                return candidate
            index += 1

    def shouldRollover(self, record: LogRecord) -> bool:
        if self._clock() != self._day:
            return True
        if self.max_bytes <= 0:
            return False
        if self.stream is None:
            self.stream = self._open()
        msg = f"{self.format(record)}\n"
        self.stream.seek(0, 2)
        position = self.stream.tell()
        # An oversized record still goes into an empty file.
        return position > 0 and position + len(msg.encode(self.encoding or "utf-8")) > self.max_bytes

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None

        current = self.baseFilename
        if os.path.exists(current) and os.path.getsize(current) > 0:
            self.rotate(current, self._next_archive(self._day))

        self._day = self._clock()
        self.baseFilename = os.path.abspath(self._path_for(self._day))
        self.purge()

    def purge(self) -> list[Path]:
        """Delete files dated before the retention window; returns what was removed."""

        cutoff = self._day - timedelta(days=self.retention_days)
        removed: list[Path] = []
        for path in self.directory.iterdir():
            match = self._pattern.match(path.name)
            if not match:
                continue
            try:
                file_day = date.fromisoformat(match.group(1))
            except ValueError:
                continue
            if file_day < cutoff:
                path.unlink(missing_ok=True)
                removed.append(path)
        return removed
