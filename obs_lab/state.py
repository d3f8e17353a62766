from __future__ import annotations

from threading import Lock


class ReadinessFlag:
    """Thread-safe readiness switch (starts ready, resets on restart)."""

    def __init__(self, ready: bool = True) -> None:
        self._lock = Lock()
        self._ready = ready

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._ready

    def toggle(self) -> bool:
        with self._lock:
            self._ready = not self._ready
            return self._ready

    @staticmethod
    def label(ready: bool) -> str:
        return "READY" if ready else "NOT_READY"
