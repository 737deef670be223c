from __future__ import annotations

import json
import traceback
from datetime import datetime, timezone
from typing import Any, Callable

from task_config import Config

LEVEL_ORDER = {
    "debug": 0,
    "info": 1,
    "warn": 2,
    "error": 3,
}


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class Logger:
    """Leveled logger that writes one JSON object per line to stdout."""

    def __init__(
        self,
        *,
        level: str = "debug",
        enabled: bool = True,
        emit: Callable[[str], None] = print,
        clock: Callable[[], str] = _now_iso,
    ) -> None:
        if level not in LEVEL_ORDER:
            raise ValueError(f"unknown log level: {level}")
        self.level = level
        self.enabled = enabled
        self._emit = emit
        self._clock = clock

    @classmethod
    def from_config(cls, config: Config) -> "Logger":
        return cls(level=config.log_level, enabled=config.enable_logging)

    def should_log(self, level: str) -> bool:
        if not self.enabled:
            return False
        return LEVEL_ORDER[level] >= LEVEL_ORDER[self.level]

    def _write(self, level: str, message: str, context: dict[str, Any] | None) -> None:
        if not self.should_log(level):
            return
        record: dict[str, Any] = dict(context or {})
        record["ts"] = self._clock()
        record["level"] = level
        record["message"] = message
        self._emit(json.dumps(record, separators=(",", ":"), sort_keys=True, default=str))

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._write("debug", message, context)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._write("info", message, context)

    def warn(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._write("warn", message, context)

    def error(
        self,
        message: str,
        exc: BaseException | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        merged = dict(context or {})
        if exc is not None:
            merged["errorMessage"] = str(exc)
            merged["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self._write("error", message, merged)
