"""Structured logging utilities.

Every record is one JSON object per line, so a sweep log can be filtered by
point fields (speed, trim, rpm, ...) after the fact.
"""

from __future__ import annotations

import json
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, TextIO

_LEVELS = {"DEBUG": 0, "INFO": 1, "WARN": 2, "ERROR": 3}


@dataclass
class LogRecord:
    """Structured log record."""

    level: str
    message: str
    timestamp: float = field(default_factory=time.time)
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "message": self.message,
            "timestamp": self.timestamp,
            **self.data,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class StructuredLogger:
    """Simple structured logger with JSON output."""

    def __init__(
        self,
        name: str,
        output: TextIO | None = None,
        min_level: str = "INFO",
        context: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.output = output
        self.context = dict(context or {})
        self._min_level = _LEVELS.get(min_level.upper(), 1)

    @property
    def stream(self) -> TextIO:
        # Resolved per call so pytest's capsys and CLI redirection are honoured.
        return self.output or _state["output"] or sys.stdout

    def _log(self, level: str, message: str, **data: Any) -> None:
        if _LEVELS.get(level, 0) < self._min_level:
            return

        record = LogRecord(
            level=level,
            message=message,
            data={"logger": self.name, **self.context, **data},
        )
        print(record.to_json(), file=self.stream)

    def bind(self, **context: Any) -> StructuredLogger:
        """Return a child logger that stamps `context` onto every record."""
        child = StructuredLogger(self.name, output=self.output, context={**self.context, **context})
        child._min_level = self._min_level
        return child

    def debug(self, message: str, **data: Any) -> None:
        """Log at DEBUG level."""
        self._log("DEBUG", message, **data)

    def info(self, message: str, **data: Any) -> None:
        """Log at INFO level."""
        self._log("INFO", message, **data)

    def warn(self, message: str, **data: Any) -> None:
        """Log at WARN level."""
        self._log("WARN", message, **data)

    def error(self, message: str, **data: Any) -> None:
        """Log at ERROR level."""
        self._log("ERROR", message, **data)

    @contextmanager
    def timer(self, operation: str, **data: Any):
        """Context manager for timing operations.

        Usage:
            with logger.timer("engine_step", steps=1440):
                engine.step(1440)
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.debug(f"{operation} completed", elapsed_ms=elapsed * 1000, **data)


# Global logger cache
_loggers: dict[str, StructuredLogger] = {}
_state: dict[str, Any] = {"level": "INFO", "output": None}


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name, min_level=_state["level"])
    return _loggers[name]


def set_log_level(level: str) -> None:
    """Set minimum log level for all loggers, including ones created later.

    Args:
        level: One of DEBUG, INFO, WARN, ERROR.
    """
    level = level.upper()
    if level not in _LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    _state["level"] = level
    for logger in _loggers.values():
        logger._min_level = _LEVELS[level]


def set_log_output(output: TextIO | None) -> None:
    """Redirect every logger without an explicit output to `output`."""
    _state["output"] = output
