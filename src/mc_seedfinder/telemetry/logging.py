"""Contract for search telemetry and structured logging sinks."""

from __future__ import annotations

import logging
from typing import Protocol

from rich.logging import RichHandler


class Telemetry(Protocol):
    """Reports search lifecycle events and progress."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Telemetry sink that forwards events to a stdlib logger."""

    def __init__(self, logger: logging.Logger | None = None, *, level: int = logging.INFO) -> None:
        self._logger = logger or logging.getLogger("mc_seedfinder.telemetry")
        self._level = level

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.log(self._level, event_name, extra={"telemetry": payload})


def configure_logging(level: str = "INFO") -> None:
    """Route ``mc_seedfinder`` loggers to a rich console handler."""
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("mc_seedfinder")
    root.handlers = [handler]
    root.setLevel(level.upper())
    root.propagate = False
