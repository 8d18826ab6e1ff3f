"""Logging configuration for Terminal Paradox.

Logs go to stderr (or a file) so they never interleave with the game's own
output on stdout.
"""

import sys
from pathlib import Path
from typing import Any

import structlog

LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


def truncate_input_processor(max_length: int):
    """Build a processor that shortens raw player input in log events."""

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        raw = event_dict.get("raw")
        if isinstance(raw, str) and len(raw) > max_length:
            event_dict["raw"] = raw[:max_length] + "..."
            event_dict["raw_length"] = len(raw)
        return event_dict

    return processor


def configure_logging(
    log_level: str = "WARNING",
    log_file: Path | None = None,
    json_logs: bool = False,
    truncate_input: int = 80,
) -> None:
    """Configure structured logging for the game."""
    stream = open(log_file, "a") if log_file else sys.stderr

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(
            fmt="iso" if json_logs else "%Y-%m-%d %H:%M:%S"
        ),
    ]
    if truncate_input > 0:
        processors.append(truncate_input_processor(truncate_input))

    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            LEVELS.get(log_level.upper(), LEVELS["WARNING"])
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def bind_session_context(**context: Any) -> None:
    """Attach save-slot details to every event logged from now on."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance for a module."""
    return structlog.get_logger(name)
