"""Centralized structlog configuration for the pipelines and the CLI."""

import logging
import logging.handlers
from pathlib import Path

import structlog

from gridline_core.config import Settings

LOG_FILE_MAX_BYTES = 10_485_760  # 10MB
LOG_FILE_BACKUPS = 5


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    if isinstance(level, int):
        return level
    print(f"Warning: Invalid log level '{level_name}', defaulting to INFO")
    return logging.INFO


def _formatter(json_output: bool, colors: bool) -> structlog.stdlib.ProcessorFormatter:
    """Build a ProcessorFormatter rendering JSON or human-readable lines."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=colors)
    )
    shared = _shared_processors()
    return structlog.stdlib.ProcessorFormatter(
        processors=shared
        + [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared,
    )


def _configure_structlog() -> None:
    structlog.configure(
        processors=_shared_processors()
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: Settings, json_output: bool = False) -> None:
    """
    Configure structlog and stdlib logging based on settings.

    Args:
        settings: Application settings containing logging configuration
        json_output: If True, render JSON lines (scheduled runs). If False, use
                    human-readable console output (interactive CLI)

    Note:
        Idempotent; safe to call more than once per process. Falls back to
        console-only output when the log file cannot be created.
    """
    log_path = Path(settings.logging.file)
    log_level = _resolve_level(settings.logging.level)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    except OSError as e:
        print(f"Warning: Could not create log file {log_path}: {e}")
        print("Falling back to console-only logging")
        _configure_console_only(log_level, json_output)
        return

    file_handler.setLevel(log_level)
    file_handler.setFormatter(_formatter(json_output, colors=False))

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_formatter(json_output, colors=True))

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[file_handler, console_handler],
        force=True,
    )
    _configure_structlog()


def _configure_console_only(log_level: int, json_output: bool) -> None:
    """Fallback configuration for console-only logging when file logging fails."""
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_formatter(json_output, colors=True))

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[console_handler],
        force=True,
    )
    _configure_structlog()
