"""Logging configuration shared by the ordering and notifications contexts.

Everything goes through the standard library root logger; structlog
renders it. Production-like environments get one JSON object per line,
everywhere else gets the coloured console renderer. Rotating log files
are written only when `LOG_DIR` is set.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from shared.config import Settings, get_settings

_DEFAULT_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_STRUCTURED_ENVIRONMENTS = ("production", "staging")

_QUIET_LOGGERS = ("httpx", "httpcore", "protean", "uvicorn.access")

_configured = False


def get_log_level(settings: Settings | None = None) -> str:
    """Explicit `LOG_LEVEL` wins; otherwise the level follows the environment."""
    settings = settings or get_settings()
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return _DEFAULT_LEVELS.get(settings.ENVIRONMENT.lower(), "INFO")


def _rotating_file(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def build_handlers(settings: Settings) -> list[logging.Handler]:
    level = get_log_level(settings)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]

    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating_file(log_dir / "tokostream.log", level))
        handlers.append(_rotating_file(log_dir / "tokostream_error.log", logging.ERROR))

    return handlers


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(settings: Settings):
    if settings.ENVIRONMENT.lower() in _STRUCTURED_ENVIRONMENTS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stdout.isatty(),
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
    )


def configure_logging(settings: Settings | None = None, force: bool = False) -> None:
    """Configure stdlib handlers and structlog once per process.

    Both domains call this at import time; later calls are no-ops unless
    `force` is set.
    """
    global _configured
    if _configured and not force:
        return

    settings = settings or get_settings()

    root = logging.getLogger()
    root.setLevel(get_log_level(settings))
    root.handlers = build_handlers(settings)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[*_shared_processors(), _renderer(settings)],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def add_context(**kwargs: Any) -> None:
    """Bind values to every later log line of the current request or task.

    `None` values are skipped so a request without a tenant header does not
    log `tenant_id=None` everywhere.
    """
    structlog.contextvars.bind_contextvars(**{k: v for k, v in kwargs.items() if v is not None})


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
