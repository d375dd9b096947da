"""Logging configuration for the delivery domain.

structlog renders through the standard library handlers so that Protean,
uvicorn and requests end up in the same stream. File handlers are only
attached when ``LOG_DIR`` is set; containers log to stdout.

Upload tokens are credentials. Any ``token`` value that reaches a log call
is cut down to its first characters by ``redact_tokens``.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

TOKEN_KEYS = ("token", "upload_token")
VISIBLE_TOKEN_CHARS = 6
MAX_LOG_BYTES = 10 * 1024 * 1024

_configured = False


def get_environment() -> str:
    return (os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    defaults = {"production": "INFO", "staging": "INFO", "development": "DEBUG", "test": "WARNING"}
    return os.getenv("LOG_LEVEL", defaults.get(get_environment(), "INFO")).upper()


def mask_token(token: str | None) -> str:
    """Loggable form of an upload token: first six characters only."""
    if not token:
        return ""
    return f"{token[:VISIBLE_TOKEN_CHARS]}…"


def redact_tokens(logger, method_name: str, event_dict: dict) -> dict:
    """structlog processor: mask full tokens passed by mistake."""
    for key in TOKEN_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > VISIBLE_TOKEN_CHARS + 1:
            event_dict[key] = mask_token(value)
    return event_dict


def _rotating(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    return handler


def setup_stdlib_logging(log_dir: str | None = None) -> None:
    level = get_log_level()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_dir = log_dir or os.getenv("LOG_DIR")
    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(_rotating(directory / "delivery.log", level))
        handlers.append(_rotating(directory / "delivery_error.log", logging.ERROR))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = handlers

    for noisy in ("urllib3", "protean", "multipart", "python_multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_structlog() -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        redact_tokens,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if get_environment() in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer(ensure_ascii=False))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(log_dir: str | None = None) -> None:
    """Configure stdlib and structlog once per process."""
    global _configured
    if _configured:
        return
    setup_stdlib_logging(log_dir)
    setup_structlog()
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def add_context(**kwargs: Any) -> None:
    """Bind values to every log line of the current request."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
