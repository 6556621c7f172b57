"""Logging utilities for the authorization layer.

This module provides:
- Logging configuration from AuthzConfig
- Length-bounded previews for large values (entity graphs, payloads)
- A formatter emitting JSON or plain text with request context
- A logger adapter that stamps request_id / user_id on every record
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .config import AuthzConfig, LogLevel

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName", "request_id", "user_id",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Single-line, length-bounded preview of a value for logging.

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"
    return s


class AuthzFormatter(logging.Formatter):
    """Formatter with request context and optional JSON output."""

    def __init__(self, json_format: bool = True, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.json_format = json_format

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None)
        user_id = getattr(record, "user_id", None)

        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if request_id:
            log_data["request_id"] = request_id
        if user_id:
            log_data["user_id"] = user_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = safe_preview(value)

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [f"[{log_data['timestamp']}]", log_data["level"], log_data["logger"]]
        if request_id:
            parts.append(f"request_id={request_id}")
        parts.append(f": {log_data['message']}")
        line = " ".join(parts)
        if "exception" in log_data:
            line = f"{line}\n{log_data['exception']}"
        return line


class AuthzLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds request_id and user_id to log records.

    Usage:
        log = get_request_logger(__name__, request_id="r-1", user_id="u1")
        log.info("Authorizing %s", action)
    """

    def __init__(
        self,
        logger: logging.Logger,
        request_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.request_id = request_id
        self.user_id = user_id

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        request_id = kwargs.pop("request_id", self.request_id)
        user_id = kwargs.pop("user_id", self.user_id)

        extra = kwargs.get("extra", {})
        if request_id:
            extra["request_id"] = request_id
        if user_id:
            extra["user_id"] = user_id
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[AuthzConfig] = None,
    json_format: Optional[bool] = None,
) -> None:
    """Configure the root logger.

    Args:
        config: AuthzConfig instance (if None, loads from environment)
        json_format: Override ``config.log_json``
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(config.log_level, logging.INFO)
    use_json = config.log_json if json_format is None else json_format

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(AuthzFormatter(json_format=use_json))
    root_logger.addHandler(console_handler)


def get_request_logger(
    name: str,
    request_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> AuthzLoggerAdapter:
    """Logger adapter carrying request context."""
    return AuthzLoggerAdapter(logging.getLogger(name), request_id=request_id, user_id=user_id)


__all__ = [
    "AuthzFormatter",
    "AuthzLoggerAdapter",
    "get_request_logger",
    "safe_preview",
    "setup_logging",
]
