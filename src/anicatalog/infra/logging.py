"""
Logging configuration for AniCatalog.

This module configures structlog for JSON logging across the application.
"""

import logging
import re
from typing import Any

import structlog

from .settings import settings

_SECRET_KEYS = ("token", "password", "secret", "api_key", "database_url")

_URL_CREDENTIALS = re.compile(r"://[^:/\s]+:[^@\s]+@")
_QUERY_SECRETS = re.compile(r"\b(token|password)=[^&\s]+")


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        value = _URL_CREDENTIALS.sub("://***:***@", value)
        return _QUERY_SECRETS.sub(lambda m: f"{m.group(1)}=***", value)
    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact_value(item) for item in value]
    return value


def redact_secrets(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Redact sensitive information from log events."""
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in _SECRET_KEYS):
            event_dict[key] = "***REDACTED***"
        else:
            event_dict[key] = _redact_value(event_dict[key])
    return event_dict


def configure_logging(level: str | None = None) -> None:
    """Configure structlog for JSON logging on top of the stdlib root logger."""
    logging.basicConfig(format="%(message)s", level=(level or settings.log_level).upper())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            redact_secrets,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
