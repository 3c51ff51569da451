import logging
import re
from typing import Any, MutableMapping

import structlog

REDACTED = "[REDACTED]"

# Keys whose values never reach the log output (compared lowercased)
SECRET_KEYS = frozenset(
    {
        "authorization",
        "cookie",
        "set-cookie",
        "x-hub-signature-256",
        "access_token",
        "token",
        "code",
        "state",
        "csrf_token",
        "github_client_secret",
        "github_webhook_secret",
        "jwt_secret_key",
        "encryption_key",
    }
)

# Credential shapes scrubbed from any string value
SECRET_PATTERNS = (
    (re.compile(r"Bearer\s+[A-Za-z0-9\-_.=:+/]+"), "Bearer " + REDACTED),
    (re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+"), "[REDACTED_JWT]"),
    (re.compile(r"\bgh[opsu]_[A-Za-z0-9]+"), REDACTED),
)


def _scrub(value: str) -> str:
    for pattern, replacement in SECRET_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


def redact_secrets(_logger, _name, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key, value in event_dict.items():
        if str(key).lower() in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, str):
            event_dict[key] = _scrub(value)
    return event_dict


def configure_structlog(level: str = "INFO") -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(format="%(message)s", level=numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            redact_secrets,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
