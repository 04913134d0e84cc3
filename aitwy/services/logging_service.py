"""JSON logging for the account service and CLI.

Auth events carry user ids, never credentials. The redaction processor is
the last line of defence for values that slip through: bearer tokens,
passwords, the JWT secret and raw email verification tokens, which grant
account activation to whoever holds them.
"""

import logging
import re
import sys
from typing import Any, Dict

import structlog

REDACTED = "REDACTED"

# Matched as substrings of lower-cased keys
SENSITIVE_KEY_PARTS = ("authorization", "secret", "password", "token")

VERIFY_PATH_PATTERN = re.compile(r"(/verify-email/)[^/?#\s]+")
BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)


def mask_verification_path(value: str) -> str:
    """Replace the token segment of a verify-email path or link."""
    return VERIFY_PATH_PATTERN.sub(rf"\g<1>{REDACTED}", value)


def redact_sensitive(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """Blank credential fields and mask tokens embedded in string values."""
    for key, value in list(event_dict.items()):
        if any(part in key.lower() for part in SENSITIVE_KEY_PARTS):
            event_dict[key] = REDACTED
        elif isinstance(value, str) and key != "event":
            value = mask_verification_path(value)
            event_dict[key] = BEARER_PATTERN.sub(rf"\g<1>{REDACTED}", value)

    return event_dict


def configure_logging(log_level: str = "INFO") -> None:
    """Send structlog output to stdout as one JSON object per line.

    Request-scoped fields bound by the correlation middleware are merged
    into every entry.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger_name=name)
    return logger
