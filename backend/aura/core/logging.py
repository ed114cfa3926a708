"""Logging configuration for the application

Log lines routinely carry Stripe error text and request details, so every
root handler gets a filter that masks Stripe secret keys and bearer tokens.
"""
import logging
import re

from aura.core.config import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Libraries that log every request at INFO
QUIET_LOGGERS = ("stripe", "httpx", "httpcore", "urllib3")

_SECRET_PATTERNS = (
    (re.compile(r"\b(sk|rk)_(test|live)_[A-Za-z0-9]+"), r"\1_\2_***"),
    (re.compile(r"Bearer\s+[A-Za-z0-9\-_.=]+"), "Bearer ***"),
)


def redact_secrets(text: str) -> str:
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrites the formatted message with secrets masked; never drops a record"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging():
    """Configure logging for the application"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt='%Y-%m-%d %H:%M:%S',
        force=True
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(SecretRedactingFilter())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Session changes and money movements get their own channels
security_logger = logging.getLogger("security")
billing_logger = logging.getLogger("billing")
