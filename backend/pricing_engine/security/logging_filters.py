"""Logging filters that scrub sensitive content."""

from __future__ import annotations

import logging
import re

_SENSITIVE_PATTERN = re.compile(
    r"(Bearer\s+[\w\.-]+|access_token\"\s*:\s*\"[^\"]+\"|token=[\w\.-]+)",
    re.IGNORECASE,
)
_REDACTION = "**REDACTED**"


def redact(message: str) -> str:
    """Mask bearer tokens in a log message."""
    return _SENSITIVE_PATTERN.sub(_REDACTION, message)


class SensitiveFilter(logging.Filter):
    """Replace bearer tokens in log records with a redaction marker."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    redact(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )
        return True


__all__ = ["SensitiveFilter", "redact"]
