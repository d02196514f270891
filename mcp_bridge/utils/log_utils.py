"""Utility functions for logging tool arguments and error text."""

import re
from typing import Any

SENSITIVE_KEYS = frozenset({
    'api_key', 'apikey', 'key', 'secret', 'password', 'token',
    'authorization', 'auth', 'credential', 'cookie'
})

_SENSITIVE_PATTERNS = [
    (re.compile(r'key=[\w\-]+'), 'key=****'),
    (re.compile(r'Bearer\s+[\w\-\.]+'), 'Bearer ****'),
    (re.compile(r'password=[\w\-]+'), 'password=****'),
    (re.compile(r'token=[\w\-\.]+'), 'token=****'),
    (re.compile(r'secret=[\w\-]+'), 'secret=****'),
]


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS)


def _redact_value(value: Any) -> Any:
    if isinstance(value, str):
        if len(value) > 8:
            return f"{value[:4]}...{value[-4:]}"
        return "****"
    return "[REDACTED]"


def redact_sensitive_data(data: Any) -> Any:
    """Redact sensitive values from tool arguments before they are logged.

    Dictionaries are walked recursively, including dictionaries held in lists.
    The input is never modified.

    Args:
        data: Arguments or any other log payload

    Returns:
        A copy with sensitive values redacted
    """
    if isinstance(data, dict):
        return {
            k: _redact_value(v) if _is_sensitive(k) and not isinstance(v, (dict, list))
            else redact_sensitive_data(v)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item) for item in data]
    return data


def sanitize_log_message(message: str) -> str:
    """Remove credential-like patterns from free-form error text.

    Args:
        message: Log message to sanitize

    Returns:
        Sanitized message
    """
    result = message
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result
