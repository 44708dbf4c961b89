"""
Logging utility functions and helpers.
"""

import logging
from typing import Any, Dict


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def mask_email(email: str) -> str:
    """
    Mask an email address for display and logs.

    Reveals the first and last character of the local part:
    "john@example.com" -> "j***n@example.com". A one-character local part
    reveals only that character: "a@x.com" -> "a***@x.com".
    """
    if not email or "@" not in email:
        return "***"

    local_part, domain = email.rsplit("@", 1)
    if len(local_part) <= 1:
        return f"{local_part}***@{domain}"
    return f"{local_part[0]}***{local_part[-1]}@{domain}"


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Remove sensitive information from log data.

    Passwords and secrets are fully redacted; tokens keep their first 8
    characters so support can correlate them; nested dicts are walked.
    """
    sensitive_fields = {
        'password', 'token', 'secret', 'api_key', 'access_token',
        'refresh_token', 'signature', 'credit_card', 'cvv'
    }

    sanitized = data.copy()

    for key, value in sanitized.items():
        if any(sensitive in key.lower() for sensitive in sensitive_fields):
            if isinstance(value, str):
                if 'token' in key.lower() and len(value) > 8:
                    sanitized[key] = f"{value[:8]}..."
                else:
                    sanitized[key] = "***REDACTED***"

        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

    return sanitized
