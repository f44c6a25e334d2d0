"""
Input validation helper functions.
Provides validation for common input types.
"""

import re
from datetime import datetime


_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$')


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    if not date_str:
        return False
    try:
        datetime.strptime(date_str, '%Y-%m-%d')
        return True
    except (TypeError, ValueError):
        return False


def validate_time_format(time_str: str) -> bool:
    """
    Validate time is HH:MM (or HH:MM:SS), 24-hour clock.

    Args:
        time_str: Time string to validate

    Returns:
        True if valid format
    """
    if not time_str:
        return False
    return bool(_TIME_PATTERN.match(time_str.strip()))


def validate_time_range(time_from: str, time_to: str) -> bool:
    """
    Validate that end time is after start time.

    Missing bounds are accepted; only a complete range is checked.
    """
    if not time_from or not time_to:
        return True
    if not (validate_time_format(time_from) and validate_time_format(time_to)):
        return False
    # Zero-padded 24h strings compare chronologically
    return time_from.strip() < time_to.strip()


def validate_password(password: str, min_length: int = 6) -> tuple:
    """
    Validate password strength.

    Args:
        password: Password to validate
        min_length: Minimum password length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not password:
        return False, 'Password is required'

    if len(password) < min_length:
        return False, f'Password must be at least {min_length} characters'

    return True, ''


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip whitespace
    sanitized = text.strip()

    # Limit length if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
