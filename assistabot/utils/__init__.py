"""
Shared utilities for AssistaBot.

This module provides common utility functions used across the application:
- Logging configuration and setup
- Date/time parsing utilities
- Async helpers and decorators
- File helpers for atomic JSON persistence
- Constants
"""

import os
import json
import logging
import asyncio
import tempfile
from datetime import datetime
from typing import Optional, Any, Callable
from functools import wraps

import pytz
import dateparser


# =============================================================================
# Logging Utilities
# =============================================================================

LOGGER_NAMESPACE = 'assistabot'

# discord.py loggers that are too chatty at INFO
NOISY_LOGGERS = ('discord.http', 'discord.gateway', 'discord.client')


def setup_logging(
    name: str = LOGGER_NAMESPACE,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logging with console and optional file handlers.

    Args:
        name: Logger name
        level: Logging level (default: INFO)
        log_file: Optional file path for log output
        format_string: Custom format string

    Returns:
        Configured logger instance
    """
    if format_string is None:
        format_string = '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s'

    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (if specified)
    if log_file:
        ensure_directory(log_file)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(f'{LOGGER_NAMESPACE}.{name}')


# =============================================================================
# File Utilities
# =============================================================================

def ensure_directory(path: str) -> None:
    """Ensure the parent directory of a file path exists."""
    directory = os.path.dirname(path)
    if directory and not os.path.exists(directory):
        os.makedirs(directory, exist_ok=True)


def read_json_file(path: str, default: Any = None) -> Any:
    """
    Read a JSON document from disk.

    Args:
        path: File path
        default: Value returned when the file does not exist

    Returns:
        Parsed JSON data, or ``default`` if the file is missing

    Raises:
        ValueError: If the file exists but is not valid JSON
    """
    if not os.path.exists(path):
        return default
    with open(path, 'r', encoding='utf-8') as fh:
        return json.load(fh)


def write_json_atomic(path: str, data: Any) -> None:
    """
    Write a JSON document atomically.

    The payload goes to a temporary file in the target directory which then
    replaces the destination, so a crash mid-write never truncates the file.

    Args:
        path: Destination file path
        data: JSON-serializable data
    """
    ensure_directory(path)
    directory = os.path.dirname(path) or '.'
    fd, tmp_path = tempfile.mkstemp(
        prefix=f'.{os.path.basename(path)}.',
        suffix='.tmp',
        dir=directory,
    )
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as fh:
            json.dump(data, fh, indent=2)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


# =============================================================================
# Date/Time Utilities
# =============================================================================

def parse_datetime(datetime_string: Optional[str]) -> Optional[datetime]:
    """
    Parse a timestamp string returned by a platform API.

    Naive results are assumed to be UTC.

    Args:
        datetime_string: e.g. "2025-01-15T10:00:00Z"

    Returns:
        Timezone-aware datetime or None if parsing fails
    """
    if not datetime_string:
        return None

    parsed = dateparser.parse(
        datetime_string,
        settings={'RETURN_AS_TIMEZONE_AWARE': True, 'TO_TIMEZONE': 'UTC'},
    )
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = pytz.UTC.localize(parsed)
    return parsed


def to_unix_timestamp(dt: datetime) -> int:
    """Convert a datetime to a Unix timestamp (naive datetimes are UTC)."""
    if dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)
    return int(dt.timestamp())


# =============================================================================
# Async Utilities
# =============================================================================

def async_retry(
    retries: int = 2,
    delay: float = 0.3,
    backoff: float = 2.0,
    exceptions: tuple = (Exception,),
):
    """
    Decorator for retrying async functions with exponential backoff.

    Args:
        retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for delay after each retry
        exceptions: Tuple of exceptions to catch and retry
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < retries:
                        await asyncio.sleep(current_delay)
                        current_delay *= backoff
                    continue

            raise last_exception

        return wrapper
    return decorator


# =============================================================================
# String and Number Utilities
# =============================================================================

def truncate(text: str, max_length: int = 100, suffix: str = '...') -> str:
    """Truncate text to a maximum length."""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix


def safe_int(value: Any, fallback: int = 0) -> int:
    """
    Safely convert a value to integer.

    Args:
        value: Value to convert
        fallback: Fallback value if conversion fails

    Returns:
        Integer value
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


# =============================================================================
# Constants
# =============================================================================

BOT_VERSION = "1.0.0"

# Discord embed limits
EMBED_TITLE_LIMIT = 256
EMBED_DESCRIPTION_LIMIT = 4096
EMBED_AUTHOR_LIMIT = 256
MESSAGE_CONTENT_LIMIT = 2000


__all__ = [
    # Logging
    'LOGGER_NAMESPACE',
    'setup_logging',
    'get_logger',
    # Files
    'ensure_directory',
    'read_json_file',
    'write_json_atomic',
    # Date/Time
    'parse_datetime',
    'to_unix_timestamp',
    # Async
    'async_retry',
    # String
    'truncate',
    'safe_int',
    # Constants
    'BOT_VERSION',
    'EMBED_TITLE_LIMIT',
    'EMBED_DESCRIPTION_LIMIT',
    'EMBED_AUTHOR_LIMIT',
    'MESSAGE_CONTENT_LIMIT',
]
