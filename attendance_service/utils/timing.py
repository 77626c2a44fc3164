"""
Timing utilities.

Helper functions for time-related operations.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

from ..errors import ValidationError

T = TypeVar('T')


def format_uptime(seconds: float) -> str:
    """
    Format uptime in human-readable format.
    
    Args:
        seconds: Uptime in seconds
    
    Returns:
        Formatted string (e.g., "1d 2h 30m 45s")
    """
    seconds = int(seconds)
    
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    
    parts = []
    if days > 0:
        parts.append(f'{days}d')
    if hours > 0:
        parts.append(f'{hours}h')
    if minutes > 0:
        parts.append(f'{minutes}m')
    parts.append(f'{secs}s')
    
    return ' '.join(parts)


def parse_timestamp(value: Any, default: Optional[datetime] = None) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.
    
    Accepts a trailing 'Z' as sent by browsers. Naive values are taken as UTC.
    
    Args:
        value: ISO-8601 string, datetime or None
        default: Returned when value is None (current time if not given)
    
    Raises:
        ValidationError: If value cannot be parsed
    """
    if value is None:
        moment = default or datetime.now(timezone.utc)
    elif isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f'Invalid timestamp: {value!r}') from e
    else:
        raise ValidationError(f'Invalid timestamp: {value!r}')
    
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def retry_with_backoff(
    func: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)
) -> T:
    """
    Retry function with exponential backoff.
    
    Args:
        func: Function to retry
        max_attempts: Maximum number of attempts
        initial_delay: Initial delay in seconds
        backoff_factor: Backoff multiplier
        retry_on: Exception types that trigger a retry
    
    Returns:
        Function result
    
    Raises:
        Last exception if all attempts fail
    """
    delay = initial_delay
    last_exception: BaseException | None = None
    
    for attempt in range(max_attempts):
        try:
            return func()
        except retry_on as e:
            last_exception = e
            if attempt < max_attempts - 1:
                time.sleep(delay)
                delay *= backoff_factor
    
    if last_exception:
        raise last_exception
    
    raise RuntimeError('Retry failed with no exception')
