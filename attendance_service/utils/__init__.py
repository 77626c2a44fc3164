"""
Utility modules package.
"""

from .locks import KeyedLock
from .timing import format_uptime, parse_timestamp, retry_with_backoff

__all__ = [
    'KeyedLock',
    'format_uptime',
    'parse_timestamp',
    'retry_with_backoff',
]
