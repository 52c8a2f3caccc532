"""
Utility package exports
"""

from app.utils.locks import KeyedLocks, AsyncKeyedLocks
from app.utils.retry import backoff_delay

__all__ = ["KeyedLocks", "AsyncKeyedLocks", "backoff_delay"]
