"""
Market Intelligence - Clock.

============================================================
RESPONSIBILITY
============================================================
Provides the time source used by the normalizer, store and
aggregator.

- Every timestamp in the pipeline is taken from an injected clock
- Enables deterministic staleness and cleanup tests
- UTC only, always timezone-aware

============================================================
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock(ABC):
    """Abstract interface for the pipeline clock."""
    
    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass
    
    def ago(self, **kwargs) -> datetime:
        """Get the UTC datetime `timedelta(**kwargs)` before now."""
        return self.now() - timedelta(**kwargs)


class SystemClock(Clock):
    """Production clock using actual system time."""
    
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MockClock(Clock):
    """
    Mock clock for testing.
    
    Allows time manipulation for deterministic tests.
    """
    
    def __init__(self, initial_time: Optional[datetime] = None):
        self._time = ensure_utc(initial_time or datetime.now(timezone.utc))
        self._lock = threading.Lock()
    
    def now(self) -> datetime:
        with self._lock:
            return self._time
    
    def set_time(self, new_time: datetime) -> None:
        """Set the current time."""
        with self._lock:
            self._time = ensure_utc(new_time)
    
    def advance(self, seconds: float = 0, **kwargs) -> None:
        """
        Advance time by the specified amount.
        
        Args:
            seconds: Number of seconds to advance
            **kwargs: Passed to timedelta (hours, minutes, days, etc.)
        """
        with self._lock:
            self._time = self._time + timedelta(seconds=seconds, **kwargs)
