"""Clock abstraction for testing.

Cache expiry and lock timestamps read the current time through this ABC so
tests can move the clock without sleeping.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract time operations for dependency injection."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
