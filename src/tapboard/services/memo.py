"""Timestamped cache entries for short-lived memoization."""

import time
from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class TimedEntry(Generic[T]):
    value: T
    stored_at: float

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        return now - self.stored_at < ttl_seconds


@dataclass
class Memo(Generic[T]):
    """Holds at most one value for ttl_seconds."""

    ttl_seconds: float
    clock: Callable[[], float] = time.monotonic
    entry: Optional[TimedEntry[T]] = field(default=None)

    def get(self) -> Optional[T]:
        if self.entry and self.entry.is_fresh(self.clock(), self.ttl_seconds):
            return self.entry.value
        return None

    def put(self, value: T) -> T:
        self.entry = TimedEntry(value=value, stored_at=self.clock())
        return value

    def clear(self) -> None:
        self.entry = None
