"""Data models for the in-memory audio cache."""

from dataclasses import dataclass
from typing import Generic, TypeVar

H = TypeVar("H")


@dataclass
class CacheEntry(Generic[H]):
    """Cache entry holding one audio resource.

    Attributes:
        handle: Opaque audio resource owned by the cache
        last_accessed: Monotonic time of the last insert or hit
        size_bytes: Bytes charged against the cache budget
    """

    handle: H
    last_accessed: float
    size_bytes: int


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of cache occupancy."""

    entries: int
    total_bytes: int
    total_mb: float
