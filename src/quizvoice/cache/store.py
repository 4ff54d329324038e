"""Memory-resident LRU cache for synthesized question audio.

Entries are keyed by normalized question text and bounded by two budgets, an
entry count and a byte total. Every insert re-checks both budgets and evicts
least-recently-used entries until they hold again. Evicted, replaced and
cleared entries have their audio resource released exactly once.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from typing import Any, Generic

from .models import CacheEntry, CacheStats, H

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100
DEFAULT_MAX_BYTES = 50 * 1024 * 1024

_BYTES_PER_MB = 1024 * 1024
_NO_REPLACEMENT = object()


def normalize_key(text: str) -> str:
    """Collapse whitespace so equivalent question text shares one entry."""
    return " ".join(text.split())


def release_handle(handle: Any) -> None:
    """Default release hook: call handle.release() when the handle has one."""
    release = getattr(handle, "release", None)
    if callable(release):
        release()


class AudioCache(Generic[H]):
    """LRU cache with dual entry-count and byte-size limits.

    Example:
        cache = AudioCache(max_entries=2)
        cache.set("a", handle_a, 1000)
        cache.set("b", handle_b, 1000)
        cache.set("c", handle_c, 1000)   # evicts and releases handle_a

        cache.get("a")  # None
        cache.get("b")  # handle_b, now most recently used
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        max_bytes: int = DEFAULT_MAX_BYTES,
        release: Callable[[H], None] = release_handle,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            max_entries: Maximum number of live entries (>= 1)
            max_bytes: Maximum aggregate size in bytes (>= 1)
            release: Called exactly once with each handle the cache drops
            clock: Monotonic time source for recency timestamps

        Raises:
            ValueError: If either limit is below 1
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        if max_bytes < 1:
            raise ValueError(f"max_bytes must be at least 1, got {max_bytes}")

        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self._release = release
        self._clock = clock

        # Iteration order is recency order: first item is least recently used.
        self._entries: OrderedDict[str, CacheEntry[H]] = OrderedDict()
        self._total_bytes = 0

    @property
    def entry_count(self) -> int:
        return len(self._entries)

    @property
    def total_bytes(self) -> int:
        return self._total_bytes

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and normalize_key(key) in self._entries

    def keys(self) -> Iterator[str]:
        """Iterate keys from least to most recently used."""
        return iter(list(self._entries))

    def get(self, key: str) -> H | None:
        """Return the cached handle for key and mark it most recently used.

        Returns:
            The handle, or None on a miss (a miss changes nothing)
        """
        normalized = normalize_key(key)
        entry = self._entries.get(normalized)
        if entry is None:
            return None

        entry.last_accessed = self._clock()
        self._entries.move_to_end(normalized)
        return entry.handle

    def set(self, key: str, handle: H, size_bytes: int) -> None:
        """Insert handle under key, replacing and releasing any previous entry.

        Eviction runs afterwards. The entry just inserted is never evicted by
        this call, so a single clip larger than max_bytes stays cached on its
        own until something else displaces it.

        Raises:
            ValueError: If size_bytes is negative
        """
        if size_bytes < 0:
            raise ValueError(f"size_bytes cannot be negative, got {size_bytes}")

        normalized = normalize_key(key)
        if normalized in self._entries:
            self._drop(normalized, replacement=handle)

        self._entries[normalized] = CacheEntry(
            handle=handle, last_accessed=self._clock(), size_bytes=size_bytes
        )
        self._total_bytes += size_bytes

        self.cleanup(protect=normalized)

    def remove(self, key: str) -> None:
        """Release and delete the entry for key; unknown keys are ignored."""
        normalized = normalize_key(key)
        if normalized in self._entries:
            self._drop(normalized)

    def clear(self) -> None:
        """Release every entry and reset the counters."""
        count = len(self._entries)
        for key in list(self._entries):
            self._drop(key)
        self._entries.clear()
        self._total_bytes = 0
        if count:
            logger.info(f"Cleared audio cache ({count} entries)")

    def cleanup(self, protect: str | None = None) -> None:
        """Evict least-recently-used entries until both limits hold.

        Args:
            protect: Normalized key that must not be evicted in this pass
        """
        while (
            len(self._entries) > self.max_entries
            or self._total_bytes > self.max_bytes
        ):
            victim = next((key for key in self._entries if key != protect), None)
            if victim is None:
                # Nothing evictable is left.
                break
            logger.debug(
                f"Evicting '{victim[:50]}' "
                f"(entries={len(self._entries)}, bytes={self._total_bytes})"
            )
            self._drop(victim)

    def stats(self) -> CacheStats:
        return CacheStats(
            entries=len(self._entries),
            total_bytes=self._total_bytes,
            total_mb=round(self._total_bytes / _BYTES_PER_MB, 2),
        )

    def _drop(self, key: str, replacement: Any = _NO_REPLACEMENT) -> None:
        entry = self._entries.pop(key)
        self._total_bytes -= entry.size_bytes

        if entry.handle is replacement:
            return
        if any(other.handle is entry.handle for other in self._entries.values()):
            # Still reachable through another key.
            return

        try:
            self._release(entry.handle)
        except Exception as e:
            logger.warning(f"Failed to release audio for '{key[:50]}': {e}")
