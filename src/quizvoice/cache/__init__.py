"""In-memory audio cache for quiz sessions."""

from .models import CacheEntry, CacheStats
from .store import AudioCache, normalize_key, release_handle

__all__ = ["AudioCache", "CacheEntry", "CacheStats", "normalize_key", "release_handle"]
