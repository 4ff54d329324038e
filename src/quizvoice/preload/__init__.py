"""Concurrency-controlled audio preloading."""

from .circuit import CircuitBreaker, CircuitOpenError, CircuitState
from .limiter import ConcurrencyLimiter
from .models import (
    ItemState,
    PreloadItem,
    PreloadOptions,
    PreloadRequest,
    PreloadResult,
)
from .pipeline import AudioPreloader, estimate_size
from .retry import RetryPolicy, with_retry

__all__ = [
    "AudioPreloader",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "ConcurrencyLimiter",
    "ItemState",
    "PreloadItem",
    "PreloadOptions",
    "PreloadRequest",
    "PreloadResult",
    "RetryPolicy",
    "estimate_size",
    "with_retry",
]
