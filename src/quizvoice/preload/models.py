"""Request, option and result types for audio preloading."""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, TypeVar

H = TypeVar("H")


@dataclass(frozen=True)
class PreloadRequest:
    """A question identifier plus the text to speak.

    Args:
        id: Question identifier, used only for logging
        text: Text to synthesize
    """

    id: str
    text: str


@dataclass(frozen=True)
class PreloadOptions:
    """Batch preload settings.

    Args:
        max_concurrent: Synthesis calls allowed in flight at once (>= 1)
        delay_between_requests_ms: Pause after each item, holding its slot
        retry_attempts: Retries after the first failed call (>= 0)
    """

    max_concurrent: int = 3
    delay_between_requests_ms: int = 200
    retry_attempts: int = 2

    def __post_init__(self) -> None:
        """Validate preload options."""
        if self.max_concurrent < 1:
            raise ValueError(
                f"max_concurrent must be at least 1, got {self.max_concurrent}"
            )
        if self.delay_between_requests_ms < 0:
            raise ValueError(
                "delay_between_requests_ms cannot be negative, "
                f"got {self.delay_between_requests_ms}"
            )
        if self.retry_attempts < 0:
            raise ValueError(
                f"retry_attempts cannot be negative, got {self.retry_attempts}"
            )


class ItemState(str, Enum):
    """Lifecycle of a single preload item."""

    PENDING = "pending"
    FETCHING = "fetching"
    RETRY = "retry"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ItemState.DONE, ItemState.FAILED)


@dataclass
class PreloadItem(Generic[H]):
    """Mutable progress record for one request inside a batch."""

    request: PreloadRequest
    state: ItemState = ItemState.PENDING
    attempts: int = 0
    handle: H | None = None
    error: BaseException | None = None
    cache_hit: bool = False


class PreloadResult(dict[str, Any]):
    """Mapping of request text to handle for every resolved item.

    Failed items are absent from the mapping; their final errors are kept in
    the read-only ``failures`` view so callers can fall back per question.
    """

    def __init__(self) -> None:
        super().__init__()
        self._failures: dict[str, BaseException] = {}

    @property
    def failures(self) -> MappingProxyType[str, BaseException]:
        return MappingProxyType(self._failures)

    def record_failure(self, text: str, error: BaseException) -> None:
        self._failures[text] = error

    def __repr__(self) -> str:
        return (
            f"PreloadResult(resolved={len(self)}, failed={len(self._failures)})"
        )


WARM_UP_PHRASES: tuple[str, ...] = (
    "Correct!",
    "Incorrect. The correct answer is",
    "Great job!",
    "Try again.",
    "Quiz completed!",
    "Loading next question...",
    "Please select an answer.",
    "Time's up!",
)

WARM_UP_OPTIONS = PreloadOptions(max_concurrent=2, delay_between_requests_ms=500)
