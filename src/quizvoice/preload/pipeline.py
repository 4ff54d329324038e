"""Audio preload pipeline for quiz sessions.

Coordinates AudioCache, ConcurrencyLimiter, the retry wrapper and an optional
CircuitBreaker so a quiz can warm the audio for a whole set of questions
before it starts, or fetch a single clip on demand, without overrunning the
speech service.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Generic, Protocol, TypeVar

from ..cache.models import CacheStats
from ..cache.store import AudioCache, normalize_key
from ..tts.errors import TTSError
from ..tts.models import VoiceSettings
from .circuit import CircuitBreaker
from .limiter import ConcurrencyLimiter
from .models import (
    WARM_UP_OPTIONS,
    WARM_UP_PHRASES,
    ItemState,
    PreloadItem,
    PreloadOptions,
    PreloadRequest,
    PreloadResult,
)
from .retry import RetryPolicy, with_retry

logger = logging.getLogger(__name__)

H = TypeVar("H")
H_co = TypeVar("H_co", covariant=True)

# Rough MP3 size per character of text, used when a clip does not report
# its own size.
BYTES_PER_CHARACTER = 100


class SynthesisClient(Protocol[H_co]):
    """Anything that turns text into a playable audio handle."""

    async def synthesize(
        self, text: str, voice_settings: VoiceSettings | None = None
    ) -> H_co: ...


def estimate_size(text: str) -> int:
    """Approximate clip size in bytes from the length of its text."""
    return len(text) * BYTES_PER_CHARACTER


def _clip(text: str) -> str:
    return f"{text[:50]}{'...' if len(text) > 50 else ''}"


@dataclass
class _Flight(Generic[H]):
    """A synthesis call shared by every request for the same text.

    Every waiting item sees the flight's attempts and retries as its own.
    """

    items: list[PreloadItem[H]]
    attempts: int = 0
    task: "asyncio.Task[H]" = field(init=False)

    def join(self, item: PreloadItem[H]) -> None:
        item.attempts = self.attempts
        self.items.append(item)

    def leave(self, item: PreloadItem[H]) -> None:
        self.items.remove(item)

    @property
    def waiters(self) -> int:
        return len(self.items)


class AudioPreloader(Generic[H]):
    """Cache-first audio loader with bounded concurrency and retries.

    Example:
        cache = AudioCache()
        preloader = AudioPreloader(cache, speech_client)

        async with preloader:
            result = await preloader.preload_batch(
                [PreloadRequest(id="q1", text="What is 2 + 2?")],
                PreloadOptions(max_concurrent=2),
            )
            handle = result.get("What is 2 + 2?")  # None if it failed
    """

    def __init__(
        self,
        cache: AudioCache[H],
        client: SynthesisClient[H],
        options: PreloadOptions | None = None,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        voice_settings: VoiceSettings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the preloader.

        Args:
            cache: Cache that receives every synthesized clip
            client: Speech synthesis client
            options: Defaults for batches and single loads
            retry_policy: Backoff delays; max_attempts is taken from the
                options' retry_attempts for each call
            circuit_breaker: Optional breaker around each retried call
            voice_settings: Passed through to the client
            sleep: Awaitable sleep used for pacing and backoff
        """
        self.cache = cache
        self.client = client
        self.options = options or PreloadOptions()
        self.retry_policy = retry_policy or RetryPolicy()
        self.circuit_breaker = circuit_breaker
        self.voice_settings = voice_settings
        self._sleep = sleep
        self._inflight: dict[str, _Flight[H]] = {}

    async def __aenter__(self) -> "AudioPreloader[H]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    async def preload_batch(
        self,
        requests: Iterable[PreloadRequest],
        options: PreloadOptions | None = None,
    ) -> PreloadResult:
        """Make sure every request's audio is cached.

        Items are admitted through a limiter in submission order and then run
        independently. A failing item is logged and left out of the result;
        it never aborts the batch.

        Args:
            requests: Questions to load
            options: Overrides the preloader's default options

        Returns:
            Mapping of request text to handle for every item that resolved
        """
        options = options or self.options
        limiter = ConcurrencyLimiter(options.max_concurrent)
        result = PreloadResult()
        items: list[PreloadItem[H]] = [PreloadItem(request=r) for r in requests]

        if not items:
            return result

        logger.debug(
            f"Preloading {len(items)} clips "
            f"(max_concurrent={options.max_concurrent}, "
            f"retry_attempts={options.retry_attempts})"
        )

        async def run(item: PreloadItem[H]) -> None:
            await limiter.acquire(lambda: self._process(item, options, result))

        await asyncio.gather(*(run(item) for item in items))

        hits = sum(1 for item in items if item.cache_hit)
        logger.info(
            f"Preloaded {len(result)}/{len(items)} clips "
            f"({hits} from cache, {len(result.failures)} failed)"
        )
        return result

    async def preload_single(self, text: str) -> H | None:
        """Return audio for one text, synthesizing it on a cache miss.

        Uses the same cache-first and retry behaviour as a batch item but
        without the limiter or pacing.

        Returns:
            The handle, or None if synthesis ultimately failed
        """
        item: PreloadItem[H] = PreloadItem(request=PreloadRequest(id="", text=text))
        try:
            return await self._resolve(item, self.options.retry_attempts)
        except Exception as e:
            self._transition(item, ItemState.FAILED)
            logger.error(f"Failed to load audio for '{_clip(text)}': {e!r}")
            return None

    async def warm_up(self) -> PreloadResult:
        """Preload common feedback phrases. Never raises on failure."""
        requests = [
            PreloadRequest(id=f"warm-up-{i}", text=phrase)
            for i, phrase in enumerate(WARM_UP_PHRASES)
        ]
        try:
            return await self.preload_batch(requests, WARM_UP_OPTIONS)
        except Exception as e:
            logger.warning(f"Failed to warm up audio cache: {e!r}")
            return PreloadResult()

    def get_cached(self, text: str) -> H | None:
        return self.cache.get(text)

    def is_cached(self, text: str) -> bool:
        return text in self.cache

    def stats(self) -> CacheStats:
        return self.cache.stats()

    def close(self) -> None:
        """Cancel in-flight synthesis and release every cached clip."""
        for flight in list(self._inflight.values()):
            flight.task.cancel()
        self._inflight.clear()
        self.cache.clear()

    async def _process(
        self,
        item: PreloadItem[H],
        options: PreloadOptions,
        result: PreloadResult,
    ) -> None:
        text = item.request.text
        try:
            handle = await self._resolve(item, options.retry_attempts)
        except Exception as e:
            item.error = e
            self._transition(item, ItemState.FAILED)
            result.record_failure(text, e)
            logger.warning(
                f"Failed to preload audio for question {item.request.id!r} "
                f"'{_clip(text)}': {e!r}"
            )
            return

        result[text] = handle
        if options.delay_between_requests_ms > 0:
            await self._sleep(options.delay_between_requests_ms / 1000)

    async def _resolve(self, item: PreloadItem[H], retry_attempts: int) -> H:
        text = item.request.text
        cached = self.cache.get(text)
        if cached is not None:
            item.cache_hit = True
            item.handle = cached
            logger.debug(f"Cache hit for '{_clip(text)}'")
            self._transition(item, ItemState.DONE)
            return cached

        logger.debug(f"Cache miss for '{_clip(text)}'")
        self._transition(item, ItemState.FETCHING)
        handle = await self._join_flight(item, retry_attempts)
        item.handle = handle
        self._transition(item, ItemState.DONE)
        return handle

    async def _join_flight(self, item: PreloadItem[H], retry_attempts: int) -> H:
        text = item.request.text
        key = normalize_key(text)
        flight = self._inflight.get(key)
        if flight is None:
            flight = _Flight(items=[])
            flight.task = asyncio.create_task(
                self._fetch_and_store(flight, text, retry_attempts)
            )
            self._inflight[key] = flight
            flight.task.add_done_callback(
                lambda _task, key=key, flight=flight: self._forget(key, flight)
            )
        else:
            logger.debug(
                f"Item {item.request.id!r} joining in-flight synthesis for "
                f"'{_clip(key)}' (attempts so far={flight.attempts})"
            )

        flight.join(item)
        try:
            return await asyncio.shield(flight.task)
        except asyncio.CancelledError:
            if flight.waiters == 1 and not flight.task.done():
                # Last interested caller is gone.
                flight.task.cancel()
            raise
        finally:
            flight.leave(item)

    def _forget(self, key: str, flight: _Flight[H]) -> None:
        if self._inflight.get(key) is flight:
            del self._inflight[key]

    async def _fetch_and_store(
        self, flight: _Flight[H], text: str, retry_attempts: int
    ) -> H:
        policy = replace(self.retry_policy, max_attempts=retry_attempts + 1)

        async def attempt() -> H:
            flight.attempts += 1
            for item in flight.items:
                item.attempts = flight.attempts
            return await self.client.synthesize(text, self.voice_settings)

        def on_retry(attempt_number: int, error: TTSError) -> None:
            for item in flight.items:
                self._transition(item, ItemState.RETRY)

        async def retried() -> H:
            return await with_retry(
                attempt, policy, on_retry=on_retry, sleep=self._sleep
            )

        if self.circuit_breaker is not None:
            handle = await self.circuit_breaker.call(retried)
        else:
            handle = await retried()

        size = getattr(handle, "size_bytes", None)
        if not isinstance(size, int) or size <= 0:
            size = estimate_size(text)
        self.cache.set(text, handle, size)
        return handle

    @staticmethod
    def _transition(item: PreloadItem[H], state: ItemState) -> None:
        logger.debug(
            f"Item {item.request.id!r}: {item.state.value} -> {state.value} "
            f"(attempts={item.attempts})"
        )
        item.state = state
