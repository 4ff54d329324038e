"""Quiz session controller owning the audio cache for one quiz."""

import logging
from collections.abc import Sequence

from ..audio.handle import AudioHandle
from ..cache.models import CacheStats
from ..cache.store import AudioCache
from ..config import QuizvoiceConfig
from ..preload.circuit import CircuitBreaker
from ..preload.models import PreloadOptions, PreloadResult
from ..preload.pipeline import AudioPreloader
from ..preload.retry import RetryPolicy
from ..tts.client import SpeechClient
from .models import Question

logger = logging.getLogger(__name__)


class QuizAudioSession:
    """Audio for a single quiz session.

    Owns the cache, the speech client and the preloader. Create one when a
    quiz starts and close it when the quiz ends, preferably with
    ``async with``, so every clip is released on every exit path.

    Example:
        async with QuizAudioSession.from_config(load_config()) as session:
            await session.start(questions)
            handle = await session.audio_for(questions[0])
            if handle is None:
                ...  # fall back to text-only mode
    """

    def __init__(
        self,
        client: SpeechClient,
        cache: AudioCache[AudioHandle] | None = None,
        options: PreloadOptions | None = None,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        warm_up: bool = True,
    ) -> None:
        self.client = client
        self.cache: AudioCache[AudioHandle] = cache or AudioCache()
        self.preloader: AudioPreloader[AudioHandle] = AudioPreloader(
            self.cache,
            client,
            options=options,
            retry_policy=retry_policy,
            circuit_breaker=circuit_breaker,
        )
        self.warm_up = warm_up
        self._closed = False

    @classmethod
    def from_config(
        cls, config: QuizvoiceConfig, client: SpeechClient | None = None
    ) -> "QuizAudioSession":
        """Build a session from configuration.

        Raises:
            KeyError: If the configured provider is unknown
            TTSAuthError: If the provider cannot authenticate
            ValueError: If a configured limit is invalid
        """
        if client is None:
            provider_kwargs = (
                {"model_id": config.tts.model}
                if config.tts.provider == "elevenlabs"
                else {}
            )
            client = SpeechClient.from_provider_name(
                config.tts.provider, voice=config.tts.voice, **provider_kwargs
            )

        breaker = (
            CircuitBreaker(
                failure_threshold=config.circuit.failure_threshold,
                recovery_timeout=config.circuit.recovery_timeout,
            )
            if config.circuit.enabled
            else None
        )

        return cls(
            client,
            cache=AudioCache(
                max_entries=config.cache.max_entries,
                max_bytes=config.cache.max_bytes,
            ),
            options=PreloadOptions(
                max_concurrent=config.preload.max_concurrent,
                delay_between_requests_ms=config.preload.delay_between_requests_ms,
                retry_attempts=config.preload.retry_attempts,
            ),
            retry_policy=RetryPolicy(
                base_delay_ms=config.retry.base_delay_ms,
                max_delay_ms=config.retry.max_delay_ms,
                backoff_factor=config.retry.backoff_factor,
                jitter_ms=config.retry.jitter_ms,
            ),
            circuit_breaker=breaker,
            warm_up=config.preload.warm_up,
        )

    async def __aenter__(self) -> "QuizAudioSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    async def start(self, questions: Sequence[Question]) -> PreloadResult:
        """Warm up (if enabled) and preload audio for every question.

        Returns:
            Preload result keyed by question text; questions missing from it
            should be presented without audio
        """
        self._ensure_open()
        if self.warm_up:
            await self.preloader.warm_up()

        result = await self.preloader.preload_batch(
            [question.to_request() for question in questions]
        )
        logger.info(
            f"Quiz audio ready for {len(result)}/{len(questions)} questions"
        )
        return result

    async def audio_for(self, question: Question) -> AudioHandle | None:
        """Return audio for a question, loading it on demand if needed.

        Returns:
            The handle, or None when audio is unavailable
        """
        self._ensure_open()
        cached = self.preloader.get_cached(question.text)
        if cached is not None:
            return cached
        return await self.preloader.preload_single(question.text)

    def stats(self) -> CacheStats:
        return self.cache.stats()

    def close(self) -> None:
        """Release every clip and remove the client's scratch files."""
        if self._closed:
            return
        self._closed = True
        try:
            self.preloader.close()
        finally:
            self.client.close()
        logger.info("Quiz audio session closed")

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Quiz audio session is closed")
