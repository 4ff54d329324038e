"""Speech synthesis client producing playable audio handles."""

import asyncio
import logging
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from ..audio.handle import AudioHandle
from .errors import TTSError, TTSValidationError, classify_error
from .models import VoiceInfo, VoiceSettings

if TYPE_CHECKING:
    from ..providers.base import TTSProvider

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 5000

_EXTENSIONS = {"audio/mpeg": ".mp3", "audio/wav": ".wav"}


class SpeechClient:
    """Client that synthesizes question text into AudioHandle objects.

    Each clip is written to a scratch directory owned by the client. Handles
    delete their own file on release; close() removes whatever is left.
    """

    def __init__(
        self,
        provider: "TTSProvider",
        voice: str = "",
        audio_dir: Path | None = None,
    ) -> None:
        """Initialize speech client.

        Args:
            provider: TTS provider that produces the audio bytes
            voice: Voice ID passed to the provider (provider default if empty)
            audio_dir: Directory for clip files. A private temporary directory
                is created on first use if not provided.
        """
        self.provider = provider
        self.voice = voice
        self._audio_dir = audio_dir
        self._owns_dir = audio_dir is None

    @classmethod
    def from_provider_name(
        cls, name: str, voice: str = "", **provider_kwargs: object
    ) -> "SpeechClient":
        """Create a client for a registered provider.

        Raises:
            KeyError: If provider not found
            TTSAuthError: If the provider cannot authenticate
        """
        from ..providers import ProviderRegistry

        return cls(ProviderRegistry.create(name, **provider_kwargs), voice=voice)

    @property
    def audio_dir(self) -> Path:
        if self._audio_dir is None:
            self._audio_dir = Path(tempfile.mkdtemp(prefix="quizvoice-"))
            logger.debug(f"Created audio scratch directory {self._audio_dir}")
        return self._audio_dir

    async def synthesize(
        self, text: str, voice_settings: VoiceSettings | None = None
    ) -> AudioHandle:
        """Convert text to a playable audio handle.

        Args:
            text: Text to speak
            voice_settings: Optional voice tuning

        Returns:
            Handle to the clip; the caller owns it and must release it

        Raises:
            TTSValidationError: If text is empty or too long
            TTSError: If the provider fails, classified by ErrorCode
        """
        if not text or not text.strip():
            raise TTSValidationError("Text content is required for speech generation")
        if len(text) > MAX_TEXT_LENGTH:
            raise TTSValidationError(
                f"Text is too long. Maximum length is {MAX_TEXT_LENGTH} characters."
            )

        try:
            audio = await self.provider.synthesize(
                text.strip(), self.voice, voice_settings
            )
        except TTSError:
            raise
        except Exception as e:
            raise classify_error(e) from e

        content_type = self.provider.content_type
        path = self.audio_dir / f"{uuid.uuid4().hex}{_EXTENSIONS.get(content_type, '.bin')}"
        await asyncio.to_thread(path.write_bytes, audio)

        logger.debug(f"Synthesized {len(audio)} bytes for '{text[:50]}' into {path.name}")
        return AudioHandle(path, len(audio), content_type)

    async def list_voices(self) -> list[VoiceInfo]:
        return await self.provider.list_voices()

    def close(self) -> None:
        """Remove the scratch directory if this client created it."""
        if self._owns_dir and self._audio_dir is not None:
            shutil.rmtree(self._audio_dir, ignore_errors=True)
            logger.debug(f"Removed audio scratch directory {self._audio_dir}")
            self._audio_dir = None
