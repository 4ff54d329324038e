"""Abstract base class for text-to-speech providers.

This module defines the interface that all TTS providers must implement,
ensuring consistent behavior across different TTS backends.
"""

from abc import ABC, abstractmethod

from ..tts.models import VoiceInfo, VoiceSettings


class TTSProvider(ABC):
    """Abstract base class for text-to-speech providers.

    Providers turn text into raw audio bytes. Failures must be raised as
    TTSError subclasses carrying an ErrorCode so callers can tell transient
    problems from permanent ones.
    """

    #: MIME type of the bytes returned by synthesize()
    content_type: str = "audio/mpeg"

    @abstractmethod
    async def synthesize(
        self, text: str, voice: str, settings: VoiceSettings | None = None
    ) -> bytes:
        """Convert text to audio bytes.

        Args:
            text: The text to convert to speech
            voice: Voice ID or name to use for synthesis
            settings: Optional voice tuning, ignored by providers without it

        Returns:
            Audio data as bytes

        Raises:
            TTSError: If synthesis fails
        """
        pass

    @abstractmethod
    async def list_voices(self) -> list[VoiceInfo]:
        """Return available voices for this provider.

        Raises:
            TTSError: If voice listing fails
        """
        pass
