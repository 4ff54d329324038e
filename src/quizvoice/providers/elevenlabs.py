"""ElevenLabs cloud voices for question narration."""

import asyncio
import os

from elevenlabs.client import ElevenLabs

from ..tts.errors import TTSAPIError, TTSAuthError, TTSError, classify_error
from ..tts.models import VoiceInfo, VoiceSettings
from .base import TTSProvider

# Adam, the voice the quiz has always used.
DEFAULT_VOICE_ID = "pNInz6obpgDQGcFmaJgB"
DEFAULT_MODEL_ID = "eleven_turbo_v2_5"


class ElevenLabsProvider(TTSProvider):
    """Narrates questions with an ElevenLabs voice.

    Wraps the synchronous ElevenLabs SDK and runs each request in a worker
    thread so the event loop stays responsive while clips are generated.
    """

    content_type = "audio/mpeg"

    def __init__(
        self, api_key: str | None = None, model_id: str = DEFAULT_MODEL_ID
    ) -> None:
        """Create the SDK client.

        Args:
            api_key: Falls back to the ELEVENLABS_API_KEY environment variable
            model_id: Synthesis model, from ``[tts] model``

        Raises:
            TTSAuthError: If no key is available or the SDK rejects it
        """
        self._api_key = api_key or os.getenv("ELEVENLABS_API_KEY")
        if not self._api_key:
            raise TTSAuthError(
                "ElevenLabs API key not found. Set ELEVENLABS_API_KEY environment "
                "variable or provide api_key parameter."
            )

        try:
            self._client = ElevenLabs(api_key=self._api_key)
        except Exception as e:
            raise TTSAuthError(
                f"Failed to initialize ElevenLabs client: {e}", original_error=e
            ) from e

        self.model_id = model_id
        # Voice list is fetched once per provider
        self._voices_cache: list[VoiceInfo] | None = None

    async def synthesize(
        self, text: str, voice: str, settings: VoiceSettings | None = None
    ) -> bytes:
        """Convert text to speech audio bytes (MP3).

        Raises:
            TTSAuthError: If authentication fails
            TTSAPIError: If the API rejects or fails the request
            TTSNetworkError: If the API cannot be reached
        """
        voice_id = voice or DEFAULT_VOICE_ID
        voice_settings = settings or VoiceSettings()

        def _sync_convert() -> bytes:
            audio_generator = self._client.text_to_speech.convert(
                text=text,
                voice_id=voice_id,
                model_id=self.model_id,
                voice_settings=voice_settings.to_dict(),
            )
            # Collect all audio chunks
            return b"".join(audio_generator)

        try:
            audio_bytes = await asyncio.to_thread(_sync_convert)
        except TTSError:
            raise
        except Exception as e:
            raise classify_error(e) from e

        if not audio_bytes:
            raise TTSAPIError("No audio data received from API")

        return audio_bytes

    async def list_voices(self) -> list[VoiceInfo]:
        """Voices on the account, fetched once and then reused."""
        if self._voices_cache is not None:
            return self._voices_cache

        def _sync_get_voices() -> list[VoiceInfo]:
            response = self._client.voices.get_all()
            return [
                VoiceInfo(
                    voice_id=voice.voice_id,
                    name=voice.name,
                    provider="elevenlabs",
                    category=getattr(voice, "category", None),
                )
                for voice in response.voices
            ]

        try:
            voices = await asyncio.to_thread(_sync_get_voices)
        except TTSError:
            raise
        except Exception as e:
            raise classify_error(e) from e

        self._voices_cache = voices
        return voices
