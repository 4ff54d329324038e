"""Unit tests for SpeechClient validation, classification and file handling."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from quizvoice.providers.base import TTSProvider
from quizvoice.tts.client import MAX_TEXT_LENGTH, SpeechClient
from quizvoice.tts.errors import (
    ErrorCode,
    TTSAuthError,
    TTSNetworkError,
    TTSValidationError,
)
from quizvoice.tts.models import VoiceInfo, VoiceSettings


class RecordingProvider(TTSProvider):
    """Provider returning fixed bytes or raising a scripted error."""

    def __init__(self, audio: bytes = b"mp3-bytes", error: Exception | None = None) -> None:
        self.audio = audio
        self.error = error
        self.calls: list[tuple[str, str, VoiceSettings | None]] = []

    async def synthesize(
        self, text: str, voice: str, settings: VoiceSettings | None = None
    ) -> bytes:
        self.calls.append((text, voice, settings))
        if self.error is not None:
            raise self.error
        return self.audio

    async def list_voices(self) -> list[VoiceInfo]:
        return [VoiceInfo(voice_id="v1", name="Test", provider="recording")]


class WavProvider(RecordingProvider):
    content_type = "audio/wav"


class TestSpeechClientValidation:
    """Test text validation before any provider call."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   \n"])
    async def test_empty_text_rejected(self, text: str, tmp_path: Path) -> None:
        provider = RecordingProvider()
        client = SpeechClient(provider, audio_dir=tmp_path)

        with pytest.raises(
            TTSValidationError, match="Text content is required for speech generation"
        ):
            await client.synthesize(text)

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_too_long_text_rejected(self, tmp_path: Path) -> None:
        client = SpeechClient(RecordingProvider(), audio_dir=tmp_path)

        with pytest.raises(TTSValidationError, match="Maximum length is 5000") as exc_info:
            await client.synthesize("a" * (MAX_TEXT_LENGTH + 1))

        assert exc_info.value.code is ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_max_length_text_accepted(self, tmp_path: Path) -> None:
        client = SpeechClient(RecordingProvider(), audio_dir=tmp_path)
        handle = await client.synthesize("a" * MAX_TEXT_LENGTH)
        assert handle.size_bytes == len(b"mp3-bytes")


class TestSpeechClientSynthesis:
    """Test handle creation and error mapping."""

    @pytest.mark.asyncio
    async def test_writes_clip_and_returns_handle(self, tmp_path: Path) -> None:
        provider = RecordingProvider(audio=b"x" * 1234)
        settings = VoiceSettings(stability=0.3)
        client = SpeechClient(provider, voice="adam", audio_dir=tmp_path)

        handle = await client.synthesize("  What is 2 + 2?  ", settings)

        assert provider.calls == [("What is 2 + 2?", "adam", settings)]
        assert handle.size_bytes == 1234
        assert handle.content_type == "audio/mpeg"
        assert handle.path.parent == tmp_path
        assert handle.path.suffix == ".mp3"
        assert handle.read_bytes() == b"x" * 1234

    @pytest.mark.asyncio
    async def test_clip_written_off_the_event_loop(self, tmp_path: Path) -> None:
        client = SpeechClient(RecordingProvider(audio=b"abc"), audio_dir=tmp_path)
        to_thread = AsyncMock(side_effect=asyncio.to_thread)

        with patch("quizvoice.tts.client.asyncio.to_thread", to_thread):
            handle = await client.synthesize("Hello")

        to_thread.assert_awaited_once_with(handle.path.write_bytes, b"abc")
        assert handle.read_bytes() == b"abc"

    @pytest.mark.asyncio
    async def test_extension_follows_content_type(self, tmp_path: Path) -> None:
        client = SpeechClient(WavProvider(), audio_dir=tmp_path)
        handle = await client.synthesize("Hello")
        assert handle.path.suffix == ".wav"
        assert handle.content_type == "audio/wav"

    @pytest.mark.asyncio
    async def test_typed_provider_errors_pass_through(self, tmp_path: Path) -> None:
        error = TTSAuthError("bad key")
        client = SpeechClient(RecordingProvider(error=error), audio_dir=tmp_path)

        with pytest.raises(TTSAuthError) as exc_info:
            await client.synthesize("Hello")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_untyped_provider_errors_classified(self, tmp_path: Path) -> None:
        client = SpeechClient(
            RecordingProvider(error=ConnectionError("refused")), audio_dir=tmp_path
        )

        with pytest.raises(TTSNetworkError) as exc_info:
            await client.synthesize("Hello")

        assert exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_list_voices_delegates(self, tmp_path: Path) -> None:
        client = SpeechClient(RecordingProvider(), audio_dir=tmp_path)
        voices = await client.list_voices()
        assert [v.voice_id for v in voices] == ["v1"]


class TestSpeechClientScratchDirectory:
    """Test ownership of the scratch directory."""

    @pytest.mark.asyncio
    async def test_owned_directory_removed_on_close(self) -> None:
        client = SpeechClient(RecordingProvider())
        handle = await client.synthesize("Hello")
        audio_dir = handle.path.parent
        assert audio_dir.name.startswith("quizvoice-")

        client.close()

        assert not audio_dir.exists()

    @pytest.mark.asyncio
    async def test_supplied_directory_kept_on_close(self, tmp_path: Path) -> None:
        client = SpeechClient(RecordingProvider(), audio_dir=tmp_path)
        handle = await client.synthesize("Hello")

        client.close()

        assert tmp_path.exists()
        assert handle.path.exists()

    def test_from_provider_name_unknown(self) -> None:
        with pytest.raises(KeyError, match="Provider 'nope' not found"):
            SpeechClient.from_provider_name("nope")
