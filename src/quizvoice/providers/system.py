"""Offline narration through the operating system speech command.

Used when a quiz runs without an ElevenLabs key.
"""

import asyncio
import logging
import platform
import shutil
import subprocess
import tempfile
from pathlib import Path

from ..tts.errors import TTSError, TTSValidationError
from ..tts.models import VoiceInfo, VoiceSettings
from .base import TTSProvider

logger = logging.getLogger(__name__)


class SystemTTSProvider(TTSProvider):
    """Narrates questions with `say` (macOS) or `espeak` (Linux).

    Clips are WAV. Quality is well below the cloud voices.
    """

    content_type = "audio/wav"

    def __init__(self) -> None:
        """Initialize system TTS provider and detect platform.

        Raises:
            TTSError: If the platform has no supported speech command
        """
        self.platform = platform.system()

        if self.platform not in ("Darwin", "Linux"):
            raise TTSError(f"Unsupported platform for system TTS: {self.platform}")

        logger.warning(
            "Using system TTS - quality will be robotic compared to AI voices. "
            "For better quality, set ELEVENLABS_API_KEY and use provider 'elevenlabs'"
        )

    async def synthesize(
        self, text: str, voice: str, settings: VoiceSettings | None = None
    ) -> bytes:
        """Convert text to WAV bytes using the platform speech command.

        Raises:
            TTSValidationError: If the requested voice is rejected
            TTSError: If the speech command is missing or fails
        """
        with tempfile.TemporaryDirectory(prefix="quizvoice-system-") as tmp:
            output_path = Path(tmp) / "speech.wav"

            if self.platform == "Darwin":
                aiff_path = Path(tmp) / "speech.aiff"
                cmd = ["say", "-o", str(aiff_path)]
                if voice:
                    cmd.extend(["-v", voice])
                cmd.append(text)
                await self._run(cmd)
                # Convert AIFF to WAV for pygame compatibility
                await self._run(
                    ["afconvert", "-f", "WAVE", "-d", "LEI16", str(aiff_path), str(output_path)]
                )
            else:
                if shutil.which("espeak") is None:
                    raise TTSError(
                        "espeak not found. Install it with: sudo apt-get install espeak"
                    )
                cmd = ["espeak", "-w", str(output_path)]
                if voice:
                    cmd.extend(["-v", voice])
                cmd.append(text)
                await self._run(cmd)

            return output_path.read_bytes()

    async def _run(self, cmd: list[str]) -> None:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
        )
        _, stderr = await proc.communicate()

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            if "voice" in message.lower():
                raise TTSValidationError(f"System TTS rejected voice: {message}")
            raise TTSError(
                f"{cmd[0]} failed with code {proc.returncode}: {message}"
            )

    async def list_voices(self) -> list[VoiceInfo]:
        """List available system voices."""
        voices: list[VoiceInfo] = []

        if self.platform == "Darwin":
            cmd = ["say", "-v", "?"]
            column = 0
            skip = 0
        else:
            cmd = ["espeak", "--voices"]
            column = 1
            skip = 1  # header line

        try:
            result = await asyncio.to_thread(
                subprocess.run, cmd, capture_output=True, text=True, check=True
            )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning(f"Failed to list system voices: {e}")
        else:
            for line in result.stdout.strip().splitlines()[skip:]:
                parts = line.split()
                if len(parts) > column:
                    voices.append(
                        VoiceInfo(
                            voice_id=parts[column],
                            name=parts[column],
                            provider="system",
                        )
                    )

        if not voices:
            voices.append(
                VoiceInfo(voice_id="default", name="Default System Voice", provider="system")
            )

        return voices
