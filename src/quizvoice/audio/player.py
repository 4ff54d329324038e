"""pygame playback of cached question clips."""

# ruff: noqa: E402
import os

# Must be set before pygame is imported
os.environ["PYGAME_HIDE_SUPPORT_PROMPT"] = "1"

import warnings

warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import asyncio
import shutil
from pathlib import Path

import pygame

from .handle import AudioHandle


class AudioPlayer:
    """Plays AudioHandle clips through the default output device."""

    def __init__(self) -> None:
        """Start the pygame mixer.

        Raises:
            RuntimeError: If no audio device can be opened
        """
        try:
            pygame.mixer.init()
        except pygame.error as e:
            raise RuntimeError(f"Failed to initialize pygame audio mixer: {e}") from e

    def play(self, handle: AudioHandle) -> None:
        """Play a clip from its scratch file, blocking until it ends.

        Raises:
            ValueError: If the handle was already released
            RuntimeError: If pygame cannot decode or play the clip
        """
        if handle.released:
            raise ValueError("Cannot play a released audio handle")

        try:
            pygame.mixer.music.load(str(handle.path))
            pygame.mixer.music.play()
            while pygame.mixer.music.get_busy():
                pygame.time.Clock().tick(10)
        except pygame.error as e:
            raise RuntimeError(f"Failed to play audio: {e}") from e

    async def play_async(self, handle: AudioHandle) -> None:
        await asyncio.to_thread(self.play, handle)

    @staticmethod
    def save_to_file(handle: AudioHandle, filepath: str | Path) -> Path:
        """Copy a clip out of the cache so it outlives the session.

        Raises:
            ValueError: If the handle was already released
            OSError: If the copy fails
        """
        if handle.released:
            raise ValueError("Cannot save a released audio handle")

        filepath = Path(filepath)
        try:
            filepath.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(handle.path, filepath)
        except OSError as e:
            raise OSError(f"Failed to save audio to {filepath}: {e}") from e
        return filepath
