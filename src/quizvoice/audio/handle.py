"""Playable audio resources produced by speech synthesis."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class AudioHandle:
    """A synthesized clip stored in a scratch file.

    The handle owns its file. Calling release() deletes it; the handle is
    unusable afterwards and further release() calls are ignored.
    """

    def __init__(
        self, path: Path, size_bytes: int, content_type: str = "audio/mpeg"
    ) -> None:
        self.path = path
        self.size_bytes = size_bytes
        self.content_type = content_type
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def read_bytes(self) -> bytes:
        """Return the audio payload.

        Raises:
            RuntimeError: If the handle was already released
        """
        if self._released:
            raise RuntimeError(f"Audio handle {self.path.name} was released")
        return self.path.read_bytes()

    def release(self) -> None:
        """Delete the backing file."""
        if self._released:
            logger.warning(f"Ignoring second release of audio handle {self.path.name}")
            return
        self._released = True
        self.path.unlink(missing_ok=True)
        logger.debug(f"Released audio handle {self.path.name}")

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"AudioHandle({self.path.name!r}, {self.size_bytes} bytes, {state})"
