"""Audio resources for quizvoice.

Playback lives in ``quizvoice.audio.player`` and is imported on demand so
that pygame is only loaded when audio is actually played.
"""

from .handle import AudioHandle

__all__ = ["AudioHandle"]
