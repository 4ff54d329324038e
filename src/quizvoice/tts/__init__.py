"""TTS (Text-to-Speech) package for quizvoice.

This package turns question text into playable audio using a registered
provider, and defines the error taxonomy used by the preload pipeline.
"""

from .client import SpeechClient
from .errors import (
    ErrorCode,
    TTSAPIError,
    TTSAuthError,
    TTSError,
    TTSNetworkError,
    TTSValidationError,
    classify_error,
    is_transient,
)
from .models import VoiceInfo, VoiceSettings

__all__ = [
    "ErrorCode",
    "SpeechClient",
    "TTSAPIError",
    "TTSAuthError",
    "TTSError",
    "TTSNetworkError",
    "TTSValidationError",
    "VoiceInfo",
    "VoiceSettings",
    "classify_error",
    "is_transient",
]
