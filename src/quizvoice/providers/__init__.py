"""Speech providers available to quiz sessions.

Providers are looked up by the name given in ``[tts] provider`` or on the
command line.
"""

from typing import TYPE_CHECKING, Any, ClassVar

if TYPE_CHECKING:
    from .base import TTSProvider

from .elevenlabs import ElevenLabsProvider
from .system import SystemTTSProvider

__all__ = ["ProviderRegistry"]


class ProviderRegistry:
    """Name -> provider class lookup shared by the CLI and SpeechClient."""

    _providers: ClassVar[dict[str, type["TTSProvider"]]] = {}

    @classmethod
    def register(cls, name: str, provider_class: type["TTSProvider"]) -> None:
        cls._providers[name] = provider_class

    @classmethod
    def get(cls, name: str) -> type["TTSProvider"]:
        """Return the provider class registered under name.

        Raises:
            KeyError: If no provider has that name
        """
        try:
            return cls._providers[name]
        except KeyError:
            available = ", ".join(sorted(cls._providers)) or "none"
            raise KeyError(
                f"Provider '{name}' not found. Available providers: {available}"
            ) from None

    @classmethod
    def create(cls, name: str, **kwargs: Any) -> "TTSProvider":
        """Instantiate a provider; kwargs go to its constructor.

        Raises:
            KeyError: If no provider has that name
            TTSError: If the provider cannot start (missing key, platform)
        """
        return cls.get(name)(**kwargs)

    @classmethod
    def names(cls) -> list[str]:
        return sorted(cls._providers)


ProviderRegistry.register("elevenlabs", ElevenLabsProvider)
ProviderRegistry.register("system", SystemTTSProvider)
