"""Voice descriptions and per-request synthesis settings."""

from dataclasses import asdict, dataclass


@dataclass
class VoiceInfo:
    """A voice offered by a provider, as listed by ``quizvoice voices``.

    Args:
        voice_id: Identifier passed back to the provider when synthesizing
        name: Display name
        provider: Registry name of the provider offering the voice
        category: Provider-specific grouping, e.g. "premade"
    """

    voice_id: str
    name: str
    provider: str
    category: str | None = None

    def __post_init__(self) -> None:
        for field_name in ("voice_id", "name"):
            value = getattr(self, field_name)
            if not value or not value.strip():
                raise ValueError(f"{field_name} cannot be empty")


@dataclass(frozen=True)
class VoiceSettings:
    """ElevenLabs voice tuning applied to every question clip.

    The defaults are the ElevenLabs settings the quiz narrator has always
    used. Providers without tuning support ignore them.
    """

    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True

    def __post_init__(self) -> None:
        for field_name in ("stability", "similarity_boost", "style"):
            if not 0.0 <= getattr(self, field_name) <= 1.0:
                raise ValueError(f"{field_name} must be between 0.0 and 1.0")

    def to_dict(self) -> dict[str, float | bool]:
        """Settings in the shape the ElevenLabs SDK accepts."""
        return asdict(self)
