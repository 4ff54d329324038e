"""Configuration management for quizvoice.

Loads configuration from ~/.config/quizvoice/config.toml.
Priority chain: CLI flags > env vars > config file.
"""

import os
import sys
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

CONFIG_DIR = Path.home() / ".config" / "quizvoice"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# quizvoice configuration

[tts]
# Provider: "elevenlabs" (cloud) or "system" (OS built-in, offline)
provider = "elevenlabs"

# Voice ID for speech synthesis (empty = provider default)
# ElevenLabs: use `quizvoice voices --provider elevenlabs`
voice = ""

# ElevenLabs model ID
model = "eleven_turbo_v2_5"

[cache]
# In-memory audio cache limits for one quiz session
max_entries = 100
max_mb = 50

[preload]
# Synthesis calls allowed in flight at once
max_concurrent = 3

# Pause after each preloaded question, to stay under provider rate limits
delay_between_requests_ms = 200

# Retries after the first failed call (transient failures only)
retry_attempts = 2

# Preload common feedback phrases before the first question
warm_up = true

[retry]
base_delay_ms = 1000
max_delay_ms = 10000
backoff_factor = 2.0
jitter_ms = 0

[circuit]
# Stop calling the provider after repeated failures
enabled = true
failure_threshold = 3
recovery_timeout = 30.0

# API keys are read from environment variables, not this file:
#   ELEVENLABS_API_KEY  - ElevenLabs provider
"""


@dataclass(frozen=True)
class TTSConfig:
    """TTS provider configuration."""

    provider: str
    voice: str
    model: str


@dataclass(frozen=True)
class CacheConfig:
    """Audio cache limits."""

    max_entries: int
    max_mb: float

    @property
    def max_bytes(self) -> int:
        return int(self.max_mb * 1024 * 1024)


@dataclass(frozen=True)
class PreloadConfig:
    """Preload pipeline defaults."""

    max_concurrent: int
    delay_between_requests_ms: int
    retry_attempts: int
    warm_up: bool


@dataclass(frozen=True)
class RetryConfig:
    """Backoff parameters."""

    base_delay_ms: int
    max_delay_ms: int
    backoff_factor: float
    jitter_ms: int


@dataclass(frozen=True)
class CircuitConfig:
    """Circuit breaker settings."""

    enabled: bool
    failure_threshold: int
    recovery_timeout: float


@dataclass(frozen=True)
class QuizvoiceConfig:
    """Top-level quizvoice configuration."""

    tts: TTSConfig
    cache: CacheConfig
    preload: PreloadConfig
    retry: RetryConfig
    circuit: CircuitConfig


_cached_config: QuizvoiceConfig | None = None


def generate_config(path: Path | None = None, overwrite: bool = True) -> Path:
    """Write the default config file.

    Raises:
        FileExistsError: If the file exists and overwrite is False
    """
    path = path or CONFIG_PATH
    if path.exists() and not overwrite:
        raise FileExistsError(str(path))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def default_config() -> QuizvoiceConfig:
    """Configuration built from DEFAULT_CONFIG without touching the filesystem."""
    return parse_config(tomllib.loads(DEFAULT_CONFIG))


def parse_config(data: dict[str, Any]) -> QuizvoiceConfig:
    """Build a validated config from parsed TOML plus env var overrides.

    Raises:
        ValueError: If required values are missing or have the wrong type
    """
    tts = data.get("tts", {})
    cache = data.get("cache", {})
    preload = data.get("preload", {})
    retry = data.get("retry", {})
    circuit = data.get("circuit", {})

    # Validate required fields
    missing = []
    if "provider" not in tts:
        missing.append("tts.provider")
    if "max_entries" not in cache:
        missing.append("cache.max_entries")
    if "max_mb" not in cache:
        missing.append("cache.max_mb")
    if "max_concurrent" not in preload:
        missing.append("preload.max_concurrent")

    if missing:
        raise ValueError(f"Missing required config values: {', '.join(missing)}")

    try:
        return QuizvoiceConfig(
            tts=TTSConfig(
                provider=os.getenv("QUIZVOICE_PROVIDER", tts["provider"]),
                voice=os.getenv("QUIZVOICE_VOICE", tts.get("voice", "")),
                model=os.getenv(
                    "QUIZVOICE_MODEL", tts.get("model", "eleven_turbo_v2_5")
                ),
            ),
            cache=CacheConfig(
                max_entries=int(cache["max_entries"]),
                max_mb=float(cache["max_mb"]),
            ),
            preload=PreloadConfig(
                max_concurrent=int(
                    os.getenv("QUIZVOICE_MAX_CONCURRENT", preload["max_concurrent"])
                ),
                delay_between_requests_ms=int(
                    preload.get("delay_between_requests_ms", 200)
                ),
                retry_attempts=int(preload.get("retry_attempts", 2)),
                warm_up=bool(preload.get("warm_up", True)),
            ),
            retry=RetryConfig(
                base_delay_ms=int(retry.get("base_delay_ms", 1000)),
                max_delay_ms=int(retry.get("max_delay_ms", 10000)),
                backoff_factor=float(retry.get("backoff_factor", 2.0)),
                jitter_ms=int(retry.get("jitter_ms", 0)),
            ),
            circuit=CircuitConfig(
                enabled=bool(circuit.get("enabled", True)),
                failure_threshold=int(circuit.get("failure_threshold", 3)),
                recovery_timeout=float(circuit.get("recovery_timeout", 30.0)),
            ),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid config value: {e}") from e


def load_config(path: Path | None = None) -> QuizvoiceConfig:
    """Load configuration from config file with env var overrides.

    On first run, generates the config file and exits so the user
    can review it before proceeding.

    Returns:
        Loaded and validated QuizvoiceConfig.

    Raises:
        SystemExit: If config is missing (after generating) or invalid.
    """
    global _cached_config
    if _cached_config is not None and path is None:
        return _cached_config

    config_path = path or CONFIG_PATH
    if not config_path.exists():
        generated = generate_config(config_path)
        print(
            f"No config found. Generated {generated} - review and run again.",
            file=sys.stderr,
        )
        raise SystemExit(1)

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        config = parse_config(data)
    except (tomllib.TOMLDecodeError, ValueError) as e:
        print(f"{e}", file=sys.stderr)
        print(f"Edit {config_path} or delete it to regenerate.", file=sys.stderr)
        raise SystemExit(1) from None

    if path is None:
        _cached_config = config
    return config


def reset_config_cache() -> None:
    global _cached_config
    _cached_config = None
