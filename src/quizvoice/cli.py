"""Typer CLI definition for quizvoice."""

import asyncio
import logging
from dataclasses import replace
from pathlib import Path

import typer

from .audio.player import AudioPlayer
from .config import QuizvoiceConfig, generate_config, load_config
from .quiz.models import Question, load_questions
from .quiz.session import QuizAudioSession
from .tts.client import SpeechClient
from .tts.errors import TTSAuthError, TTSError

app = typer.Typer(help="Preload and play synthesized audio for quiz questions")


def configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")


def apply_overrides(
    config: QuizvoiceConfig,
    provider: str | None = None,
    voice: str | None = None,
    max_concurrent: int | None = None,
    warm_up: bool | None = None,
) -> QuizvoiceConfig:
    """Layer CLI flags over the loaded configuration."""
    tts = replace(
        config.tts,
        provider=provider or config.tts.provider,
        voice=voice if voice is not None else config.tts.voice,
    )
    preload = replace(
        config.preload,
        max_concurrent=max_concurrent or config.preload.max_concurrent,
        warm_up=config.preload.warm_up if warm_up is None else warm_up,
    )
    return replace(config, tts=tts, preload=preload)


async def run_preload(
    config: QuizvoiceConfig,
    questions: list[Question],
    play: bool = False,
    output_dir: Path | None = None,
) -> int:
    """Preload every question, report, then optionally play or save clips.

    Returns:
        Number of questions without audio
    """
    async with QuizAudioSession.from_config(config) as session:
        result = await session.start(questions)

        for question in questions:
            mark = "✓" if question.text in result else "✗"
            typer.echo(f"{mark} {question.id}: {question.text[:50]}")

        stats = session.stats()
        typer.echo(
            f"\nCache: {stats.entries} clips, {stats.total_mb} MB "
            f"({len(result.failures)} failed)"
        )

        player = AudioPlayer() if play else None

        if play or output_dir:
            for question in questions:
                handle = await session.audio_for(question)
                if handle is None:
                    typer.echo(f"No audio for {question.id}, skipping", err=True)
                    continue
                if output_dir:
                    suffix = handle.path.suffix or ".mp3"
                    saved = AudioPlayer.save_to_file(
                        handle, output_dir / f"{question.id}{suffix}"
                    )
                    typer.echo(f"Saved {saved}")
                if player is not None:
                    typer.echo(f"▶ {question.text}")
                    await player.play_async(handle)

        return len(questions) - len(result)


@app.command()
def preload(
    questions_file: Path = typer.Argument(
        ..., help="JSON file with generated questions"
    ),
    play: bool = typer.Option(
        False, "--play", help="Play each question after preloading"
    ),
    output_dir: Path | None = typer.Option(
        None, "-o", "--output-dir", help="Save each question's audio to this directory"
    ),
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="TTS provider (from config if omitted)"
    ),
    voice: str | None = typer.Option(
        None, "-v", "--voice", help="Voice ID (from config if omitted)"
    ),
    max_concurrent: int | None = typer.Option(
        None, "--max-concurrent", help="Synthesis calls allowed in flight at once"
    ),
    no_warm_up: bool = typer.Option(
        False, "--no-warm-up", help="Skip preloading common feedback phrases"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and cache activity"
    ),
) -> None:
    """Preload audio for every question in QUESTIONS_FILE."""
    configure_logging(debug)

    try:
        questions = load_questions(questions_file)
    except FileNotFoundError as e:
        if debug:
            typer.echo(f"Debug - File not found: {questions_file} ({e!r})", err=True)
        else:
            typer.echo(f"Error: File not found: {questions_file}", err=True)
        raise typer.Exit(1) from None
    except (OSError, ValueError) as e:
        if debug:
            typer.echo(f"Debug - Failed to load questions: {e!r}", err=True)
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    config = apply_overrides(
        load_config(),
        provider=provider,
        voice=voice,
        max_concurrent=max_concurrent,
        warm_up=False if no_warm_up else None,
    )

    try:
        missing = asyncio.run(run_preload(config, questions, play, output_dir))
    except TTSAuthError as e:
        if debug:
            typer.echo(f"Debug - Authentication error: {e!r}", err=True)
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except KeyError as e:
        typer.echo(f"Error: {e.args[0] if e.args else e}", err=True)
        raise typer.Exit(1) from None
    except (OSError, RuntimeError, ValueError) as e:
        if debug:
            typer.echo(f"Debug - {type(e).__name__}: {e!r}", err=True)
        else:
            typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    if missing:
        typer.echo(f"{missing} question(s) will run without audio", err=True)


@app.command()
def voices(
    provider: str | None = typer.Option(
        None, "-p", "--provider", help="TTS provider (from config if omitted)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Show verbose errors"),
) -> None:
    """List available voices."""
    configure_logging(debug)
    provider_name = provider or load_config().tts.provider

    async def _list() -> None:
        client = SpeechClient.from_provider_name(provider_name)
        try:
            for voice in await client.list_voices():
                typer.echo(f"{voice.name}: {voice.voice_id}")
        finally:
            client.close()

    try:
        asyncio.run(_list())
    except (KeyError, TTSError) as e:
        if debug:
            typer.echo(f"Debug - Failed to list voices: {e!r}", err=True)
        else:
            typer.echo(f"Error: Failed to list voices: {e}", err=True)
        raise typer.Exit(1) from None


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default configuration file."""
    try:
        path = generate_config(overwrite=force)
    except FileExistsError as e:
        typer.echo(f"Error: Config already exists at {e} (use --force)", err=True)
        raise typer.Exit(1) from None
    typer.echo(f"Wrote {path}")
