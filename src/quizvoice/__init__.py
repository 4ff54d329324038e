"""quizvoice - audio cache and preload pipeline for spoken quiz questions."""

__version__ = "0.1.0"
__all__ = ["AudioCache", "AudioPreloader", "QuizAudioSession"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "AudioCache":
        from .cache import AudioCache

        return AudioCache
    if name == "AudioPreloader":
        from .preload import AudioPreloader

        return AudioPreloader
    if name == "QuizAudioSession":
        from .quiz import QuizAudioSession

        return QuizAudioSession
    raise AttributeError(f"module 'quizvoice' has no attribute {name!r}")
