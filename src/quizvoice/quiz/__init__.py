"""Quiz-side consumers of the audio pipeline."""

from .models import Question, load_questions
from .session import QuizAudioSession

__all__ = ["Question", "QuizAudioSession", "load_questions"]
