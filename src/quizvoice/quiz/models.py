"""Quiz question model and loading."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..preload.models import PreloadRequest


@dataclass(frozen=True)
class Question:
    """A generated multiple-choice question.

    Args:
        id: Question identifier
        text: Question text, spoken to the player
        options: Answer choices
        correct_answer: Index into options
    """

    id: str
    text: str
    options: tuple[str, ...] = field(default_factory=tuple)
    correct_answer: int = 0

    def __post_init__(self) -> None:
        """Validate question shape."""
        if not self.id or not self.id.strip():
            raise ValueError("id cannot be empty")
        if not self.text or not self.text.strip():
            raise ValueError("text cannot be empty")
        if self.options and not 0 <= self.correct_answer < len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} out of range "
                f"for {len(self.options)} options"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        return cls(
            id=str(data["id"]),
            text=data["text"],
            options=tuple(data.get("options", ())),
            correct_answer=int(data.get("correctAnswer", data.get("correct_answer", 0))),
        )

    def to_request(self) -> PreloadRequest:
        return PreloadRequest(id=self.id, text=self.text)


def load_questions(path: str | Path) -> list[Question]:
    """Read questions from a JSON file.

    The file holds either a list of questions or an object with a
    ``questions`` list, as saved by the quiz generator.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the JSON is malformed or a question is invalid
    """
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid questions file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of questions in {path}")

    try:
        return [Question.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed question in {path}: {e!r}") from e
