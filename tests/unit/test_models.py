"""Unit tests for data model validation."""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from quizvoice.preload.models import (
    WARM_UP_OPTIONS,
    WARM_UP_PHRASES,
    ItemState,
    PreloadOptions,
    PreloadRequest,
    PreloadResult,
)
from quizvoice.quiz.models import Question, load_questions
from quizvoice.tts.models import VoiceInfo, VoiceSettings


class TestVoiceModels:
    """Test VoiceInfo and VoiceSettings validation."""

    def test_voice_info_requires_id_and_name(self) -> None:
        with pytest.raises(ValueError, match="voice_id cannot be empty"):
            VoiceInfo(voice_id=" ", name="Adam", provider="elevenlabs")
        with pytest.raises(ValueError, match="name cannot be empty"):
            VoiceInfo(voice_id="abc", name="", provider="elevenlabs")

    def test_voice_settings_defaults(self) -> None:
        assert VoiceSettings().to_dict() == {
            "stability": 0.5,
            "similarity_boost": 0.75,
            "style": 0.0,
            "use_speaker_boost": True,
        }

    @pytest.mark.parametrize("field", ["stability", "similarity_boost", "style"])
    def test_voice_settings_range(self, field: str) -> None:
        with pytest.raises(ValueError, match=f"{field} must be between 0.0 and 1.0"):
            VoiceSettings(**{field: 1.5})


class TestPreloadModels:
    """Test PreloadOptions, ItemState and PreloadResult."""

    def test_option_defaults(self) -> None:
        options = PreloadOptions()
        assert options.max_concurrent == 3
        assert options.delay_between_requests_ms == 200
        assert options.retry_attempts == 2

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"max_concurrent": 0}, "max_concurrent must be at least 1"),
            ({"delay_between_requests_ms": -1}, "cannot be negative"),
            ({"retry_attempts": -1}, "retry_attempts cannot be negative"),
        ],
    )
    def test_invalid_options(self, kwargs: dict, message: str) -> None:
        with pytest.raises(ValueError, match=message):
            PreloadOptions(**kwargs)

    def test_terminal_states(self) -> None:
        assert {s for s in ItemState if s.terminal} == {ItemState.DONE, ItemState.FAILED}

    def test_result_tracks_failures_separately(self) -> None:
        result = PreloadResult()
        result["ok"] = "handle"
        error = RuntimeError("boom")
        result.record_failure("bad", error)

        assert dict(result) == {"ok": "handle"}
        assert result.failures["bad"] is error
        assert repr(result) == "PreloadResult(resolved=1, failed=1)"
        with pytest.raises(TypeError):
            result.failures["other"] = error  # type: ignore[index]

    def test_warm_up_defaults(self) -> None:
        assert len(WARM_UP_PHRASES) == 8
        assert "Correct!" in WARM_UP_PHRASES
        assert WARM_UP_OPTIONS.max_concurrent == 2
        assert WARM_UP_OPTIONS.delay_between_requests_ms == 500


class TestQuestion:
    """Test Question validation and loading."""

    def test_from_dict_accepts_camel_case_answer(self) -> None:
        question = Question.from_dict(
            {"id": 7, "text": "2 + 2?", "options": ["3", "4"], "correctAnswer": 1}
        )

        assert question.id == "7"
        assert question.options == ("3", "4")
        assert question.correct_answer == 1
        assert question.to_request() == PreloadRequest(id="7", text="2 + 2?")

    def test_answer_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            Question(id="q", text="?", options=("a",), correct_answer=2)

    def test_empty_text_rejected(self) -> None:
        with pytest.raises(ValueError, match="text cannot be empty"):
            Question(id="q", text="  ")

    def test_load_questions_list(self, tmp_path: Path) -> None:
        path = tmp_path / "questions.json"
        path.write_text(json.dumps([{"id": "q1", "text": "First?"}]))

        assert [q.text for q in load_questions(path)] == ["First?"]

    def test_load_questions_wrapped(self, tmp_path: Path) -> None:
        path = tmp_path / "quiz.json"
        path.write_text(
            json.dumps({"title": "Math", "questions": [{"id": "a", "text": "A?"}]})
        )

        assert load_questions(path)[0].id == "a"

    def test_load_questions_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Invalid questions file"):
            load_questions(path)

    def test_load_questions_missing_field(self, tmp_path: Path) -> None:
        path = tmp_path / "partial.json"
        path.write_text(json.dumps([{"text": "No id"}]))

        with pytest.raises(ValueError, match="Malformed question"):
            load_questions(path)

    def test_load_questions_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "shape.json"
        path.write_text(json.dumps({"items": []}))

        with pytest.raises(ValueError, match="Expected a list of questions"):
            load_questions(path)

    def test_load_questions_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_questions(tmp_path / "nope.json")
