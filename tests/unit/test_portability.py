"""
Unit tests for JSON export/import of knowledge state.

Import must validate everything before returning; a single malformed
record rejects the whole blob.
"""

import json
from datetime import datetime

import pytest

from quizdeck.core.errors import MalformedStateError
from quizdeck.core.models import RatingState, SM2State, Stage
from quizdeck.scheduling.portability import export_state, import_state, read_state_text
from quizdeck.scheduling.tracker import DailyGoal, SessionStats


@pytest.fixture
def sm2_states(now):
    return {
        "q1": SM2State(
            "q1",
            correct_streak=3,
            total_reviews=4,
            correct_reviews=3,
            last_answered_at=now,
            confidence_history=[1, 2, 3],
            ease_factor=2.18,
            interval=15,
            repetitions=3,
            due_at=now + 1000,
            stage=Stage.REVIEW,
        ),
        "q2": SM2State("q2", due_at=now),
    }


class TestRoundTrip:
    def test_sm2_states(self, sm2_states):
        text = export_state("sm2", sm2_states)
        imported = import_state(text, "sm2", SM2State)

        assert imported.states == sm2_states
        assert imported.session is None
        assert imported.goal is None

    def test_rating_states(self):
        states = {
            "a": RatingState("a", rating=10, correct_streak=10),
            "b": RatingState("b", rating=0, incorrect_count=3, last_answered_at=5),
        }
        imported = import_state(export_state("rating", states), "rating", RatingState)
        assert imported.states == states

    def test_session_and_goal(self, now):
        session = SessionStats(started_at=now, questions_answered=3, correct_answers=2, elapsed_ms=9000)
        goal = DailyGoal(completed_count=3, streak_days=4, last_active_date="2024-03-01")

        imported = import_state(
            export_state("rating", {}, session=session, goal=goal),
            "rating",
            RatingState,
        )
        assert imported.session == session
        assert imported.goal == goal

    def test_empty_map(self):
        assert import_state(export_state("sm2", {}), "sm2", SM2State).states == {}

    def test_export_metadata(self):
        text = export_state("sm2", {}, exported_at=datetime(2024, 3, 1, 10, 0, 0))
        data = json.loads(text)

        assert data["version"] == 1
        assert data["strategy"] == "sm2"
        assert data["exported_at"] == "2024-03-01T10:00:00"


class TestMalformed:
    def _blob(self, states, strategy="sm2"):
        return json.loads(export_state(strategy, states))

    def test_missing_required_field(self, sm2_states):
        blob = self._blob(sm2_states)
        del blob["states"]["q2"]["ease_factor"]

        with pytest.raises(MalformedStateError) as exc_info:
            import_state(json.dumps(blob), "sm2", SM2State)
        assert exc_info.value.question_id == "q2"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("ease_factor", 3.0),
            ("ease_factor", 1.0),
            ("interval", -1),
            ("stage", "expert"),
            ("correct_streak", "3"),
            ("confidence_history", [1, 7]),
            ("confidence_history", list(range(11))),
            ("correct_reviews", 5),
        ],
    )
    def test_out_of_range_values(self, sm2_states, field, value):
        blob = self._blob(sm2_states)
        blob["states"]["q1"][field] = value

        with pytest.raises(MalformedStateError):
            import_state(json.dumps(blob), "sm2", SM2State)

    def test_rating_out_of_range(self):
        blob = self._blob({"a": RatingState("a")}, strategy="rating")
        blob["states"]["a"]["rating"] = 11

        with pytest.raises(MalformedStateError):
            import_state(json.dumps(blob), "rating", RatingState)

    def test_more_correct_than_total_reviews(self):
        blob = self._blob({"a": RatingState("a")}, strategy="rating")
        blob["states"]["a"]["correct_reviews"] = 2

        with pytest.raises(MalformedStateError) as exc_info:
            import_state(json.dumps(blob), "rating", RatingState)
        assert exc_info.value.question_id == "a"
        assert "exceeds total_reviews" in str(exc_info.value)

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(MalformedStateError, match="UTF-8"):
            read_state_text(path)

    def test_invalid_json(self):
        with pytest.raises(MalformedStateError):
            import_state("{", "sm2", SM2State)

    def test_not_an_object(self):
        with pytest.raises(MalformedStateError):
            import_state("[]", "sm2", SM2State)

    def test_missing_states(self):
        with pytest.raises(MalformedStateError):
            import_state(json.dumps({"strategy": "sm2"}), "sm2", SM2State)

    def test_strategy_mismatch(self):
        text = export_state("rating", {"a": RatingState("a")})
        with pytest.raises(MalformedStateError):
            import_state(text, "sm2", SM2State)

    def test_bad_goal_date(self):
        blob = self._blob({})
        blob["goal"] = {
            "target_count": 20,
            "completed_count": 0,
            "target_minutes": 20,
            "minutes_spent": 0,
            "streak_days": 0,
            "last_active_date": "yesterday",
        }
        with pytest.raises(MalformedStateError):
            import_state(json.dumps(blob), "sm2", SM2State)
