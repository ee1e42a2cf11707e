"""
JSON export/import of the knowledge-state map.

The exported blob is the portability format and also the on-disk format of
JsonStateFile:

    {
      "version": 1,
      "strategy": "sm2",
      "exported_at": "2024-03-01T10:00:00",
      "states": {"<question id>": {...record...}},
      "session": {...} | null,
      "goal": {...} | null
    }

Import validates every record before anything is returned. A single bad
record rejects the whole blob with MalformedStateError.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    ValidationError,
    field_validator,
    model_validator,
)

from quizdeck.core.errors import MalformedStateError
from quizdeck.core.models import CONFIDENCE_HISTORY_SIZE, KnowledgeState, Stage
from quizdeck.scheduling.tracker import DailyGoal, SessionStats

FORMAT_VERSION = 1


# =============================================================================
# Record schemas
# =============================================================================


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore")


class KnowledgeStateRecord(_Record):
    """Counters shared by every strategy."""

    correct_streak: StrictInt = Field(ge=0)
    incorrect_count: StrictInt = Field(ge=0)
    last_answered_at: StrictInt = Field(ge=0)
    total_reviews: StrictInt = Field(default=0, ge=0)
    correct_reviews: StrictInt = Field(default=0, ge=0)
    confidence_history: list[StrictInt] = Field(
        default_factory=list, max_length=CONFIDENCE_HISTORY_SIZE
    )

    @field_validator("confidence_history")
    @classmethod
    def _confidence_in_range(cls, value: list[int]) -> list[int]:
        for item in value:
            if not 0 <= item <= 3:
                raise ValueError(f"confidence {item} outside 0-3")
        return value

    @model_validator(mode="after")
    def _correct_within_total(self) -> KnowledgeStateRecord:
        if self.correct_reviews > self.total_reviews:
            raise ValueError(
                f"correct_reviews {self.correct_reviews} exceeds total_reviews {self.total_reviews}"
            )
        return self


class RatingStateRecord(KnowledgeStateRecord):
    rating: StrictInt = Field(ge=0, le=10)


class SM2StateRecord(KnowledgeStateRecord):
    ease_factor: StrictFloat = Field(ge=1.3, le=2.5)
    interval: StrictInt = Field(ge=0)
    repetitions: StrictInt = Field(ge=0)
    due_at: StrictInt = Field(ge=0)
    stage: Stage
    total_reviews: StrictInt = Field(ge=0)
    correct_reviews: StrictInt = Field(ge=0)


class SessionStatsRecord(_Record):
    started_at: StrictInt = Field(ge=0)
    questions_answered: StrictInt = Field(ge=0)
    correct_answers: StrictInt = Field(ge=0)
    streak: StrictInt = Field(ge=0)
    elapsed_ms: StrictInt = Field(ge=0)
    total_confidence: StrictInt = Field(default=0, ge=0)


class DailyGoalRecord(_Record):
    target_count: StrictInt = Field(ge=0)
    completed_count: StrictInt = Field(ge=0)
    target_minutes: StrictInt = Field(ge=0)
    minutes_spent: StrictInt = Field(ge=0)
    streak_days: StrictInt = Field(ge=0)
    last_active_date: str

    @field_validator("last_active_date")
    @classmethod
    def _iso_date(cls, value: str) -> str:
        if value:
            date.fromisoformat(value)
        return value


RECORD_MODELS: dict[str, type[KnowledgeStateRecord]] = {
    "rating": RatingStateRecord,
    "sm2": SM2StateRecord,
}


# =============================================================================
# Export / Import
# =============================================================================


@dataclass
class ImportedState:
    """Validated contents of an export blob."""

    strategy: str
    states: dict[str, KnowledgeState] = field(default_factory=dict)
    session: SessionStats | None = None
    goal: DailyGoal | None = None


def state_to_record(state: KnowledgeState) -> dict[str, Any]:
    """Plain JSON-safe dict for one state (question id is the map key)."""
    data = asdict(state)
    data.pop("question_id", None)
    if isinstance(data.get("stage"), Stage):
        data["stage"] = data["stage"].value
    return data


def export_state(
    strategy_name: str,
    states: dict[str, KnowledgeState],
    session: SessionStats | None = None,
    goal: DailyGoal | None = None,
    exported_at: datetime | None = None,
) -> str:
    """
    Serialize states plus optional session/goal snapshots.

    Returns:
        Indented JSON text
    """
    payload = {
        "version": FORMAT_VERSION,
        "strategy": strategy_name,
        "exported_at": (exported_at or datetime.now()).isoformat(timespec="seconds"),
        "states": {qid: state_to_record(state) for qid, state in states.items()},
        "session": asdict(session) if session is not None else None,
        "goal": asdict(goal) if goal is not None else None,
    }
    return json.dumps(payload, indent=2)


def read_state_text(path: Path) -> str:
    """
    Read an export blob from disk.

    Raises:
        MalformedStateError: If the file is not UTF-8 text
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedStateError(f"{path} is not valid UTF-8: {e}") from e


def import_state(
    text: str,
    strategy_name: str,
    state_type: type[KnowledgeState],
) -> ImportedState:
    """
    Parse and validate an export blob.

    Args:
        text: JSON produced by export_state
        strategy_name: Strategy of the running deployment
        state_type: Dataclass to build states with

    Returns:
        ImportedState with every record validated

    Raises:
        MalformedStateError: On invalid JSON, strategy mismatch or any
            record that is missing a field or holds an out-of-range value
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedStateError(f"Invalid JSON: {e}") from e

    if not isinstance(raw, dict):
        raise MalformedStateError("Export blob must be a JSON object")

    blob_strategy = raw.get("strategy", strategy_name)
    if blob_strategy != strategy_name:
        raise MalformedStateError(
            f"Export uses strategy '{blob_strategy}' but this deployment uses '{strategy_name}'"
        )

    record_model = RECORD_MODELS.get(strategy_name)
    if record_model is None:
        raise MalformedStateError(f"Unknown strategy '{strategy_name}'")

    raw_states = raw.get("states")
    if not isinstance(raw_states, dict):
        raise MalformedStateError("Export blob has no 'states' object")

    states: dict[str, KnowledgeState] = {}
    for question_id, record in raw_states.items():
        try:
            validated = record_model.model_validate(record)
        except ValidationError as e:
            raise MalformedStateError(
                f"Invalid state for question {question_id}: {e.errors()[0]['msg']}",
                question_id=question_id,
            ) from e
        states[question_id] = state_type(question_id=question_id, **validated.model_dump())

    session = None
    if raw.get("session") is not None:
        try:
            session = SessionStats(**SessionStatsRecord.model_validate(raw["session"]).model_dump())
        except ValidationError as e:
            raise MalformedStateError(f"Invalid session snapshot: {e.errors()[0]['msg']}") from e

    goal = None
    if raw.get("goal") is not None:
        try:
            goal = DailyGoal(**DailyGoalRecord.model_validate(raw["goal"]).model_dump())
        except ValidationError as e:
            raise MalformedStateError(f"Invalid goal snapshot: {e.errors()[0]['msg']}") from e

    logger.debug(f"Validated {len(states)} {strategy_name} records")
    return ImportedState(strategy=strategy_name, states=states, session=session, goal=goal)
