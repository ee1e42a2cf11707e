"""
Core domain models for the scheduling engine.

Defines the records that flow between the store, the strategies, the
selector and the session tracker:
- QuestionRef: identity of a study item (plus section/quiz labels)
- KnowledgeState: per-question learning record (RatingState / SM2State)
- AnswerEvent: one answer submitted by the learner
- ConfidenceLevel / Stage: closed enums used by the SM-2 strategy

All timestamps are epoch milliseconds.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum

MS_PER_DAY = 86_400_000
CONFIDENCE_HISTORY_SIZE = 10


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def clamp(value, lower, upper):
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


# =============================================================================
# Enums
# =============================================================================


class Stage(str, Enum):
    """Coarse lifecycle bucket of an SM-2 card."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"


class ConfidenceLevel(IntEnum):
    """
    Self-reported confidence for one answer.

    0 - Complete guess
    1 - Uncertain
    2 - Confident
    3 - Instant / perfect
    """

    GUESS = 0
    UNSURE = 1
    CONFIDENT = 2
    INSTANT = 3

    @classmethod
    def clamp(cls, value: int | float) -> ConfidenceLevel:
        """Coerce any number into the closed range of levels."""
        return cls(int(clamp(int(value), cls.GUESS, cls.INSTANT)))


# =============================================================================
# Question identity
# =============================================================================


@dataclass(frozen=True)
class QuestionRef:
    """
    Identity of a study item as seen by the engine.

    `section` and `quiz` are only used for filtering, never for scheduling.
    """

    id: str
    section: str = ""
    quiz: str = ""


# =============================================================================
# Knowledge state
# =============================================================================


@dataclass
class KnowledgeState:
    """Performance counters shared by every scheduling strategy."""

    question_id: str
    correct_streak: int = 0
    incorrect_count: int = 0
    total_reviews: int = 0
    correct_reviews: int = 0
    last_answered_at: int = 0  # 0 = never answered
    confidence_history: list[int] = field(default_factory=list)

    @property
    def accuracy(self) -> float:
        """Historical accuracy; 0.0 before the first review."""
        if self.total_reviews == 0:
            return 0.0
        return self.correct_reviews / self.total_reviews

    @property
    def average_confidence(self) -> float:
        """Rolling average of the last confidence ratings; 0.0 when none."""
        if not self.confidence_history:
            return 0.0
        return sum(self.confidence_history) / len(self.confidence_history)


@dataclass
class RatingState(KnowledgeState):
    """Simple model: integer rating 0 (unknown) to 10."""

    rating: int = 0


@dataclass
class SM2State(KnowledgeState):
    """SM-2 model: ease factor, interval in days and a due timestamp."""

    ease_factor: float = 2.5
    interval: int = 0  # Days
    repetitions: int = 0
    due_at: int = 0
    stage: Stage = Stage.NEW

    def days_overdue(self, now: int) -> float:
        """Days past the due timestamp (0 when not yet due)."""
        return max(0.0, (now - self.due_at) / MS_PER_DAY)


# =============================================================================
# Answer events
# =============================================================================


@dataclass(frozen=True)
class AnswerEvent:
    """One answer submitted by the learner."""

    question_id: str
    is_correct: bool
    confidence: int | None = None
    response_time_ms: int | None = None

    @property
    def confidence_level(self) -> ConfidenceLevel | None:
        """Clamped confidence, or None when the caller did not supply one."""
        if self.confidence is None:
            return None
        return ConfidenceLevel.clamp(self.confidence)
