"""
Scheduling strategies: update rule + priority score behind one interface.

Two named strategies are provided:
- RatingStrategy: integer rating 0-10 nudged by one per answer
- SM2Strategy: SuperMemo 2 easing/interval model with learning stages

A deployment picks exactly one (see quizdeck.config.build_strategy). Their
scores live on different scales and must never be compared.

SM-2 Quality Scale:
0 - Complete blackout, wrong response
1 - Incorrect, but recognised the answer
2 - Correct, but guessed (serious difficulty)
3 - Correct, with hesitation
4 - Correct, confident recall
5 - Correct, instant recall
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Protocol

from loguru import logger

from quizdeck.core.models import (
    CONFIDENCE_HISTORY_SIZE,
    MS_PER_DAY,
    AnswerEvent,
    ConfidenceLevel,
    KnowledgeState,
    RatingState,
    SM2State,
    Stage,
    clamp,
    now_ms,
)
from quizdeck.scheduling.strength import StrengthLevel


class SchedulingStrategy(Protocol):
    """Interface every scheduling strategy implements."""

    name: str
    state_type: type[KnowledgeState]

    def initial_state(self, question_id: str, now: int | None = None) -> KnowledgeState: ...

    def apply(
        self, state: KnowledgeState, event: AnswerEvent, now: int | None = None
    ) -> KnowledgeState: ...

    def score(self, state: KnowledgeState, now: int | None = None) -> float: ...

    def is_due(self, state: KnowledgeState, now: int | None = None) -> bool: ...

    def is_new(self, state: KnowledgeState) -> bool: ...

    def in_review(self, state: KnowledgeState) -> bool: ...

    def strength(self, state: KnowledgeState) -> StrengthLevel | None: ...


def advance_counters(state: KnowledgeState, event: AnswerEvent, now: int) -> dict:
    """
    Performance counter updates shared by every strategy.

    Returns a dict suitable for dataclasses.replace().
    """
    history = list(state.confidence_history)
    level = event.confidence_level
    if level is not None:
        history = (history + [int(level)])[-CONFIDENCE_HISTORY_SIZE:]

    if event.is_correct:
        streak = state.correct_streak + 1
        incorrect = state.incorrect_count
    else:
        streak = 0
        incorrect = state.incorrect_count + 1

    return {
        "correct_streak": streak,
        "incorrect_count": incorrect,
        "total_reviews": state.total_reviews + 1,
        "correct_reviews": state.correct_reviews + (1 if event.is_correct else 0),
        "last_answered_at": now,
        "confidence_history": history,
    }


# =============================================================================
# Rating model
# =============================================================================


@dataclass
class RatingConfig:
    """Configuration for the rating model."""

    max_rating: int = 10
    rating_weight: int = 15  # Need points removed per rating step
    incorrect_weight: int = 5
    streak_weight: int = 3
    recency_cap_days: int = 30


class RatingStrategy:
    """
    Simple increment/decrement rating model.

    Correct answers raise the rating by one, incorrect answers lower it by
    one; the need score favours low ratings, past failures and questions
    that have not been seen for a while.
    """

    name = "rating"
    state_type = RatingState

    def __init__(self, config: RatingConfig | None = None):
        self.config = config or RatingConfig()

    def initial_state(self, question_id: str, now: int | None = None) -> RatingState:
        return RatingState(question_id=question_id)

    def apply(self, state: RatingState, event: AnswerEvent, now: int | None = None) -> RatingState:
        """Return the state after one answer. Never raises."""
        now = now_ms() if now is None else now
        rating = clamp(int(state.rating), 0, self.config.max_rating)

        if event.is_correct:
            rating = min(self.config.max_rating, rating + 1)
        else:
            rating = max(0, rating - 1)

        updated = replace(state, rating=rating, **advance_counters(state, event, now))

        logger.debug(
            f"rating update {state.question_id}: correct={event.is_correct} "
            f"rating {state.rating}->{updated.rating} streak={updated.correct_streak}"
        )
        return updated

    def set_rating(self, state: RatingState, rating: int, now: int | None = None) -> RatingState:
        """Manually set the rating (clamped to the valid range)."""
        now = now_ms() if now is None else now
        return replace(
            state,
            rating=clamp(int(rating), 0, self.config.max_rating),
            last_answered_at=now,
        )

    def score(self, state: RatingState, now: int | None = None) -> float:
        """Need score: higher means the question should be studied sooner."""
        now = now_ms() if now is None else now
        cfg = self.config
        rating = clamp(int(state.rating), 0, cfg.max_rating)

        base = 100 - rating * cfg.rating_weight
        boost = state.incorrect_count * cfg.incorrect_weight
        penalty = state.correct_streak * cfg.streak_weight

        if state.last_answered_at > 0:
            days_since = max(0, math.floor((now - state.last_answered_at) / MS_PER_DAY))
        else:
            days_since = 0
        recency = min(days_since, cfg.recency_cap_days)

        return base + boost - penalty + recency

    def is_due(self, state: RatingState, now: int | None = None) -> bool:
        # The rating model keeps no review schedule.
        return True

    def is_new(self, state: RatingState) -> bool:
        return state.total_reviews == 0

    def in_review(self, state: RatingState) -> bool:
        # Studied at least once; the rating model has no stages
        return state.total_reviews > 0

    def strength(self, state: RatingState) -> StrengthLevel | None:
        return None


# =============================================================================
# SM-2 model
# =============================================================================


@dataclass
class SM2Config:
    """Configuration for SM-2 algorithm."""

    initial_easiness: float = 2.5
    minimum_easiness: float = 1.3
    maximum_easiness: float = 2.5
    first_interval: int = 1  # Days for first review
    second_interval: int = 6  # Days for second review
    mastered_repetitions: int = 5
    expected_response_ms: int = 10000

    # Priority heuristic thresholds
    low_confidence_threshold: float = 1.5
    low_accuracy_threshold: float = 0.7


class SM2Strategy:
    """
    Implements the SM-2 spaced repetition algorithm.

    Each card has:
    - Easiness Factor (EF): How easy the item is (2.5 default, 1.3-2.5)
    - Interval: Days until next review
    - Repetitions: Consecutive successful recalls
    - Stage: new -> learning/review -> mastered
    """

    name = "sm2"
    state_type = SM2State

    def __init__(self, config: SM2Config | None = None):
        """
        Initialize SM-2 strategy.

        Args:
            config: Custom configuration (uses defaults if None)
        """
        self.config = config or SM2Config()

    def initial_state(self, question_id: str, now: int | None = None) -> SM2State:
        """New cards are due immediately."""
        now = now_ms() if now is None else now
        return SM2State(
            question_id=question_id,
            ease_factor=self.config.initial_easiness,
            interval=0,
            repetitions=0,
            due_at=now,
            stage=Stage.NEW,
        )

    def quality(self, event: AnswerEvent) -> int:
        """
        Derive the SM-2 quality (0-5) for an answer.

        Confidence wins when supplied, then response time, then bare
        correctness.
        """
        level = event.confidence_level
        if level is not None:
            return self.quality_from_confidence(level, event.is_correct)
        if event.response_time_ms is not None:
            return self.grade_from_response(event.is_correct, event.response_time_ms)
        return 4 if event.is_correct else 0

    @staticmethod
    def quality_from_confidence(level: ConfidenceLevel, is_correct: bool) -> int:
        """Map confidence + correctness onto the quality scale."""
        if not is_correct:
            return 0 if level is ConfidenceLevel.GUESS else 1

        if level is ConfidenceLevel.GUESS:
            return 2
        elif level is ConfidenceLevel.UNSURE:
            return 3
        elif level is ConfidenceLevel.CONFIDENT:
            return 4
        elif level is ConfidenceLevel.INSTANT:
            return 5
        raise ValueError(f"Unhandled confidence level: {level!r}")

    def grade_from_response(self, is_correct: bool, response_ms: int) -> int:
        """
        Convert a response time to an SM-2 grade.

        Args:
            is_correct: Whether the answer was correct
            response_ms: Time taken to respond

        Returns:
            Grade 0-5
        """
        expected_ms = self.config.expected_response_ms

        if not is_correct:
            if response_ms < expected_ms * 0.5:
                return 2  # Quick wrong = almost knew it
            elif response_ms < expected_ms:
                return 1
            else:
                return 0  # Complete blackout

        if response_ms < expected_ms * 0.5:
            return 5  # Quick and correct = perfect recall
        elif response_ms < expected_ms:
            return 4
        else:
            return 3

    def apply(self, state: SM2State, event: AnswerEvent, now: int | None = None) -> SM2State:
        """
        Calculate the next review based on one answer.

        The new interval is computed from the previous interval and the new
        ease factor.
        """
        now = now_ms() if now is None else now
        cfg = self.config
        quality = clamp(self.quality(event), 0, 5)

        # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
        ef_delta = 0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02)
        new_ef = clamp(state.ease_factor + ef_delta, cfg.minimum_easiness, cfg.maximum_easiness)

        previous_interval = max(0, int(state.interval))

        if quality < 3:
            # Failed - reset to beginning
            new_repetitions = 0
            new_interval = cfg.first_interval
            new_stage = Stage.LEARNING
        else:
            new_repetitions = max(0, int(state.repetitions)) + 1

            if new_repetitions == 1:
                new_interval = cfg.first_interval
            elif new_repetitions == 2:
                new_interval = cfg.second_interval
            else:
                new_interval = round(previous_interval * new_ef)

            if new_repetitions >= cfg.mastered_repetitions:
                new_stage = Stage.MASTERED
            else:
                new_stage = Stage.REVIEW

        updated = replace(
            state,
            ease_factor=new_ef,
            interval=new_interval,
            repetitions=new_repetitions,
            due_at=now + new_interval * MS_PER_DAY,
            stage=new_stage,
            **advance_counters(state, event, now),
        )

        logger.debug(
            f"sm2 update {state.question_id}: q={quality} ef={new_ef:.2f} "
            f"interval={new_interval}d reps={new_repetitions} stage={new_stage.value}"
        )
        return updated

    def score(self, state: SM2State, now: int | None = None) -> float:
        """Additive priority heuristic (higher = study sooner, no cap)."""
        now = now_ms() if now is None else now
        cfg = self.config
        priority = 0.0

        # Overdue cards dominate everything else
        days_overdue = state.days_overdue(now)
        if days_overdue > 0:
            priority += 100 + days_overdue * 10

        if state.stage == Stage.NEW:
            priority += 50
        elif state.stage == Stage.LEARNING:
            priority += 30

        if state.average_confidence < cfg.low_confidence_threshold:
            priority += 20

        if state.accuracy < cfg.low_accuracy_threshold:
            priority += 15

        days_until_due = (state.due_at - now) / MS_PER_DAY
        if 0 < days_until_due <= 1:
            priority += 10

        return priority

    def is_due(self, state: SM2State, now: int | None = None) -> bool:
        now = now_ms() if now is None else now
        return state.due_at <= now

    def is_new(self, state: SM2State) -> bool:
        return state.stage == Stage.NEW

    def in_review(self, state: SM2State) -> bool:
        return state.stage in (Stage.LEARNING, Stage.REVIEW)

    def strength(self, state: SM2State) -> StrengthLevel:
        return StrengthLevel.from_sm2(state)
