"""
Unit tests for the rating scheduling model.

Covers the update rule (clamping, streaks, counters) and the need score.
"""

import random

import pytest

from quizdeck.core.models import MS_PER_DAY, AnswerEvent, RatingState
from quizdeck.scheduling.strategies import RatingStrategy


def answer(correct: bool, confidence=None) -> AnswerEvent:
    return AnswerEvent(question_id="q1", is_correct=correct, confidence=confidence)


class TestRatingUpdate:
    def test_correct_increments_rating_and_streak(self, rating_strategy, now):
        state = RatingState("q1", rating=4, correct_streak=2)
        updated = rating_strategy.apply(state, answer(True), now)

        assert updated.rating == 5
        assert updated.correct_streak == 3
        assert updated.last_answered_at == now

    def test_incorrect_decrements_and_resets_streak(self, rating_strategy, now):
        state = RatingState("q1", rating=4, correct_streak=7, incorrect_count=1)
        updated = rating_strategy.apply(state, answer(False), now)

        assert updated.rating == 3
        assert updated.correct_streak == 0
        assert updated.incorrect_count == 2

    def test_rating_capped_at_ten(self, rating_strategy, now):
        state = RatingState("q1", rating=10)
        assert rating_strategy.apply(state, answer(True), now).rating == 10

    def test_rating_floored_at_zero(self, rating_strategy, now):
        state = RatingState("q1", rating=0)
        assert rating_strategy.apply(state, answer(False), now).rating == 0

    def test_apply_returns_new_object(self, rating_strategy, now):
        state = RatingState("q1", rating=4)
        updated = rating_strategy.apply(state, answer(True), now)

        assert updated is not state
        assert state.rating == 4

    def test_review_counters_advance(self, rating_strategy, now):
        state = RatingState("q1")
        state = rating_strategy.apply(state, answer(True, confidence=2), now)
        state = rating_strategy.apply(state, answer(False, confidence=9), now)

        assert state.total_reviews == 2
        assert state.correct_reviews == 1
        assert state.confidence_history == [2, 3]

    def test_random_sequences_stay_in_bounds(self, rating_strategy, now):
        rng = random.Random(7)
        for start in (-5, 0, 5, 10, 15):
            state = RatingState("q1", rating=start)
            incorrect = state.incorrect_count
            for _ in range(200):
                state = rating_strategy.apply(state, answer(rng.random() < 0.5), now)
                assert 0 <= state.rating <= 10
                assert state.incorrect_count >= incorrect
                incorrect = state.incorrect_count

    def test_set_rating_clamps(self, rating_strategy, now):
        state = RatingState("q1")
        assert rating_strategy.set_rating(state, 42, now).rating == 10
        assert rating_strategy.set_rating(state, -3, now).rating == 0


class TestRatingScore:
    def test_default_state_score(self, rating_strategy, now):
        assert rating_strategy.score(RatingState("q1"), now) == 100

    def test_formula(self, rating_strategy, now):
        state = RatingState(
            "q1",
            rating=4,
            incorrect_count=2,
            correct_streak=1,
            last_answered_at=now - 3 * MS_PER_DAY,
        )
        # 100 - 60 + 10 - 3 + 3
        assert rating_strategy.score(state, now) == 50

    def test_recency_capped_at_thirty_days(self, rating_strategy, now):
        old = RatingState("q1", last_answered_at=now - 90 * MS_PER_DAY)
        month = RatingState("q1", last_answered_at=now - 30 * MS_PER_DAY)
        assert rating_strategy.score(old, now) == rating_strategy.score(month, now) == 130

    @pytest.mark.parametrize("low,high", [(0, 1), (3, 7), (9, 10)])
    def test_lower_rating_scores_higher(self, rating_strategy, now, low, high):
        assert rating_strategy.score(RatingState("q", rating=low), now) >= rating_strategy.score(
            RatingState("q", rating=high), now
        )

    def test_more_incorrect_scores_higher(self, rating_strategy, now):
        assert rating_strategy.score(RatingState("q", incorrect_count=4), now) >= rating_strategy.score(
            RatingState("q", incorrect_count=1), now
        )

    def test_longer_streak_scores_lower(self, rating_strategy, now):
        assert rating_strategy.score(RatingState("q", correct_streak=5), now) <= rating_strategy.score(
            RatingState("q", correct_streak=0), now
        )

    def test_older_answer_scores_higher(self, rating_strategy, now):
        recent = RatingState("q", last_answered_at=now - 2 * MS_PER_DAY)
        older = RatingState("q", last_answered_at=now - 20 * MS_PER_DAY)
        assert rating_strategy.score(older, now) >= rating_strategy.score(recent, now)


class TestRatingSchedule:
    def test_always_due(self, rating_strategy, now):
        assert rating_strategy.is_due(RatingState("q1", rating=10), now)

    def test_new_until_first_review(self, rating_strategy, now):
        state = RatingState("q1")
        assert rating_strategy.is_new(state)
        assert not rating_strategy.is_new(rating_strategy.apply(state, answer(True), now))

    def test_in_review_once_answered(self, rating_strategy, now):
        state = RatingState("q1")
        assert not rating_strategy.in_review(state)
        assert rating_strategy.in_review(rating_strategy.apply(state, answer(False), now))

    def test_no_strength_label(self, rating_strategy):
        assert rating_strategy.strength(RatingState("q1")) is None

    def test_name(self):
        assert RatingStrategy.name == "rating"
