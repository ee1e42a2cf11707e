"""
Learning statistics and due forecast.

Read-only summaries over a knowledge-state map, used by the `stats`
command. Day boundaries are local midnight.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING

from quizdeck.core.models import KnowledgeState, SM2State, now_ms

if TYPE_CHECKING:
    from quizdeck.scheduling.strategies import SchedulingStrategy


@dataclass
class LearningStats:
    """Aggregate counters over a question pool."""

    total: int = 0
    studied: int = 0  # Answered at least once
    new: int = 0
    due: int = 0
    total_reviews: int = 0
    accuracy: float = 0.0  # Percent
    average_confidence: float = 0.0
    by_stage: dict[str, int] = field(default_factory=dict)

    @property
    def unstudied(self) -> int:
        return self.total - self.studied


@dataclass
class StudyForecast:
    """How many questions come due in the near future."""

    due_now: int = 0
    due_today: int = 0
    due_tomorrow: int = 0
    due_this_week: int = 0


def learning_stats(
    strategy: SchedulingStrategy,
    states: Mapping[str, KnowledgeState],
    now: int | None = None,
) -> LearningStats:
    """Summarize a state map."""
    now = now_ms() if now is None else now
    stats = LearningStats(total=len(states))
    if not states:
        return stats

    stages: Counter[str] = Counter()
    correct = 0
    confidences: list[int] = []

    for state in states.values():
        if strategy.is_new(state):
            stats.new += 1
        if strategy.is_due(state, now):
            stats.due += 1
        if isinstance(state, SM2State):
            stages[str(state.stage.value)] += 1
        if state.total_reviews > 0:
            stats.studied += 1
        stats.total_reviews += state.total_reviews
        correct += state.correct_reviews
        confidences.extend(state.confidence_history)

    if stats.total_reviews:
        stats.accuracy = round(correct / stats.total_reviews * 100, 1)
    if confidences:
        stats.average_confidence = round(sum(confidences) / len(confidences), 2)
    stats.by_stage = dict(stages)
    return stats


def _end_of_day_ms(now: int, days_ahead: int) -> int:
    today = datetime.fromtimestamp(now / 1000).date()
    boundary = datetime.combine(today + timedelta(days=days_ahead + 1), time.min)
    return int(boundary.timestamp() * 1000) - 1


def study_forecast(
    strategy: SchedulingStrategy,
    states: Mapping[str, KnowledgeState],
    now: int | None = None,
) -> StudyForecast:
    """
    Count questions due now, by the end of today, during tomorrow only
    and by the end of the seventh day from now.

    due_today includes due_now and due_this_week includes both; due_tomorrow
    only counts questions that fall due after today ends.
    """
    now = now_ms() if now is None else now
    end_today = _end_of_day_ms(now, 0)
    end_tomorrow = _end_of_day_ms(now, 1)
    end_week = _end_of_day_ms(now, 7)

    forecast = StudyForecast()
    for state in states.values():
        if strategy.is_due(state, now):
            forecast.due_now += 1
        if strategy.is_due(state, end_today):
            forecast.due_today += 1
        if not strategy.is_due(state, end_today) and strategy.is_due(state, end_tomorrow):
            forecast.due_tomorrow += 1
        if strategy.is_due(state, end_week):
            forecast.due_this_week += 1
    return forecast
