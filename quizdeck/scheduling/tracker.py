"""
Session and Daily Goal Tracking.

Purely additive bookkeeping for the current study session:
- Answers, correct answers, correct streak, elapsed time
- Daily goal progress (cards and minutes) with day rollover
- Goal streak in days

Every method takes an optional `now` (epoch ms) so rollover is
deterministic under test.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime

from loguru import logger

from quizdeck.core.models import ConfidenceLevel, now_ms

MS_PER_MINUTE = 60_000


def local_date(timestamp_ms: int) -> date:
    """Calendar day (local time) of an epoch-ms timestamp."""
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


# =============================================================================
# Records
# =============================================================================


@dataclass
class SessionStats:
    """Counters for one study session."""

    started_at: int
    questions_answered: int = 0
    correct_answers: int = 0
    streak: int = 0
    elapsed_ms: int = 0
    total_confidence: int = 0

    @property
    def accuracy(self) -> float:
        if not self.questions_answered:
            return 0.0
        return self.correct_answers / self.questions_answered

    @property
    def elapsed_minutes(self) -> float:
        return self.elapsed_ms / MS_PER_MINUTE


@dataclass
class GoalConfig:
    """Default daily targets."""

    target_count: int = 20
    target_minutes: int = 20


@dataclass
class DailyGoal:
    """Progress towards today's goal."""

    target_count: int = 20
    completed_count: int = 0
    target_minutes: int = 20
    minutes_spent: int = 0
    streak_days: int = 0
    last_active_date: str = ""  # ISO date

    @property
    def is_met(self) -> bool:
        return (
            self.completed_count >= self.target_count
            and self.minutes_spent >= self.target_minutes
        )

    def rolled_over(self, today: date) -> DailyGoal:
        """
        Apply the day-rollover rule for `today`.

        Counters reset when the last active date differs from today; the
        streak grows only if the goal was met on that previous active day.

        Returns:
            self when nothing changes, otherwise a new DailyGoal
        """
        today_str = today.isoformat()
        if self.last_active_date == today_str:
            return self
        if not self.last_active_date:
            return replace(self, last_active_date=today_str)

        streak = self.streak_days + 1 if self.is_met else 0
        return replace(
            self,
            completed_count=0,
            minutes_spent=0,
            streak_days=streak,
            last_active_date=today_str,
        )


@dataclass
class _GoalBaseline:
    """Goal progress and session counters at the moment tracking restarted."""

    completed: int
    minutes: int
    answered: int
    elapsed_ms: int


# =============================================================================
# Tracker
# =============================================================================


class SessionTracker:
    """
    Tracks the current session and re-derives daily goal progress from it.

    Goal progress is the progress at the start of the session (or at the
    last day rollover) plus whatever the session added since.
    """

    def __init__(
        self,
        goal: DailyGoal | None = None,
        config: GoalConfig | None = None,
        now: int | None = None,
    ):
        now = now_ms() if now is None else now
        self.config = config or GoalConfig()
        self._goal = goal or DailyGoal(
            target_count=self.config.target_count,
            target_minutes=self.config.target_minutes,
            last_active_date=local_date(now).isoformat(),
        )
        self.session = SessionStats(started_at=now)
        self._baseline = _GoalBaseline(0, 0, 0, 0)
        self.start_session(now)

    def start_session(self, now: int | None = None) -> SessionStats:
        """Reset session counters; goal progress carries over."""
        now = now_ms() if now is None else now
        self.session = SessionStats(started_at=now)
        goal = self.daily_goal(now)
        self._baseline = _GoalBaseline(
            completed=goal.completed_count,
            minutes=goal.minutes_spent,
            answered=0,
            elapsed_ms=0,
        )
        logger.debug(f"Session started at {now}")
        return self.session

    def daily_goal(self, now: int | None = None) -> DailyGoal:
        """Current goal, after applying any pending day rollover."""
        now = now_ms() if now is None else now
        rolled = self._goal.rolled_over(local_date(now))
        if rolled is not self._goal:
            logger.info(
                f"Day rollover to {rolled.last_active_date}: "
                f"goal streak {self._goal.streak_days} -> {rolled.streak_days}"
            )
            self._goal = rolled
            self._baseline = _GoalBaseline(
                completed=0,
                minutes=0,
                answered=self.session.questions_answered,
                elapsed_ms=self.session.elapsed_ms,
            )
        return self._goal

    @property
    def goal(self) -> DailyGoal:
        """Stored goal without a rollover check."""
        return self._goal

    def record_answer(
        self,
        correct: bool,
        confidence: int | None = None,
        now: int | None = None,
    ) -> SessionStats:
        """
        Record one answer.

        Args:
            correct: Whether the answer was correct
            confidence: Optional confidence (clamped to 0-3)
            now: Wall clock in epoch ms

        Returns:
            The updated SessionStats
        """
        now = now_ms() if now is None else now
        goal = self.daily_goal(now)

        stats = self.session
        stats.questions_answered += 1
        if correct:
            stats.correct_answers += 1
            stats.streak += 1
        else:
            stats.streak = 0
        if confidence is not None:
            stats.total_confidence += int(ConfidenceLevel.clamp(confidence))
        stats.elapsed_ms = max(0, now - stats.started_at)

        base = self._baseline
        self._goal = replace(
            goal,
            completed_count=base.completed + (stats.questions_answered - base.answered),
            minutes_spent=base.minutes + (stats.elapsed_ms - base.elapsed_ms) // MS_PER_MINUTE,
        )
        return stats

    def set_targets(self, target_count: int, target_minutes: int) -> DailyGoal:
        self._goal = replace(
            self._goal,
            target_count=max(0, int(target_count)),
            target_minutes=max(0, int(target_minutes)),
        )
        return self._goal

    def restore(
        self,
        session: SessionStats | None,
        goal: DailyGoal | None,
        now: int | None = None,
    ) -> None:
        """
        Replace tracked records, e.g. after an import.

        A restored session resumes at `now`: its start is moved so that only
        the recorded elapsed time counts, never the gap since it was saved.
        """
        if session is not None:
            now = now_ms() if now is None else now
            self.session = replace(session, started_at=now - session.elapsed_ms)
        if goal is not None:
            self._goal = goal
        self._baseline = _GoalBaseline(
            completed=self._goal.completed_count,
            minutes=self._goal.minutes_spent,
            answered=self.session.questions_answered,
            elapsed_ms=self.session.elapsed_ms,
        )
