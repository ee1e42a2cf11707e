"""
Study Service: orchestration facade.

Wires one strategy, the state store, the selector and the session tracker
together and runs the per-answer sequence:

    select -> answer -> apply update -> store -> track -> persist

Everything is injected; the service holds no module-level state. Persistence
is optional and last-write-wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from quizdeck.core.errors import MalformedStateError
from quizdeck.core.models import AnswerEvent, KnowledgeState, QuestionRef, now_ms
from quizdeck.scheduling.analytics import LearningStats, StudyForecast, learning_stats, study_forecast
from quizdeck.scheduling.portability import export_state, import_state
from quizdeck.scheduling.selector import SelectionResult, Selector, StudyMode
from quizdeck.scheduling.state_store import JsonStateFile, KnowledgeStateStore
from quizdeck.scheduling.tracker import GoalConfig, SessionTracker

if TYPE_CHECKING:
    from collections.abc import Iterable

    from quizdeck.scheduling.strategies import SchedulingStrategy
    from quizdeck.scheduling.strength import StrengthLevel


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of submitting one answer."""

    state: KnowledgeState
    strength: StrengthLevel | None
    previous: KnowledgeState


class StudyService:
    """
    Facade used by the CLI (or any other front-end).

    Usage:
        service = StudyService.create(strategy, persistence=JsonStateFile(strategy))
        result = service.next_question(pool, StudyMode.MOST_NEEDED)
        if result.ok:
            outcome = service.submit_answer(AnswerEvent(result.question.id, True))
    """

    def __init__(
        self,
        strategy: SchedulingStrategy,
        store: KnowledgeStateStore,
        selector: Selector,
        tracker: SessionTracker,
        persistence: JsonStateFile | None = None,
    ):
        self.strategy = strategy
        self.store = store
        self.selector = selector
        self.tracker = tracker
        self.persistence = persistence

    @classmethod
    def create(
        cls,
        strategy: SchedulingStrategy,
        persistence: JsonStateFile | None = None,
        recent_window: int = Selector.DEFAULT_RECENT_WINDOW,
        goal_config: GoalConfig | None = None,
        now: int | None = None,
    ) -> StudyService:
        """
        Build a service, loading persisted state if a file is given.

        Raises:
            MalformedStateError: If the state file exists but is invalid
        """
        now = now_ms() if now is None else now
        store = KnowledgeStateStore(strategy)
        tracker = SessionTracker(config=goal_config, now=now)

        if persistence is not None:
            snapshot = persistence.load_snapshot()
            store.replace(snapshot.states)
            if snapshot.goal is not None:
                tracker.restore(session=None, goal=snapshot.goal)
                if goal_config is not None:
                    tracker.set_targets(goal_config.target_count, goal_config.target_minutes)
                tracker.start_session(now)

        selector = Selector(strategy, store, recent_window=recent_window)
        return cls(strategy, store, selector, tracker, persistence)

    # =========================================================================
    # Selection
    # =========================================================================

    def next_question(
        self,
        pool: Iterable[QuestionRef],
        mode: StudyMode | str = StudyMode.MOST_NEEDED,
        now: int | None = None,
    ) -> SelectionResult:
        return self.selector.next(pool, mode, now)

    def build_session(
        self,
        pool: Iterable[QuestionRef],
        max_count: int = 20,
        mix_new_cards: bool = True,
        now: int | None = None,
    ) -> list[QuestionRef]:
        return self.selector.session(pool, max_count, mix_new_cards, now)

    # =========================================================================
    # Answers
    # =========================================================================

    def submit_answer(
        self,
        event: AnswerEvent,
        now: int | None = None,
        persist: bool = True,
    ) -> AnswerOutcome:
        """
        Apply one answer to the store and the tracker.

        Args:
            event: The learner's answer
            now: Wall clock in epoch ms
            persist: Save to the state file afterwards (if one is configured)

        Returns:
            AnswerOutcome with the new state and its strength label
        """
        now = now_ms() if now is None else now
        previous = self.store.get(event.question_id, now)
        updated = self.strategy.apply(previous, event, now)
        self.store.set(updated)
        self.tracker.record_answer(event.is_correct, event.confidence, now)

        if persist:
            self.save()

        return AnswerOutcome(
            state=updated,
            strength=self.strategy.strength(updated),
            previous=previous,
        )

    # =========================================================================
    # Reporting
    # =========================================================================

    def states_for(
        self,
        pool: Iterable[QuestionRef] | None = None,
        now: int | None = None,
    ) -> dict[str, KnowledgeState]:
        """
        States for a pool, with defaults for unseen questions.

        Without a pool, only stored states are returned.
        """
        if pool is None:
            return self.store.snapshot()
        now = now_ms() if now is None else now
        return {q.id: self.store.get(q.id, now) for q in pool}

    def stats(
        self,
        pool: Iterable[QuestionRef] | None = None,
        now: int | None = None,
    ) -> LearningStats:
        return learning_stats(self.strategy, self.states_for(pool, now), now)

    def forecast(
        self,
        pool: Iterable[QuestionRef] | None = None,
        now: int | None = None,
    ) -> StudyForecast:
        return study_forecast(self.strategy, self.states_for(pool, now), now)

    # =========================================================================
    # Export / Import / Reset
    # =========================================================================

    def export_data(self) -> str:
        """Export states plus session/goal snapshots as JSON text."""
        return export_state(
            self.strategy.name,
            self.store.snapshot(),
            session=self.tracker.session,
            goal=self.tracker.goal,
        )

    def import_data(self, text: str, persist: bool = True, now: int | None = None) -> int:
        """
        Replace the current state map with an exported blob.

        All records are validated first; on any error nothing changes.

        Returns:
            Number of imported states

        Raises:
            MalformedStateError: If the blob is invalid
        """
        try:
            imported = import_state(text, self.strategy.name, self.strategy.state_type)
        except MalformedStateError as e:
            logger.error(f"Import rejected: {e}")
            raise

        self.store.replace(imported.states)
        self.tracker.restore(imported.session, imported.goal, now=now)
        self.selector.reset()
        logger.info(f"Imported {len(imported.states)} states")

        if persist:
            self.save()
        return len(imported.states)

    def reset(self, persist: bool = True) -> None:
        """Clear all learning progress."""
        count = len(self.store)
        self.store.clear()
        self.selector.reset()
        logger.info(f"Reset {count} states")
        if persist:
            self.save()

    def save(self) -> None:
        if self.persistence is None:
            return
        self.persistence.save(
            self.store.snapshot(),
            session=self.tracker.session,
            goal=self.tracker.goal,
        )
