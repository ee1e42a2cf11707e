"""
Question Selector.

Picks the next question (or a session-sized batch) from a candidate pool.

Modes:
- sequential: pool order, cyclic
- shuffle: shuffled once per pool change, cyclic
- most-needed: highest priority score first, re-ranked every call
- due-only: only due questions; signals NONE_DUE when nothing is due
- new-only: only questions never studied
- review-only: only questions already in the learning/review cycle
- weak-areas: well-reviewed questions with poor accuracy or confidence,
  worst accuracy first

The last N served ids are skipped when possible to avoid immediate repeats.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from quizdeck.core.models import KnowledgeState, QuestionRef, RatingState, clamp, now_ms
from quizdeck.scheduling.recent import RecentHistory

if TYPE_CHECKING:
    from collections.abc import Iterable

    from quizdeck.scheduling.state_store import KnowledgeStateStore
    from quizdeck.scheduling.strategies import SchedulingStrategy


class StudyMode(str, Enum):
    """How the next question is chosen."""

    SEQUENTIAL = "sequential"
    SHUFFLE = "shuffle"
    MOST_NEEDED = "most-needed"
    DUE_ONLY = "due-only"
    NEW_ONLY = "new-only"
    REVIEW_ONLY = "review-only"
    WEAK_AREAS = "weak-areas"


class SelectionStatus(Enum):
    """Outcome of a selection request."""

    SELECTED = "selected"
    EMPTY_POOL = "empty_pool"  # Nothing matches the filters
    NONE_DUE = "none_due"  # due-only: come back later


@dataclass(frozen=True)
class SelectionResult:
    """A chosen question, or the reason there is none."""

    status: SelectionStatus
    question: QuestionRef | None = None

    @property
    def ok(self) -> bool:
        return self.status is SelectionStatus.SELECTED

    @classmethod
    def selected(cls, question: QuestionRef) -> SelectionResult:
        return cls(SelectionStatus.SELECTED, question)

    @classmethod
    def empty_pool(cls) -> SelectionResult:
        return cls(SelectionStatus.EMPTY_POOL)

    @classmethod
    def none_due(cls) -> SelectionResult:
        return cls(SelectionStatus.NONE_DUE)


@dataclass
class SessionMixConfig:
    """Shares used when composing a session batch."""

    due_share: float = 0.7
    new_share: float = 0.3


@dataclass
class WeakAreaConfig:
    """Thresholds for weak-areas mode."""

    min_reviews: int = 3
    accuracy_below: float = 0.6
    confidence_below: float = 1.5


class Selector:
    """
    Chooses questions from a pool using the injected strategy and store.

    Key principles:
    1. Empty results are return values, never exceptions
    2. Ranked modes are recomputed on every call (states move after answers)
    3. Cyclic modes keep their position until the pool changes
    4. Recent questions are skipped unless that would leave nothing
    """

    DEFAULT_RECENT_WINDOW = 5

    def __init__(
        self,
        strategy: SchedulingStrategy,
        store: KnowledgeStateStore,
        recent_window: int = DEFAULT_RECENT_WINDOW,
        rng: random.Random | None = None,
        mix: SessionMixConfig | None = None,
        weak: WeakAreaConfig | None = None,
    ):
        """
        Initialize the selector.

        Args:
            strategy: Scheduling strategy (scores, due/new checks)
            store: Knowledge state lookup
            recent_window: How many served ids to avoid repeating
            rng: Random source for shuffle mode (seed it for tests)
            mix: Session batch composition
            weak: Weak-area thresholds
        """
        self.strategy = strategy
        self.store = store
        self.recent = RecentHistory(recent_window)
        self.rng = rng or random.Random()
        self.mix = mix or SessionMixConfig()
        self.weak = weak or WeakAreaConfig()

        # Working list for cyclic modes
        self._working: list[QuestionRef] = []
        self._cursor = 0
        self._signature: tuple | None = None

    # =========================================================================
    # Single selection
    # =========================================================================

    def next(
        self,
        pool: Iterable[QuestionRef],
        mode: StudyMode | str = StudyMode.MOST_NEEDED,
        now: int | None = None,
    ) -> SelectionResult:
        """
        Select the next question.

        Args:
            pool: Candidate questions (already filtered by section/quiz)
            mode: Study mode
            now: Wall clock in epoch ms

        Returns:
            SelectionResult (SELECTED, EMPTY_POOL or NONE_DUE)
        """
        mode = StudyMode(mode)
        now = now_ms() if now is None else now
        candidates = _unique(pool)

        if not candidates:
            logger.debug(f"{mode.value}: empty pool")
            return SelectionResult.empty_pool()

        if mode in (StudyMode.SEQUENTIAL, StudyMode.SHUFFLE):
            question = self._next_cyclic(candidates, mode)
        else:
            ranked = self.rank(candidates, mode, now)
            if not ranked:
                if mode is StudyMode.DUE_ONLY:
                    logger.debug(f"due-only: none of {len(candidates)} questions due")
                    return SelectionResult.none_due()
                logger.debug(f"{mode.value}: no questions match")
                return SelectionResult.empty_pool()
            question = self._first_not_recent(ranked)

        self.recent.push(question.id)
        logger.debug(f"{mode.value}: selected {question.id}")
        return SelectionResult.selected(question)

    def rank(
        self,
        pool: Iterable[QuestionRef],
        mode: StudyMode | str,
        now: int | None = None,
    ) -> list[QuestionRef]:
        """
        Filter and order a pool for a ranked mode.

        Sorting is stable, so ties keep pool order.
        """
        mode = StudyMode(mode)
        now = now_ms() if now is None else now
        candidates = _unique(pool)
        states = {q.id: self.store.get(q.id, now) for q in candidates}

        if mode is StudyMode.DUE_ONLY:
            candidates = [q for q in candidates if self.strategy.is_due(states[q.id], now)]
        elif mode is StudyMode.NEW_ONLY:
            candidates = [q for q in candidates if self.strategy.is_new(states[q.id])]
        elif mode is StudyMode.REVIEW_ONLY:
            candidates = [q for q in candidates if self.strategy.in_review(states[q.id])]
        elif mode is StudyMode.WEAK_AREAS:
            weak = [q for q in candidates if self.is_weak(states[q.id])]
            return sorted(weak, key=lambda q: states[q.id].accuracy)
        elif mode not in (StudyMode.MOST_NEEDED, StudyMode.SEQUENTIAL, StudyMode.SHUFFLE):
            raise ValueError(f"Unknown mode: {mode}")

        return self._by_priority(candidates, states, now)

    def weak_areas(self, pool: Iterable[QuestionRef], now: int | None = None) -> list[QuestionRef]:
        """Questions needing more practice, worst accuracy first."""
        return self.rank(pool, StudyMode.WEAK_AREAS, now)

    def is_weak(self, state: KnowledgeState) -> bool:
        """
        Reviewed enough times and still inaccurate or unsure.

        An empty confidence history averages 0, so cards answered without
        confidence ratings count as unsure.
        """
        if state.total_reviews < self.weak.min_reviews:
            return False
        return (
            state.accuracy < self.weak.accuracy_below
            or state.average_confidence < self.weak.confidence_below
        )

    def reset(self) -> None:
        """Forget the working list, position and recent history."""
        self._working = []
        self._cursor = 0
        self._signature = None
        self.recent.clear()

    # =========================================================================
    # Session batch
    # =========================================================================

    def session(
        self,
        pool: Iterable[QuestionRef],
        max_count: int = 20,
        mix_new_cards: bool = True,
        now: int | None = None,
    ) -> list[QuestionRef]:
        """
        Build a study session batch.

        Passes:
        1. Up to 70% of max_count from due questions by priority
        2. Up to 30% from new questions by priority (if mix_new_cards)
        3. Fill the rest with the highest-priority remaining questions

        Returns:
            Up to max_count questions, no duplicates
        """
        if max_count <= 0:
            return []

        now = now_ms() if now is None else now
        candidates = _unique(pool)
        states = {q.id: self.store.get(q.id, now) for q in candidates}
        ranked = self._by_priority(candidates, states, now)

        chosen: list[QuestionRef] = []
        chosen_ids: set[str] = set()

        def take(source: list[QuestionRef], limit: int) -> None:
            for q in source:
                if len(chosen) >= max_count or limit <= 0:
                    return
                if q.id in chosen_ids:
                    continue
                chosen.append(q)
                chosen_ids.add(q.id)
                limit -= 1

        # 1. Due questions
        due = [q for q in ranked if self.strategy.is_due(states[q.id], now)]
        take(due, math.floor(max_count * self.mix.due_share))
        due_taken = len(chosen)

        # 2. New questions
        if mix_new_cards and len(chosen) < max_count:
            new = [
                q for q in ranked
                if self.strategy.is_new(states[q.id]) and q.id not in chosen_ids
            ]
            take(new, math.floor(max_count * self.mix.new_share))
        new_taken = len(chosen) - due_taken

        # 3. Fill with remaining priority
        take(ranked, max_count - len(chosen))

        logger.info(
            f"Session built: {due_taken} due + {new_taken} new + "
            f"{len(chosen) - due_taken - new_taken} fill = {len(chosen)} questions"
        )
        return chosen

    # =========================================================================
    # Internals
    # =========================================================================

    def _by_priority(
        self,
        questions: list[QuestionRef],
        states: dict[str, KnowledgeState],
        now: int,
    ) -> list[QuestionRef]:
        scores = {q.id: self.strategy.score(states[q.id], now) for q in questions}
        return sorted(questions, key=lambda q: scores[q.id], reverse=True)

    def _first_not_recent(self, ranked: list[QuestionRef]) -> QuestionRef:
        for question in ranked:
            if question.id not in self.recent:
                return question
        # Everything was served recently; never starve the learner
        return ranked[0]

    def _next_cyclic(self, pool: list[QuestionRef], mode: StudyMode) -> QuestionRef:
        signature = (mode, len(pool), frozenset(q.id for q in pool))
        if signature != self._signature or not self._working:
            self._rebuild(pool, mode)
            self._signature = signature

        size = len(self._working)
        index = self._cursor
        for offset in range(size):
            candidate = (self._cursor + offset) % size
            if self._working[candidate].id not in self.recent:
                index = candidate
                break

        self._cursor = (index + 1) % size
        return self._working[index]

    def _rebuild(self, pool: list[QuestionRef], mode: StudyMode) -> None:
        working = list(pool)
        if mode is StudyMode.SHUFFLE:
            self.rng.shuffle(working)  # Fisher-Yates
        self._working = working
        self._cursor = 0
        # A new pass starts clean; stale recent ids would be skipped for the whole pass
        self.recent.clear()
        logger.debug(f"Rebuilt {mode.value} list with {len(working)} questions")


def _unique(pool: Iterable[QuestionRef]) -> list[QuestionRef]:
    """Drop repeated ids, keeping first occurrence order."""
    seen: set[str] = set()
    result = []
    for question in pool:
        if question.id not in seen:
            seen.add(question.id)
            result.append(question)
    return result


def filter_rating_range(
    pool: Iterable[QuestionRef],
    store: KnowledgeStateStore,
    rating_range: tuple[int, int],
    now: int | None = None,
) -> list[QuestionRef]:
    """
    Keep questions whose rating lies within [low, high], inclusive.

    Unseen questions have rating 0. Only the rating model has ratings.

    Raises:
        ValueError: If the store holds states without a rating
    """
    if not issubclass(store.strategy.state_type, RatingState):
        raise ValueError(f"Rating filter needs the rating strategy, not '{store.strategy.name}'")

    low, high = (clamp(int(bound), 0, 10) for bound in rating_range)
    return [q for q in pool if low <= store.get(q.id, now).rating <= high]
