"""
Knowledge State Store and JSON persistence.

KnowledgeStateStore is the in-memory map from question id to its current
knowledge state. States are created lazily with strategy defaults and only
replaced, never mutated, by callers applying an update.

JsonStateFile persists the map (plus session/goal snapshots) in the export
format. Default location: ~/.quizdeck/state.json
"""

from __future__ import annotations

import os
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from quizdeck.core.models import KnowledgeState
from quizdeck.scheduling.portability import (
    ImportedState,
    export_state,
    import_state,
    read_state_text,
)

if TYPE_CHECKING:
    from quizdeck.scheduling.strategies import SchedulingStrategy
    from quizdeck.scheduling.tracker import DailyGoal, SessionStats


# =============================================================================
# In-memory store
# =============================================================================


class KnowledgeStateStore:
    """
    Keyed mapping of question id -> KnowledgeState.

    Handles:
    - Lazy defaults for questions never answered
    - Single and bulk writes
    - Whole-map replacement for atomic imports
    """

    def __init__(
        self,
        strategy: SchedulingStrategy,
        states: Mapping[str, KnowledgeState] | None = None,
    ):
        self.strategy = strategy
        self._states: dict[str, KnowledgeState] = {}
        if states:
            self.merge(states)

    def get(self, question_id: str, now: int | None = None) -> KnowledgeState:
        """
        Get the state for a question.

        Returns:
            Stored state, or a fresh default (not inserted) if unseen
        """
        state = self._states.get(question_id)
        if state is None:
            return self.strategy.initial_state(question_id, now)
        return state

    def set(self, state: KnowledgeState) -> None:
        """Insert or replace one state."""
        self._check_type(state)
        self._states[state.question_id] = state

    def merge(self, states: Mapping[str, KnowledgeState]) -> int:
        """
        Insert or replace many states.

        Returns:
            Number of states written
        """
        for state in states.values():
            self._check_type(state)
        self._states.update({state.question_id: state for state in states.values()})
        return len(states)

    def replace(self, states: Mapping[str, KnowledgeState]) -> None:
        """Swap the whole map in one step."""
        for state in states.values():
            self._check_type(state)
        self._states = {state.question_id: state for state in states.values()}

    def clear(self) -> None:
        self._states.clear()

    def snapshot(self) -> dict[str, KnowledgeState]:
        """Shallow copy of the current map."""
        return dict(self._states)

    def items(self) -> Iterator[tuple[str, KnowledgeState]]:
        return iter(list(self._states.items()))

    def __contains__(self, question_id: object) -> bool:
        return question_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def _check_type(self, state: KnowledgeState) -> None:
        if not isinstance(state, self.strategy.state_type):
            raise TypeError(
                f"{type(state).__name__} does not belong to strategy '{self.strategy.name}'"
            )


# =============================================================================
# JSON file persistence
# =============================================================================


class JsonStateFile:
    """
    JSON-file persistence for the state map.

    Writes go to a sibling temp file which then replaces the target, so a
    crash never leaves half a file behind. Concurrent writers are
    last-write-wins.
    """

    DEFAULT_PATH = Path.home() / ".quizdeck" / "state.json"

    def __init__(self, strategy: SchedulingStrategy, path: Path | None = None):
        """
        Initialize the state file.

        Args:
            strategy: Strategy whose records the file holds
            path: Custom file path (defaults to ~/.quizdeck/state.json)
        """
        self.strategy = strategy
        self.path = Path(path) if path else self.DEFAULT_PATH

    def load(self) -> dict[str, KnowledgeState]:
        """Load the state map (empty when the file does not exist)."""
        return self.load_snapshot().states

    def load_snapshot(self) -> ImportedState:
        """
        Load states plus session/goal snapshots.

        Raises:
            MalformedStateError: If the file exists but is invalid
        """
        if not self.path.exists():
            logger.debug(f"No state file at {self.path}; starting fresh")
            return ImportedState(strategy=self.strategy.name)

        text = read_state_text(self.path)
        snapshot = import_state(text, self.strategy.name, self.strategy.state_type)
        logger.info(f"Loaded {len(snapshot.states)} states from {self.path}")
        return snapshot

    def save(
        self,
        states: Mapping[str, KnowledgeState],
        session: SessionStats | None = None,
        goal: DailyGoal | None = None,
    ) -> Path:
        """Write the state map and snapshots to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = export_state(self.strategy.name, dict(states), session=session, goal=goal)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, self.path)

        logger.debug(f"Saved {len(states)} states to {self.path}")
        return self.path

    def delete(self) -> bool:
        """Remove the state file."""
        if self.path.exists():
            self.path.unlink()
            return True
        return False
