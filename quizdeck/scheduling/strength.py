"""
Strength labels shown after an answer.

Presentation-only summary of an SM-2 card derived from its interval, ease
factor and accuracy. Nothing in the scheduler reads it back.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quizdeck.core.models import SM2State


class StrengthLevel(str, Enum):
    """How well a card is retained."""

    NEW = "new"
    WEAK = "weak"
    LEARNING = "learning"
    GOOD = "good"
    STRONG = "strong"
    MASTERED = "mastered"

    @classmethod
    def from_sm2(cls, state: SM2State) -> StrengthLevel:
        """
        Classify an SM-2 card.

        Args:
            state: Card state after the latest answer

        Returns:
            Corresponding StrengthLevel
        """
        if state.total_reviews == 0:
            return cls.NEW

        accuracy = state.accuracy * 100
        if state.interval >= 30 and state.ease_factor >= 2.5 and accuracy >= 80:
            return cls.MASTERED
        elif state.interval >= 7 and state.ease_factor >= 2.3 and accuracy >= 70:
            return cls.STRONG
        elif state.interval >= 3 and accuracy >= 60:
            return cls.GOOD
        elif state.repetitions >= 1:
            return cls.LEARNING
        else:
            return cls.WEAK

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            StrengthLevel.NEW: "dim",
            StrengthLevel.WEAK: "red",
            StrengthLevel.LEARNING: "yellow",
            StrengthLevel.GOOD: "blue",
            StrengthLevel.STRONG: "cyan",
            StrengthLevel.MASTERED: "green",
        }[self]
