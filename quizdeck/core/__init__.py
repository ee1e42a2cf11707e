"""
Core Module - Shared domain models and errors.

Components:
- models: QuestionRef, KnowledgeState (RatingState, SM2State), AnswerEvent
- errors: QuizdeckError hierarchy

All other quizdeck packages import their shared types from here.
"""

from quizdeck.core.errors import MalformedStateError, QuestionBankError, QuizdeckError
from quizdeck.core.models import (
    MS_PER_DAY,
    AnswerEvent,
    ConfidenceLevel,
    KnowledgeState,
    QuestionRef,
    RatingState,
    SM2State,
    Stage,
    now_ms,
)

__all__ = [
    "MS_PER_DAY",
    "AnswerEvent",
    "ConfidenceLevel",
    "KnowledgeState",
    "MalformedStateError",
    "QuestionBankError",
    "QuestionRef",
    "QuizdeckError",
    "RatingState",
    "SM2State",
    "Stage",
    "now_ms",
]
