"""
Scheduling Module - Deciding what to study next.

Components:
- strategies: RatingStrategy and SM2Strategy (update rule + priority score)
- selector: Question selection by study mode, session batches, rating filter
- state_store: In-memory knowledge state map and JSON file persistence
- tracker: Session stats and daily goal with day rollover
- portability: Validated JSON export/import
- analytics: Learning statistics and due forecast
"""

from quizdeck.scheduling.analytics import LearningStats, StudyForecast, learning_stats, study_forecast
from quizdeck.scheduling.portability import ImportedState, export_state, import_state, read_state_text
from quizdeck.scheduling.recent import RecentHistory
from quizdeck.scheduling.selector import (
    SelectionResult,
    SelectionStatus,
    Selector,
    SessionMixConfig,
    StudyMode,
    WeakAreaConfig,
    filter_rating_range,
)
from quizdeck.scheduling.state_store import JsonStateFile, KnowledgeStateStore
from quizdeck.scheduling.strategies import (
    RatingConfig,
    RatingStrategy,
    SchedulingStrategy,
    SM2Config,
    SM2Strategy,
)
from quizdeck.scheduling.strength import StrengthLevel
from quizdeck.scheduling.tracker import DailyGoal, GoalConfig, SessionStats, SessionTracker

__all__ = [
    "DailyGoal",
    "GoalConfig",
    "ImportedState",
    "JsonStateFile",
    "KnowledgeStateStore",
    "LearningStats",
    "RatingConfig",
    "RatingStrategy",
    "RecentHistory",
    "SM2Config",
    "SM2Strategy",
    "SchedulingStrategy",
    "SelectionResult",
    "SelectionStatus",
    "Selector",
    "SessionMixConfig",
    "SessionStats",
    "SessionTracker",
    "StrengthLevel",
    "StudyForecast",
    "StudyMode",
    "WeakAreaConfig",
    "export_state",
    "filter_rating_range",
    "import_state",
    "learning_stats",
    "read_state_text",
    "study_forecast",
]
