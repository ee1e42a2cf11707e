"""
Configuration settings for quizdeck.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with QUIZDECK_ (e.g. QUIZDECK_STRATEGY=rating).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from quizdeck.scheduling.strategies import RatingStrategy, SchedulingStrategy, SM2Strategy
from quizdeck.scheduling.tracker import GoalConfig

StrategyName = Literal["sm2", "rating"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Scheduling
    # ========================================
    strategy: StrategyName = Field(
        default="sm2",
        description="Scheduling model: 'sm2' (intervals, due dates) or 'rating' (0-10 rating)",
    )
    recent_window: int = Field(
        default=5,
        ge=0,
        description="How many recently served questions to avoid repeating",
    )

    # ========================================
    # Files
    # ========================================
    state_path: Path = Field(
        default=Path.home() / ".quizdeck" / "state.json",
        description="JSON file holding knowledge state and goal progress",
    )
    question_bank_path: Path = Field(
        default=Path("questions.json"),
        description="JSON question bank (sections -> quizzes -> questions)",
    )

    # ========================================
    # Sessions
    # ========================================
    session_size: int = Field(
        default=20,
        ge=1,
        description="Questions per study session batch",
    )
    mix_new_cards: bool = Field(
        default=True,
        description="Reserve part of each session for unseen questions",
    )
    daily_target_count: int = Field(
        default=20,
        ge=0,
        description="Daily goal: questions answered",
    )
    daily_target_minutes: int = Field(
        default=20,
        ge=0,
        description="Daily goal: minutes studied",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="loguru level for stderr output",
    )

    @property
    def goal_config(self) -> GoalConfig:
        return GoalConfig(
            target_count=self.daily_target_count,
            target_minutes=self.daily_target_minutes,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def build_strategy(name: str) -> SchedulingStrategy:
    """
    Create the scheduling strategy for a deployment.

    Raises:
        ValueError: If the name is not a known strategy
    """
    if name == SM2Strategy.name:
        return SM2Strategy()
    elif name == RatingStrategy.name:
        return RatingStrategy()
    raise ValueError(f"Unknown strategy: {name!r}")
