"""
Application settings.

Tuning constants of the evaluator (quality thresholds, brilliant probability, ...) have no deeper chess meaning,
so they are kept here as configurable values instead of magic numbers in the code.
"""

import os
from typing import Self

from pydantic import BaseModel, Field, model_validator

ENV_PREFIX = "CHESS_COACH_"


class QualityThresholds(BaseModel):
    """Upper bounds (exclusive) on |evaluation| for each step of the move quality ladder."""

    excellent: float = 0.2
    good: float = 0.5
    inaccurate: float = 1.0
    mistake: float = 2.0

    @model_validator(mode="after")
    def check_increasing(self) -> Self:
        bounds = [self.excellent, self.good, self.inaccurate, self.mistake]
        if bounds != sorted(bounds):
            raise ValueError(f"Quality thresholds must be increasing, got {bounds}")
        return self


class EvaluationSettings(BaseModel):
    piece_values: dict[str, int] = Field(
        default_factory=lambda: {
            "pawn": 1,
            "knight": 3,
            "bishop": 3,
            "rook": 5,
            "queen": 9,
            "king": 0,
        }
    )
    opening_ply_threshold: int = 10
    opening_damping: float = 0.5
    clamp: float = 10.0
    thresholds: QualityThresholds = Field(default_factory=QualityThresholds)
    brilliant_probability: float = Field(default=0.05, ge=0.0, le=1.0)


class AnalysisSettings(BaseModel):
    cache_max_entries: int = Field(default=4096, gt=0)
    default_depth: int = Field(default=15, gt=0)
    # chance the sparring opponent restricts itself to captures when one is available
    capture_preference: float = Field(default=0.7, ge=0.0, le=1.0)


class Settings(BaseModel):
    database_url: str = "sqlite:///./chess_coach.db"
    log_level: str = "INFO"
    evaluation: EvaluationSettings = Field(default_factory=EvaluationSettings)
    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from defaults, overridden by CHESS_COACH_* environment variables."""
    env = os.environ if environ is None else environ

    overrides: dict = {}
    if f"{ENV_PREFIX}DATABASE_URL" in env:
        overrides["database_url"] = env[f"{ENV_PREFIX}DATABASE_URL"]
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        overrides["log_level"] = env[f"{ENV_PREFIX}LOG_LEVEL"].upper()

    evaluation: dict = {}
    if f"{ENV_PREFIX}BRILLIANT_PROBABILITY" in env:
        evaluation["brilliant_probability"] = env[f"{ENV_PREFIX}BRILLIANT_PROBABILITY"]
    if f"{ENV_PREFIX}OPENING_PLY_THRESHOLD" in env:
        evaluation["opening_ply_threshold"] = env[f"{ENV_PREFIX}OPENING_PLY_THRESHOLD"]
    if evaluation:
        overrides["evaluation"] = evaluation

    if f"{ENV_PREFIX}CACHE_MAX_ENTRIES" in env:
        overrides["analysis"] = {
            "cache_max_entries": env[f"{ENV_PREFIX}CACHE_MAX_ENTRIES"]
        }

    # pydantic takes care of converting the strings into the numeric fields
    return Settings.model_validate(overrides)
