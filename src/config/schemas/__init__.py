"""Configuration schemas."""

from src.config.schemas.matching import (
    LimitsConfig,
    MatchingConfig,
    ScoringConfig,
    ScoringWeights,
)


__all__ = [
    "LimitsConfig",
    "MatchingConfig",
    "ScoringConfig",
    "ScoringWeights",
]
