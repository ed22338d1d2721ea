"""Configuration loading for the matching engine."""

from src.config.loader import ConfigLoader, ConfigValidationError, load_matching_config
from src.config.schemas import (
    LimitsConfig,
    MatchingConfig,
    ScoringConfig,
    ScoringWeights,
)


__all__ = [
    "ConfigLoader",
    "ConfigValidationError",
    "LimitsConfig",
    "MatchingConfig",
    "ScoringConfig",
    "ScoringWeights",
    "load_matching_config",
]
