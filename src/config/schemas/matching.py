"""Matching engine configuration schema."""

import math
from typing import Annotated

from pydantic import ConfigDict, Field, model_validator

from src.data_model import StrictBaseModel


class ScoringWeights(StrictBaseModel):
    """Relative weights of the four sub-scores.

    Weights need not sum to 1; the scorer divides by their sum. Request
    payloads may use the camelCase ``socialImpact`` key.

    Attributes:
        social_impact: Weight of the social-impact alignment sub-score.
        price: Weight of the price competitiveness sub-score.
        distance: Weight of the distance/region sub-score.
        quality: Weight of the quality/freshness sub-score.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    social_impact: Annotated[float, Field(ge=0.0, alias="socialImpact")] = 0.15
    price: Annotated[float, Field(ge=0.0)] = 0.3
    distance: Annotated[float, Field(ge=0.0)] = 0.2
    quality: Annotated[float, Field(ge=0.0)] = 0.15

    @model_validator(mode="after")
    def validate_positive_total(self) -> "ScoringWeights":
        """Ensure the weights can be normalized."""
        if not self.total > 0:
            msg = "Scoring weights must sum to a positive value"
            raise ValueError(msg)
        return self

    @property
    def total(self) -> float:
        """Sum of all weights."""
        return self.social_impact + self.price + self.distance + self.quality

    def normalized(self) -> "ScoringWeights":
        """Return weights scaled to sum to 1.

        Returns:
            Self when already normalized, otherwise a rescaled copy.
        """
        total = self.total
        if math.isclose(total, 1.0):
            return self
        return ScoringWeights(
            social_impact=self.social_impact / total,
            price=self.price / total,
            distance=self.distance / total,
            quality=self.quality / total,
        )


class ScoringConfig(StrictBaseModel):
    """Scoring configuration.

    Attributes:
        weights: Default weights, overridden per request by criteria weights.
    """

    weights: ScoringWeights = Field(default_factory=ScoringWeights)


class LimitsConfig(StrictBaseModel):
    """Per-call size limits.

    Attributes:
        default_limit: Result count returned when the caller gives no limit.
        max_candidates: Hard cap on raw candidates processed per call.
        max_batch_size: Maximum requests processed by one batch call.
    """

    default_limit: Annotated[int, Field(ge=1, le=1000)] = 20
    max_candidates: Annotated[int, Field(ge=1)] = 1000
    max_batch_size: Annotated[int, Field(ge=1, le=100)] = 5


class MatchingConfig(StrictBaseModel):
    """Root configuration for matching.yaml.

    Attributes:
        version: Schema version.
        scoring: Scoring configuration.
        limits: Size limits.
    """

    version: Annotated[str, Field(pattern=r"^\d+\.\d+$")] = "1.0"
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
