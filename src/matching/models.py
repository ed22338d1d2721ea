"""Data models for the matching engine."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.config.schemas.matching import ScoringWeights
from src.data_model import CamelModel, StrictBaseModel


class MatchQuality(str, Enum):
    """Human-readable bucket of a composite match score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class BatchStatus(str, Enum):
    """Outcome of one request inside a batch call."""

    SUCCESS = "success"
    ERROR = "error"


class Criteria(StrictBaseModel):
    """Canonical, immutable matching criteria.

    Attributes:
        commodity_type: Lower-cased category token to intersect with the allow-list.
        region: Region the buyer wants to source from.
        price_min: Lower bound of the acceptable unit price.
        price_max: Upper bound of the acceptable unit price.
        min_social_impact_score: Candidates below this rating are excluded.
        social_impact_category: Preferred social-impact category.
        weights: Sub-score weights for this request.
        quantity: Requested quantity.
        max_distance_km: Requested maximum distance (carried, not scored).
    """

    commodity_type: str | None = None
    region: str | None = None
    price_min: Annotated[float | None, Field(ge=0.0)] = None
    price_max: Annotated[float | None, Field(gt=0.0)] = None
    min_social_impact_score: Annotated[float, Field(ge=0.0, le=100.0)] = 0.0
    social_impact_category: str | None = None
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    quantity: Annotated[float | None, Field(gt=0.0)] = None
    max_distance_km: Annotated[float | None, Field(gt=0.0)] = None

    @model_validator(mode="after")
    def validate_price_range(self) -> "Criteria":
        """Ensure the price bounds describe a non-empty range."""
        if (
            self.price_min is not None
            and self.price_max is not None
            and self.price_min > self.price_max
        ):
            msg = "priceMin must not exceed priceMax"
            raise ValueError(msg)
        return self

    @property
    def has_price_bounds(self) -> bool:
        """Whether the buyer expressed any price preference."""
        return self.price_min is not None or self.price_max is not None


@dataclass(frozen=True)
class Candidate:
    """One listing or offer in canonical shape.

    Attributes:
        id: Candidate identifier, unique within its source.
        seller_id: Seller identifier.
        category: Commodity category as published by the seller.
        region: Seller region, if known.
        price_per_unit: Unit price.
        quantity_available: Quantity on offer.
        social_impact_score: Social-impact rating, clamped to [0, 100].
        social_impact_category: Social-impact category, if any.
        created_at: Creation timestamp (UTC).
        updated_at: Last update timestamp (UTC).
        source: Name of the source the record came from.
    """

    id: str
    seller_id: str
    category: str
    region: str | None
    price_per_unit: float
    quantity_available: float
    social_impact_score: float
    social_impact_category: str | None
    created_at: datetime | None
    updated_at: datetime | None
    source: str


@dataclass(frozen=True)
class ScoreComponents:
    """Breakdown of a candidate's score into sub-scores.

    Attributes:
        price_competitiveness: Price sub-score in [0, 1].
        distance_score: Region sub-score in [0, 1].
        quality_score: Freshness sub-score in [0, 1].
        social_impact_score: Social-impact sub-score in [0, 1].
        match_score: Weighted composite in [0, 1].
    """

    price_competitiveness: float
    distance_score: float
    quality_score: float
    social_impact_score: float
    match_score: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary for serialization.

        Returns:
            Dictionary of component name to value.
        """
        return {
            "price_competitiveness": self.price_competitiveness,
            "distance_score": self.distance_score,
            "quality_score": self.quality_score,
            "social_impact_score": self.social_impact_score,
            "match_score": self.match_score,
        }


class ScoredCandidate(CamelModel):
    """Output row: candidate fields plus scores and explanation."""

    id: str
    seller_id: str
    category: str
    region: str | None = None
    price_per_unit: float
    quantity_available: float
    social_impact_rating: float
    social_impact_category: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    source: str
    match_score: Annotated[float, Field(ge=0.0, le=1.0)]
    match_quality: MatchQuality
    price_competitiveness: Annotated[float, Field(ge=0.0, le=1.0)]
    distance_score: Annotated[float, Field(ge=0.0, le=1.0)]
    quality_score: Annotated[float, Field(ge=0.0, le=1.0)]
    social_impact_score: Annotated[float, Field(ge=0.0, le=1.0)]
    matching_factors: list[str] = Field(default_factory=list)

    @classmethod
    def from_candidate(
        cls,
        candidate: Candidate,
        components: ScoreComponents,
        match_quality: MatchQuality,
        matching_factors: list[str],
    ) -> "ScoredCandidate":
        """Build an output row from a candidate and its scores.

        Args:
            candidate: The scored candidate.
            components: Computed sub-scores and composite.
            match_quality: Bucket of the composite score.
            matching_factors: Names of the strong sub-scores.

        Returns:
            ScoredCandidate instance.
        """
        return cls(
            id=candidate.id,
            seller_id=candidate.seller_id,
            category=candidate.category,
            region=candidate.region,
            price_per_unit=candidate.price_per_unit,
            quantity_available=candidate.quantity_available,
            social_impact_rating=candidate.social_impact_score,
            social_impact_category=candidate.social_impact_category,
            created_at=candidate.created_at,
            updated_at=candidate.updated_at,
            source=candidate.source,
            match_quality=match_quality,
            matching_factors=matching_factors,
            **components.to_dict(),
        )

    @property
    def dedup_key(self) -> tuple[str, str, float, float]:
        """Composite key identifying the same offer across sources."""
        return (
            self.seller_id,
            self.category.strip().lower(),
            self.quantity_available,
            self.price_per_unit,
        )


class SourceSuccess(CamelModel):
    """A source that returned data."""

    name: str
    count: Annotated[int, Field(ge=0)]
    cached: bool = False


class SourceFailure(CamelModel):
    """A source (or the engine itself) that failed."""

    name: str
    error: str


class RunMeta(CamelModel):
    """Per-request diagnostics.

    Attributes:
        successes: Sources that returned data, with scored counts.
        failures: Sources that failed, with their error messages.
        truncated: Whether the candidate pool exceeded max_candidates.
        skipped: Candidates excluded because they could not be scored.
    """

    successes: list[SourceSuccess] = Field(default_factory=list)
    failures: list[SourceFailure] = Field(default_factory=list)
    truncated: bool = False
    skipped: Annotated[int, Field(ge=0)] = 0


class RankResult(CamelModel):
    """Response of a ranking call."""

    results: list[ScoredCandidate] = Field(default_factory=list)
    meta: RunMeta = Field(default_factory=RunMeta)

    def to_response(self) -> dict[str, object]:
        """Serialize to the public ``{results, meta}`` JSON contract.

        Returns:
            JSON-compatible dictionary with camelCase keys.
        """
        return self.to_json_dict()


class RankOptions(CamelModel):
    """Per-call options.

    Unknown keys are ignored so option bags written for the fetch layer
    (timeouts, cache flags) can be passed through unchanged.

    Attributes:
        limit: Maximum number of results returned.
        max_candidates: Maximum raw candidates processed.
        now: Reference time for freshness scoring.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    limit: Annotated[int | None, Field(ge=1)] = None
    max_candidates: Annotated[int | None, Field(ge=1)] = None
    now: datetime | None = None

    @field_validator("now")
    @classmethod
    def now_as_utc(cls, value: datetime | None) -> datetime | None:
        """Treat a naive reference time as UTC, like candidate timestamps."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


@dataclass(frozen=True)
class SourceBatch:
    """Raw records fetched from one named candidate source.

    Attributes:
        name: Source name used for attribution in run metadata.
        records: Raw records as returned by the source.
        cached: Whether the records were served from cache.
        error: Failure message when the source could not be fetched.
    """

    name: str
    records: Sequence[Mapping[str, Any]] = field(default_factory=tuple)
    cached: bool = False
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check if the source returned without error."""
        return self.error is None


class BatchEntry(CamelModel):
    """Outcome of one request inside a batch call."""

    batch_index: Annotated[int, Field(ge=0)]
    status: BatchStatus
    error: str | None = None
    results: list[ScoredCandidate] = Field(default_factory=list)
    meta: RunMeta = Field(default_factory=RunMeta)


class BatchResult(CamelModel):
    """Response of a batch ranking call."""

    total_processed: Annotated[int, Field(ge=0)]
    total_requested: Annotated[int, Field(ge=0)]
    batch_results: list[BatchEntry] = Field(default_factory=list)
