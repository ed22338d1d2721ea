"""Scoring engine for candidate matching."""

import math
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from src.matching.constants import (
    FACTOR_PRICE,
    FACTOR_QUALITY,
    FACTOR_REGION,
    FACTOR_SOCIAL_IMPACT,
    MATCH_QUALITY_FLOOR,
    MATCH_QUALITY_THRESHOLDS,
    MATCHING_FACTOR_THRESHOLD,
    MISSING_TIMESTAMP_QUALITY_SCORE,
    SECONDS_PER_DAY,
    SOCIAL_IMPACT_CATEGORY_BONUS,
    SOCIAL_IMPACT_SCORE_MAX,
)
from src.matching.errors import ScoringSkipped
from src.matching.models import (
    Candidate,
    Criteria,
    MatchQuality,
    ScoreComponents,
    ScoredCandidate,
)


logger = structlog.get_logger()


def clamp01(value: float) -> float:
    """Clamp a value to [0, 1]."""
    return max(0.0, min(1.0, value))


def price_competitiveness(price: float, price_max: float | None) -> float:
    """Score a unit price against the buyer's bounds.

    Without an upper bound the score is neutral (1): a missing preference
    never penalizes, and neither does a price below the lower bound. Prices
    at or below ``price_max`` (which includes everything up to the midpoint
    of the range) score 1; above it the score falls linearly with the
    relative overage, reaching 0 at twice ``price_max``.

    Args:
        price: Candidate unit price.
        price_max: Upper bound, if any.

    Returns:
        Score in [0, 1].
    """
    if price_max is None or price <= price_max:
        return 1.0
    return clamp01(1.0 - (price - price_max) / price_max)


def region_score(candidate_region: str | None, wanted_region: str | None) -> float:
    """Categorical region match.

    Args:
        candidate_region: Candidate region.
        wanted_region: Requested region.

    Returns:
        1 when no region is requested or the regions match
        case-insensitively, else 0.
    """
    if not wanted_region:
        return 1.0
    if candidate_region and candidate_region.strip().lower() == wanted_region.lower():
        return 1.0
    return 0.0


def freshness_score(candidate: Candidate, now: datetime) -> float:
    """Score how recently the candidate was updated.

    Uses ``1 / (1 + days_since_update)``, so the score decays toward 0
    without reaching it. Falls back to ``created_at``; future timestamps
    count as age 0.

    Args:
        candidate: Candidate to score.
        now: Reference time.

    Returns:
        Score in (0, 1].
    """
    timestamp = candidate.updated_at or candidate.created_at
    if timestamp is None:
        return MISSING_TIMESTAMP_QUALITY_SCORE

    days = max(0.0, (now - timestamp).total_seconds() / SECONDS_PER_DAY)
    return 1.0 / (1.0 + days)


def social_impact_alignment(
    rating: float,
    candidate_category: str | None,
    wanted_category: str | None,
) -> float:
    """Score social-impact alignment.

    Args:
        rating: Candidate rating in [0, 100].
        candidate_category: Candidate social-impact category.
        wanted_category: Requested social-impact category.

    Returns:
        ``rating / 100``, multiplied by the category bonus when the
        categories match, capped at 1.
    """
    score = rating / SOCIAL_IMPACT_SCORE_MAX
    if (
        wanted_category
        and candidate_category
        and candidate_category.strip().lower() == wanted_category.lower()
    ):
        score *= SOCIAL_IMPACT_CATEGORY_BONUS
    return clamp01(score)


def bucket_match_quality(score: float) -> MatchQuality:
    """Map a composite score to its quality bucket.

    Args:
        score: Composite score.

    Returns:
        Bucket; thresholds are inclusive lower bounds.
    """
    for threshold, label in MATCH_QUALITY_THRESHOLDS:
        if score >= threshold:
            return MatchQuality(label)
    return MatchQuality(MATCH_QUALITY_FLOOR)


def explain_factors(components: ScoreComponents) -> list[str]:
    """List the strong sub-scores in fixed reporting order.

    Args:
        components: Computed sub-scores.

    Returns:
        Factor names whose sub-score is at least the threshold.
    """
    ordered = (
        (FACTOR_PRICE, components.price_competitiveness),
        (FACTOR_REGION, components.distance_score),
        (FACTOR_QUALITY, components.quality_score),
        (FACTOR_SOCIAL_IMPACT, components.social_impact_score),
    )
    return [name for name, value in ordered if value >= MATCHING_FACTOR_THRESHOLD]


@dataclass
class ScorerConfig:
    """Configuration bundle for CandidateScorer.

    Attributes:
        criteria: Normalized request criteria, including weights.
        now: Reference time for freshness scoring.
    """

    criteria: Criteria
    now: datetime | None = None


class CandidateScorer:
    """Computes sub-scores and a weighted composite for each candidate.

    Scoring formula (weights normalized to sum to 1):
        match_score = w_price * price_competitiveness
                    + w_distance * distance_score
                    + w_quality * quality_score
                    + w_social_impact * social_impact_score
    """

    def __init__(self, config: ScorerConfig, request_id: str = "pure") -> None:
        """Initialize the scorer.

        Args:
            config: Scorer configuration bundle.
            request_id: Request identifier for logging.
        """
        self._criteria = config.criteria
        self._weights = config.criteria.weights.normalized()
        self._now = config.now or datetime.now(UTC)
        self._log = logger.bind(
            component="matching",
            subcomponent="scorer",
            request_id=request_id,
        )

    def score(self, candidate: Candidate) -> ScoredCandidate:
        """Score a single candidate.

        Args:
            candidate: Candidate to score.

        Returns:
            ScoredCandidate with sub-scores, bucket and explanation.

        Raises:
            ScoringSkipped: If the candidate carries unusable numbers.
        """
        self._check_scoreable(candidate)
        criteria = self._criteria

        price = price_competitiveness(candidate.price_per_unit, criteria.price_max)
        distance = region_score(candidate.region, criteria.region)
        quality = freshness_score(candidate, self._now)
        social = social_impact_alignment(
            candidate.social_impact_score,
            candidate.social_impact_category,
            criteria.social_impact_category,
        )

        composite = clamp01(
            self._weights.price * price
            + self._weights.distance * distance
            + self._weights.quality * quality
            + self._weights.social_impact * social
        )

        components = ScoreComponents(
            price_competitiveness=price,
            distance_score=distance,
            quality_score=quality,
            social_impact_score=social,
            match_score=composite,
        )
        self._log.debug("candidate_scored", candidate_id=candidate.id, **components.to_dict())
        return ScoredCandidate.from_candidate(
            candidate,
            components,
            bucket_match_quality(composite),
            explain_factors(components),
        )

    def score_candidates(
        self, candidates: list[Candidate]
    ) -> tuple[list[ScoredCandidate], list[ScoringSkipped]]:
        """Score multiple candidates, skipping unscoreable ones.

        Args:
            candidates: Candidates to score.

        Returns:
            Tuple of (scored candidates in input order, skip records).
        """
        scored: list[ScoredCandidate] = []
        skipped: list[ScoringSkipped] = []

        for candidate in candidates:
            try:
                scored.append(self.score(candidate))
            except ScoringSkipped as skip:
                self._log.warning(
                    "candidate_skipped",
                    candidate_id=skip.candidate_id,
                    source=candidate.source,
                    reason=skip.reason,
                )
                skipped.append(skip)

        self._log.info(
            "scoring_complete",
            candidates_scored=len(scored),
            candidates_skipped=len(skipped),
            min_score=min((s.match_score for s in scored), default=0.0),
            max_score=max((s.match_score for s in scored), default=0.0),
        )
        return scored, skipped

    @staticmethod
    def _check_scoreable(candidate: Candidate) -> None:
        if not math.isfinite(candidate.price_per_unit):
            raise ScoringSkipped(candidate.id, "non-finite price")
        if candidate.price_per_unit < 0:
            raise ScoringSkipped(candidate.id, "negative price")
        if not math.isfinite(candidate.quantity_available):
            raise ScoringSkipped(candidate.id, "non-finite quantity")
        if candidate.quantity_available < 0:
            raise ScoringSkipped(candidate.id, "negative quantity")


def score_candidates_pure(
    candidates: list[Candidate],
    config: ScorerConfig,
    request_id: str = "pure",
) -> tuple[list[ScoredCandidate], list[ScoringSkipped]]:
    """Pure function API for scoring candidates.

    Args:
        candidates: Candidates to score.
        config: Scorer configuration bundle.
        request_id: Request identifier.

    Returns:
        Tuple of (scored candidates, skip records).
    """
    scorer = CandidateScorer(config=config, request_id=request_id)
    return scorer.score_candidates(candidates)
