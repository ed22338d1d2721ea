"""Tests for candidate scoring."""

import random
from datetime import datetime, timedelta

import pytest

from src.config.schemas.matching import ScoringWeights
from src.matching.errors import ScoringSkipped
from src.matching.models import (
    Candidate,
    Criteria,
    MatchQuality,
    ScoreComponents,
    ScoredCandidate,
)
from src.matching.scorer import (
    CandidateScorer,
    ScorerConfig,
    bucket_match_quality,
    explain_factors,
    freshness_score,
    price_competitiveness,
    region_score,
    score_candidates_pure,
    social_impact_alignment,
)
from tests.helpers.time import FIXED_NOW, days_ago


def _make_candidate(  # noqa: PLR0913
    candidate_id: str = "1",
    category: str = "cannabis",
    region: str | None = "Western Cape",
    price_per_unit: float = 80.0,
    quantity_available: float = 10.0,
    social_impact_score: float = 60.0,
    social_impact_category: str | None = None,
    created_at: datetime | None = None,
    updated_at: datetime | None = FIXED_NOW,
) -> Candidate:
    """Create a test Candidate."""
    return Candidate(
        id=candidate_id,
        seller_id="seller-1",
        category=category,
        region=region,
        price_per_unit=price_per_unit,
        quantity_available=quantity_available,
        social_impact_score=social_impact_score,
        social_impact_category=social_impact_category,
        created_at=created_at,
        updated_at=updated_at,
        source="internal",
    )


def _make_scorer(criteria: Criteria | None = None) -> CandidateScorer:
    """Create a scorer pinned to FIXED_NOW."""
    return CandidateScorer(ScorerConfig(criteria=criteria or Criteria(), now=FIXED_NOW))


class TestPriceCompetitiveness:
    """Tests for the price sub-score."""

    def test_no_upper_bound_is_neutral(self) -> None:
        """Without priceMax every price scores 1."""
        assert price_competitiveness(5000.0, None) == 1.0

    def test_within_bound(self) -> None:
        """Prices at or below priceMax score 1."""
        assert price_competitiveness(80.0, 100.0) == 1.0
        assert price_competitiveness(100.0, 100.0) == 1.0

    def test_over_bound_decays_linearly(self) -> None:
        """Prices above priceMax lose score with the relative overage."""
        assert price_competitiveness(150.0, 100.0) == pytest.approx(0.5)

    def test_floor_at_zero(self) -> None:
        """Prices beyond twice priceMax score 0."""
        assert price_competitiveness(250.0, 100.0) == 0.0


class TestRegionScore:
    """Tests for the region sub-score."""

    def test_no_preference(self) -> None:
        """No requested region scores 1."""
        assert region_score("Gauteng", None) == 1.0

    def test_case_insensitive_match(self) -> None:
        """Regions match ignoring case and surrounding space."""
        assert region_score(" western cape ", "Western Cape") == 1.0

    def test_mismatch_or_unknown(self) -> None:
        """Other or unknown regions score 0."""
        assert region_score("Gauteng", "Western Cape") == 0.0
        assert region_score(None, "Western Cape") == 0.0


class TestFreshnessScore:
    """Tests for the quality sub-score."""

    def test_updated_now(self) -> None:
        """A candidate updated at the reference time scores 1."""
        assert freshness_score(_make_candidate(updated_at=FIXED_NOW), FIXED_NOW) == 1.0

    def test_decays_with_age(self) -> None:
        """Score is 1 / (1 + days)."""
        candidate = _make_candidate(updated_at=days_ago(1))

        assert freshness_score(candidate, FIXED_NOW) == pytest.approx(0.5)

    def test_falls_back_to_created_at(self) -> None:
        """created_at is used when updated_at is missing."""
        candidate = _make_candidate(updated_at=None, created_at=days_ago(3))

        assert freshness_score(candidate, FIXED_NOW) == pytest.approx(0.25)

    def test_future_timestamp_counts_as_now(self) -> None:
        """Timestamps in the future do not exceed 1."""
        candidate = _make_candidate(updated_at=FIXED_NOW + timedelta(days=2))

        assert freshness_score(candidate, FIXED_NOW) == 1.0

    def test_missing_timestamps_penalized(self) -> None:
        """Candidates without timestamps get the low default."""
        candidate = _make_candidate(updated_at=None, created_at=None)

        assert freshness_score(candidate, FIXED_NOW) == pytest.approx(0.1)


class TestSocialImpactAlignment:
    """Tests for the social-impact sub-score."""

    def test_rating_scaled(self) -> None:
        """Rating is scaled to [0, 1]."""
        assert social_impact_alignment(50.0, None, None) == pytest.approx(0.5)

    def test_category_bonus(self) -> None:
        """Matching categories earn the bonus."""
        assert social_impact_alignment(50.0, "Community", "community") == pytest.approx(0.6)

    def test_bonus_capped(self) -> None:
        """The bonus never pushes the score above 1."""
        assert social_impact_alignment(90.0, "community", "community") == 1.0

    def test_no_bonus_on_mismatch(self) -> None:
        """Different categories earn no bonus."""
        assert social_impact_alignment(50.0, "environmental", "community") == pytest.approx(0.5)


class TestBucketMatchQuality:
    """Tests for quality buckets."""

    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (1.0, MatchQuality.EXCELLENT),
            (0.8, MatchQuality.EXCELLENT),
            (0.7999, MatchQuality.GOOD),
            (0.6, MatchQuality.GOOD),
            (0.5999, MatchQuality.FAIR),
            (0.4, MatchQuality.FAIR),
            (0.3999, MatchQuality.POOR),
            (0.0, MatchQuality.POOR),
        ],
    )
    def test_boundaries_are_inclusive(self, score: float, expected: MatchQuality) -> None:
        """Thresholds are inclusive lower bounds."""
        assert bucket_match_quality(score) == expected


class TestExplainFactors:
    """Tests for matching factor explanations."""

    def test_threshold_and_order(self) -> None:
        """Factors at or above 0.7 are listed in fixed order."""
        components = ScoreComponents(
            price_competitiveness=1.0,
            distance_score=0.0,
            quality_score=0.7,
            social_impact_score=0.69,
        )

        assert explain_factors(components) == ["price", "quality"]

    def test_none_strong(self) -> None:
        """No strong sub-score gives an empty list."""
        components = ScoreComponents(0.1, 0.2, 0.3, 0.4)

        assert explain_factors(components) == []


class TestCandidateScorer:
    """Tests for composite scoring."""

    def test_composite_with_default_weights(self) -> None:
        """Default weights are normalized by their sum."""
        criteria = Criteria(commodity_type="cannabis", region="Western Cape", price_max=100.0)

        scored = _make_scorer(criteria).score(_make_candidate())

        # 0.375 * 1 + 0.25 * 1 + 0.1875 * 1 + 0.1875 * 0.6
        assert scored.match_score == pytest.approx(0.925)
        assert scored.match_quality == MatchQuality.EXCELLENT
        assert scored.matching_factors == ["price", "region", "quality"]
        assert scored.social_impact_score == pytest.approx(0.6)
        assert scored.social_impact_rating == 60.0

    def test_row_carries_every_component(self) -> None:
        """The output row exposes each sub-score unchanged."""
        components = ScoreComponents(
            price_competitiveness=0.9,
            distance_score=0.0,
            quality_score=0.5,
            social_impact_score=0.6,
            match_score=0.55,
        )

        row = ScoredCandidate.from_candidate(
            _make_candidate(), components, MatchQuality.FAIR, ["price"]
        )

        assert row.model_dump(include=set(components.to_dict())) == components.to_dict()
        assert row.social_impact_rating == 60.0

    def test_request_weights_apply(self) -> None:
        """Per-request weights replace the defaults."""
        weights = ScoringWeights(price=0.0, distance=1.0, quality=0.0, social_impact=0.0)
        criteria = Criteria(region="Gauteng", weights=weights)

        scored = _make_scorer(criteria).score(_make_candidate(region="Western Cape"))

        assert scored.match_score == 0.0
        assert scored.match_quality == MatchQuality.POOR

    def test_equal_weights(self) -> None:
        """Equal weights average the sub-scores."""
        weights = ScoringWeights(price=1.0, distance=1.0, quality=1.0, social_impact=1.0)
        criteria = Criteria(weights=weights)
        candidate = _make_candidate(updated_at=days_ago(1), social_impact_score=20.0)

        scored = _make_scorer(criteria).score(candidate)

        assert scored.match_score == pytest.approx((1.0 + 1.0 + 0.5 + 0.2) / 4)

    @pytest.mark.parametrize(
        ("price", "quantity", "reason"),
        [
            (float("nan"), 1.0, "non-finite price"),
            (-1.0, 1.0, "negative price"),
            (10.0, float("inf"), "non-finite quantity"),
            (10.0, -5.0, "negative quantity"),
        ],
    )
    def test_unscoreable_candidates(self, price: float, quantity: float, reason: str) -> None:
        """Unusable numbers raise ScoringSkipped."""
        candidate = _make_candidate(price_per_unit=price, quantity_available=quantity)

        with pytest.raises(ScoringSkipped) as exc_info:
            _make_scorer().score(candidate)

        assert exc_info.value.reason == reason

    def test_score_candidates_separates_skips(self) -> None:
        """Skipped candidates are returned separately, order preserved."""
        candidates = [
            _make_candidate("a"),
            _make_candidate("b", price_per_unit=float("nan")),
            _make_candidate("c"),
        ]

        scored, skipped = _make_scorer().score_candidates(candidates)

        assert [s.id for s in scored] == ["a", "c"]
        assert [s.candidate_id for s in skipped] == ["b"]

    def test_pure_function(self) -> None:
        """The pure API matches the class API."""
        config = ScorerConfig(criteria=Criteria(), now=FIXED_NOW)

        scored, skipped = score_candidates_pure([_make_candidate()], config)

        assert len(scored) == 1
        assert skipped == []

    def test_no_price_bounds_sweep(self) -> None:
        """Without price bounds every candidate has neutral price score."""
        rng = random.Random(42)
        candidates = [
            _make_candidate(
                candidate_id=str(i),
                price_per_unit=rng.uniform(0, 10_000),
                quantity_available=rng.uniform(0, 500),
                social_impact_score=rng.uniform(0, 100),
                updated_at=days_ago(rng.uniform(0, 365)),
                region=rng.choice(["Western Cape", "Gauteng", None]),
            )
            for i in range(200)
        ]
        criteria = Criteria(commodity_type="cannabis", region="Gauteng")

        scored, skipped = _make_scorer(criteria).score_candidates(candidates)

        assert skipped == []
        assert all(s.price_competitiveness == 1.0 for s in scored)
        assert all(0.0 <= s.match_score <= 1.0 for s in scored)

    def test_scores_within_unit_interval(self) -> None:
        """Composite stays in [0, 1] for extreme inputs."""
        rng = random.Random(7)
        criteria = Criteria(price_max=1.0, social_impact_category="community")
        scorer = _make_scorer(criteria)

        for i in range(100):
            candidate = _make_candidate(
                candidate_id=str(i),
                price_per_unit=rng.uniform(0, 1e6),
                social_impact_score=rng.uniform(0, 100),
                social_impact_category=rng.choice(["community", None]),
                updated_at=rng.choice([None, FIXED_NOW + timedelta(days=30)]),
            )
            scored = scorer.score(candidate)
            assert 0.0 <= scored.match_score <= 1.0
