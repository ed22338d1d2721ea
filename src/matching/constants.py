"""Constants for the matching module."""

# Commodity tokens a candidate category must contain to ever be returned.
# Compliance boundary: not configurable and not influenced by requests.
ALLOWED_COMMODITY_TOKENS: frozenset[str] = frozenset({"cannabis", "hemp", "cbd", "thc"})

# Composite score thresholds for match quality buckets, highest first
MATCH_QUALITY_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (0.8, "excellent"),
    (0.6, "good"),
    (0.4, "fair"),
)
MATCH_QUALITY_FLOOR: str = "poor"

# Sub-scores at or above this value are listed in matching_factors
MATCHING_FACTOR_THRESHOLD: float = 0.7

# Explanation names, in the order they are reported
FACTOR_PRICE: str = "price"
FACTOR_REGION: str = "region"
FACTOR_QUALITY: str = "quality"
FACTOR_SOCIAL_IMPACT: str = "social-impact"

# Multiplier when candidate and criteria share a social-impact category
SOCIAL_IMPACT_CATEGORY_BONUS: float = 1.2

SOCIAL_IMPACT_SCORE_MAX: float = 100.0

# Quality score for candidates without any timestamp
MISSING_TIMESTAMP_QUALITY_SCORE: float = 0.1

SECONDS_PER_DAY: int = 24 * 60 * 60

# Source name for candidate pools passed directly to the engine
DEFAULT_SOURCE_NAME: str = "internal"

# Failure entry name for unexpected errors inside the engine
ENGINE_FAILURE_NAME: str = "engine"
