"""Matching and ranking engine for commodity listings and offers."""

from src.matching.adapter import adapt_record, adapt_records
from src.matching.aggregator import ResultAggregator, SourceReport
from src.matching.allow_list import (
    AllowListFilter,
    filter_min_social_impact,
    is_allowed_category,
)
from src.matching.criteria import criteria_from_buy_signal, normalize_criteria
from src.matching.engine import AuditSink, MatchingEngine, rank
from src.matching.errors import (
    MatchingError,
    MatchingErrorClass,
    ScoringSkipped,
    SourceUnavailable,
    ValidationError,
)
from src.matching.metrics import MatchingMetrics
from src.matching.models import (
    BatchEntry,
    BatchResult,
    BatchStatus,
    Candidate,
    Criteria,
    MatchQuality,
    RankOptions,
    RankResult,
    RunMeta,
    ScoredCandidate,
    SourceBatch,
    SourceFailure,
    SourceSuccess,
)
from src.matching.scorer import CandidateScorer, ScorerConfig, score_candidates_pure


__all__ = [
    "AllowListFilter",
    "AuditSink",
    "BatchEntry",
    "BatchResult",
    "BatchStatus",
    "Candidate",
    "CandidateScorer",
    "Criteria",
    "MatchQuality",
    "MatchingEngine",
    "MatchingError",
    "MatchingErrorClass",
    "MatchingMetrics",
    "RankOptions",
    "RankResult",
    "ResultAggregator",
    "RunMeta",
    "ScoredCandidate",
    "ScorerConfig",
    "ScoringSkipped",
    "SourceBatch",
    "SourceFailure",
    "SourceReport",
    "SourceSuccess",
    "SourceUnavailable",
    "ValidationError",
    "adapt_record",
    "adapt_records",
    "criteria_from_buy_signal",
    "filter_min_social_impact",
    "is_allowed_category",
    "normalize_criteria",
    "rank",
    "score_candidates_pure",
]
