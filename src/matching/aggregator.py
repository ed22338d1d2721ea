"""Result aggregation, deduplication and run metadata."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from src.matching.models import (
    RunMeta,
    ScoredCandidate,
    SourceFailure,
    SourceSuccess,
)


logger = structlog.get_logger()

IdKey = tuple[int, int, str, str]
RankingKey = tuple[float, float, IdKey]


@dataclass(frozen=True)
class SourceReport:
    """What one source contributed to a ranking call.

    Attributes:
        name: Source name.
        returned_data: Whether the source returned at least one record.
        cached: Whether the records were served from cache.
        error: Failure message when the source could not be fetched.
    """

    name: str
    returned_data: bool = False
    cached: bool = False
    error: str | None = None


def id_sort_key(candidate_id: str) -> IdKey:
    """Order IDs numerically when numeric, lexically otherwise.

    Numeric IDs sort before non-numeric ones. Digit strings are compared
    by (length, digits) once leading zeros are stripped, which orders them
    by value without converting arbitrarily long IDs to int.

    Args:
        candidate_id: Candidate identifier.

    Returns:
        Sort key tuple.
    """
    if candidate_id.isascii() and candidate_id.isdigit():
        digits = candidate_id.lstrip("0")
        return (0, len(digits), digits, candidate_id)
    return (1, 0, "", candidate_id)


def ranking_sort_key(scored: ScoredCandidate) -> RankingKey:
    """Deterministic ranking order.

    Order:
    1. match_score descending
    2. raw social-impact rating descending
    3. id ascending

    Args:
        scored: Scored candidate.

    Returns:
        Sort key tuple.
    """
    return (-scored.match_score, -scored.social_impact_rating, id_sort_key(scored.id))


class ResultAggregator:
    """Merges scored candidates from all sources into the final response.

    Sorts by ranking order, removes duplicate offers (same seller,
    category, quantity and price) keeping the best-ranked copy, truncates
    to the limit and builds per-source run metadata. Inputs are never
    mutated.
    """

    def __init__(self, request_id: str = "pure") -> None:
        """Initialize the aggregator.

        Args:
            request_id: Request identifier for logging.
        """
        self._log = logger.bind(
            component="matching",
            subcomponent="aggregator",
            request_id=request_id,
        )

    def aggregate(
        self,
        scored: Sequence[ScoredCandidate],
        reports: Sequence[SourceReport],
        limit: int,
        skipped: int = 0,
        truncated: bool = False,
    ) -> tuple[list[ScoredCandidate], RunMeta]:
        """Build the ordered result list and run metadata.

        Args:
            scored: Scored candidates from all sources.
            reports: One report per source consulted.
            limit: Maximum number of results.
            skipped: Candidates that could not be scored.
            truncated: Whether the candidate pool was capped.

        Returns:
            Tuple of (results, meta).
        """
        ordered = sorted(scored, key=ranking_sort_key)
        unique = self.deduplicate(ordered)
        results = unique[:limit]

        meta = self.build_meta(scored, reports, skipped=skipped, truncated=truncated)

        self._log.info(
            "aggregation_complete",
            scored_count=len(scored),
            duplicates_removed=len(ordered) - len(unique),
            results_count=len(results),
            limit=limit,
        )
        return results, meta

    @staticmethod
    def deduplicate(ordered: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
        """Drop later copies of the same offer.

        Args:
            ordered: Candidates in ranking order.

        Returns:
            New list with the first occurrence of each offer.
        """
        seen: set[tuple[str, str, float, float]] = set()
        unique: list[ScoredCandidate] = []
        for candidate in ordered:
            key = candidate.dedup_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique

    @staticmethod
    def build_meta(
        scored: Sequence[ScoredCandidate],
        reports: Sequence[SourceReport],
        skipped: int = 0,
        truncated: bool = False,
    ) -> RunMeta:
        """Build per-source run metadata.

        Sources that returned data get a success entry whose count is the
        number of their candidates that survived filtering and scoring.
        Sources that failed get a failure entry. Sources that returned no
        records are not listed.

        Args:
            scored: Scored candidates from all sources.
            reports: One report per source consulted.
            skipped: Candidates that could not be scored.
            truncated: Whether the candidate pool was capped.

        Returns:
            RunMeta with successes and failures in source order.
        """
        counts = Counter(candidate.source for candidate in scored)
        successes: list[SourceSuccess] = []
        failures: list[SourceFailure] = []

        for report in reports:
            if report.error is not None:
                failures.append(SourceFailure(name=report.name, error=report.error))
            elif report.returned_data:
                successes.append(
                    SourceSuccess(
                        name=report.name,
                        count=counts.get(report.name, 0),
                        cached=report.cached,
                    )
                )

        return RunMeta(
            successes=successes,
            failures=failures,
            truncated=truncated,
            skipped=skipped,
        )
