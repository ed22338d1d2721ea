"""Metrics collection for the matching engine."""

from dataclasses import dataclass, field


@dataclass
class MatchingMetrics:
    """Metrics for one ranking call.

    Created per call rather than shared, so concurrent calls never touch
    the same instance.

    Attributes:
        candidates_in: Raw records received across all sources.
        candidates_dropped_by_cap: Raw records dropped by max_candidates.
        candidates_rejected: Candidates removed by the allow-list or minimum
            social-impact filters.
        candidates_skipped: Candidates that could not be scored.
        results_out: Rows in the final response.
        score_values: Composite scores, for percentile calculation.
        stage_durations_ms: Time spent per pipeline stage.
    """

    candidates_in: int = 0
    candidates_dropped_by_cap: int = 0
    candidates_rejected: int = 0
    candidates_skipped: int = 0
    results_out: int = 0
    score_values: list[float] = field(default_factory=list)
    stage_durations_ms: dict[str, float] = field(default_factory=dict)

    def record_stage(self, stage: str, duration_ms: float) -> None:
        """Record the duration of a pipeline stage.

        Args:
            stage: Stage name.
            duration_ms: Duration in milliseconds.
        """
        self.stage_durations_ms[stage] = duration_ms

    def record_scores(self, scores: list[float]) -> None:
        """Record composite scores for percentile calculation.

        Args:
            scores: Score values.
        """
        self.score_values.extend(scores)

    def get_score_percentiles(self) -> dict[str, float]:
        """Calculate score percentiles (p50/p90/p99).

        Returns:
            Dictionary with p50, p90, p99 values.
        """
        if not self.score_values:
            return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

        sorted_scores = sorted(self.score_values)
        n = len(sorted_scores)

        def percentile(p: float) -> float:
            idx = int(p * n / 100)
            return sorted_scores[min(idx, n - 1)]

        return {
            "p50": percentile(50),
            "p90": percentile(90),
            "p99": percentile(99),
        }

    def to_dict(self) -> dict[str, object]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "candidates_in": self.candidates_in,
            "candidates_dropped_by_cap": self.candidates_dropped_by_cap,
            "candidates_rejected": self.candidates_rejected,
            "candidates_skipped": self.candidates_skipped,
            "results_out": self.results_out,
            "stage_durations_ms": dict(self.stage_durations_ms),
            "score_percentiles": self.get_score_percentiles(),
        }
