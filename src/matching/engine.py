"""Ranking orchestrator for the matching engine."""

from __future__ import annotations

import time
import uuid
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

import structlog
from pydantic import ValidationError as PydanticValidationError

from src.config.schemas.matching import MatchingConfig
from src.matching.adapter import adapt_records
from src.matching.aggregator import ResultAggregator, SourceReport
from src.matching.allow_list import AllowListFilter, filter_min_social_impact
from src.matching.constants import DEFAULT_SOURCE_NAME, ENGINE_FAILURE_NAME
from src.matching.criteria import normalize_criteria
from src.matching.errors import ValidationError
from src.matching.metrics import MatchingMetrics
from src.matching.models import (
    BatchEntry,
    BatchResult,
    BatchStatus,
    Candidate,
    Criteria,
    RankOptions,
    RankResult,
    RunMeta,
    SourceBatch,
    SourceFailure,
)
from src.matching.scorer import CandidateScorer, ScorerConfig


if TYPE_CHECKING:
    from src.sources.base import CandidateSource
    from src.sources.runner import SourceRunner


logger = structlog.get_logger()


class AuditSink(Protocol):
    """Collaborator that records ranking requests and responses."""

    def __call__(self, criteria: Criteria, result: RankResult) -> None:
        """Record one ranking call."""
        ...


class MatchingEngine:
    """Turns criteria and a candidate pool into ranked, explainable results.

    Pipeline per call:
        normalize criteria -> cap pool -> adapt -> allow-list filter
        -> minimum social-impact filter -> score -> aggregate

    The engine holds only immutable configuration; every call builds its
    own scorer, filters and metrics, so one instance can serve concurrent
    requests. ``ValidationError`` is the only exception that escapes
    ``rank``; any other failure is reported as a ``failures`` entry named
    ``engine``.
    """

    def __init__(
        self,
        config: MatchingConfig | None = None,
        audit_sink: AuditSink | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Matching configuration (weights and limits).
            audit_sink: Optional collaborator notified after each call.
        """
        self._config = config or MatchingConfig()
        self._audit_sink = audit_sink

    @property
    def config(self) -> MatchingConfig:
        """Get the engine configuration."""
        return self._config

    def normalize(self, raw_criteria: Mapping[str, Any]) -> Criteria:
        """Normalize a raw request using the configured default weights.

        Args:
            raw_criteria: Request body, current or legacy shape.

        Returns:
            Canonical criteria.

        Raises:
            ValidationError: If the request is invalid.
        """
        return normalize_criteria(raw_criteria, self._config.scoring.weights)

    def rank(
        self,
        raw_criteria: Mapping[str, Any],
        candidate_pool: Sequence[Mapping[str, Any]] | None = None,
        options: RankOptions | Mapping[str, Any] | None = None,
        batches: Sequence[SourceBatch] = (),
        request_id: str | None = None,
    ) -> RankResult:
        """Rank candidates against criteria.

        This is the main entry point for the engine.

        Args:
            raw_criteria: Request body, current or legacy shape.
            candidate_pool: Raw records attributed to the internal source.
            options: Limit, candidate cap and reference time.
            batches: Records already fetched from named sources.
            request_id: Identifier for log correlation.

        Returns:
            RankResult with ordered results and run metadata.

        Raises:
            ValidationError: If the criteria or options are invalid.
        """
        criteria = self.normalize(raw_criteria)
        rank_options = self._resolve_options(options)

        all_batches = list(batches)
        if candidate_pool is not None:
            all_batches.insert(
                0, SourceBatch(name=DEFAULT_SOURCE_NAME, records=candidate_pool)
            )

        return self.rank_normalized(
            criteria, all_batches, rank_options, request_id or str(uuid.uuid4())
        )

    def rank_sources(
        self,
        raw_criteria: Mapping[str, Any],
        sources: Sequence[CandidateSource],
        runner: SourceRunner,
        options: RankOptions | Mapping[str, Any] | None = None,
        request_id: str | None = None,
    ) -> RankResult:
        """Fetch candidates from named sources, then rank them.

        Criteria are validated before any source is contacted.

        Args:
            raw_criteria: Request body, current or legacy shape.
            sources: Source descriptors to fan out to.
            runner: Runner performing the concurrent fetch.
            options: Limit, candidate cap and reference time.
            request_id: Identifier for log correlation.

        Returns:
            RankResult with ordered results and run metadata.

        Raises:
            ValidationError: If the criteria or options are invalid.
        """
        criteria = self.normalize(raw_criteria)
        rank_options = self._resolve_options(options)
        batches = runner.fetch_all(sources, criteria)
        return self.rank_normalized(
            criteria, batches, rank_options, request_id or str(uuid.uuid4())
        )

    def rank_batch(
        self,
        requests: Sequence[Mapping[str, Any]],
        candidate_pool: Sequence[Mapping[str, Any]],
        options: RankOptions | Mapping[str, Any] | None = None,
    ) -> BatchResult:
        """Rank several requests against one candidate pool.

        At most ``limits.max_batch_size`` requests are processed; an invalid
        request yields an error entry without failing the batch.

        Args:
            requests: Request bodies.
            candidate_pool: Raw records attributed to the internal source.
            options: Options applied to every request.

        Returns:
            BatchResult with one entry per processed request.
        """
        processable = list(requests)[: self._config.limits.max_batch_size]
        entries: list[BatchEntry] = []

        for index, request in enumerate(processable):
            try:
                result = self.rank(request, candidate_pool, options)
            except ValidationError as e:
                entries.append(
                    BatchEntry(batch_index=index, status=BatchStatus.ERROR, error=e.message)
                )
                continue
            entries.append(
                BatchEntry(
                    batch_index=index,
                    status=BatchStatus.SUCCESS,
                    results=result.results,
                    meta=result.meta,
                )
            )

        logger.info(
            "batch_rank_complete",
            component="matching",
            total_requested=len(requests),
            total_processed=len(processable),
            errors=sum(1 for e in entries if e.status == BatchStatus.ERROR),
        )
        return BatchResult(
            total_processed=len(processable),
            total_requested=len(requests),
            batch_results=entries,
        )

    def rank_normalized(
        self,
        criteria: Criteria,
        batches: Sequence[SourceBatch],
        options: RankOptions,
        request_id: str,
    ) -> RankResult:
        """Run the pipeline on already-normalized criteria.

        Args:
            criteria: Canonical criteria.
            batches: Source batches, in attribution order.
            options: Resolved options.
            request_id: Identifier for log correlation.

        Returns:
            RankResult; never raises.
        """
        log = logger.bind(component="matching", request_id=request_id)
        log.info(
            "rank_started",
            sources=[b.name for b in batches],
            commodity_type=criteria.commodity_type,
        )

        try:
            result = self._run_pipeline(criteria, batches, options, request_id, log)
        except Exception as e:  # noqa: BLE001
            log.exception("rank_failed", error=str(e))
            result = self._engine_failure(batches, e)

        self._notify_audit(criteria, result, log)
        return result

    def _run_pipeline(
        self,
        criteria: Criteria,
        batches: Sequence[SourceBatch],
        options: RankOptions,
        request_id: str,
        log: structlog.stdlib.BoundLogger,
    ) -> RankResult:
        metrics = MatchingMetrics()
        limit = options.limit or self._config.limits.default_limit
        max_candidates = options.max_candidates or self._config.limits.max_candidates

        # Phase 1: Cap the pool and normalize records
        start = time.perf_counter()
        capped, reports, truncated = self._cap_pool(batches, max_candidates, metrics)
        candidates: list[Candidate] = []
        for batch in capped:
            candidates.extend(adapt_records(batch.name, batch.records))
        metrics.record_stage("adapt", (time.perf_counter() - start) * 1000)

        # Phase 2: Policy filters
        start = time.perf_counter()
        allowed = AllowListFilter(request_id).apply(candidates, criteria.commodity_type)
        eligible = filter_min_social_impact(allowed, criteria.min_social_impact_score)
        metrics.candidates_rejected = len(candidates) - len(eligible)
        metrics.record_stage("filter", (time.perf_counter() - start) * 1000)

        # Phase 3: Score
        start = time.perf_counter()
        scorer = CandidateScorer(
            ScorerConfig(criteria=criteria, now=options.now or datetime.now(UTC)),
            request_id=request_id,
        )
        scored, skipped = scorer.score_candidates(eligible)
        metrics.candidates_skipped = len(skipped)
        metrics.record_scores([s.match_score for s in scored])
        metrics.record_stage("score", (time.perf_counter() - start) * 1000)

        # Phase 4: Aggregate
        start = time.perf_counter()
        results, meta = ResultAggregator(request_id).aggregate(
            scored, reports, limit, skipped=len(skipped), truncated=truncated
        )
        metrics.results_out = len(results)
        metrics.record_stage("aggregate", (time.perf_counter() - start) * 1000)

        log.info(
            "rank_complete",
            successes=len(meta.successes),
            failures=len(meta.failures),
            truncated=truncated,
            **metrics.to_dict(),
        )
        return RankResult(results=results, meta=meta)

    @staticmethod
    def _cap_pool(
        batches: Sequence[SourceBatch],
        max_candidates: int,
        metrics: MatchingMetrics,
    ) -> tuple[list[SourceBatch], list[SourceReport], bool]:
        """Apply the per-call candidate cap across all sources, in order.

        Args:
            batches: Source batches.
            max_candidates: Maximum raw records processed.
            metrics: Metrics for this call.

        Returns:
            Tuple of (capped successful batches, per-source reports, truncated).
        """
        remaining = max_candidates
        capped: list[SourceBatch] = []
        reports: list[SourceReport] = []
        truncated = False

        for batch in batches:
            if not batch.succeeded:
                reports.append(SourceReport(name=batch.name, error=batch.error))
                continue

            records = batch.records if isinstance(batch.records, list | tuple) else []
            metrics.candidates_in += len(records)
            kept = records[:remaining]
            if len(kept) < len(records):
                truncated = True
                metrics.candidates_dropped_by_cap += len(records) - len(kept)
            remaining -= len(kept)

            reports.append(
                SourceReport(name=batch.name, returned_data=bool(records), cached=batch.cached)
            )
            capped.append(SourceBatch(name=batch.name, records=kept, cached=batch.cached))

        return capped, reports, truncated

    @staticmethod
    def _engine_failure(batches: Sequence[SourceBatch], error: Exception) -> RankResult:
        failures = [
            SourceFailure(name=b.name, error=b.error)
            for b in batches
            if b.error is not None
        ]
        message = str(error) or type(error).__name__
        failures.append(SourceFailure(name=ENGINE_FAILURE_NAME, error=message))
        return RankResult(results=[], meta=RunMeta(failures=failures))

    def _resolve_options(
        self, options: RankOptions | Mapping[str, Any] | None
    ) -> RankOptions:
        if options is None:
            return RankOptions()
        if isinstance(options, RankOptions):
            return options
        try:
            return RankOptions.model_validate(options)
        except PydanticValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(part) for part in first["loc"])
            msg = f"Invalid options: {first['msg']}"
            raise ValidationError(msg, field=f"options.{loc}") from e

    def _notify_audit(
        self,
        criteria: Criteria,
        result: RankResult,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        if self._audit_sink is None:
            return
        try:
            self._audit_sink(criteria, result)
        except Exception as e:  # noqa: BLE001
            log.warning("audit_sink_failed", error=str(e))


def rank(
    raw_criteria: Mapping[str, Any],
    candidate_pool: Sequence[Mapping[str, Any]] | None = None,
    options: RankOptions | Mapping[str, Any] | None = None,
    batches: Sequence[SourceBatch] = (),
    config: MatchingConfig | None = None,
) -> RankResult:
    """Pure function API for ranking.

    Args:
        raw_criteria: Request body, current or legacy shape.
        candidate_pool: Raw records attributed to the internal source.
        options: Limit, candidate cap and reference time.
        batches: Records already fetched from named sources.
        config: Matching configuration.

    Returns:
        RankResult with ordered results and run metadata.

    Raises:
        ValidationError: If the criteria or options are invalid.
    """
    engine = MatchingEngine(config=config)
    return engine.rank(raw_criteria, candidate_pool, options, batches)
