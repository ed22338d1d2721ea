"""Source runner with parallel execution and failure isolation."""

import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait

import structlog

from src.matching.errors import SourceUnavailable
from src.matching.models import Criteria, SourceBatch
from src.settings import AppSettings
from src.sources.base import CandidateSource
from src.sources.cache import SourceCache


logger = structlog.get_logger()

DEFAULT_MAX_WORKERS = 5
DEFAULT_TIMEOUT_SECONDS = 3.0


class SourceRunner:
    """Fetches candidate records from several sources concurrently.

    Provides:
    - Parallel fetching with bounded concurrency
    - A shared deadline for the whole fan-out
    - Failure isolation (one source failing or timing out doesn't stop others)
    - Optional TTL caching of successful fetches
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
        cache: SourceCache | None = None,
        request_id: str = "runner",
    ) -> None:
        """Initialize the source runner.

        Args:
            max_workers: Maximum parallel fetches.
            timeout_seconds: Deadline for the fan-out; None waits forever.
            cache: Optional result cache.
            request_id: Request identifier for logging.
        """
        self._max_workers = max(1, max_workers)
        self._timeout = timeout_seconds
        self._cache = cache
        self._log = logger.bind(component="sources", request_id=request_id)

    @classmethod
    def from_settings(
        cls, settings: AppSettings, request_id: str = "runner"
    ) -> "SourceRunner":
        """Build a runner from application settings.

        Args:
            settings: Application settings.
            request_id: Request identifier for logging.

        Returns:
            Configured SourceRunner.
        """
        return cls(
            max_workers=settings.source_concurrency,
            timeout_seconds=settings.source_timeout_seconds,
            cache=SourceCache(ttl_seconds=settings.source_cache_ttl_ms / 1000),
            request_id=request_id,
        )

    def fetch_all(
        self,
        sources: Sequence[CandidateSource],
        criteria: Criteria,
    ) -> list[SourceBatch]:
        """Fetch from every source.

        Args:
            sources: Sources to query.
            criteria: Normalized criteria passed to each source.

        Returns:
            One SourceBatch per source, in input order. Failed or timed-out
            sources carry an error instead of records.
        """
        start = time.perf_counter()
        self._log.info(
            "fan_out_started",
            source_count=len(sources),
            max_workers=self._max_workers,
        )

        batches: dict[int, SourceBatch] = {}
        pending: dict[int, CandidateSource] = {}

        for index, source in enumerate(sources):
            cached = self._cache.get(source.name, criteria) if self._cache else None
            if cached is not None:
                batches[index] = SourceBatch(name=source.name, records=cached, cached=True)
            else:
                pending[index] = source

        if pending:
            batches.update(self._fetch_pending(pending, criteria))

        ordered = [batches[index] for index in range(len(sources))]
        self._log.info(
            "fan_out_complete",
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            sources_succeeded=sum(1 for b in ordered if b.succeeded),
            sources_failed=sum(1 for b in ordered if not b.succeeded),
            sources_cached=sum(1 for b in ordered if b.cached),
        )
        return ordered

    def _fetch_pending(
        self,
        pending: dict[int, CandidateSource],
        criteria: Criteria,
    ) -> dict[int, SourceBatch]:
        executor = ThreadPoolExecutor(max_workers=self._max_workers)
        try:
            future_to_index: dict[Future[SourceBatch], int] = {
                executor.submit(self._fetch_one, source, criteria): index
                for index, source in pending.items()
            }
            done, not_done = wait(future_to_index, timeout=self._timeout)
        finally:
            # Don't block on sources that overran the deadline
            executor.shutdown(wait=False, cancel_futures=True)

        results: dict[int, SourceBatch] = {}
        for future in done:
            index = future_to_index[future]
            results[index] = future.result()

        for future in not_done:
            source = pending[future_to_index[future]]
            error = SourceUnavailable(
                source.name, f"timed out after {self._timeout_ms()} ms"
            )
            self._log.warning("source_timed_out", source=source.name)
            results[future_to_index[future]] = SourceBatch(
                name=source.name, error=error.message
            )

        return results

    def _fetch_one(self, source: CandidateSource, criteria: Criteria) -> SourceBatch:
        """Fetch from a single source, converting failures to an error batch."""
        start = time.perf_counter()
        log = self._log.bind(source=source.name)

        try:
            records = list(source.fetch(criteria))
        except Exception as e:  # noqa: BLE001
            error = SourceUnavailable(source.name, str(e) or type(e).__name__)
            log.warning("source_failed", error=error.message)
            return SourceBatch(name=source.name, error=error.message)

        if self._cache is not None:
            self._cache.put(source.name, criteria, records)

        log.info(
            "source_complete",
            records=len(records),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return SourceBatch(name=source.name, records=records)

    def _timeout_ms(self) -> int:
        return int((self._timeout or 0) * 1000)
