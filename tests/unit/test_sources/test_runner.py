"""Tests for concurrent source fan-out."""

import threading
from collections.abc import Mapping
from typing import Any

from src.matching.models import Criteria
from src.settings import AppSettings
from src.sources.cache import SourceCache
from src.sources.runner import SourceRunner


class StaticSource:
    """Source returning fixed records and counting calls."""

    def __init__(self, name: str, records: list[Mapping[str, Any]]) -> None:
        self.name = name
        self._records = records
        self.calls = 0

    def fetch(self, criteria: Criteria) -> list[Mapping[str, Any]]:  # noqa: ARG002
        self.calls += 1
        return self._records


class FailingSource:
    """Source that always raises."""

    def __init__(self, name: str, error: Exception) -> None:
        self.name = name
        self._error = error

    def fetch(self, criteria: Criteria) -> list[Mapping[str, Any]]:  # noqa: ARG002
        raise self._error


class BlockingSource:
    """Source that blocks until released."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.release = threading.Event()

    def fetch(self, criteria: Criteria) -> list[Mapping[str, Any]]:  # noqa: ARG002
        self.release.wait(timeout=5)
        return [{"id": "late"}]


CRITERIA = Criteria(commodity_type="cannabis")


class TestFetchAll:
    """Tests for SourceRunner.fetch_all."""

    def test_results_in_source_order(self) -> None:
        """Batches follow the input order regardless of completion order."""
        sources = [
            StaticSource("internal", [{"id": "1"}]),
            StaticSource("exchange", [{"id": "2"}, {"id": "3"}]),
        ]

        batches = SourceRunner(max_workers=2).fetch_all(sources, CRITERIA)

        assert [b.name for b in batches] == ["internal", "exchange"]
        assert [len(b.records) for b in batches] == [1, 2]
        assert all(b.succeeded and not b.cached for b in batches)

    def test_failure_isolated(self) -> None:
        """One failing source does not affect the others."""
        sources = [
            FailingSource("exchange", ConnectionError("connection refused")),
            StaticSource("internal", [{"id": "1"}]),
        ]

        batches = SourceRunner().fetch_all(sources, CRITERIA)

        assert batches[0].error == "connection refused"
        assert batches[0].records == ()
        assert batches[1].succeeded

    def test_error_without_message_uses_type(self) -> None:
        """Exceptions without a message are named by type."""
        batches = SourceRunner().fetch_all([FailingSource("x", RuntimeError())], CRITERIA)

        assert batches[0].error == "RuntimeError"

    def test_timeout(self) -> None:
        """Sources exceeding the deadline are reported as timed out."""
        slow = BlockingSource("slow")
        fast = StaticSource("internal", [{"id": "1"}])
        try:
            batches = SourceRunner(timeout_seconds=0.2).fetch_all([slow, fast], CRITERIA)
        finally:
            slow.release.set()

        assert batches[0].error == "timed out after 200 ms"
        assert batches[1].succeeded

    def test_cache_hit_skips_fetch(self) -> None:
        """A cached source is not fetched again and is flagged cached."""
        source = StaticSource("internal", [{"id": "1"}])
        runner = SourceRunner(cache=SourceCache(ttl_seconds=60))

        first = runner.fetch_all([source], CRITERIA)
        second = runner.fetch_all([source], CRITERIA)

        assert source.calls == 1
        assert first[0].cached is False
        assert second[0].cached is True
        assert list(second[0].records) == [{"id": "1"}]

    def test_failures_not_cached(self) -> None:
        """Failed fetches are retried on the next call."""
        cache = SourceCache(ttl_seconds=60)
        runner = SourceRunner(cache=cache)

        runner.fetch_all([FailingSource("x", ValueError("boom"))], CRITERIA)

        assert len(cache) == 0

    def test_no_sources(self) -> None:
        """An empty source list gives no batches."""
        assert SourceRunner().fetch_all([], CRITERIA) == []


class TestFromSettings:
    """Tests for building a runner from settings."""

    def test_uses_settings(self) -> None:
        """Concurrency, timeout and cache TTL come from settings."""
        settings = AppSettings(
            SOURCE_TIMEOUT_MS=1500, SOURCE_CONCURRENCY=2, SOURCE_CACHE_TTL_MS=0
        )

        runner = SourceRunner.from_settings(settings)

        assert runner._max_workers == 2
        assert runner._timeout == 1.5
        assert runner._cache is not None
        assert runner._cache.enabled is False
