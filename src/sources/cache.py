"""In-memory TTL cache for candidate source results."""

import hashlib
import json
import threading
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from src.matching.models import Criteria


logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class CacheEntry:
    """Cached source records with their expiry time."""

    records: tuple[Mapping[str, Any], ...]
    expires_at: float


def criteria_fingerprint(criteria: Criteria) -> str:
    """Stable fingerprint of normalized criteria.

    Args:
        criteria: Normalized criteria.

    Returns:
        SHA-256 hex digest of the canonical JSON form.
    """
    payload = json.dumps(criteria.model_dump(mode="json"), sort_keys=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class SourceCache:
    """Thread-safe TTL cache keyed by source name and criteria.

    A TTL of zero or less disables caching. Expired entries are evicted
    on read and purged whenever a new entry is stored.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime in seconds.
            clock: Monotonic clock, injectable for tests.
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, str], CacheEntry] = {}
        self._lock = threading.Lock()
        self._log = logger.bind(component="sources", subcomponent="cache")

    @property
    def enabled(self) -> bool:
        """Check if caching is enabled."""
        return self._ttl > 0

    def get(
        self, source_name: str, criteria: Criteria
    ) -> tuple[Mapping[str, Any], ...] | None:
        """Look up cached records.

        Args:
            source_name: Source name.
            criteria: Normalized criteria.

        Returns:
            Cached records, or None on a miss or expired entry.
        """
        if not self.enabled:
            return None

        key = (source_name, criteria_fingerprint(criteria))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                del self._entries[key]
                self._log.debug("cache_expired", source=source_name)
                return None

        self._log.debug("cache_hit", source=source_name)
        return entry.records

    def put(
        self,
        source_name: str,
        criteria: Criteria,
        records: Sequence[Mapping[str, Any]],
    ) -> None:
        """Store records for a source and criteria.

        Args:
            source_name: Source name.
            criteria: Normalized criteria.
            records: Records to cache.
        """
        if not self.enabled:
            return

        key = (source_name, criteria_fingerprint(criteria))
        now = self._clock()
        entry = CacheEntry(records=tuple(records), expires_at=now + self._ttl)
        with self._lock:
            purged = self._purge_expired(now)
            self._entries[key] = entry

        if purged:
            self._log.debug("cache_purged", entries=purged)

    def _purge_expired(self, now: float) -> int:
        """Drop expired entries. Caller must hold the lock."""
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
