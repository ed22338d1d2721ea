"""Candidate source interfaces."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from src.matching.models import Criteria


@runtime_checkable
class CandidateSource(Protocol):
    """Protocol for named candidate sources.

    Sources are responsible for:
    1. Fetching raw candidate records for a request
    2. Raising on failure (the runner isolates and records it)

    Records are returned raw; normalization happens in the engine's adapter.
    """

    @property
    def name(self) -> str:
        """Source name used for attribution in run metadata."""
        ...

    def fetch(self, criteria: Criteria) -> Sequence[Mapping[str, Any]]:
        """Fetch raw candidate records.

        Args:
            criteria: Normalized request criteria.

        Returns:
            Raw records.
        """
        ...


class CandidatePoolProvider(Protocol):
    """Storage collaborator returning raw records by status."""

    def __call__(self, status: str) -> Sequence[Mapping[str, Any]]:
        """Return records with the given status.

        Args:
            status: Record status, e.g. ``active``.

        Returns:
            Raw records.
        """
        ...
