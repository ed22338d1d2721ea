"""Candidate sources backed by marketplace storage."""

from collections.abc import Mapping
from typing import Any

from src.matching.models import Criteria
from src.sources.base import CandidatePoolProvider


class InternalListingsSource:
    """Marketplace listings with a given status."""

    def __init__(
        self,
        provider: CandidatePoolProvider,
        status: str = "active",
        name: str = "internal",
    ) -> None:
        """Initialize the source.

        Args:
            provider: Storage collaborator returning listings by status.
            status: Listing status to fetch.
            name: Source name used for attribution.
        """
        self._provider = provider
        self._status = status
        self._name = name

    @property
    def name(self) -> str:
        """Source name used for attribution."""
        return self._name

    def fetch(self, criteria: Criteria) -> list[Mapping[str, Any]]:  # noqa: ARG002
        """Fetch listings; filtering is left to the engine."""
        return list(self._provider(self._status))


class BuySignalResponsesSource:
    """Seller responses to one buy signal.

    Responses carry an offer (price and quantity) but no category of their
    own; the signal's category is attached so the allow-list can evaluate
    them like any listing.
    """

    def __init__(
        self,
        provider: CandidatePoolProvider,
        signal_category: str,
        status: str = "pending",
        name: str = "buy_signal_responses",
    ) -> None:
        """Initialize the source.

        Args:
            provider: Storage collaborator returning responses by status.
            signal_category: Category of the buy signal being answered.
            status: Response status to fetch.
            name: Source name used for attribution.
        """
        self._provider = provider
        self._signal_category = signal_category
        self._status = status
        self._name = name

    @property
    def name(self) -> str:
        """Source name used for attribution."""
        return self._name

    def fetch(self, criteria: Criteria) -> list[Mapping[str, Any]]:  # noqa: ARG002
        """Fetch responses tagged with the signal category.

        Args:
            criteria: Normalized criteria (unused; the engine filters).

        Returns:
            Response records; an existing ``category`` is never overwritten.
        """
        return [
            {"category": self._signal_category, **response}
            for response in self._provider(self._status)
        ]
