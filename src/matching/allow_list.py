"""Allow-list security filter for candidate categories."""

from collections.abc import Iterable

import structlog

from src.matching.constants import ALLOWED_COMMODITY_TOKENS
from src.matching.models import Candidate


logger = structlog.get_logger()


def is_allowed_category(category: str) -> bool:
    """Check a category against the fixed commodity allow-list.

    Args:
        category: Candidate category.

    Returns:
        True if the lower-cased category contains an allow-listed token.
    """
    lowered = category.lower()
    return any(token in lowered for token in ALLOWED_COMMODITY_TOKENS)


class AllowListFilter:
    """Restricts candidates to legally permitted commodity categories.

    The allow-list is fixed at module level and runs before any
    caller-supplied filter. A requested commodity type can only narrow the
    result (intersection), never widen it: a candidate passes only if its
    category contains an allow-listed token AND, when given, the requested
    token.
    """

    def __init__(self, request_id: str = "pure") -> None:
        """Initialize the filter.

        Args:
            request_id: Request identifier for logging.
        """
        self._log = logger.bind(
            component="matching",
            subcomponent="allow_list",
            request_id=request_id,
        )

    def apply(
        self,
        candidates: Iterable[Candidate],
        commodity_type: str | None = None,
    ) -> list[Candidate]:
        """Filter candidates.

        Args:
            candidates: Candidates to filter.
            commodity_type: Optional requested commodity token.

        Returns:
            New list of permitted candidates, input order preserved.
        """
        requested = (commodity_type or "").strip().lower()
        kept: list[Candidate] = []
        rejected_policy = 0
        rejected_commodity = 0

        for candidate in candidates:
            if not is_allowed_category(candidate.category):
                rejected_policy += 1
                continue
            if requested and requested not in candidate.category.lower():
                rejected_commodity += 1
                continue
            kept.append(candidate)

        self._log.info(
            "allow_list_applied",
            kept_count=len(kept),
            rejected_policy=rejected_policy,
            rejected_commodity=rejected_commodity,
            commodity_type=requested or None,
        )
        return kept


def filter_min_social_impact(
    candidates: Iterable[Candidate], minimum: float
) -> list[Candidate]:
    """Drop candidates rated below the requested social-impact minimum.

    Args:
        candidates: Candidates that already passed the allow-list.
        minimum: Minimum social-impact rating (0-100).

    Returns:
        New list of candidates meeting the minimum.
    """
    return [c for c in candidates if c.social_impact_score >= minimum]
