"""Candidate source adapter.

Normalizes heterogeneous candidate records into ``Candidate``. The read
path is lenient: missing or unparseable numbers become 0 and unparseable
timestamps become None, so one malformed record (or source) never aborts a
ranking call. Non-finite numbers are kept as-is for the scorer to reject.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog

from src.matching.constants import SOCIAL_IMPACT_SCORE_MAX
from src.matching.models import Candidate


logger = structlog.get_logger()

# Canonical field -> record keys, in precedence order. Covers internal
# listings, buy-signal responses and normalized external connector rows.
RECORD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "listingId", "listing_id", "product_id"),
    "seller_id": ("sellerId", "seller_id", "sellerOrgId"),
    "category": ("categoryCode", "category_code", "category", "commodityType"),
    "region": ("region", "location", "seller_region", "supplier_location"),
    "price_per_unit": (
        "pricePerUnit",
        "offerPrice",
        "unit_price",
        "price_per_unit",
        "price",
    ),
    "quantity_available": (
        "quantityAvailable",
        "availableQuantity",
        "quantity",
        "offerQuantity",
        "available_quantity",
        "qty",
    ),
    "social_impact_score": (
        "socialImpactScore",
        "sustainability_score",
        "impact_score",
    ),
    "social_impact_category": (
        "socialImpactCategory",
        "sustainability_focus",
        "impact_type",
    ),
    "created_at": ("createdAt", "created_at"),
    "updated_at": ("updatedAt", "lastUpdated", "updated_at", "last_modified"),
}


def _lookup(record: Mapping[str, Any], field: str) -> Any:
    for key in RECORD_ALIASES[field]:
        value = record.get(key)
        if value is not None:
            return value
    return None


def to_float(value: Any) -> float:
    """Coerce a record value to float, defaulting to 0.

    Args:
        value: Raw value.

    Returns:
        Parsed float; 0.0 for missing, boolean or unparseable input.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def to_text(value: Any) -> str | None:
    """Coerce a record value to a stripped string, None when blank."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_datetime(value: Any) -> datetime | None:
    """Parse a timestamp into an aware UTC datetime.

    Accepts datetimes, ISO-8601 strings (including a trailing ``Z``) and
    epoch milliseconds.

    Args:
        value: Raw timestamp.

    Returns:
        Aware datetime, or None if the value cannot be parsed.
    """
    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    elif isinstance(value, int | float) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def clamp_social_impact(value: float) -> float:
    """Clamp a social-impact rating to [0, 100]; non-finite becomes 0."""
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(SOCIAL_IMPACT_SCORE_MAX, value))


def adapt_record(source: str, record: Mapping[str, Any], index: int = 0) -> Candidate:
    """Normalize one raw record.

    Args:
        source: Name of the originating source.
        record: Raw record.
        index: Position in the source payload, used when the record has no ID.

    Returns:
        Candidate in canonical shape.
    """
    candidate_id = to_text(_lookup(record, "id")) or f"{source}-{index}"
    return Candidate(
        id=candidate_id,
        seller_id=to_text(_lookup(record, "seller_id")) or "",
        category=to_text(_lookup(record, "category")) or "",
        region=to_text(_lookup(record, "region")),
        price_per_unit=to_float(_lookup(record, "price_per_unit")),
        quantity_available=to_float(_lookup(record, "quantity_available")),
        social_impact_score=clamp_social_impact(
            to_float(_lookup(record, "social_impact_score"))
        ),
        social_impact_category=to_text(_lookup(record, "social_impact_category")),
        created_at=to_datetime(_lookup(record, "created_at")),
        updated_at=to_datetime(_lookup(record, "updated_at")),
        source=source,
    )


def adapt_records(source: str, records: Iterable[Any]) -> list[Candidate]:
    """Normalize a source payload into candidates.

    Args:
        source: Name of the originating source.
        records: Raw records; non-mapping entries are dropped.

    Returns:
        Candidates tagged with ``source``.
    """
    candidates: list[Candidate] = []
    dropped = 0

    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            dropped += 1
            continue
        candidates.append(adapt_record(source, record, index))

    if dropped:
        logger.warning(
            "records_dropped",
            component="matching",
            subcomponent="adapter",
            source=source,
            dropped_count=dropped,
        )

    return candidates
