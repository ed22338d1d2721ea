"""Criteria normalization for matching requests.

Requests arrive in two generations of shape: the current one nests fields
under ``criteria`` (``{"criteria": {"productType": ...}}``) while older
clients send them at the top level (``{"productType": ...}``). All
compatibility handling lives here so call sites only ever see ``Criteria``.

Precedence, per canonical field:
    1. The first non-blank alias inside the ``criteria`` block.
    2. The first non-blank alias at the top level (legacy).
    3. The default.
"""

import math
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from src.config.schemas.matching import ScoringWeights
from src.matching.errors import ValidationError
from src.matching.models import Criteria


logger = structlog.get_logger()

CRITERIA_BLOCK_KEY = "criteria"

# Canonical field -> accepted request keys, in precedence order
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "commodity_type": ("commodityType", "productType", "category", "categoryCode"),
    "region": ("region", "location", "preferredLocation"),
    "price_min": ("priceMin", "priceRangeMin", "budgetMin"),
    "price_max": ("priceMax", "maxPrice", "priceRangeMax", "budgetMax", "budget"),
    "quantity": ("quantity", "targetQuantity"),
    "min_social_impact_score": ("minSocialImpactScore",),
    "social_impact_category": ("socialImpactCategory",),
    "max_distance_km": ("maxDistanceKm",),
    "weights": ("weights",),
}

_NUMERIC_FIELDS = (
    "price_min",
    "price_max",
    "quantity",
    "min_social_impact_score",
    "max_distance_km",
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first_present(block: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        value = block.get(key)
        if not _is_blank(value):
            return value
    return None


def _resolve(
    current: Mapping[str, Any], legacy: Mapping[str, Any], aliases: tuple[str, ...]
) -> Any:
    """Resolve one field, preferring the current block over legacy keys."""
    value = _first_present(current, aliases)
    if value is None:
        value = _first_present(legacy, aliases)
    return value


def _to_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"{field} must be a string"
        raise ValidationError(msg, field=field)
    return value.strip() or None


def _to_number(value: Any, field: str) -> float | None:
    """Parse a numeric criteria value.

    Criteria are validated strictly, unlike candidate records: a malformed
    number here is the caller's error.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        msg = f"{field} must be a number"
        raise ValidationError(msg, field=field)
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        msg = f"{field} must be a number, got {value!r}"
        raise ValidationError(msg, field=field) from e
    if not math.isfinite(number):
        msg = f"{field} must be finite"
        raise ValidationError(msg, field=field)
    return number


def _to_weights(value: Any, default: ScoringWeights) -> ScoringWeights:
    """Merge request weights over the configured defaults."""
    if value is None:
        return default
    if not isinstance(value, Mapping):
        msg = "weights must be an object"
        raise ValidationError(msg, field="weights")

    merged: dict[str, Any] = default.model_dump(by_alias=True)
    for key, weight in value.items():
        merged["socialImpact" if key == "social_impact" else key] = weight

    try:
        return ScoringWeights.model_validate(merged)
    except PydanticValidationError as e:
        raise _convert_error(e, prefix="weights") from e


def _convert_error(
    error: PydanticValidationError, prefix: str | None = None
) -> ValidationError:
    first = error.errors()[0]
    loc = ".".join(str(part) for part in first["loc"])
    field = f"{prefix}.{loc}" if prefix and loc else (prefix or loc or None)
    return ValidationError(f"Invalid criteria: {first['msg']}", field=field)


def normalize_criteria(
    raw: Mapping[str, Any],
    default_weights: ScoringWeights | None = None,
) -> Criteria:
    """Convert a loosely-typed request into canonical criteria.

    Args:
        raw: Request body, current or legacy shape.
        default_weights: Weights applied when the request gives none.

    Returns:
        Immutable Criteria.

    Raises:
        ValidationError: If neither a commodity type nor a quantity is
            given, or any supplied value is malformed.
    """
    if not isinstance(raw, Mapping):
        msg = "Matching request must be an object"
        raise ValidationError(msg)

    current = raw.get(CRITERIA_BLOCK_KEY) or {}
    if not isinstance(current, Mapping):
        msg = "criteria must be an object"
        raise ValidationError(msg, field=CRITERIA_BLOCK_KEY)

    values = {
        name: _resolve(current, raw, aliases) for name, aliases in FIELD_ALIASES.items()
    }

    commodity_type = _to_text(values["commodity_type"], "commodityType")
    numbers = {
        name: _to_number(values[name], to_camel(name)) for name in _NUMERIC_FIELDS
    }

    if commodity_type is None and numbers["quantity"] is None:
        msg = "Product type or quantity is required"
        raise ValidationError(msg, field="commodityType")

    fields: dict[str, Any] = {
        "commodity_type": commodity_type.lower() if commodity_type else None,
        "region": _to_text(values["region"], "region"),
        "social_impact_category": _to_text(
            values["social_impact_category"], "socialImpactCategory"
        ),
        "weights": _to_weights(values["weights"], default_weights or ScoringWeights()),
        **{name: number for name, number in numbers.items() if number is not None},
    }

    try:
        criteria = Criteria(**fields)
    except PydanticValidationError as e:
        raise _convert_error(e) from e

    logger.debug(
        "criteria_normalized",
        component="matching",
        subcomponent="criteria",
        commodity_type=criteria.commodity_type,
        region=criteria.region,
        has_price_bounds=criteria.has_price_bounds,
        legacy_shape=CRITERIA_BLOCK_KEY not in raw,
    )
    return criteria


def criteria_from_buy_signal(signal: Mapping[str, Any]) -> dict[str, Any]:
    """Build a matching request from a buy-signal record.

    Args:
        signal: Buy signal with ``category``, ``targetQuantity``,
            ``budgetMin``, ``budgetMax`` and ``preferredLocation``.

    Returns:
        Request body in the current ``{"criteria": {...}}`` shape.
    """
    mapping = {
        "commodityType": signal.get("category"),
        "quantity": signal.get("targetQuantity"),
        "priceMin": signal.get("budgetMin"),
        "priceMax": signal.get("budgetMax"),
        "region": signal.get("preferredLocation"),
    }
    present = {key: value for key, value in mapping.items() if value is not None}
    return {CRITERIA_BLOCK_KEY: present}
