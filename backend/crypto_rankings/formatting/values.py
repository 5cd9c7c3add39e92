from __future__ import annotations

import math

from crypto_rankings.metrics.registry import MetricRegistry, SemanticType
from crypto_rankings.schemas.provider import LunarCrushCoin

# Largest signed 64-bit integer; anything at or above it renders the sentinel.
MAX_MAGNITUDE = 9223372036854775807
OVERFLOW_SENTINEL = "999.99T+"

_LARGE_UNITS = (
    (10**15, "Q"),
    (10**12, "T"),
    (10**9, "B"),
    (10**6, "M"),
    (10**3, "K"),
)

# (threshold, divisor, suffix)
_SUPPLY_UNITS = (
    (1e23, 1e21, "Sx"),
    (1e20, 1e18, "Qt"),
    (1e17, 1e15, "Qd"),
    (1e14, 1e12, "T"),
    (1e11, 1e9, "B"),
    (1e8, 1e6, "M"),
    (1e5, 1e3, "K"),
)

_PERCENT_TYPES = (SemanticType.PERCENTAGE, SemanticType.PERCENTAGE_DOMINANCE)
_CURRENCY_TYPES = (SemanticType.CURRENCY_LARGE, SemanticType.CURRENCY_PRICE, None)


def format_large_number(value: float) -> str:
    if math.isnan(value):
        return "0"
    if math.isinf(value):
        return ("-" if value < 0 else "") + OVERFLOW_SENTINEL
    n = int(value)
    if n < 0:
        return f"-{format_large_number(-n)}"
    if n >= MAX_MAGNITUDE:
        return OVERFLOW_SENTINEL
    for scale, suffix in _LARGE_UNITS:
        if n >= scale:
            return f"{n / scale:.1f}{suffix}"
    return str(n)


def format_supply_number(value: float) -> str:
    # Also catches NaN.
    if not value > 0:
        return "0"
    if math.isinf(value):
        return OVERFLOW_SENTINEL
    for threshold, divisor, suffix in _SUPPLY_UNITS:
        if value >= threshold:
            return f"{value / divisor:.1f}{suffix}"
    return f"{value:.0f}"


def format_value(value: float, semantic_type: SemanticType | None) -> str:
    """Render a raw provider number for display.

    ``semantic_type`` of ``None`` means the metric is unknown; those fall back
    to the price rule. Negative values get a leading ``-`` in front of the
    whole rendering (``-$1.2K``), except supply which never goes below zero.
    NaN renders as zero and infinity as the overflow sentinel for every type.
    """
    if semantic_type == SemanticType.SUPPLY_LARGE:
        return format_supply_number(value)
    if math.isnan(value):
        value = 0.0
    if value < 0:
        return "-" + format_value(-value, semantic_type)
    if math.isinf(value):
        if semantic_type in _CURRENCY_TYPES:
            return f"${OVERFLOW_SENTINEL}"
        return OVERFLOW_SENTINEL

    if semantic_type == SemanticType.CURRENCY_LARGE:
        return f"${format_large_number(value)}"
    if semantic_type == SemanticType.COUNT_LARGE:
        return format_large_number(value)
    if semantic_type in _PERCENT_TYPES:
        return f"{value:.2f}%"
    if semantic_type == SemanticType.INTEGER_RANK:
        return str(int(value))
    return f"${value:.2f}"


def _missing_value(semantic_type: SemanticType) -> str:
    if semantic_type in _PERCENT_TYPES:
        return "0%"
    if semantic_type in (SemanticType.COUNT_LARGE, SemanticType.SUPPLY_LARGE):
        return "0"
    return format_value(0.0, semantic_type)


def format_coin_value(coin: LunarCrushCoin, metric_key: str, registry: MetricRegistry) -> str:
    descriptor = registry.get(metric_key)
    if descriptor is None:
        return format_value(coin.price or 0.0, None)

    raw = getattr(coin, descriptor.field, None)
    if raw is None:
        return _missing_value(descriptor.semantic_type)
    return format_value(float(raw), descriptor.semantic_type)
