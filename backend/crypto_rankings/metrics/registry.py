from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Iterable

from pydantic import BaseModel, ConfigDict

from crypto_rankings.errors import ConfigurationError, UnknownMetricError


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class SemanticType(str, Enum):
    """Formatting category of a metric's raw values."""

    CURRENCY_LARGE = "currency-large"
    CURRENCY_PRICE = "currency-price"
    PERCENTAGE = "percentage"
    INTEGER_RANK = "integer-rank"
    COUNT_LARGE = "count-large"
    PERCENTAGE_DOMINANCE = "percentage-dominance"
    SUPPLY_LARGE = "supply-large"


class MetricDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    priority: Priority
    description: str
    semantic_type: SemanticType
    # Provider record field holding the raw value; differs from key for interactions.
    field: str


class MetricRegistry:
    """Read-only table of sortable metrics, ordered by key.

    Built once and shared between threads; nothing mutates it after
    construction.
    """

    def __init__(self, descriptors: Iterable[MetricDescriptor]) -> None:
        table: dict[str, MetricDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.key in table:
                raise ConfigurationError(f"Duplicate metric key: {descriptor.key}")
            table[descriptor.key] = descriptor
        if not table:
            raise ConfigurationError("Metric registry is empty.")
        self._metrics = tuple(table[key] for key in sorted(table))
        self._by_key = {descriptor.key: descriptor for descriptor in self._metrics}

    def __len__(self) -> int:
        return len(self._metrics)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def list_metrics(self) -> tuple[MetricDescriptor, ...]:
        return self._metrics

    def keys(self) -> list[str]:
        return [descriptor.key for descriptor in self._metrics]

    def describe(self, key: str) -> MetricDescriptor:
        try:
            return self._by_key[key]
        except KeyError:
            raise UnknownMetricError(key) from None

    def get(self, key: str) -> MetricDescriptor | None:
        return self._by_key.get(key)

    def by_priority(self, priority: Priority) -> list[str]:
        return [d.key for d in self._metrics if d.priority == priority]


_DEFAULT_METRICS = (
    MetricDescriptor(
        key="market_cap",
        name="Market Cap",
        priority=Priority.HIGH,
        description="Market Capitalization",
        semantic_type=SemanticType.CURRENCY_LARGE,
        field="market_cap",
    ),
    MetricDescriptor(
        key="alt_rank",
        name="AltRank™",
        priority=Priority.HIGH,
        description="Proprietary Performance Ranking",
        semantic_type=SemanticType.INTEGER_RANK,
        field="alt_rank",
    ),
    MetricDescriptor(
        key="price",
        name="Price",
        priority=Priority.HIGH,
        description="Current USD Price",
        semantic_type=SemanticType.CURRENCY_PRICE,
        field="price",
    ),
    MetricDescriptor(
        key="volume_24h",
        name="24h Volume",
        priority=Priority.HIGH,
        description="24 Hour Trading Volume",
        semantic_type=SemanticType.CURRENCY_LARGE,
        field="volume_24h",
    ),
    MetricDescriptor(
        key="interactions",
        name="Social Interactions",
        priority=Priority.HIGH,
        description="Social Engagements",
        semantic_type=SemanticType.COUNT_LARGE,
        field="interactions_24h",
    ),
    MetricDescriptor(
        key="percent_change_1h",
        name="1h Change",
        priority=Priority.HIGH,
        description="1 Hour Price Change",
        semantic_type=SemanticType.PERCENTAGE,
        field="percent_change_1h",
    ),
    MetricDescriptor(
        key="percent_change_24h",
        name="24h Change",
        priority=Priority.HIGH,
        description="24 Hour Price Change",
        semantic_type=SemanticType.PERCENTAGE,
        field="percent_change_24h",
    ),
    MetricDescriptor(
        key="percent_change_7d",
        name="7d Change",
        priority=Priority.HIGH,
        description="7 Day Price Change",
        semantic_type=SemanticType.PERCENTAGE,
        field="percent_change_7d",
    ),
    MetricDescriptor(
        key="social_dominance",
        name="Social Dominance",
        priority=Priority.MEDIUM,
        description="Social Volume Percentage",
        semantic_type=SemanticType.PERCENTAGE_DOMINANCE,
        field="social_dominance",
    ),
    MetricDescriptor(
        key="circulating_supply",
        name="Circulating Supply",
        priority=Priority.MEDIUM,
        description="Circulating Token Supply",
        semantic_type=SemanticType.SUPPLY_LARGE,
        field="circulating_supply",
    ),
    MetricDescriptor(
        key="market_dominance",
        name="Market Dominance",
        priority=Priority.MEDIUM,
        description="Market Cap Percentage",
        semantic_type=SemanticType.PERCENTAGE_DOMINANCE,
        field="market_dominance",
    ),
)


@lru_cache(maxsize=1)
def default_registry() -> MetricRegistry:
    return MetricRegistry(_DEFAULT_METRICS)
