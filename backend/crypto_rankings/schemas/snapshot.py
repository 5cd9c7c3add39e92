from __future__ import annotations

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from crypto_rankings.metrics.registry import MetricDescriptor

PREVIEW_SIZE = 3


class RankedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    value: str
    sort: str


class MetricOutcome(BaseModel):
    """Result of one fetch attempt for one metric.

    Failures are data: ``success`` is false and ``error`` says why. Use the
    ``succeeded`` and ``failed`` constructors instead of building it by hand.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    priority: str
    description: str
    success: bool
    data_count: int = 0
    all_data: list[RankedEntry] = Field(default_factory=list)
    top_3_preview: list[RankedEntry] = Field(default_factory=list)
    fetch_time_ms: int = 0
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_error_matches_success(self) -> "MetricOutcome":
        if self.success and self.error is not None:
            raise ValueError("a successful outcome cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("a failed outcome needs an error message")
        return self

    @classmethod
    def succeeded(
        cls, descriptor: MetricDescriptor, entries: list[RankedEntry], fetch_time_ms: int
    ) -> "MetricOutcome":
        return cls(
            key=descriptor.key,
            name=descriptor.name,
            priority=descriptor.priority.value,
            description=descriptor.description,
            success=True,
            data_count=len(entries),
            all_data=list(entries),
            top_3_preview=list(entries[:PREVIEW_SIZE]),
            fetch_time_ms=fetch_time_ms,
        )

    @classmethod
    def failed(
        cls, descriptor: MetricDescriptor, error: str, fetch_time_ms: int = 0
    ) -> "MetricOutcome":
        return cls(
            key=descriptor.key,
            name=descriptor.name,
            priority=descriptor.priority.value,
            description=descriptor.description,
            success=False,
            fetch_time_ms=fetch_time_ms,
            error=error,
        )

    @classmethod
    def unknown(cls, key: str) -> "MetricOutcome":
        return cls(
            key=key,
            name=key,
            priority="unknown",
            description="Unknown metric",
            success=False,
            error=f"Unknown sort type: {key}",
        )


class RunStatistics(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_duration_ms: int
    successful_fetches: int
    failed_fetches: int
    completed_at: datetime.datetime
    last_update: str


class Snapshot(BaseModel):
    """One complete run across every registered metric."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime.datetime
    total_metrics: int
    all_metrics: dict[str, MetricOutcome]
    fetch_stats: RunStatistics

    @model_validator(mode="after")
    def _check_complete(self) -> "Snapshot":
        if len(self.all_metrics) != self.total_metrics:
            raise ValueError(
                f"snapshot holds {len(self.all_metrics)} outcomes for {self.total_metrics} metrics"
            )
        counted = self.fetch_stats.successful_fetches + self.fetch_stats.failed_fetches
        if counted != self.total_metrics:
            raise ValueError("fetch statistics do not add up to the metric count")
        return self
