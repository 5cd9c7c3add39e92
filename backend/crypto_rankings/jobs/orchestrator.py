from __future__ import annotations

import datetime
import functools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Sequence

from crypto_rankings.errors import ConfigurationError
from crypto_rankings.metrics.registry import MetricRegistry, default_registry
from crypto_rankings.providers import lunarcrush
from crypto_rankings.schemas.snapshot import MetricOutcome, RunStatistics, Snapshot

logger = logging.getLogger(__name__)

# LunarCrush rate limits: at most BATCH_SIZE requests in flight, then a pause.
BATCH_SIZE = 5
BATCH_PAUSE_SECONDS = 1.0

CANCELLED_ERROR = "Run cancelled before fetch"

Fetcher = Callable[[str, int], MetricOutcome]


@dataclass(frozen=True)
class BatchPolicy:
    size: int = BATCH_SIZE
    pause_seconds: float = BATCH_PAUSE_SECONDS

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ConfigurationError("Batch size must be at least 1.")
        if self.pause_seconds < 0:
            raise ConfigurationError("Batch pause cannot be negative.")


def iter_batches(keys: Sequence[str], size: int) -> list[list[str]]:
    return [list(keys[i : i + size]) for i in range(0, len(keys), size)]


class OutcomeCollector:
    """Accumulates outcomes written concurrently by fetch workers.

    Every insert happens under one lock and a key may only be recorded once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: dict[str, MetricOutcome] = {}

    def record(self, key: str, outcome: MetricOutcome) -> None:
        with self._lock:
            if key in self._outcomes:
                raise ValueError(f"Outcome for {key} already recorded")
            self._outcomes[key] = outcome

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def as_mapping(self, order: Sequence[str]) -> dict[str, MetricOutcome]:
        with self._lock:
            return {key: self._outcomes[key] for key in order if key in self._outcomes}


def _guarded_fetch(
    fetch: Fetcher, registry: MetricRegistry, key: str, limit: int
) -> MetricOutcome:
    started = time.perf_counter()
    try:
        return fetch(key, limit)
    except Exception as exc:
        # Fetchers report failures as outcomes; anything raised is a bug, but
        # the run must still account for the metric.
        logger.exception("Fetcher raised for %s", key)
        elapsed = int((time.perf_counter() - started) * 1000)
        return MetricOutcome.failed(registry.describe(key), f"Unexpected error: {exc}", elapsed)


def _fetch_into(
    collector: OutcomeCollector, fetch: Fetcher, registry: MetricRegistry, key: str, limit: int
) -> None:
    collector.record(key, _guarded_fetch(fetch, registry, key, limit))


def run_all(
    metric_limit: int,
    *,
    registry: MetricRegistry | None = None,
    fetch: Fetcher | None = None,
    policy: BatchPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    stop_event: threading.Event | None = None,
) -> Snapshot:
    """Fetch every registered metric in rate-limited batches.

    Batches run one after another; metrics inside a batch run on worker
    threads and the next batch starts only once all of them are done, with a
    pause in between (not after the last batch). Per-metric failures end up
    in the snapshot. Setting ``stop_event`` marks the batches that have not
    started yet as cancelled.
    """
    registry = registry or default_registry()
    metrics = registry.list_metrics()
    if not metrics:
        raise ConfigurationError("No metrics registered.")

    fetch = fetch or functools.partial(lunarcrush.fetch_metric, registry=registry)
    policy = policy or BatchPolicy()
    keys = [descriptor.key for descriptor in metrics]
    batches = iter_batches(keys, policy.size)

    logger.info(
        "Fetching %d metrics in %d batches of up to %d", len(keys), len(batches), policy.size
    )
    started = time.perf_counter()
    collector = OutcomeCollector()

    with ThreadPoolExecutor(max_workers=policy.size, thread_name_prefix="metric-fetch") as pool:
        for index, batch in enumerate(batches):
            if stop_event is not None and stop_event.is_set():
                for key in batch:
                    collector.record(key, MetricOutcome.failed(registry.describe(key), CANCELLED_ERROR))
                continue

            futures = [
                pool.submit(_fetch_into, collector, fetch, registry, key, metric_limit)
                for key in batch
            ]
            wait(futures)
            for future in futures:
                # Surfaces collector errors such as a duplicate key.
                future.result()

            if index < len(batches) - 1:
                _pause(policy.pause_seconds, sleep, stop_event)

    outcomes = collector.as_mapping(keys)
    successful = sum(1 for outcome in outcomes.values() if outcome.success)
    completed_at = datetime.datetime.now(datetime.timezone.utc)
    stats = RunStatistics(
        total_duration_ms=int((time.perf_counter() - started) * 1000),
        successful_fetches=successful,
        failed_fetches=len(outcomes) - successful,
        completed_at=completed_at,
        last_update=completed_at.strftime("%Y-%m-%d %H:%M:%S"),
    )
    logger.info(
        "Run finished: %d successful, %d failed in %dms",
        stats.successful_fetches,
        stats.failed_fetches,
        stats.total_duration_ms,
    )
    return Snapshot(
        timestamp=completed_at,
        total_metrics=len(metrics),
        all_metrics=outcomes,
        fetch_stats=stats,
    )


def _pause(
    seconds: float, sleep: Callable[[float], None], stop_event: threading.Event | None
) -> None:
    if stop_event is not None:
        stop_event.wait(seconds)
        return
    sleep(seconds)
