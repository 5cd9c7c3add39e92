import datetime

import pytest

from crypto_rankings.metrics.registry import default_registry
from crypto_rankings.schemas.snapshot import MetricOutcome, RankedEntry, RunStatistics, Snapshot


class FakeRedis:
    """In-memory stand-in for the Redis calls the backend makes."""

    def __init__(self, clock=lambda: 0.0) -> None:
        self.clock = clock
        self.store: dict[str, str] = {}
        self.expirations: dict[str, int] = {}
        self._expires_at: dict[str, float] = {}

    def get(self, key: str) -> str | None:
        expires_at = self._expires_at.get(key)
        if expires_at is not None and self.clock() >= expires_at:
            self.store.pop(key, None)
            self._expires_at.pop(key, None)
            return None
        return self.store.get(key)

    def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = value
        self.expirations[key] = ttl
        self._expires_at[key] = self.clock() + ttl

    def ping(self) -> bool:
        return True


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(monkeypatch, fake_clock) -> FakeRedis:
    fake = FakeRedis(clock=fake_clock)
    monkeypatch.setattr("crypto_rankings.cache._get_client", lambda: fake)
    return fake


@pytest.fixture
def sample_snapshot() -> Snapshot:
    registry = default_registry()
    outcomes: dict[str, MetricOutcome] = {}
    for descriptor in registry.list_metrics():
        if descriptor.key == "market_cap":
            entries = [
                RankedEntry(name="Bitcoin", symbol="BTC", value="$2.1T", sort="market_cap"),
                RankedEntry(name="Ethereum", symbol="ETH", value="$294.9B", sort="market_cap"),
                RankedEntry(name="Tether", symbol="USDT", value="$155.0B", sort="market_cap"),
                RankedEntry(name="Solana", symbol="SOL", value="$80.2B", sort="market_cap"),
            ]
            outcomes[descriptor.key] = MetricOutcome.succeeded(descriptor, entries, 120)
        else:
            outcomes[descriptor.key] = MetricOutcome.failed(
                descriptor, "Request timed out after 30s", 30_000
            )
    completed_at = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=datetime.timezone.utc)
    return Snapshot(
        timestamp=completed_at,
        total_metrics=len(registry),
        all_metrics=outcomes,
        fetch_stats=RunStatistics(
            total_duration_ms=32_500,
            successful_fetches=1,
            failed_fetches=len(registry) - 1,
            completed_at=completed_at,
            last_update=completed_at.strftime("%Y-%m-%d %H:%M:%S"),
        ),
    )
