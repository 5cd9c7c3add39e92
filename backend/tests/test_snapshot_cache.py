from redis.exceptions import ConnectionError as RedisConnectionError

from crypto_rankings.cache import get_current_snapshot, ping_store, publish_snapshot
from crypto_rankings.config.settings import settings


class UnreachableRedis:
    def get(self, key: str):
        raise RedisConnectionError("connection refused")

    def setex(self, key: str, ttl: int, value: str) -> None:
        raise RedisConnectionError("connection refused")

    def ping(self) -> bool:
        raise RedisConnectionError("connection refused")


def test_cache_roundtrip(fake_redis, sample_snapshot) -> None:
    assert publish_snapshot(sample_snapshot) is True
    cached = get_current_snapshot()

    assert cached is not None
    assert cached == sample_snapshot
    assert cached.all_metrics["market_cap"].top_3_preview[0].symbol == "BTC"
    assert fake_redis.expirations[settings.snapshot_key] == 15 * 60


def test_snapshot_absent_before_first_publish(fake_redis) -> None:
    assert get_current_snapshot() is None


def test_snapshot_absent_after_ttl(fake_redis, fake_clock, sample_snapshot) -> None:
    publish_snapshot(sample_snapshot)

    fake_clock.advance(settings.snapshot_ttl_seconds - 1)
    assert get_current_snapshot() == sample_snapshot

    fake_clock.advance(1)
    assert get_current_snapshot() is None


def test_publish_overwrites_previous_snapshot(fake_redis, sample_snapshot) -> None:
    publish_snapshot(sample_snapshot)
    newer_stats = sample_snapshot.fetch_stats.model_copy(update={"total_duration_ms": 1})
    newer = sample_snapshot.model_copy(update={"fetch_stats": newer_stats})

    publish_snapshot(newer)

    assert len(fake_redis.store) == 1
    assert get_current_snapshot().fetch_stats.total_duration_ms == 1


def test_failed_outcomes_omit_error_only_when_successful(fake_redis, sample_snapshot) -> None:
    publish_snapshot(sample_snapshot)
    raw = fake_redis.store[settings.snapshot_key]

    assert '"error":"Request timed out after 30s"' in raw
    cached = get_current_snapshot()
    assert cached.all_metrics["market_cap"].error is None


def test_publish_reports_unreachable_store(monkeypatch, sample_snapshot) -> None:
    monkeypatch.setattr("crypto_rankings.cache._get_client", lambda: UnreachableRedis())

    assert publish_snapshot(sample_snapshot) is False
    assert get_current_snapshot() is None
    assert ping_store() is False


def test_failed_publish_keeps_previous_snapshot(monkeypatch, fake_redis, sample_snapshot) -> None:
    publish_snapshot(sample_snapshot)

    monkeypatch.setattr("crypto_rankings.cache._get_client", lambda: UnreachableRedis())
    assert publish_snapshot(sample_snapshot) is False

    monkeypatch.setattr("crypto_rankings.cache._get_client", lambda: fake_redis)
    assert get_current_snapshot() == sample_snapshot


def test_unreadable_snapshot_is_treated_as_absent(fake_redis) -> None:
    fake_redis.setex(settings.snapshot_key, 60, '{"timestamp": "not a date"}')

    assert get_current_snapshot() is None


def test_ping_store(fake_redis) -> None:
    assert ping_store() is True
