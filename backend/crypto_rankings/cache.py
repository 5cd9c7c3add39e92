from __future__ import annotations

import logging

from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from crypto_rankings.config.settings import settings
from crypto_rankings.schemas.snapshot import Snapshot

logger = logging.getLogger(__name__)


def _get_client() -> Redis:
    return Redis.from_url(settings.redis_url)


def publish_snapshot(snapshot: Snapshot) -> bool:
    """Overwrite the latest snapshot. Store failures are logged, not raised."""
    try:
        client = _get_client()
        client.setex(
            settings.snapshot_key,
            settings.snapshot_ttl_seconds,
            snapshot.model_dump_json(exclude_none=True),
        )
    except RedisError as exc:
        logger.error("Failed to store snapshot under %s: %s", settings.snapshot_key, exc)
        return False

    logger.info(
        "Stored latest crypto data: %d successful, %d failed metrics",
        snapshot.fetch_stats.successful_fetches,
        snapshot.fetch_stats.failed_fetches,
    )
    return True


def get_current_snapshot() -> Snapshot | None:
    try:
        client = _get_client()
        raw = client.get(settings.snapshot_key)
    except RedisError as exc:
        logger.warning("Snapshot store unavailable: %s", exc)
        return None

    if not raw:
        return None

    try:
        return Snapshot.model_validate_json(raw)
    except ValidationError as exc:
        logger.error("Discarding unreadable snapshot under %s: %s", settings.snapshot_key, exc)
        return None


def ping_store() -> bool:
    try:
        return bool(_get_client().ping())
    except RedisError:
        return False
