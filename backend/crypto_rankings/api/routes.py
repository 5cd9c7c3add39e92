import logging

from fastapi import APIRouter, HTTPException, status
from redis.exceptions import RedisError

from crypto_rankings.cache import get_current_snapshot, ping_store
from crypto_rankings.config.settings import settings
from crypto_rankings.jobs.queue import enqueue_refresh
from crypto_rankings.metrics.registry import Priority, default_registry
from crypto_rankings.schemas.snapshot import Snapshot

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_LIST_LIMIT = 100


def _update_frequency() -> str:
    minutes, seconds = divmod(settings.refresh_interval_seconds, 60)
    if seconds:
        return f"Every {settings.refresh_interval_seconds} seconds"
    return f"Every {minutes} minutes"


@router.get("/")
def service_status() -> dict:
    return {
        "status": "healthy",
        "service": "crypto-rankings-api",
        "metrics": len(default_registry()),
        "update_freq": _update_frequency(),
        "redis_key": settings.snapshot_key,
    }


@router.get("/health")
def health() -> dict:
    return {"status": "healthy", "redis": ping_store()}


@router.get("/api/crypto/data", response_model=Snapshot, response_model_exclude_none=True)
def crypto_data() -> Snapshot:
    snapshot = get_current_snapshot()
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": "No crypto data available yet",
                "message": f"Data is updated {_update_frequency().lower()}",
                "manual_trigger": "POST /dev/trigger",
            },
        )
    return snapshot


@router.get("/api/crypto/info")
def crypto_info() -> dict:
    registry = default_registry()
    return {
        "metrics": {
            descriptor.key: {
                "name": descriptor.name,
                "priority": descriptor.priority.value,
                "description": descriptor.description,
            }
            for descriptor in registry.list_metrics()
        },
        "total": len(registry),
        "high_priority": registry.by_priority(Priority.HIGH),
        "medium_priority": registry.by_priority(Priority.MEDIUM),
        "update_schedule": _update_frequency(),
        "data_endpoint": "/api/crypto/data",
        "structure": {
            "all_data": f"Up to {settings.providers.metric_limit} items per metric",
            "top_3_preview": "Quick preview per metric",
            "fetch_stats": "Success/failure counts and timing",
        },
    }


@router.post("/dev/trigger")
def manual_trigger() -> dict:
    logger.info("Manual crypto fetch triggered via API")
    try:
        job = enqueue_refresh(trigger="manual")
    except RedisError as exc:
        logger.error("Failed to enqueue manual refresh: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Failed to trigger manual function"},
        ) from exc
    return {
        "message": "Manual crypto fetch triggered",
        "status": "processing",
        "job_id": job.id,
        "data_url": "/api/crypto/data",
    }


@router.get("/list/cryptocurrencies/{sort}/{limit}")
def list_cryptocurrencies(sort: str, limit: int) -> dict:
    registry = default_registry()
    if sort not in registry:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Invalid sort parameter",
                "valid": registry.keys(),
                "suggestion": "Use /api/crypto/data for all metrics",
            },
        )
    if limit < 1 or limit > MAX_LIST_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": f"Limit must be between 1 and {MAX_LIST_LIMIT}"},
        )

    snapshot = get_current_snapshot()
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "No data available", "suggestion": "Use /api/crypto/data"},
        )

    outcome = snapshot.all_metrics.get(sort)
    if outcome is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "error": f"Metric '{sort}' not found",
                "suggestion": "Use /api/crypto/data for all metrics",
            },
        )

    entries = outcome.all_data[:limit]
    return {
        "sort": sort,
        "limit": limit,
        "data": [entry.model_dump() for entry in entries],
        "count": len(entries),
        "timestamp": snapshot.timestamp,
        "status": "completed",
    }
