from __future__ import annotations

import logging

from crypto_rankings.cache import publish_snapshot
from crypto_rankings.config.settings import settings
from crypto_rankings.jobs.orchestrator import run_all
from crypto_rankings.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run_refresh(trigger: str = "cron") -> dict:
    """Run the whole pipeline once and publish the result.

    Cron ticks and manual triggers behave the same; ``trigger`` only shows up
    in logs and in the returned summary.
    """
    setup_logging(settings.log_level)
    logger.info("Crypto refresh started (trigger=%s)", trigger)

    snapshot = run_all(settings.providers.metric_limit)
    stored = publish_snapshot(snapshot)
    stats = snapshot.fetch_stats

    return {
        "trigger": trigger,
        "total_metrics": snapshot.total_metrics,
        "successful_fetches": stats.successful_fetches,
        "failed_fetches": stats.failed_fetches,
        "total_duration_ms": stats.total_duration_ms,
        "status": "completed",
        "stored": stored,
        "snapshot_key": settings.snapshot_key,
    }
