from __future__ import annotations

import time

from redis import Redis
from rq import Queue
from rq.job import Job

from crypto_rankings.config.settings import settings
from crypto_rankings.jobs.refresh import run_refresh

# A full run is two batches plus a pause, each request capped at 30s.
REFRESH_JOB_TIMEOUT_SECONDS = 600


def get_redis_connection() -> Redis:
    return Redis.from_url(settings.redis_url)


def get_queue(name: str | None = None) -> Queue:
    queue_name = name or settings.refresh_queue_name
    return Queue(name=queue_name, connection=get_redis_connection())


def refresh_job_id(trigger: str, now: float | None = None) -> str:
    """Job ids name the trigger so cron and manual runs are told apart in RQ."""
    stamp = int(now if now is not None else time.time())
    return f"crypto-refresh-{trigger}-{stamp}"


def enqueue_refresh(trigger: str = "cron") -> Job:
    queue = get_queue()
    return queue.enqueue(
        run_refresh,
        trigger=trigger,
        job_id=refresh_job_id(trigger),
        description=f"Crypto rankings refresh ({trigger} trigger)",
        job_timeout=REFRESH_JOB_TIMEOUT_SECONDS,
        # The run summary is only interesting while its snapshot is live.
        result_ttl=settings.snapshot_ttl_seconds,
    )
