from __future__ import annotations

import argparse
import logging
import signal
import threading

from redis.exceptions import RedisError

from crypto_rankings.config.settings import settings
from crypto_rankings.jobs.queue import enqueue_refresh
from crypto_rankings.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run_scheduler(interval_seconds: float, stop_event: threading.Event) -> int:
    """Enqueue a cron refresh every ``interval_seconds`` until stopped.

    Returns the number of refreshes enqueued.
    """
    enqueued = 0
    while not stop_event.is_set():
        try:
            job = enqueue_refresh(trigger="cron")
        except RedisError as exc:
            logger.error("Could not enqueue crypto refresh: %s", exc)
        else:
            enqueued += 1
            logger.info("Enqueued crypto refresh %s", job.id)
        stop_event.wait(interval_seconds)
    return enqueued


def main() -> None:
    parser = argparse.ArgumentParser(description="Enqueue crypto refreshes on a fixed cadence.")
    parser.add_argument(
        "--interval",
        type=float,
        default=settings.refresh_interval_seconds,
        help="Seconds between refreshes (default: %(default)s)",
    )
    args = parser.parse_args()

    setup_logging(settings.log_level)
    stop_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    signal.signal(signal.SIGTERM, lambda *_: stop_event.set())

    logger.info("Scheduling crypto refresh every %ss", args.interval)
    run_scheduler(args.interval, stop_event)


if __name__ == "__main__":
    main()
