from __future__ import annotations

import http.client
import json
import logging
import socket
import time
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import ValidationError

from crypto_rankings.config.settings import settings
from crypto_rankings.formatting.values import format_coin_value
from crypto_rankings.metrics.registry import MetricDescriptor, MetricRegistry, default_registry
from crypto_rankings.schemas.provider import LunarCrushResponse
from crypto_rankings.schemas.snapshot import MetricOutcome, RankedEntry

logger = logging.getLogger(__name__)

_LIST_PATH = "/public/coins/list/v2"
_ERROR_BODY_CHARS = 200


def _build_url(base_url: str, params: dict[str, str]) -> str:
    return f"{base_url.rstrip('/')}{_LIST_PATH}?{urlencode(params)}"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _is_timeout(exc: BaseException) -> bool:
    if isinstance(exc, (TimeoutError, socket.timeout)):
        return True
    return isinstance(exc, URLError) and isinstance(exc.reason, (TimeoutError, socket.timeout))


def fetch_metric(
    metric_key: str,
    limit: int,
    *,
    registry: MetricRegistry | None = None,
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> MetricOutcome:
    """Fetch one ranked list from LunarCrush and format every coin in it.

    Never raises for provider problems: every failure comes back as an
    outcome with ``success=False``. Exactly one request is made.
    """
    started = time.perf_counter()
    registry = registry or default_registry()
    descriptor = registry.get(metric_key)
    if descriptor is None:
        logger.warning("Refusing to fetch unknown metric %s", metric_key)
        return MetricOutcome.unknown(metric_key)

    api_key = api_key if api_key is not None else settings.providers.lunarcrush_api_key
    base_url = base_url or settings.providers.base_url
    timeout = timeout if timeout is not None else settings.providers.request_timeout_seconds

    if not api_key:
        logger.warning("No LunarCrush API key configured, skipping %s", metric_key)
        return MetricOutcome.failed(descriptor, "Missing provider API key", _elapsed_ms(started))

    try:
        url = _build_url(base_url, {"sort": metric_key, "limit": str(limit)})
        request = Request(
            url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )
    except ValueError as exc:
        return _failure(descriptor, f"Failed to create request: {exc}", started)

    logger.info("Fetching %s (%s): %s", descriptor.name, descriptor.priority.value, url)
    try:
        with urlopen(request, timeout=timeout) as response:
            status = response.status
            body = response.read()
    except HTTPError as exc:
        detail = _error_body(exc)
        return _failure(descriptor, f"API returned status {exc.code}: {detail}", started)
    except (URLError, TimeoutError, socket.timeout, OSError, http.client.HTTPException) as exc:
        if _is_timeout(exc):
            return _failure(descriptor, f"Request timed out after {timeout:g}s", started)
        return _failure(descriptor, f"Failed to fetch data: {exc}", started)

    fetch_time_ms = _elapsed_ms(started)
    if not 200 <= status < 300:
        detail = body.decode("utf-8", errors="replace")[:_ERROR_BODY_CHARS]
        return _failure(descriptor, f"API returned status {status}: {detail}", started)

    try:
        payload = json.loads(body.decode("utf-8"))
        parsed = LunarCrushResponse.model_validate(payload)
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        return _failure(descriptor, f"Failed to parse JSON: {exc}", started)

    if not parsed.data:
        return _failure(descriptor, "No data returned from API", started)

    entries = [
        RankedEntry(
            name=coin.name or "",
            symbol=coin.symbol or "",
            value=format_coin_value(coin, metric_key, registry),
            sort=metric_key,
        )
        for coin in parsed.data
    ]
    outcome = MetricOutcome.succeeded(descriptor, entries, fetch_time_ms)
    logger.info(
        "%s (%s) completed: %d items in %dms",
        descriptor.name,
        descriptor.priority.value,
        outcome.data_count,
        outcome.fetch_time_ms,
    )
    return outcome


def _error_body(exc: HTTPError) -> str:
    try:
        raw = exc.read()
    except (OSError, http.client.HTTPException):
        return ""
    return raw.decode("utf-8", errors="replace")[:_ERROR_BODY_CHARS]


def _failure(descriptor: MetricDescriptor, error: str, started: float) -> MetricOutcome:
    logger.warning("%s fetch failed: %s", descriptor.name, error)
    return MetricOutcome.failed(descriptor, error, _elapsed_ms(started))
