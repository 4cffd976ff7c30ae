"""Latency sampling against the validated Emby endpoint.

Each probe is a full GET of the public info endpoint, timed with
``time.perf_counter()`` from request start until the body has been
completely read and decoded.  Probes run strictly one after another so
that no two requests contend for the same connection.
"""

from __future__ import annotations

import json
import logging
import math
import time
from typing import Callable

import httpx

from embyprobe.client import request_headers
from embyprobe.config import ACCEPT_JSON, DEFAULT_PING_COUNT
from embyprobe.models import LatencyResult
from embyprobe.stats import median
from embyprobe.urls import cache_busted

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def _wall_ms() -> int:
    return int(time.time() * 1000)


def _drain(resp: httpx.Response) -> None:
    """Decode the body the way a client would: JSON first, then text."""
    try:
        resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        _ = resp.text


async def measure(
    client: httpx.AsyncClient,
    target_url: str,
    count: int = DEFAULT_PING_COUNT,
    clock: Clock = time.perf_counter,
    wall_ms: Callable[[], int] = _wall_ms,
) -> LatencyResult:
    """Take up to *count* sequential round-trip samples of *target_url*.

    Failed probes (transport errors, non-2xx status) are dropped rather
    than recorded, so the result may hold fewer samples than requested.

    Parameters
    ----------
    client:
        Shared HTTP client.
    target_url:
        Fully built endpoint URL; a cache-busting parameter is appended.
    count:
        Number of probes to send.
    clock:
        Monotonic clock in seconds.
    wall_ms:
        Wall-clock milliseconds used in the cache-busting parameter.
    """
    samples: list[float] = []
    failed = 0

    for i in range(count):
        url = cache_busted(target_url, i, wall_ms())
        t0 = clock()
        try:
            resp = await client.get(url, headers=request_headers(ACCEPT_JSON))
            await resp.aread()
            _drain(resp)
        except httpx.HTTPError as exc:
            failed += 1
            logger.debug("Ping %d to %s failed: %s", i, target_url, exc)
            continue
        elapsed_ms = (clock() - t0) * 1000.0

        if not resp.is_success or not math.isfinite(elapsed_ms):
            failed += 1
            logger.debug("Ping %d to %s discarded (HTTP %d)", i, target_url, resp.status_code)
            continue

        samples.append(round(elapsed_ms, 3))
        logger.debug("Ping %d: %.1fms", i, elapsed_ms)

    return LatencyResult(
        samples=tuple(sorted(samples)),
        chronological=tuple(samples),
        median=median(samples),
        requested=count,
        failed=failed,
    )
