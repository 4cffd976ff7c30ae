"""Shared HTTP client construction."""

from __future__ import annotations

from typing import Optional

import httpx

from embyprobe.config import DEFAULT_TIMEOUT, NO_CACHE_HEADERS, USER_AGENT


def build_client(
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the single client a diagnostic run uses for every request.

    Redirects are not followed so that a redirecting origin shows up as a
    non-success status rather than silently validating some other host.
    """
    kwargs: dict = {
        "timeout": httpx.Timeout(timeout),
        "follow_redirects": False,
        "headers": {"User-Agent": USER_AGENT},
    }
    if transport is not None:
        kwargs["transport"] = transport
    else:
        kwargs["http2"] = True
    return httpx.AsyncClient(**kwargs)


def request_headers(accept: str) -> dict[str, str]:
    """No-cache request headers with the given ``Accept`` value."""
    return {"Accept": accept, **NO_CACHE_HEADERS}
