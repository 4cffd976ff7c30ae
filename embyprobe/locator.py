"""Cloudflare edge-location discovery via ``/cdn-cgi/trace``.

The trace endpoint returns a plain-text body with key=value pairs
including ``colo`` (the IATA code of the serving PoP) and ``h`` (the
host the request reached).  The code is then resolved to a city and
coordinates using the public speed.cloudflare.com location list.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

import httpx

from embyprobe.client import request_headers
from embyprobe.config import ACCEPT_JSON, ACCEPT_TEXT, LOCATIONS_URL, TRACE_PATH
from embyprobe.models import EdgeLocation, EdgeResult, TraceInfo
from embyprobe.urls import endpoint

logger = logging.getLogger(__name__)

_LINE_RE = re.compile(r"\r?\n")


def parse_trace(body: str) -> TraceInfo:
    """Parse a trace body into its ``colo`` and ``h`` values."""
    fields: dict[str, str] = {}
    for line in _LINE_RE.split(body):
        key, sep, value = line.partition("=")
        if not sep:
            continue
        fields[key.strip()] = value.strip()
    return TraceInfo(
        colo=fields.get("colo", ""),
        host=fields.get("h", ""),
    )


def format_label(location: EdgeLocation) -> str:
    """``"<city>, <cc> - (<code>)"``, or ``""`` when the city is unknown."""
    if not location.city:
        return ""
    return f"{location.city}, {location.country} - ({location.code})"


def match_location(items: Iterable[Any], colo: str) -> Optional[EdgeLocation]:
    """Find the record whose ``iata`` equals *colo* (case-insensitive)."""
    if not colo:
        return None
    wanted = colo.upper()
    for item in items:
        if not isinstance(item, dict):
            continue
        code = item.get("iata")
        if not isinstance(code, str) or code.upper() != wanted:
            continue
        return EdgeLocation(
            code=code,
            city=item.get("city") or "",
            country=item.get("cca2") or "",
            lat=_number(item.get("lat")),
            lon=_number(item.get("lon")),
        )
    return None


def _number(value: Any) -> Optional[float]:
    # bool is an int subclass; a JSON true/false is not a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


async def fetch_trace(client: httpx.AsyncClient, origin_url: str) -> tuple[TraceInfo, Optional[str]]:
    """Fetch and parse the trace of *origin_url*.

    Returns ``(trace, error)``; on failure the trace is empty and *error*
    describes what went wrong.
    """
    url = endpoint(origin_url, TRACE_PATH)
    if url is None:
        return TraceInfo(), f"Invalid URL: {origin_url!r}"

    try:
        resp = await client.get(url, headers=request_headers(ACCEPT_TEXT))
    except httpx.HTTPError as exc:
        logger.warning("Trace request to %s failed: %s", url, exc)
        return TraceInfo(), f"Network error on trace: {str(exc) or type(exc).__name__}"

    if not resp.is_success:
        logger.warning("Trace request to %s returned HTTP %d", url, resp.status_code)
        return TraceInfo(), f"HTTP {resp.status_code} from {TRACE_PATH}"

    trace = parse_trace(resp.text)
    logger.debug("Trace for %s: colo=%r h=%r", url, trace.colo, trace.host)
    return trace, None


async def fetch_locations(client: httpx.AsyncClient) -> list[Any]:
    """Download the Cloudflare location list.

    Raises ``httpx.HTTPError`` on transport or status failure and
    ``ValueError`` when the body is not a JSON array.
    """
    resp = await client.get(LOCATIONS_URL, headers=request_headers(ACCEPT_JSON))
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, list):
        raise ValueError("location list is not a JSON array")
    return data


async def locate_edge(client: httpx.AsyncClient, origin_url: str) -> EdgeResult:
    """Determine which Cloudflare PoP serves *origin_url* to this client."""
    trace, trace_error = await fetch_trace(client, origin_url)
    if trace_error is not None:
        return EdgeResult(trace_error=trace_error)

    colo = trace.colo
    if not colo:
        return EdgeResult(host_hint=trace.host)

    location: Optional[EdgeLocation] = None
    warning: Optional[str] = None
    try:
        items = await fetch_locations(client)
    except httpx.HTTPStatusError as exc:
        warning = f"Cloudflare locations unavailable (HTTP {exc.response.status_code})"
    except (httpx.HTTPError, ValueError) as exc:
        warning = f"Cloudflare location list could not be loaded: {exc}"
    else:
        location = match_location(items, colo)
        if location is None:
            logger.debug("No location record for colo %s", colo)

    if warning:
        logger.warning(warning)

    return EdgeResult(
        colo=colo,
        location=location,
        label=format_label(location) if location else "",
        host_hint=trace.host,
        locations_warning=warning,
    )
