"""Client geolocation via the Cloudflare meta endpoint, and geo distance."""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

import httpx

from embyprobe.client import request_headers
from embyprobe.config import ACCEPT_JSON, EARTH_RADIUS_M, META_URL
from embyprobe.models import ClientMeta, Coordinates, NetworkIdentity

logger = logging.getLogger(__name__)


async def fetch_client_meta(client: httpx.AsyncClient) -> ClientMeta:
    """Look up the client's ASN, organization and approximate position.

    Best effort: every failure is folded into ``ClientMeta.error``.
    """
    try:
        resp = await client.get(META_URL, headers=request_headers(ACCEPT_JSON))
        resp.raise_for_status()
        data = resp.json()
    except httpx.HTTPStatusError as exc:
        logger.warning("Meta lookup returned HTTP %d", exc.response.status_code)
        return ClientMeta(error=f"HTTP {exc.response.status_code} from meta lookup")
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Meta lookup failed: %s", exc)
        return ClientMeta(error=f"Meta lookup failed: {exc}")

    if not isinstance(data, dict):
        return ClientMeta(error="Meta lookup returned an unexpected body")
    return parse_meta(data)


def parse_meta(data: dict) -> ClientMeta:
    """Parse a speed.cloudflare.com ``/meta`` response.

    Latitude and longitude arrive as strings; ``asn`` as a number or a
    numeric string.
    """
    lat = _parse_coord(data.get("latitude"))
    lon = _parse_coord(data.get("longitude"))
    coords = Coordinates(lat, lon) if lat and lon else None

    org = data.get("asOrganization")
    network = NetworkIdentity(
        asn=_parse_asn(data.get("asn")),
        organization=org if isinstance(org, str) and org else None,
    )
    return ClientMeta(network=network, coords=coords)


def _parse_coord(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(parsed):
        return None
    return parsed


def _parse_asn(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if text.upper().startswith("AS"):
        text = text[2:]
    try:
        return int(text)
    except ValueError:
        return None


def haversine_m(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in meters between two points (Haversine)."""
    dlat = math.radians(b.lat - a.lat)
    dlon = math.radians(b.lon - a.lon)
    h = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def format_distance(meters: Optional[float]) -> str:
    """Human-readable distance: meters below 1km, then km with 2 / 1 decimals."""
    if meters is None or math.isnan(meters):
        return ""
    if meters < 1000:
        return f"{round(meters)} m"
    km = meters / 1000
    return f"{km:.2f} km" if km < 10 else f"{km:.1f} km"
