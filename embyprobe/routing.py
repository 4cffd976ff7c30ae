"""Long-path routing heuristic for known carrier networks."""

from __future__ import annotations

from typing import Optional

from embyprobe.config import (
    CARRIER_ASNS,
    CARRIER_NAME,
    ROUTING_REFERENCE_LINKS,
    ROUTING_WARNING_MIN_KM,
)
from embyprobe.models import RoutingWarning

CARRIER_LONG_PATH = "carrier_long_path"

_MESSAGE = (
    "You are connected through the {carrier} network. In some cases its "
    "traffic is routed to a more distant Cloudflare location ({distance_km:.0f} km "
    "away here), which can cause long loading times and packet loss. "
    "Using a VPN service may help as a test: most VPN providers peer with "
    "{carrier} and reach a closer edge. On Cloudflare's free plan this is "
    "not guaranteed."
)


def is_carrier_asn(asn: Optional[int]) -> bool:
    return asn is not None and asn in CARRIER_ASNS


def evaluate_routing(asn: Optional[int], distance_m: Optional[float]) -> Optional[RoutingWarning]:
    """Return a warning when a carrier ASN is routed at least 600 km away.

    Both inputs must be known; otherwise nothing is decided.
    """
    if asn is None or distance_m is None:
        return None
    distance_km = distance_m / 1000
    if distance_km < ROUTING_WARNING_MIN_KM:
        return None
    if not is_carrier_asn(asn):
        return None

    return RoutingWarning(
        kind=CARRIER_LONG_PATH,
        carrier=CARRIER_NAME,
        asn=asn,
        distance_m=distance_m,
        message=_MESSAGE.format(carrier=CARRIER_NAME, distance_km=distance_km),
        links=ROUTING_REFERENCE_LINKS,
    )
