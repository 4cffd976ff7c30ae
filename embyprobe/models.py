"""Data models for embyprobe."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ServerIdentity:
    """Name and version reported by the Emby public info endpoint."""

    name: str
    version: str


class ValidationOutcome(str, enum.Enum):
    VALID = "valid"
    INVALID_SHAPE = "invalid_shape"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    MALFORMED_URL = "malformed_url"


@dataclass(frozen=True)
class ValidationResult:
    """Classified result of probing the Emby public info endpoint."""

    outcome: ValidationOutcome
    server: Optional[ServerIdentity] = None
    status_code: Optional[int] = None  # Set for HTTP_ERROR (and VALID)
    error: Optional[str] = None  # Message for NETWORK_ERROR / INVALID_SHAPE
    url: Optional[str] = None  # Endpoint actually requested

    @property
    def ok(self) -> bool:
        return self.outcome is ValidationOutcome.VALID


@dataclass(frozen=True)
class Coordinates:
    """A (latitude, longitude) pair in degrees."""

    lat: float
    lon: float


@dataclass(frozen=True)
class EdgeLocation:
    """One Cloudflare point of presence from the speed-test location list."""

    code: str  # IATA code (e.g. "FRA")
    city: str = ""
    country: str = ""  # ISO 3166 alpha-2
    lat: Optional[float] = None
    lon: Optional[float] = None

    @property
    def coords(self) -> Optional[Coordinates]:
        if self.lat is None or self.lon is None:
            return None
        return Coordinates(self.lat, self.lon)


@dataclass(frozen=True)
class TraceInfo:
    """Parsed ``/cdn-cgi/trace`` body."""

    colo: str = ""
    host: str = ""  # ``h=`` line, used only as a fallback host label


@dataclass(frozen=True)
class EdgeResult:
    """Outcome of edge-location discovery.

    ``trace_error`` means the trace request itself failed; ``locations_warning``
    means only the location lookup degraded.  Neither stops the pipeline.
    """

    colo: str = ""  # Empty means undetermined
    location: Optional[EdgeLocation] = None
    label: str = ""  # "<city>, <cc> - (<code>)" when resolved
    host_hint: str = ""
    trace_error: Optional[str] = None
    locations_warning: Optional[str] = None

    @property
    def coords(self) -> Optional[Coordinates]:
        return self.location.coords if self.location else None

    @property
    def remote_label(self) -> str:
        city = self.location.city if self.location else ""
        return self.label or city or self.colo


class Verdict(str, enum.Enum):
    EXCELLENT = "excellent"
    VERY_GOOD = "very_good"
    ACCEPTABLE = "acceptable"
    POOR = "poor"

    @property
    def description(self) -> str:
        return _VERDICT_TEXT[self][0]

    @property
    def severity(self) -> str:
        """``success`` | ``warn`` | ``error``, for renderers."""
        return _VERDICT_TEXT[self][1]


_VERDICT_TEXT = {
    Verdict.EXCELLENT: ("Excellent - optimal conditions for streaming", "success"),
    Verdict.VERY_GOOD: ("Very good - very good conditions for streaming", "success"),
    Verdict.ACCEPTABLE: ("Acceptable - occasional buffering possible", "warn"),
    Verdict.POOR: ("Poor - high latency, expect buffering", "error"),
}


@dataclass(frozen=True)
class LatencyResult:
    """Successful round-trip samples (sorted ascending) and their median."""

    samples: tuple[float, ...] = ()
    chronological: tuple[float, ...] = ()  # Same samples in measurement order
    median: Optional[float] = None
    requested: int = 0
    failed: int = 0


@dataclass(frozen=True)
class NetworkIdentity:
    """Client autonomous system as reported by the meta lookup."""

    asn: Optional[int] = None
    organization: Optional[str] = None


@dataclass(frozen=True)
class ClientMeta:
    """Client-side lookup result: network identity and approximate position."""

    network: Optional[NetworkIdentity] = None
    coords: Optional[Coordinates] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class RoutingWarning:
    """Payload raised when a known carrier routes to a far-away edge."""

    kind: str
    carrier: str
    asn: int
    distance_m: float
    message: str
    links: tuple[tuple[str, str], ...] = ()
