"""JSON export of a diagnostic session."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Optional

from embyprobe.display import map_payload
from embyprobe.models import Coordinates
from embyprobe.session import Session


def export_json(session: Session, indent: int = 2) -> str:
    """Export the session, including derived values, as a JSON string."""
    data = build_export_dict(session)
    return json.dumps(data, indent=indent, default=str)


def _coords(c: Optional[Coordinates]) -> Optional[dict]:
    return {"lat": c.lat, "lon": c.lon} if c else None


def build_export_dict(session: Session) -> dict:
    """Build a serializable dictionary from a Session."""
    data: dict = {
        "state": session.state.value,
        "input_url": session.input_url,
        "origin": session.origin,
        "host": session.host,
    }

    v = session.validation
    data["validation"] = None if v is None else {
        "outcome": v.outcome.value,
        "status_code": v.status_code,
        "error": v.error,
        "url": v.url,
    }
    data["server"] = asdict(session.server) if session.server else None

    edge = session.edge
    if edge:
        loc = edge.location
        data["edge"] = {
            "colo": edge.colo,
            "label": edge.label,
            "remote_label": edge.remote_label,
            "city": loc.city if loc else None,
            "country": loc.country if loc else None,
            "coords": _coords(edge.coords),
            "trace_error": edge.trace_error,
            "locations_warning": edge.locations_warning,
        }
    else:
        data["edge"] = None

    verdict = session.latency_verdict
    data["latency"] = {
        "samples_ms": list(session.latency_samples),
        "failed": session.latency_failed,
        "median_ms": session.latency_median,
        "verdict": verdict.value if verdict else None,
    }

    net = session.network
    data["client"] = {
        "asn": net.asn if net else None,
        "organization": net.organization if net else None,
        "coords": _coords(session.client_coords),
        "error": session.meta_error,
    }

    data["distance_m"] = session.distance_m

    warning = session.routing_warning
    data["routing_warning"] = None if warning is None else {
        "kind": warning.kind,
        "carrier": warning.carrier,
        "asn": warning.asn,
        "distance_m": warning.distance_m,
        "message": warning.message,
        "links": [{"label": label, "url": url} for label, url in warning.links],
    }

    data["map"] = map_payload(session)
    return data
