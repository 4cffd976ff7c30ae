"""Diagnostic session state machine.

A :class:`Session` is an immutable value.  Each transition function takes
the current session and returns a new one, raising
:class:`InvalidTransitionError` when called from a state that does not
allow it::

    IDLE -> STAGE1_PENDING -> STAGE1_VALID | STAGE1_INVALID
    STAGE1_VALID -> STAGE2_RUNNING -> STAGE2_COMPLETE
    (any) -> IDLE                      via reset()

Derived values (median, verdict, distance, routing warning) are
properties computed from their sources on every access.

:class:`DiagnosticRunner` drives the transitions with real network calls.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

import httpx

from embyprobe.config import DEFAULT_PING_COUNT, EMBY_INFO_PATH
from embyprobe.location import fetch_client_meta, haversine_m
from embyprobe.locator import locate_edge
from embyprobe.models import (
    ClientMeta,
    Coordinates,
    EdgeResult,
    LatencyResult,
    NetworkIdentity,
    RoutingWarning,
    ServerIdentity,
    ValidationOutcome,
    ValidationResult,
    Verdict,
)
from embyprobe.routing import evaluate_routing
from embyprobe.sampler import measure
from embyprobe.stats import classify_latency, median
from embyprobe.urls import authority, endpoint, host_of, normalize_url
from embyprobe.validator import validate

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    STAGE1_PENDING = "stage1_pending"
    STAGE1_VALID = "stage1_valid"
    STAGE1_INVALID = "stage1_invalid"
    STAGE2_RUNNING = "stage2_running"
    STAGE2_COMPLETE = "stage2_complete"


class InvalidTransitionError(RuntimeError):
    """A transition was requested from a state that does not allow it."""

    def __init__(self, action: str, state: SessionState):
        super().__init__(f"Cannot {action} from state {state.value!r}")
        self.action = action
        self.state = state


@dataclass(frozen=True)
class Session:
    """Everything one diagnostic run has learned so far."""

    state: SessionState = SessionState.IDLE
    input_url: str = ""  # Normalized user input
    origin: str = ""  # scheme://host[:port] of the validated input; empty until stage 1 succeeds
    host: str = ""
    validation: Optional[ValidationResult] = None
    server: Optional[ServerIdentity] = None
    edge: Optional[EdgeResult] = None
    latency_samples: tuple[float, ...] = ()  # Chronological
    latency_failed: int = 0
    network: Optional[NetworkIdentity] = None
    client_coords: Optional[Coordinates] = None
    meta_error: Optional[str] = None

    @property
    def colo(self) -> str:
        return self.edge.colo if self.edge else ""

    @property
    def edge_coords(self) -> Optional[Coordinates]:
        return self.edge.coords if self.edge else None

    @property
    def remote_label(self) -> str:
        return self.edge.remote_label if self.edge else ""

    @property
    def latency_median(self) -> Optional[float]:
        return median(self.latency_samples)

    @property
    def latency_verdict(self) -> Optional[Verdict]:
        return classify_latency(self.latency_median)

    @property
    def distance_m(self) -> Optional[float]:
        edge = self.edge_coords
        if self.client_coords is None or edge is None:
            return None
        return haversine_m(self.client_coords, edge)

    @property
    def routing_warning(self) -> Optional[RoutingWarning]:
        asn = self.network.asn if self.network else None
        return evaluate_routing(asn, self.distance_m)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def _require(session: Session, action: str, *allowed: SessionState) -> None:
    if session.state not in allowed:
        raise InvalidTransitionError(action, session.state)


def begin_validation(session: Session, raw_input: str) -> Session:
    """Accept new user input and start stage 1.

    Re-entering input after a previous validation discards that result.
    """
    _require(
        session, "begin validation",
        SessionState.IDLE, SessionState.STAGE1_VALID, SessionState.STAGE1_INVALID,
    )
    url = normalize_url(raw_input)
    return Session(
        state=SessionState.STAGE1_PENDING,
        input_url=url,
        host=host_of(url),
    )


def apply_validation(session: Session, result: ValidationResult) -> Session:
    _require(session, "apply validation", SessionState.STAGE1_PENDING)
    if not result.ok:
        return replace(session, state=SessionState.STAGE1_INVALID, validation=result)
    return replace(
        session,
        state=SessionState.STAGE1_VALID,
        origin=authority(session.input_url) or session.input_url,
        validation=result,
        server=result.server,
    )


def begin_stage2(session: Session) -> Session:
    """Start stage 2, discarding the results of any earlier stage-2 run."""
    _require(
        session, "begin stage 2",
        SessionState.STAGE1_VALID, SessionState.STAGE2_COMPLETE,
    )
    return replace(
        session,
        state=SessionState.STAGE2_RUNNING,
        edge=None,
        latency_samples=(),
        latency_failed=0,
        network=None,
        client_coords=None,
        meta_error=None,
    )


def apply_edge(session: Session, edge: EdgeResult) -> Session:
    _require(session, "apply edge result", SessionState.STAGE2_RUNNING)
    host = session.host or edge.host_hint
    return replace(session, edge=edge, host=host)


def apply_latency(session: Session, result: LatencyResult) -> Session:
    _require(session, "apply latency result", SessionState.STAGE2_RUNNING)
    samples = result.chronological or result.samples
    return replace(session, latency_samples=samples, latency_failed=result.failed)


def apply_client_meta(session: Session, meta: ClientMeta) -> Session:
    _require(session, "apply client meta", SessionState.STAGE2_RUNNING)
    return replace(
        session,
        network=meta.network,
        client_coords=meta.coords,
        meta_error=meta.error,
    )


def complete_stage2(session: Session) -> Session:
    _require(session, "complete stage 2", SessionState.STAGE2_RUNNING)
    return replace(session, state=SessionState.STAGE2_COMPLETE)


def reset() -> Session:
    """Discard everything and return to IDLE."""
    return Session()


# ---------------------------------------------------------------------------
# Async driver
# ---------------------------------------------------------------------------

# Invoked with the new session after every transition.
ChangeCallback = Callable[[Session], None]


class DiagnosticRunner:
    """Drive a :class:`Session` through both stages using real requests.

    Stage 2's sub-steps run strictly one after another: edge location,
    then latency sampling, then the client meta lookup.  A failure in any
    of them degrades that sub-step's result but never aborts the stage.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        ping_count: int = DEFAULT_PING_COUNT,
        on_change: Optional[ChangeCallback] = None,
        session: Optional[Session] = None,
    ) -> None:
        self.client = client
        self.ping_count = ping_count
        self.on_change = on_change
        # A stage-1 session from an earlier event loop
        self.session = session if session is not None else Session()

    def _set(self, session: Session) -> Session:
        self.session = session
        if self.on_change:
            self.on_change(session)
        return session

    async def validate(self, raw_input: str) -> Session:
        """Run stage 1 for *raw_input*."""
        session = self._set(begin_validation(self.session, raw_input))
        if not session.input_url:
            result = ValidationResult(
                outcome=ValidationOutcome.MALFORMED_URL,
                error="Please enter a valid link",
            )
        else:
            result = await validate(self.client, session.input_url)
        logger.debug("Validation of %r: %s", session.input_url, result.outcome.value)
        return self._set(apply_validation(session, result))

    async def run_stage2(self) -> Session:
        """Run stage 2 against the validated origin; always completes."""
        session = self._set(begin_stage2(self.session))
        origin = session.origin

        try:
            edge = await locate_edge(self.client, origin)
        except Exception as exc:
            logger.exception("Edge location failed for %s", origin)
            edge = EdgeResult(trace_error=f"Edge location failed: {exc}")
        session = self._set(apply_edge(session, edge))

        target = endpoint(origin, EMBY_INFO_PATH)
        if target is None:
            latency = LatencyResult(requested=self.ping_count, failed=self.ping_count)
        else:
            try:
                latency = await measure(self.client, target, self.ping_count)
            except Exception:
                logger.exception("Latency measurement failed for %s", target)
                latency = LatencyResult(requested=self.ping_count, failed=self.ping_count)
        session = self._set(apply_latency(session, latency))

        try:
            meta = await fetch_client_meta(self.client)
        except Exception as exc:
            logger.exception("Client meta lookup failed")
            meta = ClientMeta(error=f"Meta lookup failed: {exc}")
        session = self._set(apply_client_meta(session, meta))

        return self._set(complete_stage2(session))

    def reset(self) -> Session:
        return self._set(reset())
