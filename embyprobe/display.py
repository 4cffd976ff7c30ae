"""Rich terminal output for embyprobe."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.status import Status
from rich.table import Table
from rich.text import Text

from embyprobe.location import format_distance
from embyprobe.models import ValidationOutcome, ValidationResult
from embyprobe.session import Session, SessionState
from embyprobe.stats import format_ms

console = Console()

SEVERITY_STYLES = {
    "success": "green",
    "warn": "yellow",
    "error": "red",
}


def _info_table() -> Table:
    table = Table(show_header=False, box=None, pad_edge=False, expand=False)
    table.add_column("Key", style="bold", min_width=14)
    table.add_column("Value")
    return table


# ── Stage 1 ───────────────────────────────────────────────────────────


def validation_message(result: ValidationResult) -> tuple[str, str]:
    """Return ``(severity, text)`` describing a validation outcome."""
    outcome = result.outcome
    if outcome is ValidationOutcome.VALID:
        return "success", "Emby server detected."
    if outcome is ValidationOutcome.MALFORMED_URL:
        return "error", "Invalid URL. Please check the link."
    if outcome is ValidationOutcome.HTTP_ERROR:
        return "error", f"Error: HTTP {result.status_code}. Is this an Emby server?"
    if outcome is ValidationOutcome.INVALID_SHAPE:
        return "error", "The response does not look like Emby."
    return "error", f"Network/CORS problem: {result.error}"


def render_validation(session: Session) -> None:
    """Print the stage-1 status line and, when valid, the server card."""
    if session.validation is None:
        return
    severity, text = validation_message(session.validation)
    console.print(Text(text, style=SEVERITY_STYLES[severity]))

    if session.server:
        table = _info_table()
        table.add_row("Name", session.server.name)
        table.add_row("Version", session.server.version)
        console.print(table)


# ── Stage 2 ───────────────────────────────────────────────────────────


def _render_edge(session: Session) -> None:
    edge = session.edge
    if edge is None:
        return

    if edge.trace_error:
        console.print(Text(edge.trace_error, style="red"))
    elif not edge.colo:
        console.print(Text(
            "Could not determine a colo value. Is the server really reachable through Cloudflare?",
            style="yellow",
        ))
    if edge.locations_warning:
        console.print(Text(edge.locations_warning, style="yellow"))

    table = _info_table()
    table.add_row("Server", edge.label or edge.colo or Text("Not found", style="dim"))
    distance = session.distance_m
    if distance is not None:
        table.add_row("Distance", format_distance(distance))
    console.print(Panel(table, title="Cloudflare location", title_align="left", expand=False))


def _render_ping(session: Session) -> None:
    median = session.latency_median
    verdict = session.latency_verdict
    if median is None or verdict is None:
        console.print("[dim italic]  No successful ping samples[/dim italic]")
        return

    style = SEVERITY_STYLES[verdict.severity]
    table = _info_table()
    table.add_row("Ping (median)", Text(format_ms(median), style=style))
    table.add_row("Assessment", Text(verdict.description, style=style))
    samples = session.latency_samples
    table.add_row(
        "Samples",
        Text(f"{len(samples)} ok, {session.latency_failed} failed", style="dim"),
    )
    console.print(Panel(table, title="Ping", title_align="left", border_style=style, expand=False))


def _render_isp(session: Session) -> None:
    if session.meta_error:
        console.print(f"[dim]Client lookup: {session.meta_error}[/dim]")
    if session.network is None:
        return
    # The ISP card is only shown alongside a computed distance
    if session.distance_m is None:
        return
    asn = str(session.network.asn) if session.network.asn is not None else "Unknown"
    org = session.network.organization or "Unknown"
    table = _info_table()
    table.add_row("ISP", org)
    table.add_row("ASN", asn)
    console.print(Panel(table, title="Your connection", title_align="left", expand=False))


def _render_routing_warning(session: Session) -> None:
    warning = session.routing_warning
    if warning is None:
        return
    body = Text(warning.message)
    for label, url in warning.links:
        body.append(f"\n{label}: ", style="bold")
        body.append(url, style=f"link {url}")
    console.print(Panel(body, title="Routing warning", title_align="left", border_style="yellow"))


def render_stage2(session: Session) -> None:
    """Print everything stage 2 produced."""
    if session.state not in (SessionState.STAGE2_RUNNING, SessionState.STAGE2_COMPLETE):
        return
    _render_edge(session)
    _render_ping(session)
    _render_isp(session)
    _render_routing_warning(session)


def render_session(session: Session) -> None:
    render_validation(session)
    if session.state in (SessionState.STAGE2_RUNNING, SessionState.STAGE2_COMPLETE):
        console.print()
        render_stage2(session)


def map_payload(session: Session) -> Optional[dict]:
    """Plain data a map renderer needs: two markers and a connecting line.

    None until both the client and the edge location have coordinates.
    """
    client = session.client_coords
    edge = session.edge_coords
    if client is None or edge is None:
        return None
    return {
        "markers": [
            {"kind": "client", "label": "Your location", "lat": client.lat, "lon": client.lon},
            {"kind": "edge", "label": session.remote_label, "lat": edge.lat, "lon": edge.lon},
        ],
        "line": [[client.lat, client.lon], [edge.lat, edge.lon]],
        "distance_m": session.distance_m,
    }


# ── Progress ──────────────────────────────────────────────────────────


class StageProgress:
    """Spinner that follows the runner's transitions."""

    def __init__(self, ping_count: int):
        self.ping_count = ping_count
        self.status: Optional[Status] = None
        self._stage2_steps = 0

    def _message(self, session: Session) -> Optional[str]:
        if session.state is SessionState.STAGE1_PENDING:
            return "Checking Emby server..."
        if session.state is SessionState.STAGE2_RUNNING:
            messages = [
                "Determining Cloudflare location...",
                f"Measuring ping ({self.ping_count}x)...",
                "Looking up your connection...",
                "Finishing...",
            ]
            msg = messages[min(self._stage2_steps, len(messages) - 1)]
            self._stage2_steps += 1
            return msg
        return None

    def __call__(self, session: Session) -> None:
        message = self._message(session)
        if message is None:
            self.stop()
            return
        if self.status is None:
            self.status = console.status(message)
            self.status.start()
        else:
            self.status.update(message)

    def stop(self) -> None:
        if self.status:
            self.status.stop()
            self.status = None
        self._stage2_steps = 0


def render_warning(message: str) -> None:
    """Display a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {message}")
