"""CLI entry point and orchestration for embyprobe."""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import click

from embyprobe import __version__
from embyprobe.config import DEFAULT_PING_COUNT, DEFAULT_TIMEOUT
from embyprobe.session import Session, SessionState

PROXY_VARS = ("HTTP_PROXY", "HTTPS_PROXY", "http_proxy", "https_proxy")


def _configure_logging(verbose: bool) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    # Log to stderr so --json output on stdout stays parseable
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=verbose)
    logging.basicConfig(level=level, format="%(message)s", handlers=[handler], force=True)
    # httpx/httpcore log every request at DEBUG; keep them at INFO
    for name in ("httpx", "httpcore", "hpack"):
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)


@click.command()
@click.argument("url")
@click.option("-n", "--samples", default=DEFAULT_PING_COUNT, type=click.IntRange(1, 100),
              help="Number of ping samples", show_default=True)
@click.option("-t", "--timeout", default=DEFAULT_TIMEOUT, help="Request timeout in seconds", show_default=True)
@click.option("--check-only", is_flag=True, help="Stop after validating the Emby server")
@click.option("-y", "--yes", is_flag=True, help="Run the Cloudflare check without asking")
@click.option("--json", "json_output", is_flag=True, help="Output JSON to stdout")
@click.option("-q", "--quiet", is_flag=True, help="Suppress progress, show only results")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
def main(
    url: str,
    samples: int,
    timeout: float,
    check_only: bool,
    yes: bool,
    json_output: bool,
    quiet: bool,
    verbose: bool,
) -> None:
    """embyprobe: Emby / Cloudflare connection check.

    Validates that URL is an Emby server, finds the Cloudflare location
    serving you, measures ping and warns about known long-path routing.
    """
    _configure_logging(verbose)
    interactive = not quiet and not json_output

    if interactive:
        for var in PROXY_VARS:
            if os.environ.get(var):
                from embyprobe.display import render_warning
                render_warning(f"Proxy detected ({var}={os.environ[var]}); results may not reflect direct routing")
                break

    try:
        session, shown = _run(url, samples, timeout, check_only, yes, interactive)
    except (KeyboardInterrupt, click.Abort):
        # click.confirm turns Ctrl-C at the prompt into Abort
        if interactive:
            from embyprobe.display import console
            console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(130)

    _handle_output(session, json_output, validation_shown=shown)

    if session.state is SessionState.STAGE1_INVALID:
        sys.exit(1)


def _run(
    url: str,
    samples: int,
    timeout: float,
    check_only: bool,
    yes: bool,
    interactive: bool,
) -> tuple[Session, bool]:
    """Drive both stages like the step wizard does.

    Each stage runs in its own event loop; the confirmation prompt sits
    between them. Returns the final session and whether the stage-1 card
    was already printed.
    """
    from embyprobe.display import StageProgress, render_validation

    progress = StageProgress(samples) if interactive else None
    shown = False

    session = asyncio.run(_stage1(url, samples, timeout, progress))
    if session.state is not SessionState.STAGE1_VALID or check_only:
        return session, shown

    if interactive and not yes:
        render_validation(session)
        shown = True
        if not click.confirm("Check Cloudflare location and ping?", default=True):
            return session, shown

    session = asyncio.run(_stage2(session, samples, timeout, progress))
    return session, shown


async def _stage1(url: str, samples: int, timeout: float, progress) -> Session:
    from embyprobe.client import build_client
    from embyprobe.session import DiagnosticRunner

    async with build_client(timeout=timeout) as client:
        runner = DiagnosticRunner(client, ping_count=samples, on_change=progress)
        try:
            return await runner.validate(url)
        finally:
            if progress:
                progress.stop()


async def _stage2(session: Session, samples: int, timeout: float, progress) -> Session:
    from embyprobe.client import build_client
    from embyprobe.session import DiagnosticRunner

    async with build_client(timeout=timeout) as client:
        runner = DiagnosticRunner(client, ping_count=samples, on_change=progress, session=session)
        try:
            return await runner.run_stage2()
        finally:
            if progress:
                progress.stop()


def _handle_output(session: Session, json_output: bool, validation_shown: bool = False) -> None:
    """Render the final session."""
    from embyprobe.display import console, render_session, render_stage2

    if json_output:
        from embyprobe.export import export_json
        click.echo(export_json(session))
        return

    if validation_shown:
        if session.state is SessionState.STAGE2_COMPLETE:
            console.print()
            render_stage2(session)
        return

    if session.state is SessionState.STAGE2_COMPLETE:
        console.print(f"[bold]{session.origin}[/bold]")
    render_session(session)


if __name__ == "__main__":
    main()
