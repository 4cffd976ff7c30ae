"""Emby endpoint validation (stage 1)."""

from __future__ import annotations

import logging

import httpx

from embyprobe.client import request_headers
from embyprobe.config import ACCEPT_JSON, EMBY_INFO_PATH
from embyprobe.models import ServerIdentity, ValidationOutcome, ValidationResult
from embyprobe.urls import endpoint

logger = logging.getLogger(__name__)


async def validate(client: httpx.AsyncClient, origin_url: str) -> ValidationResult:
    """Confirm that *origin_url* hosts an Emby server.

    The request always targets the public info path at the origin root, so
    any path the user typed is ignored.  Every failure is classified into a
    :class:`ValidationResult`; nothing is raised for network problems.
    """
    url = endpoint(origin_url, EMBY_INFO_PATH)
    if url is None:
        return ValidationResult(
            outcome=ValidationOutcome.MALFORMED_URL,
            error=f"Invalid URL: {origin_url!r}",
        )

    logger.debug("Validating Emby server at %s", url)
    try:
        resp = await client.get(url, headers=request_headers(ACCEPT_JSON))
    except httpx.HTTPError as exc:
        logger.debug("Validation request to %s failed: %s", url, exc)
        return ValidationResult(
            outcome=ValidationOutcome.NETWORK_ERROR,
            error=str(exc) or type(exc).__name__,
            url=url,
        )

    if not resp.is_success:
        return ValidationResult(
            outcome=ValidationOutcome.HTTP_ERROR,
            status_code=resp.status_code,
            url=url,
        )

    server = parse_server_info(resp)
    if server is None:
        return ValidationResult(
            outcome=ValidationOutcome.INVALID_SHAPE,
            status_code=resp.status_code,
            error="Response does not look like an Emby server",
            url=url,
        )

    return ValidationResult(
        outcome=ValidationOutcome.VALID,
        server=server,
        status_code=resp.status_code,
        url=url,
    )


def parse_server_info(resp: httpx.Response) -> ServerIdentity | None:
    """Extract ServerName/Version from a public info response, if present."""
    try:
        data = resp.json()
    except ValueError:
        return None

    if not isinstance(data, dict):
        return None
    name = data.get("ServerName")
    version = data.get("Version")
    if not isinstance(name, str) or not isinstance(version, str):
        return None
    return ServerIdentity(name=name, version=version)
