"""Normalization and construction of origin URLs."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlparse

from embyprobe.config import CACHE_BUST_PARAM

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")


def normalize_url(raw: Optional[str]) -> str:
    """Turn free-form user input into a canonical absolute URL.

    Missing schemes default to ``https://``, all whitespace is removed and
    exactly one trailing slash is stripped.  Paths are kept as typed.
    Returns ``""`` for empty input.
    """
    if not raw:
        return ""
    url = raw.strip()
    if not url:
        return ""
    if not _SCHEME_RE.match(url):
        url = "https://" + url
    url = _WS_RE.sub("", url)
    if url.endswith("/"):
        url = url[:-1]
    return url


def authority(url: str) -> Optional[str]:
    """Return ``scheme://host[:port]`` for *url*, or None if it is unusable.

    Userinfo, path, query and fragment are discarded.
    """
    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in ("http", "https"):
        return None
    host = parsed.hostname
    if not host:
        return None

    if ":" in host:
        host = f"[{host}]"
    if port is not None:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def host_of(url: str) -> str:
    """Return ``host[:port]`` of *url*, or ``""`` if it cannot be parsed."""
    base = authority(url)
    if base is None:
        return ""
    return base.split("://", 1)[1]


def endpoint(url: str, path: str) -> Optional[str]:
    """Build ``<authority><path>``, ignoring any path already on *url*."""
    base = authority(url)
    if base is None:
        return None
    return base + path


def cache_busted(url: str, index: int, now_ms: int) -> str:
    """Append a unique ``ping_ts`` query parameter to *url*."""
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{CACHE_BUST_PARAM}={now_ms}_{index}"
