from __future__ import annotations

import pytest

from embyprobe.urls import authority, cache_busted, endpoint, host_of, normalize_url


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("example.com/", "https://example.com"),
        ("  http://x.com  ", "http://x.com"),
        ("", ""),
        ("   ", ""),
        (None, ""),
        ("HTTPS://Example.com", "HTTPS://Example.com"),
        ("emby.example.com/web/index.html", "https://emby.example.com/web/index.html"),
        ("emby .example.com", "https://emby.example.com"),
        ("https://x.com//", "https://x.com/"),
    ],
)
def test_normalize_url(raw, expected) -> None:
    assert normalize_url(raw) == expected


def test_authority_drops_path_query_and_userinfo() -> None:
    assert authority("https://user:pw@emby.example.com:8920/web/index.html?x=1#a") == (
        "https://emby.example.com:8920"
    )


def test_authority_lowercases_scheme() -> None:
    assert authority("HTTPS://emby.example.com") == "https://emby.example.com"


def test_authority_keeps_ipv6_brackets() -> None:
    assert authority("http://[2001:db8::1]:8096/") == "http://[2001:db8::1]:8096"


@pytest.mark.parametrize(
    "bad",
    ["", "https://", "ftp://example.com", "https://example.com:notaport", "http://[::1"],
)
def test_authority_rejects_unusable_urls(bad) -> None:
    assert authority(bad) is None


def test_endpoint_targets_origin_root() -> None:
    assert endpoint("https://emby.example.com/emby/web", "/cdn-cgi/trace") == (
        "https://emby.example.com/cdn-cgi/trace"
    )
    assert endpoint("not a url", "/x") is None


def test_host_of() -> None:
    assert host_of("https://emby.example.com:8920/web") == "emby.example.com:8920"
    assert host_of("") == ""


def test_cache_busted_picks_separator() -> None:
    assert cache_busted("https://x.com/a", 3, 1700) == "https://x.com/a?ping_ts=1700_3"
    assert cache_busted("https://x.com/a?b=1", 0, 1700) == "https://x.com/a?b=1&ping_ts=1700_0"
