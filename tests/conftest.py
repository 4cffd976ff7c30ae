from __future__ import annotations

import asyncio
from typing import Callable, Union

import httpx
import pytest

from embyprobe.client import build_client

Responder = Union[httpx.Response, Callable[[httpx.Request], httpx.Response], Exception]

EMBY_INFO = {"ServerName": "Living Room", "Version": "4.8.10.0", "Id": "abc"}

TRACE_FRA = (
    "fl=123f45\n"
    "h=emby.example.com\n"
    "ip=203.0.113.7\n"
    "ts=1718000000.123\n"
    "visit_scheme=https\n"
    "colo=FRA\n"
    "loc=DE\n"
)

LOCATIONS = [
    {"iata": "AMS", "city": "Amsterdam", "cca2": "NL", "region": "Europe", "lat": 52.31, "lon": 4.76},
    {"iata": "FRA", "city": "Frankfurt", "cca2": "DE", "region": "Europe", "lat": 50.1, "lon": 8.6},
    {"iata": "LIS", "city": "Lisbon", "cca2": "PT", "region": "Europe", "lat": 38.78, "lon": -9.14},
]

META_BERLIN_TELEKOM = {
    "hostname": "speed.cloudflare.com",
    "clientIp": "203.0.113.7",
    "asn": 3320,
    "asOrganization": "Deutsche Telekom AG",
    "country": "DE",
    "city": "Berlin",
    "latitude": "52.52000",
    "longitude": "13.40500",
}


class FakeNetwork:
    """Routes requests by ``host + path`` and records every request seen."""

    def __init__(self) -> None:
        self.routes: dict[str, Responder] = {}
        self.requests: list[httpx.Request] = []

    def add(self, url: str, responder: Responder) -> "FakeNetwork":
        self.routes[url] = responder
        return self

    def hits(self, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if f"{r.url.scheme}://{r.url.netloc.decode()}{r.url.path}" == url]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.url.scheme}://{request.url.netloc.decode()}{request.url.path}"
        responder = self.routes.get(key)
        if responder is None:
            return httpx.Response(404, text="not found")
        if isinstance(responder, Exception):
            raise responder
        if callable(responder):
            return responder(request)
        # A response object is consumed by the client, so hand out a copy
        return httpx.Response(
            responder.status_code,
            headers=responder.headers,
            content=responder.content,
        )


def emby_network(
    trace: Responder = None,
    locations: Responder = None,
    meta: Responder = None,
) -> FakeNetwork:
    net = FakeNetwork()
    net.add("https://emby.example.com/emby/system/info/public", httpx.Response(200, json=EMBY_INFO))
    if trace is None:
        trace = httpx.Response(200, text=TRACE_FRA)
    if locations is None:
        locations = httpx.Response(200, json=LOCATIONS)
    if meta is None:
        meta = httpx.Response(200, json=META_BERLIN_TELEKOM)
    net.add("https://emby.example.com/cdn-cgi/trace", trace)
    net.add("https://speed.cloudflare.com/locations", locations)
    net.add("https://speed.cloudflare.com/meta", meta)
    return net


@pytest.fixture
def network() -> FakeNetwork:
    return emby_network()


@pytest.fixture
def run_with():
    """Run ``await func(client, *args)`` against a mocked transport."""

    def _run(handler, func, *args, **kwargs):
        async def go():
            async with build_client(transport=httpx.MockTransport(handler)) as client:
                return await func(client, *args, **kwargs)

        return asyncio.run(go())

    return _run
