from __future__ import annotations

import httpx

from embyprobe.models import ServerIdentity, ValidationOutcome
from embyprobe.validator import validate

from conftest import FakeNetwork

INFO_URL = "https://emby.example.com/emby/system/info/public"


def _network(responder) -> FakeNetwork:
    return FakeNetwork().add(INFO_URL, responder)


def test_valid_server(run_with) -> None:
    net = _network(httpx.Response(200, json={"ServerName": "X", "Version": "1"}))
    result = run_with(net, validate, "https://emby.example.com")
    assert result.outcome is ValidationOutcome.VALID
    assert result.ok
    assert result.server == ServerIdentity(name="X", version="1")
    assert result.url == INFO_URL


def test_http_error(run_with) -> None:
    result = run_with(_network(httpx.Response(404)), validate, "https://emby.example.com")
    assert result.outcome is ValidationOutcome.HTTP_ERROR
    assert result.status_code == 404
    assert not result.ok
    assert result.server is None


def test_empty_object_is_invalid_shape(run_with) -> None:
    result = run_with(_network(httpx.Response(200, json={})), validate, "https://emby.example.com")
    assert result.outcome is ValidationOutcome.INVALID_SHAPE


def test_missing_version_is_invalid_shape(run_with) -> None:
    net = _network(httpx.Response(200, json={"ServerName": "X"}))
    assert run_with(net, validate, "https://emby.example.com").outcome is ValidationOutcome.INVALID_SHAPE


def test_non_string_fields_are_invalid_shape(run_with) -> None:
    net = _network(httpx.Response(200, json={"ServerName": "X", "Version": 4}))
    assert run_with(net, validate, "https://emby.example.com").outcome is ValidationOutcome.INVALID_SHAPE


def test_non_json_body_is_invalid_shape(run_with) -> None:
    net = _network(httpx.Response(200, text="<html>Welcome to nginx</html>"))
    assert run_with(net, validate, "https://emby.example.com").outcome is ValidationOutcome.INVALID_SHAPE


def test_json_array_is_invalid_shape(run_with) -> None:
    net = _network(httpx.Response(200, json=[{"ServerName": "X", "Version": "1"}]))
    assert run_with(net, validate, "https://emby.example.com").outcome is ValidationOutcome.INVALID_SHAPE


def test_network_error(run_with) -> None:
    net = _network(httpx.ConnectError("connection refused"))
    result = run_with(net, validate, "https://emby.example.com")
    assert result.outcome is ValidationOutcome.NETWORK_ERROR
    assert "connection refused" in result.error


def test_timeout_is_network_error(run_with) -> None:
    net = _network(httpx.ReadTimeout("timed out"))
    assert run_with(net, validate, "https://emby.example.com").outcome is ValidationOutcome.NETWORK_ERROR


def test_redirect_is_not_followed(run_with) -> None:
    net = _network(httpx.Response(301, headers={"Location": "https://elsewhere.example.com/"}))
    result = run_with(net, validate, "https://emby.example.com")
    assert result.outcome is ValidationOutcome.HTTP_ERROR
    assert result.status_code == 301
    assert len(net.requests) == 1


def test_malformed_url_makes_no_request(run_with) -> None:
    net = FakeNetwork()
    result = run_with(net, validate, "ftp://emby.example.com")
    assert result.outcome is ValidationOutcome.MALFORMED_URL
    assert net.requests == []


def test_user_path_is_ignored(run_with) -> None:
    net = _network(httpx.Response(200, json={"ServerName": "X", "Version": "1"}))
    result = run_with(net, validate, "https://emby.example.com/web/index.html#!/home")
    assert result.ok
    assert str(net.requests[0].url) == INFO_URL


def test_request_is_uncached_and_anonymous(run_with) -> None:
    net = _network(httpx.Response(200, json={"ServerName": "X", "Version": "1"}))
    run_with(net, validate, "https://emby.example.com")
    headers = net.requests[0].headers
    assert headers["cache-control"] == "no-cache"
    assert headers["pragma"] == "no-cache"
    assert "authorization" not in headers
    assert "cookie" not in headers
