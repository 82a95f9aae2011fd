"""Tests for HTTP and TCP checks."""
import asyncio
import socket
from unittest.mock import patch

import httpx
import pytest

from pingpilot.services.checker import CheckerService, parse_host_port


def make_checker(handler, timeout=5) -> CheckerService:
    return CheckerService(timeout=timeout, user_agent="test-agent", transport=httpx.MockTransport(handler))


async def test_http_200_is_up():
    seen = {}

    def handler(request):
        seen["user_agent"] = request.headers.get("user-agent")
        return httpx.Response(200, text="ok")

    result = await make_checker(handler).check("http", "https://example.com")

    assert result.status == "up"
    assert result.response_time_ms is not None
    assert result.error_message is None
    assert seen["user_agent"] == "test-agent"


async def test_http_500_is_down_with_message():
    result = await make_checker(lambda request: httpx.Response(500)).check("website", "https://example.com")

    assert result.status == "down"
    assert result.error_message == "HTTP 500: Internal Server Error"


async def test_http_other_2xx_is_down():
    result = await make_checker(lambda request: httpx.Response(204)).check("http", "https://example.com")

    assert result.status == "down"
    assert result.error_message.startswith("HTTP 204")


async def test_http_redirects_are_followed():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.com/new"})
        return httpx.Response(200)

    result = await make_checker(handler).check("http", "https://example.com/old")

    assert result.status == "up"


async def test_http_timeout_is_down():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await make_checker(handler, timeout=10).check("http", "https://example.com")

    assert result.status == "down"
    assert result.error_message == "Request timeout after 10s"


async def test_http_connect_error_is_down():
    def handler(request):
        raise httpx.ConnectError("Name or service not known", request=request)

    result = await make_checker(handler).check("api", "https://nowhere.invalid")

    assert result.status == "down"
    assert result.error_message.startswith("Connection error:")


async def test_bare_host_gets_http_scheme():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200)

    await make_checker(handler).check("website", "example.com")

    assert seen["url"].startswith("http://example.com")


async def test_host_starting_with_http_gets_scheme():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        return httpx.Response(200)

    result = await make_checker(handler).check("website", "httpbin.org/status")

    assert result.status == "up"
    assert seen["url"] == "http://httpbin.org/status"


async def test_slow_success_stays_up_with_annotation():
    checker = make_checker(lambda request: httpx.Response(200))

    with patch("pingpilot.services.checker._elapsed_ms", return_value=1500):
        result = await checker.check("http", "https://example.com", response_threshold_ms=1000)

    assert result.status == "up"
    assert result.response_time_ms == 1500
    assert result.error_message == "Slow response: 1500ms exceeds threshold of 1000ms"


async def test_unexpected_error_never_escapes():
    def handler(request):
        raise RuntimeError("boom")

    result = await make_checker(handler).check("http", "https://example.com")

    assert result.status == "down"
    assert result.error_message == "boom"


async def test_tcp_open_port_is_up():
    server = await asyncio.start_server(lambda r, w: w.close(), "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        result = await CheckerService(timeout=5).check("tcp", f"127.0.0.1:{port}")
    finally:
        server.close()
        await server.wait_closed()

    assert result.status == "up"
    assert result.response_time_ms is not None


async def test_tcp_closed_port_is_down():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()

    result = await CheckerService(timeout=5).check("tcp", f"127.0.0.1:{port}")

    assert result.status == "down"
    assert result.error_message.startswith("Connection error:")


async def test_tcp_refused_does_not_raise():
    with patch("asyncio.open_connection", side_effect=ConnectionRefusedError(111, "Connection refused")):
        result = await CheckerService(timeout=5).check("tcp", "db.internal:5432")

    assert result.status == "down"
    assert result.error_message == "Connection error: Connection refused"


async def test_tcp_timeout_is_down():
    async def hang(host, port):
        await asyncio.sleep(10)

    with patch("asyncio.open_connection", side_effect=hang):
        result = await CheckerService(timeout=0.05).check("tcp", "db.internal:5432")

    assert result.status == "down"
    assert result.error_message == "Connection timeout after 0.05s"


@pytest.mark.parametrize("address,expected", [
    ("db.internal:5432", ("db.internal", 5432)),
    ("db.internal", ("db.internal", 80)),
    ("tcp://db.internal:6379", ("db.internal", 6379)),
    ("10.0.0.5:22", ("10.0.0.5", 22)),
    ("[::1]:8080", ("::1", 8080)),
    ("[::1]", ("::1", 80)),
    ("db.internal:notaport", ("db.internal", 80)),
])
def test_parse_host_port(address, expected):
    assert parse_host_port(address) == expected
