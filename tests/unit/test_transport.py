"""
Unit Tests for the HTTP Transport

The aiohttp session is replaced with a stub so no network is touched.

Run with:
    pytest tests/unit/test_transport.py -v
"""

import asyncio

import aiohttp
import pytest

from core.errors import DecodeError, TransportError
from core.transport import AiohttpTransport, TransportResponse


class StubResponse:
    def __init__(self, status=200, headers=None, body=b""):
        self.status = status
        self.headers = headers or {}
        self._body = body

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


class StubSession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    async def close(self):
        self.closed = True


def _transport_with(outcome):
    transport = AiohttpTransport()
    transport.session = StubSession(outcome)
    return transport


class TestTransportResponse:
    """Tests for the response value object"""

    def test_headers_case_insensitive(self):
        response = TransportResponse(status=200, headers={"X-MBX-USED-WEIGHT-1M": "42"})
        assert response.headers["x-mbx-used-weight-1m"] == "42"

    @pytest.mark.parametrize("status, ok", [(200, True), (204, True), (301, False), (404, False), (500, False)])
    def test_ok(self, status, ok):
        assert TransportResponse(status=status).ok is ok


class TestAiohttpTransport:
    """Tests for AiohttpTransport.send"""

    @pytest.mark.asyncio
    async def test_send_returns_response(self):
        transport = _transport_with(StubResponse(200, {"X-Test": "1"}, b'{"ok": true}'))

        response = await transport.send("POST", "https://api.example.com/x?a=1", {"H": "v"}, "{}", timeout=5)

        assert response.status == 200
        assert response.body == '{"ok": true}'
        assert response.headers["x-test"] == "1"

        method, url, kwargs = transport.session.calls[0]
        assert method == "POST"
        assert str(url) == "https://api.example.com/x?a=1"
        assert kwargs["data"] == b"{}"
        assert kwargs["headers"] == {"H": "v"}

    @pytest.mark.asyncio
    async def test_signed_query_not_re_encoded(self):
        """Verify percent-encoded query bytes reach the wire unchanged"""
        transport = _transport_with(StubResponse())

        await transport.send("GET", "https://api.example.com/x?a=%2F&signature=abc", {}, None, timeout=5)

        _, url, kwargs = transport.session.calls[0]
        assert url.raw_query_string == "a=%2F&signature=abc"
        assert kwargs["data"] is None

    @pytest.mark.asyncio
    async def test_client_error_becomes_transport_error(self):
        transport = _transport_with(aiohttp.ClientConnectionError("connection refused"))

        with pytest.raises(TransportError) as exc_info:
            await transport.send("GET", "https://api.example.com/x", {}, None, timeout=5)

        assert isinstance(exc_info.value.__cause__, aiohttp.ClientError)

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self):
        transport = _transport_with(asyncio.TimeoutError())

        with pytest.raises(TransportError, match="Timeout after 5s"):
            await transport.send("GET", "https://api.example.com/x", {}, None, timeout=5)

    @pytest.mark.asyncio
    async def test_invalid_utf8_body_becomes_decode_error(self):
        transport = _transport_with(StubResponse(200, {}, b'{"a": "\xff\xfe"}'))

        with pytest.raises(DecodeError, match="not valid UTF-8") as exc_info:
            await transport.send("GET", "https://api.example.com/x", {}, None, timeout=5)

        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        assert exc_info.value.body == '{"a": "\ufffd\ufffd"}'

    @pytest.mark.asyncio
    async def test_error_message_omits_signed_query(self):
        transport = _transport_with(aiohttp.ClientConnectionError("connection refused"))
        url = "https://api.binance.com/api/v3/account?timestamp=1499827319559&signature=c8db56825ae71d"

        with pytest.raises(TransportError) as exc_info:
            await transport.send("GET", url, {}, None, timeout=5)

        message = str(exc_info.value)
        assert "GET /api/v3/account" in message
        assert "signature" not in message
        assert "1499827319559" not in message

    @pytest.mark.asyncio
    async def test_timeout_message_omits_signed_query(self):
        transport = _transport_with(asyncio.TimeoutError())

        with pytest.raises(TransportError) as exc_info:
            await transport.send("GET", "https://api.example.com/x?signature=abc", {}, None, timeout=5)

        assert "signature" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_close(self):
        transport = _transport_with(StubResponse())
        session = transport.session

        await transport.close()

        assert session.closed
        assert transport.session is None
