"""
HTTP Transport

The request engine talks to the network through a single operation:

    send(method, url, headers, body, timeout) -> TransportResponse

AiohttpTransport is the production implementation. Tests substitute any object
with a matching async `send` method.

Errors raised by aiohttp (connection, TLS, timeout) are re-raised as
TransportError so callers can tell them apart from signing, decoding and
remote API errors.

Usage:
    async with AiohttpTransport(user_agent="acctsync/0.1.0") as transport:
        response = await transport.send("GET", url, headers, None, timeout=25)
        print(response.status, response.body)
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Protocol

import aiohttp
from multidict import CIMultiDict
from yarl import URL

from core.errors import DecodeError, TransportError
from core.logging import get_logger


@dataclass
class TransportResponse:
    """
    A received HTTP response.

    Attributes:
        status: HTTP status code
        headers: Case-insensitive response headers
        body: Response body decoded as text
    """

    status: int
    headers: Mapping[str, str] = field(default_factory=CIMultiDict)
    body: str = ""

    def __post_init__(self):
        if not isinstance(self.headers, CIMultiDict):
            self.headers = CIMultiDict(self.headers)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Anything that can send one HTTP request"""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[str],
        timeout: float
    ) -> TransportResponse:
        ...


class AiohttpTransport:
    """
    aiohttp-backed transport.

    The ClientSession is created lazily on first use (or on __aenter__) and
    closed by close() / __aexit__.
    """

    def __init__(self, user_agent: Optional[str] = None):
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = get_logger(__name__)

    # ============================================
    # Session Management
    # ============================================

    async def __aenter__(self):
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            headers: Dict[str, str] = {}
            if self.user_agent:
                headers["User-Agent"] = self.user_agent
            self.session = aiohttp.ClientSession(headers=headers)
            self.logger.debug("HTTP session created")
        return self.session

    async def close(self) -> None:
        if self.session is not None and not self.session.closed:
            await self.session.close()
            self.logger.debug("HTTP session closed")
        self.session = None

    # ============================================
    # Send
    # ============================================

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[str],
        timeout: float
    ) -> TransportResponse:
        """
        Send one request and read the full body.

        Raises:
            TransportError: On connection, TLS or timeout failures
            DecodeError: If the body is not valid UTF-8
        """
        session = self._ensure_session()
        # Signed query strings carry timestamp and signature; keep them out of messages
        target = f"{method} {URL(url, encoded=True).path}"

        try:
            # encoded=True keeps signed query strings byte-for-byte
            async with session.request(
                method,
                URL(url, encoded=True),
                headers=dict(headers),
                data=body.encode("utf-8") if body else None,
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as resp:
                raw = await resp.read()
                status = resp.status
                response_headers = CIMultiDict(resp.headers)

        except asyncio.TimeoutError as e:
            raise TransportError(f"Timeout after {timeout}s: {target}") from e

        except aiohttp.ClientError as e:
            raise TransportError(f"Request failed: {target}: {e}") from e

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(
                f"Response body is not valid UTF-8: {target}",
                body=raw.decode("utf-8", "replace")
            ) from e

        return TransportResponse(status=status, headers=response_headers, body=text)
