"""
Bitfinex v2 REST API Client

Async client for the authenticated "read" endpoints of the Bitfinex v2 API.

Authentication:
    Every call is a POST signed with HMAC-SHA384 (hex) over

        "/api/v2/auth/r/" + <endpoint> + <nonce> + <body>

    and carries bfx-nonce, bfx-apikey and bfx-signature headers. The nonce is
    a strictly increasing millisecond counter per client.

Responses are positional JSON arrays, decoded by the models in
exchanges/bitfinex/schemas.py.

Usage:
    async with BitfinexAPIClient(credential=settings.bitfinex_credential()) as client:
        wallets = await client.wallets()
"""

from typing import List, Optional

from core.credentials import Credential
from core.dispatcher import ApiRequest, RequestDispatcher, json_decoder
from core.logging import get_logger
from core.signing import SigningScheme
from core.transport import AiohttpTransport, Transport
from .schemas import Movement, Trade, Wallet


AUTH_READ_ROOT = "/v2/auth/r/"
EMPTY_BODY = "{}"
HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class BitfinexAPIClient:
    """
    Async HTTP client for the Bitfinex v2 authenticated API

    Attributes:
        base_url: REST root (default https://api.bitfinex.com)
        dispatcher: Signs and sends every request
    """

    def __init__(
        self,
        credential: Optional[Credential] = None,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        timeout: Optional[float] = None,
    ):
        from core.config import settings

        self.base_url = base_url or settings.bitfinex_base_url
        self.logger = get_logger(__name__)

        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(user_agent=settings.user_agent)

        self.dispatcher = RequestDispatcher(
            exchange="bitfinex",
            transport=self.transport,
            credential=credential,
            base_url=self.base_url,
            timeout=timeout or settings.request_timeout,
        )

    async def __aenter__(self):
        if self._owns_transport:
            await self.transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    # ============================================
    # Request Handler
    # ============================================

    def _request(self, endpoint: str) -> ApiRequest:
        """Signed POST to /v2/auth/r/<endpoint>"""
        return ApiRequest(
            "POST",
            f"{AUTH_READ_ROOT}{endpoint}",
            body=EMPTY_BODY,
            scheme=SigningScheme.HEADER_HMAC_SHA384,
            signing_path=endpoint,
            headers=HEADERS,
        )

    # ============================================
    # API Methods
    # ============================================

    async def wallets(self) -> List[Wallet]:
        """
        Fetch every wallet (exchange, margin, funding) of the account.

        Bitfinex Endpoint:
            POST /v2/auth/r/wallets
        """
        return await self.dispatcher.call(self._request("wallets"), json_decoder(List[Wallet]))

    async def movements(self, currency: str) -> List[Movement]:
        """
        Fetch deposit and withdrawal history for one currency.

        Bitfinex Endpoint:
            POST /v2/auth/r/movements/{currency}/hist
        """
        request = self._request(f"movements/{currency}/hist")
        movements = await self.dispatcher.call(request, json_decoder(List[Movement]))
        self.logger.debug(f"Fetched {len(movements)} {currency} movements")
        return movements

    async def trades(self) -> List[Trade]:
        """
        Fetch executed trades across all symbols.

        Bitfinex Endpoint:
            POST /v2/auth/r/trades/hist

        Response Format:
            [
              [402088407, "tBTCUST", 1574963975602, 34938060782, -0.2, 153.57,
               "MARKET", 0.0, -1, -0.061668, "USD", 1234],
              ...
            ]
        """
        return await self.dispatcher.call(self._request("trades/hist"), json_decoder(List[Trade]))
