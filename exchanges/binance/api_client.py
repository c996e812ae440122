"""
Binance Spot REST API Client

Async client for the account endpoints of the Binance Spot API. It handles:
- Query-string HMAC-SHA256 signing (recvWindow + timestamp, X-MBX-APIKEY)
- Weight-based rate limiting driven by the X-MBX-USED-WEIGHT-1M header
- Decoding into the models in exchanges/binance/schemas.py

API Documentation:
    https://developers.binance.com/docs/binance-spot-api-docs/rest-api

Rate Limits:
    - 6000 request weight per rolling minute
    - Every endpoint used here costs 20
    - When the budget reported by the last response cannot fit the call,
      the client sleeps proportionally and re-signs the request

Usage:
    async with BinanceAPIClient(credential=settings.binance_credential()) as client:
        account = await client.get_account()
        trades = await client.trade_history_for_pair("BTCUSDT")
"""

from typing import List, Optional

from core.credentials import Credential
from core.dispatcher import ApiRequest, RequestDispatcher, json_decoder
from core.errors import AssetNotFoundError
from core.logging import get_logger
from core.rate_limit import RateBudgetTracker
from core.signing import SigningScheme
from core.transport import AiohttpTransport, Transport
from .schemas import AccountInformation, Balance, ExchangeInformation, Trade


# ============================================
# Endpoint Table
# ============================================

EXCHANGE_INFO_PATH = "/api/v3/exchangeInfo"
ACCOUNT_PATH = "/api/v3/account"
MY_TRADES_PATH = "/api/v3/myTrades"

REQUEST_WEIGHT = {
    EXCHANGE_INFO_PATH: 20,
    ACCOUNT_PATH: 20,
    MY_TRADES_PATH: 20,
}

# Signed GETs are sent as form-encoded queries
SIGNED_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


class BinanceAPIClient:
    """
    Async HTTP client for the Binance Spot account API

    Attributes:
        base_url: Binance REST root (mainnet, US or testnet)
        dispatcher: Signs, sends and rate-limits every request
        logger: Logger instance for debugging

    Example:
        >>> async with BinanceAPIClient(credential=HmacKeys("key", "secret")) as client:
        ...     balance = await client.balance_for_asset("BTC")
        ...     print(f"Free: {balance.free}")

    Notes:
        - exchange_info() is public; every other call needs HmacKeys
        - A transport can be injected for testing; the client only closes
          transports it created itself
    """

    def __init__(
        self,
        credential: Optional[Credential] = None,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        recv_window: Optional[int] = None,
        max_weight_per_minute: Optional[int] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        """
        Initialize the Binance API client.

        Args:
            credential: HmacKeys, or None for public endpoints only
            base_url: REST root (default: settings.binance_url)
            transport: HTTP transport (default: a new AiohttpTransport)
            recv_window: recvWindow in ms (default: settings.binance_recv_window)
            max_weight_per_minute: Weight budget (default: settings value, 6000)
            timeout: Request timeout in seconds (default: settings.request_timeout)
            max_retries: Optional bound on rate-limit deferrals per call
        """
        from core.config import settings

        self.base_url = base_url or settings.binance_url
        self.logger = get_logger(__name__)

        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(user_agent=settings.user_agent)

        self.dispatcher = RequestDispatcher(
            exchange="binance",
            transport=self.transport,
            credential=credential,
            base_url=self.base_url,
            tracker=RateBudgetTracker(
                max_weight=max_weight_per_minute or settings.binance_max_weight_per_minute
            ),
            max_retries=max_retries if max_retries is not None else settings.rate_limit_max_retries,
            timeout=timeout or settings.request_timeout,
            recv_window=recv_window or settings.binance_recv_window,
        )

    # ============================================
    # Context Manager for Session Management
    # ============================================

    async def __aenter__(self):
        if self._owns_transport:
            await self.transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()
            self.logger.debug("BinanceAPIClient transport closed")

    # ============================================
    # API Methods
    # ============================================

    async def exchange_info(self) -> ExchangeInformation:
        """
        Fetch exchange rules and the list of symbols.

        Binance Endpoint:
            GET /api/v3/exchangeInfo (public, weight 20)
        """
        request = ApiRequest(
            "GET",
            EXCHANGE_INFO_PATH,
            weight=REQUEST_WEIGHT[EXCHANGE_INFO_PATH],
        )
        info = await self.dispatcher.call(request, json_decoder(ExchangeInformation))
        self.logger.debug(f"Fetched exchange info: {len(info.symbols)} symbols")
        return info

    async def get_account(self) -> AccountInformation:
        """
        Fetch account information, including every asset balance.

        Binance Endpoint:
            GET /api/v3/account (signed, weight 20)

        Raises:
            CredentialsNotAvailableError: If the client has no API keys
        """
        request = ApiRequest(
            "GET",
            ACCOUNT_PATH,
            weight=REQUEST_WEIGHT[ACCOUNT_PATH],
            scheme=SigningScheme.QUERY_HMAC_SHA256,
            headers=SIGNED_HEADERS,
        )
        return await self.dispatcher.call(request, json_decoder(AccountInformation))

    async def balance_for_asset(self, asset: str) -> Balance:
        """
        Get the balance of one asset (e.g., "BTC").

        Raises:
            AssetNotFoundError: If the account has no entry for the asset
        """
        account = await self.get_account()

        for balance in account.balances:
            if balance.asset == asset:
                return balance

        raise AssetNotFoundError(asset)

    async def trade_history_for_pair(self, symbol: str) -> List[Trade]:
        """
        Fetch the account's trades for one symbol (e.g., "BTCUSDT").

        Binance Endpoint:
            GET /api/v3/myTrades?symbol=... (signed, weight 20)

        Response Format:
            [
              {
                "symbol": "BNBBTC",
                "id": 28457,
                "price": "4.00000100",
                "qty": "12.00000000",
                "quoteQty": "48.000012",
                "commission": "10.10000000",
                "commissionAsset": "BNB",
                "time": 1499865549590,
                "isBuyer": true,
                "isMaker": false,
                "isBestMatch": true
              }
            ]
        """
        request = ApiRequest(
            "GET",
            MY_TRADES_PATH,
            params={"symbol": symbol},
            weight=REQUEST_WEIGHT[MY_TRADES_PATH],
            scheme=SigningScheme.QUERY_HMAC_SHA256,
            headers=SIGNED_HEADERS,
        )
        trades = await self.dispatcher.call(request, json_decoder(List[Trade]))
        self.logger.debug(f"Fetched {len(trades)} trades for {symbol}")
        return trades
