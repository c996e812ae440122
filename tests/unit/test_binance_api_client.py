"""
Unit Tests for Binance API Client and Facade

These tests verify that the BinanceAPIClient / BinanceExchange:
- Sign account requests and decode Binance responses into our schemas
- Raise AssetNotFoundError for assets missing from the account
- Compute the reference pairs once and fan out trade history per pair
- Work against an in-memory transport (no network)

Run with:
    pytest tests/unit/test_binance_api_client.py -v
"""

import json
from urllib.parse import parse_qs, urlsplit

import pytest

from core.credentials import HmacKeys, NoAuth
from core.errors import AssetNotFoundError, CredentialsNotAvailableError, RemoteApiError
from core.schemas import AssetBalance
from core.transport import TransportResponse
from exchanges.binance import BinanceExchange
from exchanges.binance.api_client import BinanceAPIClient


# ============================================
# Sample Payloads
# ============================================

ACCOUNT = {
    "makerCommission": 15,
    "takerCommission": 15,
    "buyerCommission": 0,
    "sellerCommission": 0,
    "canTrade": True,
    "canWithdraw": True,
    "canDeposit": True,
    "updateTime": 123456789,
    "accountType": "SPOT",
    "balances": [
        {"asset": "BTC", "free": "4723846.89208129", "locked": "0.00000000"},
        {"asset": "LTC", "free": "4763368.68006011", "locked": "0.00000000"},
    ],
    "permissions": ["SPOT"],
}


def _symbol(symbol, base, quote):
    return {
        "symbol": symbol,
        "status": "TRADING",
        "baseAsset": base,
        "baseAssetPrecision": 8,
        "quoteAsset": quote,
        "quotePrecision": 8,
        "orderTypes": ["LIMIT", "MARKET"],
        "icebergAllowed": True,
        "isSpotTradingAllowed": True,
        "isMarginTradingAllowed": False,
    }


EXCHANGE_INFO = {
    "timezone": "UTC",
    "serverTime": 1565246363776,
    "rateLimits": [
        {"rateLimitType": "REQUEST_WEIGHT", "interval": "MINUTE", "intervalNum": 1, "limit": 6000}
    ],
    "exchangeFilters": [],
    "symbols": [
        _symbol("ETHBTC", "ETH", "BTC"),
        _symbol("BTCUSDT", "BTC", "USDT"),
        _symbol("ETHUSDT", "ETH", "USDT"),
    ],
}


def _trade(symbol, trade_id):
    return {
        "symbol": symbol,
        "id": trade_id,
        "orderId": 100234,
        "orderListId": -1,
        "price": "4.00000100",
        "qty": "12.00000000",
        "quoteQty": "48.000012",
        "commission": "10.10000000",
        "commissionAsset": "BNB",
        "time": 1499865549590,
        "isBuyer": True,
        "isMaker": False,
        "isBestMatch": True,
    }


class BinanceRouter:
    """Answers by request path, recording every path it served"""

    def __init__(self):
        self.paths = []

    def __call__(self, method, url, headers, body):
        parts = urlsplit(url)
        self.paths.append(parts.path)

        if parts.path == "/api/v3/exchangeInfo":
            payload = EXCHANGE_INFO
        elif parts.path == "/api/v3/account":
            payload = ACCOUNT
        elif parts.path == "/api/v3/myTrades":
            symbol = parse_qs(parts.query)["symbol"][0]
            payload = [_trade(symbol, 1), _trade(symbol, 2)]
        else:
            return TransportResponse(status=404, body="")

        return TransportResponse(status=200, body=json.dumps(payload))


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def router():
    return BinanceRouter()


@pytest.fixture
def api_client(make_transport, router, no_sleep):
    client = BinanceAPIClient(
        credential=HmacKeys(api_key="key", secret_key="secret"),
        base_url="https://api.binance.com",
        transport=make_transport(router),
    )
    client.dispatcher._sleep = no_sleep
    return client


@pytest.fixture
def exchange(api_client):
    return BinanceExchange(client=api_client, ticker="BTC")


# ============================================
# Tests for the API Client
# ============================================

class TestAccount:
    """Tests for get_account / balance_for_asset"""

    @pytest.mark.asyncio
    async def test_account_balances_decoded(self, api_client):
        """Verify decimal-string balances become floats"""
        account = await api_client.get_account()

        assert account.can_trade
        assert account.maker_commission == 15
        assert [b.asset for b in account.balances] == ["BTC", "LTC"]
        assert account.balances[0].free == 4723846.89208129
        assert account.balances[0].locked == 0.0

    @pytest.mark.asyncio
    async def test_account_request_is_signed(self, api_client):
        await api_client.get_account()

        sent = api_client.transport.requests[0]
        query = parse_qs(urlsplit(sent.url).query)
        assert query["recvWindow"] == ["5000"]
        assert "timestamp" in query and "signature" in query
        assert sent.headers["X-MBX-APIKEY"] == "key"
        assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"

    @pytest.mark.asyncio
    async def test_balance_for_asset(self, api_client):
        balance = await api_client.balance_for_asset("LTC")
        assert balance.free == 4763368.68006011

    @pytest.mark.asyncio
    async def test_missing_asset_raises(self, api_client):
        """Verify an asset absent from the account is a domain error, not a default"""
        with pytest.raises(AssetNotFoundError) as exc_info:
            await api_client.balance_for_asset("DOGE")
        assert exc_info.value.asset == "DOGE"

    @pytest.mark.asyncio
    async def test_no_credentials(self, make_transport, router):
        client = BinanceAPIClient(
            credential=NoAuth(),
            base_url="https://api.binance.com",
            transport=make_transport(router),
        )

        with pytest.raises(CredentialsNotAvailableError):
            await client.get_account()

        # Public endpoint still works
        info = await client.exchange_info()
        assert len(info.symbols) == 3

    @pytest.mark.asyncio
    async def test_http_error(self, make_transport):
        client = BinanceAPIClient(
            credential=HmacKeys("k", "s"),
            base_url="https://api.binance.com",
            transport=make_transport(
                TransportResponse(status=401, body='{"code":-2015,"msg":"Invalid API-key."}')
            ),
        )

        with pytest.raises(RemoteApiError) as exc_info:
            await client.get_account()

        assert exc_info.value.code == "401"


class TestTradeHistoryForPair:
    """Tests for trade_history_for_pair"""

    @pytest.mark.asyncio
    async def test_trades_decoded(self, api_client):
        trades = await api_client.trade_history_for_pair("BTCUSDT")

        assert [t.id for t in trades] == [1, 2]
        assert trades[0].base_qty == 12.0
        assert trades[0].quote_qty == 48.000012
        assert trades[0].commission_asset == "BNB"
        assert trades[0].is_best_match


# ============================================
# Tests for the Facade
# ============================================

class TestBinanceExchange:
    """Tests for BinanceExchange"""

    @pytest.mark.asyncio
    async def test_balance_normalized(self, exchange):
        balance = await exchange.balance()

        assert balance == AssetBalance(
            exchange="binance",
            asset="BTC",
            total=4723846.89208129,
            available=4723846.89208129
        )

    @pytest.mark.asyncio
    async def test_reference_pairs_filter(self, exchange):
        pairs = await exchange.reference_pairs()
        assert [p.symbol for p in pairs] == ["ETHBTC", "BTCUSDT"]

    @pytest.mark.asyncio
    async def test_trade_history_keyed_by_symbol(self, exchange):
        """Verify one myTrades call per pair, keyed by symbol in pair order"""
        history = await exchange.trade_history()

        assert list(history) == ["ETHBTC", "BTCUSDT"]
        assert all(len(trades) == 2 for trades in history.values())
        assert history["BTCUSDT"][0].symbol == "BTCUSDT"

    @pytest.mark.asyncio
    async def test_pairs_computed_once(self, exchange, router):
        """Verify exchangeInfo is fetched once across repeated trade_history calls"""
        await exchange.trade_history()
        await exchange.trade_history()

        assert router.paths.count("/api/v3/exchangeInfo") == 1
        assert router.paths.count("/api/v3/myTrades") == 4
        assert exchange._pairs.computations == 1

    @pytest.mark.asyncio
    async def test_first_failure_aborts(self, make_transport, no_sleep):
        """Verify a failing pair fails the whole trade_history call"""
        router = BinanceRouter()

        def failing(method, url, headers, body):
            if "symbol=BTCUSDT" in url:
                return TransportResponse(status=500, body="internal")
            return router(method, url, headers, body)

        client = BinanceAPIClient(
            credential=HmacKeys("k", "s"),
            base_url="https://api.binance.com",
            transport=make_transport(failing),
        )
        exchange = BinanceExchange(client=client, ticker="BTC")

        with pytest.raises(RemoteApiError):
            await exchange.trade_history()

    def test_capabilities(self, exchange):
        assert exchange.supports("balance")
        assert exchange.supports("trade_history")
        assert not exchange.supports("deposits")

    @pytest.mark.asyncio
    async def test_unsupported_operation(self, exchange):
        with pytest.raises(NotImplementedError, match="binance does not support"):
            await exchange.deposits()
