"""
Bitfinex Exchange Facade

Implements ExchangeInterface for the Bitfinex v2 authenticated API.

Endpoints Used:
    - POST /v2/auth/r/wallets                  - Wallet balances
    - POST /v2/auth/r/movements/{ccy}/hist     - Deposits and withdrawals
    - POST /v2/auth/r/trades/hist              - Executed trades

Bitfinex trading symbols are prefixed with "t" ("tBTCUSD", "tETHBTC"), so a
trade involves the reference ticker when its symbol starts with "t<TICKER>"
or ends with "<TICKER>".
"""

from typing import List, Optional

from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import AssetBalance
from .api_client import BitfinexAPIClient
from .schemas import Movement, Trade, Wallet


logger = get_logger(__name__)

TRADING_PREFIX = "t"


class BitfinexExchange(ExchangeInterface):
    """
    Bitfinex Exchange Facade

    Deposits and withdrawals both come from the movements endpoint and are
    told apart by the sign of the amount.
    """

    name = "bitfinex"

    capabilities = {
        "balance": True,
        "trade_history": True,
        "deposits": True,
        "withdrawals": True,
        "accounts": True,
    }

    def __init__(self, client: Optional[BitfinexAPIClient] = None, ticker: Optional[str] = None):
        super().__init__(ticker)

        if client is None:
            from core.config import settings
            client = BitfinexAPIClient(credential=settings.bitfinex_credential())

        self.client = client

    async def initialize(self) -> None:
        logger.info("Initializing Bitfinex exchange facade...")
        await self.client.__aenter__()
        logger.info("✓ Bitfinex exchange facade initialized")

    async def shutdown(self) -> None:
        await self.client.close()
        logger.info("✓ Bitfinex exchange facade shut down")

    # ============================================
    # Account Operations
    # ============================================

    async def accounts(self) -> List[Wallet]:
        """All wallets of the account"""
        return await self.client.wallets()

    async def balance(self) -> AssetBalance:
        """
        Sum of the reference currency across all wallets.

        A ticker with no wallet yields a zero balance.
        """
        wallets = [w for w in await self.client.wallets() if w.currency == self.ticker]

        available = [w.available_balance for w in wallets if w.available_balance is not None]
        return AssetBalance(
            exchange=self.name,
            asset=self.ticker,
            total=sum(w.balance for w in wallets),
            available=sum(available) if available else None
        )

    async def movements(self) -> List[Movement]:
        """Deposits and withdrawals of the reference currency, in server order"""
        return await self.client.movements(self.ticker)

    async def deposits(self) -> List[Movement]:
        return [m for m in await self.movements() if m.is_deposit]

    async def withdrawals(self) -> List[Movement]:
        return [m for m in await self.movements() if not m.is_deposit]

    def involves_ticker(self, symbol: str) -> bool:
        return symbol.startswith(f"{TRADING_PREFIX}{self.ticker}") or symbol.endswith(self.ticker)

    async def trade_history(self) -> List[Trade]:
        """Trades whose symbol involves the reference ticker"""
        trades = await self.client.trades()
        matching = [t for t in trades if self.involves_ticker(t.symbol)]
        logger.info(f"Fetched {len(matching)} of {len(trades)} Bitfinex trades involving {self.ticker}")
        return matching


__all__ = ["BitfinexExchange", "BitfinexAPIClient"]
