"""
Binance Exchange Facade

Implements ExchangeInterface for the Binance Spot account API.

Endpoints Used:
    - GET /api/v3/exchangeInfo  - Tradable symbols (public)
    - GET /api/v3/account       - Balances (signed)
    - GET /api/v3/myTrades      - Trades per symbol (signed)

Binance only returns trades for one symbol per call, so trade_history()
first derives the set of pairs that include the reference ticker (once per
facade, via SingleFlightCache) and then queries each pair.

Structure:
    exchanges/binance/
    ├── __init__.py          # This file (BinanceExchange facade)
    ├── api_client.py        # Signed REST calls
    └── schemas.py           # Response models
"""

from typing import Dict, List, Optional

from core.cache import SingleFlightCache
from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import AssetBalance
from .api_client import BinanceAPIClient
from .schemas import Balance, Symbol, Trade


logger = get_logger(__name__)


class BinanceExchange(ExchangeInterface):
    """
    Binance Spot Exchange Facade

    Attributes:
        name: Exchange identifier ("binance")
        capabilities: balance and trade history
        client: BinanceAPIClient performing the requests
        ticker: Reference asset (default "BTC")

    Example:
        >>> exchange = BinanceExchange()
        >>> await exchange.initialize()
        >>> trades = await exchange.trade_history()
        >>> for symbol, fills in trades.items():
        ...     print(symbol, len(fills))
        >>> await exchange.shutdown()
    """

    # ============================================
    # Class Attributes
    # ============================================

    name = "binance"

    capabilities = {
        "balance": True,
        "trade_history": True,
        "deposits": False,
        "withdrawals": False,
        "accounts": False,
    }

    # ============================================
    # Initialization
    # ============================================

    def __init__(self, client: Optional[BinanceAPIClient] = None, ticker: Optional[str] = None):
        """
        Args:
            client: Preconfigured API client (default: built from settings)
            ticker: Reference asset (default: settings.ticker)
        """
        super().__init__(ticker)

        if client is None:
            from core.config import settings
            client = BinanceAPIClient(credential=settings.binance_credential())

        self.client = client
        self._pairs: SingleFlightCache[List[Symbol]] = SingleFlightCache(
            self._load_pairs,
            name=f"binance {self.ticker} pairs"
        )

        logger.debug(f"BinanceExchange created (base_url={self.client.base_url})")

    async def initialize(self) -> None:
        logger.info("Initializing Binance exchange facade...")
        await self.client.__aenter__()
        logger.info("✓ Binance exchange facade initialized")

    async def shutdown(self) -> None:
        logger.info("Shutting down Binance exchange facade...")
        await self.client.close()
        logger.info("✓ Binance exchange facade shut down")

    # ============================================
    # Derived Resources
    # ============================================

    async def _load_pairs(self) -> List[Symbol]:
        info = await self.client.exchange_info()
        pairs = [symbol for symbol in info.symbols if symbol.involves(self.ticker)]
        logger.info(f"Found {len(pairs)} Binance pairs involving {self.ticker}")
        return pairs

    async def reference_pairs(self) -> List[Symbol]:
        """Pairs whose base or quote asset is the reference ticker (computed once)"""
        return await self._pairs.get()

    # ============================================
    # Account Operations
    # ============================================

    async def balance_for_asset(self, asset: str) -> Balance:
        """
        Raw Binance balance for any asset.

        Raises:
            AssetNotFoundError: If the account has no entry for the asset
        """
        return await self.client.balance_for_asset(asset)

    async def balance(self) -> AssetBalance:
        """
        Balance of the reference ticker.

        Raises:
            AssetNotFoundError: If the account has no entry for the ticker
        """
        balance = await self.balance_for_asset(self.ticker)
        return AssetBalance(
            exchange=self.name,
            asset=balance.asset,
            total=balance.total,
            available=balance.free
        )

    async def trade_history(self) -> Dict[str, List[Trade]]:
        """
        Trades for every pair involving the reference ticker.

        Pairs are queried one after another. The first failure aborts the
        whole operation.

        Returns:
            Mapping of pair symbol (e.g., "BTCUSDT") to its trades, in the
            order the server returned them
        """
        pairs = await self.reference_pairs()

        history: Dict[str, List[Trade]] = {}
        for pair in pairs:
            history[pair.symbol] = await self.client.trade_history_for_pair(pair.symbol)

        total = sum(len(trades) for trades in history.values())
        logger.info(f"Fetched {total} Binance trades across {len(history)} {self.ticker} pairs")
        return history


__all__ = ["BinanceExchange", "BinanceAPIClient"]
