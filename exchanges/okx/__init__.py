"""
OKX Exchange Facade

Implements ExchangeInterface for the OKX v5 API.

Endpoints Used:
    - GET /api/v5/account/balance?ccy=<TICKER>
    - GET /api/v5/asset/deposit-history?ccy=<TICKER>
    - GET /api/v5/asset/withdrawal-history?ccy=<TICKER>
    - GET /api/v5/trade/fills-history?instType=SPOT

OKX instrument ids are "<BASE>-<QUOTE>" ("BTC-USDT"); a fill involves the
reference ticker when the ticker is one of the two legs.
"""

from typing import List, Optional

from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import AssetBalance
from .api_client import OkxAPIClient
from .schemas import DepositTransaction, FillTrade, WithdrawalTransaction


logger = get_logger(__name__)


class OkxExchange(ExchangeInterface):
    """OKX Exchange Facade"""

    name = "okx"

    capabilities = {
        "balance": True,
        "trade_history": True,
        "deposits": True,
        "withdrawals": True,
        "accounts": False,
    }

    def __init__(self, client: Optional[OkxAPIClient] = None, ticker: Optional[str] = None):
        super().__init__(ticker)

        if client is None:
            from core.config import settings
            client = OkxAPIClient(credential=settings.okx_credential())

        self.client = client

    async def initialize(self) -> None:
        logger.info("Initializing OKX exchange facade...")
        await self.client.__aenter__()
        logger.info("✓ OKX exchange facade initialized")

    async def shutdown(self) -> None:
        await self.client.close()
        logger.info("✓ OKX exchange facade shut down")

    # ============================================
    # Account Operations
    # ============================================

    async def balance(self) -> AssetBalance:
        """Total equity of the reference ticker across the returned accounts"""
        accounts = await self.client.balance(self.ticker)

        total = 0.0
        for account in accounts:
            for detail in account.details:
                if detail.currency == self.ticker:
                    total += detail.amount

        return AssetBalance(exchange=self.name, asset=self.ticker, total=total)

    async def deposits(self) -> List[DepositTransaction]:
        return await self.client.deposit_history(self.ticker)

    async def withdrawals(self) -> List[WithdrawalTransaction]:
        return await self.client.withdrawal_history(self.ticker)

    async def trade_history(self) -> List[FillTrade]:
        """Spot fills whose instrument has the reference ticker as a leg"""
        fills = await self.client.fills_history("SPOT")
        matching = [fill for fill in fills if self.ticker in fill.legs]
        logger.info(f"Fetched {len(matching)} of {len(fills)} OKX fills involving {self.ticker}")
        return matching


__all__ = ["OkxExchange", "OkxAPIClient"]
