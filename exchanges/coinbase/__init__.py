"""
Coinbase Exchange Facade

Implements ExchangeInterface for the Coinbase App API (v2).

Endpoints Used:
    - GET /v2/accounts                         - Accounts (paginated)
    - GET /v2/accounts/{id}                    - One account
    - GET /v2/accounts/{id}/transactions       - Transactions (paginated)

Coinbase keeps one account per currency, so operations scoped to the
reference ticker first select the accounts whose currency code matches.
"""

from typing import List, Optional

from core.exchange_interface import ExchangeInterface
from core.logging import get_logger
from core.schemas import AssetBalance
from .api_client import CoinbaseAPIClient
from .schemas import Account, Transaction


logger = get_logger(__name__)


class CoinbaseExchange(ExchangeInterface):
    """Coinbase App Exchange Facade"""

    name = "coinbase"

    capabilities = {
        "balance": True,
        "trade_history": True,
        "deposits": False,
        "withdrawals": False,
        "accounts": True,
    }

    def __init__(self, client: Optional[CoinbaseAPIClient] = None, ticker: Optional[str] = None):
        super().__init__(ticker)

        if client is None:
            from core.config import settings
            client = CoinbaseAPIClient(credential=settings.coinbase_credential())

        self.client = client

    async def initialize(self) -> None:
        logger.info("Initializing Coinbase exchange facade...")
        await self.client.__aenter__()
        logger.info("✓ Coinbase exchange facade initialized")

    async def shutdown(self) -> None:
        await self.client.close()
        logger.info("✓ Coinbase exchange facade shut down")

    # ============================================
    # Account Operations
    # ============================================

    async def accounts(self) -> List[Account]:
        return await self.client.accounts()

    async def account(self, account_id: str) -> Account:
        return await self.client.account(account_id)

    async def ticker_accounts(self) -> List[Account]:
        """Accounts whose currency is the reference ticker"""
        return [a for a in await self.client.accounts() if a.currency.code == self.ticker]

    async def balance(self) -> AssetBalance:
        """Sum of the balances of all reference-ticker accounts"""
        accounts = await self.ticker_accounts()
        return AssetBalance(
            exchange=self.name,
            asset=self.ticker,
            total=sum(a.balance.amount for a in accounts)
        )

    async def transactions(self) -> List[Transaction]:
        """Every transaction of the reference-ticker accounts, account by account"""
        transactions: List[Transaction] = []
        for account in await self.ticker_accounts():
            transactions.extend(await self.client.transactions(account.id))
        return transactions

    async def trade_history(self) -> List[Transaction]:
        """Buy/sell/trade transactions of the reference-ticker accounts"""
        trades = [t for t in await self.transactions() if t.is_trade]
        logger.info(f"Fetched {len(trades)} Coinbase {self.ticker} trades")
        return trades


__all__ = ["CoinbaseExchange", "CoinbaseAPIClient"]
