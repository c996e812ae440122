"""
Exchange Interface — Abstract Contract for All Exchange Facades

Every exchange package exposes one facade class deriving from
ExchangeInterface. The facade composes dispatcher calls into account-level
operations and scopes them to a reference ticker (default "BTC"):

    balance()        Holding of the reference asset
    trade_history()  Executed trades involving the reference asset
    deposits()       Incoming movements of the reference asset
    withdrawals()    Outgoing movements of the reference asset
    accounts()       Every account/wallet on the exchange

Capabilities System:
    Each facade declares which operations it supports via `capabilities`.
    Operations an exchange does not offer raise NotImplementedError.

    Example:
        capabilities = {
            "balance": True,
            "trade_history": True,
            "deposits": False,
            "withdrawals": False,
            "accounts": False,
        }

Example:
    exchange = manager.get_exchange("okx")
    if exchange.supports("deposits"):
        deposits = await exchange.deposits()
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.schemas import AssetBalance


FEATURES = ("balance", "trade_history", "deposits", "withdrawals", "accounts")


class ExchangeInterface(ABC):
    """
    Abstract Base Class for Exchange Facades

    Class Attributes:
        name: Unique identifier for the exchange (lowercase, e.g., "binance")
        capabilities: Which operations this exchange supports

    Instance Attributes:
        ticker: Reference asset every filter is scoped to

    Optional Methods (can be overridden):
        - initialize: Open the HTTP session
        - shutdown: Close the HTTP session
        - deposits / withdrawals / accounts
    """

    # ============================================
    # Class Attributes (must be set by subclasses)
    # ============================================

    name: str
    """Unique exchange identifier (lowercase). Example: "binance", "okx" """

    capabilities: Dict[str, bool] = {feature: False for feature in FEATURES}
    """Dictionary indicating which operations this exchange supports"""

    def __init__(self, ticker: Optional[str] = None):
        if ticker is None:
            from core.config import settings
            ticker = settings.ticker
        self.ticker = ticker.strip().upper()

    # ============================================
    # Account Operations
    # ============================================

    @abstractmethod
    async def balance(self) -> AssetBalance:
        """
        Get the holding of the reference asset.

        Raises:
            AssetNotFoundError: If the exchange reports no entry for the asset
                                (where absence is an error for that exchange)
            ExchangeClientError: For transport, auth, decode or API failures
        """
        ...

    @abstractmethod
    async def trade_history(self) -> Any:
        """
        Get executed trades involving the reference asset.

        Returns:
            A list of exchange trade records, or a mapping of pair -> trades
            for exchanges that can only query per pair
        """
        ...

    async def deposits(self) -> List[Any]:
        """Get incoming movements of the reference asset"""
        raise NotImplementedError(f"{self.name} does not support deposits")

    async def withdrawals(self) -> List[Any]:
        """Get outgoing movements of the reference asset"""
        raise NotImplementedError(f"{self.name} does not support withdrawals")

    async def accounts(self) -> List[Any]:
        """Get every account/wallet on the exchange"""
        raise NotImplementedError(f"{self.name} does not support accounts")

    # ============================================
    # Lifecycle
    # ============================================

    async def initialize(self) -> None:
        """
        Set up resources (HTTP session). Called by ExchangeManager.initialize_all().
        """
        pass

    async def shutdown(self) -> None:
        """
        Release resources. Called by ExchangeManager.shutdown_all().
        """
        pass

    # ============================================
    # Utility Methods
    # ============================================

    def supports(self, feature: str) -> bool:
        """
        Check if this exchange supports a specific operation.

        Example:
            >>> exchange.supports("withdrawals")
            True
        """
        return self.capabilities.get(feature, False)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}', ticker='{self.ticker}')>"
