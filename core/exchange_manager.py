"""
Exchange Manager — Central Registry for Exchange Facades

Builds one facade per supported exchange from Settings (credentials, base
URLs, reference ticker) and manages their lifecycle.

Example Usage:
    manager = ExchangeManager()
    await manager.initialize_all()

    okx = manager.get_exchange("okx")
    balance = await okx.balance()

    for name in manager.get_exchanges_with_feature("deposits"):
        deposits = await manager.get_exchange(name).deposits()

    await manager.shutdown_all()
"""

from typing import Dict, List, Optional

from core.exchange_interface import ExchangeInterface
from core.logging import logger


class ExchangeManager:
    """
    Central Manager for Exchange Facades

    Attributes:
        exchanges: Dictionary mapping exchange names to facade instances
                  Example: {"binance": BinanceExchange(), "okx": OkxExchange()}
    """

    def __init__(self, exchanges: Optional[Dict[str, ExchangeInterface]] = None):
        """
        Register the exchange facades.

        Args:
            exchanges: Explicit registry (default: all four exchanges built
                       from the global settings)

        Note:
            Facades are created but not initialized here. Call initialize_all()
            or initialize_exchange() to open their HTTP sessions.
        """
        if exchanges is None:
            exchanges = self._build_default_exchanges()

        self.exchanges: Dict[str, ExchangeInterface] = {
            name.lower(): exchange for name, exchange in exchanges.items()
        }

        logger.info(
            f"ExchangeManager initialized with {len(self.exchanges)} exchange(s): "
            f"{', '.join(self.exchanges.keys())}"
        )

    @staticmethod
    def _build_default_exchanges() -> Dict[str, ExchangeInterface]:
        # Each exchange package imports from core, so import lazily
        from exchanges.binance import BinanceExchange
        from exchanges.bitfinex import BitfinexExchange
        from exchanges.coinbase import CoinbaseExchange
        from exchanges.okx import OkxExchange

        return {
            "binance": BinanceExchange(),
            "bitfinex": BitfinexExchange(),
            "coinbase": CoinbaseExchange(),
            "okx": OkxExchange(),
        }

    # ============================================
    # Exchange Retrieval Methods
    # ============================================

    def get_exchange(self, name: str) -> ExchangeInterface:
        """
        Get an exchange facade by name (case-insensitive).

        Raises:
            ValueError: If the exchange is not supported
        """
        name = name.lower()

        if name not in self.exchanges:
            available = ", ".join(self.exchanges.keys())
            logger.error(f"Exchange '{name}' not found. Available: {available}")
            raise ValueError(
                f"Exchange '{name}' is not supported. "
                f"Available exchanges: {available}"
            )

        return self.exchanges[name]

    def has_exchange(self, name: str) -> bool:
        return name.lower() in self.exchanges

    def list_exchanges(self) -> List[str]:
        return list(self.exchanges.keys())

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """
        Initialize every registered facade.

        A facade that fails to initialize is logged and skipped so the others
        stay usable.
        """
        logger.info("Initializing all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.initialize()
            except Exception as e:
                logger.error(f"✗ Failed to initialize {name}: {e}")

        logger.info("All exchanges initialized")

    async def initialize_exchange(self, name: str) -> None:
        exchange = self.get_exchange(name)
        await exchange.initialize()

    async def shutdown_all(self) -> None:
        """Shut down every facade, continuing past individual failures"""
        logger.info("Shutting down all exchanges...")

        for name, exchange in self.exchanges.items():
            try:
                await exchange.shutdown()
            except Exception as e:
                logger.error(f"✗ Error shutting down {name}: {e}")

        logger.info("All exchanges shut down")

    async def shutdown_exchange(self, name: str) -> None:
        exchange = self.get_exchange(name)
        await exchange.shutdown()

    # ============================================
    # Capability Queries
    # ============================================

    def get_exchanges_with_feature(self, feature: str) -> List[str]:
        """
        Names of exchanges that support an operation.

        Example:
            >>> manager.get_exchanges_with_feature("withdrawals")
            ['bitfinex', 'okx']
        """
        return [
            name for name, exchange in self.exchanges.items()
            if exchange.supports(feature)
        ]

    def get_capabilities(self, name: str) -> Dict[str, bool]:
        """
        Capabilities of one exchange (a copy).

        Raises:
            ValueError: If the exchange is not found
        """
        return self.get_exchange(name).capabilities.copy()

    # ============================================
    # Utility Methods
    # ============================================

    def __repr__(self) -> str:
        return f"<ExchangeManager(exchanges={list(self.exchanges.keys())})>"

    def __len__(self) -> int:
        return len(self.exchanges)


# ============================================
# Global Manager Instance (Optional)
# ============================================

_manager: Optional[ExchangeManager] = None


def get_manager() -> ExchangeManager:
    """
    Get the global ExchangeManager instance, creating it on first use.

    Example:
        >>> from core.exchange_manager import get_manager
        >>> okx = get_manager().get_exchange("okx")
    """
    global _manager
    if _manager is None:
        _manager = ExchangeManager()
    return _manager
