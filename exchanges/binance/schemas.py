"""
Binance Spot response models

Amounts arrive as decimal strings ("4723846.89208129") and are exposed as
floats. Keys are camelCase on the wire.
"""

from typing import List

from pydantic import Field

from core.decoding import DecimalStr
from core.schemas import CamelModel


class RateLimit(CamelModel):
    rate_limit_type: str
    interval: str
    interval_num: int
    limit: int


class Symbol(CamelModel):
    """
    A tradable pair from exchangeInfo.

    Two Symbol records are equal (and hash equal) when their symbol strings
    match, so they can key a dict or live in a set.
    """

    symbol: str
    status: str
    base_asset: str
    base_asset_precision: int
    quote_asset: str
    quote_precision: int
    order_types: List[str] = Field(default_factory=list)
    iceberg_allowed: bool = False
    is_spot_trading_allowed: bool = False
    is_margin_trading_allowed: bool = False

    def __eq__(self, other) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.symbol == other.symbol

    def __hash__(self) -> int:
        return hash(self.symbol)

    def involves(self, asset: str) -> bool:
        """True if asset is the base or the quote of this pair"""
        return self.base_asset == asset or self.quote_asset == asset


class ExchangeInformation(CamelModel):
    timezone: str
    server_time: int
    rate_limits: List[RateLimit]
    symbols: List[Symbol]


class Balance(CamelModel):
    asset: str
    free: DecimalStr
    locked: DecimalStr

    @property
    def total(self) -> float:
        return self.free + self.locked


class AccountInformation(CamelModel):
    maker_commission: float
    taker_commission: float
    buyer_commission: float
    seller_commission: float
    can_trade: bool
    can_withdraw: bool
    can_deposit: bool
    balances: List[Balance]


class Trade(CamelModel):
    """One fill from /api/v3/myTrades"""

    id: int
    symbol: str = ""
    price: DecimalStr
    base_qty: DecimalStr = Field(..., alias="qty")
    quote_qty: DecimalStr
    commission: DecimalStr
    commission_asset: str
    time: int
    is_buyer: bool
    is_maker: bool
    is_best_match: bool
