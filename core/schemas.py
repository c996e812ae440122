"""
Shared Data Schemas

Base pydantic models that the per-exchange wire models build on, plus the
few normalized records that every facade returns the same way.

Wire models live next to their exchange (exchanges/<name>/schemas.py) because
their field names and encodings are exchange specific. Everything here is
exchange-agnostic.

Usage:
    from core.schemas import CamelModel, AssetBalance

    class Balance(CamelModel):
        asset: str
        free: DecimalStr
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """
    Base for models decoded from exchange responses.

    Unknown keys are ignored so new response fields don't break decoding.
    Models are immutable once decoded.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


class CamelModel(WireModel):
    """WireModel whose JSON keys are camelCase (serverTime, baseAsset, ...)"""

    model_config = ConfigDict(alias_generator=to_camel)


class AssetBalance(BaseModel):
    """
    Normalized holding of one asset on one exchange.

    Attributes:
        exchange: Exchange name (e.g., "binance")
        asset: Asset ticker (e.g., "BTC")
        total: Total amount held
        available: Amount free for trading/withdrawal, when the exchange reports it

    Example:
        >>> AssetBalance(exchange="okx", asset="BTC", total=1.25)
        AssetBalance(exchange='okx', asset='BTC', total=1.25, available=None)
    """

    exchange: str = Field(..., description="Exchange name")
    asset: str = Field(..., description="Asset ticker")
    total: float = Field(..., description="Total amount held")
    available: Optional[float] = Field(default=None, description="Free amount, if reported")
