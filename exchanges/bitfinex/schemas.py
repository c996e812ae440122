"""
Bitfinex v2 response models

Bitfinex answers authenticated endpoints with fixed-position JSON arrays.
Each model lists its slots in `positions`; None marks a placeholder slot.

Docs:
    https://docs.bitfinex.com/reference/rest-auth-wallets
    https://docs.bitfinex.com/reference/rest-auth-movements
    https://docs.bitfinex.com/reference/rest-auth-trades
"""

from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Tuple

from core.decoding import MakerFlag, PositionalModel, tolerant_enum


class Wallet(PositionalModel):
    """
    [TYPE, CURRENCY, BALANCE, UNSETTLED_INTEREST, AVAILABLE_BALANCE,
     LAST_CHANGE, LAST_CHANGE_METADATA]
    """

    positions: ClassVar[Tuple[Optional[str], ...]] = (
        "type",
        "currency",
        "balance",
        "unsettled_interest",
        "available_balance",
        "last_change",
        "last_change_metadata",
    )

    type: str
    currency: str
    balance: float
    unsettled_interest: float
    # null while the wallet is being recalculated
    available_balance: Optional[float] = None
    last_change: Optional[str] = None
    last_change_metadata: Optional[Dict[str, Any]] = None


class MovementStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    UNCONFIRMED = "UNCONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    FAILURE = "FAILURE"


class Movement(PositionalModel):
    """A deposit (positive amount) or withdrawal (negative amount)"""

    positions: ClassVar[Tuple[Optional[str], ...]] = (
        "id",
        "currency",
        "currency_name",
        None,
        None,
        "mts_started",
        "mts_updated",
        None,
        None,
        "status",
        None,
        None,
        "amount",
        "fees",
        None,
        None,
        "destination_address",
        "payment_id",
        None,
        None,
        "transaction_id",
        "withdraw_transaction_note",
    )

    id: int
    currency: str
    currency_name: str
    mts_started: int
    mts_updated: int
    status: tolerant_enum(MovementStatus) = None
    amount: float
    fees: float
    destination_address: str
    payment_id: Optional[str] = None
    transaction_id: str
    withdraw_transaction_note: Optional[str] = None

    @property
    def is_deposit(self) -> bool:
        return self.amount > 0


class Trade(PositionalModel):
    """
    [ID, SYMBOL, MTS, ORDER_ID, EXEC_AMOUNT, EXEC_PRICE, ORDER_TYPE,
     ORDER_PRICE, MAKER, FEE, FEE_CURRENCY, CID]

    MAKER is 1 for maker fills and -1 for taker fills. A positive amount is
    a buy, a negative amount a sell.
    """

    positions: ClassVar[Tuple[Optional[str], ...]] = (
        "id",
        "symbol",
        "timestamp",
        "order_id",
        "amount",
        "price",
        "order_type",
        "order_price",
        "is_maker",
        "fee",
        "fee_currency",
        "cid",
    )

    id: int
    symbol: str
    timestamp: int
    order_id: int
    amount: float
    price: float
    order_type: str
    order_price: float
    is_maker: MakerFlag
    fee: float
    fee_currency: str
    cid: Optional[int] = None
