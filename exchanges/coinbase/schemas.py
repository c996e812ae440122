"""
Coinbase App API (v2) response models

Every response is wrapped as {"pagination": {...}, "data": ...}; failures as
{"errors": [{"id": ..., "message": ...}]}.

Docs:
    https://docs.cdp.coinbase.com/coinbase-app/track-apis/accounts
    https://docs.cdp.coinbase.com/coinbase-app/track-apis/transactions
"""

from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from core.decoding import DecimalStr, tolerant_enum
from core.schemas import WireModel


T = TypeVar("T")


# ============================================
# Envelopes
# ============================================

class Pagination(WireModel):
    next_uri: Optional[str] = None


class CoinbaseResponse(WireModel, Generic[T]):
    pagination: Optional[Pagination] = None
    data: T

    @property
    def next_uri(self) -> Optional[str]:
        return self.pagination.next_uri if self.pagination else None


class CoinbaseErrorMessage(WireModel):
    id: str
    message: str = ""


class CoinbaseErrorBody(WireModel):
    errors: List[CoinbaseErrorMessage]


# ============================================
# Accounts
# ============================================

class Currency(WireModel):
    asset_id: Optional[str] = None
    code: str
    name: str


class Balance(WireModel):
    amount: DecimalStr
    currency: str


class Account(WireModel):
    # Either a UUID or a currency code ("BTC")
    id: str
    name: str
    primary: bool
    # wallet, fiat or vault
    type: str
    currency: Currency
    balance: Balance
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================
# Transactions
# ============================================

class TransactionType(str, Enum):
    ADVANCED_TRADE_FILL = "advanced_trade_fill"
    BUY = "buy"
    CLAWBACK = "clawback"
    DERIVATIVES_SETTLEMENT = "derivatives_settlement"
    EARN_PAYOUT = "earn_payout"
    FIAT_DEPOSIT = "fiat_deposit"
    FIAT_WITHDRAWAL = "fiat_withdrawal"
    INCENTIVES_REWARDS_PAYOUT = "incentives_rewards_payout"
    INCENTIVES_SHARED_CLAWBACK = "incentives_shared_clawback"
    INTX_DEPOSIT = "intx_deposit"
    INTX_WITHDRAWAL = "intx_withdrawal"
    RECEIVE = "receive"
    REQUEST = "request"
    RETAIL_SIMPLE_DUST = "retail_simple_dust"
    SELL = "sell"
    SEND = "send"
    STAKING_TRANSFER = "staking_transfer"
    SUBSCRIPTION_REBATE = "subscription_rebate"
    SUBSCRIPTION = "subscription"
    TRADE = "trade"
    TRANSFER = "transfer"
    TX = "tx"
    UNSTAKING_TRANSFER = "unstaking_transfer"
    UNSUPPORTED_ASSET_RECOVERY = "unsupported_asset_recovery"
    UNWRAP_ASSET = "unwrap_asset"
    VAULT_WITHDRAWAL = "vault_withdrawal"
    WRAP_ASSET = "wrap_asset"
    FCM_FUTURES_USDC_SELL = "fcm_futures_usdc_sell"
    FCM_FUTURES_USDC_SELL_ADDITIONAL_ENCUMBERMENT_ROLLUP = (
        "fcm_futures_usdc_sell_additional_encumberment_rollup"
    )


TRADE_TYPES = frozenset({
    TransactionType.ADVANCED_TRADE_FILL,
    TransactionType.BUY,
    TransactionType.SELL,
    TransactionType.TRADE,
})


class TransactionStatus(str, Enum):
    CANCELED = "canceled"
    COMPLETED = "completed"
    EXPIRED = "expired"
    FAILED = "failed"
    PENDING = "pending"
    WAITING_FOR_CLEARING = "waiting_for_clearing"
    WAITING_FOR_SIGNATURE = "waiting_for_signature"


class Transaction(WireModel):
    """
    One account transaction. Amounts are negative when funds are debited.

    type/status are None for codes this client does not know yet.
    """

    id: str
    type: tolerant_enum(TransactionType) = None
    status: tolerant_enum(TransactionStatus) = None
    amount: Balance
    native_amount: Balance
    description: Optional[str] = None
    created_at: datetime

    @property
    def is_trade(self) -> bool:
        return self.type in TRADE_TYPES
