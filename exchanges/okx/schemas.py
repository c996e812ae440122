"""
OKX v5 response models

Items arrive inside {"code": "0", "msg": "", "data": [...]} envelopes (see
core.decoding.unwrap_code_envelope). Numbers are transmitted as strings.

Docs:
    https://www.okx.com/docs-v5/en/#trading-account-rest-api-get-balance
    https://www.okx.com/docs-v5/en/#funding-account-rest-api-get-deposit-history
    https://www.okx.com/docs-v5/en/#funding-account-rest-api-get-withdrawal-history
    https://www.okx.com/docs-v5/en/#order-book-trading-trade-get-transaction-details-last-3-months
"""

from enum import IntEnum
from typing import List, Optional

from pydantic import Field

from core.decoding import DecimalStr, OptionalUIntId, UIntId, tolerant_enum
from core.schemas import CamelModel


# ============================================
# Balance
# ============================================

class CurrencyDetail(CamelModel):
    currency: str = Field(..., alias="ccy")
    # Total equity of the currency
    amount: DecimalStr = Field(..., alias="eq")


class AccountBalance(CamelModel):
    details: List[CurrencyDetail] = Field(default_factory=list)


# ============================================
# Deposits & Withdrawals
# ============================================

class DepositState(IntEnum):
    WAITING_FOR_CONFIRMATION = 0
    CREDITED = 1
    SUCCESSFUL = 2
    PENDING_SUSPENSION = 8
    ADDRESS_BLACKLISTED = 11
    ACCOUNT_FROZEN = 12
    SUB_ACCOUNT_INTERCEPTED = 13
    KYC_LIMIT = 14


class WithdrawalState(IntEnum):
    CANCELING = -3
    CANCELED = -2
    FAILED = -1
    WAITING = 0
    WITHDRAWING = 1
    SUCCESSFUL = 2
    MANUAL_REVIEW = 4
    APPROVED = 7
    WAITING_TRANSFER = 10


class DepositTransaction(CamelModel):
    """One entry of /api/v5/asset/deposit-history"""

    ccy: str
    chain: str = ""
    amt: DecimalStr
    from_address: str = Field(default="", alias="from")
    to: str = ""
    tx_id: str = ""
    ts: UIntId
    # None for states this client does not know yet
    state: tolerant_enum(DepositState) = None
    dep_id: str = ""


class WithdrawalTransaction(CamelModel):
    """One entry of /api/v5/asset/withdrawal-history"""

    ccy: str
    chain: str = ""
    amt: DecimalStr
    fee: Optional[DecimalStr] = None
    to: str = ""
    tx_id: str = ""
    ts: UIntId
    state: tolerant_enum(WithdrawalState) = None
    wd_id: str = ""


# ============================================
# Fills
# ============================================

class FillTrade(CamelModel):
    """One fill of /api/v5/trade/fills-history"""

    inst_type: str
    inst_id: str
    trade_id: str
    ord_id: str
    bill_id: OptionalUIntId = None
    fill_px: DecimalStr
    fill_sz: DecimalStr
    side: str
    exec_type: str = ""
    fee: DecimalStr
    fee_ccy: str
    ts: UIntId

    @property
    def legs(self) -> List[str]:
        """["BTC", "USDT"] for instrument id "BTC-USDT" """
        return self.inst_id.split("-")
