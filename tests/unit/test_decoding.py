"""
Unit Tests for Response Decoding

Covers:
- Decimal-string amounts and string-or-integer identifiers
- Positional (tuple) arrays, including placeholders and the maker flag
- Tolerant enumerations for unknown status codes
- {code, msg, data} envelopes and their error detail extraction
- Status handling and DecodeError paths

Run with:
    pytest tests/unit/test_decoding.py -v
"""

from enum import Enum, IntEnum
from typing import ClassVar, List, Optional, Tuple

import pytest
from pydantic import BaseModel

from core.decoding import (
    DecimalStr,
    PositionalModel,
    UIntId,
    decode,
    decode_body,
    decode_response,
    extract_error_detail,
    lookup_enum,
    tolerant_enum,
    unwrap_code_envelope,
)
from core.errors import DecodeError, RemoteApiError
from core.transport import TransportResponse
from exchanges.bitfinex.schemas import Movement, Trade, Wallet
from exchanges.okx.schemas import DepositState, DepositTransaction


class Amount(BaseModel):
    value: DecimalStr


class Identified(BaseModel):
    id: UIntId


class Color(str, Enum):
    RED = "red"


class Painted(BaseModel):
    color: tolerant_enum(Color) = None


# ============================================
# Scalars
# ============================================

class TestDecimalStrings:
    """Tests for amounts sent as decimal strings"""

    def test_decimal_string_parses_to_float(self):
        assert decode(Amount, {"value": "4723846.89208129"}).value == 4723846.89208129

    def test_json_number_accepted(self):
        assert decode(Amount, {"value": 0}).value == 0.0

    @pytest.mark.parametrize("bad", ["abc", "", "NaN", "inf", True])
    def test_invalid_amount_is_decode_error(self, bad):
        with pytest.raises(DecodeError) as exc_info:
            decode(Amount, {"value": bad})
        assert exc_info.value.path == "value"


class TestIdentifiers:
    """Tests for string-or-integer ids"""

    @pytest.mark.parametrize("raw", ["402088407", 402088407])
    def test_string_or_int(self, raw):
        assert decode(Identified, {"id": raw}).id == 402088407

    @pytest.mark.parametrize("bad", ["-1", -1, "12a", "١٢"])
    def test_rejects_non_unsigned(self, bad):
        with pytest.raises(DecodeError):
            decode(Identified, {"id": bad})


# ============================================
# Positional Arrays
# ============================================

class TestPositionalDecoding:
    """Tests for fixed-position array models"""

    def test_bitfinex_trade(self):
        """Verify the documented trade array maps onto named fields"""
        trade = decode(Trade, [
            402088407, "tBTCUST", 1574963975602, 34938060782, -0.2, 153.57,
            "MARKET", 0.0, -1, -0.061668, "USD", 1234
        ])

        assert trade.id == 402088407
        assert trade.symbol == "tBTCUST"
        assert trade.amount == -0.2
        assert trade.is_maker is False
        assert trade.cid == 1234

    def test_maker_flag_one_is_maker(self):
        trade = decode(Trade, [1, "tBTCUSD", 1, 1, 0.1, 1.0, "LIMIT", 1.0, 1, 0.0, "USD", None])
        assert trade.is_maker is True
        assert trade.cid is None

    def test_movement_placeholders_dropped(self):
        """Verify placeholder slots are ignored and status is mapped"""
        movement = decode(Movement, [
            13293039, "BTC", "BITCOIN", None, None, 1574175052000, 1574181326000,
            None, None, "CANCELED", None, None, -0.24, -0.00135, None, None,
            "DESTINATION_ADDRESS", None, None, None, "TRANSACTION_ID",
            "Purchase of 10000 pizzas"
        ])

        assert movement.id == 13293039
        assert movement.status.value == "CANCELED"
        assert movement.amount == -0.24
        assert movement.payment_id is None
        assert movement.withdraw_transaction_note == "Purchase of 10000 pizzas"
        assert not movement.is_deposit

    def test_wallet_with_metadata(self):
        wallet = decode(Wallet, [
            "exchange", "UST", 19788.6529257, 0, 19788.6529257,
            "Exchange 2.0 UST for USD @ 11.696",
            {"reason": "TRADE", "order_id": 1189740779}
        ])

        assert wallet.currency == "UST"
        assert wallet.unsettled_interest == 0.0
        assert wallet.last_change_metadata["reason"] == "TRADE"

    def test_short_array_rejected(self):
        with pytest.raises(DecodeError):
            decode(Trade, [402088407, "tBTCUST"])

    def test_extra_trailing_slots_ignored(self):
        trade = decode(Trade, [1, "tBTCUSD", 1, 1, 0.1, 1.0, "LIMIT", 1.0, -1, 0.0, "USD", 7, "future"])
        assert trade.cid == 7

    def test_error_path_points_into_list(self):
        """Verify the failing element index is part of the error path"""
        good = [1, "tBTCUSD", 1, 1, 0.1, 1.0, "LIMIT", 1.0, -1, 0.0, "USD", None]
        bad = [2, "tBTCUSD", 1, 1, "lots", 1.0, "LIMIT", 1.0, -1, 0.0, "USD", None]

        with pytest.raises(DecodeError) as exc_info:
            decode(List[Trade], [good, bad])

        assert exc_info.value.path.startswith("1")

    def test_custom_positional_model(self):
        class Pair(PositionalModel):
            positions: ClassVar[Tuple[Optional[str], ...]] = ("symbol", None, "price")
            symbol: str
            price: float

        pair = decode(Pair, ["tBTCUSD", "ignored", 100.5])
        assert (pair.symbol, pair.price) == ("tBTCUSD", 100.5)


# ============================================
# Tolerant Enumerations
# ============================================

class TestTolerantEnums:
    """Tests for forward-compatible status codes"""

    def test_unknown_integer_code_is_absent(self):
        """Verify "999" decodes to None instead of failing"""
        deposit = decode(DepositTransaction, {"ccy": "BTC", "amt": "0.5", "ts": "1", "state": "999"})
        assert deposit.state is None

    def test_known_integer_code_from_string(self):
        deposit = decode(DepositTransaction, {"ccy": "BTC", "amt": "0.5", "ts": "1", "state": "2"})
        assert deposit.state is DepositState.SUCCESSFUL

    def test_unknown_string_code_is_absent(self):
        assert decode(Painted, {"color": "ultraviolet"}).color is None
        assert decode(Painted, {"color": "red"}).color is Color.RED

    def test_lookup_enum_non_numeric_string_for_int_enum(self):
        class Level(IntEnum):
            LOW = 1

        assert lookup_enum(Level, "high") is None
        assert lookup_enum(Level, 1) is Level.LOW


# ============================================
# Envelopes
# ============================================

class TestCodeEnvelope:
    """Tests for {code, msg, data} envelopes"""

    def test_success_returns_data(self):
        assert unwrap_code_envelope({"code": "0", "msg": "", "data": [1, 2]}) == [1, 2]

    def test_error_detail_from_first_item(self):
        payload = {
            "code": "1",
            "msg": "All operations failed",
            "data": [{"clOrdId": "", "sCode": "51000", "sMsg": "Parameter ordId error"}],
        }

        with pytest.raises(RemoteApiError) as exc_info:
            unwrap_code_envelope(payload)

        error = exc_info.value
        assert error.code == "1"
        assert error.message == "All operations failed"
        assert error.detail == "Parameter ordId error"
        assert str(error) == "API error (code: 1): All operations failed, Parameter ordId error"

    def test_empty_error_list_is_unknown_error(self):
        assert extract_error_detail([]) == "Unknown error"
        assert extract_error_detail([{"sCode": "1"}]) == "Unknown error"

    def test_unparseable_error_data(self):
        """Verify a non-list data field still fails the call with a generic detail"""
        with pytest.raises(RemoteApiError) as exc_info:
            unwrap_code_envelope({"code": "50113", "msg": "Invalid Sign", "data": {"weird": True}})

        assert exc_info.value.detail == "Failed to parse error message"

    def test_not_an_envelope(self):
        with pytest.raises(DecodeError):
            unwrap_code_envelope(["not", "an", "envelope"])


# ============================================
# Bodies & Status
# ============================================

class TestResponseDecoding:
    """Tests for decode_body / decode_response"""

    def test_malformed_json(self):
        with pytest.raises(DecodeError, match="Malformed JSON"):
            decode_body(Amount, "{not json")

    def test_decode_error_keeps_body(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_body(Amount, '{"value": "x"}')
        assert exc_info.value.body == '{"value": "x"}'

    def test_not_found_message(self):
        response = TransportResponse(status=404, body="Not Found")

        with pytest.raises(RemoteApiError) as exc_info:
            decode_response("okx", "/api/v5/nope", response, Amount)

        assert exc_info.value.code == "404"
        assert exc_info.value.message == "API not found: '/api/v5/nope'"

    def test_other_status_keeps_body(self):
        response = TransportResponse(status=500, body="boom")

        with pytest.raises(RemoteApiError) as exc_info:
            decode_response("binance", "/api/v3/account", response, Amount)

        assert exc_info.value.code == "500"
        assert exc_info.value.message == "boom"
        assert exc_info.value.status == 500

    def test_success(self):
        response = TransportResponse(status=200, body='{"value": "1.5"}')
        assert decode_response("binance", "/x", response, Amount).value == 1.5
