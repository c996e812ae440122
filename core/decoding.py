"""
Response Decoding

Turns transport response bodies into typed pydantic models. Exchanges use
three very different wire shapes, all handled here:

1. Keyed JSON objects (Binance, Coinbase, OKX data items)
   Amounts often arrive as decimal strings ("4723846.89208129") and ids as
   either strings or integers. DecimalStr and UIntId coerce them uniformly.

2. Fixed-position JSON arrays (Bitfinex "tuple" responses)
   PositionalModel maps array slots onto named fields by index. Slots named
   None are placeholders and are dropped.

3. Status envelopes ({"code": ..., "msg": ..., "data": ...}, OKX)
   A non-success code becomes RemoteApiError with the first per-item error
   detail ("sMsg") when it can be parsed, or a generic message when not.

Small status/type codes are decoded with tolerant_enum(): an unrecognized
code becomes None instead of failing the whole response, so new exchange
codes don't break decoding.

Every pydantic ValidationError is converted to DecodeError carrying the
dotted path of the first failing field.
"""

import json
import math
from enum import Enum
from functools import lru_cache, partial
from typing import Annotated, Any, ClassVar, List, Optional, Tuple, Type, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from core.errors import DecodeError, RemoteApiError
from core.logging import log_api_error
from core.transport import TransportResponse


T = TypeVar("T")
E = TypeVar("E", bound=Enum)


# ============================================
# Scalar Coercions
# ============================================

def parse_decimal_string(value: Any) -> float:
    """
    Parse an amount transmitted as a decimal string into a float.

    Plain JSON numbers are accepted as well. Booleans, empty strings and
    non-numeric text are rejected.

    Examples:
        >>> parse_decimal_string("4723846.89208129")
        4723846.89208129
        >>> parse_decimal_string("abc")
        Traceback (most recent call last):
        ...
        ValueError: invalid decimal string: 'abc'
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid decimal value: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            raise ValueError(f"invalid decimal string: {value!r}")
        if math.isnan(parsed) or math.isinf(parsed):
            raise ValueError(f"invalid decimal string: {value!r}")
        return parsed
    raise ValueError(f"expected decimal string, got {type(value).__name__}")


def parse_uint(value: Any) -> int:
    """
    Parse an identifier sent as either a string or an integer into an
    unsigned integer.

    Examples:
        >>> parse_uint("402088407"), parse_uint(402088407)
        (402088407, 402088407)
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid unsigned integer: {value!r}")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ValueError(f"invalid unsigned integer: {value!r}")
    if parsed < 0:
        raise ValueError(f"invalid unsigned integer: {value!r}")
    return parsed


def parse_optional_uint(value: Any) -> Optional[int]:
    """Like parse_uint, but None and "" mean absent"""
    if value is None or value == "":
        return None
    return parse_uint(value)


def parse_maker_flag(value: Any) -> bool:
    """Bitfinex maker slot: 1 means maker, anything else (-1) means taker"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"invalid maker flag: {value!r}")
    return value == 1


DecimalStr = Annotated[float, BeforeValidator(parse_decimal_string)]
UIntId = Annotated[int, BeforeValidator(parse_uint)]
OptionalUIntId = Annotated[Optional[int], BeforeValidator(parse_optional_uint)]
MakerFlag = Annotated[bool, BeforeValidator(parse_maker_flag)]


# ============================================
# Forward-Compatible Enumerations
# ============================================

def lookup_enum(enum_cls: Type[E], value: Any) -> Optional[E]:
    """
    Map a wire code onto enum_cls, returning None for unknown codes.

    Integer enums accept their codes as ints or numeric strings ("2").

    Example:
        lookup_enum(DepositState, "2")    -> DepositState.SUCCESSFUL
        lookup_enum(DepositState, "999")  -> None
    """
    if value is None or isinstance(value, enum_cls):
        return value

    if issubclass(enum_cls, int) and isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return None

    try:
        return enum_cls(value)
    except ValueError:
        return None


def tolerant_enum(enum_cls: Type[E]):
    """
    Annotated field type: Optional[enum_cls] that never fails on unknown codes.

    Usage:
        class Deposit(BaseModel):
            state: tolerant_enum(DepositState) = None
    """
    return Annotated[Optional[enum_cls], BeforeValidator(partial(lookup_enum, enum_cls))]


# ============================================
# Positional ("tuple") Models
# ============================================

class PositionalModel(BaseModel):
    """
    Base for models decoded from fixed-position JSON arrays.

    Subclasses list their field names in `positions`, one entry per array
    slot. None marks a placeholder slot that is ignored. Arrays shorter than
    `positions` are rejected; extra trailing slots are ignored.

    Example:
        class Pair(PositionalModel):
            positions = ("symbol", None, "price")
            symbol: str
            price: float

        Pair.model_validate(["tBTCUSD", None, 100.5])
    """

    positions: ClassVar[Tuple[Optional[str], ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _map_positions(cls, data: Any) -> Any:
        if not isinstance(data, (list, tuple)):
            return data

        expected = len(cls.positions)
        if len(data) < expected:
            raise ValueError(
                f"expected array of {expected} elements for {cls.__name__}, got {len(data)}"
            )

        return {
            name: data[index]
            for index, name in enumerate(cls.positions)
            if name is not None
        }


# ============================================
# Envelopes
# ============================================

class CodeEnvelope(BaseModel):
    """{"code": "0", "msg": "", "data": [...]} wrapper (OKX style)"""

    model_config = ConfigDict(extra="ignore")

    code: str
    msg: str = Field(default="", validation_alias=AliasChoices("msg", "message"))
    data: Any = None


class EnvelopeErrorItem(BaseModel):
    """One per-item error record inside a failed envelope's data array"""

    model_config = ConfigDict(extra="ignore")

    s_code: Optional[str] = Field(default=None, validation_alias="sCode")
    s_msg: Optional[str] = Field(default=None, validation_alias="sMsg")


UNKNOWN_ERROR_DETAIL = "Unknown error"
UNPARSEABLE_ERROR_DETAIL = "Failed to parse error message"


def extract_error_detail(data: Any) -> str:
    """
    Best-effort detail message from a failed envelope's data field.

    Returns the first item's sMsg, "Unknown error" if the list is empty or the
    first item has no sMsg, and "Failed to parse error message" if data is
    not a list of error records.
    """
    try:
        items = _adapter(List[EnvelopeErrorItem]).validate_python(data)
    except ValidationError:
        return UNPARSEABLE_ERROR_DETAIL

    if items and items[0].s_msg:
        return items[0].s_msg
    return UNKNOWN_ERROR_DETAIL


def unwrap_code_envelope(payload: Any, success_code: str = "0", status: Optional[int] = None) -> Any:
    """
    Return the envelope's data, or raise RemoteApiError for a non-success code.

    Raises:
        DecodeError: If payload is not an envelope at all
        RemoteApiError: If code != success_code
    """
    envelope = decode(CodeEnvelope, payload)

    if envelope.code == success_code:
        return envelope.data

    raise RemoteApiError(
        code=envelope.code,
        message=envelope.msg,
        detail=extract_error_detail(envelope.data),
        status=status
    )


# ============================================
# JSON / Model Decoding
# ============================================

@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def _error_path(error: ValidationError) -> Optional[str]:
    errors = error.errors()
    if not errors:
        return None
    location = [str(part) for part in errors[0].get("loc", ())]
    return ".".join(location) or None


def parse_json(body: str) -> Any:
    """
    Parse a JSON body.

    Raises:
        DecodeError: If body is not valid JSON
    """
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError) as e:
        raise DecodeError(f"Malformed JSON: {e}", body=body) from e


def decode(tp: Type[T], data: Any, body: Optional[str] = None) -> T:
    """
    Validate already-parsed JSON data against a type.

    Args:
        tp: A model class or typing construct (e.g. List[Trade])
        data: Parsed JSON
        body: Raw body, attached to the DecodeError for diagnosis

    Raises:
        DecodeError: With the path of the first failing field
    """
    try:
        return _adapter(tp).validate_python(data)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        raise DecodeError(
            f"Schema mismatch: {first.get('msg', str(e))}",
            path=_error_path(e),
            body=body
        ) from e


def decode_body(tp: Type[T], body: str) -> T:
    """parse_json + decode"""
    return decode(tp, parse_json(body), body=body)


def raise_for_status(exchange: str, path: str, response: TransportResponse) -> None:
    """
    Raise RemoteApiError for a non-2xx response, logging the raw body.

    404s get a dedicated message naming the path.
    """
    if response.ok:
        return

    log_api_error(exchange, path, response.status, response.body)

    if response.status == 404:
        raise RemoteApiError(
            code="404",
            message=f"API not found: '{path}'",
            status=response.status
        )

    raise RemoteApiError(
        code=str(response.status),
        message=response.body,
        status=response.status
    )


def decode_response(exchange: str, path: str, response: TransportResponse, tp: Type[T]) -> T:
    """
    Check status, parse and validate a response in one step.

    Decode failures are logged at ERROR with the raw body before being raised.
    """
    raise_for_status(exchange, path, response)

    try:
        return decode_body(tp, response.body)
    except DecodeError:
        log_api_error(exchange, path, response.status, response.body)
        raise
