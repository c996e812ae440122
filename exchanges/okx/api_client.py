"""
OKX v5 REST API Client

Authentication:
    HMAC-SHA256 (base64) over

        <ISO-8601 ms timestamp with Z> + <METHOD> + <path incl. query> + <body>

    sent in OK-ACCESS-KEY / OK-ACCESS-SIGN / OK-ACCESS-TIMESTAMP /
    OK-ACCESS-PASSPHRASE headers.

Responses:
    {"code": "0", "msg": "", "data": [...]}. Any other code is raised as
    RemoteApiError with the first item's "sMsg" as detail. HTTP 404 becomes
    RemoteApiError(code="404", message="API not found: '<path>'").

Usage:
    async with OkxAPIClient(credential=settings.okx_credential()) as client:
        balances = await client.balance("BTC")
"""

from typing import Any, List, Optional

from core.credentials import Credential
from core.decoding import decode, parse_json, raise_for_status, unwrap_code_envelope
from core.dispatcher import ApiRequest, RequestDispatcher
from core.errors import DecodeError, RemoteApiError
from core.logging import get_logger, log_api_error
from core.signing import SigningScheme
from core.transport import AiohttpTransport, Transport, TransportResponse
from .schemas import AccountBalance, DepositTransaction, FillTrade, WithdrawalTransaction


BALANCE_PATH = "/api/v5/account/balance"
DEPOSIT_HISTORY_PATH = "/api/v5/asset/deposit-history"
WITHDRAWAL_HISTORY_PATH = "/api/v5/asset/withdrawal-history"
FILLS_HISTORY_PATH = "/api/v5/trade/fills-history"

HEADERS = {"Content-Type": "application/json"}


def okx_decoder(tp: Any):
    """Decoder for {code, msg, data} envelopes; returns data validated as tp"""

    def _decode(exchange: str, path: str, response: TransportResponse):
        raise_for_status(exchange, path, response)

        try:
            data = unwrap_code_envelope(parse_json(response.body), status=response.status)
            return decode(tp, data, body=response.body)
        except (RemoteApiError, DecodeError):
            log_api_error(exchange, path, response.status, response.body)
            raise

    return _decode


class OkxAPIClient:
    """
    Async HTTP client for the OKX v5 account/asset/trade API

    Attributes:
        base_url: REST root (default https://www.okx.com)
        dispatcher: Signs and sends every request
    """

    def __init__(
        self,
        credential: Optional[Credential] = None,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        timeout: Optional[float] = None,
    ):
        from core.config import settings

        self.base_url = base_url or settings.okx_base_url
        self.logger = get_logger(__name__)

        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(user_agent=settings.user_agent)

        self.dispatcher = RequestDispatcher(
            exchange="okx",
            transport=self.transport,
            credential=credential,
            base_url=self.base_url,
            timeout=timeout or settings.request_timeout,
        )

    async def __aenter__(self):
        if self._owns_transport:
            await self.transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    # ============================================
    # Request Handler
    # ============================================

    async def _get(self, path: str, tp: Any, params: Optional[dict] = None) -> Any:
        request = ApiRequest(
            "GET",
            path,
            params=params or {},
            scheme=SigningScheme.PASSPHRASE_HMAC_SHA256,
            headers=HEADERS,
        )
        return await self.dispatcher.call(request, okx_decoder(tp))

    # ============================================
    # API Methods
    # ============================================

    async def balance(self, currency: Optional[str] = None) -> List[AccountBalance]:
        """
        Trading account balance, optionally for one currency.

        OKX Endpoint:
            GET /api/v5/account/balance[?ccy=BTC]
        """
        params = {"ccy": currency} if currency else None
        return await self._get(BALANCE_PATH, List[AccountBalance], params)

    async def deposit_history(self, currency: Optional[str] = None) -> List[DepositTransaction]:
        """
        Recent deposits, optionally for one currency.

        OKX Endpoint:
            GET /api/v5/asset/deposit-history[?ccy=BTC]
        """
        params = {"ccy": currency} if currency else None
        return await self._get(DEPOSIT_HISTORY_PATH, List[DepositTransaction], params)

    async def withdrawal_history(self, currency: Optional[str] = None) -> List[WithdrawalTransaction]:
        """
        Recent withdrawals, optionally for one currency.

        OKX Endpoint:
            GET /api/v5/asset/withdrawal-history[?ccy=BTC]
        """
        params = {"ccy": currency} if currency else None
        return await self._get(WITHDRAWAL_HISTORY_PATH, List[WithdrawalTransaction], params)

    async def fills_history(self, instrument_type: Optional[str] = "SPOT") -> List[FillTrade]:
        """
        Fills of the last three months.

        OKX Endpoint:
            GET /api/v5/trade/fills-history[?instType=SPOT]
        """
        params = {"instType": instrument_type} if instrument_type else None
        return await self._get(FILLS_HISTORY_PATH, List[FillTrade], params)
