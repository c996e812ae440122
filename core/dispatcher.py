"""
Request Dispatcher

Orchestrates one logical API call:

    build request -> sign -> send (transport) -> check rate budget -> decode

Rate-limit handling:
    When the exchange reports a used-weight header (Binance), every response
    is checked against the budget for the *next* call of the same weight. If
    it does not fit, the dispatcher logs a deferral warning, sleeps for the
    computed duration and re-issues the request with a fresh signature (the
    signed timestamp would be stale otherwise).

    The loop is unbounded by default and relies on the server's window
    rolling over. Pass max_retries to bound it; exceeding the bound raises
    RateLimitExhaustedError. Callers can also wrap a call in
    asyncio.wait_for() for a deadline: the only suspension points are the
    transport send and the deferral sleep, both cancellable.

No other error is retried.

Usage:
    dispatcher = RequestDispatcher(
        exchange="okx",
        transport=transport,
        credential=settings.okx_credential(),
        base_url="https://www.okx.com",
    )
    request = ApiRequest("GET", "/api/v5/account/balance", params={"ccy": "BTC"},
                         scheme=SigningScheme.PASSPHRASE_HMAC_SHA256)
    balances = await dispatcher.call(request, decode_okx(List[AccountBalance]))
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar
from urllib.parse import urlencode, urlsplit

from core.credentials import Credential, NoAuth
from core.decoding import decode_response
from core.errors import RateLimitExhaustedError
from core.logging import (
    get_logger,
    log_api_request,
    log_api_response,
    log_rate_limit_deferral,
)
from core.rate_limit import RateBudgetTracker
from core.signing import MonotonicNonce, SigningContext, SigningScheme, sign
from core.transport import Transport, TransportResponse


T = TypeVar("T")

ResponseDecoder = Callable[[str, str, TransportResponse], Any]


@dataclass(frozen=True)
class ApiRequest:
    """
    A logical API call, as declared by a facade.

    Attributes:
        method: HTTP method
        path: Path relative to the base URL (e.g. "/api/v3/account")
        params: Query parameters
        body: Raw request body ("" for none)
        weight: Declared rate-limit weight of this call
        scheme: How the request is authenticated
        signing_path: Path as the signer expects it, when it differs from
                      `path` (Bitfinex signs the part after "/v2/auth/r/")
        headers: Extra static headers (e.g. CB-VERSION)
    """

    method: str
    path: str
    params: Mapping[str, Any] = field(default_factory=dict)
    body: str = ""
    weight: int = 1
    scheme: SigningScheme = SigningScheme.NONE
    signing_path: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def query(self) -> str:
        """Plain URL-encoded query, in declaration order"""
        return urlencode([(k, str(v)) for k, v in self.params.items()])

    @property
    def path_with_query(self) -> str:
        query = self.query
        return f"{self.path}?{query}" if query else self.path


class RequestDispatcher:
    """
    Signs, sends and decodes requests for one exchange.

    Attributes:
        exchange: Exchange name used in log messages
        base_url: Scheme + host root (no trailing slash)
        tracker: Rate budget tracker, or None when the exchange reports none
        max_retries: Optional bound on rate-limit deferrals per call
        timeout: Per-request transport timeout in seconds
        recv_window: recvWindow for query-signed requests
    """

    def __init__(
        self,
        exchange: str,
        transport: Transport,
        credential: Optional[Credential] = None,
        base_url: str = "",
        tracker: Optional[RateBudgetTracker] = None,
        max_retries: Optional[int] = None,
        timeout: float = 25,
        recv_window: Optional[int] = None,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        self.exchange = exchange
        self.transport = transport
        self._credential: Credential = credential if credential is not None else NoAuth()
        self.base_url = base_url.rstrip("/")
        self.tracker = tracker
        self.max_retries = max_retries
        self.timeout = timeout
        self.recv_window = recv_window
        self._sleep = sleep
        self._nonce = MonotonicNonce()
        self.logger = get_logger(__name__)

    @property
    def host(self) -> str:
        return urlsplit(self.base_url).netloc

    # ============================================
    # Request Building
    # ============================================

    def _context(self, request: ApiRequest) -> SigningContext:
        if request.scheme is SigningScheme.HEADER_HMAC_SHA384:
            signed_path = request.signing_path or request.path
        elif request.scheme is SigningScheme.BEARER_JWT_ES256:
            # The JWT "uri" claim covers host + path only
            signed_path = request.path
        else:
            signed_path = request.path_with_query

        nonce = None
        if request.scheme is SigningScheme.HEADER_HMAC_SHA384:
            nonce = self._nonce.next()

        return SigningContext.create(
            method=request.method,
            path=signed_path,
            params={k: str(v) for k, v in request.params.items()},
            body=request.body,
            host=self.host,
            recv_window=self.recv_window,
            nonce=nonce,
        )

    def _build(self, request: ApiRequest):
        """Sign one attempt and return (url, headers)"""
        auth = sign(request.scheme, self._credential, self._context(request))

        if auth.query is not None:
            url = f"{self.base_url}{request.path}?{auth.query}"
        else:
            url = f"{self.base_url}{request.path_with_query}"

        headers: Dict[str, str] = dict(request.headers)
        if request.body:
            headers.setdefault("Content-Type", "application/json")
        headers.update(auth.headers)
        return url, headers

    # ============================================
    # Send Loop
    # ============================================

    async def send(self, request: ApiRequest) -> TransportResponse:
        """
        Send a request, deferring and re-signing while the rate budget is short.

        Returns:
            The first response whose reported budget fits request.weight

        Raises:
            AuthError / SignatureError: Signing failed (never retried)
            TransportError: Network failure (never retried)
            RateLimitExhaustedError: max_retries deferrals were not enough
        """
        deferrals = 0

        while True:
            url, headers = self._build(request)

            log_api_request(self.exchange, request.method, request.path)
            started = time.monotonic()
            response = await self.transport.send(
                request.method,
                url,
                headers,
                request.body or None,
                self.timeout
            )
            log_api_response(self.exchange, request.path, response.status, time.monotonic() - started)

            if self.tracker is None:
                return response

            decision = self.tracker.check(response.headers, request.weight)
            if not decision.throttled:
                return response

            if self.max_retries is not None and deferrals >= self.max_retries:
                raise RateLimitExhaustedError(
                    attempts=deferrals + 1,
                    used=decision.used,
                    available=decision.available
                )

            log_rate_limit_deferral(
                self.exchange,
                decision.used,
                decision.available,
                decision.deficit,
                decision.sleep_ms
            )
            deferrals += 1
            await self._sleep(decision.sleep_ms / 1000)

    async def call(self, request: ApiRequest, decoder: Callable[..., T]) -> T:
        """
        Send a request and decode its response.

        Args:
            request: The logical call
            decoder: Called as decoder(exchange, path, response)

        Example:
            info = await dispatcher.call(request, json_decoder(ExchangeInformation))
        """
        response = await self.send(request)
        return decoder(self.exchange, request.path, response)


def json_decoder(tp: Any) -> ResponseDecoder:
    """Decoder for plain JSON bodies: status check + schema validation"""

    def _decode(exchange: str, path: str, response: TransportResponse):
        return decode_response(exchange, path, response, tp)

    return _decode
