"""
Coinbase App API (v2) REST Client

Authentication:
    Each request carries a fresh ES256 JWT ("Authorization: Bearer ...")
    whose "uri" claim is "<METHOD> <host><path>". JWTs are disabled entirely
    in sandbox mode, where requests go out unauthenticated.

Pagination:
    List endpoints return at most `limit` items plus pagination.next_uri.
    The client follows next_uri until it is null and concatenates the
    pages in server order.

Every request sends "CB-VERSION: 2022-01-06".

Usage:
    async with CoinbaseAPIClient(credential=settings.coinbase_credential()) as client:
        accounts = await client.accounts()
"""

from typing import Any, List, Optional, Type, TypeVar
from urllib.parse import parse_qsl, urlsplit

from core.credentials import Credential
from core.decoding import decode_body, decode_response, raise_for_status
from core.dispatcher import ApiRequest, RequestDispatcher
from core.errors import DecodeError, RemoteApiError
from core.logging import get_logger, log_api_error
from core.signing import SigningScheme
from core.transport import AiohttpTransport, Transport, TransportResponse
from .schemas import Account, CoinbaseErrorBody, CoinbaseResponse, Transaction


T = TypeVar("T")

API_ROOT_URL = "https://api.coinbase.com"
API_SANDBOX_URL = "https://api-sandbox.coinbase.com"
CB_VERSION = "2022-01-06"
PAGE_LIMIT = 100

HEADERS = {"Content-Type": "application/json", "CB-VERSION": CB_VERSION}


def raise_for_coinbase_error(exchange: str, path: str, response: TransportResponse) -> None:
    """
    Raise RemoteApiError for a non-2xx response.

    Coinbase error bodies look like {"errors": [{"id": "not_found", "message": "..."}]};
    the first error's id and message become the error code and message.
    """
    if response.ok:
        return

    try:
        body = decode_body(CoinbaseErrorBody, response.body)
    except DecodeError:
        raise_for_status(exchange, path, response)
        return

    log_api_error(exchange, path, response.status, response.body)
    if not body.errors:
        raise RemoteApiError(code=str(response.status), message=response.body, status=response.status)

    first = body.errors[0]
    raise RemoteApiError(code=first.id, message=first.message, status=response.status)


def coinbase_decoder(tp: Any):
    """Decoder for {"pagination", "data"} responses with Coinbase error bodies"""

    def _decode(exchange: str, path: str, response: TransportResponse):
        raise_for_coinbase_error(exchange, path, response)
        return decode_response(exchange, path, response, CoinbaseResponse[tp])

    return _decode


class CoinbaseAPIClient:
    """
    Async HTTP client for the Coinbase App API

    Attributes:
        sandbox: True when talking to the sandbox (no JWT)
        base_url: REST root
        dispatcher: Signs and sends every request
    """

    def __init__(
        self,
        credential: Optional[Credential] = None,
        sandbox: Optional[bool] = None,
        base_url: Optional[str] = None,
        transport: Optional[Transport] = None,
        timeout: Optional[float] = None,
    ):
        from core.config import settings

        self.sandbox = settings.coinbase_sandbox if sandbox is None else sandbox
        self.base_url = base_url or (API_SANDBOX_URL if self.sandbox else API_ROOT_URL)
        self.scheme = SigningScheme.NONE if self.sandbox else SigningScheme.BEARER_JWT_ES256
        self.logger = get_logger(__name__)

        self._owns_transport = transport is None
        self.transport = transport or AiohttpTransport(user_agent=settings.user_agent)

        self.dispatcher = RequestDispatcher(
            exchange="coinbase",
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
    # Request Handlers
    # ============================================

    def _request(self, path: str, params: Optional[dict] = None) -> ApiRequest:
        return ApiRequest(
            "GET",
            path,
            params=params or {},
            scheme=self.scheme,
            headers=HEADERS,
        )

    async def _get(self, path: str, tp: Type[T]) -> T:
        response = await self.dispatcher.call(self._request(path), coinbase_decoder(tp))
        return response.data

    async def _paginate(self, path: str, item: Type[T]) -> List[T]:
        """
        Follow pagination.next_uri from `path` until it runs out.

        next_uri carries its own query (limit, starting_after), which is used
        as-is for the following request.
        """
        items: List[T] = []
        params = {"limit": str(PAGE_LIMIT)}
        pages = 0

        while True:
            page = await self.dispatcher.call(
                self._request(path, params),
                coinbase_decoder(List[item])
            )
            pages += 1
            items.extend(page.data)

            next_uri = page.next_uri
            if not next_uri:
                break

            parts = urlsplit(next_uri)
            path = parts.path
            params = dict(parse_qsl(parts.query)) or {"limit": str(PAGE_LIMIT)}

        self.logger.debug(f"Fetched {len(items)} items from {pages} page(s)")
        return items

    # ============================================
    # API Methods
    # ============================================

    async def accounts(self) -> List[Account]:
        """
        List every account, following pagination.

        Coinbase Endpoint:
            GET /v2/accounts?limit=100
        """
        return await self._paginate("/v2/accounts", Account)

    async def account(self, account_id: str) -> Account:
        """
        Fetch one account by id (UUID or currency code).

        Coinbase Endpoint:
            GET /v2/accounts/{account_id}
        """
        return await self._get(f"/v2/accounts/{account_id}", Account)

    async def transactions(self, account_id: str) -> List[Transaction]:
        """
        List an account's transactions, following pagination.

        Coinbase Endpoint:
            GET /v2/accounts/{account_id}/transactions?limit=100
        """
        return await self._paginate(f"/v2/accounts/{account_id}/transactions", Transaction)
