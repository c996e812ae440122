"""
Error Taxonomy

Every failure raised by the request engine derives from ExchangeClientError,
so callers can catch one base class or discriminate by kind:

    ExchangeClientError
    ├── TransportError          network / TLS / timeout (raised by the transport)
    ├── AuthError               credentials missing or unusable
    │   ├── CredentialsNotAvailableError
    │   ├── InvalidKeyError
    │   └── InvalidHeaderError
    ├── SignatureError          crypto operation failed
    ├── DecodeError             malformed JSON or schema mismatch
    ├── RemoteApiError          exchange answered with a non-success status/code
    │   └── RateLimitExhaustedError
    └── DomainError             local post-processing failure
        └── AssetNotFoundError

Only the rate-limit condition is retried (by the dispatcher). Everything else
surfaces immediately.

Usage:
    from core.errors import RemoteApiError

    try:
        trades = await okx.trade_history()
    except RemoteApiError as e:
        logger.error(f"OKX refused the call: {e.code} {e.detail}")
"""

from typing import Optional


class ExchangeClientError(Exception):
    """Base class for all errors raised by exchange clients"""


# ============================================
# Transport
# ============================================

class TransportError(ExchangeClientError):
    """
    The HTTP transport failed before a response was received.

    The underlying aiohttp / asyncio exception is chained as __cause__.
    """


# ============================================
# Authentication & Signing
# ============================================

class AuthError(ExchangeClientError):
    """Authentication material could not be produced. Never retried."""


class CredentialsNotAvailableError(AuthError):
    """A signed call was attempted with the "no auth" credential"""

    def __init__(self, message: str = "API keys not available"):
        super().__init__(message)


class InvalidKeyError(AuthError):
    """Secret material is malformed (bad PEM, wrong curve, bad encoding)"""


class InvalidHeaderError(AuthError):
    """A header value could not be built (non-ASCII or control characters)"""


class SignatureError(ExchangeClientError):
    """The cryptographic signing operation itself failed"""


# ============================================
# Decoding
# ============================================

class DecodeError(ExchangeClientError):
    """
    Response body could not be decoded into the expected shape.

    Attributes:
        path: Dotted location of the failing field (e.g. "balances.0.free"), if known
        body: Raw response body, kept for diagnosis
    """

    def __init__(self, message: str, path: Optional[str] = None, body: Optional[str] = None):
        self.path = path
        self.body = body
        if path:
            message = f"{message} (at '{path}')"
        super().__init__(message)


# ============================================
# Remote API
# ============================================

class RemoteApiError(ExchangeClientError):
    """
    The exchange rejected the call.

    Attributes:
        code: Exchange error code, or the HTTP status as a string
        message: Top-level message from the exchange
        detail: Best-effort nested detail (e.g. OKX "sMsg"), may be empty
        status: HTTP status code of the response, if any
    """

    def __init__(
        self,
        code: str,
        message: str,
        detail: str = "",
        status: Optional[int] = None
    ):
        self.code = code
        self.message = message
        self.detail = detail
        self.status = status
        text = f"API error (code: {code}): {message}"
        if detail:
            text += f", {detail}"
        super().__init__(text)


class RateLimitExhaustedError(RemoteApiError):
    """Raised only when a retry bound is configured and the budget never recovered"""

    def __init__(self, attempts: int, used: int, available: int):
        self.attempts = attempts
        super().__init__(
            code="rate_limit",
            message=f"rate limit not recovered after {attempts} attempt(s)",
            detail=f"used={used} available={available}"
        )


# ============================================
# Domain
# ============================================

class DomainError(ExchangeClientError):
    """A successful response could not satisfy the requested operation"""


class AssetNotFoundError(DomainError):
    """The requested asset is not present in the account balances"""

    def __init__(self, asset: str):
        self.asset = asset
        super().__init__(f"Asset not found: {asset}")
