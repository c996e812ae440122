"""
Request Signing Strategies

Turns a logical request (method, path, params/body, timestamp/nonce) plus a
credential into the authentication material an exchange accepts.

Schemes (closed set, see SigningScheme):

    QUERY_HMAC_SHA256       Binance. Sorted, URL-encoded params + recvWindow +
                            timestamp are HMAC-SHA256'd (hex) and the result is
                            appended as "&signature=<hex>". API key goes in
                            the X-MBX-APIKEY header.
    HEADER_HMAC_SHA384      Bitfinex. HMAC-SHA384 (hex) over
                            "/api/v2/auth/r/" + path + nonce + body, sent in
                            bfx-nonce / bfx-apikey / bfx-signature headers.
    BEARER_JWT_ES256        Coinbase. Short-lived ES256 JWT in an
                            "Authorization: Bearer" header.
    PASSPHRASE_HMAC_SHA256  OKX. HMAC-SHA256 (base64) over
                            timestamp + METHOD + path(+query) + body, sent in
                            OK-ACCESS-* headers.
    NONE                    Public endpoints, no material.

Every signer is a pure function of (credential, context): all time-dependent
inputs (timestamp, nonce, JWT nonce bytes) live in the SigningContext, which
is built fresh for every attempt.

Usage:
    from core.signing import SigningContext, SigningScheme, sign

    context = SigningContext.create("GET", "/api/v5/account/balance?ccy=BTC")
    auth = sign(SigningScheme.PASSPHRASE_HMAC_SHA256, credential, context)
    headers.update(auth.headers)
"""

import base64
import hashlib
import hmac
import json
import os
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Callable, Dict, Mapping, Optional
from urllib.parse import urlencode

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from core.credentials import (
    Credential,
    EcdsaJwtKeys,
    HmacKeys,
    PassphraseHmacKeys,
    require_keys,
)
from core.errors import (
    InvalidHeaderError,
    InvalidKeyError,
    SignatureError,
)
from core.utils.time import current_utc_datetime, datetime_to_millis, format_iso_millis


BITFINEX_SIGNATURE_PREFIX = "/api/v2/auth/r/"
JWT_ALGORITHM = "ES256"
JWT_ISSUER = "cdp"
JWT_TTL_SECONDS = 120
JWT_NONCE_BYTES = 48


class SigningScheme(str, Enum):
    """Authentication scheme used by an endpoint"""

    NONE = "none"
    QUERY_HMAC_SHA256 = "query_hmac_sha256"
    HEADER_HMAC_SHA384 = "header_hmac_sha384"
    BEARER_JWT_ES256 = "bearer_jwt_es256"
    PASSPHRASE_HMAC_SHA256 = "passphrase_hmac_sha256"


# ============================================
# Context & Result Types
# ============================================

@dataclass(frozen=True)
class SigningContext:
    """
    Everything a signer needs about one request attempt.

    Attributes:
        method: HTTP method in uppercase
        path: Path as the scheme expects it (see module docstring)
        params: Query parameters (query-signing scheme)
        body: Raw request body ("" when none)
        timestamp: Wall-clock time of the attempt (UTC)
        nonce: Millisecond nonce (header-signing scheme)
        host: Request host (JWT "uri" claim)
        recv_window: Server-side staleness window in ms (query-signing scheme)
        jwt_nonce: Random bytes for the JWT header nonce
        jwt_ttl: JWT lifetime in seconds
    """

    method: str
    path: str
    timestamp: datetime
    nonce: int
    params: Mapping[str, str] = field(default_factory=dict)
    body: str = ""
    host: str = ""
    recv_window: Optional[int] = None
    jwt_nonce: bytes = b""
    jwt_ttl: int = JWT_TTL_SECONDS

    @classmethod
    def create(
        cls,
        method: str,
        path: str,
        params: Optional[Mapping[str, str]] = None,
        body: str = "",
        host: str = "",
        recv_window: Optional[int] = None,
        nonce: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> "SigningContext":
        """
        Build a context for one attempt, stamping the current time.

        Args:
            nonce: Explicit nonce (e.g. from MonotonicNonce); defaults to the
                   timestamp in milliseconds
            timestamp: Explicit time, for deterministic signing in tests
        """
        if timestamp is None:
            timestamp = current_utc_datetime()
        if nonce is None:
            nonce = datetime_to_millis(timestamp)
        return cls(
            method=method.upper(),
            path=path,
            params=dict(params or {}),
            body=body,
            host=host,
            timestamp=timestamp,
            nonce=nonce,
            recv_window=recv_window,
            jwt_nonce=os.urandom(JWT_NONCE_BYTES),
        )


@dataclass(frozen=True)
class AuthMaterial:
    """
    Result of signing.

    Attributes:
        headers: Headers to attach (signature and/or key identification)
        query: Complete signed query string to use instead of the plain params,
               or None when the scheme does not sign the query
    """

    headers: Dict[str, str] = field(default_factory=dict)
    query: Optional[str] = None


class MonotonicNonce:
    """
    Strictly increasing millisecond nonce source.

    Uses wall-clock milliseconds but never repeats or goes backwards, even
    when two requests are signed within the same millisecond.
    """

    def __init__(self):
        self._last = 0

    def next(self, now_ms: Optional[int] = None) -> int:
        if now_ms is None:
            now_ms = datetime_to_millis(current_utc_datetime())
        self._last = max(now_ms, self._last + 1)
        return self._last


# ============================================
# Primitives
# ============================================

def hmac_sha256_hex(secret: str, message: str) -> str:
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).hexdigest()


def hmac_sha256_base64(secret: str, message: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def hmac_sha384_hex(secret: str, message: str) -> str:
    return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha384).hexdigest()


def b64url(data: bytes) -> str:
    """Base64url without padding"""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def header_value(name: str, value: str) -> str:
    """
    Validate a header value.

    Raises:
        InvalidHeaderError: If value contains non-ASCII or control characters
    """
    if not value.isascii() or any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value):
        raise InvalidHeaderError(f"Invalid value for header '{name}'")
    return value


def _require_secret(secret: str, what: str) -> str:
    if not secret:
        raise InvalidKeyError(f"{what} is empty")
    return secret


def canonical_query(
    params: Mapping[str, str],
    timestamp_ms: int,
    recv_window: Optional[int] = None
) -> str:
    """
    Build the URL-encoded parameter string that the query signature covers.

    Keys are sorted so the same inputs always produce the same bytes;
    recvWindow (when given) and timestamp are part of the signed set.

    Example:
        >>> canonical_query({"symbol": "BTCUSDT"}, 1700000000000, 5000)
        'recvWindow=5000&symbol=BTCUSDT&timestamp=1700000000000'
    """
    items = {str(k): str(v) for k, v in params.items()}
    if recv_window is not None:
        items["recvWindow"] = str(recv_window)
    items["timestamp"] = str(timestamp_ms)
    return urlencode(sorted(items.items()))


# ============================================
# EC key handling (Coinbase)
# ============================================

def normalize_private_key(key: str) -> bytes:
    """
    Normalize an EC P-256 private key to PKCS#8 DER.

    Accepts PKCS#8 PEM ("BEGIN PRIVATE KEY"), SEC1 PEM ("BEGIN EC PRIVATE KEY"),
    or bare base64 PKCS#8. Literal "\\n" sequences (common when keys come
    from environment variables) are turned into newlines first.

    Raises:
        InvalidKeyError: If the key cannot be parsed or is not a P-256 key
    """
    text = key.strip().replace("\\n", "\n")

    try:
        if "-----BEGIN" in text:
            private_key = serialization.load_pem_private_key(text.encode("ascii"), password=None)
        else:
            der = base64.b64decode("".join(text.split()), validate=True)
            private_key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(f"Invalid private key: {e}") from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise InvalidKeyError("Invalid private key: not an EC key")
    if not isinstance(private_key.curve, ec.SECP256R1):
        raise InvalidKeyError(f"Invalid private key: unsupported curve {private_key.curve.name}")

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@lru_cache(maxsize=16)
def load_signing_key(key: str) -> ec.EllipticCurvePrivateKey:
    """Parse (and memoize) the ECDSA signing key for a PEM/base64 string"""
    return serialization.load_der_private_key(normalize_private_key(key), password=None)


def build_jwt(credential: EcdsaJwtKeys, context: SigningContext) -> str:
    """
    Mint an ES256 JWT for one request.

    Header:  {"alg": "ES256", "kid": api_key, "nonce": <48 random bytes, base64url>}
    Payload: {"sub": api_key, "iss": "cdp", "nbf": now, "exp": now + ttl,
              "uri": "<METHOD> <host><path>"}

    The signature is the raw 64-byte r||s form, base64url-encoded.
    """
    signing_key = load_signing_key(credential.private_key_pem)

    now = int(context.timestamp.timestamp())
    header = {
        "alg": JWT_ALGORITHM,
        "kid": credential.api_key,
        "nonce": b64url(context.jwt_nonce),
    }
    payload = {
        "sub": credential.api_key,
        "iss": JWT_ISSUER,
        "nbf": now,
        "exp": now + context.jwt_ttl,
        "uri": f"{context.method} {context.host}{context.path}",
    }

    message = (
        b64url(json.dumps(header, separators=(",", ":")).encode("utf-8"))
        + "."
        + b64url(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    )

    try:
        der_signature = signing_key.sign(message.encode("ascii"), ec.ECDSA(hashes.SHA256()))
        r, s = decode_dss_signature(der_signature)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise SignatureError(f"Bad signature: {e}") from e

    size = (signing_key.curve.key_size + 7) // 8
    raw_signature = r.to_bytes(size, "big") + s.to_bytes(size, "big")
    return f"{message}.{b64url(raw_signature)}"


# ============================================
# Schemes
# ============================================

def _expect(credential: Credential, expected: type, scheme: SigningScheme):
    credential = require_keys(credential)
    if not isinstance(credential, expected):
        raise InvalidKeyError(
            f"{scheme.value} signing requires {expected.__name__}, got {type(credential).__name__}"
        )
    return credential


def _sign_none(credential: Credential, context: SigningContext) -> AuthMaterial:
    return AuthMaterial()


def _sign_query_hmac_sha256(credential: Credential, context: SigningContext) -> AuthMaterial:
    keys: HmacKeys = _expect(credential, HmacKeys, SigningScheme.QUERY_HMAC_SHA256)
    secret = _require_secret(keys.secret_key, "Secret key")

    query = canonical_query(context.params, datetime_to_millis(context.timestamp), context.recv_window)
    signature = hmac_sha256_hex(secret, query)

    return AuthMaterial(
        headers={"X-MBX-APIKEY": header_value("X-MBX-APIKEY", keys.api_key)},
        query=f"{query}&signature={signature}",
    )


def _sign_header_hmac_sha384(credential: Credential, context: SigningContext) -> AuthMaterial:
    keys: HmacKeys = _expect(credential, HmacKeys, SigningScheme.HEADER_HMAC_SHA384)
    secret = _require_secret(keys.secret_key, "API secret")

    nonce = str(context.nonce)
    signature = hmac_sha384_hex(secret, f"{BITFINEX_SIGNATURE_PREFIX}{context.path}{nonce}{context.body}")

    return AuthMaterial(headers={
        "bfx-nonce": nonce,
        "bfx-apikey": header_value("bfx-apikey", keys.api_key),
        "bfx-signature": signature,
    })


def _sign_bearer_jwt(credential: Credential, context: SigningContext) -> AuthMaterial:
    keys: EcdsaJwtKeys = _expect(credential, EcdsaJwtKeys, SigningScheme.BEARER_JWT_ES256)
    header_value("kid", keys.api_key)
    token = build_jwt(keys, context)
    return AuthMaterial(headers={"Authorization": f"Bearer {token}"})


def _sign_passphrase_hmac_sha256(credential: Credential, context: SigningContext) -> AuthMaterial:
    keys: PassphraseHmacKeys = _expect(credential, PassphraseHmacKeys, SigningScheme.PASSPHRASE_HMAC_SHA256)
    secret = _require_secret(keys.secret_key, "API secret")

    timestamp = format_iso_millis(context.timestamp)
    signature = hmac_sha256_base64(secret, f"{timestamp}{context.method}{context.path}{context.body}")

    return AuthMaterial(headers={
        "OK-ACCESS-KEY": header_value("OK-ACCESS-KEY", keys.api_key),
        "OK-ACCESS-SIGN": signature,
        "OK-ACCESS-TIMESTAMP": timestamp,
        "OK-ACCESS-PASSPHRASE": header_value("OK-ACCESS-PASSPHRASE", keys.passphrase),
    })


_SIGNERS: Dict[SigningScheme, Callable[[Credential, SigningContext], AuthMaterial]] = {
    SigningScheme.NONE: _sign_none,
    SigningScheme.QUERY_HMAC_SHA256: _sign_query_hmac_sha256,
    SigningScheme.HEADER_HMAC_SHA384: _sign_header_hmac_sha384,
    SigningScheme.BEARER_JWT_ES256: _sign_bearer_jwt,
    SigningScheme.PASSPHRASE_HMAC_SHA256: _sign_passphrase_hmac_sha256,
}


def sign(scheme: SigningScheme, credential: Credential, context: SigningContext) -> AuthMaterial:
    """
    Produce authentication material for one request attempt.

    Args:
        scheme: Signing scheme of the endpoint
        credential: Credential owned by the caller
        context: Fresh per-attempt SigningContext

    Returns:
        AuthMaterial with headers and/or a signed query string

    Raises:
        CredentialsNotAvailableError: Signed scheme with NoAuth
        InvalidKeyError: Wrong credential variant or malformed key material
        InvalidHeaderError: Key material not representable as a header value
        SignatureError: The ECDSA operation failed
    """
    return _SIGNERS[scheme](credential, context)
