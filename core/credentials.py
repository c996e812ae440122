"""
Exchange Credentials

A credential is one of a closed set of immutable variants:

    NoAuth               public calls only
    HmacKeys             api_key + secret_key (Binance query signing, Bitfinex header signing)
    PassphraseHmacKeys   api_key + secret_key + passphrase (OKX)
    EcdsaJwtKeys         api_key + EC private key PEM (Coinbase JWT)

Credentials are frozen dataclasses and their repr never shows key material,
so they are safe to pass through log statements and tracebacks.

Usage:
    from core.credentials import HmacKeys

    credential = HmacKeys(api_key="...", secret_key="...")
    print(credential)   # HmacKeys(<redacted>)
"""

from dataclasses import dataclass
from typing import Union

from core.errors import CredentialsNotAvailableError


@dataclass(frozen=True)
class NoAuth:
    """No authentication. Any signed call fails with CredentialsNotAvailableError."""

    def __repr__(self) -> str:
        return "NoAuth()"


@dataclass(frozen=True)
class HmacKeys:
    """API key + shared secret used for HMAC signing"""

    api_key: str
    secret_key: str

    def __repr__(self) -> str:
        return "HmacKeys(<redacted>)"


@dataclass(frozen=True)
class PassphraseHmacKeys:
    """API key + shared secret + account passphrase (OKX)"""

    api_key: str
    secret_key: str
    passphrase: str

    def __repr__(self) -> str:
        return "PassphraseHmacKeys(<redacted>)"


@dataclass(frozen=True)
class EcdsaJwtKeys:
    """
    API key name + EC P-256 private key used to mint ES256 JWTs.

    Attributes:
        api_key: Key name, e.g. "organizations/{org_id}/apiKeys/{key_id}"
        private_key_pem: PKCS#8 ("BEGIN PRIVATE KEY") or SEC1 ("BEGIN EC PRIVATE KEY") PEM
    """

    api_key: str
    private_key_pem: str

    def __repr__(self) -> str:
        return "EcdsaJwtKeys(<redacted>)"


Credential = Union[NoAuth, HmacKeys, PassphraseHmacKeys, EcdsaJwtKeys]


def has_keys(credential: Credential) -> bool:
    """Return True if the credential can sign requests"""
    return not isinstance(credential, NoAuth)


def require_keys(credential: Credential) -> Credential:
    """
    Return the credential unchanged, or raise if it is NoAuth.

    Raises:
        CredentialsNotAvailableError: If the credential carries no key material
    """
    if isinstance(credential, NoAuth):
        raise CredentialsNotAvailableError()
    return credential
