"""
Configuration Management Module

Loads, validates, and provides access to application configuration from
environment variables (.env file), using Pydantic Settings for validation and
type conversion.

Key Features:
- Base URLs / endpoint selection for every exchange
- API credentials per exchange (all optional; empty means "no auth")
- Request timeout, Binance recv window and weight budget
- Reference ticker used by facade filters (default "BTC")

Usage:
    from core.config import settings

    print(settings.binance_url)
    credential = settings.okx_credential()
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.credentials import (
    Credential,
    EcdsaJwtKeys,
    HmacKeys,
    NoAuth,
    PassphraseHmacKeys,
    has_keys,
)


BINANCE_ENDPOINTS = {
    "mainnet": "https://api.binance.com",
    "mainnet_us": "https://api.binance.us",
    "testnet": "https://testnet.binance.vision",
}


class Settings(BaseSettings):
    """
    Application Settings

    Values are loaded from environment variables or the .env file
    (case-insensitive). Secret fields are never logged.
    """

    # ============================================
    # Application Configuration
    # ============================================

    environment: str = Field(
        default="development",
        description="Application environment (development, production)"
    )

    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    user_agent: str = Field(
        default="acctsync/0.1.0",
        description="User-Agent header sent with every request"
    )

    reference_ticker: str = Field(
        default="BTC",
        description="Asset that balance/trade/movement filters are scoped to"
    )

    # ============================================
    # Request Handling
    # ============================================

    request_timeout: float = Field(
        default=25,
        description="HTTP request timeout in seconds"
    )

    rate_limit_max_retries: Optional[int] = Field(
        default=None,
        description="Upper bound on rate-limit deferrals per call (unset = wait until the window rolls over)"
    )

    # ============================================
    # Binance
    # ============================================

    binance_endpoint: str = Field(
        default="mainnet",
        description="Binance endpoint: mainnet, mainnet_us or testnet"
    )

    binance_base_url: str = Field(
        default="",
        description="Explicit Binance base URL (overrides binance_endpoint)"
    )

    binance_api_key: str = Field(default="", description="Binance API key")

    binance_secret_key: str = Field(default="", description="Binance secret key")

    binance_recv_window: int = Field(
        default=5000,
        description="recvWindow for signed Binance requests (ms)"
    )

    binance_max_weight_per_minute: int = Field(
        default=6000,
        description="Binance request-weight budget per rolling minute"
    )

    # ============================================
    # Bitfinex
    # ============================================

    bitfinex_base_url: str = Field(
        default="https://api.bitfinex.com",
        description="Bitfinex REST root"
    )

    bitfinex_api_key: str = Field(default="", description="Bitfinex API key")

    bitfinex_api_secret: str = Field(default="", description="Bitfinex API secret")

    # ============================================
    # Coinbase
    # ============================================

    coinbase_api_key: str = Field(
        default="",
        description="Coinbase API key name (organizations/.../apiKeys/...)"
    )

    coinbase_private_key: str = Field(
        default="",
        description="Coinbase EC private key PEM (literal \\n escapes accepted)"
    )

    coinbase_sandbox: bool = Field(
        default=False,
        description="Use the Coinbase sandbox (disables JWT authentication)"
    )

    # ============================================
    # OKX
    # ============================================

    okx_base_url: str = Field(
        default="https://www.okx.com",
        description="OKX REST root"
    )

    okx_api_key: str = Field(default="", description="OKX API key")

    okx_api_secret: str = Field(default="", description="OKX API secret")

    okx_passphrase: str = Field(default="", description="OKX API passphrase")

    # ============================================
    # Pydantic Settings Configuration
    # ============================================

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False
    )

    # ============================================
    # Derived Values
    # ============================================

    @property
    def binance_url(self) -> str:
        """Binance base URL, from the explicit override or the endpoint name"""
        if self.binance_base_url:
            return self.binance_base_url
        return BINANCE_ENDPOINTS.get(self.binance_endpoint.lower(), BINANCE_ENDPOINTS["mainnet"])

    @property
    def ticker(self) -> str:
        return self.reference_ticker.strip().upper()

    def binance_credential(self) -> Credential:
        if self.binance_api_key and self.binance_secret_key:
            return HmacKeys(api_key=self.binance_api_key, secret_key=self.binance_secret_key)
        return NoAuth()

    def bitfinex_credential(self) -> Credential:
        if self.bitfinex_api_key and self.bitfinex_api_secret:
            return HmacKeys(api_key=self.bitfinex_api_key, secret_key=self.bitfinex_api_secret)
        return NoAuth()

    def coinbase_credential(self) -> Credential:
        if self.coinbase_api_key and self.coinbase_private_key:
            return EcdsaJwtKeys(api_key=self.coinbase_api_key, private_key_pem=self.coinbase_private_key)
        return NoAuth()

    def okx_credential(self) -> Credential:
        if self.okx_api_key and self.okx_api_secret and self.okx_passphrase:
            return PassphraseHmacKeys(
                api_key=self.okx_api_key,
                secret_key=self.okx_api_secret,
                passphrase=self.okx_passphrase
            )
        return NoAuth()

    def configured_exchanges(self) -> list:
        """Names of exchanges that have credentials configured"""
        credentials = {
            "binance": self.binance_credential(),
            "bitfinex": self.bitfinex_credential(),
            "coinbase": self.coinbase_credential(),
            "okx": self.okx_credential(),
        }
        return [name for name, credential in credentials.items() if has_keys(credential)]


# ============================================
# Global Settings Instance
# ============================================

settings = Settings()


# ============================================
# Configuration Validation
# ============================================

def validate_configuration(config: Optional[Settings] = None) -> None:
    """
    Validate critical configuration settings.

    Args:
        config: Settings to check (defaults to the global instance)

    Raises:
        ValueError: If a setting is invalid or a credential is half-configured
    """
    # logging.py imports config.py, so import the logger lazily
    from core.logging import logger

    config = config or settings

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if config.log_level.upper() not in valid_log_levels:
        raise ValueError(
            f"Invalid LOG_LEVEL: '{config.log_level}'. "
            f"Must be one of: {', '.join(valid_log_levels)}"
        )

    if not config.binance_base_url and config.binance_endpoint.lower() not in BINANCE_ENDPOINTS:
        raise ValueError(
            f"Invalid BINANCE_ENDPOINT: '{config.binance_endpoint}'. "
            f"Must be one of: {', '.join(BINANCE_ENDPOINTS)}"
        )

    if config.request_timeout <= 0:
        raise ValueError(f"REQUEST_TIMEOUT must be positive, got {config.request_timeout}")

    if config.binance_recv_window <= 0 or config.binance_recv_window > 60_000:
        raise ValueError(
            f"BINANCE_RECV_WINDOW must be between 1 and 60000 ms, got {config.binance_recv_window}"
        )

    if config.binance_max_weight_per_minute <= 0:
        raise ValueError("BINANCE_MAX_WEIGHT_PER_MINUTE must be positive")

    if config.rate_limit_max_retries is not None and config.rate_limit_max_retries < 1:
        raise ValueError("RATE_LIMIT_MAX_RETRIES must be at least 1 when set")

    if not config.ticker.isalnum():
        raise ValueError(f"REFERENCE_TICKER must be alphanumeric, got '{config.reference_ticker}'")

    # A key without its secret (or vice versa) is almost certainly a typo in .env
    pairs = {
        "BINANCE": (config.binance_api_key, config.binance_secret_key),
        "BITFINEX": (config.bitfinex_api_key, config.bitfinex_api_secret),
        "COINBASE": (config.coinbase_api_key, config.coinbase_private_key),
        "OKX": (config.okx_api_key, config.okx_api_secret, config.okx_passphrase),
    }
    for name, values in pairs.items():
        if any(values) and not all(values):
            raise ValueError(f"{name} credentials are incomplete")

    configured = config.configured_exchanges()
    logger.info("Configuration validated successfully")
    logger.info(f"Binance API: {config.binance_url}")
    logger.info(f"Reference ticker: {config.ticker}")
    logger.info(f"Credentials configured for: {', '.join(configured) if configured else 'none'}")
    logger.info(f"Log level: {config.log_level.upper()}")
