"""
Unit Tests for Configuration Module

These tests verify that the configuration system works correctly:
- Default values are applied when nothing is configured
- Credential helpers build the right variant (or NoAuth)
- Validation catches invalid or half-configured settings
- Derived properties (binance_url, ticker) resolve as expected

Settings are constructed explicitly (no .env) so results do not depend on
the machine running the tests.

Run with:
    pytest tests/unit/test_config.py -v
"""

import pytest

from core.config import BINANCE_ENDPOINTS, Settings, settings, validate_configuration
from core.credentials import EcdsaJwtKeys, HmacKeys, NoAuth, PassphraseHmacKeys


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestDefaults:
    """Test default values"""

    def test_global_settings_exist(self):
        assert isinstance(settings, Settings)

    def test_defaults(self):
        config = make_settings()

        assert config.request_timeout == 25
        assert config.binance_recv_window == 5000
        assert config.binance_max_weight_per_minute == 6000
        assert config.rate_limit_max_retries is None
        assert config.ticker == "BTC"

    def test_debug_mode_is_boolean(self):
        assert isinstance(make_settings().debug, bool)


class TestDerivedValues:
    """Test properties computed from raw settings"""

    @pytest.mark.parametrize("endpoint", list(BINANCE_ENDPOINTS))
    def test_binance_endpoint_names(self, endpoint):
        assert make_settings(binance_endpoint=endpoint).binance_url == BINANCE_ENDPOINTS[endpoint]

    def test_explicit_binance_url_wins(self):
        config = make_settings(binance_endpoint="testnet", binance_base_url="http://localhost:8080")
        assert config.binance_url == "http://localhost:8080"

    def test_ticker_normalized(self):
        assert make_settings(reference_ticker=" eth ").ticker == "ETH"


class TestCredentials:
    """Test credential helpers"""

    def test_unconfigured_is_no_auth(self):
        config = make_settings()

        assert isinstance(config.binance_credential(), NoAuth)
        assert isinstance(config.bitfinex_credential(), NoAuth)
        assert isinstance(config.coinbase_credential(), NoAuth)
        assert isinstance(config.okx_credential(), NoAuth)
        assert config.configured_exchanges() == []

    def test_configured_variants(self):
        config = make_settings(
            binance_api_key="k", binance_secret_key="s",
            bitfinex_api_key="k", bitfinex_api_secret="s",
            coinbase_api_key="organizations/o/apiKeys/k", coinbase_private_key="pem",
            okx_api_key="k", okx_api_secret="s", okx_passphrase="p",
        )

        assert config.binance_credential() == HmacKeys("k", "s")
        assert config.bitfinex_credential() == HmacKeys("k", "s")
        assert isinstance(config.coinbase_credential(), EcdsaJwtKeys)
        assert config.okx_credential() == PassphraseHmacKeys("k", "s", "p")
        assert config.configured_exchanges() == ["binance", "bitfinex", "coinbase", "okx"]

    def test_okx_needs_passphrase(self):
        config = make_settings(okx_api_key="k", okx_api_secret="s")
        assert isinstance(config.okx_credential(), NoAuth)


class TestConfigurationValidation:
    """Test the validate_configuration function"""

    def test_defaults_validate(self):
        validate_configuration(make_settings())

    @pytest.mark.parametrize("overrides, message", [
        ({"log_level": "VERBOSE"}, "Invalid LOG_LEVEL"),
        ({"binance_endpoint": "moon"}, "Invalid BINANCE_ENDPOINT"),
        ({"request_timeout": 0}, "REQUEST_TIMEOUT"),
        ({"binance_recv_window": 70_000}, "BINANCE_RECV_WINDOW"),
        ({"binance_max_weight_per_minute": 0}, "BINANCE_MAX_WEIGHT_PER_MINUTE"),
        ({"rate_limit_max_retries": 0}, "RATE_LIMIT_MAX_RETRIES"),
        ({"reference_ticker": "BT-C"}, "REFERENCE_TICKER"),
        ({"binance_api_key": "k"}, "BINANCE credentials are incomplete"),
        ({"okx_api_key": "k", "okx_api_secret": "s"}, "OKX credentials are incomplete"),
    ])
    def test_invalid_settings(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            validate_configuration(make_settings(**overrides))

    def test_custom_binance_url_skips_endpoint_check(self):
        validate_configuration(make_settings(binance_endpoint="moon", binance_base_url="http://localhost"))
