"""
Unified Logging Configuration

Sets up one application logger ("acctsync") and namespaced children for every
module. All modules log through here instead of print().

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Fetching account")

Log Levels used by the request engine:
    DEBUG    - Request/response lines (method, path, status, timing)
    INFO     - Facade operations (e.g., "Fetched 42 trades for BTCUSDT")
    WARNING  - Rate-limit deferrals (used / available / deficit / sleep)
    ERROR    - Non-2xx responses and decode failures, with the raw body

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env (default INFO).

Credentials never appear in log output: every credential type has a
redacted repr.
"""

import logging
import sys
from typing import Optional


ROOT_LOGGER_NAME = "acctsync"


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include logger name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client started")
        2024-01-01 12:00:00 [INFO] acctsync Client started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Logger with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level if hasattr(settings, "log_level") else "INFO"
except ImportError:
    # settings not importable yet (circular import during bootstrap)
    log_level = "INFO"

logger = setup_logging(log_level=log_level)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger of the application logger.

    Example:
        # In exchanges/okx/api_client.py:
        logger = get_logger(__name__)  # "acctsync.exchanges.okx.api_client"
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """Change the log level at runtime"""
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================
# Log Helper Functions
# ============================================

def log_api_request(exchange: str, method: str, path: str) -> None:
    """
    Log an outgoing API request (path only, never headers or signatures).

    Example:
        >>> log_api_request("binance", "GET", "/api/v3/account")
        [DEBUG] API Request: binance GET /api/v3/account
    """
    logger.debug(f"API Request: {exchange} {method} {path}")


def log_api_response(exchange: str, path: str, status: int, response_time: Optional[float] = None) -> None:
    """
    Log an API response with status and timing information.

    Example:
        >>> log_api_response("binance", "/api/v3/account", 200, 0.342)
        [DEBUG] API Response: binance /api/v3/account | Status: 200 | Time: 0.342s
    """
    time_str = f" | Time: {response_time:.3f}s" if response_time else ""
    logger.debug(f"API Response: {exchange} {path} | Status: {status}{time_str}")


def log_rate_limit_deferral(exchange: str, used: int, available: int, deficit: int, sleep_ms: int) -> None:
    """
    Log a rate-limit deferral as a structured WARNING event.

    The four numbers are also attached to the record (record.used, ...) for
    handlers that ship structured fields.

    Example:
        >>> log_rate_limit_deferral("binance", 5990, 10, 10, 200)
        [WARNING] Rate limit near on binance! used=5990 available=10 deficit=10. Sleeping 200 ms
    """
    logger.warning(
        f"Rate limit near on {exchange}! used={used} available={available} "
        f"deficit={deficit}. Sleeping {sleep_ms} ms",
        extra={
            "exchange": exchange,
            "used": used,
            "available": available,
            "deficit": deficit,
            "sleep_ms": sleep_ms,
        }
    )


def log_api_error(exchange: str, path: str, status: Optional[int], body: str) -> None:
    """
    Log a failed call with the raw response body attached for diagnosis.

    Example:
        >>> log_api_error("okx", "/api/v5/account/balance", 200, '{"code":"50113",...}')
        [ERROR] API Error: okx /api/v5/account/balance | Status: 200 | Body: {"code":"50113",...}
    """
    logger.error(
        f"API Error: {exchange} {path} | Status: {status} | Body: {body}",
        extra={"exchange": exchange, "path": path, "status": status, "body": body}
    )


logger.debug("Logging system initialized")
