"""
Exchange Facades Package

Each exchange has its own subfolder with:
- schemas.py: Wire models for its responses
- api_client.py: Endpoint table and signed single-call operations
- __init__.py: Facade class implementing ExchangeInterface

Supported: binance, bitfinex, coinbase, okx.
"""
