"""
Core Package

Exchange-agnostic request engine shared by every exchange package:
- credentials / signing: Credential variants and per-scheme request signing
- dispatcher / rate_limit: Signed send loop with server-reported weight budgets
- decoding: Keyed, positional and enveloped response decoding
- cache: Single-flight memoization of derived reference data
- ExchangeInterface / ExchangeManager: Facade contract and registry

Exchange packages build on this layer, so adding an exchange means writing
its endpoint table, wire models and facade only.
"""
