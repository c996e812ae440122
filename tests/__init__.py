"""
Test Suite

Contains unit tests for the request engine and the exchange facades.

Structure:
- tests/unit/: Tests for individual components (signing, dispatch, decoding,
  facades) against an in-memory transport; no network access

Uses pytest with pytest-asyncio for testing async functionality.
"""
