"""
Core Utilities Package

Modules:
    - time: Timestamp conversion and formatting helpers
"""

from core.utils.time import datetime_to_millis, format_iso_millis

__all__ = ["datetime_to_millis", "format_iso_millis"]
