"""
Time Utilities

Exchanges disagree about how time travels over the wire:
- Binance / Bitfinex: milliseconds since epoch (e.g., 1574963975602)
- Coinbase JWT claims: whole seconds since epoch
- OKX signatures: ISO-8601 with millisecond precision and a literal "Z"
  (e.g., "2020-12-08T09:08:57.715Z")

The helpers here produce and parse those representations from
timezone-aware UTC datetimes.
"""

from datetime import datetime, timedelta, timezone


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def datetime_to_millis(dt: datetime) -> int:
    """Milliseconds since epoch for dt (naive datetimes are assumed UTC)"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - EPOCH) // timedelta(milliseconds=1)


def current_utc_datetime() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def format_iso_millis(dt: datetime) -> str:
    """
    Format as YYYY-MM-DDTHH:mm:ss.sssZ.

    The server recomputes signatures over this exact string, so the
    millisecond field is always three digits and the suffix is always "Z".

    Example:
        >>> format_iso_millis(datetime(2020, 12, 8, 9, 8, 57, 715000, tzinfo=timezone.utc))
        '2020-12-08T09:08:57.715Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
