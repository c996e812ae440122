"""
Rate Budget Tracking

Some exchanges (Binance) report how much request weight has been consumed in
the current rolling one-minute window on every response, e.g.

    X-MBX-USED-WEIGHT-1M: 5990

The tracker does not simulate the budget locally. It reads the server's
authoritative value from each response and decides whether the *next* call of
a given weight fits:

    available = max_weight - used
    available >= weight  -> proceed
    otherwise            -> deficit = weight - available
                            sleep   = max(min_sleep, deficit / max_weight * window)

A missing or unparseable header counts as zero usage.

Example:
    >>> tracker = RateBudgetTracker(max_weight=6000)
    >>> decision = tracker.evaluate(used=5990, weight=20)
    >>> decision.available, decision.deficit, decision.sleep_ms
    (10, 10, 200)
"""

from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_WEIGHT_HEADER = "X-MBX-USED-WEIGHT-1M"
DEFAULT_WINDOW_MS = 60_000
DEFAULT_MIN_SLEEP_MS = 200


@dataclass(frozen=True)
class RateDecision:
    """
    Outcome of checking the budget for one request.

    Attributes:
        used: Weight the server reports as consumed in the window
        available: Remaining weight (never negative)
        deficit: Missing weight for this request (0 when it fits)
        sleep_ms: How long to wait before re-issuing (0 when it fits)
    """

    used: int
    available: int
    deficit: int
    sleep_ms: int

    @property
    def throttled(self) -> bool:
        return self.deficit > 0


class RateBudgetTracker:
    """
    Interprets a used-weight response header and computes deferrals.

    Attributes:
        max_weight: Weight allowed per window (Binance spot: 6000/min)
        window_ms: Window length in milliseconds
        min_sleep_ms: Floor for any deferral, avoids hammering the server
        header: Response header carrying the used weight
    """

    def __init__(
        self,
        max_weight: int,
        window_ms: int = DEFAULT_WINDOW_MS,
        min_sleep_ms: int = DEFAULT_MIN_SLEEP_MS,
        header: str = DEFAULT_WEIGHT_HEADER
    ):
        if max_weight <= 0:
            raise ValueError(f"max_weight must be positive, got {max_weight}")
        self.max_weight = max_weight
        self.window_ms = window_ms
        self.min_sleep_ms = min_sleep_ms
        self.header = header

    def read_used_weight(self, headers: Mapping[str, str]) -> int:
        """
        Extract the used weight from response headers (case-insensitive).

        Returns 0 when the header is absent or not a non-negative integer.
        """
        value: Optional[str] = headers.get(self.header)
        if value is None:
            wanted = self.header.lower()
            for key, candidate in headers.items():
                if key.lower() == wanted:
                    value = candidate
                    break

        if value is None:
            return 0
        try:
            used = int(str(value).strip())
        except ValueError:
            return 0
        return used if used >= 0 else 0

    def evaluate(self, used: int, weight: int) -> RateDecision:
        """
        Decide whether a request of `weight` fits the remaining budget.

        Args:
            used: Server-reported used weight
            weight: Declared weight of the request being issued
        """
        available = max(self.max_weight - used, 0)

        if available >= weight:
            return RateDecision(used=used, available=available, deficit=0, sleep_ms=0)

        deficit = weight - available
        proportional = round(deficit / self.max_weight * self.window_ms)
        sleep_ms = max(self.min_sleep_ms, int(proportional))

        return RateDecision(used=used, available=available, deficit=deficit, sleep_ms=sleep_ms)

    def check(self, headers: Mapping[str, str], weight: int) -> RateDecision:
        """Shorthand for evaluate(read_used_weight(headers), weight)"""
        return self.evaluate(self.read_used_weight(headers), weight)
