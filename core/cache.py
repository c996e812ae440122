"""
Single-Flight Derived Resource Cache

Some facade operations need a reference list before they can fan out (e.g.
"all trading pairs that include BTC" before fetching trade history per
pair). That list is computed at most once per facade instance and shared
read-only afterwards.

State machine:

    UNINITIALIZED --get()--> COMPUTING --success--> READY
                                 |
                                 +--failure--> UNINITIALIZED (next get() retries)

Concurrent first-time callers all await the same computation. The
computation runs in its own task and each caller awaits it through
asyncio.shield, so cancelling one waiter never cancels the shared work or
leaves the cache half-populated.

Usage:
    pairs = SingleFlightCache(self._load_pairs, name="btc_pairs")
    symbols = await pairs.get()
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from core.logging import get_logger


T = TypeVar("T")


class CacheState(str, Enum):
    UNINITIALIZED = "uninitialized"
    COMPUTING = "computing"
    READY = "ready"


def _retrieve_exception(task: asyncio.Future) -> None:
    # Marks the failure as seen when every waiter was cancelled before it landed
    if not task.cancelled():
        task.exception()


class SingleFlightCache(Generic[T]):
    """
    Lazily computed, memoized async value.

    Attributes:
        name: Label used in log messages
        computations: How many times the factory has been invoked
    """

    def __init__(self, factory: Callable[[], Awaitable[T]], name: str = "resource"):
        self._factory = factory
        self._task: Optional[asyncio.Future] = None
        self._value: Optional[T] = None
        self._state = CacheState.UNINITIALIZED
        self.name = name
        self.computations = 0
        self.logger = get_logger(__name__)

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is CacheState.READY

    async def get(self) -> T:
        """
        Return the cached value, computing it first if needed.

        Raises:
            Whatever the factory raises. A failed computation is not cached.
        """
        if self._state is CacheState.READY:
            return self._value

        if self._task is None:
            self._state = CacheState.COMPUTING
            self._task = asyncio.ensure_future(self._compute())
            self._task.add_done_callback(_retrieve_exception)

        return await asyncio.shield(self._task)

    async def _compute(self) -> T:
        self.computations += 1
        self.logger.debug(f"Computing {self.name} (computation #{self.computations})")

        try:
            value = await self._factory()
        except BaseException:
            self._task = None
            self._state = CacheState.UNINITIALIZED
            raise

        self._value = value
        self._state = CacheState.READY
        return value
