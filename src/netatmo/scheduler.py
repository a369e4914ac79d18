"""One-shot timer abstraction used for token refresh.

The token manager never sleeps on its own. It asks a Scheduler to call
it back after a delay, which lets tests substitute a fake scheduler and
advance time explicitly instead of waiting for hours.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable


class TimerHandle(ABC):
    """A pending callback that can be cancelled."""

    @abstractmethod
    def cancel(self) -> None:
        pass


class Scheduler(ABC):
    """Schedules a callback to run once after a delay."""

    @abstractmethod
    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle:
        pass


class _LoopTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()


class LoopScheduler(Scheduler):
    """Scheduler backed by the running asyncio event loop.

    Must be used from inside a coroutine; the callback runs on the loop
    that was running when call_later() was invoked.
    """

    def call_later(
        self, delay: float, callback: Callable[..., Any], *args: Any
    ) -> TimerHandle:
        loop = asyncio.get_running_loop()
        return _LoopTimerHandle(loop.call_later(delay, callback, *args))
