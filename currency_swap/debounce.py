"""
Trailing-edge debounce with explicit cancellation.

The timer itself comes from a scheduler so the same Debouncer runs on an
asyncio loop, on plain threads, or on a virtual clock in tests:

    debounced = Debouncer(recompute, wait=0.3, scheduler=LoopScheduler())
    debounced("1"); debounced("12"); debounced("123")
    # 300ms after the last call: recompute("123")

    debounced.cancel()  # drop anything still pending
"""

import asyncio
import logging
import threading
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class LoopScheduler:
    """Schedules on an asyncio event loop (the running loop unless one is given)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class ThreadScheduler:
    """Schedules on a daemon ``threading.Timer``; for hosts without an event loop."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class Debouncer(Generic[T]):
    def __init__(
        self,
        action: Callable[[T], Any],
        wait: float = 0.3,
        scheduler: Optional[Scheduler] = None,
    ) -> None:
        self._action = action
        self._wait = wait
        self._scheduler = scheduler or LoopScheduler()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def __call__(self, arg: T) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            self._generation += 1
            generation = self._generation
            self._handle = self._scheduler.call_later(
                self._wait, lambda: self._fire(generation, arg)
            )

    def _fire(self, generation: int, arg: T) -> None:
        with self._lock:
            # a handle cancelled too late to stop its timer must not run
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
        self._action(arg)

    def cancel(self) -> None:
        with self._lock:
            if self._handle is None:
                return
            self._handle.cancel()
            self._handle = None
            self._generation += 1
        logger.debug("pending debounced call discarded")
