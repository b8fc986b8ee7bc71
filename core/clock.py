# -*- coding: utf-8 -*-

import time
from typing import Callable, Optional, Protocol


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    """Wall clock in epoch seconds."""

    def now(self) -> float:
        return time.time()


class Ticker(Protocol):
    """
    Periodic 1 Hz source that drives PhaseEngine.tick().
    Timing accuracy is not required: every tick recomputes from timestamps.
    """

    @property
    def is_active(self) -> bool: ...

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class NullTicker:
    """
    Headless ticker. Remembers whether it should be ticking;
    the owner calls tick() itself (tests, scripts).
    """

    def __init__(self):
        self._callback: Optional[Callable[[], None]] = None

    @property
    def is_active(self) -> bool:
        return self._callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        self._callback = callback

    def stop(self) -> None:
        self._callback = None

    def fire(self) -> None:
        if self._callback is not None:
            self._callback()
