"""Paced driver for the execution engine.

The engine only knows how to apply one tick. ``ExecutionScheduler`` decides
*when*: a short initial delay before the first tick, then one tick per interval
so a person can follow each move. It owns exactly one pending timer handle at a
time. ``cancel`` drops that handle, and no tick runs against a state that was
reset in the meantime.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class TickCadence:
    """Delays (seconds) between scheduled ticks."""

    initial_delay: float = 0.1
    interval: float = 0.6

    def delay_for(self, tick_number: int) -> float:
        """Delay before the ``tick_number``-th tick of a run (1-based)."""

        return self.initial_delay if tick_number <= 1 else self.interval


class ExecutionScheduler:
    """Single-timer loop that calls ``step`` until it reports the run is over.

    ``step`` is invoked synchronously on the event loop and returns True while
    the run should continue. The next tick is only scheduled after ``step`` has
    returned, so ticks never overlap or reorder.
    """

    def __init__(self, step: Callable[[], bool], cadence: Optional[TickCadence] = None):
        self._step = step
        self.cadence = cadence or TickCadence()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._done: Optional[asyncio.Future] = None
        self._ticks_fired = 0

    @property
    def pending(self) -> bool:
        """True while a tick is scheduled but has not fired yet."""
        return self._handle is not None

    @property
    def ticks_fired(self) -> int:
        return self._ticks_fired

    def start(self) -> None:
        """Begin a new run, superseding any run already in flight.

        Must be called from inside a running event loop.
        """
        self.cancel()
        self._loop = asyncio.get_running_loop()
        self._done = self._loop.create_future()
        self._ticks_fired = 0
        self._schedule()

    def cancel(self) -> bool:
        """Drop the pending tick, if any. Returns True when one was dropped."""
        dropped = self._handle is not None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._finish(completed=False)
        return dropped

    async def wait(self) -> bool:
        """Wait for the current run to end.

        Returns:
            True if the run finished on its own, False if it was cancelled (or
            never started)
        """
        if self._done is None:
            return False
        return await self._done

    def _schedule(self) -> None:
        assert self._loop is not None
        delay = self.cadence.delay_for(self._ticks_fired + 1)
        self._handle = self._loop.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._ticks_fired += 1
        try:
            still_running = self._step()
        except Exception as exc:
            # Surface engine bugs to whoever awaits the run instead of losing
            # them inside the event loop's exception handler.
            if self._done is not None and not self._done.done():
                self._done.set_exception(exc)
            return
        if still_running:
            self._schedule()
        else:
            self._finish(completed=True)

    def _finish(self, *, completed: bool) -> None:
        if self._done is not None and not self._done.done():
            self._done.set_result(completed)
