"""Cancellable periodic timers that drive view animation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Callable, List, Optional

from .engine import ViewState

logger = logging.getLogger(__name__)

AUTO_ROTATE_STEP = 0.03
AUTO_ROTATE_INTERVAL = 0.05
FRAME_INTERVAL = 0.1


class Ticker:
    """Invoke ``callback`` every ``interval`` seconds on the running loop.

    A callback that raises is logged and the timer keeps ticking.
    """

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        if interval <= 0:
            raise ValueError("Ticker interval must be positive")
        self.interval = interval
        self._callback = callback
        self._task: Optional[asyncio.Task[None]] = None
        # Cancelled tasks not yet awaited by stop().
        self._retired: List[asyncio.Task[None]] = []
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._callback()
            except Exception:
                logger.exception("Timer callback %r failed", self._callback)
            self.ticks += 1

    def cancel(self) -> None:
        """Stop ticking now; ``running`` is False as soon as this returns."""

        if self._task is not None:
            self._task.cancel()
            self._retired.append(self._task)
            self._task = None

    async def stop(self) -> None:
        """Cancel and wait until every timer task has fully finished."""

        self.cancel()
        retired, self._retired = self._retired, []
        for task in retired:
            with contextlib.suppress(asyncio.CancelledError):
                await task


class AutoRotator(Ticker):
    """Spin the view about its Y axis."""

    def __init__(
        self,
        view: ViewState,
        step: float = AUTO_ROTATE_STEP,
        interval: float = AUTO_ROTATE_INTERVAL,
    ) -> None:
        self.view = view
        self.step = step
        super().__init__(interval, self._advance)

    def _advance(self) -> None:
        self.view.rotation_y += self.step


class FramePlayer(Ticker):
    """Cycle through ``frame_count`` frames of an animated source."""

    def __init__(self, frame_count: int, interval: float = FRAME_INTERVAL) -> None:
        if frame_count < 1:
            raise ValueError("FramePlayer needs at least one frame")
        self.frame_count = frame_count
        self.index = 0
        super().__init__(interval, self._advance)

    def _advance(self) -> None:
        if self.frame_count > 1:
            self.index = (self.index + 1) % self.frame_count
