"""
Tick Sources

Background asyncio loops that call a function at a fixed interval: the
one-second countdown tick and the slower finish-time estimate.
"""

from __future__ import annotations

import asyncio
from itertools import count
from typing import Callable, Optional, Protocol

from timetally.utils.logging import get_logger

logger = get_logger(__name__)


class TickSource(Protocol):
    """Something that can call a function repeatedly until stopped."""

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    @property
    def is_running(self) -> bool: ...


class IntervalTicker:
    """
    Calls a function every ``interval`` seconds on the running event loop.

    ``stop()`` is synchronous: once it returns, the cancelled loop never
    invokes the callback again, even if its sleep had already elapsed.
    """

    _ids = count(1)

    def __init__(self, interval: float = 1.0, name: str = "ticker"):
        """
        Initialize the ticker.

        Args:
            interval: Seconds between calls
            name: Label used in log entries
        """
        self.interval = interval
        self.name = name

        self._task: Optional[asyncio.Task] = None
        self._run_id: Optional[int] = None

    def start(self, callback: Callable[[], None]) -> None:
        """Start calling ``callback``. Requires a running event loop."""
        if self._task is not None:
            logger.warning("ticker_already_running", ticker=self.name)
            return

        run_id = next(self._ids)
        self._run_id = run_id
        self._task = asyncio.get_running_loop().create_task(
            self._run_loop(run_id, callback)
        )
        logger.debug("ticker_started", ticker=self.name, interval=self.interval, run_id=run_id)

    def stop(self) -> None:
        """Cancel the loop and forget its identity."""
        if self._task is None:
            return
        self._task.cancel()
        logger.debug("ticker_stopped", ticker=self.name, run_id=self._run_id)
        self._task = None
        self._run_id = None

    async def _run_loop(self, run_id: int, callback: Callable[[], None]) -> None:
        """Main ticker loop."""
        while True:
            await asyncio.sleep(self.interval)
            if self._run_id != run_id:
                return
            try:
                callback()
            except Exception as e:
                logger.error("tick_callback_error", ticker=self.name, error=str(e), exc_info=True)

    @property
    def is_running(self) -> bool:
        return self._task is not None
