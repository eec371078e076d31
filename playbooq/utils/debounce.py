"""
Debounce timers on the running event loop.

Each trigger() restarts the quiet period; the callback fires once the
period elapses without another trigger. Used for the marketplace search
box, playbook auto-save and the chat typing indicator, each with its own
instance so they cancel independently.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class Debouncer:
    """Restartable delayed call. Must be used from inside a running loop."""

    def __init__(self, delay: float, callback: Callable[..., Any], *, name: str | None = None):
        self.delay = delay
        self._callback = callback
        self._name = name or getattr(callback, "__name__", "debounce")
        self._task: asyncio.Task[Any] | None = None
        self._sleeping = False
        self._args: tuple[Any, ...] = ()
        self._kwargs: dict[str, Any] = {}

    @property
    def pending(self) -> bool:
        """True while a call is scheduled or running."""
        return self._task is not None and not self._task.done()

    def trigger(self, *args: Any, **kwargs: Any) -> None:
        """Schedule the callback with these arguments, dropping any earlier schedule."""
        self.cancel()
        self._args = args
        self._kwargs = kwargs
        self._sleeping = True
        self._task = asyncio.create_task(self._run(), name=self._name)
        self._task.add_done_callback(self._finished)

    def cancel(self) -> None:
        """Drop the scheduled call. A callback that already started keeps running."""
        if self._task is not None and self._sleeping and not self._task.done():
            self._task.cancel()
        self._task = None
        self._sleeping = False

    async def flush(self) -> None:
        """Run a scheduled call now, or wait for one that is already running."""
        task = self._task
        if task is None or task.done():
            return
        if self._sleeping:
            self.cancel()
            await self._invoke()
        else:
            await asyncio.shield(task)

    async def _run(self) -> None:
        await asyncio.sleep(self.delay)
        self._sleeping = False
        await self._invoke()

    async def _invoke(self) -> None:
        result = self._callback(*self._args, **self._kwargs)
        if inspect.isawaitable(result):
            await result

    def _finished(self, task: asyncio.Task[Any]) -> None:
        if task is self._task:
            self._task = None
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced call %s failed", self._name, exc_info=exc)
