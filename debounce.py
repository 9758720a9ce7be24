"""
Debounce gate for search input.

Delays a search until the input has been stable for a quiet period, so a burst
of keystrokes produces a single search for the final text.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

logger = logging.getLogger("debounce")


async def _call(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class DebounceGate:
    """
    Coalesces rapid input into one `on_stable(text)` call per pause.

    Blank input bypasses the delay: any pending search is cancelled and
    `on_clear()` runs right away.
    """

    def __init__(self, on_stable: Callable[[str], Any], on_clear: Callable[[], Any], delay: float = 0.1):
        """
        Args:
            on_stable: Called (sync or async) with the text once input settles
            on_clear: Called (sync or async) when the input becomes blank
            delay: Quiet period in seconds
        """
        self.on_stable = on_stable
        self.on_clear = on_clear
        self.delay = delay
        self._timer: Optional[asyncio.Task] = None
        self._emitting: Set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def emitting(self) -> bool:
        return bool(self._emitting)

    def _cancel(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def on_input(self, text: Optional[str]) -> None:
        self._cancel()
        if not text or not text.strip():
            await _call(self.on_clear)
            return
        self._timer = asyncio.create_task(self._fire(text))

    async def _fire(self, text: str) -> None:
        await asyncio.sleep(self.delay)
        # once the quiet period is over the search belongs to the coordinator;
        # newer input must not cancel it halfway through
        task = asyncio.current_task()
        self._timer = None
        self._emitting.add(task)
        try:
            await _call(self.on_stable, text)
        except Exception:
            logger.exception("Search for %r failed", text)
        finally:
            self._emitting.discard(task)

    async def close(self) -> None:
        """Cancel the pending timer and any search still running."""
        self._cancel()
        running = list(self._emitting)
        for task in running:
            task.cancel()
        await asyncio.gather(*running, return_exceptions=True)
        self._emitting.clear()
