"""Owned debounce timers built on ``loop.call_later``."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

__all__ = ["DebounceTimer"]

LOGGER = logging.getLogger(__name__)


class DebounceTimer:
    """Runs a callback once a quiet period has passed since the last trigger.

    Each :meth:`trigger` replaces the pending arguments and restarts the
    countdown, so a burst of triggers collapses into one call carrying the
    last arguments. The callback runs on the event loop thread.
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[..., Any],
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        name: str = "debounce",
    ) -> None:
        self._delay = max(0.0, float(delay))
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._name = name
        self._handle: asyncio.TimerHandle | None = None
        self._args: tuple[Any, ...] = ()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        """Restart the countdown with ``args`` as the pending call arguments."""

        self.cancel()
        self._args = args
        self._handle = self._loop.call_later(self._delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending call. Returns ``True`` if one was pending."""

        handle = self._handle
        self._handle = None
        self._args = ()
        if handle is None:
            return False
        handle.cancel()
        return True

    def flush(self, **kwargs: Any) -> bool:
        """Run the pending call now instead of waiting. Returns ``True`` if it ran.

        ``kwargs`` are passed to the callback in addition to the pending arguments.
        """

        if self._handle is None:
            return False
        args = self._args
        self.cancel()
        self._callback(*args, **kwargs)
        return True

    def _fire(self) -> None:
        args = self._args
        self._handle = None
        self._args = ()
        try:
            self._callback(*args)
        except Exception:
            LOGGER.exception("%s timer callback failed", self._name)
