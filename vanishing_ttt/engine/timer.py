"""Per-turn countdown whose expiry ends the match."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TURN_MS = 3000


class TurnTimer:
    """A single cancellable countdown.

    Every ``start`` cancels the previous countdown and bumps a generation
    counter. The expiry callback receives the generation it was armed with,
    so a callback that was already queued when the timer got restarted or
    cancelled can recognise itself as stale via ``is_current``.
    """

    def __init__(
        self,
        on_expire: Callable[[int], Awaitable[None]],
        duration_ms: int = DEFAULT_TURN_MS,
    ):
        """Initialize the timer.

        Args:
            on_expire: Coroutine function awaited with the generation on expiry.
            duration_ms: Countdown length in milliseconds.
        """
        self.on_expire = on_expire
        self.duration_ms = duration_ms
        self._generation = 0
        self._handle: Optional[asyncio.TimerHandle] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        """Whether a countdown is armed and has not fired yet."""
        return self._handle is not None

    @property
    def generation(self) -> int:
        return self._generation

    def start(self) -> int:
        """Arm a new countdown, cancelling any pending one.

        Must be called from within a running event loop.

        Returns:
            The generation token of the new countdown.
        """
        self.cancel()
        loop = asyncio.get_running_loop()
        generation = self._generation
        self._handle = loop.call_later(
            self.duration_ms / 1000.0, self._fire, generation
        )
        return generation

    def cancel(self) -> None:
        """Disarm the countdown. Safe to call when nothing is armed."""
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def is_current(self, generation: int) -> bool:
        """Check whether ``generation`` is still the armed countdown."""
        return generation == self._generation

    def _fire(self, generation: int) -> None:
        self._handle = None
        if not self.is_current(generation):
            return
        self._task = asyncio.get_running_loop().create_task(self.on_expire(generation))
        self._task.add_done_callback(self._expired)

    @staticmethod
    def _expired(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Turn expiry handler failed", exc_info=exc)
