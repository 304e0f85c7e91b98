import logging
import threading

import anyio

from .results import Outcome

logger = logging.getLogger(__name__)


class OutcomeSink:
    """A write-once slot holding the outcome of a single race.

    Any number of writers may call `try_fill`, only the first one is kept
    and every later call is a silent no-op. Readers suspend on `wait`
    until a writer has won.

    `try_fill` has to be called from the event loop thread that owns the
    sink, worker threads should go through `anyio.from_thread.run_sync`.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._filled = anyio.Event()
        self._outcome: Outcome | None = None

    @property
    def filled(self) -> bool:
        return self._filled.is_set()

    def peek(self) -> Outcome | None:
        """Returns the winning outcome, or `None` while the race is open"""
        return self._outcome

    def try_fill(self, outcome: Outcome) -> bool:
        """Attempts to set the outcome.

        :param outcome: the value to offer.
        :type outcome: Outcome

        :returns: `True` if this call won the slot, `False` if it was
            already taken.
        """
        with self._lock:
            if self._outcome is not None:
                logger.debug("discarding %r, outcome already decided", outcome)
                return False
            self._outcome = outcome
        self._filled.set()
        return True

    async def wait(self) -> Outcome:
        """Waits until some writer has filled the sink and returns its value."""
        await self._filled.wait()
        assert self._outcome is not None
        return self._outcome


__all__ = ("OutcomeSink",)
