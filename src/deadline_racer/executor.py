import logging
import random
import time
from collections.abc import Callable, Sequence

from .errors import TaskFailedError
from .results import FAILURE, Success, TaskResult

logger = logging.getLogger(__name__)


class TaskExecutor:
    """Runs one named unit of blocking work.

    The work is a wait for a duration drawn in ``[0, max_val)``. A task
    that waited longer than ``threshold`` fails with `TaskFailedError`.
    Everything here blocks the calling thread, the race runs it on a
    worker thread.
    """

    def __init__(
        self,
        max_val: int,
        threshold: int,
        *,
        seed: int | None = None,
        duration_source: Callable[[str], int] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        time_unit: float = 0.001,
        suppress: Sequence[type[Exception]] | None = None,
    ):
        """
        :param max_val: exclusive upper bound of a drawn duration, in time units.
        :type max_val: int
        :param threshold: longest duration still counted as a success.
        :type threshold: int
        :param seed: makes the draws reproducible, every task name gets its
            own generator so thread scheduling does not change what a task draws.
        :type seed: int | None
        :param duration_source: replaces the random draw, called with the task name.
        :type duration_source: Callable[[str], int] | None
        :param sleep: blocking sleep taking seconds.
        :param time_unit: seconds per time unit, defaults to milliseconds.
        :param suppress: exceptions converted into the failure sentinel by
            `run_normalized`, defaults to `TaskFailedError` only.
        """
        if max_val <= 0:
            raise ValueError("max_val must be positive")

        self.max_val = max_val
        self.threshold = threshold
        self.time_unit = time_unit
        self._seed = seed
        self._duration_source = duration_source
        self._sleep = sleep
        self._suppress = tuple(suppress or (TaskFailedError,))

    @classmethod
    def from_fraction(
        cls, max_val: int, fraction: float, **kwargs
    ) -> "TaskExecutor":
        """Builds an executor whose threshold is ``fraction`` of ``max_val``."""
        return cls(max_val, int(max_val * fraction), **kwargs)

    def draw(self, name: str) -> int:
        if self._duration_source is not None:
            return self._duration_source(name)
        if self._seed is None:
            return random.randrange(self.max_val)
        return random.Random(f"{self._seed}:{name}").randrange(self.max_val)

    def run(self, name: str) -> Success:
        """Performs the work for task ``name``.

        :raises TaskFailedError: if the drawn duration exceeds the threshold.
        """
        d = self.draw(name)
        logger.info("%s about to sleep for %d", name, d)
        self._sleep(d * self.time_unit)
        logger.info("end of sleep for %s", name)
        if d > self.threshold:
            raise TaskFailedError(name, d, self.threshold)
        return Success(d, name)

    def run_normalized(self, name: str) -> TaskResult:
        """Same as run(...) but suppressed errors come back as `FAILURE`"""
        try:
            return self.run(name)
        except self._suppress as exc:
            logger.warning("%s failed: %s", name, exc)
            return FAILURE


__all__ = ("TaskExecutor",)
