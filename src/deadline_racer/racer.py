import enum
import logging
from collections.abc import Iterable, Sequence
from functools import partial

import anyio
from anyio import to_thread
from anyio.abc import TaskGroup

from .executor import TaskExecutor
from .results import TIMED_OUT, Outcome, Success, TaskResult
from .sink import OutcomeSink

logger = logging.getLogger(__name__)


class RaceMode(str, enum.Enum):
    """Which task results are allowed to decide a race"""

    # only successes, a failing task can never end the race
    FILTERED = "filtered"
    # every result, so the first task to finish decides even when it failed
    UNFILTERED = "unfiltered"

    def accepts(self, result: TaskResult) -> bool:
        if self is RaceMode.UNFILTERED:
            return True
        return isinstance(result, Success)


async def _run_task(
    executor: TaskExecutor,
    name: str,
    sink: OutcomeSink,
    mode: RaceMode,
    limiter: anyio.CapacityLimiter,
) -> None:
    # the worker thread is abandoned rather than interrupted when the race
    # is torn down, it keeps sleeping and its result is dropped.
    result = await to_thread.run_sync(
        partial(executor.run_normalized, name),
        limiter=limiter,
        abandon_on_cancel=True,
    )
    if not mode.accepts(result):
        logger.debug("%s: %r not offered", name, result)
        return
    if sink.try_fill(result):
        logger.debug("%s won the race", name)


async def _run_timeout(
    sink: OutcomeSink, max_duration: int, time_unit: float
) -> None:
    logger.info("timeout about to sleep for %d", max_duration)
    await anyio.sleep(max_duration * time_unit)
    logger.info("end of sleep for timeout")
    sink.try_fill(TIMED_OUT)


def get_first_success(
    task_group: TaskGroup,
    executor: TaskExecutor,
    names: Iterable[str],
    max_duration: int,
    *,
    mode: RaceMode = RaceMode.FILTERED,
    limiter: anyio.CapacityLimiter | None = None,
) -> OutcomeSink:
    """Starts one task per name plus the timeout inside ``task_group`` and
    returns the sink they race to fill. ``await sink.wait()`` gives the
    outcome as soon as one of them wins, whatever the others are doing.

    :param task_group: the group owning every task of the race.
    :type task_group: TaskGroup
    :param executor: runs the blocking work of each task.
    :type executor: TaskExecutor
    :param names: task names, one task is started per name.
    :type names: Iterable[str]
    :param max_duration: the timeout, in the executor's time units.
    :type max_duration: int
    :param mode: which results may fill the sink.
    :type mode: RaceMode
    :param limiter: worker thread slots used by the tasks, defaults to one
        slot per task so that no task waits for another one.
    :type limiter: anyio.CapacityLimiter | None
    """
    names = list(names)
    if limiter is None:
        limiter = anyio.CapacityLimiter(max(len(names), 1))

    sink = OutcomeSink()
    for name in names:
        task_group.start_soon(
            _run_task, executor, name, sink, mode, limiter, name=f"race:{name}"
        )
    task_group.start_soon(
        _run_timeout, sink, max_duration, executor.time_unit, name="race:timeout"
    )
    return sink


class Racer:
    """Races blocking tasks against a timeout and keeps the first
    accepted result.

    A race always resolves: to the winning `Success`, to `TIMED_OUT`, or in
    `RaceMode.UNFILTERED` to `FAILURE` when the first task to finish failed.
    Task errors listed in the executor's ``suppress`` never escape `run`.
    """

    def __init__(
        self,
        executor: TaskExecutor,
        names: Sequence[str],
        max_duration: int,
        *,
        mode: RaceMode | str = RaceMode.FILTERED,
        limiter: anyio.CapacityLimiter | None = None,
        wait_for_losers: bool = False,
    ):
        """
        :param executor: runs the blocking work of each task.
        :param names: the task names.
        :param max_duration: the timeout, in the executor's time units.
        :param mode: which results may decide the race.
        :param limiter: worker thread slots, kept apart from anyio's default
            thread limiter so blocking tasks don't starve other threaded calls.
        :param wait_for_losers: wait for every task and the timeout before
            returning instead of abandoning them once a winner is known.
        """
        self._executor = executor
        self._names = list(names)
        self._max_duration = max_duration
        self._mode = RaceMode(mode)
        self._limiter = limiter
        self._wait_for_losers = wait_for_losers
        self._lock = anyio.Lock()

    async def run(self) -> Outcome:
        """Runs the race once and returns its outcome."""
        # a Racer can be shared, but runs one race at a time
        async with self._lock:
            async with anyio.create_task_group() as tg:
                sink = get_first_success(
                    tg,
                    self._executor,
                    self._names,
                    self._max_duration,
                    mode=self._mode,
                    limiter=self._limiter,
                )
                logger.info("result handle returned")
                outcome = await sink.wait()
                if not self._wait_for_losers:
                    tg.cancel_scope.cancel()
            return outcome


async def race(
    executor: TaskExecutor,
    names: Sequence[str],
    max_duration: int,
    *,
    mode: RaceMode | str = RaceMode.FILTERED,
    limiter: anyio.CapacityLimiter | None = None,
    wait_for_losers: bool = False,
) -> Outcome:
    """Races one task per name against a timeout of ``max_duration``.

    :returns: the first accepted `Success`, `TIMED_OUT`, or `FAILURE` in
        unfiltered mode.
    """
    return await Racer(
        executor,
        names,
        max_duration,
        mode=mode,
        limiter=limiter,
        wait_for_losers=wait_for_losers,
    ).run()


__all__ = ("RaceMode", "Racer", "get_first_success", "race")
