import time

from deadline_racer.errors import TaskFailedError
from deadline_racer.executor import TaskExecutor
from deadline_racer.racer import RaceMode, Racer, get_first_success, race
from deadline_racer.results import FAILURE, TIMED_OUT, Success

import anyio
import pytest

pytestmark = pytest.mark.anyio

NAMES = ["task1", "task2", "task3", "task4"]

# 32000 units of 10µs, every race below settles in about a third of a second
FAST = 0.00001


def _executor(durations, time_unit=FAST, **kwargs) -> TaskExecutor:
    if not isinstance(durations, dict):
        durations = dict(zip(NAMES, durations))
    return TaskExecutor.from_fraction(
        30000,
        0.25,
        duration_source=durations.__getitem__,
        time_unit=time_unit,
        **kwargs,
    )


async def test_first_success_wins():
    ex = _executor([1000, 20000, 500, 26000])

    outcome = await race(ex, NAMES, 32000)

    assert outcome in (Success(1000, "task1"), Success(500, "task3"))


async def test_winner_returns_without_waiting_for_losers():
    ex = _executor({"fast": 200, "slow": 6000}, time_unit=0.0001)

    start = time.monotonic()
    outcome = await race(ex, ["fast", "slow"], 32000)

    assert outcome == Success(200, "fast")
    assert outcome.as_tuple() == (200, "fast")
    assert time.monotonic() - start < 0.5


async def test_losers_keep_running_after_the_race():
    finished = []

    def sleep(seconds: float):
        time.sleep(seconds)
        finished.append(seconds)

    ex = _executor({"fast": 100, "slow": 20000}, sleep=sleep)

    outcome = await race(ex, ["fast", "slow"], 32000)

    assert outcome == Success(100, "fast")
    assert finished == [pytest.approx(0.001)]

    # the slow worker was abandoned, not interrupted
    await anyio.sleep(0.5)
    assert finished == [pytest.approx(0.001), pytest.approx(0.2)]


async def test_zero_duration_counts_as_success():
    ex = _executor({"zero": 0, "slow": 1000})

    outcome = await race(ex, ["zero", "slow"], 32000)

    assert outcome == Success(0, "zero")
    assert RaceMode.FILTERED.accepts(Success(0, "zero"))
    assert not RaceMode.FILTERED.accepts(FAILURE)


async def test_all_failing_times_out_when_filtered():
    ex = _executor([10000, 12000, 15000, 9000])

    start = time.monotonic()
    outcome = await race(ex, NAMES, 32000)

    assert outcome is TIMED_OUT
    assert outcome.as_tuple() == (-2, "")
    assert time.monotonic() - start >= 0.3


async def test_all_failing_reports_failure_when_unfiltered():
    ex = _executor([10000, 12000, 15000, 9000])

    start = time.monotonic()
    outcome = await race(ex, NAMES, 32000, mode=RaceMode.UNFILTERED)

    assert outcome is FAILURE
    assert outcome.as_tuple() == (-1, "")
    assert time.monotonic() - start < 0.3


@pytest.mark.parametrize(
    "mode, expected",
    [
        (RaceMode.UNFILTERED, FAILURE),
        (RaceMode.FILTERED, Success(100, "good")),
    ],
)
async def test_first_finisher_failing(mode, expected):
    # a single worker slot runs the tasks one after the other, in order
    ex = _executor({"bad": 9000, "good": 100})
    limiter = anyio.CapacityLimiter(1)

    outcome = await race(ex, ["bad", "good"], 32000, mode=mode, limiter=limiter)

    assert outcome == expected


@pytest.mark.parametrize("mode", ["filtered", "unfiltered"])
async def test_short_timeout_always_times_out(mode):
    ex = _executor([5000, 6000, 7000, 7400])

    outcome = await race(ex, NAMES, 100, mode=mode)

    assert outcome is TIMED_OUT


async def test_no_names_times_out():
    ex = _executor({})
    assert await race(ex, [], 1000) is TIMED_OUT


async def test_suppressed_errors_never_escape():
    def broken(name: str) -> int:
        raise RuntimeError(name)

    ex = TaskExecutor(
        30000,
        7500,
        duration_source=broken,
        time_unit=FAST,
        suppress=[RuntimeError, TaskFailedError],
    )

    assert await race(ex, NAMES, 1000) is TIMED_OUT
    assert await race(ex, NAMES, 1000, mode="unfiltered") is FAILURE


async def test_wait_for_losers_keeps_first_outcome():
    ex = _executor({"fast": 100, "slow": 20000})

    start = time.monotonic()
    outcome = await race(ex, ["fast", "slow"], 32000, wait_for_losers=True)

    assert outcome == Success(100, "fast")
    # the timeout task ran to the end before the race returned
    assert time.monotonic() - start >= 0.3


async def test_seeded_race_is_deterministic():
    def run_once():
        ex = TaskExecutor(30000, 7500, seed=1234, time_unit=0.000001)
        return race(ex, NAMES, 1_000_000, limiter=anyio.CapacityLimiter(1))

    first = await run_once()
    second = await run_once()
    assert first == second

    draws = TaskExecutor(30000, 7500, seed=1234)
    winners = [n for n in NAMES if draws.draw(n) <= 7500]
    if winners:
        assert first == Success(draws.draw(winners[0]), winners[0])
    else:
        assert first is TIMED_OUT


async def test_racer_can_run_again():
    racer = Racer(_executor([3000, 20000, 200, 26000]), NAMES, 32000)

    assert await racer.run() == Success(200, "task3")
    assert await racer.run() == Success(200, "task3")


async def test_get_first_success_returns_open_handle():
    ex = _executor({"task1": 2000})

    async with anyio.create_task_group() as tg:
        sink = get_first_success(tg, ex, ["task1"], 32000)
        assert not sink.filled
        outcome = await sink.wait()
        tg.cancel_scope.cancel()

    assert outcome == Success(2000, "task1")
    assert sink.peek() == outcome
