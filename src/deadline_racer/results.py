from dataclasses import dataclass
from typing import ClassVar

# status codes reserved for the sentinels, a real duration is never negative
FAILURE_STATUS = -1
TIMEOUT_STATUS = -2


@dataclass(frozen=True)
class Success:
    """A finished task: how long it waited and which task it was."""

    value: int
    label: str

    ok: ClassVar[bool] = True

    @property
    def status(self) -> int:
        return self.value

    def as_tuple(self) -> tuple[int, str]:
        return (self.value, self.label)


@dataclass(frozen=True)
class Failure:
    """Sentinel for a task whose error was suppressed"""

    status: ClassVar[int] = FAILURE_STATUS
    label: ClassVar[str] = ""
    ok: ClassVar[bool] = False

    def as_tuple(self) -> tuple[int, str]:
        return (self.status, self.label)


@dataclass(frozen=True)
class TimedOut:
    """Sentinel offered by the timeout task"""

    status: ClassVar[int] = TIMEOUT_STATUS
    label: ClassVar[str] = ""
    ok: ClassVar[bool] = False

    def as_tuple(self) -> tuple[int, str]:
        return (self.status, self.label)


FAILURE = Failure()
TIMED_OUT = TimedOut()

TaskResult = Success | Failure
Outcome = Success | Failure | TimedOut


__all__ = (
    "FAILURE",
    "FAILURE_STATUS",
    "Failure",
    "Outcome",
    "Success",
    "TIMED_OUT",
    "TIMEOUT_STATUS",
    "TaskResult",
    "TimedOut",
)
