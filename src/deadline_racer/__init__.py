from .config import RaceConfig, build_config, load_config
from .errors import (
    ConfigError,
    RacerError,
    TaskFailedError,
    UnsupportedConfigFormatError,
)
from .executor import TaskExecutor
from .racer import RaceMode, Racer, get_first_success, race
from .results import FAILURE, TIMED_OUT, Failure, Outcome, Success, TaskResult, TimedOut
from .sink import OutcomeSink

__all__ = (
    "FAILURE",
    "TIMED_OUT",
    "ConfigError",
    "Failure",
    "Outcome",
    "OutcomeSink",
    "RaceConfig",
    "RaceMode",
    "Racer",
    "RacerError",
    "Success",
    "TaskExecutor",
    "TaskFailedError",
    "TaskResult",
    "TimedOut",
    "UnsupportedConfigFormatError",
    "build_config",
    "get_first_success",
    "load_config",
    "race",
)
