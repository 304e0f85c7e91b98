class RacerError(Exception):
    """An Exception type raised by `deadline-racer`"""


class TaskFailedError(RacerError):
    """Raised by a task when its drawn duration went past the threshold.
    The orchestrator converts it into the failure sentinel, so it never
    reaches the caller of a race."""

    def __init__(self, name: str, duration: int, threshold: int):
        super().__init__(
            f"{name}: duration too large ({duration} > {threshold})"
        )
        self.name = name
        self.duration = duration
        self.threshold = threshold


class ConfigError(RacerError):
    """Invalid race configuration"""


class UnsupportedConfigFormatError(ConfigError):
    pass


__all__ = (
    "ConfigError",
    "RacerError",
    "TaskFailedError",
    "UnsupportedConfigFormatError",
)
