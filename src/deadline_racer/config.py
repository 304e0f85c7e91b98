import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError, UnsupportedConfigFormatError
from .racer import RaceMode


def _default_tasks() -> list[str]:
    return ["task1", "task2", "task3", "task4"]


@dataclass
class RaceConfig:
    """Parameters of one race. Durations are in time units, ``time_unit``
    seconds each."""

    max_val: int = 30000
    threshold_fraction: float = 0.25
    max_duration: int = 32000
    tasks: list[str] = field(default_factory=_default_tasks)
    mode: RaceMode = RaceMode.FILTERED
    time_unit: float = 0.001
    seed: int | None = None
    wait_for_losers: bool = False

    @property
    def threshold(self) -> int:
        return int(self.max_val * self.threshold_fraction)


_INT_FIELDS = ("max_val", "max_duration")
_FLOAT_FIELDS = ("threshold_fraction", "time_unit")


def load_config(path: str | Path) -> RaceConfig:
    pure_path = Path(path).expanduser().resolve()

    if not pure_path.exists():
        raise ConfigError(f"Config file not found: {pure_path}")

    if not pure_path.is_file():
        raise ConfigError(f"Config path is not a file: {pure_path}")

    raw = _parse_file(pure_path, _detect_format(pure_path))
    return build_config(raw)


def _detect_format(path: Path) -> str:
    match path.suffix:
        case ".yaml" | ".yml":
            return "yaml"
        case ".toml":
            return "toml"
        case ".json":
            return "json"
        case fmt:
            raise UnsupportedConfigFormatError(
                f"Non supported file extension: {fmt}\n Expected format: .yml/.yaml, .toml, .json"
            )


def _parse_file(path: Path, fmt: str) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    match fmt:
        case "yaml":
            try:
                raw = yaml.safe_load(text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{path}: invalid YAML") from exc
        case "toml":
            try:
                raw = tomllib.loads(text)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigError(f"{path}: invalid TOML") from exc
        case "json":
            try:
                raw = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"{path}: invalid JSON") from exc
        case _:
            raise AssertionError("Unreachable")

    # an empty YAML document is an empty config
    if raw is None:
        return {}

    if not isinstance(raw, Mapping):
        raise ConfigError(
            f"{path}: {fmt.upper()} parsed but top-level value is not an object: {type(raw)}"
        )

    return raw


def build_config(raw: Mapping[str, Any]) -> RaceConfig:
    """Validates a parsed mapping, keys left out keep their defaults."""
    config = RaceConfig()
    keys = set(RaceConfig.__dataclass_fields__)

    for key in raw:
        if key not in keys:
            raise ConfigError(f"Can't process: {key}")

    for key in _INT_FIELDS:
        if key in raw:
            value = raw[key]
            # bool is an int subclass
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"'{key}' should be an integer")
            if value <= 0:
                raise ConfigError(f"'{key}' should be positive")
            setattr(config, key, value)

    for key in _FLOAT_FIELDS:
        if key in raw:
            value = raw[key]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"'{key}' should be a number")
            if value <= 0:
                raise ConfigError(f"'{key}' should be positive")
            setattr(config, key, float(value))

    if config.threshold_fraction > 1:
        raise ConfigError("'threshold_fraction' can't be greater than 1")

    if "tasks" in raw:
        config.tasks = _build_tasks(raw["tasks"])

    if "mode" in raw:
        try:
            config.mode = RaceMode(raw["mode"])
        except ValueError:
            raise ConfigError(
                f"Unknown mode {raw['mode']!r}, expected 'filtered' or 'unfiltered'"
            ) from None

    if "seed" in raw:
        seed = raw["seed"]
        if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
            raise ConfigError("'seed' should be an integer")
        config.seed = seed

    if "wait_for_losers" in raw:
        if not isinstance(raw["wait_for_losers"], bool):
            raise ConfigError("'wait_for_losers' should be a boolean")
        config.wait_for_losers = raw["wait_for_losers"]

    return config


def _build_tasks(items: Any) -> list[str]:
    if not isinstance(items, list):
        raise ConfigError("'tasks' should be a list of names")

    if len(items) < 1:
        raise ConfigError("There must be at least one task")

    tasks: list[str] = []
    for item in items:
        if not isinstance(item, str):
            raise ConfigError(f"{item!r} should be a string in the task list")

        name = item.strip()

        if len(name) < 1:
            raise ConfigError("A task name can't be empty")

        if name in tasks:
            raise ConfigError(f"Duplicate task name after normalization: {name}")

        tasks.append(name)

    return tasks


__all__ = ("RaceConfig", "build_config", "load_config")
