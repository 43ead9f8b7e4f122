"""Run configuration loaded from TOML.

Example::

    repeat = 7
    repeat_failed = 2
    timeout = 8.3
    verbose = 1
    engine = "mypkg.search:build_engine"
    rules_file = "rules.txt"
    dict_file = "dict.txt"
    bench_file = "bench.txt"

``machine``, ``engine`` and the three file paths may also come from the
command line; :func:`missing_required` reports which are still unset.
"""
from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_OUT_DB = Path("bench.duckdb")
REQUIRED_SETTINGS: tuple[str, ...] = ("machine", "engine", "rules_file", "dict_file", "bench_file")

_PATH_FIELDS: tuple[str, ...] = ("rules_file", "dict_file", "bench_file", "out_db")
_COUNT_MAX = 255


class ConfigError(ValueError):
    """Raised for an unreadable or invalid run configuration."""


@dataclass(frozen=True, slots=True)
class BenchRunConfig:
    repeat: int
    repeat_failed: int
    timeout_sec: float
    verbose: int = 0
    machine: str | None = None
    engine: str | None = None
    rules_file: Path | None = None
    dict_file: Path | None = None
    bench_file: Path | None = None
    out_db: Path = DEFAULT_OUT_DB

    def __post_init__(self) -> None:
        for name in ("repeat", "repeat_failed", "verbose"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if not 0 <= value <= _COUNT_MAX:
                raise ConfigError(f"{name} must be in 0..{_COUNT_MAX}, got {value}")
        if self.timeout_sec <= 0:
            raise ConfigError(f"timeout must be > 0 seconds, got {self.timeout_sec}")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> BenchRunConfig:
        known = {"repeat", "repeat_failed", "timeout", "verbose", "machine", "engine", *_PATH_FIELDS}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        missing = [key for key in ("repeat", "repeat_failed", "timeout") if key not in data]
        if missing:
            raise ConfigError(f"Missing config keys: {', '.join(missing)}")
        timeout = data["timeout"]
        if isinstance(timeout, bool) or not isinstance(timeout, int | float):
            raise ConfigError(f"timeout must be a number of seconds, got {timeout!r}")
        kwargs: dict[str, Any] = {
            "repeat": data["repeat"],
            "repeat_failed": data["repeat_failed"],
            "timeout_sec": float(timeout),
            "verbose": data.get("verbose", 0),
            "machine": data.get("machine"),
            "engine": data.get("engine"),
        }
        for name in _PATH_FIELDS:
            if data.get(name) is not None:
                kwargs[name] = Path(data[name])
        return cls(**kwargs)

    @classmethod
    def from_toml(cls, text: str) -> BenchRunConfig:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML: {exc}") from exc
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: Path) -> BenchRunConfig:
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        return cls.from_toml(text)

    def with_overrides(self, **overrides: Any) -> BenchRunConfig:
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """TOML-key view, JSON-serializable (paths as strings)."""
        data: dict[str, Any] = {
            "repeat": self.repeat,
            "repeat_failed": self.repeat_failed,
            "timeout": self.timeout_sec,
            "verbose": self.verbose,
            "machine": self.machine,
            "engine": self.engine,
        }
        for name in _PATH_FIELDS:
            value = getattr(self, name)
            data[name] = str(value) if value is not None else None
        return data


def missing_required(cfg: BenchRunConfig) -> list[str]:
    return [name for name in REQUIRED_SETTINGS if getattr(cfg, name) is None]
