"""Search engine contract and dynamic factory loading.

An engine turns a start word into a lazily produced ranked candidate stream.
Each stream step is either the word at the next rank or ``None`` when the
engine did internal work without emitting anything. ``search`` raises when
the engine cannot start for the given word.

Engines are plugged in via a ``"package.module:factory"`` path; the factory
is called with ``rules_file`` and ``dict_file`` keyword arguments.
"""
from __future__ import annotations

import importlib
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


class EngineStartError(RuntimeError):
    """Raised by an engine that cannot start a search for a start word."""


class EngineLoadError(RuntimeError):
    """Raised when an engine factory path cannot be resolved or built."""


@runtime_checkable
class SearchEngine(Protocol):
    def search(self, word: str) -> Iterable[str | None]: ...


EngineFactory = Callable[..., SearchEngine]


def resolve_factory(path: str) -> EngineFactory:
    """Resolve ``"module:attr"`` (attr may be dotted) to a callable."""
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Engine path must look like 'module:factory', got {path!r}")
    obj: Any = importlib.import_module(module_name)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    if not callable(obj):
        raise TypeError(f"Engine factory {path!r} is not callable")
    return obj


def engine_version(path: str) -> str:
    """Best-effort version string of the module hosting an engine factory."""
    module_name = path.partition(":")[0]
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return ""
    root = importlib.import_module(module_name.split(".")[0])
    return str(getattr(module, "__version__", "") or getattr(root, "__version__", "") or "")


def load_engine(
    path: str,
    *,
    rules_file: Path | None = None,
    dict_file: Path | None = None,
) -> SearchEngine:
    """Build an engine from a factory path and validate its interface."""
    try:
        factory = resolve_factory(path)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        raise EngineLoadError(f"Cannot resolve engine factory {path!r}: {exc}") from exc
    engine = factory(rules_file=rules_file, dict_file=dict_file)
    if not isinstance(engine, SearchEngine):
        raise EngineLoadError(f"Engine built by {path!r} has no search(word) method")
    return engine
