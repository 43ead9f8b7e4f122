"""orjson-backed JSON helpers for metadata snapshots and CLI output."""
from __future__ import annotations

import math
import sys
from pathlib import Path
from typing import Any

import orjson


def _finite_or_none(obj: Any) -> Any:
    """Replace non-finite floats (orjson refuses them) with None, recursively."""
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, dict):
        return {k: _finite_or_none(v) for k, v in obj.items()}
    if isinstance(obj, list | tuple):
        return [_finite_or_none(v) for v in obj]
    return obj


def dumps_json(obj: Any, *, pretty: bool = False) -> str:
    opts = orjson.OPT_SORT_KEYS | (orjson.OPT_INDENT_2 if pretty else 0)
    return orjson.dumps(_finite_or_none(obj), option=opts).decode("utf-8")


def write_stdout_json(obj: Any, *, pretty: bool = True) -> None:
    sys.stdout.write(dumps_json(obj, pretty=pretty) + "\n")


def save_json(obj: Any, path: Path, *, pretty: bool = True) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_json(obj, pretty=pretty) + "\n", encoding="utf-8")
