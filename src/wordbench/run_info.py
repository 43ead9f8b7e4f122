"""Session metadata for run reproducibility and cross-session comparison."""
from __future__ import annotations

import hashlib
import platform
import subprocess
import sys
from datetime import UTC, datetime
from pathlib import Path

from wordbench import __version__
from wordbench.config import BenchRunConfig, missing_required
from wordbench.engine import engine_version
from wordbench.io_utils import dumps_json

_HASH_CHUNK = 1 << 16


def utc_now_iso() -> str:
    """Return current UTC timestamp in ISO-8601 format."""
    return datetime.now(UTC).isoformat()


def file_sha256_hex(path: Path) -> str:
    """SHA-256 hex digest of a file, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


def git_commit_hash(*, search_from: Path | None = None) -> str | None:
    """Best-effort current git commit hash for reproducibility metadata."""
    cwd = (search_from or Path.cwd())
    if cwd.is_file():
        cwd = cwd.parent
    try:
        proc = subprocess.run(
            ["git", "describe", "--always", "--dirty=*"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if proc.returncode != 0:
        return None
    out = proc.stdout.strip()
    return out if out else None


def build_info() -> dict[str, str]:
    """Harness build details stored with every session."""
    info = {
        "version_wordbench": __version__,
        "python_version": platform.python_version(),
        "platform": sys.platform,
    }
    commit = git_commit_hash(search_from=Path(__file__))
    if commit:
        info["git_commit"] = commit
    return info


def build_session_info(cfg: BenchRunConfig) -> dict[str, str]:
    """All metadata recorded for a run; ``cfg`` must have required settings set."""
    missing = missing_required(cfg)
    if missing:
        raise ValueError(f"Missing required settings: {', '.join(missing)}")
    info: dict[str, str] = {
        "machine": cfg.machine,
        "started_at": utc_now_iso(),
        **build_info(),
        "engine": cfg.engine,
        "engine_version": engine_version(cfg.engine),
        "search_rules": cfg.rules_file.read_text(encoding="utf-8"),
        "search_rules_hash": file_sha256_hex(cfg.rules_file),
        "search_dict_hash": file_sha256_hex(cfg.dict_file),
        "bench_file_hash": file_sha256_hex(cfg.bench_file),
        "bench_config": dumps_json(cfg.to_dict(), pretty=True),
    }
    return info
