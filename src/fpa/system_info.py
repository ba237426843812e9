from __future__ import annotations

import os
import platform
import subprocess
from datetime import datetime, timezone
from pathlib import Path


def now_utc_iso() -> str:
    fixed = os.environ.get("FPA_FIXED_TIMESTAMP_UTC")
    if fixed:
        return fixed
    return datetime.now(tz=timezone.utc).isoformat()


def get_git_commit(cwd: str | Path) -> str | None:
    try:
        out = subprocess.check_output(
            ["git", "-C", str(cwd), "rev-parse", "HEAD"],
            stderr=subprocess.DEVNULL,
            text=True,
        ).strip()
        return out or None
    except (OSError, subprocess.CalledProcessError):
        return None


def get_system_metadata(cwd: str | Path) -> dict[str, object]:
    return {
        "run_timestamp_utc": now_utc_iso(),
        "platform": platform.platform(),
        "machine": platform.machine(),
        "python_version": platform.python_version(),
        "numpy_version": _package_version("numpy"),
        "scipy_version": _package_version("scipy"),
        "git_commit": get_git_commit(cwd),
    }


def _package_version(name: str) -> str | None:
    from importlib import metadata

    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return None
