"""vm_math.version — package version string.

Resolution order (first hit wins):
  1) VM_MATH_VERSION            exact override, e.g. set by a release pipeline
  2) installed metadata of the "vm-math" distribution
  3) BASE_VERSION with the checkout's commit as a PEP 440 local label,
     e.g. 0.1.0+g1a2b3c4 or 0.1.0+g1a2b3c4.dirty (GIT_COMMIT overrides git)
  4) BASE_VERSION + "+dev"

Costs reported by the harness are only comparable between identical builds,
so the commit label matters when benchmark numbers are archived.
"""

from __future__ import annotations

import os
import re
import subprocess
from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Optional, Tuple

# Bump whenever a primitive's result or its metered cost profile changes.
BASE_VERSION = "0.1.0"

DIST_NAME = "vm-math"

_HERE = Path(__file__).resolve().parent


def _git(*args: str) -> Optional[str]:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=_HERE,
            capture_output=True,
            text=True,
            timeout=1.5,
            env={**os.environ, "LC_ALL": "C"},
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return proc.stdout.strip() if proc.returncode == 0 else None


@lru_cache(maxsize=1)
def git_commit() -> Optional[Tuple[str, bool]]:
    """(short commit hash, working tree dirty) of the checkout, or None outside git."""
    commit = _git("rev-parse", "--short", "HEAD")
    if not commit:
        return None
    status = _git("status", "--porcelain", "--untracked-files=no")
    return commit, bool(status)


def local_label(commit: str, dirty: bool = False) -> str:
    """'1a2b3c4', dirty -> 'g1a2b3c4.dirty' (letters/digits/dots only)."""
    label = "g" + re.sub(r"[^0-9A-Za-z]+", "", commit)
    return f"{label}.dirty" if dirty else label


def _installed_version() -> Optional[str]:
    try:
        return metadata.version(DIST_NAME) or None
    except metadata.PackageNotFoundError:
        return None


@lru_cache(maxsize=1)
def compute_version() -> str:
    override = os.getenv("VM_MATH_VERSION")
    if override:
        return override

    installed = _installed_version()
    if installed:
        return installed

    pinned = os.getenv("GIT_COMMIT")
    checkout = (pinned, False) if pinned else git_commit()
    if checkout:
        return f"{BASE_VERSION}+{local_label(*checkout)}"

    return f"{BASE_VERSION}+dev"


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "DIST_NAME", "compute_version", "git_commit", "local_label"]
