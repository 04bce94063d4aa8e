from __future__ import annotations

import re
from pathlib import Path

from .errors import InvalidRootError

_REPEATED_SLASHES = re.compile(r"/{2,}")


def resolve_root(root: str | Path) -> Path:
    """Resolve the directory an svn/svnadmin process will run in."""
    if not str(root).strip():
        raise InvalidRootError("Root path is not configured.")
    p = Path(root).expanduser().resolve()

    if not p.exists():
        raise InvalidRootError(f"Working directory does not exist: {p}")
    if not p.is_dir():
        raise InvalidRootError(f"Working directory is not a directory: {p}")
    return p


def normalize_relpath(path: str) -> str:
    """
    Caller-supplied working-copy path -> forward slashes, no leading './',
    no repeated separators.
    """
    s = (path or "").strip().replace("\\", "/")
    if "\x00" in s:
        raise InvalidRootError("Path contains a NUL character.")
    s = _REPEATED_SLASHES.sub("/", s)
    while s.startswith("./"):
        s = s[2:]
    return s


def ensure_within_root(root: str | Path, target: str | Path) -> Path:
    """
    Resolve `target` (relative targets are taken from `root`) and make sure
    it stays inside `root`, symlinks included.
    """
    root_p = Path(root).resolve()
    target_p = (root_p / Path(target).expanduser()).resolve()

    try:
        target_p.relative_to(root_p)
    except ValueError as e:
        raise InvalidRootError(f"Path escapes root. root={root_p} target={target_p}") from e

    return target_p
