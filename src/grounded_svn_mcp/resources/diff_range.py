from __future__ import annotations

from ..core.limits import MAX_LINES_TEXT
from ..core.security import ensure_within_root, normalize_relpath
from ..tools.common import make_client


def diff_range(
    root: str = ".",
    base: str = "PREV",
    head: str = "HEAD",
    path: str | None = None,
) -> dict:
    """
    Diff between two revisions (`svn diff -r base:head`) of root or one path.
    """
    client = make_client(root)

    target = normalize_relpath(path) if path else None
    if target:
        ensure_within_root(client.root, target)
    text = client.get_diff(target or client.root, base, head)

    lines = text.splitlines()
    truncated = False
    if len(lines) > MAX_LINES_TEXT:
        lines = lines[:MAX_LINES_TEXT]
        truncated = True

    return {
        "root": client.root,
        "range": f"{base}:{head}",
        "base": base,
        "head": head,
        "path": target,
        "truncated": truncated,
        "diff": "\n".join(lines),
    }
