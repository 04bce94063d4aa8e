from __future__ import annotations

from ..core.limits import MAX_TREE_ENTRIES
from ..tools.common import make_client


def repo_tree(root: str = ".", revision: str = "HEAD") -> dict:
    """
    Returns the versioned tree (paths) at a given revision using `svn list -R`.
    Directories end with '/'.
    """
    client = make_client(root)
    lines = client.list(None, revision, recursive=True)

    total = len(lines)
    truncated = False
    if total > MAX_TREE_ENTRIES:
        lines = lines[:MAX_TREE_ENTRIES]
        truncated = True

    items = [{"path": p, "kind": "dir" if p.endswith("/") else "file"} for p in lines]

    return {
        "root": client.root,
        "revision": revision,
        "total": total,
        "returned": len(items),
        "truncated": truncated,
        "items": items,
    }
