from __future__ import annotations

from ..core.limits import MAX_LINES_TEXT
from ..core.security import ensure_within_root, normalize_relpath
from ..tools.common import make_client


def read_file_at_revision(root: str = ".", revision: str = "HEAD", path: str = "") -> dict:
    """
    Read a file's content at a given revision without updating the working copy.
    """
    client = make_client(root)

    rel = normalize_relpath(path)
    if not rel:
        raise ValueError("path is required")

    ensure_within_root(client.root, rel)
    text = client.cat(rel, revision)
    lines = text.splitlines()
    truncated = False
    if len(lines) > MAX_LINES_TEXT:
        lines = lines[:MAX_LINES_TEXT]
        truncated = True

    return {
        "root": client.root,
        "revision": revision,
        "path": rel,
        "truncated": truncated,
        "line_count": len(text.splitlines()),
        "content": "\n".join(lines),
    }
