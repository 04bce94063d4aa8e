from __future__ import annotations

from dataclasses import asdict
from pathlib import Path
from typing import Any

from .common import make_client


def repo_info(root: str = ".") -> dict[str, Any]:
    """
    High-signal working copy metadata: root, is_svn, working copy root, url, revision.
    """
    c = make_client(root)
    wc_root = c.resolver.find_working_copy_root(c.root)
    if wc_root is None:
        return {"root": c.root, "is_svn": False}

    i = c.get_info()
    return {
        "root": c.root,
        "is_svn": True,
        "working_copy_root": wc_root,
        "info": i.to_dict() if i else None,
    }


def status(root: str = ".", path: str | None = None, max_entries: int = 200) -> dict[str, Any]:
    """
    Parsed `svn status`: one entry per changed, unversioned or missing path.
    """
    c = make_client(root)
    entries = c.get_status(path)[: max(1, int(max_entries))]
    return {
        "entries": [e.to_dict() for e in entries],
        "count": len(entries),
    }


def log(
    path: str | None = None,
    root: str = ".",
    n: int = 20,
    revision_range: str | None = None,
    with_sizes: bool = False,
) -> dict[str, Any]:
    """
    History of a file or directory, newest first, with changed paths.
    """
    c = make_client(root)
    n = max(1, min(int(n), 200))
    entries = c.get_log(path, revision_range=revision_range, limit=n, with_sizes=with_sizes)
    return {"entries": [e.to_dict() for e in entries], "count": len(entries)}


def info(path: str | None = None, root: str = ".", revision: str | None = None) -> dict[str, Any]:
    c = make_client(root)
    i = c.get_info(path, revision)
    return {"info": i.to_dict() if i else None}


def blame(
    file_path: str,
    root: str = ".",
    revision: str | None = None,
    start_line: int = 1,
    end_line: int = 200,
) -> dict[str, Any]:
    """
    Blame range for a file: who last changed each line, and in which revision.
    """
    c = make_client(root)
    start_line = max(1, int(start_line))
    end_line = max(start_line, int(end_line))
    entries = [e for e in c.get_blame(file_path, revision) if start_line <= e.line_number <= end_line]
    return {
        "entries": [asdict(e) for e in entries],
        "count": len(entries),
    }


def properties(path: str, root: str = ".") -> dict[str, Any]:
    c = make_client(root)
    props = c.get_properties(path)
    return {"properties": props, "count": len(props)}


def diff(
    path: str,
    root: str = ".",
    revision: str | None = None,
    revision2: str | None = None,
    max_chars: int = 12_000,
) -> dict[str, Any]:
    """
    Unified diff of a path against BASE, a revision, or between two revisions.
    """
    c = make_client(root)
    out = c.get_diff(path, revision, revision2)
    truncated = False
    if len(out) > max_chars:
        out = out[:max_chars]
        truncated = True
    return {"diff": out, "ui_truncated": truncated}


def revert(paths: list[str], root: str = ".") -> dict[str, Any]:
    c = make_client(root)
    return {"output": c.revert(paths), "paths": paths}


def update(paths: list[str] | None = None, root: str = ".", revision: str | None = None) -> dict[str, Any]:
    c = make_client(root)
    return {"output": c.update(paths, revision), "revision": revision}


def commit(paths: list[str], message: str, root: str = ".") -> dict[str, Any]:
    c = make_client(root)
    return {"output": c.commit(paths, message), "paths": paths}


def add(path: str, root: str = ".") -> dict[str, Any]:
    c = make_client(root)
    return {"output": c.add(path), "path": path}


def remove(paths: list[str], root: str = ".", keep_local: bool = True) -> dict[str, Any]:
    c = make_client(root)
    return {"output": c.remove(paths, keep_local=keep_local), "paths": paths}


def move(old_path: str, new_path: str, root: str = ".") -> dict[str, Any]:
    c = make_client(root)
    return {"output": c.move(old_path, new_path), "from": old_path, "to": new_path}


def create_repository(name: str, root: str = ".") -> dict[str, Any]:
    """
    Create a local repository `.<name>` inside root with svnadmin.
    """
    c = make_client(root)
    path = c.create_repository(name)
    return {"repository_path": path, "url": Path(path).as_uri()}
