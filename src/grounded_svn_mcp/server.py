from __future__ import annotations

import logging
import os
import sys

from mcp.server.fastmcp import FastMCP

from grounded_svn_mcp.resources import diff_range, read_file_at_revision, repo_tree
from grounded_svn_mcp.tools import (
    add,
    blame,
    commit,
    create_repository,
    diff,
    info,
    log,
    move,
    properties,
    remove,
    repo_info,
    revert,
    status,
    update,
)

mcp = FastMCP("grounded-svn-mcp")


def _default_root() -> str:
    return os.environ.get("GROUNDED_SVN_ROOT", ".")


@mcp.tool()
def repo_info_tool(root: str = ".") -> dict:
    return repo_info(root=root)


@mcp.tool()
def status_tool(root: str = ".", path: str | None = None, max_entries: int = 200) -> dict:
    return status(root=root, path=path, max_entries=max_entries)


@mcp.tool()
def log_tool(
    path: str | None = None,
    root: str = ".",
    n: int = 20,
    revision_range: str | None = None,
    with_sizes: bool = False,
) -> dict:
    return log(path=path, root=root, n=n, revision_range=revision_range, with_sizes=with_sizes)


@mcp.tool()
def info_tool(path: str | None = None, root: str = ".", revision: str | None = None) -> dict:
    return info(path=path, root=root, revision=revision)


@mcp.tool()
def blame_tool(
    file_path: str,
    root: str = ".",
    revision: str | None = None,
    start_line: int = 1,
    end_line: int = 200,
) -> dict:
    return blame(file_path=file_path, root=root, revision=revision, start_line=start_line, end_line=end_line)


@mcp.tool()
def properties_tool(path: str, root: str = ".") -> dict:
    return properties(path=path, root=root)


@mcp.tool()
def diff_tool(path: str, root: str = ".", revision: str | None = None, revision2: str | None = None) -> dict:
    return diff(path=path, root=root, revision=revision, revision2=revision2)


@mcp.tool()
def revert_tool(paths: list[str], root: str = ".") -> dict:
    return revert(paths=paths, root=root)


@mcp.tool()
def update_tool(paths: list[str] | None = None, root: str = ".", revision: str | None = None) -> dict:
    return update(paths=paths, root=root, revision=revision)


@mcp.tool()
def commit_tool(paths: list[str], message: str, root: str = ".") -> dict:
    return commit(paths=paths, message=message, root=root)


@mcp.tool()
def add_tool(path: str, root: str = ".") -> dict:
    return add(path=path, root=root)


@mcp.tool()
def remove_tool(paths: list[str], root: str = ".", keep_local: bool = True) -> dict:
    return remove(paths=paths, root=root, keep_local=keep_local)


@mcp.tool()
def move_tool(old_path: str, new_path: str, root: str = ".") -> dict:
    return move(old_path=old_path, new_path=new_path, root=root)


@mcp.tool()
def create_repository_tool(name: str, root: str = ".") -> dict:
    return create_repository(name=name, root=root)


@mcp.tool()
def read_file_resource(path: str, root: str = ".", revision: str = "HEAD") -> dict:
    return read_file_at_revision(root=root, revision=revision, path=path)


@mcp.tool()
def diff_range_resource(root: str = ".", base: str = "PREV", head: str = "HEAD", path: str | None = None) -> dict:
    return diff_range(root=root, base=base, head=head, path=path)


@mcp.tool()
def repo_tree_resource(root: str = ".", revision: str = "HEAD") -> dict:
    return repo_tree(root=root, revision=revision)


@mcp.resource("svn://tree/{revision}")
def repo_tree_at(revision: str) -> dict:
    return repo_tree(root=_default_root(), revision=revision)


def main() -> None:
    # stdout carries the MCP stdio transport.
    logging.basicConfig(
        stream=sys.stderr,
        level=os.environ.get("GROUNDED_SVN_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp.run()


if __name__ == "__main__":
    main()
