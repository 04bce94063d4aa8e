from .svn_tools import (
    repo_info,
    status,
    log,
    info,
    blame,
    properties,
    diff,
    revert,
    update,
    commit,
    add,
    remove,
    move,
    create_repository,
)

__all__ = [
    "repo_info",
    "status",
    "log",
    "info",
    "blame",
    "properties",
    "diff",
    "revert",
    "update",
    "commit",
    "add",
    "remove",
    "move",
    "create_repository",
]
