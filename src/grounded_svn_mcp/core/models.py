from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Literal


NodeKind = Literal["file", "dir", "none", "unknown"]
Schedule = Literal["normal", "add", "delete", "replace"]

NODE_KINDS: tuple[str, ...] = ("file", "dir", "none", "unknown")
SCHEDULES: tuple[str, ...] = ("normal", "add", "delete", "replace")


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str
    argv: list[str] = field(default_factory=list)
    cwd: str = ""
    exit_code: int = 0
    duration_ms: int = 0
    timed_out: bool = False
    output_truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "argv": self.argv,
            "cwd": self.cwd,
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exit_code": self.exit_code,
            "duration_ms": self.duration_ms,
            "timed_out": self.timed_out,
            "output_truncated": self.output_truncated,
        }


class StatusCode(str, Enum):
    """First column of `svn status`."""

    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    REPLACED = "R"
    CONFLICTED = "C"
    UNVERSIONED = "?"
    MISSING = "!"
    IGNORED = "I"
    EXTERNAL = "X"
    NORMAL = " "

    @property
    def has_changes(self) -> bool:
        return self in _CHANGED

    @property
    def is_versioned(self) -> bool:
        return self not in (StatusCode.UNVERSIONED, StatusCode.IGNORED)

    @property
    def label(self) -> str:
        return _LABELS[self]


_CHANGED = frozenset(
    {
        StatusCode.MODIFIED,
        StatusCode.ADDED,
        StatusCode.DELETED,
        StatusCode.REPLACED,
        StatusCode.CONFLICTED,
    }
)

_LABELS = {
    StatusCode.MODIFIED: "Modified",
    StatusCode.ADDED: "Added",
    StatusCode.DELETED: "Deleted",
    StatusCode.REPLACED: "Replaced",
    StatusCode.CONFLICTED: "Conflicted",
    StatusCode.UNVERSIONED: "Unversioned",
    StatusCode.MISSING: "Missing",
    StatusCode.IGNORED: "Ignored",
    StatusCode.EXTERNAL: "External",
    StatusCode.NORMAL: "Up to date",
}


class PropertyStatusCode(str, Enum):
    """Second column of `svn status`."""

    MODIFIED = "M"
    CONFLICTED = "C"
    NORMAL = " "


@dataclass(frozen=True)
class StatusEntry:
    file_path: str
    status: StatusCode
    property_status: PropertyStatusCode = PropertyStatusCode.NORMAL
    locked: bool = False
    working_copy_locked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_path": self.file_path,
            "status": self.status.name,
            "property_status": self.property_status.name,
            "locked": self.locked,
            "working_copy_locked": self.working_copy_locked,
        }


@dataclass(frozen=True)
class ChangedPath:
    path: str
    action: str
    kind: str
    copyfrom_path: str | None = None
    copyfrom_rev: int | None = None


@dataclass(frozen=True)
class LogEntry:
    revision: int
    author: str
    date: str
    message: str = ""
    size: int | None = None
    repo_size: int | None = None
    changed_paths: tuple[ChangedPath, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["changed_paths"] = [asdict(p) for p in self.changed_paths]
        return d


@dataclass(frozen=True)
class BlameEntry:
    line_number: int
    revision: int
    author: str
    date: str = ""


@dataclass(frozen=True)
class Info:
    url: str
    repository_root: str
    repository_uuid: str
    revision: int
    last_changed_rev: int = 0
    last_changed_author: str = ""
    last_changed_date: str = ""
    node_kind: NodeKind | None = None
    schedule: Schedule | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
