"""
Second-pass normalization for loosely typed records (cached or deserialized
data) before they reach a caller that renders them.

Nothing here raises: every validator returns Valid(value) or Rejected(reason),
and the list helpers log rejected items and leave them out.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .models import (
    NODE_KINDS,
    SCHEDULES,
    ChangedPath,
    Info,
    LogEntry,
    PropertyStatusCode,
    StatusCode,
    StatusEntry,
)
from .parsers import property_status_of, status_code_of

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ParseResult = Union[Valid[T], Rejected]


def _get(raw: Any, *names: str) -> Any:
    """Read the first present field, from a mapping or an object."""
    for name in names:
        if isinstance(raw, Mapping):
            if name in raw:
                return raw[name]
        elif hasattr(raw, name):
            return getattr(raw, name)
    return None


def _is_record(raw: Any) -> bool:
    if raw is None or isinstance(raw, (str, bytes, int, float, bool, list, tuple)):
        return False
    return True


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _as_str(value: Any, default: str = "") -> str:
    return default if value is None or value == "" else str(value)


def _status_code(value: Any, log: logging.Logger) -> StatusCode:
    if isinstance(value, StatusCode):
        return value
    if isinstance(value, str) and value in StatusCode.__members__:
        return StatusCode[value]
    if isinstance(value, str) and len(value) == 1:
        return status_code_of(value, log)
    if value is not None:
        log.warning("Unknown status value %r, defaulting to NORMAL", value)
    return StatusCode.NORMAL


def _property_status(value: Any) -> PropertyStatusCode:
    if isinstance(value, PropertyStatusCode):
        return value
    if isinstance(value, str) and value in PropertyStatusCode.__members__:
        return PropertyStatusCode[value]
    if isinstance(value, str) and len(value) == 1:
        return property_status_of(value)
    return PropertyStatusCode.NORMAL


def _reject(log: logging.Logger, reason: str, raw: Any) -> Rejected:
    log.warning("%s: %r", reason, raw)
    return Rejected(reason)


def validate_file_path(path: Any, log: logging.Logger | None = None) -> ParseResult[str]:
    log = log or logger
    if not isinstance(path, str) or not path.strip():
        return _reject(log, "Invalid file path", path)

    normalized = path.strip().replace("\\", "/")
    if "//" in normalized or "/../" in normalized:
        return _reject(log, "File path contains invalid sequences", normalized)
    return Valid(normalized)


def validate_status(raw: Any, log: logging.Logger | None = None) -> ParseResult[StatusEntry]:
    log = log or logger
    if not _is_record(raw):
        return _reject(log, "Invalid status object", raw)

    file_path = _get(raw, "file_path", "filePath")
    if not isinstance(file_path, str) or not file_path.strip():
        return _reject(log, "Status missing valid file path", raw)

    return Valid(
        StatusEntry(
            file_path=file_path.strip().replace("\\", "/"),
            status=_status_code(_get(raw, "status"), log),
            property_status=_property_status(_get(raw, "property_status", "propertyStatus")),
            locked=bool(_get(raw, "locked")),
            working_copy_locked=bool(_get(raw, "working_copy_locked", "workingCopyLocked")),
        )
    )


def _changed_path(raw: Any) -> ChangedPath | None:
    if not _is_record(raw):
        return None
    path = _get(raw, "path")
    action = _get(raw, "action")
    if not isinstance(path, str) or not path or not isinstance(action, str) or not action:
        return None
    copyfrom = _get(raw, "copyfrom_path", "copyFromPath", "copyfrom-path")
    return ChangedPath(
        path=path,
        action=action,
        kind=_as_str(_get(raw, "kind")),
        copyfrom_path=copyfrom if isinstance(copyfrom, str) and copyfrom else None,
        copyfrom_rev=_as_int(_get(raw, "copyfrom_rev", "copyFromRevision", "copyfrom-rev")),
    )


def validate_log_entry(raw: Any, log: logging.Logger | None = None) -> ParseResult[LogEntry]:
    log = log or logger
    if not _is_record(raw):
        return _reject(log, "Invalid log entry object", raw)

    revision = _as_int(_get(raw, "revision"))
    if revision is None or revision < 0:
        return _reject(log, "Missing or invalid revision in log entry", raw)

    paths = _get(raw, "changed_paths", "changedPaths")
    changed: tuple[ChangedPath, ...] = ()
    if isinstance(paths, (list, tuple)):
        changed = tuple(p for p in (_changed_path(x) for x in paths) if p is not None)

    size = _get(raw, "size")
    repo_size = _get(raw, "repo_size", "repoSize")
    return Valid(
        LogEntry(
            revision=revision,
            author=_as_str(_get(raw, "author"), "Unknown"),
            date=_as_str(_get(raw, "date")),
            message=_as_str(_get(raw, "message")),
            size=size if isinstance(size, int) and not isinstance(size, bool) else None,
            repo_size=repo_size if isinstance(repo_size, int) and not isinstance(repo_size, bool) else None,
            changed_paths=changed,
        )
    )


def validate_info(raw: Any, log: logging.Logger | None = None) -> ParseResult[Info]:
    log = log or logger
    if not _is_record(raw):
        return _reject(log, "Invalid info object", raw)

    url = _get(raw, "url")
    if not isinstance(url, str) or not url.strip():
        return _reject(log, "Info missing valid URL", raw)

    root = _get(raw, "repository_root", "repositoryRoot")
    if not isinstance(root, str) or not root.strip():
        return _reject(log, "Info missing repository root", raw)

    revision = _as_int(_get(raw, "revision"))
    if revision is None:
        return _reject(log, "Info missing valid revision", raw)

    kind = _get(raw, "node_kind", "nodeKind")
    kind = kind.lower() if isinstance(kind, str) else None
    schedule = _get(raw, "schedule")
    schedule = schedule.lower() if isinstance(schedule, str) else None

    return Valid(
        Info(
            url=url.strip(),
            repository_root=root.strip(),
            repository_uuid=_as_str(_get(raw, "repository_uuid", "repositoryUuid")),
            revision=revision,
            last_changed_rev=_as_int(_get(raw, "last_changed_rev", "lastChangedRev")) or 0,
            last_changed_author=_as_str(_get(raw, "last_changed_author", "lastChangedAuthor"), "Unknown"),
            last_changed_date=_as_str(_get(raw, "last_changed_date", "lastChangedDate")),
            node_kind=kind if kind in NODE_KINDS else None,
            schedule=schedule if schedule in SCHEDULES else None,
        )
    )


def validate_status_list(items: Any, log: logging.Logger | None = None) -> list[StatusEntry]:
    log = log or logger
    if not isinstance(items, (list, tuple)):
        log.warning("Expected a list for status validation, got %s", type(items).__name__)
        return []
    return [r.value for r in (validate_status(x, log) for x in items) if isinstance(r, Valid)]


def validate_log_entries(items: Any, log: logging.Logger | None = None) -> list[LogEntry]:
    log = log or logger
    if not isinstance(items, (list, tuple)):
        log.warning("Expected a list for log validation, got %s", type(items).__name__)
        return []
    return [r.value for r in (validate_log_entry(x, log) for x in items) if isinstance(r, Valid)]
