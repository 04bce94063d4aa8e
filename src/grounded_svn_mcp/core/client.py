from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Sequence
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from .errors import InvalidRootError, NotWorkingCopyError, SvnCommandError
from .models import BlameEntry, Info, LogEntry, StatusCode, StatusEntry
from .parsers import (
    parse_blame_xml,
    parse_info_xml,
    parse_list_size,
    parse_log_xml,
    parse_properties_xml,
    parse_rev_size,
    parse_status,
)
from .paths import PathResolver
from .svn_runner import Revision, SvnCommandExecutor, SvnRunnerConfig

logger = logging.getLogger(__name__)

_ALREADY_VERSIONED = "is already under version control"


def _local_repository_path(url: str) -> str | None:
    """file:// repository URL -> local path usable by svnadmin."""
    parsed = urlparse(url)
    if parsed.scheme != "file":
        return None
    return url2pathname(unquote(parsed.path))


class SvnClient:
    """
    Working-copy operations for one configured root: resolves paths, runs
    svn in the enclosing working copy and parses the result.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        config: SvnRunnerConfig | None = None,
        resolver: PathResolver | None = None,
        executor: SvnCommandExecutor | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self._log = log or logger
        self.resolver = resolver or PathResolver(root, log=self._log)
        self.executor = executor or SvnCommandExecutor(config, log=self._log)

    @property
    def root(self) -> str:
        return self.resolver.root

    def _locate(self, path: str | None) -> tuple[str, str]:
        absolute = self.resolver.resolve_absolute_path(path if path else self.root)
        wc_root = self.resolver.find_working_copy_root(absolute)
        if wc_root is None:
            raise NotWorkingCopyError(path or self.root)
        return absolute, wc_root

    def is_working_copy(self, path: str | None = None) -> bool:
        try:
            self._locate(path)
        except (NotWorkingCopyError, InvalidRootError):
            return False
        return True

    # --- read operations --------------------------------------------------

    def get_status(self, path: str | None = None) -> list[StatusEntry]:
        absolute, wc_root = self._locate(path)
        res = self.executor.status(absolute if path else None, wc_root)
        return parse_status(res.stdout, self._log)

    def get_info(self, path: str | None = None, revision: Revision = None) -> Info | None:
        absolute, wc_root = self._locate(path)
        res = self.executor.info(absolute, revision, wc_root)
        return parse_info_xml(res.stdout)

    def get_log(
        self,
        path: str | None = None,
        *,
        revision_range: Revision = None,
        limit: int | None = 100,
        verbose: bool = True,
        with_sizes: bool = False,
    ) -> list[LogEntry]:
        absolute, wc_root = self._locate(path)

        # Query the repository URL so history is not capped at the BASE revision.
        target = absolute
        try:
            info = self.get_info(absolute)
        except SvnCommandError as e:
            self._log.warning("svn info failed for %s, logging local path: %s", absolute, e.stderr.strip())
            info = None
        if info is not None:
            target = info.url

        extra: list[str] = []
        if verbose:
            extra.append("--verbose")
        if limit:
            extra += ["--limit", str(int(limit))]

        res = self.executor.log(target, revision_range, wc_root, extra)
        entries = parse_log_xml(res.stdout)
        if with_sizes:
            entries = self._with_sizes(absolute, entries)
        return entries

    def _with_sizes(self, path: str, entries: list[LogEntry]) -> list[LogEntry]:
        out: list[LogEntry] = []
        for entry in entries:
            size = self.file_size_at_revision(path, entry.revision)
            repo_size = self.revision_size(entry.revision)
            out.append(replace(entry, size=size, repo_size=repo_size))
        return out

    def get_blame(self, path: str, revision: Revision = None) -> list[BlameEntry]:
        absolute, wc_root = self._locate(path)
        res = self.executor.blame(absolute, revision, wc_root)
        return parse_blame_xml(res.stdout)

    def get_properties(self, path: str) -> dict[str, str]:
        absolute, wc_root = self._locate(path)
        res = self.executor.proplist(absolute, wc_root)
        return parse_properties_xml(res.stdout)

    def get_diff(self, path: str, revision: Revision = None, revision2: Revision = None) -> str:
        absolute, wc_root = self._locate(path)
        # Revision 0 is valid; only None means "not given".
        if revision is not None and revision2 is not None:
            rng: Revision = f"{revision}:{revision2}"
        else:
            rng = revision if revision is not None else revision2
        return self.executor.diff(absolute, rng, wc_root).stdout

    def cat(self, path: str, revision: Revision = None) -> str:
        absolute, wc_root = self._locate(path)
        return self.executor.cat(absolute, revision, wc_root).stdout

    def list(self, path: str | None = None, revision: Revision = None, *, recursive: bool = False) -> list[str]:
        absolute, wc_root = self._locate(path)
        extra = ["--recursive"] if recursive else []
        res = self.executor.list(absolute, revision, wc_root, extra)
        return [ln.rstrip() for ln in res.stdout.splitlines() if ln.strip()]

    def file_size_at_revision(self, path: str, revision: Revision) -> int | None:
        absolute, wc_root = self._locate(path)
        try:
            res = self.executor.list(absolute, revision, wc_root, ["--verbose"])
        except SvnCommandError as e:
            self._log.warning("Could not get size of %s at r%s: %s", absolute, revision, e.stderr.strip())
            return None
        return parse_list_size(res.stdout)

    def revision_size(self, revision: Revision) -> int | None:
        """Repository storage size of a revision (local file:// repositories only)."""
        info = self.get_info(None)
        repo_path = _local_repository_path(info.repository_root) if info else None
        if repo_path is None:
            self._log.debug("Repository is not local; revision size unavailable")
            return None
        try:
            res = self.executor.rev_size(repo_path, revision)
        except SvnCommandError as e:
            self._log.warning("Could not get size of r%s: %s", revision, e.stderr.strip())
            return None
        return parse_rev_size(res.stdout)

    # --- write operations -------------------------------------------------

    def revert(self, paths: Sequence[str]) -> str:
        targets, wc_root = self._locate_many(paths)
        return self.executor.revert(targets, wc_root).stdout

    def update(self, paths: Sequence[str] | None = None, revision: Revision = None) -> str:
        if not paths:
            _, wc_root = self._locate(None)
            return self.executor.update([wc_root], revision, wc_root).stdout
        targets, wc_root = self._locate_many(paths)
        return self.executor.update(targets, revision, wc_root).stdout

    def update_to_revision(self, path: str, revision: Revision) -> str:
        """Discard local edits of one file and bring it to `revision`."""
        absolute, wc_root = self._locate(path)
        self.executor.revert([absolute], wc_root)
        return self.executor.update([absolute], revision, wc_root).stdout

    def add(self, path: str, *, depth_empty: bool = False) -> str:
        absolute, wc_root = self._locate(path)
        self._add_parent_directories(absolute, wc_root)
        extra = ["--depth", "empty"] if depth_empty else []
        try:
            return self.executor.add([absolute], wc_root, extra).stdout
        except SvnCommandError as e:
            if _ALREADY_VERSIONED in e.stderr:
                self._log.info("%s is already under version control", absolute)
                return ""
            raise

    def _add_parent_directories(self, absolute: str, wc_root: str) -> None:
        pending: list[str] = []
        current = os.path.dirname(absolute)
        while current != wc_root and current != os.path.dirname(current) and self.resolver.is_subpath(wc_root, current):
            status = self.executor.status(current, wc_root, ["--depth", "empty"])
            entries = parse_status(status.stdout, self._log)
            if not any(e.status == StatusCode.UNVERSIONED for e in entries):
                break
            pending.insert(0, current)
            current = os.path.dirname(current)

        for directory in pending:
            self._log.info("Adding parent directory %s", directory)
            self.executor.add([directory], wc_root, ["--depth", "empty"])

    def commit(self, paths: Sequence[str], message: str, *, add_unversioned: bool = True) -> str:
        targets, wc_root = self._locate_many(paths)
        if add_unversioned:
            for target in targets:
                entries = parse_status(self.executor.status(target, wc_root, ["--depth", "empty"]).stdout, self._log)
                if any(e.status == StatusCode.UNVERSIONED for e in entries):
                    self.add(target)
        return self.executor.commit(targets, message, wc_root).stdout

    def remove(self, paths: Sequence[str], *, keep_local: bool = True) -> str:
        targets, wc_root = self._locate_many(paths)
        extra = ["--keep-local"] if keep_local else []
        return self.executor.remove(targets, wc_root, extra).stdout

    def move(self, old_path: str, new_path: str) -> str:
        old_abs, wc_root = self._locate(old_path)
        new_abs = self.resolver.resolve_absolute_path(new_path)
        return self.executor.move(old_abs, new_abs, wc_root).stdout

    def create_repository(self, name: str) -> str:
        """Create `.<name>` under the root with svnadmin; returns its path."""
        if not self.root:
            raise InvalidRootError("Cannot create a repository: no root path configured.")
        clean = name.strip().lstrip(".")
        if not clean or "/" in clean or "\\" in clean:
            raise InvalidRootError(f"Invalid repository name: {name!r}")
        repo_path = os.path.join(self.root, f".{clean}")
        self.executor.create_repository(repo_path)
        self._log.info("SVN repository created at %s", repo_path)
        return repo_path

    def _locate_many(self, paths: Sequence[str]) -> tuple[list[str], str]:
        if not paths:
            raise InvalidRootError("At least one path is required.")
        located = [self._locate(p) for p in paths]
        return [absolute for absolute, _ in located], located[0][1]
