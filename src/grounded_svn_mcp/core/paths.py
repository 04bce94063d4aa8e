from __future__ import annotations

import logging
import os
import stat
import threading
from pathlib import PureWindowsPath
from typing import Callable

from .errors import InvalidRootError

logger = logging.getLogger(__name__)

WORKING_COPY_MARKER = ".svn"


def _is_absolute(path: str) -> bool:
    # Drive-letter paths count as absolute on every host.
    return os.path.isabs(path) or PureWindowsPath(path).is_absolute()


def _slashes(path: str) -> str:
    return path.replace("\\", "/")


class PathResolver:
    """
    Resolves paths against a configured root and finds the enclosing
    working copy of any path.

    Working-copy lookups are memoized per absolute path, misses included.
    The whole cache is dropped when the root changes; a lookup that started
    under the previous root never writes into the new cache.
    """

    def __init__(
        self,
        root: str | os.PathLike[str] | None = None,
        *,
        marker: str = WORKING_COPY_MARKER,
        stat_fn: Callable[[str], os.stat_result] = os.stat,
        log: logging.Logger | None = None,
    ) -> None:
        self._root = os.fspath(root) if root else ""
        self._marker = marker
        self._stat = stat_fn
        self._log = log or logger
        self._lock = threading.Lock()
        self._cache: dict[str, str | None] = {}
        self._generation = 0

        if not self._root:
            self._log.warning("PathResolver created without a root path")

    @property
    def root(self) -> str:
        return self._root

    def set_root(self, root: str | os.PathLike[str]) -> None:
        with self._lock:
            self._root = os.fspath(root)
            self._cache.clear()
            self._generation += 1
        self._log.info("Root path updated to %s; working copy cache cleared", self._root)

    def resolve_absolute_path(self, path: str | os.PathLike[str]) -> str:
        p = os.fspath(path)
        if _is_absolute(p):
            return p
        root = self._root
        if not root:
            raise InvalidRootError(f"Cannot resolve relative path {p!r}: no root path configured.")
        return os.path.join(root, p)

    def find_working_copy_root(self, path: str | os.PathLike[str]) -> str | None:
        absolute = self.resolve_absolute_path(path)

        with self._lock:
            generation = self._generation
            if absolute in self._cache:
                self._log.debug("Working copy cache hit for %s", absolute)
                return self._cache[absolute]

        result = self._search(absolute)

        with self._lock:
            if generation == self._generation:
                self._cache[absolute] = result
        return result

    def _search(self, absolute: str) -> str | None:
        current = absolute
        try:
            st = self._stat(current)
        except FileNotFoundError:
            # Not on disk yet (e.g. about to be added): search from the path itself.
            pass
        except OSError as e:
            self._log.warning("Cannot access %s while looking for a working copy: %s", current, e)
            return None
        else:
            if stat.S_ISREG(st.st_mode):
                current = os.path.dirname(current)

        while current and current != os.path.dirname(current):
            candidate = os.path.join(current, self._marker)
            try:
                if stat.S_ISDIR(self._stat(candidate).st_mode):
                    self._log.info("Found SVN working copy at %s", current)
                    return current
            except OSError as e:
                if not isinstance(e, FileNotFoundError):
                    self._log.debug("Skipping %s: %s", candidate, e)
            current = os.path.dirname(current)

        self._log.info("No SVN working copy found for %s", absolute)
        return None

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._generation += 1

    def compare_paths(self, a: str, b: str) -> bool:
        """Case- and separator-insensitive equality of two resolved paths."""
        na = _slashes(self.resolve_absolute_path(a)).lower()
        nb = _slashes(self.resolve_absolute_path(b)).lower()
        if na != nb:
            self._log.debug("compare_paths: %r vs %r - no match", a, b)
        return na == nb

    def is_subpath(self, parent: str, child: str) -> bool:
        parent_n = _slashes(self.resolve_absolute_path(parent))
        child_n = _slashes(self.resolve_absolute_path(child))
        if not parent_n.endswith("/"):
            parent_n += "/"
        return child_n.startswith(parent_n)

    def get_display_path(self, path: str) -> str:
        absolute = self.resolve_absolute_path(path)
        root = self._root
        if root and self.is_subpath(root, absolute):
            rel = _slashes(absolute)[len(_slashes(root).rstrip("/")) + 1 :]
            return f"./{rel}"
        if root and _slashes(absolute).rstrip("/") == _slashes(root).rstrip("/"):
            return "."
        return _slashes(absolute)

    def dirname(self, path: str) -> str:
        return os.path.dirname(self.resolve_absolute_path(path))

    def basename(self, path: str) -> str:
        return os.path.basename(self.resolve_absolute_path(path))
