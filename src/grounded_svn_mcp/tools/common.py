from __future__ import annotations

from functools import lru_cache

from ..core.client import SvnClient
from ..core.security import resolve_root
from ..core.svn_runner import SvnRunnerConfig


@lru_cache(maxsize=32)
def _client_for(root: str) -> SvnClient:
    # One client per root keeps the working-copy lookup cache warm across calls.
    return SvnClient(root, config=SvnRunnerConfig.from_env())


def make_client(root: str = ".") -> SvnClient:
    return _client_for(str(resolve_root(root)))
