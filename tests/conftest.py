from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest


def _run(cmd: list[str], cwd: Path) -> str:
    out = subprocess.check_output(
        cmd,
        cwd=str(cwd),
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
    )
    return out.strip()


@pytest.fixture()
def tmp_svn_repo(tmp_path: Path) -> Path:
    if shutil.which("svn") is None or shutil.which("svnadmin") is None:
        pytest.skip("svn/svnadmin not installed")
    repo = tmp_path / "repo"
    _run(["svnadmin", "create", str(repo)], tmp_path)
    return repo


@pytest.fixture()
def tmp_svn_wc(tmp_path: Path, tmp_svn_repo: Path) -> Path:
    """
    Creates a small deterministic working copy:
      - 1 initial commit (r1) by a known author
      - a couple of files + subdir (one name with a space)
    """
    wc = tmp_path / "wc"
    _run(["svn", "checkout", "--non-interactive", tmp_svn_repo.as_uri(), str(wc)], tmp_path)

    (wc / "README.md").write_text("# dummy\n", encoding="utf-8")
    (wc / "notes").mkdir()
    (wc / "notes" / "a b.md").write_text("first line\nsecond line\n", encoding="utf-8")

    _run(["svn", "add", "--non-interactive", "README.md", "notes"], wc)
    _run(["svn", "commit", "--non-interactive", "--username", "ci", "-m", "initial"], wc)
    _run(["svn", "update", "--non-interactive"], wc)
    return wc


@pytest.fixture()
def make_change(tmp_svn_wc: Path):
    """
    Helper: make the working copy dirty in a predictable way.
    """
    def _maker(relpath: str = "README.md", text: str = "changed\n") -> Path:
        p = tmp_svn_wc / relpath
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(text, encoding="utf-8")
        return p
    return _maker


@pytest.fixture()
def fake_popen(monkeypatch):
    """
    Replaces subprocess.Popen; records argv/cwd and returns canned output.
    Set `.stdout`, `.stderr`, `.returncode` on the returned class.
    """
    class FakePopen:
        calls: list[dict] = []
        stdout = ""
        stderr = ""
        returncode = 0

        def __init__(self, argv, **kwargs):
            FakePopen.calls.append({"argv": list(argv), "cwd": kwargs.get("cwd")})
            self.pid = 12345
            self.returncode = FakePopen.returncode

        def communicate(self, timeout=None):
            return FakePopen.stdout, FakePopen.stderr

        def wait(self, timeout=None):
            return self.returncode

        def kill(self):
            self.returncode = -9

    monkeypatch.setattr(subprocess, "Popen", FakePopen)
    return FakePopen
