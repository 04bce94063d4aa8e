from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from .errors import SvnCommandError, SvnNotInstalledError, SvnPolicyError
from .models import CommandOutput
from .security import resolve_root

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE = 124
SPAWN_FAILURE_EXIT_CODE = -1

Revision = int | str | None


def _kill_process_tree_windows(pid: int) -> None:
    """
    Kill a process tree on Windows (svn may spawn helper processes such as
    ssh tunnels or credential helpers).
    """
    subprocess.run(
        ["taskkill", "/PID", str(pid), "/T", "/F"],
        capture_output=True,
        text=True,
    )


def _kill_process_group_posix(p: subprocess.Popen) -> None:
    """
    Kill entire process group on POSIX when start_new_session=True.
    Falls back to p.kill() if group kill fails.
    """
    try:
        os.killpg(p.pid, signal.SIGKILL)
    except OSError:
        try:
            p.kill()
        except OSError:
            pass


def _revision_args(revision: Revision) -> list[str]:
    if revision is None or str(revision).strip() == "":
        return []
    return ["-r", str(revision).strip()]


@dataclass(frozen=True)
class SvnRunnerConfig:
    """
    Executor configuration.
    """
    svn_path: str = "svn"
    svnadmin_path: str = "svnadmin"
    timeout_s: float = 120.0
    # None returns output exactly as produced.
    max_output_chars: int | None = None
    max_command_chars: int = 200

    # Read-only allowlist: everything else needs read_only=False.
    read_only_allowlist: tuple[str, ...] = (
        "status",
        "log",
        "cat",
        "info",
        "list",
        "diff",
        "blame",
        "proplist",
        "rev-size",
    )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "SvnRunnerConfig":
        env = os.environ if env is None else env
        timeout = env.get("GROUNDED_SVN_TIMEOUT_S")
        return cls(
            svn_path=env.get("GROUNDED_SVN_PATH") or cls.svn_path,
            svnadmin_path=env.get("GROUNDED_SVNADMIN_PATH") or cls.svnadmin_path,
            timeout_s=float(timeout) if timeout else cls.timeout_s,
        )


class SvnCommandExecutor:
    """
    Runs exactly one svn/svnadmin process per call:
      - No shell; each path is its own argv element
      - Enforces cwd (must be an existing directory)
      - Timeout (hard), killing stuck process trees / groups
      - Non-zero exit, timeout and spawn failure raise SvnCommandError
      - Standardized result: stdout/stderr exactly as produced (+ diagnostics)

    Nothing is retained between calls, so concurrent calls are independent.
    """

    def __init__(self, config: SvnRunnerConfig | None = None, *, log: logging.Logger | None = None) -> None:
        self.config = config or SvnRunnerConfig()
        self._log = log or logger

    def run(
        self,
        operation: str,
        args: Iterable[str],
        cwd: str | Path,
        *,
        admin: bool = False,
        read_only: bool = True,
        env: dict[str, str] | None = None,
    ) -> CommandOutput:
        args_list = list(args)
        self._validate_args(args_list, read_only=read_only)

        if admin:
            argv = [self.config.svnadmin_path, *args_list]
        else:
            argv = [self.config.svn_path, args_list[0], "--non-interactive", *args_list[1:]]
        command = self.format_command(argv)
        workdir = resolve_root(cwd)
        self._log.debug("Executing %s in %s", command, workdir)

        start = time.perf_counter()
        stdout, stderr, exit_code, timed_out = self._run_process(
            operation=operation,
            command=command,
            argv=argv,
            cwd=workdir,
            env=self._build_env(env),
            timeout_s=self.config.timeout_s,
        )
        duration_ms = int((time.perf_counter() - start) * 1000)

        if timed_out:
            raise SvnCommandError(
                operation,
                TIMEOUT_EXIT_CODE,
                stderr or f"Timed out after {self.config.timeout_s}s",
                command,
                timed_out=True,
            )
        if exit_code != 0:
            self._log.debug("%s exited with %s: %s", command, exit_code, stderr.strip())
            raise SvnCommandError(operation, exit_code, stderr, command)

        stdout, stderr, output_truncated = self._apply_output_ceiling(stdout, stderr)

        return CommandOutput(
            stdout=stdout,
            stderr=stderr,
            argv=argv,
            cwd=str(workdir),
            exit_code=exit_code,
            duration_ms=duration_ms,
            timed_out=False,
            output_truncated=output_truncated,
        )

    async def run_async(self, operation: str, args: Iterable[str], cwd: str | Path, **kwargs) -> CommandOutput:
        """Same as run(); the caller is suspended only while the process runs."""
        return await asyncio.to_thread(self.run, operation, list(args), cwd, **kwargs)

    def format_command(self, argv: Sequence[str]) -> str:
        text = shlex.join(argv)
        limit = self.config.max_command_chars
        if len(text) > limit:
            return text[:limit] + "..."
        return text

    # --- operations -------------------------------------------------------

    def log(
        self,
        target: str,
        revision_range: Revision,
        cwd: str | Path,
        extra_args: Sequence[str] = (),
    ) -> CommandOutput:
        args = ["log", "--xml", *_revision_args(revision_range), *extra_args, target]
        return self.run("log", args, cwd)

    def cat(self, target: str, revision: Revision, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("cat", ["cat", *_revision_args(revision), *extra_args, target], cwd)

    def info(self, target: str, revision: Revision, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("info", ["info", "--xml", *_revision_args(revision), *extra_args, target], cwd)

    def status(self, target: str | None, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        args = ["status", *extra_args]
        if target:
            args.append(target)
        return self.run("status", args, cwd)

    def list(self, target: str, revision: Revision, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("list", ["list", *_revision_args(revision), *extra_args, target], cwd)

    def diff(self, target: str, revision: Revision, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("diff", ["diff", *_revision_args(revision), *extra_args, target], cwd)

    def blame(self, target: str, revision: Revision, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("blame", ["blame", "--xml", *_revision_args(revision), *extra_args, target], cwd)

    def proplist(self, target: str, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("proplist", ["proplist", "--verbose", "--xml", *extra_args, target], cwd)

    def revert(self, targets: Sequence[str], cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("revert", ["revert", *extra_args, *targets], cwd, read_only=False)

    def update(
        self,
        targets: Sequence[str],
        revision: Revision,
        cwd: str | Path,
        extra_args: Sequence[str] = (),
    ) -> CommandOutput:
        args = ["update", *_revision_args(revision), *extra_args, *targets]
        return self.run("update", args, cwd, read_only=False)

    def commit(
        self,
        targets: Sequence[str],
        message: str,
        cwd: str | Path,
        extra_args: Sequence[str] = (),
    ) -> CommandOutput:
        # The message is a single argv element, quotes included verbatim.
        args = ["commit", "-m", message, *extra_args, *targets]
        return self.run("commit", args, cwd, read_only=False)

    def add(self, targets: Sequence[str], cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("add", ["add", *extra_args, *targets], cwd, read_only=False)

    def remove(self, targets: Sequence[str], cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("remove", ["remove", *extra_args, *targets], cwd, read_only=False)

    def move(self, old_path: str, new_path: str, cwd: str | Path, extra_args: Sequence[str] = ()) -> CommandOutput:
        return self.run("move", ["move", *extra_args, old_path, new_path], cwd, read_only=False)

    def create_repository(self, repo_path: str, extra_args: Sequence[str] = ()) -> CommandOutput:
        cwd = os.path.dirname(repo_path) or "."
        return self.run("create repository", ["create", *extra_args, repo_path], cwd, admin=True, read_only=False)

    def rev_size(self, repo_path: str, revision: Revision) -> CommandOutput:
        if not _revision_args(revision):
            raise SvnPolicyError("svnadmin rev-size requires a revision.")
        cwd = os.path.dirname(repo_path) or "."
        args = ["rev-size", repo_path, *_revision_args(revision), "-q"]
        return self.run("rev-size", args, cwd, admin=True)

    # --- internals --------------------------------------------------------

    def _validate_args(self, args_list: list[str], *, read_only: bool) -> None:
        if not args_list:
            raise SvnPolicyError("Empty svn args are not allowed.")

        if not read_only:
            return
        subcmd = args_list[0].strip().lower()
        if subcmd not in self.config.read_only_allowlist:
            raise SvnPolicyError(
                f"Blocked svn subcommand in read-only mode: '{subcmd}'. "
                f"Allowed: {', '.join(self.config.read_only_allowlist)}"
            )

    def _build_env(self, extra_env: dict[str, str] | None) -> dict[str, str]:
        """
        Build a controlled environment that prevents interactive hangs and
        keeps messages in a stable locale.
        """
        merged_env = dict(os.environ)
        merged_env.update(
            {
                "LC_ALL": "C",
                "SVN_EDITOR": "false",
            }
        )

        if extra_env:
            merged_env.update(extra_env)

        return merged_env

    def _run_process(
        self,
        *,
        operation: str,
        command: str,
        argv: list[str],
        cwd: Path,
        env: dict[str, str],
        timeout_s: float,
    ) -> tuple[str, str, int, bool]:
        """
        Run a command using Popen + communicate(timeout) to guarantee:
          - hard timeout
          - deterministic cleanup of stuck processes
        Returns: (stdout, stderr, exit_code, timed_out)
        """
        # POSIX: allow killing full process group
        popen_kwargs: dict = {}
        if os.name != "nt":
            popen_kwargs["start_new_session"] = True

        try:
            p = subprocess.Popen(
                argv,
                cwd=str(cwd),
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                shell=False,
                **popen_kwargs,
            )
        except FileNotFoundError as e:
            raise SvnNotInstalledError(
                operation,
                SPAWN_FAILURE_EXIT_CODE,
                f"{argv[0]} executable not found. Install Subversion or check the configured binary path.",
                command,
            ) from e
        except OSError as e:
            raise SvnCommandError(
                operation, SPAWN_FAILURE_EXIT_CODE, f"Failed to spawn {argv[0]}: {type(e).__name__}: {e}", command
            ) from e

        try:
            out, err = p.communicate(timeout=timeout_s)
            return out or "", err or "", int(p.returncode or 0), False

        except subprocess.TimeoutExpired:
            self._log.warning("%s timed out after %ss; killing it", command, timeout_s)
            try:
                if os.name == "nt":
                    _kill_process_tree_windows(p.pid)
                else:
                    _kill_process_group_posix(p)
            finally:
                try:
                    out, err = p.communicate(timeout=0.5)
                except (subprocess.TimeoutExpired, OSError, ValueError):
                    out, err = ("", "")

            return out or "", err or "", TIMEOUT_EXIT_CODE, True

        except Exception as e:
            # Ensure process is not left running
            try:
                if os.name == "nt":
                    _kill_process_tree_windows(p.pid)
                else:
                    _kill_process_group_posix(p)
            except Exception:
                self._log.debug("Cleanup after failed %s raised", command, exc_info=True)
            raise SvnCommandError(
                operation, SPAWN_FAILURE_EXIT_CODE, f"Failed while running svn: {type(e).__name__}: {e}", command
            ) from e

    def _apply_output_ceiling(self, stdout: str, stderr: str) -> tuple[str, str, bool]:
        """
        Enforce the optional output ceiling (stdout+stderr). Prefer keeping stderr.
        Deterministic truncation: keep up to half for stderr, rest for stdout.
        """
        if self.config.max_output_chars is None:
            return stdout, stderr, False

        max_chars = max(1, int(self.config.max_output_chars))
        if len(stdout) + len(stderr) <= max_chars:
            return stdout, stderr, False

        keep_stderr = min(len(stderr), max_chars // 2)
        keep_stdout = max_chars - keep_stderr

        return stdout[:keep_stdout], stderr[:keep_stderr], True
