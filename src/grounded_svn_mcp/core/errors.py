from __future__ import annotations


class GroundedSvnMCPError(Exception):
    """Base error for the project."""


class InvalidRootError(GroundedSvnMCPError):
    pass


class SvnPolicyError(GroundedSvnMCPError):
    pass


class NotWorkingCopyError(GroundedSvnMCPError):
    def __init__(self, path: str) -> None:
        super().__init__(f'The path "{path}" is not an SVN working copy.')
        self.path = path


class SvnCommandError(GroundedSvnMCPError):
    """
    A single svn/svnadmin invocation failed: non-zero exit, timeout, or the
    process could not be spawned at all.
    """

    def __init__(
        self,
        operation: str,
        exit_code: int,
        stderr: str,
        command: str = "",
        *,
        timed_out: bool = False,
    ) -> None:
        msg = f"SVN {operation} operation failed (exit {exit_code})."
        if command:
            msg += f" Command: {command}"
        if stderr.strip():
            msg += f"\n{stderr.strip()}"
        super().__init__(msg)
        self.operation = operation
        self.exit_code = exit_code
        self.stderr = stderr
        self.command = command
        self.timed_out = timed_out


class SvnNotInstalledError(SvnCommandError):
    pass
