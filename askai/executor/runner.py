"""Async shell command execution with output capture."""

import asyncio
import logging
import shutil
from typing import List, Optional

from askai.errors import ExecutionError

logger = logging.getLogger(__name__)


def _shell_argv(command: str) -> List[str]:
    """Run through bash when available, otherwise the POSIX shell."""
    shell = shutil.which("bash") or "/bin/sh"
    return [shell, "-c", command]


class CommandRunner:
    """
    Executes one shell command string and captures its output.

    Each call spawns a subprocess and awaits it, so many runners can
    be in flight at once on the same event loop.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def with_dry_run(self, dry_run: bool) -> "CommandRunner":
        self.dry_run = dry_run
        return self

    async def execute(self, command: str, cwd: Optional[str] = None) -> str:
        """
        Run command through the shell.

        Returns:
            Captured stdout

        Raises:
            ExecutionError: Launch failure or non-zero exit (message is stderr,
                or the exit status when stderr is empty)
        """
        if self.dry_run:
            logger.info(f"[DRY-RUN] {command}")
            return f"[DRY-RUN] {command}"

        logger.debug(f"Executing: {command}")
        try:
            process = await asyncio.create_subprocess_exec(
                *_shell_argv(command),
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_bytes, stderr_bytes = await process.communicate()
        except (OSError, ValueError) as e:
            # ValueError: NUL byte in the command or cwd
            raise ExecutionError(f"Failed to launch command: {e}") from e

        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        if process.returncode != 0:
            message = stderr.strip() or f"Command exited with status {process.returncode}"
            raise ExecutionError(message)

        return stdout
