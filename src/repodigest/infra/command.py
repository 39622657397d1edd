"""Subprocess command runner with logging."""

from __future__ import annotations

import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from repodigest.exceptions import CommandCancelled, CommandError, CommandTimeout

logger = structlog.get_logger()

# How often a running process is checked for cancellation/deadline
POLL_INTERVAL = 0.2

# How long output is collected after a kill before the pipes are abandoned
KILL_GRACE = 2.0


@dataclass
class CommandResult:
    """Result of a captured command execution.

    Attributes:
        returncode: Exit code of the process.
        stdout: Captured standard output.
        stderr: Captured standard error.
        command: The command that was run.
        cwd: Working directory where command ran.
        duration: Wall-clock seconds the process ran.
    """

    returncode: int
    stdout: str
    stderr: str
    command: list[str]
    cwd: Path | None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """True if the process exited with status 0."""
        return self.returncode == 0


class CommandRunner:
    """Runs subprocess commands with consistent logging.

    All subprocess calls in repodigest go through this class so that
    timeouts, cancellation and logging behave the same everywhere.

    Example:
        >>> runner = CommandRunner()
        >>> result = runner.run_capture(["echo", "hello"], timeout=5)
        >>> result.stdout.strip()
        'hello'
    """

    def __init__(self, dry_run: bool = False) -> None:
        """Initialize the command runner.

        Args:
            dry_run: If True, commands are logged but not executed.
        """
        self.dry_run = dry_run

    def run_capture(
        self,
        command: list[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
        check: bool = False,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """Run a command and capture stdout/stderr in memory.

        The process is killed when the timeout elapses or when ``cancel``
        is set, whichever comes first.

        Args:
            command: Command and arguments to run.
            cwd: Working directory for the command.
            timeout: Hard timeout in seconds.
            cancel: Optional event that aborts the process when set.
            check: If True, raise on non-zero exit code.
            env: Environment variables (merged with current env).

        Returns:
            CommandResult with exit code and captured output.

        Raises:
            CommandTimeout: If the timeout elapsed.
            CommandCancelled: If the cancel event was set.
            CommandError: If the command cannot be started, or if check=True
                and the command fails.
        """
        log = logger.bind(command=command, cwd=str(cwd) if cwd else None)
        log.info("Running command")

        if self.dry_run:
            log.info("Dry run - skipping execution")
            return CommandResult(returncode=0, stdout="", stderr="", command=command, cwd=cwd)

        full_env = os.environ.copy()
        if env:
            full_env.update(env)

        started = time.monotonic()
        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=full_env,
                start_new_session=True,
            )
        except FileNotFoundError as e:
            log.error("Command not found", command=command[0])
            msg = f"Command not found: {command[0]}"
            raise CommandError(msg, command=command, cwd=cwd) from e
        except OSError as e:
            log.error("Failed to start process", error=str(e))
            msg = f"Failed to start process: {' '.join(command)}"
            raise CommandError(msg, command=command, cwd=cwd) from e

        deadline = started + timeout if timeout is not None else None
        while True:
            try:
                stdout, stderr = process.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel is not None and cancel.is_set():
                    stdout, stderr = self._kill(process)
                    log.warning("Command cancelled")
                    msg = f"Command cancelled: {' '.join(command)}"
                    raise CommandCancelled(msg, command=command, cwd=cwd, stderr=stderr) from None
                if deadline is not None and time.monotonic() >= deadline:
                    stdout, stderr = self._kill(process)
                    log.error("Command timed out", timeout=timeout)
                    msg = f"Command timed out after {timeout}s: {' '.join(command)}"
                    raise CommandTimeout(msg, command=command, cwd=cwd, stderr=stderr) from None

        duration = time.monotonic() - started
        log.info("Command completed", returncode=process.returncode, duration=round(duration, 2))

        if check and process.returncode != 0:
            msg = f"Command failed with exit code {process.returncode}: {' '.join(command)}"
            raise CommandError(
                msg,
                command=command,
                returncode=process.returncode,
                cwd=cwd,
                stderr=stderr,
            )

        return CommandResult(
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr,
            command=command,
            cwd=cwd,
            duration=duration,
        )

    @staticmethod
    def _kill(process: subprocess.Popen[str]) -> tuple[str, str]:
        """Kill a process and its descendants, then collect what output it produced.

        The process leads its own session, so killing the group also reaches
        helpers such as ``git-remote-https`` that would otherwise hold the
        pipes open. Output collection is bounded by ``KILL_GRACE``.
        """
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug("Process group already gone", pid=process.pid)
            process.kill()

        try:
            stdout, stderr = process.communicate(timeout=KILL_GRACE)
        except subprocess.TimeoutExpired:
            logger.warning("Output pipes still open after kill", pid=process.pid)
            for stream in (process.stdout, process.stderr):
                if stream is not None:
                    stream.close()
            process.wait()
            return "", ""
        return stdout or "", stderr or ""

    def run_git(
        self,
        args: list[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
        git_bin: str = "git",
        check: bool = False,
    ) -> CommandResult:
        """Run a git command with interactive prompts disabled.

        Args:
            args: Git subcommand and arguments.
            cwd: Working directory.
            timeout: Hard timeout in seconds.
            cancel: Optional cancel event.
            git_bin: Git executable to invoke.
            check: If True, raise on non-zero exit code.

        Returns:
            CommandResult of the git invocation.
        """
        return self.run_capture(
            [git_bin, *args],
            cwd=cwd,
            timeout=timeout,
            cancel=cancel,
            check=check,
            env={"GIT_TERMINAL_PROMPT": "0"},
        )
