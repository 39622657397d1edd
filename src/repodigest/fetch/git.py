"""Git clone based repository fetcher."""

from __future__ import annotations

import threading
from pathlib import Path

import structlog

from repodigest.exceptions import CommandCancelled, CommandError, CommandTimeout, FetchErrorKind
from repodigest.fetch.base import classify_fetch_error, fetch_error
from repodigest.fetch.locator import validate_locator
from repodigest.infra.command import CommandRunner

logger = structlog.get_logger()


class GitFetcher:
    """Fetches repositories with a shallow ``git clone``.

    Example:
        >>> fetcher = GitFetcher(CommandRunner())
        >>> fetcher.fetch("https://github.com/user/repo.git", Path("/tmp/x/repo"), 60)
        PosixPath('/tmp/x/repo')
    """

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        git_bin: str = "git",
        depth: int | None = 1,
    ) -> None:
        """Initialize the fetcher.

        Args:
            runner: CommandRunner used to invoke git.
            git_bin: Git executable.
            depth: Clone depth (None for full history).
        """
        self.runner = runner or CommandRunner()
        self.git_bin = git_bin
        self.depth = depth

    def clone_args(self, locator: str, destination: Path) -> list[str]:
        """Build the ``git clone`` argument list."""
        args = ["clone"]
        if self.depth is not None:
            args += ["--depth", str(self.depth), "--single-branch"]
        args += ["--", locator, str(destination)]
        return args

    def fetch(
        self,
        locator: str,
        destination: Path,
        timeout: float,
        *,
        cancel: threading.Event | None = None,
    ) -> Path:
        """Clone ``locator`` into ``destination``.

        Args:
            locator: Repository URL.
            destination: Directory to clone into (must not exist yet).
            timeout: Hard timeout in seconds.
            cancel: Optional event aborting the clone.

        Returns:
            The destination path.

        Raises:
            LocatorValidationError: If the locator is malformed.
            FetchError: If the clone fails.
        """
        target = validate_locator(locator)
        log = logger.bind(locator=target, destination=str(destination))
        log.info("Cloning repository")

        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            result = self.runner.run_git(
                self.clone_args(target, destination),
                cwd=destination.parent,
                timeout=timeout,
                cancel=cancel,
                git_bin=self.git_bin,
            )
        except CommandCancelled as e:
            raise fetch_error(FetchErrorKind.CANCELLED, e.stderr) from e
        except CommandTimeout as e:
            log.warning("Clone timed out", timeout=timeout)
            raise fetch_error(FetchErrorKind.TIMEOUT, e.stderr) from e
        except CommandError as e:
            raise fetch_error(FetchErrorKind.UNKNOWN, str(e)) from e

        if not result.ok:
            kind = classify_fetch_error(result.stderr)
            log.warning("Clone failed", returncode=result.returncode, kind=kind.value)
            raise fetch_error(kind, result.stderr)

        if not destination.is_dir():
            raise fetch_error(
                FetchErrorKind.UNKNOWN,
                result.stderr,
                message="Clone appeared to succeed but directory was not created.",
            )

        log.info("Repository cloned")
        return destination
