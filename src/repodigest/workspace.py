"""Temporary workspaces for repository fetches."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

import structlog

from repodigest.exceptions import WorkspaceError

logger = structlog.get_logger()

WORKSPACE_PREFIX = "repodigest-"


class Workspace:
    """A uniquely named temporary directory holding one clone.

    Each request gets its own workspace so concurrent extractions never
    collide.

    Example:
        >>> workspace = Workspace.create(None, "repo")
        >>> workspace.clone_dir.name
        'repo'
        >>> workspace.remove()
    """

    def __init__(self, root: Path, repo_name: str) -> None:
        self.root = root
        self.repo_name = repo_name

    @property
    def clone_dir(self) -> Path:
        """Where the repository is fetched to."""
        return self.root / self.repo_name

    @property
    def exists(self) -> bool:
        return self.root.exists()

    @classmethod
    def create(cls, base_dir: Path | None, repo_name: str) -> Workspace:
        """Create a fresh workspace directory.

        Args:
            base_dir: Parent directory (system temp dir if None).
            repo_name: Name of the clone directory inside the workspace.

        Raises:
            WorkspaceError: If the directory cannot be created.
        """
        try:
            if base_dir is not None:
                base_dir.mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=base_dir))
        except OSError as e:
            msg = f"Failed to create workspace: {e}"
            raise WorkspaceError(msg, operation="create", path=base_dir) from e

        logger.debug("Workspace created", path=str(root))
        return cls(root, repo_name)

    def remove(self) -> bool:
        """Delete the workspace tree.

        Returns:
            True if the directory is gone afterwards.
        """
        if not self.root.exists():
            return True
        try:
            shutil.rmtree(self.root)
        except OSError as e:
            logger.warning("Could not clean up workspace", path=str(self.root), error=str(e))
            return False
        logger.debug("Workspace removed", path=str(self.root))
        return True
