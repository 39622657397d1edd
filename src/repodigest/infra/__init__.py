"""Infrastructure helpers (subprocess execution)."""

from repodigest.infra.command import CommandResult, CommandRunner

__all__ = ["CommandResult", "CommandRunner"]
