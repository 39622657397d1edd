"""Process-level settings loaded from the environment."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

from repodigest.config import ExtractionConfig


class RepoDigestSettings(BaseSettings):
    """Settings shared by the CLI and the HTTP service.

    Environment variables:
        REPODIGEST_CACHE_DIR: Directory holding the digest cache
        REPODIGEST_WORKSPACE_DIR: Parent directory for clone workspaces
        REPODIGEST_CONFIG: Optional YAML extraction config
        REPODIGEST_GIT_BIN: Git executable
        REPODIGEST_HOST: Host to bind the HTTP service
        REPODIGEST_PORT: Port to bind the HTTP service
        REPODIGEST_CACHE_TTL_HOURS: Cache expiry window
    """

    cache_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "cache",
        validation_alias="REPODIGEST_CACHE_DIR",
        description="Directory holding index.json and extractions/",
    )
    workspace_dir: Path | None = Field(
        default=None,
        validation_alias="REPODIGEST_WORKSPACE_DIR",
        description="Parent directory for temporary clones (system temp if unset)",
    )
    config_path: Path | None = Field(
        default=None,
        validation_alias="REPODIGEST_CONFIG",
        description="YAML file with extraction defaults",
    )
    git_bin: str = Field(
        default="git",
        validation_alias="REPODIGEST_GIT_BIN",
        description="Git executable used for cloning",
    )
    host: str = Field(
        default="127.0.0.1",
        validation_alias="REPODIGEST_HOST",
        description="Host to bind",
    )
    port: int = Field(
        default=3001,
        validation_alias="REPODIGEST_PORT",
        description="Port to bind",
    )
    cache_ttl_hours: float = Field(
        default=24.0,
        gt=0,
        validation_alias="REPODIGEST_CACHE_TTL_HOURS",
        description="Age after which cached digests are ignored",
    )

    model_config = {
        "env_prefix": "",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    def load_extraction_config(self) -> ExtractionConfig:
        """Return the configured extraction defaults."""
        if self.config_path is None:
            return ExtractionConfig.default()
        return ExtractionConfig.load(self.config_path)
