"""Configuration schema for repository context extraction."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from repodigest.exceptions import ConfigError


class IgnoreOptions(BaseModel):
    """Which exclusion layers are active.

    Attributes:
        respect_gitignore: Load the repository's .gitignore and .git/info/exclude.
        respect_tool_ignore: Load the repository's .repodigestignore.
        use_default_excludes: Apply the built-in dependency/binary/lockfile patterns.
    """

    respect_gitignore: bool = True
    respect_tool_ignore: bool = True
    use_default_excludes: bool = True


class BudgetConfig(BaseModel):
    """Hard ceilings enforced while building a digest.

    Attributes:
        max_files: Maximum number of files whose content is included.
        max_total_chars: Character budget for the digest body.
        max_file_bytes: Files larger than this are skipped unread.
        max_lines_per_file: Lines kept per included file.
        max_line_chars: Characters kept per line.
        max_tree_items: Entries shown in the directory tree.
    """

    max_files: int = Field(default=500, ge=1)
    max_total_chars: int = Field(default=10 * 1024 * 1024, ge=1)
    max_file_bytes: int = Field(default=1024 * 1024, ge=1)
    max_lines_per_file: int = Field(default=2000, ge=1)
    max_line_chars: int = Field(default=500, ge=1)
    max_tree_items: int = Field(default=1000, ge=1)


class CleanupConfig(BaseModel):
    """Whether the temporary workspace is removed, per outcome."""

    on_success: bool = True
    on_error: bool = True


class ExtractionConfig(BaseModel):
    """Complete configuration for one extraction request.

    Attributes:
        ignore: Exclusion layer toggles.
        budgets: Size and count ceilings.
        cleanup: Workspace cleanup policy.
        use_cache: Whether to read and write the digest cache.
        fetch_timeout: Hard timeout for the clone step, in seconds.

    Example:
        >>> config = ExtractionConfig(budgets=BudgetConfig(max_files=10))
        >>> config.budgets.max_files
        10
    """

    ignore: IgnoreOptions = Field(default_factory=IgnoreOptions)
    budgets: BudgetConfig = Field(default_factory=BudgetConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    use_cache: bool = True
    fetch_timeout: float = Field(default=60.0, gt=0)

    def with_overrides(self, **overrides: Any) -> ExtractionConfig:
        """Return a copy with flat budget/toggle overrides applied.

        Keys matching a budget or ignore field are routed to that section;
        ``None`` values are ignored.
        """
        data = self.model_dump()
        for key, value in overrides.items():
            if value is None:
                continue
            if key in BudgetConfig.model_fields:
                data["budgets"][key] = value
            elif key in IgnoreOptions.model_fields:
                data["ignore"][key] = value
            elif key in ("cleanup_on_success", "cleanup_on_error"):
                data["cleanup"][key.removeprefix("cleanup_")] = value
            elif key in ExtractionConfig.model_fields:
                data[key] = value
            else:
                msg = f"Unknown configuration override: {key}"
                raise ConfigError(msg, field=key)
        return ExtractionConfig.model_validate(data)

    def to_yaml(self) -> str:
        """Serialize the config to YAML.

        Returns:
            YAML string representation.
        """
        data = self.model_dump(mode="json")
        return yaml.dump(data, default_flow_style=False, sort_keys=False)

    def save(self, path: Path) -> None:
        """Save the config to a YAML file."""
        path.write_text(self.to_yaml())

    @classmethod
    def from_yaml(cls, yaml_content: str) -> ExtractionConfig:
        """Parse config from YAML content.

        Args:
            yaml_content: YAML string to parse.

        Returns:
            Parsed ExtractionConfig instance.

        Raises:
            ValueError: If the YAML is invalid.
        """
        try:
            data: Any = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            msg = f"Invalid YAML: {e}"
            raise ValueError(msg) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            msg = "Config YAML must be a mapping"
            raise ValueError(msg)

        return cls.model_validate(data)

    @classmethod
    def load(cls, path: Path) -> ExtractionConfig:
        """Load config from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the YAML is invalid.
        """
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        return cls.from_yaml(path.read_text())

    @classmethod
    def default(cls) -> ExtractionConfig:
        """Create a default configuration."""
        return cls()
