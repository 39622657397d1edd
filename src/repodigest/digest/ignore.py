"""Layered exclusion rules for repository walks.

Rules come from up to three layers, loaded in this order:

- ``repo-ignore``: the repository's ``.gitignore`` and ``.git/info/exclude``
- ``tool-ignore``: the repository's ``.repodigestignore``
- ``default``: the built-in patterns in ``DEFAULT_EXCLUDES``

Each layer is compiled with git-wildmatch semantics, so negations only
re-include paths within the layer that declared them. A path is excluded
when any layer matches it. The ``.git`` directory is always excluded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog
from pathspec import GitIgnoreSpec

from repodigest.config import IgnoreOptions

logger = structlog.get_logger()

VCS_DIR = ".git"
TOOL_IGNORE_FILE = ".repodigestignore"

DEFAULT_EXCLUDES: tuple[str, ...] = (
    # Dependencies and build output
    "node_modules/",
    "bower_components/",
    "vendor/",
    "__pycache__/",
    ".venv/",
    "venv/",
    ".tox/",
    ".mypy_cache/",
    ".pytest_cache/",
    ".ruff_cache/",
    "dist/",
    "build/",
    "out/",
    "target/",
    ".next/",
    ".nuxt/",
    ".gradle/",
    "coverage/",
    ".idea/",
    ".vscode/",
    "*.egg-info/",
    # Compiled and binary artifacts
    "*.pyc",
    "*.pyo",
    "*.class",
    "*.o",
    "*.so",
    "*.dll",
    "*.dylib",
    "*.exe",
    "*.bin",
    "*.jar",
    "*.wasm",
    # Media
    "*.png",
    "*.jpg",
    "*.jpeg",
    "*.gif",
    "*.bmp",
    "*.ico",
    "*.webp",
    "*.svg",
    "*.mp3",
    "*.mp4",
    "*.wav",
    "*.mov",
    "*.avi",
    "*.pdf",
    "*.ttf",
    "*.otf",
    "*.woff",
    "*.woff2",
    # Archives
    "*.zip",
    "*.tar",
    "*.gz",
    "*.tgz",
    "*.bz2",
    "*.xz",
    "*.7z",
    "*.rar",
    # Lock files
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "poetry.lock",
    "Pipfile.lock",
    "Cargo.lock",
    "composer.lock",
    "Gemfile.lock",
    "uv.lock",
    "*.lock",
    # Misc
    ".DS_Store",
    "*.min.js",
    "*.min.css",
    "*.map",
)


class LayerOrigin(str, Enum):
    """Where a layer's patterns came from."""

    REPO_IGNORE = "repo-ignore"
    TOOL_IGNORE = "tool-ignore"
    DEFAULT = "default"


@dataclass
class IgnoreLayer:
    """One compiled source of exclusion patterns."""

    origin: LayerOrigin
    patterns: list[str]
    source: str = ""
    spec: GitIgnoreSpec = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.spec = GitIgnoreSpec.from_lines(self.patterns)

    def matches(self, rel_path: str) -> bool:
        return self.spec.match_file(rel_path)


@dataclass
class IgnoreRuleSet:
    """Ordered exclusion layers for one workspace."""

    layers: list[IgnoreLayer] = field(default_factory=list)

    def add(self, origin: LayerOrigin, patterns: list[str], source: str = "") -> None:
        if patterns:
            self.layers.append(IgnoreLayer(origin=origin, patterns=patterns, source=source))

    @property
    def pattern_count(self) -> int:
        return sum(len(layer.patterns) for layer in self.layers)


class ExclusionPredicate:
    """Callable answering "is this relative path excluded?".

    Example:
        >>> rules = IgnoreRuleSet()
        >>> rules.add(LayerOrigin.DEFAULT, ["*.png"])
        >>> predicate = ExclusionPredicate(rules)
        >>> predicate("img/logo.png"), predicate("src/app.py")
        (True, False)
    """

    def __init__(self, rules: IgnoreRuleSet) -> None:
        self.rules = rules

    def __call__(self, rel_path: str, is_dir: bool = False) -> bool:
        path = rel_path.replace("\\", "/").strip("/")
        if not path:
            return False
        if path == VCS_DIR or path.startswith(f"{VCS_DIR}/"):
            return True
        if is_dir:
            path = f"{path}/"
        return any(layer.matches(path) for layer in self.rules.layers)

    def describe(self) -> list[str]:
        """Human-readable descriptions of every applied pattern."""
        return [
            f"[{layer.origin.value}] {pattern}"
            for layer in self.rules.layers
            for pattern in layer.patterns
        ]


def read_ignore_file(path: Path) -> list[str]:
    """Read pattern lines from an ignore file, dropping blanks and comments."""
    if not path.is_file():
        return []
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Failed to read ignore file", path=str(path), error=str(e))
        return []

    patterns = []
    for line in text.splitlines():
        stripped = line.rstrip()
        if not stripped.strip() or stripped.lstrip().startswith("#"):
            continue
        patterns.append(stripped)
    return patterns


def load_rules(root: Path, options: IgnoreOptions) -> IgnoreRuleSet:
    """Load every enabled layer for the workspace at ``root``."""
    rules = IgnoreRuleSet()

    if options.respect_gitignore:
        for candidate in (root / ".gitignore", root / VCS_DIR / "info" / "exclude"):
            rules.add(LayerOrigin.REPO_IGNORE, read_ignore_file(candidate), source=candidate.name)

    if options.respect_tool_ignore:
        rules.add(LayerOrigin.TOOL_IGNORE, read_ignore_file(root / TOOL_IGNORE_FILE), source=TOOL_IGNORE_FILE)

    if options.use_default_excludes:
        rules.add(LayerOrigin.DEFAULT, list(DEFAULT_EXCLUDES), source="built-in")

    logger.debug(
        "Exclusion rules loaded",
        layers=[layer.origin.value for layer in rules.layers],
        patterns=rules.pattern_count,
    )
    return rules


def build_exclusion(root: Path, options: IgnoreOptions | None = None) -> ExclusionPredicate:
    """Build the exclusion predicate for a fetched workspace.

    Args:
        root: Root of the fetched repository.
        options: Which layers to load (all by default).

    Returns:
        ExclusionPredicate over POSIX paths relative to ``root``.
    """
    return ExclusionPredicate(load_rules(root, options or IgnoreOptions()))
