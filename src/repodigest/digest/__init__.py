"""Digest construction: exclusion rules, tree listing and content budgeting.

Key components:
- build_exclusion: layered ignore rules compiled into one predicate
- render_tree: bounded, directories-first listing
- collect_candidates: sorted, non-excluded files
- ContentBudgeter: per-file and global budgets with skip reasons
"""

from repodigest.digest.budget import BudgetResult, ContentBudgeter, SkippedFile, SkipReason
from repodigest.digest.candidates import FileCandidate, collect_candidates
from repodigest.digest.ignore import (
    DEFAULT_EXCLUDES,
    ExclusionPredicate,
    IgnoreRuleSet,
    LayerOrigin,
    build_exclusion,
)
from repodigest.digest.tree import NOISE_DIRS, render_tree

__all__ = [
    "DEFAULT_EXCLUDES",
    "NOISE_DIRS",
    "BudgetResult",
    "ContentBudgeter",
    "ExclusionPredicate",
    "FileCandidate",
    "IgnoreRuleSet",
    "LayerOrigin",
    "SkipReason",
    "SkippedFile",
    "build_exclusion",
    "collect_candidates",
    "render_tree",
]
