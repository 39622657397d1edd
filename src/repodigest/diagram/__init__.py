"""Diagram syntax checking."""

from repodigest.diagram.validator import (
    DiagramValidation,
    count_edges,
    count_nodes,
    is_valid_diagram,
    validate_diagram,
    validate_with_suggestions,
)

__all__ = [
    "DiagramValidation",
    "count_edges",
    "count_nodes",
    "is_valid_diagram",
    "validate_diagram",
    "validate_with_suggestions",
]
