"""Unit tests for Mermaid diagram validation."""

from __future__ import annotations

import pytest

from repodigest.diagram import count_edges, count_nodes, is_valid_diagram, validate_diagram, validate_with_suggestions

VALID = """graph TD
    A[Client] --> B[API]
    B --> C[Cache]
    B --> D[Fetcher]
"""


class TestValidateDiagram:
    """Tests for validate_diagram."""

    def test_valid_graph(self) -> None:
        result = validate_diagram(VALID)
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize("code", [None, "", 42])
    def test_rejects_non_strings(self, code: object) -> None:
        result = validate_diagram(code)
        assert not result.is_valid
        assert result.errors == ["Diagram code must be a non-empty string"]

    def test_whitespace_only(self) -> None:
        assert validate_diagram("   \n ").errors == ["Diagram code cannot be empty"]

    def test_missing_diagram_type(self) -> None:
        result = validate_diagram("A[x] --> B[y]")
        assert not result.is_valid
        assert any("valid Mermaid diagram type" in e for e in result.errors)

    def test_unclosed_bracket(self) -> None:
        result = validate_diagram("graph TD\n    A[Client --> B[API]")
        assert any("Unclosed brackets" in e for e in result.errors)

    def test_mismatched_bracket(self) -> None:
        result = validate_diagram("graph TD\n    A[Client) --> B")
        assert any("Mismatched brackets" in e for e in result.errors)

    def test_single_arrow(self) -> None:
        result = validate_diagram("graph TD\n    A[x] -> B[y]")
        assert any("use --> instead of ->" in e for e in result.errors)

    def test_quotes_rejected(self) -> None:
        result = validate_diagram('graph TD\n    A["Client"] --> B[API]')
        assert any("Quotes detected" in e for e in result.errors)

    def test_sequence_without_interactions(self) -> None:
        result = validate_diagram("sequenceDiagram\n    participant A")
        assert any("participant interactions" in e for e in result.errors)

    def test_limits_warn(self) -> None:
        edges = "\n".join(f"    N{i}[n{i}] --> N{i + 1}[n{i + 1}]" for i in range(30))
        result = validate_diagram(f"graph TD\n{edges}", max_nodes=10, max_edges=10)
        assert result.is_valid
        assert any("exceeds the recommended limit of 10" in w for w in result.warnings)
        assert any("Large number of connections" in w for w in result.warnings)

    def test_long_labels_warn(self) -> None:
        result = validate_diagram(f"graph TD\n    A[{'x' * 60}] --> B[y]")
        assert any("very long labels" in w for w in result.warnings)


def test_counts() -> None:
    assert count_nodes(VALID) == 4
    assert count_edges(VALID) == 3


def test_is_valid_ignores_limits() -> None:
    edges = "\n".join(f"    N{i}[n] --> M{i}[m]" for i in range(80))
    assert is_valid_diagram(f"graph TD\n{edges}")


def test_suggestions_attached() -> None:
    result = validate_with_suggestions("A[x] -> B[y]")
    assert not result.is_valid
    assert any("graph TD" in s for s in result.suggestions)

    assert validate_with_suggestions(VALID).suggestions == []
