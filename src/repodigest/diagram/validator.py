"""Lightweight syntax checks for Mermaid diagrams.

These checks are textual heuristics; they catch common generation mistakes
without a full Mermaid parser.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DIAGRAM_TYPE_RE = re.compile(
    r"^(graph\s+(TB|TD|BT|RL|LR)|flowchart\s+(TB|TD|BT|RL|LR)|sequenceDiagram|classDiagram"
    r"|stateDiagram|erDiagram|journey|gitgraph|pie|quadrantChart|requirement|mindmap|timeline"
    r"|zenuml|sankey|architecture|graph|flowchart)",
    re.IGNORECASE,
)

BRACKETS = {"[": "]", "(": ")", "{": "}"}
CLOSERS = set(BRACKETS.values())

NODE_PATTERNS = (
    re.compile(r"\w+\[.*?\]"),
    re.compile(r"\w+\(.*?\)"),
    re.compile(r"\w+\{.*?\}"),
    re.compile(r"\w+\[\[.*?\]\]"),
    re.compile(r"\w+\[\(.*?\)\]"),
    re.compile(r"\w+>\w+\]"),
    re.compile(r"\w+\(\(.*?\)\)"),
)
EDGE_PATTERNS = (
    re.compile(r"-->"),
    re.compile(r"---"),
    re.compile(r"-\.-"),
    re.compile(r"==>"),
    re.compile(r"==="),
    re.compile(r"-\.\."),
)
LONG_LABEL_RE = re.compile(r"\[([^\[\]]{50,})\]")
MAX_EDGE_LINES = 20


@dataclass
class DiagramValidation:
    """Outcome of validating one diagram."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


def _check_syntax(code: str) -> list[str]:
    errors: list[str] = []
    lines = [line.strip() for line in code.split("\n") if line.strip()]

    stack: list[str] = []
    for line in lines:
        for char in line:
            if char in BRACKETS:
                stack.append(char)
            elif char in CLOSERS:
                opened = stack.pop() if stack else None
                if opened is None or BRACKETS[opened] != char:
                    errors.append(f"Mismatched brackets: found '{char}' without proper opening bracket")
                    break
    if stack:
        errors.append(f"Unclosed brackets found: {', '.join(stack)}")

    if re.match(r"^(graph|flowchart)", code, re.IGNORECASE):
        has_nodes = any(
            "[" in line or "(" in line or "{" in line or re.search(r"\w+\s*(-->|---)", line)
            for line in lines
        )
        if not has_nodes:
            errors.append("Graph diagrams should contain nodes or connections")
        for line in lines:
            if " -> " in line and " --> " not in line:
                errors.append(f'Possible incomplete arrow syntax in line: "{line}" (use --> instead of ->)')

    if re.match(r"^sequenceDiagram", code, re.IGNORECASE):
        if not any("->" in line for line in lines):
            errors.append("Sequence diagrams should contain participant interactions")

    return errors


def count_nodes(code: str) -> int:
    """Approximate the number of node definitions."""
    return sum(len(pattern.findall(code)) for pattern in NODE_PATTERNS)


def count_edges(code: str) -> int:
    """Approximate the number of edges."""
    return sum(len(pattern.findall(code)) for pattern in EDGE_PATTERNS)


def _common_issues(code: str) -> list[str]:
    warnings = []
    long_labels = LONG_LABEL_RE.findall(code)
    if long_labels:
        warnings.append(
            f"Found {len(long_labels)} node(s) with very long labels that might affect readability"
        )
    edge_lines = [line for line in code.split("\n") if "-->" in line or "---" in line]
    if len(edge_lines) > MAX_EDGE_LINES:
        warnings.append("Large number of connections detected - diagram might be complex to read")
    return warnings


def validate_diagram(
    code: object,
    *,
    check_limits: bool = True,
    max_nodes: int = 50,
    max_edges: int = 100,
) -> DiagramValidation:
    """Validate Mermaid diagram code.

    Args:
        code: Diagram source.
        check_limits: Whether to warn about node/edge counts.
        max_nodes: Recommended node ceiling.
        max_edges: Recommended edge ceiling.

    Returns:
        DiagramValidation with errors and warnings.
    """
    if not code or not isinstance(code, str):
        return DiagramValidation(False, ["Diagram code must be a non-empty string"])

    trimmed = code.strip()
    if not trimmed:
        return DiagramValidation(False, ["Diagram code cannot be empty"])

    errors: list[str] = []
    warnings: list[str] = []

    if not DIAGRAM_TYPE_RE.match(trimmed):
        errors.append(
            "Diagram must start with a valid Mermaid diagram type "
            "(graph TD, flowchart LR, sequenceDiagram, etc.)"
        )

    errors.extend(_check_syntax(trimmed))

    if check_limits:
        nodes = count_nodes(trimmed)
        edges = count_edges(trimmed)
        if nodes > max_nodes:
            warnings.append(
                f"Diagram has {nodes} nodes, which exceeds the recommended limit of {max_nodes}"
            )
        if edges > max_edges:
            warnings.append(
                f"Diagram has {edges} edges, which exceeds the recommended limit of {max_edges}"
            )

    if '"' in trimmed or "'" in trimmed:
        errors.append("Quotes detected in diagram - quotes are not allowed in node labels")

    warnings.extend(_common_issues(trimmed))
    return DiagramValidation(not errors, errors, warnings)


def is_valid_diagram(code: object) -> bool:
    """Quick check without node/edge limits."""
    return validate_diagram(code, check_limits=False).is_valid


def validate_with_suggestions(code: object) -> DiagramValidation:
    """Validate and attach fix suggestions for common errors."""
    result = validate_diagram(code)
    if result.is_valid:
        return result

    def mentions(text: str) -> bool:
        return any(text in error for error in result.errors)

    if mentions("diagram type"):
        result.suggestions.append('Try starting your diagram with "graph TD" or "flowchart TD"')
    if mentions("brackets"):
        result.suggestions.append("Check for missing or mismatched brackets, parentheses, or braces")
        result.suggestions.append("Ensure all opening brackets have corresponding closing brackets")
    if mentions("arrow syntax"):
        result.suggestions.append("Check for missing arrows (-->) or incorrect arrow syntax")
        result.suggestions.append("Common arrows: -->, ---, -.->, ==>, ===")
    if mentions("nodes or connections"):
        result.suggestions.append("Add some nodes like A[Label] or connections like A --> B")
    return result
