"""Tests for prompt rendering."""

from __future__ import annotations

from pathlib import Path

import jinja2
import pytest

from repodigest.prompts import PromptRenderer
from repodigest.prompts.renderer import CONTEXT_MARKER

DIGEST = "# Repository Context: demo\nSource: https://github.com/example/demo.git\n"


@pytest.fixture
def renderer() -> PromptRenderer:
    return PromptRenderer()


class TestPromptRenderer:
    """Tests for PromptRenderer."""

    def test_lists_builtin_templates(self, renderer: PromptRenderer) -> None:
        assert renderer.list_templates() == ["diagram", "summary"]

    def test_diagram_prompt(self, renderer: PromptRenderer) -> None:
        prompt = renderer.build_prompt("diagram", digest=DIGEST)

        instructions, digest = prompt.split(f"\n\n{CONTEXT_MARKER}\n", 1)
        assert digest == DIGEST
        assert "Produce 3 diagrams" in instructions
        assert "- Main data flow through the system" in instructions
        assert "under 50 nodes" in instructions

    def test_diagram_custom_focuses(self, renderer: PromptRenderer) -> None:
        prompt = renderer.build_prompt("diagram", digest=DIGEST, focuses=["Deployment"], max_nodes=20)
        assert "Produce 1 diagrams" in prompt
        assert "- Deployment" in prompt
        assert "under 20 nodes" in prompt

    def test_summary_focus_optional(self, renderer: PromptRenderer) -> None:
        assert "Pay particular attention" not in renderer.build_prompt("summary", digest=DIGEST)
        focused = renderer.build_prompt("summary", digest=DIGEST, focus="the cache layer")
        assert "Pay particular attention to: the cache layer" in focused

    def test_digest_passed_verbatim(self, renderer: PromptRenderer) -> None:
        digest = "{{ not_a_variable }} {% raw %}"
        assert renderer.build_prompt("summary", digest=digest).endswith(digest)

    def test_unknown_template(self, renderer: PromptRenderer) -> None:
        with pytest.raises(jinja2.TemplateNotFound):
            renderer.render("missing")

    def test_strict_undefined(self, tmp_path: Path) -> None:
        (tmp_path / "custom.md").write_text("Hello {{ name }}")
        renderer = PromptRenderer(tmp_path)

        assert renderer.render("custom", name="repo") == "Hello repo"
        with pytest.raises(jinja2.UndefinedError):
            renderer.render("custom")
