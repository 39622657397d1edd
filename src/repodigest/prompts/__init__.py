"""Prompt templates for the language-model layer."""

from repodigest.prompts.renderer import CONTEXT_MARKER, DiagramGenerator, PromptRenderer

__all__ = ["CONTEXT_MARKER", "DiagramGenerator", "PromptRenderer"]
