"""Prompt templates for the audit operations."""

from .prompt_builder import PromptBuilder

__all__ = ["PromptBuilder"]
