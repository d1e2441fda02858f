"""Prompt construction for commit messages and commit grouping."""

from aicmt.prompts.builder import PromptBuilder, PromptConfig
from aicmt.prompts.grouping import GroupingPromptBuilder, GROUPING_SYSTEM_PROMPT

__all__ = [
    "PromptBuilder",
    "PromptConfig",
    "GroupingPromptBuilder",
    "GROUPING_SYSTEM_PROMPT",
]
