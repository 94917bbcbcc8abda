"""
Prompt templates for the travel planning assistant.

This module contains system prompts and user prompt builders for LLM operations.
"""

from .travel import (
    ADVICE_SYSTEM_PROMPT,
    BUDGET_SYSTEM_PROMPT,
    PLAN_SYSTEM_PROMPT,
    build_advice_prompt,
    build_budget_prompt,
    build_plan_prompt,
)

__all__ = [
    "ADVICE_SYSTEM_PROMPT",
    "BUDGET_SYSTEM_PROMPT",
    "PLAN_SYSTEM_PROMPT",
    "build_advice_prompt",
    "build_budget_prompt",
    "build_plan_prompt",
]
