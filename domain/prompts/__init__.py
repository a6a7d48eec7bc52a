"""Prompt templates for the decision oracle."""

from .system_prompt import (  # noqa: F401
    AGENT_INSTRUCTIONS,
    AGENT_JSON_REMINDER,
    AI_FILL_INSTRUCTIONS,
)
from .task_prompts import (  # noqa: F401
    build_agent_prompt,
    build_ai_fill_prompt,
    summarize_profile,
)

__all__ = [
    "AGENT_INSTRUCTIONS",
    "AGENT_JSON_REMINDER",
    "AI_FILL_INSTRUCTIONS",
    "build_agent_prompt",
    "build_ai_fill_prompt",
    "summarize_profile",
]
