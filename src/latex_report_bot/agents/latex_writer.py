"""LaTeXWriter agent — turns a report prompt into a complete .tex document."""

from __future__ import annotations

import autogen

from ..config import build_llm_config
from ..models import LLMConfig
from ..prompts import SYSTEM_PROMPT


def make_latex_writer(llm: LLMConfig) -> autogen.AssistantAgent:
    """Create the LaTeXWriter agent."""
    return autogen.AssistantAgent(
        name="LaTeXWriter",
        system_message=SYSTEM_PROMPT,
        llm_config=build_llm_config(llm),
    )


def make_orchestrator() -> autogen.UserProxyAgent:
    """Create the non-interactive proxy that sends the prompt."""
    return autogen.UserProxyAgent(
        name="Orchestrator",
        human_input_mode="NEVER",
        code_execution_config=False,
    )
