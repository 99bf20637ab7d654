"""LaTeX generation with bounded retry and output validation.

The generation service is reached through a ``complete(prompt) -> str``
callable. The default drives an AG2 ``LaTeXWriter`` agent for a single turn;
tests pass a stub instead.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable

from .agents.latex_writer import make_latex_writer, make_orchestrator
from .errors import GenerationError
from .models import LLMConfig, RetryPolicy
from .prompts import DOCUMENT_START_MARKER, build_report_prompt

logger = logging.getLogger(__name__)

CompleteFn = Callable[[str], str]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _extract_latex(response: Any) -> str:
    """Extract the LaTeX string from an AG2 chat result (or a plain string)."""
    if isinstance(response, str):
        text = response
    elif hasattr(response, "summary") and response.summary:
        text = str(response.summary)
    elif hasattr(response, "chat_history") and response.chat_history:
        last = response.chat_history[-1]
        text = last.get("content", "") if isinstance(last, dict) else str(last)
    else:
        text = ""

    # Strip markdown fences if present
    text = re.sub(r"```(?:latex|tex)?\n?", "", text or "")
    text = re.sub(r"```\s*$", "", text)
    return text.strip()


def looks_like_document(text: str) -> bool:
    """True if *text* contains the LaTeX document-start marker."""
    return DOCUMENT_START_MARKER in text


def agent_complete(llm: LLMConfig) -> CompleteFn:
    """Return a ``complete`` callable backed by a one-turn AG2 chat."""

    def complete(prompt: str) -> str:
        writer = make_latex_writer(llm)
        orchestrator = make_orchestrator()
        response = orchestrator.initiate_chat(writer, message=prompt, max_turns=1)
        return _extract_latex(response)

    return complete


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class LatexGenerator:
    """Ask the generation service for a LaTeX report, retrying on bad output.

    Any exception from ``complete``, an empty reply, or a reply without
    ``\\documentclass`` counts as a failed attempt. After the last attempt
    fails a ``GenerationError`` carries the last underlying message.
    """

    def __init__(
        self,
        llm: LLMConfig,
        retry: RetryPolicy | None = None,
        *,
        complete: CompleteFn | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.llm = llm
        self.retry = retry or RetryPolicy()
        self.complete = complete or agent_complete(llm)
        self._sleep = sleep

    def generate(self, title: str, description: str, max_attempts: int | None = None) -> str:
        attempts = self.retry.max_attempts if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {attempts}")
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            logger.info("Attempt %d/%d: requesting LaTeX for %r", attempt, attempts, title)
            prompt = build_report_prompt(title, description)
            try:
                latex = _extract_latex(self.complete(prompt))
                if not latex:
                    raise ValueError("Generation service returned an empty response.")
                if not looks_like_document(latex):
                    raise ValueError("Generation service returned invalid LaTeX.")
                return latex
            except Exception as e:
                last_error = e
                logger.warning("LaTeX generation failed on attempt %d: %s", attempt, e)

            if attempt < attempts:
                delay = self.retry.delay_for(attempt)
                if delay > 0:
                    self._sleep(delay)

        raise GenerationError(
            str(last_error) if last_error else "No attempts were made.",
            attempts=attempts,
            last_error=last_error,
        )


def generate_latex_with_retry(
    title: str,
    description: str,
    llm: LLMConfig,
    max_attempts: int = 3,
    *,
    complete: CompleteFn | None = None,
) -> str:
    """One-shot helper: build a ``LatexGenerator`` and generate."""
    generator = LatexGenerator(llm, RetryPolicy(max_attempts=max_attempts), complete=complete)
    return generator.generate(title, description)
