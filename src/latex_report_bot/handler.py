"""Request handler — one ``/report`` message from parse to cleanup.

Stages: parse → generate → write → compile → deliver → cleanup. Each stage
that can fail replies to the user and stops; nothing here lets a single
request's failure escape to the transport.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Callable, Protocol

from .errors import CompileError, GenerationError, MissingOutputError
from .generator import LatexGenerator
from .models import BotConfig, CompilationResult, ReportRequest
from .tools.compiler import run_pdflatex
from .tools.workspace import WorkingFiles, cleanup_working_files, new_working_files, write_markup

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Report"
NO_DESCRIPTION = "No description provided."
MISSING_DESCRIPTION = "Please provide description in the same message after newline or run again."

CompileFn = Callable[..., CompilationResult]


def usage_text(command: str = "report") -> str:
    return f"Usage: /{command} <Title>\\n<Description>."


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _strip_command(text: str, command: str) -> str:
    """Remove a leading ``/command`` or ``/command@BotName`` token."""
    pattern = rf"^/{re.escape(command)}(?:@\w+)?(?=\s|$)\s*"
    return re.sub(pattern, "", text.strip(), count=1, flags=re.IGNORECASE).strip()


def parse_report_command(text: str, command: str = "report") -> ReportRequest | None:
    """Split a ``/report`` message into title and description.

    Returns ``None`` when there is nothing after the command.
    """
    payload = _strip_command(text or "", command)
    if not payload:
        return None

    if "\n" in payload:
        first_line, rest = payload.split("\n", 1)
        return ReportRequest(
            title=first_line.strip() or DEFAULT_TITLE,
            description=rest.strip() or NO_DESCRIPTION,
        )
    return ReportRequest(title=payload, description=MISSING_DESCRIPTION)


# ---------------------------------------------------------------------------
# Transport seam
# ---------------------------------------------------------------------------

class ChatReplier(Protocol):
    """The two reply operations the handler needs from the chat transport."""

    async def reply_text(self, text: str) -> None: ...
    async def reply_document(self, path: Path, filename: str) -> None: ...


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------

class ReportHandler:
    """Generate, compile and deliver one report per inbound command."""

    def __init__(
        self,
        config: BotConfig,
        generator: LatexGenerator,
        *,
        compile_fn: CompileFn = run_pdflatex,
        scratch_dir: str | Path | None = None,
    ) -> None:
        self.config = config
        self.generator = generator
        self.compile_fn = compile_fn
        self.scratch_dir = Path(scratch_dir if scratch_dir is not None else config.scratch_dir)

    def _truncate(self, text: str) -> str:
        return text[: self.config.error_excerpt_chars]

    async def handle(self, text: str, replier: ChatReplier) -> None:
        """Handle one message. Never raises."""
        try:
            await self._handle(text, replier)
        except Exception as e:
            logger.exception("Unhandled error while handling report request")
            try:
                await replier.reply_text(self._truncate(f"Internal error: {e}"))
            except Exception:
                logger.exception("Could not deliver internal-error reply")

    async def _handle(self, text: str, replier: ChatReplier) -> None:
        request = parse_report_command(text, self.config.command)
        if request is None:
            await replier.reply_text(usage_text(self.config.command))
            return

        await replier.reply_text(
            f'Got it, generating LaTeX for "{request.title}"... This may take a few seconds.'
        )

        try:
            latex = await asyncio.to_thread(
                self.generator.generate, request.title, request.description,
            )
        except GenerationError as e:
            await replier.reply_text(
                f"Failed to produce valid LaTeX after {e.attempts} attempts.\n{self._truncate(str(e))}"
            )
            return

        files = new_working_files(self.scratch_dir)
        write_markup(files, latex)
        logger.info("Request %s: wrote %s", files.request_id, files.tex_path.name)

        try:
            await asyncio.to_thread(
                self.compile_fn,
                files.tex_path,
                files.directory,
                engine=self.config.compiler.engine,
                passes=self.config.compiler.passes,
                timeout=self.config.compiler.timeout,
            )
        except CompileError as e:
            logger.warning("Request %s: compilation failed: %s", files.request_id, e.log_excerpt or e.returncode)
            await replier.reply_text("Failed to compile LaTeX after generation.\nSending .tex and the error:")
            await replier.reply_document(files.tex_path, files.tex_path.name)
            await replier.reply_text(self._truncate(f"Error: {e}"))
            return

        if not files.pdf_path.exists():
            logger.warning("Request %s: %s", files.request_id, MissingOutputError(files.tex_path, files.pdf_path))
            await replier.reply_text("PDF not found after compilation. Sending .tex for inspection.")
            await replier.reply_document(files.tex_path, files.tex_path.name)
            return

        try:
            await self._deliver(files, replier)
        finally:
            cleanup_working_files(files)

    async def _deliver(self, files: WorkingFiles, replier: ChatReplier) -> None:
        await replier.reply_text("Here's your report:")
        await replier.reply_document(files.pdf_path, files.pdf_path.name)
        await replier.reply_document(files.tex_path, files.tex_path.name)
        logger.info("Request %s: delivered %s", files.request_id, files.pdf_path.name)
