"""Exception types raised between the bot's stages."""

from __future__ import annotations

from pathlib import Path


class ReportBotError(Exception):
    """Base class for all report bot errors."""


class StartupConfigError(ReportBotError):
    """Required configuration is missing; the process cannot start."""


class GenerationError(ReportBotError):
    """The generation service did not return valid LaTeX within the retry budget."""

    def __init__(self, message: str, *, attempts: int, last_error: BaseException | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class CompileError(ReportBotError):
    """The LaTeX compiler exited non-zero, timed out, or could not be started."""

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
        log_excerpt: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.log_excerpt = log_excerpt
        self.timed_out = timed_out


class MissingOutputError(ReportBotError):
    """The compiler reported success but the PDF is not where it should be."""

    def __init__(self, tex_path: Path, expected_pdf: Path) -> None:
        super().__init__(f"PDF not found at {expected_pdf} after compiling {tex_path.name}")
        self.tex_path = tex_path
        self.expected_pdf = expected_pdf


class CleanupError(ReportBotError):
    """A working file could not be deleted. Logged, never raised to the user."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot delete {path}: {cause}")
        self.path = path
        self.cause = cause
