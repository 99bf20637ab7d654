"""Pydantic models for the LaTeX report bot."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class ReportRequest(BaseModel):
    """Title and description parsed from one ``/report`` message."""
    title: str = Field(..., description="First line of the command payload")
    description: str = Field(..., description="Remainder of the payload, or a placeholder")


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------

class CompilationWarning(BaseModel):
    """A single warning or error from LaTeX compilation."""
    file: str = Field(default="", description="Source file")
    line: int | None = Field(default=None, description="Line number")
    message: str = Field(..., description="Warning/error message")
    severity: Severity = Field(default=Severity.WARNING)
    context: str = Field(default="", description="Line window around the error")


class CompilationResult(BaseModel):
    """Result of a successful compiler run."""
    success: bool = Field(..., description="Whether every pass exited 0")
    pdf_path: str | None = Field(default=None, description="Path to generated PDF, if present")
    errors: list[CompilationWarning] = Field(default_factory=list)
    warnings: list[CompilationWarning] = Field(default_factory=list)
    page_count: int | None = Field(default=None, description="PDF page count from the log")
    log_excerpt: str = Field(default="", description="Relevant log excerpt")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

class RetryPolicy(BaseModel):
    """Bounded retry with an optional exponential delay between attempts."""
    max_attempts: int = Field(default=3, ge=1, description="Total attempts, including the first")
    delay: float = Field(default=0.0, ge=0.0, description="Seconds to wait after the first failure")
    backoff: float = Field(default=1.0, ge=1.0, description="Multiplier applied to the delay per failure")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number *attempt* (1-based)."""
        if self.delay <= 0:
            return 0.0
        return self.delay * self.backoff ** (attempt - 1)


class LLMConfig(BaseModel):
    """Generation service settings."""
    api_key: str = Field(default="", description="OpenAI API key (or ${ENV_VAR})")
    endpoint: str = Field(default="", description="Optional base URL / Azure endpoint")
    api_version: str = Field(default="", description="API version (Azure only)")
    model: str = Field(default="gpt-4o-mini")
    temperature: float = Field(default=0.2)
    max_tokens: int = Field(default=2500)
    timeout: int = Field(default=120, description="LLM request timeout in seconds")


class CompilerConfig(BaseModel):
    """External LaTeX compiler settings."""
    engine: str = Field(default="pdflatex", description="pdflatex, xelatex, or lualatex")
    passes: int = Field(default=2, ge=1, description="Sequential runs to resolve references")
    timeout: int = Field(default=120, description="Per-pass timeout in seconds")


class BotConfig(BaseModel):
    """Full bot configuration loaded from config.yaml / Hydra."""
    telegram_token: str = Field(default="", description="Telegram bot token (or ${ENV_VAR})")
    command: str = Field(default="report", description="Command name without the slash")
    scratch_dir: str = Field(default="tmp", description="Shared directory for per-request files")
    error_excerpt_chars: int = Field(default=1000, description="Max characters of an error sent back to the user")
    concurrent_updates: bool = Field(default=True, description="Handle updates concurrently")
    drop_pending_updates: bool = Field(
        default=False, description="Discard commands queued at Telegram while the bot was offline",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
