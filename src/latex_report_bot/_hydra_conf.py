"""Hydra structured config dataclasses.

These mirror the Pydantic ``BotConfig`` for Hydra schema validation.
At runtime the Hydra DictConfig is converted to ``BotConfig`` via
``cli._to_bot_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hydra.core.config_store import ConfigStore


@dataclass
class LLMConf:
    api_key: str = "${oc.env:OPENAI_API_KEY,''}"
    endpoint: str = "${oc.env:OPENAI_BASE_URL,''}"
    api_version: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 2500
    timeout: int = 120


@dataclass
class CompilerConf:
    engine: str = "pdflatex"
    passes: int = 2
    timeout: int = 120


@dataclass
class RetryConf:
    max_attempts: int = 3
    delay: float = 0.0
    backoff: float = 1.0


@dataclass
class BotConf:
    # --- Dispatch + CLI-only fields ---
    mode: str = "run"
    verbose: bool = False
    quiet: bool = False
    title: str | None = None
    description: str | None = None
    output_dir: str = "output/"
    tex_file: str | None = None

    # --- BotConfig fields (1:1 mapping) ---
    telegram_token: str = "${oc.env:TELEGRAM_BOT_TOKEN,''}"
    command: str = "report"
    scratch_dir: str = "tmp"
    error_excerpt_chars: int = 1000
    concurrent_updates: bool = True
    drop_pending_updates: bool = False

    llm: LLMConf = field(default_factory=LLMConf)
    compiler: CompilerConf = field(default_factory=CompilerConf)
    retry: RetryConf = field(default_factory=RetryConf)


# Keys present in BotConf that are NOT part of BotConfig.
CLI_ONLY_KEYS = frozenset({
    "mode", "verbose", "quiet", "title", "description", "output_dir", "tex_file",
})


def register_configs() -> None:
    """Register the structured config schema with Hydra's ConfigStore."""
    cs = ConfigStore.instance()
    cs.store(name="bot_schema", node=BotConf)
