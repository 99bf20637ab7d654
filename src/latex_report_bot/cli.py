"""CLI entry point using Hydra.

Usage examples:
  latex-report-bot                                   # mode=run: start the Telegram bot
  latex-report-bot mode=generate title="Weekly Status" description="All on track." output_dir=out/
  latex-report-bot mode=compile tex_file=out/report-1234.tex
  latex-report-bot retry.max_attempts=5 compiler.timeout=60 verbose=true
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import hydra
from omegaconf import DictConfig, OmegaConf

from ._hydra_conf import CLI_ONLY_KEYS, register_configs
from .config import apply_env_fallbacks, require_secrets
from .errors import CompileError, GenerationError, StartupConfigError
from .logging_config import console, logger, setup_logging
from .models import BotConfig

register_configs()

# ---------------------------------------------------------------------------
# Hydra DictConfig → Pydantic BotConfig bridge
# ---------------------------------------------------------------------------


def _to_bot_config(cfg: DictConfig) -> BotConfig:
    """Convert a Hydra *DictConfig* to a Pydantic ``BotConfig``.

    CLI-only keys (``mode``, ``verbose``, etc.) are stripped before validation.
    Secret env-var fallbacks are applied afterwards.
    """
    container: dict[str, Any] = OmegaConf.to_container(cfg, resolve=True)  # type: ignore[assignment]
    for key in CLI_ONLY_KEYS:
        container.pop(key, None)
    config = BotConfig.model_validate(container)
    return apply_env_fallbacks(config)


def _require(config: BotConfig, *, telegram: bool) -> None:
    try:
        require_secrets(config, telegram=telegram)
    except StartupConfigError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Mode handlers
# ---------------------------------------------------------------------------


def _run_mode(cfg: DictConfig) -> None:
    config = _to_bot_config(cfg)
    _require(config, telegram=True)

    from .bot import run_bot

    console.print(f"[bold]Starting bot[/] (/{config.command}, model {config.llm.model})")
    run_bot(config)


def _generate_mode(cfg: DictConfig) -> None:
    config = _to_bot_config(cfg)
    _require(config, telegram=False)

    title = cfg.get("title")
    if not title:
        console.print("[red]title is required for generate mode[/]")
        sys.exit(1)
    description = cfg.get("description") or "No description provided."

    from .generator import LatexGenerator
    from .tools.compiler import run_pdflatex
    from .tools.workspace import ensure_scratch_dir, new_working_files, write_markup

    generator = LatexGenerator(config.llm, config.retry)
    try:
        latex = generator.generate(title, description)
    except GenerationError as e:
        console.print(f"[red]Generation failed after {e.attempts} attempts:[/] {e}")
        sys.exit(1)

    files = new_working_files(ensure_scratch_dir(cfg.get("output_dir", "output/")))
    write_markup(files, latex)
    console.print(f"[green]LaTeX written: {files.tex_path}[/]")

    try:
        result = run_pdflatex(
            files.tex_path,
            files.directory,
            engine=config.compiler.engine,
            passes=config.compiler.passes,
            timeout=config.compiler.timeout,
        )
    except CompileError as e:
        console.print("[red]Compilation failed.[/]")
        console.print(str(e)[: config.error_excerpt_chars])
        sys.exit(1)

    if result.pdf_path:
        console.print(f"[green]PDF: {result.pdf_path}[/] (pages: {result.page_count or 'unknown'})")
    else:
        console.print(f"[yellow]Compiler succeeded but {files.pdf_path} is missing.[/]")
        sys.exit(1)


def _compile_mode(cfg: DictConfig) -> None:
    config = _to_bot_config(cfg)
    tex_file = cfg.get("tex_file")
    if not tex_file:
        console.print("[red]tex_file is required for compile mode[/]")
        sys.exit(1)

    from .tools.compiler import run_pdflatex

    tex = Path(tex_file).resolve()
    try:
        result = run_pdflatex(
            tex,
            tex.parent,
            engine=config.compiler.engine,
            passes=config.compiler.passes,
            timeout=config.compiler.timeout,
        )
    except CompileError as e:
        console.print("[red]Compilation failed.[/]")
        console.print(str(e))
        sys.exit(1)

    console.print(f"[green]Compilation successful: {result.pdf_path}[/]")
    for warn in result.warnings:
        logger.debug("LaTeX warning: %s", warn.message)


_MODE_DISPATCH: dict[str, Any] = {
    "run": _run_mode,
    "generate": _generate_mode,
    "compile": _compile_mode,
}


# ---------------------------------------------------------------------------
# Hydra entry point
# ---------------------------------------------------------------------------


@hydra.main(config_path="conf", config_name="config", version_base=None)
def hydra_entry(cfg: DictConfig) -> None:
    """Hydra-managed CLI entry point."""
    setup_logging(verbose=cfg.get("verbose", False), quiet=cfg.get("quiet", False))

    mode = cfg.get("mode", "run")
    handler = _MODE_DISPATCH.get(mode)
    if handler is None:
        console.print(f"[red]Unknown mode: {mode!r}. Choose from: {', '.join(_MODE_DISPATCH)}[/]")
        sys.exit(1)

    handler(cfg)


def main() -> None:
    """Package entry point (``[project.scripts]`` target)."""
    hydra_entry()  # pylint: disable=no-value-for-parameter
