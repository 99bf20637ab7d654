"""Rich console and logging setup."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logger with Rich handler."""
    level = logging.DEBUG if verbose else (logging.ERROR if quiet else logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # httpx logs every Telegram long-poll request at INFO.
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)


logger = logging.getLogger("latex_report_bot")
