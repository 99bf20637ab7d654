"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from latex_report_bot.models import BotConfig


class FakeReplier:
    """Records replies in order; documents are checked for existence when sent."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.document_paths: list[Path] = []
        self.documents_existed: list[bool] = []

    async def reply_text(self, text: str) -> None:
        self.events.append(("text", text))

    async def reply_document(self, path: Path, filename: str) -> None:
        self.events.append(("document", filename))
        self.document_paths.append(Path(path))
        self.documents_existed.append(Path(path).exists())

    @property
    def texts(self) -> list[str]:
        return [v for kind, v in self.events if kind == "text"]

    @property
    def documents(self) -> list[str]:
        return [v for kind, v in self.events if kind == "document"]


@pytest.fixture
def sample_latex() -> str:
    """A minimal valid LaTeX document for testing."""
    return r"""\documentclass[11pt]{article}
\usepackage{amsmath}

\title{Weekly Status}
\date{\today}

\begin{document}
\maketitle

\section{Summary}
\label{sec:summary}
Everything is on track, see Section~\ref{sec:summary}.

\end{document}
"""


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    d = tmp_path / "tmp"
    d.mkdir()
    return d


@pytest.fixture
def bot_config(scratch_dir: Path) -> BotConfig:
    return BotConfig(
        telegram_token="123:abc",
        scratch_dir=str(scratch_dir),
        llm={"api_key": "sk-test"},
    )


@pytest.fixture
def replier() -> FakeReplier:
    return FakeReplier()
