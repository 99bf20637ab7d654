"""Per-request working files in the shared scratch directory.

Every request gets a uuid4 id; all of its files are named
``report-<id>.<ext>`` so concurrent requests never touch each other's files.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import CleanupError

logger = logging.getLogger(__name__)

FILE_PREFIX = "report-"
BYPRODUCT_SUFFIXES = (".aux", ".log", ".out", ".toc")


def ensure_scratch_dir(path: str | Path) -> Path:
    """Create the scratch directory if absent and return it."""
    d = Path(path)
    d.mkdir(parents=True, exist_ok=True)
    return d


@dataclass
class WorkingFiles:
    """Paths owned by one request."""
    request_id: str
    directory: Path
    tex_path: Path = field(init=False)
    pdf_path: Path = field(init=False)

    def __post_init__(self) -> None:
        stem = f"{FILE_PREFIX}{self.request_id}"
        self.tex_path = self.directory / f"{stem}.tex"
        self.pdf_path = self.directory / f"{stem}.pdf"

    @property
    def byproducts(self) -> list[Path]:
        return [self.tex_path.with_suffix(s) for s in BYPRODUCT_SUFFIXES]

    def all_paths(self) -> list[Path]:
        return [self.tex_path, self.pdf_path, *self.byproducts]


def new_working_files(scratch_dir: str | Path) -> WorkingFiles:
    """Allocate paths for a new request under a fresh unique id."""
    return WorkingFiles(request_id=uuid.uuid4().hex, directory=Path(scratch_dir))


def write_markup(files: WorkingFiles, content: str) -> Path:
    """Write the generated LaTeX to the request's ``.tex`` file."""
    files.tex_path.write_text(content, encoding="utf-8")
    return files.tex_path


def cleanup_working_files(files: WorkingFiles) -> list[Path]:
    """Best-effort removal of every file belonging to *files*.

    Missing files are skipped. Deletion errors are logged and never
    raised; the remaining files are still attempted. Returns the paths
    actually removed.
    """
    removed: list[Path] = []
    for path in files.all_paths():
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Cleanup failed: %s", CleanupError(path, e))
            continue
        removed.append(path)
    logger.debug("Removed %d working file(s) for request %s", len(removed), files.request_id)
    return removed
