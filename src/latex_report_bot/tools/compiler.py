"""LaTeX compilation with log parsing.

Runs the engine directly in batch mode, once per pass, so that labels and
references written to the ``.aux`` file on the first pass resolve on the
second. Any non-zero exit or timeout raises ``CompileError``.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

from ..errors import CompileError
from ..models import CompilationResult, CompilationWarning, Severity

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tool availability
# ---------------------------------------------------------------------------


def _find_engine(engine: str) -> str | None:
    """Find the LaTeX engine executable."""
    path = shutil.which(engine)
    if path:
        return path
    path = shutil.which(f"{engine}.exe")
    return path


# ---------------------------------------------------------------------------
# Log parsing
# ---------------------------------------------------------------------------

_ERROR_RE = re.compile(r"^!\s*(.*)", re.MULTILINE)
_LINE_RE = re.compile(r"^l\.(\d+)\s*(.*)", re.MULTILINE)
_WARNING_RE = re.compile(
    r"(?:LaTeX|Package|Class)\s+(?:\w+\s+)?Warning[:\s]*(.*?)(?:\n(?!\s)|$)",
    re.MULTILINE | re.DOTALL,
)
_PAGES_RE = re.compile(r"Output written on .+?\((\d+)\s+page")


def _extract_context(tex_content: str, line_num: int, window: int = 2) -> str:
    """Extract +-window lines around a line number."""
    lines = tex_content.split("\n")
    start = max(0, line_num - 1 - window)
    end = min(len(lines), line_num + window)
    context_lines: list[str] = []
    for i in range(start, end):
        marker = ">>>" if i == line_num - 1 else "   "
        context_lines.append(f"{marker} {i + 1:4d} | {lines[i]}")
    return "\n".join(context_lines)


def parse_log(
    log_path: str | Path,
    tex_content: str = "",
) -> tuple[list[CompilationWarning], list[CompilationWarning]]:
    """Parse a LaTeX .log file for errors and warnings."""
    log = Path(log_path)
    if not log.exists():
        return [], []

    log_text = log.read_text(encoding="utf-8", errors="replace")
    errors: list[CompilationWarning] = []
    warnings: list[CompilationWarning] = []

    for em in _ERROR_RE.finditer(log_text):
        line_num = None
        context = ""

        after_error = log_text[em.end():em.end() + 500]
        line_match = _LINE_RE.search(after_error)
        if line_match:
            line_num = int(line_match.group(1))
            if tex_content:
                context = _extract_context(tex_content, line_num)

        errors.append(CompilationWarning(
            file=log.with_suffix(".tex").name,
            line=line_num,
            message=em.group(1).strip(),
            severity=Severity.ERROR,
            context=context,
        ))

    for wm in _WARNING_RE.finditer(log_text):
        msg = wm.group(1).strip().replace("\n", " ")
        if msg:
            warnings.append(CompilationWarning(
                file=log.with_suffix(".tex").name,
                message=msg,
                severity=Severity.WARNING,
            ))

    return errors, warnings


def count_pages_from_log(log_path: str | Path) -> int | None:
    """Read ``Output written on x.pdf (N pages, ...)`` from a LaTeX log."""
    log = Path(log_path)
    if not log.exists():
        return None
    try:
        text = log.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    m = _PAGES_RE.search(text)
    return int(m.group(1)) if m else None


def format_errors(errors: list[CompilationWarning], limit: int = 3) -> str:
    """Short human-readable summary of the first *limit* errors."""
    parts: list[str] = []
    for err in errors[:limit]:
        where = f"l.{err.line}: " if err.line else ""
        parts.append(f"{where}{err.message}")
        if err.context:
            parts.append(err.context)
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _read_tex(tex_path: Path) -> str:
    try:
        return tex_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


def run_pdflatex(
    tex_path: str | Path,
    cwd: str | Path,
    *,
    engine: str = "pdflatex",
    passes: int = 2,
    timeout: int = 120,
) -> CompilationResult:
    """Compile *tex_path* inside *cwd*, running the engine *passes* times.

    A pass runs only if the previous one exited 0. ``subprocess.run`` kills
    and reaps the child on timeout.

    Raises:
        CompileError: the engine is missing, a pass exits non-zero, or a
            pass exceeds *timeout* seconds.
    """
    tex = Path(tex_path)
    out = Path(cwd)
    engine_cmd = _find_engine(engine)
    if not engine_cmd:
        raise CompileError(f"{engine} not found on PATH")

    cmd = [engine_cmd, "-interaction=batchmode", tex.name]
    log_path = out / f"{tex.stem}.log"

    for pass_num in range(1, passes + 1):
        logger.info("Compile pass %d/%d: %s (in %s)", pass_num, passes, " ".join(cmd), out)
        try:
            proc = subprocess.run(
                cmd, cwd=str(out), capture_output=True, text=True, timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CompileError(
                f"{engine} timed out after {timeout}s (pass {pass_num})",
                timed_out=True,
            ) from e

        if proc.returncode != 0:
            errors, _ = parse_log(log_path, _read_tex(tex))
            excerpt = format_errors(errors)
            message = f"{engine} exited {proc.returncode}\n{proc.stderr}\n{proc.stdout}"
            if excerpt:
                message = f"{message}\n{excerpt}"
            logger.warning("%s pass %d failed with exit code %d", engine, pass_num, proc.returncode)
            raise CompileError(
                message.strip(),
                returncode=proc.returncode,
                stdout=proc.stdout or "",
                stderr=proc.stderr or "",
                log_excerpt=excerpt,
            )

    pdf_path = out / f"{tex.stem}.pdf"
    errors, warnings = parse_log(log_path)
    logger.info(
        "%s finished: pdf_exists=%s, warnings=%d, cwd=%s",
        engine, pdf_path.exists(), len(warnings), out,
    )
    return CompilationResult(
        success=True,
        pdf_path=str(pdf_path) if pdf_path.exists() else None,
        errors=errors,
        warnings=warnings,
        page_count=count_pages_from_log(log_path),
        log_excerpt=format_errors(errors or warnings),
    )
