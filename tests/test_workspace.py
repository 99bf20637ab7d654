"""Tests for tools/workspace.py — per-request files and best-effort cleanup."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

from latex_report_bot.tools.workspace import (
    BYPRODUCT_SUFFIXES,
    WorkingFiles,
    cleanup_working_files,
    ensure_scratch_dir,
    new_working_files,
    write_markup,
)


def _touch_all(files: WorkingFiles) -> None:
    for path in files.all_paths():
        path.write_text("x")


class TestWorkingFiles:
    def test_names_share_request_id(self, tmp_path: Path):
        files = WorkingFiles(request_id="abc123", directory=tmp_path)
        assert files.tex_path == tmp_path / "report-abc123.tex"
        assert files.pdf_path == tmp_path / "report-abc123.pdf"
        assert [p.suffix for p in files.byproducts] == list(BYPRODUCT_SUFFIXES)
        assert all(p.stem == "report-abc123" for p in files.all_paths())

    def test_ids_are_unique(self, tmp_path: Path):
        ids = {new_working_files(tmp_path).request_id for _ in range(200)}
        assert len(ids) == 200

    def test_ensure_scratch_dir_creates_nested(self, tmp_path: Path):
        d = ensure_scratch_dir(tmp_path / "a" / "b")
        assert d.is_dir()
        assert ensure_scratch_dir(d) == d

    def test_write_markup_utf8(self, tmp_path: Path):
        files = new_working_files(tmp_path)
        write_markup(files, "\\documentclass{article} Größe")
        assert files.tex_path.read_text(encoding="utf-8").endswith("Größe")


class TestCleanup:
    def test_removes_everything(self, tmp_path: Path):
        files = new_working_files(tmp_path)
        _touch_all(files)
        removed = cleanup_working_files(files)
        assert set(removed) == set(files.all_paths())
        assert list(tmp_path.iterdir()) == []

    def test_missing_files_are_skipped(self, tmp_path: Path):
        files = new_working_files(tmp_path)
        write_markup(files, "x")
        assert cleanup_working_files(files) == [files.tex_path]

    def test_does_not_touch_other_requests(self, tmp_path: Path):
        mine = new_working_files(tmp_path)
        theirs = new_working_files(tmp_path)
        _touch_all(mine)
        _touch_all(theirs)

        cleanup_working_files(mine)

        assert all(p.exists() for p in theirs.all_paths())
        assert not any(p.exists() for p in mine.all_paths())

    def test_error_is_logged_and_cleanup_continues(self, tmp_path: Path, caplog):
        files = new_working_files(tmp_path)
        _touch_all(files)
        real_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self == files.tex_path:
                raise PermissionError("locked")
            return real_unlink(self, *args, **kwargs)

        with patch.object(Path, "unlink", flaky_unlink):
            removed = cleanup_working_files(files)

        assert files.tex_path.exists()
        assert files.tex_path not in removed
        assert not files.pdf_path.exists()
        assert not files.tex_path.with_suffix(".log").exists()
        assert "Cleanup failed" in caplog.text
        assert "locked" in caplog.text
