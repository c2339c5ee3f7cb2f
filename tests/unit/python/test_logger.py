#!/usr/bin/env python3
"""
Unit tests for fancy_login/logger.py - FancyLogger class
"""

import tempfile
import pytest
from pathlib import Path

import sys
sys.path.insert(0, '.')
from fancy_login.logger import FancyLogger, NullLogger


class TestFancyLoggerInit:
    """Tests for FancyLogger initialization."""

    def test_init_creates_log_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            log_dir = Path(tmpdir) / "logs"
            FancyLogger(log_dir)
            assert log_dir.exists()

    def test_log_path_is_daily(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            assert logger.get_log_path().endswith(f"{logger._get_log_date()}.log")


class TestLogEvent:
    """Tests for log_event method."""

    def test_log_event_writes_formatted_entry(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            logger.log_event("CATEGORY", "Test message")

            content = logger.get_log_content()
            assert "[CATEGORY] Test message" in content

    def test_newlines_are_escaped(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            logger.log_event("TEST", "line1\nline2")
            assert "line1\\nline2" in logger.get_log_content()

    def test_current_log_symlink(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            logger.log_event("TEST", "one")
            logger.log_event("TEST", "two")

            current = Path(tmpdir) / "current.log"
            assert current.is_symlink()
            assert "two" in current.read_text()

    def test_verbose_echoes_to_stderr(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            FancyLogger(Path(tmpdir), verbose=True).log_info("hello")
        assert "[fancy-login] hello" in capsys.readouterr().err

    def test_quiet_by_default(self, capsys):
        with tempfile.TemporaryDirectory() as tmpdir:
            FancyLogger(Path(tmpdir)).log_info("hello")
        assert capsys.readouterr().err == ""

    def test_unwritable_directory_is_ignored(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "file"
            blocker.write_text("")
            logger = FancyLogger(blocker / "logs")
            logger.log_info("dropped")
            assert logger.get_log_content() == ""


class TestConvenienceMethods:
    """Tests for category helpers."""

    def test_categories(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            logger.log_warning("w")
            logger.log_resolution("r")
            logger.log_wizard("z")
            content = logger.get_log_content()
            assert "[WARN] w" in content
            assert "[RESOLVE] r" in content
            assert "[WIZARD] z" in content

    def test_log_error_with_exception(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            logger.log_error("Failed", ValueError("bad value"))
            assert "[ERROR] Failed: ValueError: bad value" in logger.get_log_content()

    def test_log_external(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = FancyLogger(Path(tmpdir))
            logger.log_external("kubectl config use-context dev", "quiet")
            assert "[EXEC] kubectl config use-context dev - quiet" in logger.get_log_content()


class TestNullLogger:
    """Tests for NullLogger."""

    def test_discards_everything(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logger = NullLogger()
        logger.log_info("nothing")
        logger.log_error("nothing", RuntimeError("x"))
        assert logger.get_log_content() == ""
        assert list(tmp_path.iterdir()) == []
