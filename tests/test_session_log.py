# CUI // SP-CTI
"""Tests for idempiere_cli.project.session_log."""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import os

import pytest

from idempiere_cli.project.session_log import SessionLogger, format_duration


class TestSessionLogger:

    def test_header_and_latest_link(self, tmp_path):
        logger = SessionLogger(tmp_path / "logs")
        path = logger.start_session("add callout --name X")
        assert logger.active is True
        text = path.read_text(encoding="utf-8")
        assert text.startswith("=== iDempiere CLI Session ===\n")
        assert "Command: add callout --name X\n" in text
        latest = tmp_path / "logs" / "latest.log"
        assert latest.is_symlink()
        assert os.readlink(latest) == path.name

    def test_inactive_logger_is_noop(self, tmp_path):
        logger = SessionLogger(tmp_path / "logs")
        logger.log_info("ignored")
        assert logger.end_session(True) is None
        assert not (tmp_path / "logs").exists()

    def test_command_output_block(self, session):
        session.log_command_output("ai-response", "line one\nline two")
        text = session.log_file.read_text(encoding="utf-8")
        assert "--- ai-response output start ---\n    line one\n    line two\n" in text
        assert text.rstrip().endswith("--- ai-response output end ---")

    def test_error_and_step(self, session):
        session.log_step(1, 3, "Analyze project")
        session.log_error("boom")
        text = session.log_file.read_text(encoding="utf-8")
        assert "Step 1/3: Analyze project\n" in text
        assert "ERROR: boom\n" in text

    def test_end_session_footer(self, session):
        session.end_session(False)
        text = session.log_file.read_text(encoding="utf-8")
        assert "=== Session completed with errors ===" in text
        assert "Duration: " in text

    def test_clean_old_logs(self, tmp_path):
        logs = tmp_path / "logs"
        logs.mkdir()
        for i in range(25):
            (logs / f"session-2020-01-01-0000{i:02d}.log").write_text("x", encoding="utf-8")
        logger = SessionLogger(logs)
        logger.start_session("cmd")
        assert len(list(logs.glob("session-*.log"))) == 20
        assert logger.log_file.exists()

    def test_unwritable_directory_disables_log(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("", encoding="utf-8")
        logger = SessionLogger(blocker / "logs")
        assert logger.start_session("cmd") is None
        assert logger.active is False


@pytest.mark.parametrize("millis,expected", [
    (250, "250ms"), (1500, "1s"), (59000, "59s"), (61000, "1m 1s"), (125000, "2m 5s"),
])
def test_format_duration(millis, expected):
    assert format_duration(millis) == expected
