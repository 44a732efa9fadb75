#!/usr/bin/env python3
# CUI // SP-CTI
"""Per-session audit log in ~/.idempiere-cli/logs/.

One file per CLI invocation (``session-YYYY-MM-DD-HHMMSS.log``) with a
``latest.log`` symlink pointing at it. The generation pipeline records the
prompt, the raw AI response and any rejection reason here so rejected AI
output can be reused by hand.

Failure to create the log only disables it; the command itself goes on.
"""

import logging
import os
import platform
from datetime import datetime
from pathlib import Path
from typing import Optional

from idempiere_cli.config import CLI_HOME

logger = logging.getLogger("idempiere_cli.project.session_log")

LOGS_DIR = CLI_HOME / "logs"
FILE_FORMAT = "%Y-%m-%d-%H%M%S"
LINE_FORMAT = "%H:%M:%S"
HEADER_FORMAT = "%Y-%m-%d %H:%M:%S"
KEEP_LOGS = 20


def format_duration(millis: int) -> str:
    if millis < 1000:
        return f"{millis}ms"
    seconds = millis // 1000
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60}m {seconds % 60}s"


class SessionLogger:
    """Append-only session log file."""

    def __init__(self, logs_dir: Optional[Path] = None):
        self.logs_dir = Path(logs_dir) if logs_dir else LOGS_DIR
        self.log_file: Optional[Path] = None
        self.started: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self.log_file is not None

    def start_session(self, command: str) -> Optional[Path]:
        """Create the log file and write the header. Returns its path."""
        self.started = datetime.now()
        try:
            self.logs_dir.mkdir(parents=True, exist_ok=True)
            path = self.logs_dir / f"session-{self.started.strftime(FILE_FORMAT)}.log"
            header = (
                "=== iDempiere CLI Session ===\n"
                f"Started: {self.started.strftime(HEADER_FORMAT)}\n"
                f"Command: {command}\n"
                f"Working Dir: {os.getcwd()}\n"
                f"OS: {platform.system()} {platform.release()}, "
                f"Python {platform.python_version()}\n"
                f"User: {os.environ.get('USER', '')}\n\n"
            )
            path.write_text(header, encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not create session log: %s", exc)
            self.log_file = None
            return None

        self.log_file = path
        self._update_latest_symlink()
        self.clean_old_logs()
        return path

    def _append(self, text: str) -> None:
        if self.log_file is None:
            return
        try:
            with open(self.log_file, "a", encoding="utf-8") as f:
                f.write(text)
        except OSError as exc:
            logger.warning("Could not write session log %s: %s", self.log_file, exc)

    def _stamp(self) -> str:
        return datetime.now().strftime(LINE_FORMAT)

    def log_step(self, current: int, total: int, description: str) -> None:
        self._append(f"[{self._stamp()}] Step {current}/{total}: {description}\n")

    def log_info(self, message: str) -> None:
        self._append(f"[{self._stamp()}] {message}\n")

    def log_error(self, message: str) -> None:
        self._append(f"[{self._stamp()}] ERROR: {message}\n")

    def log_command_output(self, label: str, output: Optional[str]) -> None:
        """Record a block of text, indented and wrapped in start/end markers."""
        lines = [f"[{self._stamp()}] --- {label} output start ---\n"]
        if output:
            lines.extend(f"    {line}\n" for line in output.split("\n"))
        lines.append(f"[{self._stamp()}] --- {label} output end ---\n")
        self._append("".join(lines))

    def end_session(self, success: bool) -> Optional[Path]:
        if self.log_file is None or self.started is None:
            return None
        now = datetime.now()
        millis = int((now - self.started).total_seconds() * 1000)
        status = "completed successfully" if success else "completed with errors"
        self._append(
            f"\n=== Session {status} ===\n"
            f"Ended: {now.strftime(HEADER_FORMAT)}\n"
            f"Duration: {format_duration(millis)}\n"
        )
        return self.log_file

    def _update_latest_symlink(self) -> None:
        latest = self.logs_dir / "latest.log"
        try:
            if latest.is_symlink() or latest.exists():
                latest.unlink()
            latest.symlink_to(self.log_file.name)
        except OSError as exc:
            logger.debug("Could not update latest.log: %s", exc)

    def clean_old_logs(self, keep: int = KEEP_LOGS) -> int:
        """Delete all but the ``keep`` newest session logs. Returns the count removed."""
        logs = sorted(self.logs_dir.glob("session-*.log"), reverse=True)
        removed = 0
        for old in logs[keep:]:
            if old == self.log_file:
                continue
            try:
                old.unlink()
                removed += 1
            except OSError as exc:
                logger.debug("Could not delete %s: %s", old, exc)
        return removed
