#!/usr/bin/env python3
"""
Fancy Login - Logger

Logs session events to daily files under the log directory
(~/.fancy-login/logs by default) and, in verbose mode, echoes them to the
console.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Union


class FancyLogger:
    """Logger for fancy-login session events."""

    def __init__(self, log_dir: Union[str, Path], verbose: bool = False):
        """
        Initialize logger.

        Args:
            log_dir: Directory for daily log files
            verbose: Echo events to the console as well
        """
        self.log_dir = Path(log_dir)
        self.verbose = verbose

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass

    def _get_timestamp(self) -> str:
        """Get timestamp for log entries."""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    def _get_log_date(self) -> str:
        """Get date for log file naming."""
        return datetime.now().strftime("%Y-%m-%d")

    def _sanitize_message(self, message: str) -> str:
        """Sanitize message by replacing newlines."""
        return message.replace("\n", "\\n")

    def get_log_path(self) -> str:
        """Get path to today's log file."""
        return str(self.log_dir / f"{self._get_log_date()}.log")

    def log_event(self, category: str, message: str) -> None:
        """Main logging function."""
        safe_message = self._sanitize_message(message)
        log_line = f"[{self._get_timestamp()}] [{category}] {safe_message}\n"

        daily_log = Path(self.get_log_path())
        try:
            with open(daily_log, "a") as f:
                f.write(log_line)
        except OSError:
            pass

        # Update current.log symlink
        current_log = self.log_dir / "current.log"
        try:
            if current_log.is_symlink() or current_log.exists():
                current_log.unlink()
            current_log.symlink_to(daily_log)
        except OSError:
            pass

        if self.verbose:
            print(f"[fancy-login] {message}", file=sys.stderr)

    def log_info(self, message: str) -> None:
        self.log_event("INFO", message)

    def log_warning(self, message: str) -> None:
        self.log_event("WARN", message)

    def log_error(self, message: str, error: Optional[Exception] = None) -> None:
        """Log an error."""
        if error:
            self.log_event("ERROR", f"{message}: {type(error).__name__}: {error}")
        else:
            self.log_event("ERROR", message)

    def log_resolution(self, message: str) -> None:
        self.log_event("RESOLVE", message)

    def log_wizard(self, message: str) -> None:
        self.log_event("WIZARD", message)

    def log_external(self, command: str, details: str = "") -> None:
        """Log an external tool invocation."""
        msg = command
        if details:
            msg = f"{command} - {details}"
        self.log_event("EXEC", msg)

    def get_log_content(self) -> str:
        """Get today's log file content."""
        try:
            with open(self.get_log_path(), 'r') as f:
                return f.read()
        except OSError:
            return ""


class NullLogger(FancyLogger):
    """Logger that discards everything. Used where no logger is supplied."""

    def __init__(self):
        self.log_dir = Path(".")
        self.verbose = False

    def log_event(self, category: str, message: str) -> None:
        return None

    def get_log_content(self) -> str:
        return ""
