#!/usr/bin/env python3
"""
Fancy Login - Error Types

Exceptions raised by the core and the external tool adapters. The CLI entry
point is the only place that turns these into exit codes.
"""

from pathlib import Path
from typing import List, Optional, Union


class FancyLoginError(Exception):
    """Base class for all fancy-login errors."""


class ConfigParseError(FancyLoginError):
    """The configuration document exists but could not be read or parsed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"failed to parse config file {self.path}: {reason}")


class ConfigWriteError(FancyLoginError):
    """The configuration document could not be written."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"failed to write config file {self.path}: {reason}")


class SelectionTimeout(FancyLoginError):
    """An interactive selection did not complete within its time limit."""

    def __init__(self, what: str, timeout: float):
        self.what = what
        self.timeout = timeout
        super().__init__(f"{what} selection timed out after {timeout:g} seconds")


class ExternalToolFailure(FancyLoginError):
    """An external command exited non-zero or could not be started."""

    def __init__(
        self,
        command: List[str],
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()

        tool = self.command[0] if self.command else "command"
        if returncode is None:
            msg = f"{tool} could not be started"
        else:
            msg = f"{tool} exited with status {returncode}"
        if self.stderr:
            msg = f"{msg}: {self.stderr}"
        super().__init__(msg)


class WizardAborted(FancyLoginError):
    """The configuration wizard was cancelled before anything was saved."""


class ProfileSelectionError(FancyLoginError):
    """The profile selection produced something that is not a profile."""
