#!/usr/bin/env python3
"""
Fancy Login - Terminal Display

Centralized display module for terminal output. Uses the `rich` library for
structured elements (panels, tables) and raw stdout for the spinner line.

Falls back to plain text when stdout is not a TTY or NO_COLOR is set.
"""

import os
import sys
import threading
from contextlib import contextmanager
from typing import Optional, TextIO

from rich.box import HEAVY, ROUNDED
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Braille spinner frames at 80ms intervals
_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
_SPINNER_INTERVAL = 0.08


class Spinner:
    """
    One-line progress animation on a background thread.

    The line is repainted every tick until stop() is called; stop() waits
    for the thread and clears the line, after which nothing more is written.
    """

    def __init__(
        self,
        message: str,
        stream: Optional[TextIO] = None,
        color: bool = True,
        interval: float = _SPINNER_INTERVAL
    ) -> None:
        self.message = message
        self.stream = stream or sys.stdout
        self.color = color
        self.interval = interval
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._animate, daemon=True)
        self._thread.start()

    def _animate(self) -> None:
        i = 0
        while not self._stop.is_set():
            frame = _SPINNER_FRAMES[i % len(_SPINNER_FRAMES)]
            with self._lock:
                if self._stop.is_set():
                    break
                if self.color:
                    self.stream.write(f"\r\033[K\033[36m{self.message} {frame}\033[0m")
                else:
                    self.stream.write(f"\r{self.message} {frame}")
                self.stream.flush()
            i += 1
            self._stop.wait(self.interval)

    def stop(self) -> None:
        if self._thread is None:
            return
        with self._lock:
            self._stop.set()
        self._thread.join()
        self._thread = None
        if self.color:
            self.stream.write("\r\033[K")
        else:
            self.stream.write("\r" + " " * (len(self.message) + 2) + "\r")
        self.stream.flush()

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()


class FancyDisplay:
    """Centralized terminal display for fancy-login."""

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose
        self._use_rich = (
            not os.environ.get("NO_COLOR")
            and sys.stdout.isatty()
        )
        if self._use_rich:
            self._console = Console()
        else:
            self._console = None

    # =========================================================================
    # Status messages
    # =========================================================================

    def info(self, text: str) -> None:
        if self._use_rich:
            self._console.print(f"[cyan]🔹 {text}[/cyan]")
        else:
            print(f"[fancy-login] {text}")

    def success(self, text: str) -> None:
        if self._use_rich:
            self._console.print(f"[green]✓ {text}[/green]")
        else:
            print(f"[fancy-login] {text}")

    def warning(self, text: str) -> None:
        if self._use_rich:
            self._console.print(f"[yellow]⚠ {text}[/yellow]")
        else:
            print(f"[fancy-login] Warning: {text}")

    def error(self, text: str) -> None:
        if self._use_rich:
            self._console.print(f"[red]✗ {text}[/red]")
        else:
            print(f"[fancy-login] Error: {text}", file=sys.stderr)

    def header(self, title: str) -> None:
        if self._use_rich:
            self._console.print()
            self._console.print(Panel(
                f"[bold yellow]{title}[/bold yellow]",
                box=HEAVY,
                style="yellow",
            ))
        else:
            print(f"\n{title}")
            print("=" * len(title))

    # =========================================================================
    # Structured output
    # =========================================================================

    def summary(
        self,
        directive,
        account_id: str = "",
        ecr_result: str = ""
    ) -> None:
        """Print the end-of-login summary for a resolved directive."""
        rows = [("🔑 AWS Profile", directive.profile)]
        rows.append(("🌱 Kubernetes Context", directive.context_summary()))
        if ecr_result:
            rows.append(("🐳 ECR login", ecr_result))
        if account_id:
            rows.append(("☁️  AWS Account ID", account_id))

        if self._use_rich:
            table = Table(show_header=False, box=None, padding=(0, 1))
            table.add_column("Field", style="yellow")
            table.add_column("Value", style="bold")
            for label, value in rows:
                table.add_row(label, value)
            self._console.print()
            self._console.print(Panel(
                table,
                title="[bold]🦄 Fancy Login Summary[/bold]",
                box=ROUNDED,
                style="yellow",
            ))
        else:
            print()
            print("Fancy Login Summary")
            print("-" * 47)
            for label, value in rows:
                print(f"{label}: {value}")
            print("-" * 47)

    def directive_table(self, directive) -> None:
        """Print every field of a directive (used by --resolve)."""
        rows = [
            ("Profile", directive.profile),
            ("Context", directive.context or "-"),
            ("Source", directive.source.value),
            ("ECR login", "yes" if directive.ecr_login else "no"),
            ("ECR region", directive.ecr_region or "-"),
            ("k9s auto-launch", "yes" if directive.should_launch_k9s else "no"),
            ("Namespace", directive.namespace_or_placeholder),
        ]
        if directive.matched_pattern:
            rows.append(("Matched pattern", directive.matched_pattern))
        if directive.skip_reason:
            rows.append(("Note", directive.skip_reason))

        if self._use_rich:
            table = Table(title="Resolved Directive", box=ROUNDED, show_header=False)
            table.add_column("Field", style="bold")
            table.add_column("Value")
            for label, value in rows:
                table.add_row(label, value)
            self._console.print(table)
        else:
            for label, value in rows:
                print(f"{label + ':':<17} {value}")

    # =========================================================================
    # Spinner
    # =========================================================================

    @contextmanager
    def spinner(self, message: str):
        """Animate while the body runs. Suppressed in verbose mode, where tool output is shown."""
        if self.verbose:
            yield
            return
        spinner = Spinner(message, color=self._use_rich)
        spinner.start()
        try:
            yield
        finally:
            spinner.stop()
