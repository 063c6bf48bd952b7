"""Simple UX helpers for CLI output - no external dependencies."""

from __future__ import annotations

import os
import sys
from typing import TextIO

from .models import Priority, Status


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"


PRIORITY_COLORS = {
    Priority.HIGH: Colors.RED,
    Priority.MEDIUM: Colors.YELLOW,
    Priority.LOW: Colors.GREEN,
}

STATUS_COLORS = {
    Status.OPEN: Colors.BLUE,
    Status.IN_PROGRESS: Colors.MAGENTA,
    Status.DONE: Colors.WHITE,
}


def _supports_color(stream: TextIO | None = None) -> bool:
    """Check if terminal supports color output."""
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return True


def colorize(text: str, color: str, bold: bool = False, stream: TextIO | None = None) -> str:
    """Apply color to text if terminal supports it."""
    if not _supports_color(stream):
        return text
    prefix = (Colors.BOLD if bold else "") + color
    return f"{prefix}{text}{Colors.RESET}"


def badge(value: Priority | Status, stream: TextIO | None = None) -> str:
    color = PRIORITY_COLORS.get(value) if isinstance(value, Priority) else STATUS_COLORS.get(value)
    return colorize(f"[{value.value}]", color or Colors.WHITE, stream=stream)


def print_success(message: str, stream: TextIO | None = None) -> None:
    """Print success message in green."""
    stream = stream or sys.stdout
    print(colorize("✓", Colors.GREEN, bold=True, stream=stream) + " " + message, file=stream)


def print_error(message: str, stream: TextIO | None = None) -> None:
    """Print error message in red."""
    stream = stream or sys.stderr
    print(colorize("✗", Colors.RED, bold=True, stream=stream) + " " + message, file=stream)


def print_warning(message: str, stream: TextIO | None = None) -> None:
    """Print warning message in yellow."""
    stream = stream or sys.stdout
    print(colorize("⚠", Colors.YELLOW, bold=True, stream=stream) + " " + message, file=stream)


def print_header(message: str, stream: TextIO | None = None) -> None:
    """Print section header in bold cyan."""
    stream = stream or sys.stdout
    print(colorize(message, Colors.CYAN, bold=True, stream=stream), file=stream)
