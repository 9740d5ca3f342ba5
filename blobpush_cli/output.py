"""Styled terminal lines for the blobpush CLI.

Every user-facing line printed by the CLI goes through one of these helpers
so that symbols and colors stay consistent:

    success("All files uploaded successfully!")   # ✓ green, stdout
    info("Uploading files from ./out ...")        # → blue, stdout
    detail("a.txt -> backups/2024/a.txt")         #   dimmed, stdout
    warn("Config file not found")                 # ⚠ yellow, stderr
    error("Storage Account Key is required.")     # ✗ red, stderr

Pass dry_run=True to prefix a line with [DRY RUN] for commands that only
preview what they would do.
"""

from __future__ import annotations

import sys
from typing import NamedTuple, TextIO

import click


class _Level(NamedTuple):
    symbol: str
    color: str
    to_stderr: bool


_LEVELS: dict[str, _Level] = {
    "success": _Level("✓", "green", False),
    "info": _Level("→", "blue", False),
    "detail": _Level(" ", "bright_black", False),
    "warn": _Level("⚠", "yellow", True),
    "error": _Level("✗", "red", True),
}


def _emit(
    level: str,
    message: str,
    *,
    file: TextIO | None,
    nl: bool,
    dry_run: bool,
) -> None:
    style = _LEVELS[level]
    if dry_run:
        message = f"[DRY RUN] {message}"
    if file is None and style.to_stderr:
        file = sys.stderr
    line = f"{click.style(style.symbol, fg=style.color)} {click.style(message, fg=style.color)}"
    click.echo(line, file=file, nl=nl)


def success(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a green line prefixed with a checkmark."""
    _emit("success", message, file=file, nl=nl, dry_run=dry_run)


def info(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a blue line prefixed with an arrow."""
    _emit("info", message, file=file, nl=nl, dry_run=dry_run)


def detail(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a dimmed, indented line for secondary information."""
    _emit("detail", message, file=file, nl=nl, dry_run=dry_run)


def warn(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a yellow warning line (stderr by default)."""
    _emit("warn", message, file=file, nl=nl, dry_run=dry_run)


def error(
    message: str, *, file: TextIO | None = None, nl: bool = True, dry_run: bool = False
) -> None:
    """Print a red error line (stderr by default)."""
    _emit("error", message, file=file, nl=nl, dry_run=dry_run)
