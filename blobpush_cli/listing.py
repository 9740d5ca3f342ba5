"""Local filesystem adapters: list a directory, read a file.

Only the top level of the source directory is listed. Directories, sockets,
FIFOs and other non-regular entries are skipped without being reported.
Symlinks count as files when they point at a regular file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from blobpush_cli.errors import DirectoryReadError, EntryReadError, NameDecodeError
from blobpush_cli.models import FileEntry

logger = logging.getLogger(__name__)


def list_directory(path: Path) -> list[FileEntry]:
    """List the regular files directly inside a directory.

    Entries are sorted by name so that runs over the same directory
    dispatch files in the same order.

    Args:
        path: Directory to list.

    Returns:
        One FileEntry per regular file.

    Raises:
        DirectoryReadError: If the directory cannot be opened or iterated.
    """
    try:
        with os.scandir(path) as it:
            dir_entries = list(it)
    except OSError as e:
        raise DirectoryReadError(str(path), e.strerror or str(e)) from e

    entries: list[FileEntry] = []
    for dir_entry in dir_entries:
        try:
            is_file = dir_entry.is_file()
        except OSError as e:
            logger.warning("Skipping %s: cannot stat entry (%s)", dir_entry.path, e)
            continue
        if not is_file:
            logger.debug("Skipping non-file entry %s", dir_entry.path)
            continue
        entries.append(
            FileEntry(name=dir_entry.name, absolute_path=Path(dir_entry.path).absolute())
        )

    entries.sort(key=lambda e: e.name)
    return entries


def display_name(entry: FileEntry) -> str:
    """Return the entry's name as valid UTF-8 text.

    Raises:
        NameDecodeError: If the name holds bytes that have no text form.
    """
    try:
        entry.name.encode("utf-8")
    except UnicodeEncodeError as e:
        raise NameDecodeError(printable_name(entry.name)) from e
    return entry.name


def printable_name(name: str) -> str:
    """Render any file name as printable text, escaping undecodable bytes."""
    return name.encode("utf-8", "backslashreplace").decode("utf-8")


def read_file(path: Path) -> bytes:
    """Read a file's full content.

    Raises:
        EntryReadError: If the file cannot be opened or read.
    """
    try:
        return path.read_bytes()
    except OSError as e:
        raise EntryReadError(printable_name(path.name), e.strerror or str(e)) from e
