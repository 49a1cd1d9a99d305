"""File-backed stand-ins for the editor and vault used by the CLI."""

from __future__ import annotations

import logging
from pathlib import Path

from .fetcher import CreateFile

logger = logging.getLogger("image_inserter")


class NoteEditor:
    """Treats the end of a Markdown note as the current selection."""

    def __init__(self, note_path: Path) -> None:
        self.note_path = note_path

    def replace_selection(self, text: str) -> None:
        existing = ""
        if self.note_path.exists():
            existing = self.note_path.read_text(encoding="utf-8")
        else:
            self.note_path.parent.mkdir(parents=True, exist_ok=True)
        if existing and not existing.endswith("\n"):
            existing += "\n"
        self.note_path.write_text(existing + text, encoding="utf-8")
        logger.info("Inserted image into %s", self.note_path)


def directory_file_writer(directory: Path) -> CreateFile:
    """Build a ``create_file`` callback that stores attachments in a directory."""

    def create_file(name: str, extension: str, binary: bytes) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        destination = directory / f"{name}.{extension}"
        destination.write_bytes(binary)
        logger.debug("Wrote %d bytes to %s", len(binary), destination)

    return create_file
