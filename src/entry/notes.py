"""Free-form journal notes: one editor-opened text file per bucketed timestamp."""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from .config import EntryConfig
from .errors import EditorError
from .timeparse import get_datetime

logger = logging.getLogger(__name__)

NOTE_SUFFIX = ".txt"


def get_directory(note_directory: str, entry_name: str) -> Path:
    """Bucket directory ``<note_directory>/<entry_name>`` with ``~`` expanded."""
    return Path(note_directory).expanduser() / entry_name


def format_note_name(when: datetime) -> str:
    return f"{when.strftime('%Y-%m-%d-%H-%M')}{NOTE_SUFFIX}"


def has_text(text: str, lines: Iterable[str]) -> bool:
    """Check whether any line contains ``text``."""
    return any(text in line for line in lines)


def get_editor() -> str:
    """The user's editor: ``$EDITOR``, else ``vim`` from ``PATH``.

    Raises:
        EditorError: If neither is available
    """
    editor = os.environ.get("EDITOR")
    if editor:
        return editor

    vim = shutil.which("vim")
    if vim:
        return vim

    raise EditorError("failed to determine editor, set $EDITOR")


def open_in_editor(path: Path, editor: str) -> None:
    """Run ``editor`` on ``path`` and wait for it to exit.

    Raises:
        EditorError: If the editor cannot be started or exits non-zero
    """
    command = shlex.split(editor) + [str(path)]
    logger.debug("Running %s", command)
    try:
        result = subprocess.run(command)
    except OSError as e:
        raise EditorError(f"failed to start editor `{editor}`: {e}") from e

    if result.returncode != 0:
        raise EditorError(f"editor `{editor}` exited with status {result.returncode}")


class NoteBook:
    """Journal notes under ``<note_directory>/<entry_name>/``."""

    def __init__(self, config: EntryConfig):
        self.config = config

    @property
    def root(self) -> Path:
        return self.config.get_note_path()

    def note_path(self, entry_name: str, when: datetime) -> Path:
        return get_directory(self.config.note_directory, entry_name) / format_note_name(when)

    def new_entry(
        self,
        time: str = "now",
        entry_name: Optional[str] = None,
        editor: Optional[str] = None,
    ) -> Path:
        """Open the note for ``time`` in the editor, creating its bucket first.

        Args:
            time: ``now``, ``tomorrow`` or a clock time
            entry_name: Bucket name (defaults to ``default_note_name``)
            editor: Editor command (defaults to :func:`get_editor`)

        Returns:
            Path of the note file

        Raises:
            TimeParseError: If ``time`` cannot be resolved
            EditorError: If no editor is available or it fails
        """
        when = get_datetime(time, self.config.minute_bucket_size)
        name = entry_name or self.config.default_note_name
        path = self.note_path(name, when)
        path.parent.mkdir(parents=True, exist_ok=True)

        if self.config.create_file and not path.exists():
            path.touch()
            logger.debug("Created %s", path)

        open_in_editor(path, editor or get_editor())
        return path

    def buckets(self) -> list[str]:
        """Names of all entry buckets, sorted."""
        if not self.root.is_dir():
            return []
        return sorted(p.name for p in self.root.iterdir() if p.is_dir())

    def find(self, text: Optional[str] = None, entry_name: Optional[str] = None) -> list[Path]:
        """Notes containing ``text``, in one bucket or all of them.

        With no ``text`` every note matches.
        """
        names = [entry_name] if entry_name else self.buckets()
        matches = []

        for name in names:
            directory = get_directory(self.config.note_directory, name)
            if not directory.is_dir():
                logger.debug("No bucket at %s", directory)
                continue

            for note_file in sorted(directory.glob(f"*{NOTE_SUFFIX}")):
                if not text:
                    matches.append(note_file)
                    continue
                with open(note_file, "r", encoding="utf-8", errors="replace") as f:
                    if has_text(text, f):
                        matches.append(note_file)

        return matches
