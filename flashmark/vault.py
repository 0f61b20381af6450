"""
Where notes come from.

The resolver reads notes through `DocumentSource`. `MarkdownVault` is the
filesystem implementation: every Markdown file below a root directory is a
note whose ID is its POSIX path relative to the root.
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .exceptions import DocumentReadError
from .models import NoteID
from .outline import Outline, build_outline

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    def note_ids(self) -> List[NoteID]:
        """IDs of all notes, in a stable order."""
        ...

    async def read_text(self, note_id: NoteID) -> str:
        ...

    def outline(self, note_id: NoteID, text: str) -> Optional[Outline]:
        """The outline of `note_id`, or None if none is available."""
        ...


@dataclass
class VaultConfig:
    """Configuration for reading a directory of notes."""

    root_directory: Path
    extensions: Tuple[str, ...] = (".md",)
    excluded_directories: Tuple[str, ...] = (".git", ".obsidian", ".trash")


class MarkdownVault:
    """A `DocumentSource` over the Markdown files of a directory tree."""

    def __init__(self, config: VaultConfig):
        self.config = config
        self.root = Path(config.root_directory)

    def _is_excluded(self, path: Path) -> bool:
        relative = path.relative_to(self.root)
        return any(
            part in self.config.excluded_directories
            for part in relative.parts[:-1]
        )

    def note_ids(self) -> List[NoteID]:
        ids = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file():
                continue
            if path.suffix.lower() not in self.config.extensions:
                continue
            if self._is_excluded(path):
                logger.debug("Skipping excluded file: %s", path)
                continue
            ids.append(path.relative_to(self.root).as_posix())
        return ids

    def path_for(self, note_id: NoteID) -> Path:
        return self.root / note_id

    def read_note(self, note_id: NoteID) -> str:
        """
        Read a note as UTF-8 text.

        Raises:
            DocumentReadError: If the file cannot be read or decoded.
        """
        try:
            return self.path_for(note_id).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(note_id, e) from e

    async def read_text(self, note_id: NoteID) -> str:
        return await asyncio.to_thread(self.read_note, note_id)

    def outline(self, note_id: NoteID, text: str) -> Optional[Outline]:
        return build_outline(text)
