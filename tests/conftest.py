from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from flashmark.outline import Outline, build_outline


class InMemorySource:
    """
    A document source over a dict of note ID -> text.

    Notes are listed in insertion order. `reads` records every note read, in
    order, so tests can check which notes a lookup touched.
    """

    def __init__(
        self, notes: Dict[str, str], without_outline: Iterable[str] = ()
    ):
        self.notes = dict(notes)
        self.without_outline = set(without_outline)
        self.reads: List[str] = []

    def note_ids(self) -> List[str]:
        return list(self.notes)

    async def read_text(self, note_id: str) -> str:
        self.reads.append(note_id)
        return self.notes[note_id]

    def outline(self, note_id: str, text: str) -> Optional[Outline]:
        if note_id in self.without_outline:
            return None
        return build_outline(text)


@pytest.fixture
def make_source():
    """Factory for `InMemorySource` instances."""
    return InMemorySource


@pytest.fixture
def vault_dir(tmp_path: Path) -> Path:
    """
    A small vault on disk:

    - `capitals.md`: a heading-marker card and a card made by a command.
    - `front.md` / `back.md`: the two sides of the unique card `k3x09qpz1a`.
    - `.obsidian/ignored.md`: must never be listed.
    """
    root = tmp_path / "vault"
    root.mkdir()
    (root / "capitals.md").write_text(
        "# Capitals\n"
        "## front@france\n"
        "Capital of France?\n"
        "## back@france\n"
        "Paris\n"
        "# Generated\n"
        "```ct\n"
        "name: heading is front\n"
        "```\n"
        "## Capital of Spain\n"
        "Madrid\n",
        encoding="utf-8",
    )
    (root / "front.md").write_text(
        "# Question\n"
        "```comethrough\n"
        "side: front\n"
        "id: k3x09qpz1a\n"
        "deck: geo\n"
        "```\n"
        "Largest ocean?\n",
        encoding="utf-8",
    )
    (root / "back.md").write_text(
        "# Answer\n"
        "```comethrough\n"
        "side: back\n"
        "id: k3x09qpz1a\n"
        "```\n"
        "Pacific\n",
        encoding="utf-8",
    )
    (root / ".obsidian").mkdir()
    (root / ".obsidian" / "ignored.md").write_text(
        "## front@hidden\nx\n", encoding="utf-8"
    )
    return root
