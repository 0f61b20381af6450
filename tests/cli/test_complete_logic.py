import re
from pathlib import Path

from flashmark.cli._complete_logic import complete_logic
from flashmark.vault import MarkdownVault, VaultConfig


def make_vault(root: Path) -> MarkdownVault:
    return MarkdownVault(VaultConfig(root_directory=root))


def test_complete_logic_no_notes(tmp_path: Path, capsys):
    """complete_logic handles a vault without notes gracefully."""
    (tmp_path / "some_file.txt").write_text("hello")

    changes_needed = complete_logic(make_vault(tmp_path), check=False)

    captured = capsys.readouterr()
    assert not changes_needed
    assert "No notes found." in captured.out


def test_complete_logic_keeps_fences_and_deck(tmp_path: Path):
    note = tmp_path / "deck.md"
    note.write_text(
        "# Q\n~~~comethrough\nside: Front\ndeck: Geo\n~~~\nbody\n",
        encoding="utf-8",
    )

    changes_needed = complete_logic(make_vault(tmp_path), check=False)

    assert changes_needed
    assert re.fullmatch(
        r"# Q\n~~~comethrough\nside: front\nid: [0-9a-z]{10}\ndeck: geo\n~~~\nbody\n",
        note.read_text(encoding="utf-8"),
    )


def test_complete_logic_generates_distinct_ids(tmp_path: Path):
    note = tmp_path / "many.md"
    note.write_text(
        "# A\n```ct\nside: front\n```\n# B\n```ct\nside: front\n```\n",
        encoding="utf-8",
    )

    complete_logic(make_vault(tmp_path), check=False)

    ids = re.findall(r"id: ([0-9a-z]{10})", note.read_text(encoding="utf-8"))
    assert len(ids) == 2
    assert ids[0] != ids[1]


def test_complete_logic_back_side_cannot_be_completed(tmp_path: Path, capsys):
    note = tmp_path / "back.md"
    original = "# A\n```ct\nside: back\n```\n"
    note.write_text(original, encoding="utf-8")

    changes_needed = complete_logic(make_vault(tmp_path), check=False)

    output = " ".join(capsys.readouterr().out.split())
    assert changes_needed
    assert note.read_text(encoding="utf-8") == original
    assert "Copy the ID of its front side" in output
    assert "could not be completed" in output


def test_complete_logic_only_selected_notes(tmp_path: Path):
    first = tmp_path / "first.md"
    second = tmp_path / "second.md"
    original = "# A\n```ct\nside: front\n```\n"
    first.write_text(original, encoding="utf-8")
    second.write_text(original, encoding="utf-8")

    complete_logic(make_vault(tmp_path), check=False, note_ids=["second.md"])

    assert first.read_text(encoding="utf-8") == original
    assert second.read_text(encoding="utf-8") != original


def test_complete_logic_unreadable_note_does_not_stop_others(
    tmp_path: Path, capsys
):
    good = tmp_path / "a.md"
    good.write_text("# A\n```ct\nside: front\n```\n", encoding="utf-8")
    (tmp_path / "b.md").write_bytes(b"\xff\xfe# broken\n")

    changes_needed = complete_logic(make_vault(tmp_path), check=False)

    output = " ".join(capsys.readouterr().out.split())
    assert changes_needed
    assert re.search(r"id: [0-9a-z]{10}", good.read_text(encoding="utf-8"))
    assert "Error processing b.md" in output
    assert "could not be completed" in output


def test_complete_logic_missing_selected_note(tmp_path: Path, capsys):
    (tmp_path / "a.md").write_text("# A\n", encoding="utf-8")

    changes_needed = complete_logic(
        make_vault(tmp_path), check=False, note_ids=["gone.md"]
    )

    output = " ".join(capsys.readouterr().out.split())
    assert changes_needed
    assert "Error processing gone.md" in output
