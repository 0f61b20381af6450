import asyncio
from pathlib import Path

import pytest

from flashmark.exceptions import DocumentReadError
from flashmark.models import FullID
from flashmark.resolver import get_all_cards, resolve_card
from flashmark.vault import MarkdownVault, VaultConfig


@pytest.fixture
def vault(vault_dir: Path) -> MarkdownVault:
    return MarkdownVault(VaultConfig(root_directory=vault_dir))


class TestMarkdownVault:
    def test_note_ids_are_relative_posix_paths(self, vault_dir: Path):
        (vault_dir / "sub").mkdir()
        (vault_dir / "sub" / "nested.md").write_text("# N\n", encoding="utf-8")
        (vault_dir / "notes.txt").write_text("not markdown", encoding="utf-8")

        vault = MarkdownVault(VaultConfig(root_directory=vault_dir))
        assert vault.note_ids() == [
            "back.md",
            "capitals.md",
            "front.md",
            "sub/nested.md",
        ]

    def test_custom_extensions(self, vault_dir: Path):
        (vault_dir / "extra.markdown").write_text("# E\n", encoding="utf-8")
        config = VaultConfig(
            root_directory=vault_dir, extensions=(".markdown",)
        )
        assert MarkdownVault(config).note_ids() == ["extra.markdown"]

    def test_read_text(self, vault: MarkdownVault):
        text = asyncio.run(vault.read_text("back.md"))
        assert text.startswith("# Answer\n")

    def test_read_missing_note_raises(self, vault: MarkdownVault):
        with pytest.raises(DocumentReadError) as exc_info:
            asyncio.run(vault.read_text("missing.md"))
        assert exc_info.value.note_id == "missing.md"
        assert isinstance(exc_info.value.original_exception, OSError)

    def test_read_note_undecodable_raises(self, vault: MarkdownVault, vault_dir: Path):
        (vault_dir / "binary.md").write_bytes(b"\xff\xfe\x00")
        with pytest.raises(DocumentReadError) as exc_info:
            vault.read_note("binary.md")
        assert isinstance(exc_info.value.original_exception, UnicodeDecodeError)

    def test_outline_is_built_from_text(self, vault: MarkdownVault):
        outline = vault.outline("any.md", "# H\n")
        assert [h.text for h in outline.headings] == ["H"]


class TestVaultResolution:
    def test_resolve_unique_card(self, vault: MarkdownVault):
        result = asyncio.run(
            resolve_card(FullID.from_string("k3x09qpz1a@front.md"), vault)
        )
        assert result.complete.front_markdown == "# Question\n\nLargest ocean?"
        assert result.complete.back_markdown == "# Answer\n\nPacific"
        assert result.complete.front_id.deck_ids == ("geo",)

    def test_get_all_cards(self, vault: MarkdownVault):
        cards = asyncio.run(get_all_cards(vault))
        assert set(cards) == {
            "k3x09qpz1a",
            "france@capitals.md",
            "capital of spain@capitals.md",
        }
        spain = cards["capital of spain@capitals.md"].complete
        assert spain.front_markdown == "## Capital of Spain"
        assert spain.back_markdown == "Madrid"
        france = cards["france@capitals.md"].complete
        assert france.front_markdown == "Capital of France?"
        assert france.back_markdown == "Paris"
