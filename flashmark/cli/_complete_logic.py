"""
Logic for the 'complete' subcommand, which gives incomplete front side
declarations a generated ID.
"""

import logging
from typing import List, Optional, Set, Tuple

from rich.console import Console

from flashmark.declarations import (
    can_complete,
    complete_declaration,
    serialize_declaration,
)
from flashmark.diagnostics import IncompleteDeclaration
from flashmark.exceptions import DocumentReadError, FlashmarkError
from flashmark.outline import SectionKind, build_outline
from flashmark.resolver import get_all_ids
from flashmark.vault import MarkdownVault


logger = logging.getLogger(__name__)

console = Console()


def _completed_source(
    incomplete: IncompleteDeclaration, prevent_ids: Set[str]
) -> str:
    """
    The block of `incomplete` with a generated ID, keeping its fences.

    Raises:
        ValueError: If the declaration is not a front side.
    """
    declaration = complete_declaration(incomplete.declaration, prevent_ids)
    prevent_ids.add(declaration.id)
    location = incomplete.location
    source = incomplete.source
    return (
        source[:location.start]
        + serialize_declaration(declaration)
        + source[location.end:]
    )


def _process_single_note(
    vault: MarkdownVault, note_id: str, prevent_ids: Set[str], check: bool
) -> Tuple[bool, bool]:
    """
    Complete the declarations of one note.

    Returns:
        Tuple[bool, bool]: Whether the note was (or would be) modified, and
            whether it holds incomplete declarations that cannot be completed.
    """
    try:
        original_content = vault.read_note(note_id)
        new_content, has_errors = _completed_note(
            note_id, original_content, prevent_ids
        )
        made_change = new_content != original_content
        if made_change and not check:
            vault.path_for(note_id).write_text(new_content, encoding="utf-8")
        return made_change, has_errors

    except (FlashmarkError, OSError) as e:
        console.print(f"[bold red]Error processing {note_id}: {e}[/bold red]")
        return False, True


def _completed_note(
    note_id: str, original_content: str, prevent_ids: Set[str]
) -> Tuple[str, bool]:
    """The note text with completable declarations given IDs, and whether
    any could not be completed."""
    result = get_all_ids(note_id, original_content, build_outline(original_content))

    replacements = []
    has_errors = False
    for incomplete in result.diagnostics.incomplete_declarations:
        if incomplete.section.kind == SectionKind.Frontmatter:
            console.print(
                f"[yellow]Skipping frontmatter declaration in {note_id}: "
                "add an `id` by hand.[/yellow]"
            )
            has_errors = True
            continue
        if not can_complete(incomplete.declaration):
            console.print(
                f"[bold red]{incomplete} Copy the ID of its front side "
                "instead.[/bold red]"
            )
            has_errors = True
            continue
        replacements.append(
            (incomplete.section, _completed_source(incomplete, prevent_ids))
        )

    new_content = original_content
    for section, source in sorted(
        replacements, key=lambda r: r[0].position.start, reverse=True
    ):
        new_content = (
            new_content[:section.position.start]
            + source
            + new_content[section.position.end:]
        )

    return new_content, has_errors


def _existing_card_ids(vault: MarkdownVault, note_ids: List[str]) -> Set[str]:
    ids: Set[str] = set()
    for note_id in note_ids:
        try:
            text = vault.read_note(note_id)
        except DocumentReadError as e:
            logger.warning("Not collecting IDs of unreadable note: %s", e)
            continue
        result = get_all_ids(note_id, text, build_outline(text))
        ids.update(id.card_id for id in result.ids if id.card_id)
    return ids


def _report_complete_summary(
    any_dirty: bool, any_errors: bool, check: bool
) -> None:
    """Prints a final summary message after completing all notes."""
    if any_errors:
        console.print(
            "[bold red]Some declarations could not be completed.[/bold red]"
        )
        return

    if not any_dirty:
        console.print(
            "[bold green]All declarations have IDs. No changes needed.[/bold green]"
        )
    elif check:
        console.print(
            "[bold yellow]Check failed: Some notes have declarations "
            "without an ID. Run without --check to fix.[/bold yellow]"
        )
    else:
        console.print(
            "[bold yellow]Completion done. Some notes were modified.[/bold yellow]"
        )


def complete_logic(
    vault: MarkdownVault,
    check: bool,
    note_ids: Optional[List[str]] = None,
) -> bool:
    """
    Give every incomplete front side declaration in the vault a generated
    ID, rewriting its block in place.

    Parameters:
        vault: The vault to process.
        check: If True, only report notes that would change.
        note_ids: Notes to process; all notes of the vault when None.

    Returns:
        bool: True if any note needed changes or held declarations that
            cannot be completed.
    """
    all_note_ids = vault.note_ids()
    targets = all_note_ids if note_ids is None else list(note_ids)
    if not targets:
        console.print("[bold yellow]No notes found.[/bold yellow]")
        return False

    prevent_ids = _existing_card_ids(vault, all_note_ids)

    any_dirty = False
    any_errors = False
    for note_id in targets:
        is_dirty, has_errors = _process_single_note(
            vault, note_id, prevent_ids, check
        )
        any_errors = any_errors or has_errors
        if is_dirty:
            any_dirty = True
            if check:
                console.print(f"[yellow]! Incomplete: {note_id}[/yellow]")
            else:
                console.print(f"[green]Completed declarations in: {note_id}[/green]")

    _report_complete_summary(any_dirty, any_errors, check)
    return any_dirty or any_errors
