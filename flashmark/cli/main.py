"""
CLI entry point for flashmark.
"""

# Standard library imports
import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional

# Third-party imports
import typer
from rich.console import Console
from rich.table import Table

# Local application imports
from flashmark.content import ContentReadOptions
from flashmark.exceptions import FlashmarkError
from flashmark.models import DeckableFullID, FullID, ParsedCardResult, Side
from flashmark.resolver import (
    ParseOptions,
    get_all_ids_in_source,
    resolve_card,
)
from flashmark.vault import MarkdownVault, VaultConfig
from flashmark.cli._complete_logic import complete_logic


console = Console()

app = typer.Typer(
    name="flashmark",
    help="Flashmark: flashcards declared inside Markdown notes.",
    add_completion=False,
    rich_markup_mode="markdown",
)


@app.callback()
def configure(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log debug output to stderr."
    ),
):
    """Flashmark: flashcards declared inside Markdown notes."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


# ---------------------------------------------------------------------------
# Helpers for resolving the --vault path (FLASHMARK_VAULT envvar)
# ---------------------------------------------------------------------------


def _resolve_vault_path(vault: Optional[Path]) -> Path:
    """Resolve vault path from CLI flag or FLASHMARK_VAULT envvar. Exits on missing."""
    if vault is not None:
        return vault
    env_val = os.environ.get("FLASHMARK_VAULT")
    if env_val:
        return Path(env_val)
    console.print(
        "[bold red]Error: --vault is required "
        "(or set the FLASHMARK_VAULT environment variable).[/bold red]"
    )
    raise typer.Exit(code=1)


def _open_vault(vault: Optional[Path]) -> MarkdownVault:
    root = _resolve_vault_path(vault)
    if not root.is_dir():
        console.print(f"[bold red]Error: Vault not found: {root}[/bold red]")
        raise typer.Exit(code=1)
    return MarkdownVault(VaultConfig(root_directory=root))


_vault_option = typer.Option(  # noqa: B008
    None,
    "--vault",
    help="Directory of Markdown notes. Falls back to FLASHMARK_VAULT env var.",
    envvar="FLASHMARK_VAULT",
)

_notes_argument = typer.Argument(  # noqa: B008
    None,
    help="Note IDs (paths relative to the vault). All notes when omitted.",
)


# ---------------------------------------------------------------------------
# IDs
# ---------------------------------------------------------------------------


@app.command()
def ids(
    notes: Optional[List[str]] = _notes_argument,
    vault: Optional[Path] = _vault_option,
):
    """List every card side declared in the vault."""
    source = _open_vault(vault)
    try:
        results = asyncio.run(get_all_ids_in_source(source, notes or None))
    except FlashmarkError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    table = Table(title="Declared IDs")
    table.add_column("Side", style="cyan")
    table.add_column("Card", style="magenta")
    table.add_column("Note", style="green")
    table.add_column("Deck")

    count = 0
    for result in results.values():
        for id in result.ids:
            deck = (
                ", ".join(id.deck_ids) if isinstance(id, DeckableFullID) else ""
            )
            table.add_row(id.side.value if id.side else "", id.card_id, id.note_id, deck)
            count += 1

    if not count:
        console.print("[yellow]No card declarations found.[/yellow]")
        return
    console.print(table)


# ---------------------------------------------------------------------------
# Show
# ---------------------------------------------------------------------------


def _print_side(title: str, id: Optional[FullID], markdown: Optional[str]):
    if id is None:
        console.print(f"[bold yellow]No {title.lower()} side found.[/bold yellow]")
        return
    console.rule(f"[bold]{title}[/bold] {id}")
    console.print(markdown, markup=False, highlight=False)


def _print_card(result: ParsedCardResult):
    card = result.complete or result.incomplete
    _print_side("Front", card.front_id, card.front_markdown)
    _print_side("Back", card.back_id, card.back_markdown)


@app.command()
def show(
    card: str = typer.Argument(
        ..., help="Card to show: `side@card@note` or `card@note`."
    ),
    vault: Optional[Path] = _vault_option,
    hint: Optional[List[str]] = typer.Option(  # noqa: B008
        None,
        "--hint",
        help="Note likely to hold a side of the card. May be repeated.",
    ),
    hide_marker: bool = typer.Option(
        False, "--hide-marker", help="Leave out the heading starting a side."
    ),
    show_declarations: bool = typer.Option(
        False,
        "--show-declarations",
        help="Keep the declaration blocks of the card in its content.",
    ),
):
    """Resolve one card and print both of its sides."""
    try:
        id = FullID.from_string(card)
    except ValueError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    source = _open_vault(vault)
    options = ParseOptions(
        content_read=ContentReadOptions(
            hide_card_marker=hide_marker,
            hide_declaration_block=not show_declarations,
        ),
        likely_note_ids=hint or [],
    )
    try:
        result = asyncio.run(resolve_card(id, source, options))
    except FlashmarkError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    if not result.found:
        console.print(
            f"[bold red]No card with ID '{id.card_id}' found.[/bold red]"
        )
        raise typer.Exit(code=1)

    _print_card(result)
    if result.incomplete is not None:
        missing = (
            Side.Back if result.incomplete.has_side(Side.Front) else Side.Front
        )
        console.print(
            f"[yellow]Card '{id.card_id}' is missing its "
            f"{missing.value} side.[/yellow]"
        )


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------


@app.command()
def check(
    notes: Optional[List[str]] = _notes_argument,
    vault: Optional[Path] = _vault_option,
):
    """Report declarations that need attention. Exits with 1 if any do."""
    source = _open_vault(vault)
    try:
        results = asyncio.run(get_all_ids_in_source(source, notes or None))
    except FlashmarkError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    problems = 0
    for result in results.values():
        for diagnostic in result.diagnostics:
            console.print(f"- {diagnostic}", markup=False)
            problems += 1

    if problems:
        console.print(
            f"[bold red]Found {problems} problem(s) in "
            f"{len(results)} note(s).[/bold red]"
        )
        raise typer.Exit(code=1)
    console.print(
        f"[bold green]All declarations in {len(results)} note(s) are valid."
        "[/bold green]"
    )


# ---------------------------------------------------------------------------
# Complete
# ---------------------------------------------------------------------------


@app.command()
def complete(
    check: bool = typer.Option(
        False,
        "--check",
        help="Run in check-only mode without modifying notes. "
        "Exits with 1 if changes are needed.",
    ),
    notes: Optional[List[str]] = _notes_argument,
    vault: Optional[Path] = _vault_option,
):
    """
    Give every front side declaration written without an `id` a generated
    one, rewriting the declaration block in place.
    """
    source = _open_vault(vault)
    changes_needed = complete_logic(
        source, check=check, note_ids=notes or None
    )
    if check and changes_needed:
        raise typer.Exit(code=1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main():
    """
    Run the CLI application.

    If an unexpected exception occurs, print a bold red error message to the console and exit the process with status code 1.
    """
    try:
        app()
    except Exception as e:
        console.print(f"[bold red]UNEXPECTED ERROR: {e}[/bold red]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
