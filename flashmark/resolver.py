"""
Resolver: finds the IDs declared in notes and assembles cards from them.

Within one note, declarations are discovered in a fixed order: the
frontmatter, then headings, then sections (for each section the explicit
declaration, then the declarations its command generates). When an ID is
declared more than once, the first occurrence wins and later ones are
reported as duplicates.

Notes are read one at a time so that `resolve_card` can stop as soon as
both sides of the requested card are found.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

import yaml

from .commands import generate_declarations
from .content import ContentReadOptions, extract_content
from .declarations import (
    CardDeclaration,
    CommandDeclaration,
    DeclarationLocation,
    declaration_from_frontmatter,
    parse_declaration_block,
)
from .diagnostics import (
    DuplicateID,
    IncompleteDeclaration,
    InvalidCommand,
    InvalidYAML,
    ParseDiagnostics,
)
from .exceptions import OutlineUnavailableError
from .markers import find_full_id
from .models import (
    FullID,
    IDScope,
    MaybeParsedCard,
    NoteID,
    ParsedCardResult,
)
from .outline import (
    Outline,
    Position,
    Section,
    SectionKind,
    SectionRange,
)
from .ranges import heading_range_for_section
from .vault import DocumentSource

logger = logging.getLogger(__name__)

IDFilter = Callable[[FullID], bool]


@dataclass
class ParseOptions:
    """
    Options for resolving cards.

    Attributes:
        content_read (ContentReadOptions): How side content is read.
        likely_note_ids (List[NoteID]): Notes to read early because they
            probably hold a side of the requested card.
    """

    content_read: ContentReadOptions = field(default_factory=ContentReadOptions)
    likely_note_ids: List[NoteID] = field(default_factory=list)


class IdentifiedContentInfo(NamedTuple):
    """A declared side and where to read its content."""

    id: FullID
    scope: IDScope
    # Where the side is declared. For generated sides this is the command
    # block, since the side itself has no declaration.
    section: Section
    range: SectionRange


@dataclass
class IDScanResult:
    ids: List[FullID] = field(default_factory=list)
    diagnostics: ParseDiagnostics = field(default_factory=ParseDiagnostics)


# --- Scanning one note ---


def _frontmatter_info(
    note_id: NoteID, outline: Outline, diagnostics: ParseDiagnostics
) -> Optional[IdentifiedContentInfo]:
    section = outline.frontmatter_section or Section(
        kind=SectionKind.Frontmatter, position=Position(start=0, end=0)
    )

    def on_incomplete(obj, location):
        diagnostics.incomplete_declarations.append(
            IncompleteDeclaration(note_id, section, "", obj, location)
        )

    declaration = declaration_from_frontmatter(outline.frontmatter, on_incomplete)
    if declaration is None:
        return None
    return IdentifiedContentInfo(
        id=FullID.from_declaration(declaration, note_id),
        scope=declaration.scope,
        section=section,
        range=SectionRange(start=outline.frontmatter_section, end=None),
    )


def _heading_infos(note_id: NoteID, outline: Outline):
    headings = outline.headings
    for index, heading in enumerate(headings):
        id = find_full_id(heading.text, note_id)
        if id is None:
            continue
        end = next(
            (h for h in headings[index + 1:] if h.level <= heading.level),
            None,
        )
        yield IdentifiedContentInfo(
            id=id,
            scope=IDScope.NoteScoped,
            section=Section(kind=SectionKind.Heading, position=heading.position),
            range=SectionRange(start=heading, end=end),
        )


def _section_infos(
    note_id: NoteID,
    text: str,
    outline: Outline,
    diagnostics: ParseDiagnostics,
):
    for section in outline.sections:
        if not section.is_code:
            continue
        source = text[section.position.start:section.position.end]

        def on_parse_error(error: yaml.YAMLError):
            diagnostics.invalid_yaml.append(
                InvalidYAML(note_id, section, source, str(error))
            )

        def on_incomplete(obj, location: DeclarationLocation):
            diagnostics.incomplete_declarations.append(
                IncompleteDeclaration(note_id, section, source, obj, location)
            )

        def on_invalid_command(obj, location: DeclarationLocation, reason: str):
            diagnostics.invalid_commands.append(
                InvalidCommand(note_id, section, obj, location, reason)
            )

        declaration = parse_declaration_block(
            source, on_parse_error, on_incomplete, on_invalid_command
        )

        if isinstance(declaration, CardDeclaration):
            yield IdentifiedContentInfo(
                id=FullID.from_declaration(declaration, note_id),
                scope=declaration.scope,
                section=section,
                range=heading_range_for_section(section, outline),
            )
        elif isinstance(declaration, CommandDeclaration):
            for generated in generate_declarations(declaration, section, outline):
                yield IdentifiedContentInfo(
                    id=FullID.from_declaration(generated.declaration, note_id),
                    scope=generated.declaration.scope,
                    section=section,
                    range=generated.range,
                )


def _scan_note(
    note_id: NoteID, text: str, outline: Outline
) -> Tuple[List[IdentifiedContentInfo], List[Section], ParseDiagnostics]:
    """
    Returns the first occurrence of every declared side, the sections of all
    declarations (duplicates included) and the diagnostics of the note.
    """
    diagnostics = ParseDiagnostics()
    found: List[IdentifiedContentInfo] = []

    frontmatter = _frontmatter_info(note_id, outline, diagnostics)
    if frontmatter is not None:
        found.append(frontmatter)
    found.extend(_heading_infos(note_id, outline))
    found.extend(_section_infos(note_id, text, outline, diagnostics))

    infos: List[IdentifiedContentInfo] = []
    seen = set()
    for info in found:
        key = f"{info.scope.value}:{info.id}"
        if key in seen:
            diagnostics.duplicate_ids.append(DuplicateID(info.id, info.scope))
            continue
        seen.add(key)
        infos.append(info)

    return infos, [info.section for info in found], diagnostics


def find_all_content_infos(
    note_id: NoteID, text: str, outline: Outline
) -> List[IdentifiedContentInfo]:
    """Every side declared in a note, in discovery order."""
    infos, _, _ = _scan_note(note_id, text, outline)
    return infos


def get_all_ids(
    note_id: NoteID,
    text: str,
    outline: Outline,
    id_filter: Optional[IDFilter] = None,
) -> IDScanResult:
    """
    Enumerate the IDs declared in one note.

    Parameters:
        note_id (NoteID): ID of the note.
        text (str): Its full text.
        outline (Outline): Its outline.
        id_filter (Optional[IDFilter]): Only IDs it accepts are returned.
            Duplicates are reported regardless.

    Returns:
        IDScanResult: The IDs in discovery order and the diagnostics.
    """
    infos, _, diagnostics = _scan_note(note_id, text, outline)
    ids = [
        info.id for info in infos if id_filter is None or id_filter(info.id)
    ]
    return IDScanResult(ids=ids, diagnostics=diagnostics)


def sort_by_likelihood(
    note_ids: Sequence[NoteID],
    id: FullID,
    hints: Optional[Sequence[NoteID]] = None,
) -> List[NoteID]:
    """
    Order notes by how likely they hold a side of `id`: its own note first,
    then hinted notes, then the rest. The order is otherwise kept.
    """
    hints = set(hints or ())

    def rank(note_id: NoteID) -> int:
        if note_id == id.note_id:
            return 0
        if note_id in hints:
            return 1
        return 2

    return sorted(note_ids, key=rank)


# --- Reading content ---


def _read_sides(
    text: str,
    infos: Sequence[IdentifiedContentInfo],
    declaration_sections: Sequence[Section],
    cards: Dict[str, MaybeParsedCard],
    key: Callable[[IdentifiedContentInfo], str],
    options: ParseOptions,
    is_done: Optional[Callable[[IdentifiedContentInfo, MaybeParsedCard], bool]] = None,
) -> bool:
    """
    Read the content of `infos` into `cards`. A side already present is kept.

    Returns:
        bool: True if `is_done` stopped the iteration.
    """
    for info in infos:
        card = cards.setdefault(key(info), MaybeParsedCard())
        if not card.has_side(info.id.side):
            card.set_side(
                info.id,
                extract_content(
                    text,
                    info.section,
                    info.range,
                    declaration_sections,
                    options.content_read,
                ),
            )
        if is_done is not None and is_done(info, card):
            return True
    return False


async def _read_note(
    note_id: NoteID, source: DocumentSource
) -> Tuple[str, Outline]:
    text = await source.read_text(note_id)
    outline = source.outline(note_id, text)
    if outline is None:
        raise OutlineUnavailableError(note_id)
    return text, outline


async def resolve_card(
    id: FullID, source: DocumentSource, options: Optional[ParseOptions] = None
) -> ParsedCardResult:
    """
    Find both sides of the card `id` refers to and read their content.

    Notes are scanned one at a time in likelihood order (see
    `sort_by_likelihood`), stopping as soon as both sides are found. For a
    unique ID the sides may be in any notes; for a note scoped ID only sides
    in `id.note_id` count.

    Raises:
        MissingComponentError: If `id` has no card ID.
        OutlineUnavailableError: If a scanned note has no outline.
        DocumentReadError: If a scanned note cannot be read.

    Returns:
        ParsedCardResult: `complete` when both sides were found,
            `incomplete` when only one was, neither when nothing was.
    """
    options = options or ParseOptions()
    id.card_id_or_raise()

    def matches(info: IdentifiedContentInfo) -> bool:
        if info.scope == IDScope.Unique:
            return info.id.is_card_equal(id)
        return info.id.is_equal(id, side_insensitive=True)

    def is_done(info: IdentifiedContentInfo, card: MaybeParsedCard) -> bool:
        if not card.is_complete:
            return False
        if info.scope == IDScope.Unique:
            return card.front_id.is_card_equal(id)
        return card.front_id.is_equal(id, side_insensitive=True)

    cards: Dict[str, MaybeParsedCard] = {}
    ordered = sort_by_likelihood(
        source.note_ids(), id, options.likely_note_ids
    )
    for scanned, note_id in enumerate(ordered, start=1):
        text, outline = await _read_note(note_id, source)
        infos, sections, _ = _scan_note(note_id, text, outline)
        logger.debug("Scanning note '%s' for card '%s'.", note_id, id.card_id)

        stopped = _read_sides(
            text,
            [info for info in infos if matches(info)],
            sections,
            cards,
            lambda info: info.id.card_id,
            options,
            is_done,
        )
        card = cards.get(id.card_id)
        if stopped or (card is not None and card.is_complete):
            logger.debug(
                "Found both sides of '%s' after %s of %s notes.",
                id.card_id,
                scanned,
                len(ordered),
            )
            break

    card = cards.get(id.card_id)
    if card is None:
        return ParsedCardResult()
    return ParsedCardResult.from_maybe(card)


async def get_all_cards(
    source: DocumentSource, options: Optional[ParseOptions] = None
) -> Dict[str, ParsedCardResult]:
    """
    Read every card of every note.

    Returns:
        Dict[str, ParsedCardResult]: Keyed by `FullID.card_key`, i.e. the
            card ID for unique IDs and `card@note` for note scoped ones.
    """
    options = options or ParseOptions()
    cards: Dict[str, MaybeParsedCard] = {}
    note_ids = source.note_ids()

    for note_id in note_ids:
        text, outline = await _read_note(note_id, source)
        infos, sections, _ = _scan_note(note_id, text, outline)
        _read_sides(
            text,
            infos,
            sections,
            cards,
            lambda info: info.id.card_key(info.scope),
            options,
        )

    results = {key: ParsedCardResult.from_maybe(card) for key, card in cards.items()}
    logger.info(
        "Read %s cards (%s complete) from %s notes.",
        len(results),
        sum(1 for r in results.values() if r.complete is not None),
        len(note_ids),
    )
    return results


async def get_all_ids_in_source(
    source: DocumentSource,
    note_ids: Optional[Sequence[NoteID]] = None,
    id_filter: Optional[IDFilter] = None,
) -> Dict[NoteID, IDScanResult]:
    """`get_all_ids` for every note of `source` (or only `note_ids`)."""
    results: Dict[NoteID, IDScanResult] = {}
    for note_id in note_ids if note_ids is not None else source.note_ids():
        text, outline = await _read_note(note_id, source)
        results[note_id] = get_all_ids(note_id, text, outline, id_filter)

    logger.info(
        "Found %s IDs in %s notes.",
        sum(len(r.ids) for r in results.values()),
        len(results),
    )
    return results
