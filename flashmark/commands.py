"""
Command strategies: turning one command declaration into card declarations.

Every strategy is a plain function taking the command, the level of the
heading holding the command block, the ordered delimiters of the note and
the indices of the delimiters inside that heading's range. It returns the
generated sides in document order, each with the range of its content.
Generated IDs are note scoped.
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

from .constants import (
    COMMAND_ALTERNATE_HEADINGS,
    COMMAND_HEADING_AND_DELIMITER,
    COMMAND_HEADING_IS_FRONT,
    DELIMITER_HORIZONTAL_RULE,
)
from .declarations import CardDeclaration, CommandDeclaration
from .models import IDScope, Side
from .outline import (
    Delimiter,
    Heading,
    Outline,
    Section,
    SectionRange,
    is_thematic_break,
)
from .ranges import find_next_heading, heading_range_and_interior

logger = logging.getLogger(__name__)

# Deepest Markdown heading level; a search up to it accepts any heading.
_ANY_HEADING_LEVEL = 6


class GeneratedDeclaration(NamedTuple):
    """One implicitly declared side and where its content is."""

    declaration: CardDeclaration
    range: SectionRange


Strategy = Callable[
    [CommandDeclaration, int, Sequence[Delimiter], Sequence[int]],
    List[GeneratedDeclaration],
]


def _generate(
    command: CommandDeclaration,
    card_id: str,
    is_front: bool,
    start: Optional[Delimiter],
    end: Optional[Delimiter],
) -> GeneratedDeclaration:
    return GeneratedDeclaration(
        declaration=CardDeclaration(
            id=card_id,
            side=Side.Front if is_front else Side.Back,
            scope=IDScope.NoteScoped,
            deck_id=command.deck_id,
            auto_generated=True,
        ),
        range=SectionRange(start=start, end=end),
    )


def _target_headings(
    command: CommandDeclaration,
    parent_level: int,
    delimiters: Sequence[Delimiter],
    interior: Sequence[int],
):
    """(index, heading) for headings `command.level` below the parent."""
    target_level = parent_level + command.level
    for index in interior:
        delimiter = delimiters[index]
        if (
            isinstance(delimiter, Heading)
            and delimiter.level == target_level
            and delimiter.text
        ):
            yield index, delimiter


def _find_front_end(
    level: int, index: int, delimiters: Sequence[Delimiter]
) -> Optional[Delimiter]:
    """The first thematic break before the next heading at `level` or
    higher; that heading when there is no such break."""
    for candidate in delimiters[index + 1:]:
        if is_thematic_break(candidate):
            return candidate
        if isinstance(candidate, Heading) and candidate.level <= level:
            return candidate
    return None


def _headings_split_by_rule(
    command: CommandDeclaration,
    parent_level: int,
    delimiters: Sequence[Delimiter],
    interior: Sequence[int],
    back_end_level: Optional[int],
) -> List[GeneratedDeclaration]:
    """
    Headings on the target level are fronts that end at the first thematic
    break of their section; the break starts the back side.

    The back ends at the next heading at `back_end_level` or higher, or at
    the front heading's own level when `back_end_level` is None.
    """
    generated: List[GeneratedDeclaration] = []
    target_level = parent_level + command.level
    # Level of the front heading waiting for its back side.
    open_front_level: Optional[int] = None

    for index in interior:
        delimiter = delimiters[index]

        if isinstance(delimiter, Heading):
            if delimiter.level != target_level or not delimiter.text:
                continue
            end = _find_front_end(delimiter.level, index, delimiters)
            generated.append(
                _generate(command, delimiter.text, True, delimiter, end)
            )
            open_front_level = (
                delimiter.level if is_thematic_break(end) else None
            )

        elif is_thematic_break(delimiter) and open_front_level is not None:
            level = (
                open_front_level if back_end_level is None else back_end_level
            )
            generated.append(
                _generate(
                    command,
                    generated[-1].declaration.id,
                    False,
                    delimiter,
                    find_next_heading(level, index, delimiters),
                )
            )
            open_front_level = None

    return generated


def alternate_headings(
    command: CommandDeclaration,
    parent_level: int,
    delimiters: Sequence[Delimiter],
    interior: Sequence[int],
) -> List[GeneratedDeclaration]:
    """
    Headings on the target level alternate between front and back.

    The first, third, ... heading is a front whose text is the card ID; the
    following heading is its back. Each side runs until the next heading on
    its level or higher. With `delimiter: horizontal rule` each target
    heading is a front and the thematic break after it starts the back,
    which runs until the next heading of any level.
    """
    if command.delimiter == DELIMITER_HORIZONTAL_RULE:
        return _headings_split_by_rule(
            command, parent_level, delimiters, interior, _ANY_HEADING_LEVEL
        )

    generated: List[GeneratedDeclaration] = []
    for index, heading in _target_headings(
        command, parent_level, delimiters, interior
    ):
        is_front = len(generated) % 2 == 0
        generated.append(
            _generate(
                command,
                heading.text if is_front else generated[-1].declaration.id,
                is_front,
                heading,
                find_next_heading(heading.level, index, delimiters),
            )
        )
    return generated


def heading_and_delimiter(
    command: CommandDeclaration,
    parent_level: int,
    delimiters: Sequence[Delimiter],
    interior: Sequence[int],
) -> List[GeneratedDeclaration]:
    """
    Each heading on the target level is a front ending at the first thematic
    break of its section; the back runs from that break to the next heading
    on the front heading's level or higher. A heading with no break in its
    section yields a front only.
    """
    return _headings_split_by_rule(
        command, parent_level, delimiters, interior, None
    )


def heading_is_front(
    command: CommandDeclaration,
    parent_level: int,
    delimiters: Sequence[Delimiter],
    interior: Sequence[int],
) -> List[GeneratedDeclaration]:
    """
    Each heading on the target level is the front of a card whose ID is the
    heading text; everything below it, up to the next heading on its level
    or higher, is the back.

    Both ranges are bounded by zero-width anchors at the heading's start and
    end offsets, so the front is exactly the heading line.
    """
    generated: List[GeneratedDeclaration] = []
    for index, heading in _target_headings(
        command, parent_level, delimiters, interior
    ):
        line = heading.position.line
        heading_start = Section.anchor(heading.position.start, line)
        heading_end = Section.anchor(heading.position.end, line)
        generated.append(
            _generate(command, heading.text, True, heading_start, heading_end)
        )
        generated.append(
            _generate(
                command,
                heading.text,
                False,
                heading_end,
                find_next_heading(heading.level, index, delimiters),
            )
        )
    return generated


STRATEGIES: Dict[str, Strategy] = {
    COMMAND_ALTERNATE_HEADINGS: alternate_headings,
    COMMAND_HEADING_AND_DELIMITER: heading_and_delimiter,
    COMMAND_HEADING_IS_FRONT: heading_is_front,
}


def generate_declarations(
    command: CommandDeclaration, section: Section, outline: Outline
) -> List[GeneratedDeclaration]:
    """
    Run the strategy of `command`, whose block is `section`, over the range
    of the heading the block sits under.

    Returns:
        List[GeneratedDeclaration]: Empty when the block is not under a
            heading or the heading has nothing below it.
    """
    section_range, delimiters, interior = heading_range_and_interior(
        section, outline
    )
    if not isinstance(section_range.start, Heading) or not interior:
        return []

    generated = STRATEGIES[command.name](
        command, section_range.start.level, delimiters, interior
    )
    logger.debug(
        "Command '%s' at offset %s generated %s sides.",
        command.name,
        section.position.start,
        len(generated),
    )
    return generated
