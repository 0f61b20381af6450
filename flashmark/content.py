"""
Content extraction: the Markdown that belongs to one card side.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .markers import find_marker
from .outline import Section, SectionKind, SectionRange

# Half-open `[start, end)` character span.
Span = Tuple[int, int]

# What is left of a heading line once its marker is cut out.
_EMPTY_HEADING = re.compile(r"^[#\s=-]*$")


@dataclass
class ContentReadOptions:
    """
    Options for reading the content of a card side.

    Attributes:
        hide_card_marker (bool): Leave out the delimiter that starts the
            side (e.g. the heading line).
        hide_declaration_block (bool): Leave out the side's own declaration
            block and, for heading markers, the `front@id` token.
    """

    hide_card_marker: bool = False
    hide_declaration_block: bool = True


def substring_excluding_ranges(text: str, excluded: Iterable[Span]) -> str:
    """`text` with every span in `excluded` cut out; spans may overlap."""
    parts: List[str] = []
    position = 0
    for start, end in sorted(excluded):
        if start > position:
            parts.append(text[position:start])
        position = max(position, end)
    parts.append(text[position:])
    return "".join(parts)


def _heading_exclusions(text: str, start: int, end: int) -> List[Span]:
    heading = text[start:end]
    marker = find_marker(heading)
    if marker is None:
        return []
    rest = heading[:marker.start] + heading[marker.end:]
    if _EMPTY_HEADING.match(rest):
        return [(start, end)]
    return [(start + marker.start, start + marker.end)]


def extract_content(
    text: str,
    section: Section,
    section_range: SectionRange,
    declaration_sections: Iterable[Section],
    options: Optional[ContentReadOptions] = None,
) -> str:
    """
    Return the content of the side declared in `section` whose content lies
    in `section_range`.

    Everything before the range start and from the range end on is left
    out, as is every declaration block (`declaration_sections`) starting
    inside the range. The side's own block is kept unless
    `options.hide_declaration_block` is set.

    Parameters:
        text (str): Full text of the note.
        section (Section): Where the side is declared: a heading, a code
            block (explicit declaration or command) or the frontmatter.
        section_range (SectionRange): Delimiters bounding the content.
        declaration_sections: Sections of all declarations in the note.
        options (ContentReadOptions): Defaults to `ContentReadOptions()`.

    Returns:
        str: The content, stripped of surrounding whitespace.
    """
    options = options or ContentReadOptions()

    start = section_range.start
    start_start = start.position.start if start is not None else 0
    start_end = start.position.end if start is not None else 0
    end_offset = (
        section_range.end.position.start
        if section_range.end is not None
        else len(text)
    )

    excluded: List[Span] = []

    if section.kind == SectionKind.Heading and options.hide_declaration_block:
        excluded.append((0, start_start))
        excluded.extend(_heading_exclusions(text, start_start, start_end))
    elif section.kind == SectionKind.Frontmatter:
        excluded.append((0, max(start_end, section.position.end)))
    else:
        excluded.append(
            (0, start_end if options.hide_card_marker else start_start)
        )

    for other in declaration_sections:
        if not other.is_code:
            continue
        if start_end < other.position.start < end_offset:
            if (
                options.hide_declaration_block
                or other.position.start != section.position.start
            ):
                excluded.append((other.position.start, other.position.end))

    excluded.append((end_offset, len(text)))

    return substring_excluding_ranges(text, excluded).strip()
