"""
Range engine: which part of a note a declaration block governs.

A block belongs to the nearest delimiter before it. The governed range runs
from that delimiter until the first later delimiter an end predicate
accepts; for headings, the next heading at the same or a higher level.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from .outline import Delimiter, Heading, Outline, Section, SectionRange

logger = logging.getLogger(__name__)

EndPredicate = Callable[[Delimiter, Delimiter], bool]

# (start delimiter, in-between delimiter, position among the in-between
#  delimiters, index into the ordered delimiters, the ordered delimiters)
InBetweenCallback = Callable[
    [Delimiter, Delimiter, int, int, Sequence[Delimiter]], None
]

# Same as InBetweenCallback with the start narrowed to a heading.
HeadingInBetweenCallback = Callable[
    [Heading, Delimiter, int, int, Sequence[Delimiter]], None
]


def sort_delimiters(delimiters: Sequence[Delimiter]) -> List[Delimiter]:
    """New list ordered by start offset; ties keep their given order."""
    return sorted(delimiters, key=lambda d: d.position.start)


def range_for_section(
    section: Section,
    candidate_delimiters: Sequence[Delimiter],
    end_predicate: EndPredicate,
    in_between: Optional[InBetweenCallback] = None,
) -> SectionRange:
    """
    Find the range that `section` (typically a code block) sits in.

    The start is the last delimiter starting at or before the end of
    `section`. Walking forward from there, the first delimiter accepted by
    `end_predicate(start, candidate)` is the end; every delimiter passed
    over on the way is handed to `in_between`.

    Returns:
        SectionRange: `start` is None when `section` precedes every
            delimiter; `end` is None when no delimiter ends the range.
    """
    ordered = sort_delimiters(candidate_delimiters)
    section_end = section.position.end

    start_index = None
    for index in range(len(ordered) - 1, -1, -1):
        if ordered[index].position.start <= section_end:
            start_index = index
            break

    if start_index is None:
        return SectionRange(start=None, end=None)

    start = ordered[start_index]
    end = None
    for index in range(start_index + 1, len(ordered)):
        candidate = ordered[index]
        if end_predicate(start, candidate):
            end = candidate
            break
        if in_between is not None:
            in_between(
                start, candidate, index - (start_index + 1), index, ordered
            )

    return SectionRange(start=start, end=end)


def heading_delimiters(outline: Outline) -> List[Delimiter]:
    """Headings and thematic breaks of `outline`, in document order."""
    delimiters: List[Delimiter] = list(outline.headings)
    delimiters.extend(s for s in outline.sections if s.is_thematic_break)
    return sort_delimiters(delimiters)


def ends_heading_range(start: Delimiter, candidate: Delimiter) -> bool:
    """A heading range ends at the next heading on the same or a higher level."""
    return (
        isinstance(start, Heading)
        and isinstance(candidate, Heading)
        and start.level >= candidate.level
    )


def heading_range_for_section(
    section: Section,
    outline: Outline,
    in_between: Optional[HeadingInBetweenCallback] = None,
) -> SectionRange:
    """
    The range of the heading `section` belongs to, ending at the next heading
    on the same or a higher level. Thematic breaks are passed to
    `in_between` but never end the range.
    """

    def forward(start, delimiter, position, index, delimiters):
        if isinstance(start, Heading):
            in_between(start, delimiter, position, index, delimiters)

    section_range = range_for_section(
        section,
        heading_delimiters(outline),
        ends_heading_range,
        forward if in_between is not None else None,
    )
    if section_range.start is not None and not isinstance(
        section_range.start, Heading
    ):
        logger.error(
            "Expected a heading to start the range of the section at "
            "offset %s, found %s.",
            section.position.start,
            getattr(section_range.start, "kind", section_range.start),
        )
    return section_range


def find_next_heading(
    level: int, index: int, delimiters: Sequence[Delimiter]
) -> Optional[Heading]:
    """
    The first heading after `delimiters[index]` whose level is `level` or
    higher (numerically lower or equal), or None.
    """
    for candidate in delimiters[index + 1:]:
        if isinstance(candidate, Heading) and candidate.level <= level:
            return candidate
    return None


def heading_range_and_interior(
    section: Section, outline: Outline
) -> Tuple[SectionRange, List[Delimiter], List[int]]:
    """
    `heading_range_for_section` together with the ordered delimiters and the
    indices of those lying strictly inside the range.
    """
    ordered = heading_delimiters(outline)
    interior: List[int] = []

    def collect(parent, delimiter, position, index, delimiters):
        interior.append(index)

    section_range = heading_range_for_section(section, outline, collect)
    return section_range, ordered, interior
