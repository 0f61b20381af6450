"""
Inline side markers in heading text.

A heading such as `## front@capital` or `### b@capital` declares one side of
a note-scoped card. Matching is case-insensitive; `f` and `b` abbreviate
`front` and `back`. Only the first marker of a heading counts.
"""

import re
from typing import NamedTuple, Optional

from .models import FullID, NoteID, Side

# Not preceded by a word character, so e-mail addresses do not match.
MARKER_REGEX = re.compile(r"(?<!\w)(front|f|back|b)@([^\s]+)", re.IGNORECASE)


class Marker(NamedTuple):
    side: Side
    card_id: str
    # Offsets of the whole token within the searched text.
    start: int
    end: int


def find_marker(text: str) -> Optional[Marker]:
    """Return the first side marker in `text`, or None."""
    match = MARKER_REGEX.search(text)
    if not match:
        return None
    return Marker(
        side=Side.parse(match.group(1)),
        card_id=match.group(2),
        start=match.start(),
        end=match.end(),
    )


def find_full_id(text: str, note_id: NoteID) -> Optional[FullID]:
    """Build the note-scoped ID declared by a marker in `text`, if any."""
    marker = find_marker(text)
    if marker is None:
        return None
    return FullID.create(note_id, marker.card_id, marker.side == Side.Front)
