"""
Structural outline of a note: headings, sections and frontmatter with
character offsets into the note's text.

The host application normally owns the outline. `build_outline` is a small,
line-based block scanner producing the same shape for plain Markdown files,
so notes on disk can be indexed without a host.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class SectionKind(str, Enum):
    """Kind of a top-level block of a note."""

    Heading = "heading"
    Code = "code"
    ThematicBreak = "thematicBreak"
    Paragraph = "paragraph"
    Frontmatter = "yaml"
    # Zero-width position used as a synthetic delimiter.
    Anchor = "anchor"


class Position(BaseModel):
    """Half-open span `[start, end)` of character offsets."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    line: int = Field(default=0, ge=0, description="Zero-based start line.")


class Heading(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["heading"] = "heading"
    text: str
    level: int = Field(..., ge=1, le=6)
    position: Position


class Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: SectionKind
    position: Position

    @classmethod
    def anchor(cls, offset: int, line: int = 0) -> "Section":
        """A zero-width delimiter located at `offset`."""
        return cls(
            kind=SectionKind.Anchor,
            position=Position(start=offset, end=offset, line=line),
        )

    @property
    def is_code(self) -> bool:
        return self.kind == SectionKind.Code

    @property
    def is_thematic_break(self) -> bool:
        return self.kind == SectionKind.ThematicBreak


# A boundary used when computing content ranges.
Delimiter = Union[Heading, Section]


def is_heading(delimiter: Optional[Delimiter]) -> bool:
    return isinstance(delimiter, Heading)


def is_thematic_break(delimiter: Optional[Delimiter]) -> bool:
    return (
        isinstance(delimiter, Section)
        and delimiter.kind == SectionKind.ThematicBreak
    )


class SectionRange(BaseModel):
    """
    Content between two delimiters: `[start.position.end, end.position.start)`.

    A missing start means "from the start of the note", a missing end
    "to the end of the note".
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: Optional[Delimiter] = None
    end: Optional[Delimiter] = None


class Outline(BaseModel):
    """Headings and sections of one note, both in document order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    headings: List[Heading] = Field(default_factory=list)
    sections: List[Section] = Field(default_factory=list)
    frontmatter: Optional[Dict[str, Any]] = None
    frontmatter_section: Optional[Section] = None

    def sections_of_kind(self, kind: SectionKind) -> List[Section]:
        return [s for s in self.sections if s.kind == kind]


# --- Markdown outline builder ---

_ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?(?:[ \t]+#+)?[ \t]*$")
_FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})(.*)$")
_THEMATIC_BREAK = re.compile(
    r"^ {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$"
)
_SETEXT_UNDERLINE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_FRONTMATTER_DELIMITER = "---"


class _Line:
    __slots__ = ("number", "start", "end", "text")

    def __init__(self, number: int, start: int, text: str):
        self.number = number
        self.start = start
        self.end = start + len(text)
        self.text = text


def _split_lines(text: str) -> List[_Line]:
    lines = []
    offset = 0
    for number, raw in enumerate(text.split("\n")):
        lines.append(_Line(number, offset, raw.rstrip("\r")))
        offset += len(raw) + 1
    return lines


def _parse_frontmatter(
    lines: List[_Line], text: str
) -> Tuple[Optional[Section], Optional[Dict[str, Any]], int]:
    """Returns the frontmatter section, its data and the first body line."""
    if not lines or lines[0].text != _FRONTMATTER_DELIMITER:
        return None, None, 0
    for index in range(1, len(lines)):
        if lines[index].text in (_FRONTMATTER_DELIMITER, "..."):
            section = Section(
                kind=SectionKind.Frontmatter,
                position=Position(start=0, end=lines[index].end, line=0),
            )
            raw = text[lines[0].end + 1:lines[index].start]
            try:
                data = yaml.safe_load(raw)
            except yaml.YAMLError as e:
                logger.warning("Ignoring unparsable frontmatter: %s", e)
                data = None
            if not isinstance(data, dict):
                data = None
            return section, data, index + 1
    return None, None, 0


def build_outline(text: str) -> Outline:
    """
    Scan Markdown `text` into an `Outline`.

    Recognizes YAML frontmatter, ATX and setext headings, fenced code blocks
    (backticks or tildes; an unclosed fence runs to the end of the note),
    thematic breaks and paragraphs. Other block types are folded into
    paragraphs, which is enough for locating declarations.

    Parameters:
        text (str): The full note text.

    Returns:
        Outline: Headings and sections in document order.
    """
    lines = _split_lines(text)
    frontmatter_section, frontmatter, index = _parse_frontmatter(lines, text)

    headings: List[Heading] = []
    sections: List[Section] = []
    if frontmatter_section is not None:
        sections.append(frontmatter_section)

    paragraph: List[_Line] = []

    def flush_paragraph():
        if paragraph:
            sections.append(
                Section(
                    kind=SectionKind.Paragraph,
                    position=Position(
                        start=paragraph[0].start,
                        end=paragraph[-1].end,
                        line=paragraph[0].number,
                    ),
                )
            )
            paragraph.clear()

    def add_heading(level: int, heading_text: str, first: _Line, last: _Line):
        position = Position(start=first.start, end=last.end, line=first.number)
        headings.append(
            Heading(text=heading_text, level=level, position=position)
        )
        sections.append(Section(kind=SectionKind.Heading, position=position))

    while index < len(lines):
        line = lines[index]

        if not line.text.strip():
            flush_paragraph()
            index += 1
            continue

        fence = _FENCE_OPEN.match(line.text)
        if fence and not (fence.group(1)[0] == "`" and "`" in fence.group(2)):
            flush_paragraph()
            marker = fence.group(1)
            closing = re.compile(
                r"^ {0,3}" + re.escape(marker[0]) + "{" + str(len(marker)) + r",}[ \t]*$"
            )
            end_line = lines[-1]
            next_index = len(lines)
            for candidate in range(index + 1, len(lines)):
                if closing.match(lines[candidate].text):
                    end_line = lines[candidate]
                    next_index = candidate + 1
                    break
            sections.append(
                Section(
                    kind=SectionKind.Code,
                    position=Position(
                        start=line.start, end=end_line.end, line=line.number
                    ),
                )
            )
            index = next_index
            continue

        atx = _ATX_HEADING.match(line.text)
        if atx:
            flush_paragraph()
            add_heading(len(atx.group(1)), (atx.group(2) or "").strip(), line, line)
            index += 1
            continue

        setext = _SETEXT_UNDERLINE.match(line.text)
        if paragraph and setext:
            level = 1 if setext.group(1)[0] == "=" else 2
            heading_text = " ".join(p.text.strip() for p in paragraph)
            first = paragraph[0]
            paragraph.clear()
            add_heading(level, heading_text, first, line)
            index += 1
            continue

        if _THEMATIC_BREAK.match(line.text):
            flush_paragraph()
            sections.append(
                Section(
                    kind=SectionKind.ThematicBreak,
                    position=Position(
                        start=line.start, end=line.end, line=line.number
                    ),
                )
            )
            index += 1
            continue

        paragraph.append(line)
        index += 1

    flush_paragraph()

    return Outline(
        headings=headings,
        sections=sections,
        frontmatter=frontmatter,
        frontmatter_section=frontmatter_section,
    )
