import logging

from flashmark.outline import Heading, SectionKind, build_outline
from flashmark.ranges import (
    find_next_heading,
    heading_delimiters,
    heading_range_and_interior,
    heading_range_for_section,
    range_for_section,
)


def code_section(outline, index=0):
    return outline.sections_of_kind(SectionKind.Code)[index]


def heading_text(delimiter):
    return delimiter.text if isinstance(delimiter, Heading) else delimiter.kind


class TestHeadingRangeForSection:
    def test_block_between_sibling_headings(self):
        outline = build_outline(
            "# A\n## B\n```ct\nx\n```\ntext\n## C\nmore\n"
        )
        section_range = heading_range_for_section(code_section(outline), outline)
        assert section_range.start.text == "B"
        assert section_range.end.text == "C"

    def test_range_ends_at_higher_level_heading(self):
        outline = build_outline("# A\n```ct\nx\n```\n## B\n### C\n# D\n")
        section_range = heading_range_for_section(code_section(outline), outline)
        assert section_range.start.text == "A"
        assert section_range.end.text == "D"

    def test_block_after_last_heading(self):
        outline = build_outline("# A\n## B\n```ct\nx\n```\n")
        section_range = heading_range_for_section(code_section(outline), outline)
        assert section_range.start.text == "B"
        assert section_range.end is None

    def test_block_before_any_heading(self):
        outline = build_outline("```ct\nx\n```\n# A\n")
        section_range = heading_range_for_section(code_section(outline), outline)
        assert section_range.start is None
        assert section_range.end is None

    def test_thematic_breaks_do_not_end_range(self):
        outline = build_outline("# A\n```ct\nx\n```\n***\ntext\n# B\n")
        section_range = heading_range_for_section(code_section(outline), outline)
        assert section_range.end.text == "B"

    def test_start_that_is_not_a_heading_is_logged(self, caplog):
        outline = build_outline("# A\n***\n```ct\nx\n```\n## B\n")
        visited = []
        with caplog.at_level(logging.ERROR):
            section_range = heading_range_for_section(
                code_section(outline),
                outline,
                lambda *args: visited.append(args),
            )
        assert section_range.start.kind == SectionKind.ThematicBreak
        assert visited == []
        assert "Expected a heading" in caplog.text

    def test_start_that_is_not_a_heading_is_logged_without_callback(self, caplog):
        outline = build_outline("# Q\n***\n```ct\nside: front\nid: x\n```\n")
        with caplog.at_level(logging.ERROR):
            section_range = heading_range_for_section(
                code_section(outline), outline
            )
        assert section_range.start.kind == SectionKind.ThematicBreak
        assert section_range.end is None
        assert "Expected a heading" in caplog.text

    def test_heading_start_logs_nothing(self, caplog):
        outline = build_outline("# Q\n```ct\nside: front\nid: x\n```\n")
        with caplog.at_level(logging.ERROR):
            heading_range_for_section(code_section(outline), outline)
        assert caplog.text == ""


class TestRangeForSection:
    def test_in_between_positions(self):
        outline = build_outline("# A\n```ct\nx\n```\n## B\n***\n## C\n# D\n")
        visited = []
        range_for_section(
            code_section(outline),
            heading_delimiters(outline),
            lambda start, candidate: isinstance(candidate, Heading)
            and candidate.level <= start.level,
            lambda start, delimiter, position, index, ordered: visited.append(
                (heading_text(delimiter), position, index)
            ),
        )
        assert visited == [
            ("B", 0, 1),
            (SectionKind.ThematicBreak, 1, 2),
            ("C", 2, 3),
        ]

    def test_unsorted_candidates(self):
        outline = build_outline("# A\n```ct\nx\n```\n# B\n")
        reversed_candidates = list(reversed(outline.headings))
        section_range = range_for_section(
            code_section(outline),
            reversed_candidates,
            lambda start, candidate: True,
        )
        assert section_range.start.text == "A"
        assert section_range.end.text == "B"


class TestInterior:
    def test_heading_range_and_interior(self):
        outline = build_outline("# A\n```ct\nx\n```\n## B\n***\n## C\n# D\n")
        section_range, ordered, interior = heading_range_and_interior(
            code_section(outline), outline
        )
        assert section_range.end.text == "D"
        assert [heading_text(ordered[i]) for i in interior] == [
            "B",
            SectionKind.ThematicBreak,
            "C",
        ]

    def test_find_next_heading(self):
        outline = build_outline("# A\n## B\n***\n### C\n## D\n")
        delimiters = heading_delimiters(outline)
        assert find_next_heading(2, 1, delimiters).text == "D"
        assert find_next_heading(3, 1, delimiters).text == "C"
        assert find_next_heading(1, 0, delimiters) is None
