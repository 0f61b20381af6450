import logging

import pytest

from flashmark.declarations import (
    CardDeclaration,
    CommandDeclaration,
    can_complete,
    complete_declaration,
    content_of_code_block,
    declaration_from_frontmatter,
    parse_declaration_block,
    render_declaration_block,
    serialize_declaration,
    try_parse_yaml,
)
from flashmark.models import IDScope, Side
from flashmark.unique_id import is_valid_id


def block(body: str, language: str = "ct") -> str:
    return f"```{language}\n{body}```"


class TestCodeBlock:
    def test_location_of_yaml(self):
        source = block("side: front\nid: x\n")
        location = content_of_code_block(source)
        assert source[location.start:location.end] == "side: front\nid: x\n"

    @pytest.mark.parametrize("language", ["ct", "comethrough", "CT"])
    def test_accepted_languages(self, language):
        assert content_of_code_block(block("id: x\n", language)) is not None

    def test_other_language_is_ignored(self):
        assert content_of_code_block(block("print(1)\n", "python")) is None

    @pytest.mark.parametrize("fence", ["````", "~~~~~"])
    def test_longer_fences(self, fence):
        source = f"{fence}ct\nside: front\nid: x\n{fence}"
        location = content_of_code_block(source)
        assert source[location.start:location.end] == "side: front\nid: x\n"

    def test_unclosed_block(self):
        source = "```ct\nside: front\nid: x"
        location = content_of_code_block(source)
        assert source[location.start:location.end] == "side: front\nid: x"


class TestTryParseYaml:
    def test_keeps_values_as_strings(self):
        assert try_parse_yaml("id: 0123\nlevel: 2\n") == {
            "id": "0123",
            "level": "2",
        }

    def test_renames_deck(self):
        assert try_parse_yaml("deck: Spanish\n") == {"deck_id": "spanish"}

    def test_non_mapping(self):
        assert try_parse_yaml("- a\n- b\n") is None

    def test_parse_error_callback(self):
        errors = []
        assert try_parse_yaml("side: [front\n", errors.append) is None
        assert len(errors) == 1


class TestParseCardDeclaration:
    def test_card(self):
        declaration = parse_declaration_block(block("side: front\nid: abc\n"))
        assert declaration == CardDeclaration(id="abc", side=Side.Front)
        assert declaration.scope == IDScope.Unique
        assert not declaration.auto_generated

    def test_case_insensitive(self):
        declaration = parse_declaration_block(block("SIDE: B\nID: AbC\n"))
        assert declaration.side == Side.Back
        assert declaration.id == "abc"

    def test_deck(self):
        declaration = parse_declaration_block(
            block("side: back\nid: x\ndeck: Geo\n")
        )
        assert declaration.deck_id == "geo"

    def test_incomplete_reported(self):
        reported = []
        declaration = parse_declaration_block(
            block("side: front\n"),
            on_incomplete=lambda obj, loc: reported.append((obj, loc)),
        )
        assert declaration is None
        assert reported[0][0] == {"side": "front"}

    def test_invalid_yaml_reported(self):
        errors = []
        assert (
            parse_declaration_block(block("side: [\n"), on_parse_error=errors.append)
            is None
        )
        assert errors

    def test_invalid_side_is_logged(self, caplog):
        reported = []
        with caplog.at_level(logging.WARNING):
            declaration = parse_declaration_block(
                block("side: middle\nid: x\n"),
                on_incomplete=lambda *args: reported.append(args),
            )
        assert declaration is None
        assert not reported
        assert "invalid side" in caplog.text

    def test_not_a_declaration(self):
        assert parse_declaration_block(block("title: x\n")) is None


class TestParseCommandDeclaration:
    def test_defaults(self):
        declaration = parse_declaration_block(block("name: alternate headings\n"))
        assert declaration == CommandDeclaration(
            name="alternate headings", level=1, delimiter="heading"
        )

    def test_heading_and_delimiter_default_and_alias(self):
        default = parse_declaration_block(block("name: heading and delimiter\n"))
        alias = parse_declaration_block(
            block("name: heading and delimiter\ndelimiter: HR\n")
        )
        assert default.delimiter == "horizontal rule"
        assert alias.delimiter == "horizontal rule"

    def test_level_and_deck(self):
        declaration = parse_declaration_block(
            block("name: heading is front\nlevel: 2\ndeck: geo\n")
        )
        assert declaration.level == 2
        assert declaration.deck_id == "geo"

    @pytest.mark.parametrize(
        "body",
        [
            "name: nonsense\n",
            "name: alternate headings\nlevel: 0\n",
            "name: alternate headings\nlevel: many\n",
            "name: heading is front\ndelimiter: horizontal rule\n",
            "name: heading is front\ncolour: red\n",
        ],
    )
    def test_invalid_command_reported(self, body):
        reported = []
        declaration = parse_declaration_block(
            block(body),
            on_invalid_command=lambda obj, loc, reason: reported.append(reason),
        )
        assert declaration is None
        assert len(reported) == 1
        assert reported[0]


class TestSerialization:
    def test_card_without_deck_omits_deck(self):
        declaration = CardDeclaration(id="abc", side=Side.Front)
        assert serialize_declaration(declaration) == "side: front\nid: abc\n"

    def test_card_with_deck(self):
        declaration = CardDeclaration(id="abc", side=Side.Back, deck_id="geo")
        assert (
            serialize_declaration(declaration)
            == "side: back\nid: abc\ndeck: geo\n"
        )

    def test_command(self):
        declaration = CommandDeclaration(name="heading is front")
        assert serialize_declaration(declaration) == "name: heading is front\nlevel: 1\n"

    def test_rendered_block_parses_back(self):
        declaration = CardDeclaration(id="abc", side=Side.Front, deck_id="geo")
        rendered = render_declaration_block(declaration)
        assert rendered.startswith("```comethrough\n")
        assert parse_declaration_block(rendered) == declaration


class TestFrontmatter:
    def test_first_conforming_key_wins(self):
        declaration = declaration_from_frontmatter(
            {
                "title": "x",
                "ct": {"side": "Front", "id": 123},
                "come through": {"side": "back", "id": "other"},
            }
        )
        assert declaration == CardDeclaration(id="123", side=Side.Front)

    def test_no_declaration(self):
        assert declaration_from_frontmatter({"title": "x"}) is None
        assert declaration_from_frontmatter(None) is None

    def test_incomplete_reported(self):
        reported = []
        declaration_from_frontmatter(
            {"comethrough": {"side": "front"}},
            lambda obj, loc: reported.append(obj),
        )
        assert reported == [{"side": "front"}]


class TestCompletion:
    def test_can_complete(self):
        assert can_complete({"side": "front"})
        assert not can_complete({"side": "back"})
        assert not can_complete({"side": "front", "id": "x"})
        assert not can_complete({"title": "x"})

    def test_complete_declaration(self):
        declaration = complete_declaration(
            {"side": "f", "deck_id": "geo"}, prevent_ids={"aaaaaaaaaa"}
        )
        assert declaration.side == Side.Front
        assert declaration.deck_id == "geo"
        assert is_valid_id(declaration.id)

    def test_complete_back_side_raises(self):
        with pytest.raises(ValueError):
            complete_declaration({"side": "back"})
