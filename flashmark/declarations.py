"""
The declaration language embedded in notes.

A declaration is a fenced block tagged `comethrough` (or `ct`) holding a
small YAML mapping. It either declares one side of a card:

    side: front
    id: k3x09qpz1a
    deck: spanish

or is a command that makes cards out of a repeating heading pattern:

    name: alternate headings
    level: 1

Parsing never raises for bad input. Malformed YAML, incomplete card
declarations and invalid commands are reported through optional callbacks
so the caller can keep processing the rest of the note.
"""

import logging
from dataclasses import dataclass
from io import StringIO
from typing import Any, Callable, Dict, Literal, Mapping, Optional, Set, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)
from ruamel.yaml import YAML

from .constants import (
    CODE_BLOCK_LANGUAGES,
    CODE_BLOCK_MARKER_LENGTH,
    COMMAND_ALTERNATE_HEADINGS,
    COMMAND_HEADING_AND_DELIMITER,
    COMMAND_HEADING_IS_FRONT,
    DECK_FIELD,
    DECK_USER_KEY,
    DELIMITER_ALIASES,
    DELIMITER_HEADING,
    DELIMITER_HORIZONTAL_RULE,
    FRONTMATTER_KEYS,
    SIDE_VALUES,
)
from .models import IDScope, Side
from .unique_id import generate_id

logger = logging.getLogger(__name__)

_yaml_writer = YAML()
_yaml_writer.indent(mapping=2, sequence=4, offset=2)


@dataclass(frozen=True)
class DeclarationLocation:
    """Offsets of the YAML text within the block source (fences included)."""

    start: int
    end: int


ParseErrorCallback = Callable[[yaml.YAMLError], None]
IncompleteCallback = Callable[[Dict[str, Any], DeclarationLocation], None]
InvalidCommandCallback = Callable[
    [Dict[str, Any], DeclarationLocation, str], None
]


class CardDeclaration(BaseModel):
    """One side of a card, declared explicitly or generated by a command."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1)
    side: Side
    scope: IDScope = IDScope.Unique
    deck_id: Optional[str] = None
    auto_generated: bool = False

    @property
    def is_front(self) -> bool:
        return self.side == Side.Front


# Allowed delimiter values per command; the first one is the default.
_COMMAND_DELIMITERS = {
    COMMAND_ALTERNATE_HEADINGS: (DELIMITER_HEADING, DELIMITER_HORIZONTAL_RULE),
    COMMAND_HEADING_AND_DELIMITER: (DELIMITER_HORIZONTAL_RULE,),
    COMMAND_HEADING_IS_FRONT: (DELIMITER_HEADING,),
}

CommandName = Literal[
    "alternate headings", "heading and delimiter", "heading is front"
]


class CommandDeclaration(BaseModel):
    """
    A declaration that generates cards from the headings below the heading
    it is placed under. `level` is relative to that heading.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: CommandName
    level: int = Field(default=1, ge=1)
    delimiter: str = DELIMITER_HEADING
    deck_id: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def apply_defaults(cls, data: Any) -> Any:
        """
        Fill in the default `level` and `delimiter` and normalize delimiter
        aliases (`hr`). Empty values count as unset.
        """
        if not isinstance(data, dict):
            return data
        data = {k: (None if v == "" else v) for k, v in data.items()}
        if data.get("level") is None:
            data.pop("level", None)
        if data.get(DECK_FIELD) is None:
            data.pop(DECK_FIELD, None)

        allowed = _COMMAND_DELIMITERS.get(data.get("name"))
        if allowed is None:
            return data

        delimiter = data.get("delimiter")
        if delimiter is None:
            data["delimiter"] = allowed[0]
            return data
        if isinstance(delimiter, str):
            delimiter = DELIMITER_ALIASES.get(delimiter.strip(), delimiter.strip())
        if delimiter not in allowed:
            raise ValueError(
                f"Invalid delimiter '{data.get('delimiter')}' for "
                f"'{data['name']}'. Expected: {', '.join(allowed)}."
            )
        data["delimiter"] = delimiter
        return data


Declaration = Union[CardDeclaration, CommandDeclaration]


# --- Code block ---


def content_of_code_block(source: str) -> Optional[DeclarationLocation]:
    """
    Locate the YAML text of a declaration block.

    Parameters:
        source (str): The fenced block, opening and closing fence included.

    Returns:
        Optional[DeclarationLocation]: None when the fence language is not a
            declaration language.
    """
    first_line = source.split("\n", 1)[0]
    if not first_line:
        return None

    language = first_line.strip().lstrip("`~").strip().lower()
    if language not in CODE_BLOCK_LANGUAGES:
        return None

    start = min(len(first_line) + 1, len(source))
    end = len(source)
    last_line = source.rstrip().rsplit("\n", 1)[-1].strip()
    if start < end and last_line[:CODE_BLOCK_MARKER_LENGTH] in ("```", "~~~"):
        end = source.rstrip().rfind("\n") + 1
    return DeclarationLocation(start=start, end=max(start, end))


# --- YAML ---


def _from_user_keys(obj: Dict[str, Any]) -> Dict[str, Any]:
    if DECK_USER_KEY in obj:
        obj[DECK_FIELD] = obj.pop(DECK_USER_KEY)
    return obj


def _to_user_keys(obj: Dict[str, Any]) -> Dict[str, Any]:
    if DECK_FIELD in obj:
        obj[DECK_USER_KEY] = obj.pop(DECK_FIELD)
    return obj


def try_parse_yaml(
    text: str, on_parse_error: Optional[ParseErrorCallback] = None
) -> Optional[Dict[str, Any]]:
    """
    Parse declaration YAML. Declarations are case-insensitive, so `text` is
    lower-cased first. All scalars are read as strings.

    Returns:
        Optional[Dict[str, Any]]: The mapping with `deck` renamed to
            `deck_id`, or None if `text` is not a YAML mapping. Syntax errors
            are passed to `on_parse_error`.
    """
    try:
        obj = yaml.load(text.lower(), Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        if on_parse_error:
            on_parse_error(e)
        return None

    if not isinstance(obj, dict):
        return None
    return _from_user_keys(obj)


def declaration_to_mapping(declaration: Declaration) -> Dict[str, Any]:
    """User-facing mapping of `declaration`; `deck` only when set."""
    if isinstance(declaration, CardDeclaration):
        mapping: Dict[str, Any] = {
            "side": declaration.side.value,
            "id": declaration.id,
        }
    else:
        mapping = {
            "name": declaration.name,
            "level": declaration.level,
        }
        if declaration.name != COMMAND_HEADING_IS_FRONT:
            mapping["delimiter"] = declaration.delimiter
    if declaration.deck_id:
        mapping[DECK_FIELD] = declaration.deck_id
    return _to_user_keys(mapping)


def serialize_declaration(declaration: Declaration) -> str:
    """YAML text of `declaration`, as written inside a declaration block."""
    stream = StringIO()
    _yaml_writer.dump(declaration_to_mapping(declaration), stream)
    return stream.getvalue()


def render_declaration_block(
    declaration: Declaration, language: str = CODE_BLOCK_LANGUAGES[0]
) -> str:
    """`declaration` as a complete fenced block."""
    return f"```{language}\n{serialize_declaration(declaration)}```"


# --- Conformance ---


def _is_side_valid(value: Any) -> bool:
    return isinstance(value, str) and value.strip().lower() in SIDE_VALUES


def _is_deck_valid(obj: Mapping[str, Any]) -> bool:
    value = obj.get(DECK_FIELD)
    return value is None or isinstance(value, str)


def conforms_to_incomplete_card(obj: Any) -> bool:
    """A mapping with a valid side (and deck), whether or not it has an ID."""
    return (
        isinstance(obj, dict)
        and _is_side_valid(obj.get("side"))
        and _is_deck_valid(obj)
    )


def conforms_to_card(obj: Any) -> bool:
    return conforms_to_incomplete_card(obj) and _has_id(obj)


def conforms_to_command(obj: Any) -> bool:
    """A mapping naming a command; the name itself may be unknown."""
    return isinstance(obj, dict) and isinstance(obj.get("name"), str)


def _has_id(obj: Mapping[str, Any]) -> bool:
    value = obj.get("id")
    return isinstance(value, str) and bool(value.strip())


def _card_from_mapping(
    obj: Mapping[str, Any], scope: IDScope = IDScope.Unique
) -> CardDeclaration:
    return CardDeclaration(
        id=obj["id"].strip(),
        side=Side.parse(obj["side"]),
        scope=scope,
        deck_id=obj.get(DECK_FIELD) or None,
    )


def _describe_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(map(str, err['loc'])) or 'declaration'}: {err['msg']}"
        for err in error.errors()
    )


def _command_from_mapping(
    obj: Dict[str, Any],
    location: DeclarationLocation,
    on_invalid_command: Optional[InvalidCommandCallback],
) -> Optional[CommandDeclaration]:
    try:
        return CommandDeclaration.model_validate(obj)
    except ValidationError as e:
        reason = _describe_validation_error(e)
        logger.debug("Invalid command declaration %s: %s", obj, reason)
        if on_invalid_command:
            on_invalid_command(obj, location, reason)
        return None


def parse_declaration_block(
    source: str,
    on_parse_error: Optional[ParseErrorCallback] = None,
    on_incomplete: Optional[IncompleteCallback] = None,
    on_invalid_command: Optional[InvalidCommandCallback] = None,
) -> Optional[Declaration]:
    """
    Parse a fenced block into a card or command declaration.

    Parameters:
        source (str): The block including its opening and closing fences.
        on_parse_error: Called with the error when the YAML is malformed.
        on_incomplete: Called with the mapping and its location when a card
            declaration has a valid side but no `id`.
        on_invalid_command: Called with the mapping, its location and a
            reason when a command is unknown or has invalid values.

    Returns:
        Optional[Declaration]: None if the block is not a (valid) declaration.
    """
    location = content_of_code_block(source)
    if location is None:
        return None

    obj = try_parse_yaml(source[location.start:location.end], on_parse_error)
    if obj is None:
        return None

    if conforms_to_command(obj):
        return _command_from_mapping(obj, location, on_invalid_command)

    if conforms_to_card(obj):
        return _card_from_mapping(obj)

    if conforms_to_incomplete_card(obj):
        if on_incomplete:
            on_incomplete(obj, location)
        return None

    if "side" in obj:
        logger.warning("Ignoring declaration with invalid side: %s", obj)
    return None


def _normalize_frontmatter_value(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            str(k).lower(): _normalize_frontmatter_value(v)
            for k, v in value.items()
        }
    if value is None or isinstance(value, (list, bool)):
        return value
    return str(value).lower()


def declaration_from_frontmatter(
    frontmatter: Optional[Mapping[str, Any]],
    on_incomplete: Optional[IncompleteCallback] = None,
) -> Optional[CardDeclaration]:
    """
    The first card declaration found under one of the declaration keys of a
    note's frontmatter.
    """
    if not frontmatter:
        return None

    for key in FRONTMATTER_KEYS:
        value = frontmatter.get(key)
        if not isinstance(value, dict):
            continue
        obj = _from_user_keys(_normalize_frontmatter_value(value))
        if conforms_to_card(obj):
            return _card_from_mapping(obj)
        if conforms_to_incomplete_card(obj) and on_incomplete:
            on_incomplete(obj, DeclarationLocation(start=0, end=0))
    return None


# --- Completion ---


def can_complete(obj: Any) -> bool:
    """
    Whether `obj` is a front side declaration lacking only its ID.

    Only a front side can receive a generated ID: the back side must repeat
    the ID of its front.
    """
    if not conforms_to_incomplete_card(obj) or _has_id(obj):
        return False
    return Side.parse(obj["side"]) == Side.Front


def complete_declaration(
    obj: Dict[str, Any], prevent_ids: Optional[Set[str]] = None
) -> CardDeclaration:
    """
    Give an incomplete front side declaration a generated ID.

    Raises:
        ValueError: If `can_complete(obj)` is False.
    """
    if not can_complete(obj):
        raise ValueError("Could not complete given declaration block.")
    return _card_from_mapping({**obj, "id": generate_id(prevent_ids)})
