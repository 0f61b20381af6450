"""
Identifier and result models.

A `FullID` addresses one side of one card declared somewhere in a note;
`ParsedCard` carries the extracted Markdown of both sides.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import BACK_SIDE_VALUES, FRONT_SIDE_VALUES, SIDE_VALUES
from .exceptions import InvalidSideError, MissingComponentError

if TYPE_CHECKING:
    from .declarations import CardDeclaration

NoteID = str
CardID = str
DeckID = str


class Side(str, Enum):
    """One of the two halves of a card."""

    Front = "front"
    Back = "back"

    @classmethod
    def parse(cls, value: Union[str, "Side"]) -> "Side":
        """
        Map any accepted spelling (`f`, `front`, `b`, `back`; any case,
        surrounding whitespace ignored) to a `Side`.

        Raises:
            InvalidSideError: If `value` is not an accepted spelling.
        """
        if isinstance(value, Side):
            return value
        normalized = str(value).strip().lower()
        if normalized in FRONT_SIDE_VALUES:
            return cls.Front
        if normalized in BACK_SIDE_VALUES:
            return cls.Back
        raise InvalidSideError(
            f"Invalid value for 'side': {value}. "
            f"Expected: {', '.join(SIDE_VALUES)}."
        )

    @property
    def short(self) -> str:
        return self.value[0]


class IDScope(IntEnum):
    """
    How widely a card ID must be unique.

    Unique IDs may have their two sides in any two notes of the corpus;
    note scoped IDs (from heading markers and commands) pair within one note.
    """

    Unique = 0
    NoteScoped = 1


class FullID(BaseModel):
    """
    Fully qualified reference to a card, or to one side of it.

    The note ID is case sensitive, the card ID is trimmed and lower-cased.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    note_id: NoteID = Field(
        ..., description="Path-like identifier of the note (case preserving)."
    )
    card_id: Optional[CardID] = Field(
        default=None, description="Case-insensitive card identifier."
    )
    side: Optional[Side] = Field(
        default=None, description="Side, or None when denoting the card."
    )

    @field_validator("note_id")
    @classmethod
    def strip_note_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Note ID must not be empty.")
        return v

    @field_validator("card_id")
    @classmethod
    def normalize_card_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().lower()
        return v or None

    @field_validator("side", mode="before")
    @classmethod
    def parse_side(cls, v):
        if v is None or isinstance(v, Side):
            return v
        try:
            return Side.parse(v)
        except InvalidSideError as e:
            raise ValueError(str(e)) from e

    # --- Construction ---

    @classmethod
    def create(cls, note_id: NoteID, card_id: CardID, is_front: bool):
        return cls(
            note_id=note_id,
            card_id=card_id,
            side=Side.Front if is_front else Side.Back,
        )

    @classmethod
    def from_string(cls, value: str) -> "FullID":
        """
        Parse `side@card@note`, `card@note` or `note`.

        Raises:
            ValueError: If the card ID or note ID is missing, or the side
                is not an accepted spelling.
        """
        parts = value.split("@")
        side: Optional[str] = None
        card_id: Optional[str] = None
        note_id: Optional[str] = None

        if len(parts) == 3:
            side, card_id, note_id = parts
        elif len(parts) == 2:
            card_id, note_id = parts
        elif len(parts) == 1:
            note_id = parts[0]

        if not note_id or not card_id:
            raise ValueError(f"Invalid id format: {value}")

        try:
            parsed_side = Side.parse(side) if side else None
        except InvalidSideError as e:
            raise ValueError(str(e)) from e
        return cls(note_id=note_id, card_id=card_id, side=parsed_side)

    @classmethod
    def from_declaration(
        cls, declaration: "CardDeclaration", note_id: NoteID
    ) -> "FullID":
        """Build the ID of a card declaration found in `note_id`."""
        if declaration.deck_id:
            return DeckableFullID(
                note_id=note_id,
                card_id=declaration.id,
                side=declaration.side,
                deck_ids=(declaration.deck_id,),
            )
        return FullID(
            note_id=note_id, card_id=declaration.id, side=declaration.side
        )

    @staticmethod
    def card_id_from_string(value: str) -> CardID:
        """
        Return the card ID part of a `side@card@note` string, i.e. the text
        between the first and the second `@`.

        Raises:
            ValueError: If there is nothing after the first `@`.
        """
        index = value.find("@")
        if index < 0 or index + 1 >= len(value):
            raise ValueError(f"No card ID in: {value}")
        return value[index + 1:].split("@", 1)[0]

    def opposite_side(self) -> "FullID":
        return FullID.create(
            self.note_id, self.card_id_or_raise(), not self.is_front
        )

    def with_card(self, card_id: CardID) -> "FullID":
        return FullID(note_id=self.note_id, card_id=card_id)

    # --- Accessors ---

    def card_id_or_raise(self) -> CardID:
        if not self.card_id:
            raise MissingComponentError(
                f'Full ID "{self}" is missing card ID.'
            )
        return self.card_id

    @property
    def is_front(self) -> bool:
        if self.side is None:
            raise MissingComponentError(f"Side not specified on id: {self}")
        return self.side == Side.Front

    def card_key(self, scope: IDScope) -> str:
        """Key under which both sides of this card are collected."""
        if scope == IDScope.NoteScoped:
            return f"{self.card_id_or_raise()}@{self.note_id}"
        return self.card_id_or_raise()

    # --- Comparison ---

    def is_equal(self, other: "FullID", side_insensitive: bool = False):
        """`False` whenever either ID lacks a card ID."""
        if not self.card_id or not other.card_id:
            return False
        return (
            self.is_note_equal(other)
            and self.is_card_equal(other)
            and (side_insensitive or self.side == other.side)
        )

    def is_note_equal(self, other: "FullID") -> bool:
        return self.note_id == other.note_id

    def is_card_equal(self, other: "FullID") -> bool:
        return self.card_id == other.card_id

    def has_note_id(self, note_id: NoteID) -> bool:
        return self.note_id == note_id.strip()

    def has_card_id(self, card_id: CardID) -> bool:
        return self.card_id == card_id.strip().lower()

    # --- String forms ---

    def __str__(self) -> str:
        if self.card_id and self.side:
            return f"{self.side.value}@{self.card_id}@{self.note_id}"
        return self.string_without_side()

    def string_without_side(self) -> str:
        if self.card_id:
            return f"{self.card_id}@{self.note_id}"
        return self.note_id


class DeckableFullID(FullID):
    """A `FullID` whose declaration named the deck(s) the card belongs to."""

    deck_ids: Tuple[DeckID, ...] = Field(default_factory=tuple)


class MaybeParsedCard(BaseModel):
    """A card whose sides are being collected; any side may still be absent."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    front_id: Optional[FullID] = None
    front_markdown: Optional[str] = None
    back_id: Optional[FullID] = None
    back_markdown: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return (
            self.front_id is not None
            and self.front_markdown is not None
            and self.back_id is not None
            and self.back_markdown is not None
        )

    def has_side(self, side: Side) -> bool:
        if side == Side.Front:
            return self.front_id is not None
        return self.back_id is not None

    def set_side(self, id: FullID, markdown: str) -> None:
        if id.is_front:
            self.front_id = id
            self.front_markdown = markdown
        else:
            self.back_id = id
            self.back_markdown = markdown

    def to_parsed_card(self) -> "ParsedCard":
        if not self.is_complete:
            raise MissingComponentError("Both sides are required.")
        return ParsedCard(
            front_id=self.front_id,
            front_markdown=self.front_markdown,
            back_id=self.back_id,
            back_markdown=self.back_markdown,
        )


class ParsedCard(BaseModel):
    """A card with both sides found, ready to be shown for review."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    front_id: FullID
    front_markdown: str
    back_id: FullID
    back_markdown: str


class ParsedCardResult(BaseModel):
    """
    Outcome of resolving a card.

    At most one of `complete` / `incomplete` is set; both are None when
    no side of the card was found.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    complete: Optional[ParsedCard] = None
    incomplete: Optional[MaybeParsedCard] = None

    @classmethod
    def from_maybe(cls, card: MaybeParsedCard) -> "ParsedCardResult":
        if card.is_complete:
            return cls(complete=card.to_parsed_card())
        return cls(incomplete=card)

    @property
    def found(self) -> bool:
        return self.complete is not None or self.incomplete is not None
