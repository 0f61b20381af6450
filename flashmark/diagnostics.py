"""
Soft problems found while scanning notes.

None of these stop a scan. They are collected per note into
`ParseDiagnostics` so that a caller can tell the user which declarations
need attention.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Union

from .declarations import DeclarationLocation
from .models import FullID, IDScope, NoteID
from .outline import Section


def _context(note_id: NoteID, section: Section) -> str:
    return f"Note: {note_id} | Line: {section.position.line + 1}"


@dataclass
class IncompleteDeclaration:
    """A card declaration with a valid side but no ID."""

    note_id: NoteID
    section: Section
    source: str
    declaration: Dict[str, Any]
    location: DeclarationLocation

    def __str__(self) -> str:
        side = self.declaration.get("side", "?")
        return (
            f"{_context(self.note_id, self.section)} | "
            f"Error: Declaration of side '{side}' has no ID."
        )


@dataclass
class InvalidCommand:
    """A command declaration with an unknown name or invalid values."""

    note_id: NoteID
    section: Section
    declaration: Dict[str, Any]
    location: DeclarationLocation
    reason: str

    def __str__(self) -> str:
        name = self.declaration.get("name", "?")
        return (
            f"{_context(self.note_id, self.section)} | Command: '{name}' | "
            f"Error: {self.reason}"
        )


@dataclass
class InvalidYAML:
    """A declaration block whose YAML could not be parsed."""

    note_id: NoteID
    section: Section
    source: str
    message: str

    def __str__(self) -> str:
        first_line = self.message.strip().split("\n", 1)[0]
        return (
            f"{_context(self.note_id, self.section)} | "
            f"Error: Invalid YAML: {first_line}"
        )


@dataclass
class DuplicateID:
    """An ID declared again after its first occurrence; the first one wins."""

    id: FullID
    scope: IDScope

    def __str__(self) -> str:
        return (
            f"Note: {self.id.note_id} | ID: '{self.id}' | "
            f"Error: Declared more than once ({self.scope.name} scope)."
        )


Diagnostic = Union[IncompleteDeclaration, InvalidCommand, InvalidYAML, DuplicateID]


@dataclass
class ParseDiagnostics:
    incomplete_declarations: List[IncompleteDeclaration] = field(
        default_factory=list
    )
    invalid_commands: List[InvalidCommand] = field(default_factory=list)
    invalid_yaml: List[InvalidYAML] = field(default_factory=list)
    duplicate_ids: List[DuplicateID] = field(default_factory=list)

    def __iter__(self) -> Iterator[Diagnostic]:
        yield from self.incomplete_declarations
        yield from self.invalid_commands
        yield from self.invalid_yaml
        yield from self.duplicate_ids

    def __len__(self) -> int:
        return (
            len(self.incomplete_declarations)
            + len(self.invalid_commands)
            + len(self.invalid_yaml)
            + len(self.duplicate_ids)
        )

    def extend(self, other: "ParseDiagnostics") -> None:
        """Append the entries of `other` to this bundle."""
        self.incomplete_declarations.extend(other.incomplete_declarations)
        self.invalid_commands.extend(other.invalid_commands)
        self.invalid_yaml.extend(other.invalid_yaml)
        self.duplicate_ids.extend(other.duplicate_ids)
