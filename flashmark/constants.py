"""
Declaration language constants.

Static vocabulary of the card declaration syntax embedded in notes.
No runtime configuration - pure constants only.
"""
from typing import Tuple

# Fence languages that mark a declaration block, e.g. ```comethrough
CODE_BLOCK_LANGUAGES: Tuple[str, ...] = ("comethrough", "ct")

# Frontmatter keys that may hold a card declaration.
FRONTMATTER_KEYS: Tuple[str, ...] = ("comethrough", "ct", "come through")

# Accepted spellings of a card side, compared after strip + lower.
FRONT_SIDE_VALUES: Tuple[str, ...] = ("f", "front")
BACK_SIDE_VALUES: Tuple[str, ...] = ("b", "back")
SIDE_VALUES: Tuple[str, ...] = FRONT_SIDE_VALUES + BACK_SIDE_VALUES

# User-facing YAML key and the field it maps to internally.
DECK_USER_KEY = "deck"
DECK_FIELD = "deck_id"

# Command names (value of the `name` key of a command declaration).
COMMAND_ALTERNATE_HEADINGS = "alternate headings"
COMMAND_HEADING_AND_DELIMITER = "heading and delimiter"
COMMAND_HEADING_IS_FRONT = "heading is front"

# Delimiter kinds a command may name.
DELIMITER_HEADING = "heading"
DELIMITER_HORIZONTAL_RULE = "horizontal rule"
DELIMITER_ALIASES = {"hr": DELIMITER_HORIZONTAL_RULE}

# Length of a fence marker (``` or ~~~).
CODE_BLOCK_MARKER_LENGTH = 3

# Generated card IDs are this many base-36 characters long.
UNIQUE_ID_LENGTH = 10
