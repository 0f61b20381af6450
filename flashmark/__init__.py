"""Flashmark - flashcards declared inside Markdown notes."""

from .models import (
    FullID,
    DeckableFullID,
    IDScope,
    MaybeParsedCard,
    ParsedCard,
    ParsedCardResult,
    Side,
)
from .outline import Outline, build_outline
from .content import ContentReadOptions
from .resolver import (
    ParseOptions,
    find_all_content_infos,
    get_all_cards,
    get_all_ids,
    resolve_card,
)
from .vault import DocumentSource, MarkdownVault, VaultConfig

__all__ = [
    "FullID",
    "DeckableFullID",
    "IDScope",
    "MaybeParsedCard",
    "ParsedCard",
    "ParsedCardResult",
    "Side",
    "Outline",
    "build_outline",
    "ContentReadOptions",
    "ParseOptions",
    "find_all_content_infos",
    "get_all_cards",
    "get_all_ids",
    "resolve_card",
    "DocumentSource",
    "MarkdownVault",
    "VaultConfig",
]
