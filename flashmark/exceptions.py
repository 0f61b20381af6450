from typing import Optional


class FlashmarkError(Exception):
    """Base exception for errors raised while indexing notes."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class OutlineUnavailableError(FlashmarkError):
    """Raised when no structural outline exists for a note.

    The caller is expected to have the host rebuild its outline index
    rather than retry.
    """

    def __init__(
        self, note_id: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(
            f"No outline available for note '{note_id}'.",
            original_exception,
        )
        self.note_id = note_id


class DocumentReadError(FlashmarkError):
    """Raised when the text of a note cannot be read."""

    def __init__(
        self, note_id: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(
            f"Could not read note '{note_id}': {original_exception}",
            original_exception,
        )
        self.note_id = note_id


class MissingComponentError(FlashmarkError):
    """Raised when an identifier lacks a card ID or side that is required."""

    pass


class InvalidSideError(FlashmarkError):
    """Raised for a side value outside the accepted spellings."""

    pass
