"""
Generation of card IDs for declarations that were written without one.
"""

import random
import time
from typing import Optional, Set

from .constants import UNIQUE_ID_LENGTH

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def is_valid_id(value: str) -> bool:
    """Whether `value` has the shape of a generated ID."""
    return len(value) == UNIQUE_ID_LENGTH


def _generate() -> str:
    # Eight base-36 characters of milliseconds, reversed so the slowly
    # changing digits sit at the end, after two random characters.
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(random.choice(_BASE36_DIGITS) for _ in range(2))
    return (suffix + timestamp[::-1])[:UNIQUE_ID_LENGTH]


def generate_id(prevent_ids: Optional[Set[str]] = None) -> str:
    """
    Generate a ten character ID made of digits and lowercase letters.

    Parameters:
        prevent_ids (Optional[Set[str]]): IDs that must never be returned,
            e.g. IDs already handed out earlier in the same batch.

    Returns:
        str: A new ID not contained in `prevent_ids`.
    """
    new_id = _generate()
    if prevent_ids:
        while new_id in prevent_ids:
            new_id = _generate()
    return new_id
