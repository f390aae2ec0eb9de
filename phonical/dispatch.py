"""Letter to phonics sound mapping."""

from __future__ import annotations

import string
from types import MappingProxyType
from typing import Mapping

# One clip per Latin letter: "a" -> "a.wav" ... "z" -> "z.wav"
PHONICS_MAP: Mapping[str, str] = MappingProxyType(
    {letter: f"{letter}.wav" for letter in string.ascii_lowercase}
)


class KeyEventDispatcher:
    """Map typed characters to sound identifiers.

    Case-insensitive; anything outside the letter table (digits,
    punctuation, whitespace, multi-character strings) has no sound.
    Stateless beyond the read-only table, so safe to share across threads.
    """

    def __init__(self, table: Mapping[str, str] = PHONICS_MAP) -> None:
        self._table = table

    def dispatch(self, char: str | None) -> str | None:
        """Look up the sound for a character.

        Args:
            char: A single typed character.

        Returns:
            The sound identifier, or None if the character has no sound.
        """
        if not char or len(char) != 1:
            return None
        return self._table.get(char.lower())

    def identifiers(self) -> list[str]:
        """Get every sound identifier in the table, sorted."""
        return sorted(set(self._table.values()))
