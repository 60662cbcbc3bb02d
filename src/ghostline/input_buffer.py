"""Edited text plus cursor offset."""

from __future__ import annotations


class InputBuffer:
    """Single-line text buffer with a cursor.

    The cursor always satisfies ``0 <= cursor <= len(text)``. Out-of-range
    indices are programming errors and raise ``IndexError``.
    """

    def __init__(self, text: str = "", cursor: int | None = None) -> None:
        self._text: str = text
        self._cursor: int = 0
        self.cursor = len(text) if cursor is None else cursor

    @property
    def text(self) -> str:
        return self._text

    @property
    def cursor(self) -> int:
        return self._cursor

    @cursor.setter
    def cursor(self, value: int) -> None:
        if not 0 <= value <= len(self._text):
            raise IndexError(
                f"cursor {value} outside buffer of length {len(self._text)}"
            )
        self._cursor = value

    @property
    def head(self) -> str:
        """Text before the cursor."""
        return self._text[: self._cursor]

    @property
    def tail(self) -> str:
        """Text from the cursor to the end."""
        return self._text[self._cursor :]

    def __len__(self) -> int:
        return len(self._text)

    def insert_at(self, index: int, s: str) -> None:
        """Insert *s* at *index*. The cursor does not move."""
        if not 0 <= index <= len(self._text):
            raise IndexError(
                f"insert index {index} outside buffer of length {len(self._text)}"
            )
        self._text = self._text[:index] + s + self._text[index:]

    def remove_range(self, index: int, length: int) -> str:
        """Remove *length* characters starting at *index* and return them."""
        if index < 0 or length < 0 or index + length > len(self._text):
            raise IndexError(
                f"cannot remove {length} characters at {index} "
                f"from buffer of length {len(self._text)}"
            )
        removed = self._text[index : index + length]
        self._text = self._text[:index] + self._text[index + length :]
        self._cursor = min(self._cursor, len(self._text))
        return removed

    def clear(self) -> None:
        self._text = ""
        self._cursor = 0

    def __repr__(self) -> str:
        return f"InputBuffer(text={self._text!r}, cursor={self._cursor})"
