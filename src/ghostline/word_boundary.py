"""Word-unit scanning for word-wise cursor movement and deletion.

A word unit is a run of word characters (letters, digits, underscore), or a
single non-word character when no such run is present, together with the
whitespace between it and the cursor. Both scanners return the number of
characters the unit spans, ``0`` only at a buffer boundary.
"""

from __future__ import annotations

from ghostline.utils import is_whitespace_char, is_word_char


def backward_unit_length(text: str, cursor: int, whole_word: bool) -> int:
    """Length of the unit that ends at *cursor*.

    Without *whole_word* the unit is a single character.
    """
    if cursor <= 0:
        return 0
    if not whole_word:
        return 1

    pos = cursor

    # Skip trailing whitespace
    while pos > 0 and is_whitespace_char(text[pos - 1]):
        pos -= 1

    if pos > 0:
        if is_word_char(text[pos - 1]):
            while pos > 0 and is_word_char(text[pos - 1]):
                pos -= 1
        else:
            pos -= 1

    return cursor - pos


def forward_unit_length(text: str, cursor: int, whole_word: bool) -> int:
    """Length of the unit that starts at *cursor*.

    Without *whole_word* the unit is a single character.
    """
    if cursor >= len(text):
        return 0
    if not whole_word:
        return 1

    pos = cursor
    end = len(text)

    # Skip leading whitespace
    while pos < end and is_whitespace_char(text[pos]):
        pos += 1

    if pos < end:
        if is_word_char(text[pos]):
            while pos < end and is_word_char(text[pos]):
                pos += 1
        else:
            pos += 1

    return pos - cursor
