"""Keyboard input parsing for the line editor.

Turns raw terminal input into key identifiers such as ``"a"``,
``"ctrl+left"`` or ``"alt+backspace"``. Handles legacy xterm/rxvt escape
sequences, xterm modified sequences (``CSI 1;<mod>X`` and
``CSI <n>;<mod>~``), the Kitty ``CSI u`` encoding, modifyOtherKeys and plain
control bytes. Also defines the :class:`KeyEvent` the editor consumes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

KeyId = str

KeyKind = Literal[
    "char",
    "backspace",
    "delete",
    "left",
    "right",
    "up",
    "down",
    "home",
    "end",
    "tab",
    "enter",
]


@dataclass(frozen=True)
class KeyEvent:
    """One decoded key press.

    ``char`` holds the inserted text for ``"char"`` events. ``whole_unit``
    selects word-wise movement and deletion.
    """

    kind: KeyKind
    char: str = ""
    whole_unit: bool = False


# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants and modifier combinators."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MODIFIERS: dict[str, int] = {
    "shift": 1,
    "alt": 2,
    "ctrl": 4,
}

LOCK_MASK = 64 + 128

CODEPOINTS: dict[str, int] = {
    "escape": 27,
    "tab": 9,
    "enter": 13,
    "space": 32,
    "backspace": 127,
    "kp_enter": 57414,
}

ARROW_CODEPOINTS: dict[str, int] = {
    "up": -1,
    "down": -2,
    "right": -3,
    "left": -4,
}

FUNCTIONAL_CODEPOINTS: dict[str, int] = {
    "delete": -10,
    "insert": -11,
    "pageUp": -12,
    "pageDown": -13,
    "home": -14,
    "end": -15,
}

# Legacy escape sequences -> key names
LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
}

# rxvt encodes ctrl+arrow with lowercase SS3 finals
LEGACY_CTRL_SEQUENCES: dict[str, str] = {
    "\x1bOa": "up",
    "\x1bOb": "down",
    "\x1bOc": "right",
    "\x1bOd": "left",
    "\x1b[3^": "delete",
    "\x1b[7^": "home",
    "\x1b[8^": "end",
}

# ---------------------------------------------------------------------------
# Parsed sequence
# ---------------------------------------------------------------------------


@dataclass
class ParsedKittySequence:
    codepoint: int
    shifted_key: Optional[int]
    base_layout_key: Optional[int]
    modifier: int
    event_type: int  # 1 = press, 2 = repeat, 3 = release


# CSI u format: \x1b[<codepoint>(:<shifted_key>(:<base_layout_key>))?(;<modifier>(:<event_type>))?u
_KITTY_CSI_U_RE = re.compile(
    r"^\x1b\[(\d+)(?::(\d+)(?::(\d+))?)?(?:;(\d+)(?::(\d+))?)?u$"
)

# Arrow / Home / End with modifier: \x1b[1;<modifier>(:<event_type>)?[ABCDHF]
_MODIFIED_LETTER_RE = re.compile(r"^\x1b\[1;(\d+)(?::(\d+))?([ABCDHF])$")

# Functional keys with modifier: \x1b[<number>;<modifier>(:<event_type>)?~
_MODIFIED_FUNCTIONAL_RE = re.compile(r"^\x1b\[(\d+);(\d+)(?::(\d+))?~$")

# modifyOtherKeys: \x1b[27;<modifier>;<keycode>~
_MODIFY_OTHER_KEYS_RE = re.compile(r"^\x1b\[27;(\d+);(\d+)~$")

_LETTER_TO_CODEPOINT: dict[str, int] = {
    "A": ARROW_CODEPOINTS["up"],
    "B": ARROW_CODEPOINTS["down"],
    "C": ARROW_CODEPOINTS["right"],
    "D": ARROW_CODEPOINTS["left"],
    "H": FUNCTIONAL_CODEPOINTS["home"],
    "F": FUNCTIONAL_CODEPOINTS["end"],
}

_FUNCTIONAL_NUMBER_TO_CODEPOINT: dict[int, int] = {
    1: FUNCTIONAL_CODEPOINTS["home"],
    2: FUNCTIONAL_CODEPOINTS["insert"],
    3: FUNCTIONAL_CODEPOINTS["delete"],
    4: FUNCTIONAL_CODEPOINTS["end"],
    5: FUNCTIONAL_CODEPOINTS["pageUp"],
    6: FUNCTIONAL_CODEPOINTS["pageDown"],
}

_CODEPOINT_TO_KEY: dict[int, str] = {
    **{code: name for name, code in ARROW_CODEPOINTS.items()},
    **{code: name for name, code in FUNCTIONAL_CODEPOINTS.items()},
}


def parse_kitty_sequence(data: str) -> ParsedKittySequence | None:
    """Parse a CSI-u or modified CSI sequence.

    Returns ``None`` if *data* does not match any recognised pattern.
    """
    m = _KITTY_CSI_U_RE.match(data)
    if m:
        return ParsedKittySequence(
            codepoint=int(m.group(1)),
            shifted_key=int(m.group(2)) if m.group(2) else None,
            base_layout_key=int(m.group(3)) if m.group(3) else None,
            modifier=int(m.group(4)) if m.group(4) else 1,
            event_type=int(m.group(5)) if m.group(5) else 1,
        )

    m = _MODIFIED_LETTER_RE.match(data)
    if m:
        return ParsedKittySequence(
            codepoint=_LETTER_TO_CODEPOINT[m.group(3)],
            shifted_key=None,
            base_layout_key=None,
            modifier=int(m.group(1)),
            event_type=int(m.group(2)) if m.group(2) else 1,
        )

    m = _MODIFIED_FUNCTIONAL_RE.match(data)
    if m and int(m.group(1)) in _FUNCTIONAL_NUMBER_TO_CODEPOINT:
        return ParsedKittySequence(
            codepoint=_FUNCTIONAL_NUMBER_TO_CODEPOINT[int(m.group(1))],
            shifted_key=None,
            base_layout_key=None,
            modifier=int(m.group(2)),
            event_type=int(m.group(3)) if m.group(3) else 1,
        )

    return None


def _modifier_prefix(modifier: int) -> str:
    mod = (modifier - 1) & ~LOCK_MASK
    prefix = ""
    if mod & MODIFIERS["ctrl"]:
        prefix += "ctrl+"
    if mod & MODIFIERS["shift"]:
        prefix += "shift+"
    if mod & MODIFIERS["alt"]:
        prefix += "alt+"
    return prefix


# ---------------------------------------------------------------------------
# parse_key: determine what key was pressed from raw input
# ---------------------------------------------------------------------------


def parse_key(data: str) -> str | None:  # noqa: C901
    """Parse raw terminal input and return the key identifier, or ``None``.

    Key release events are reported as ``None``.
    """
    if not data:
        return None

    parsed = parse_kitty_sequence(data)
    if parsed is not None:
        if parsed.event_type == 3:
            return None
        prefix = _modifier_prefix(parsed.modifier)
        cp = parsed.codepoint

        for name, code in CODEPOINTS.items():
            if cp == code:
                if name == "kp_enter":
                    return prefix + "enter"
                return prefix + name

        key_name = _CODEPOINT_TO_KEY.get(cp)
        if key_name is not None:
            return prefix + key_name

        if cp > 0:
            ch = chr(cp)
            if ch.isprintable():
                return prefix + ch.lower()
        return None

    mok_match = _MODIFY_OTHER_KEYS_RE.match(data)
    if mok_match:
        prefix = _modifier_prefix(int(mok_match.group(1)))
        keycode = int(mok_match.group(2))
        for name, code in CODEPOINTS.items():
            if keycode == code:
                return prefix + name
        if keycode == 8:
            return prefix + "backspace"
        if keycode > 0 and chr(keycode).isprintable():
            return prefix + chr(keycode).lower()
        return None

    if data in LEGACY_KEY_SEQUENCES:
        return LEGACY_KEY_SEQUENCES[data]
    if data in LEGACY_CTRL_SEQUENCES:
        return "ctrl+" + LEGACY_CTRL_SEQUENCES[data]

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return "escape"
    if data == "\r" or data == "\n":
        return "enter"
    if data == "\t":
        return "tab"
    if data == " ":
        return "space"
    if data == "\x7f":
        return "backspace"
    if data == "\x08":
        # Most terminals send BS for ctrl+backspace
        return "ctrl+backspace"
    if data == "\x00":
        return "ctrl+space"
    if data == "\x1b[Z":
        return "shift+tab"

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return "ctrl+" + chr(ord(data) + ord("a") - 1)

    # --- Alt + key (ESC prefix) ---
    if len(data) >= 2 and data[0] == "\x1b":
        rest = data[1:]
        if rest in LEGACY_KEY_SEQUENCES:
            return "alt+" + LEGACY_KEY_SEQUENCES[rest]
        if len(rest) == 1:
            ch = rest
            if ch == "\x1b":
                return "alt+escape"
            if ch == "\r" or ch == "\n":
                return "alt+enter"
            if ch == "\t":
                return "alt+tab"
            if ch == " ":
                return "alt+space"
            if ch == "\x7f" or ch == "\x08":
                return "alt+backspace"
            if 1 <= ord(ch) <= 26:
                return "ctrl+alt+" + chr(ord(ch) + ord("a") - 1)
            if ch.isupper():
                return "shift+alt+" + ch.lower()
            if ch.isprintable():
                return "alt+" + ch.lower()
        return None

    # --- Plain printable character ---
    if len(data) == 1 and data.isprintable():
        return data

    return None
