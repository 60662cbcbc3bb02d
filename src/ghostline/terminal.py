"""Terminal abstraction for raw-mode stdin/stdout interaction.

Provides the ``Terminal`` (styled text sink) and ``KeySource`` protocols the
line editor is written against, and a concrete ``ProcessTerminal`` that
implements both on ``sys.stdin``/``sys.stdout``: raw mode, bracketed paste,
a one-time cursor position query, and software tracking of the cursor from
then on.
"""

from __future__ import annotations

import codecs
import logging
import os
import re
import select
import sys
import termios
import tty
from collections import deque
from typing import Protocol, runtime_checkable

import grapheme

from ghostline.keybindings import EditorKeybindingsManager, get_editor_keybindings
from ghostline.keys import KeyEvent
from ghostline.stdin_buffer import StdinBuffer
from ghostline.utils import grapheme_width

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_QUERY_CURSOR = "\x1b[6n"
_CURSOR_REPORT_RE = re.compile(r"\x1b\[(\d+);(\d+)R")
_CURSOR_QUERY_TIMEOUT = 0.2

_SET_CURSOR_FMT = "\x1b[{};{}H"
_INTERRUPT = "\x03"
RESET_STYLE = "\x1b[0m"


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Styled text sink addressed as a ``width`` x ``height`` grid."""

    def write(self, text: str) -> None: ...

    def write_at(self, col: int, row: int, text: str) -> None: ...

    def write_styled(self, text: str, style: str) -> None: ...

    def get_cursor(self) -> tuple[int, int]: ...

    def set_cursor(self, col: int, row: int) -> None: ...

    def get_grid_size(self) -> tuple[int, int]: ...


@runtime_checkable
class KeySource(Protocol):
    """Blocking source of decoded key events."""

    def next_key(self) -> KeyEvent: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal and key source backed by ``sys.stdin``/``sys.stdout``.

    The cursor position is read from the terminal once in :meth:`start`
    (DSR query) and tracked locally afterwards: every write advances it by
    the display width of the text, wrapping at the right margin and
    scrolling at the bottom row the way a VT100-style terminal does.

    Use as a context manager, or call :meth:`start` / :meth:`stop`.
    """

    def __init__(self, keybindings: EditorKeybindingsManager | None = None) -> None:
        self._keybindings = keybindings
        self._stdin_buffer = StdinBuffer(timeout=0.01)
        self._stdin_buffer.on_data(self._on_buffer_data)
        self._stdin_buffer.on_paste(self._on_buffer_paste)
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._pending: deque[KeyEvent] = deque()
        self._original_termios: list | None = None
        self._raw: bool = False
        self._col: int = 0
        self._row: int = 0
        self._write_log_path: str = os.environ.get("GHOSTLINE_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns
        except (ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines
        except (ValueError, OSError):
            return 24

    def get_grid_size(self) -> tuple[int, int]:
        return self.columns, self.rows

    # -- start / stop -------------------------------------------------------

    def start(self) -> None:
        """Enable raw mode and bracketed paste, then locate the cursor."""
        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)
        self._raw = True

        self._raw_write(_BRACKETED_PASTE_ENABLE)
        self._query_cursor_position()

    def stop(self) -> None:
        """Restore terminal state."""
        self._raw_write(_BRACKETED_PASTE_DISABLE)
        self._stdin_buffer.clear()

        if self._original_termios is not None:
            fd = sys.stdin.fileno()
            termios.tcsetattr(fd, termios.TCSADRAIN, self._original_termios)
            self._original_termios = None
        self._raw = False

    def __enter__(self) -> ProcessTerminal:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # -- output -------------------------------------------------------------

    def write(self, text: str) -> None:
        """Write *text* at the cursor and advance the tracked position."""
        if not text:
            return
        data = text
        if self._raw:
            data = text.replace("\r\n", "\n").replace("\n", "\r\n")
        self._raw_write(data)
        self._advance(text)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                logger.debug("Could not append to %s", self._write_log_path, exc_info=True)

    def write_at(self, col: int, row: int, text: str) -> None:
        self.set_cursor(col, row)
        self.write(text)

    def write_styled(self, text: str, style: str) -> None:
        """Write *text* in *style*, always resetting the style afterwards."""
        if not text:
            return
        self._raw_write(style)
        try:
            self.write(text)
        finally:
            self._raw_write(RESET_STYLE)

    # -- cursor -------------------------------------------------------------

    def get_cursor(self) -> tuple[int, int]:
        return self._col, self._row

    def set_cursor(self, col: int, row: int) -> None:
        width, height = self.get_grid_size()
        col = max(0, min(col, width - 1))
        row = max(0, min(row, height - 1))
        self._raw_write(_SET_CURSOR_FMT.format(row + 1, col + 1))
        self._col, self._row = col, row

    def _advance(self, text: str) -> None:
        width, height = self.get_grid_size()
        for g in grapheme.graphemes(text):
            if g == "\r":
                self._col = 0
            elif g in ("\n", "\r\n"):
                self._col = 0
                self._line_feed(height)
            else:
                w = grapheme_width(g)
                if w == 0:
                    continue
                if self._col + w > width:
                    # Deferred wrap: the pending margin resolves on the next glyph
                    self._col = 0
                    self._line_feed(height)
                self._col += w

    def _line_feed(self, height: int) -> None:
        self._row = min(self._row + 1, height - 1)

    def _query_cursor_position(self) -> None:
        """Ask the terminal where the cursor is (DSR 6).

        Bytes that arrive before or after the report are kept as input.
        """
        self._raw_write(_QUERY_CURSOR)
        fd = sys.stdin.fileno()
        received = ""
        match = None
        while match is None:
            ready, _, _ = select.select([fd], [], [], _CURSOR_QUERY_TIMEOUT)
            if not ready:
                break
            chunk = os.read(fd, 1024)
            if not chunk:
                break
            received += self._decoder.decode(chunk)
            match = _CURSOR_REPORT_RE.search(received)

        if match is not None:
            self._row = int(match.group(1)) - 1
            self._col = int(match.group(2)) - 1
            received = received[: match.start()] + received[match.end() :]
        else:
            logger.debug("No cursor position report; assuming bottom-left")
            self._col, self._row = 0, self.rows - 1

        if received:
            self._stdin_buffer.process(received)

    # -- input --------------------------------------------------------------

    def next_key(self) -> KeyEvent:
        """Block until the next bound key or printable input arrives.

        Raises ``EOFError`` when stdin is closed.
        """
        while not self._pending:
            self._read_input()
        return self._pending.popleft()

    def _read_input(self) -> None:
        fd = sys.stdin.fileno()
        if self._stdin_buffer.has_partial:
            ready, _, _ = select.select([fd], [], [], self._stdin_buffer.timeout)
            if not ready:
                # A lone escape prefix with nothing following it
                self._stdin_buffer.flush()
                return

        raw = os.read(fd, 4096)
        if not raw:
            raise EOFError("stdin closed")
        data = self._decoder.decode(raw)
        if data:
            self._stdin_buffer.process(data)

    def _bindings(self) -> EditorKeybindingsManager:
        return self._keybindings or get_editor_keybindings()

    def _on_buffer_data(self, data: str) -> None:
        if data == _INTERRUPT:
            # Raw mode disables ISIG, so ctrl+c arrives as a byte
            raise KeyboardInterrupt
        event = self._bindings().resolve(data)
        if event is None:
            logger.debug("Ignoring unbound input %r", data)
            return
        self._pending.append(event)

    def _on_buffer_paste(self, data: str) -> None:
        event = self._bindings().resolve_paste(data)
        if event is not None:
            self._pending.append(event)

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write directly to stdout, bypassing buffering."""
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            logger.debug("stdout write failed", exc_info=True)
