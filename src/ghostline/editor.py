"""Single-line editor with inline ghost suggestions.

The editor reads key events, edits an :class:`InputBuffer`, keeps the
:class:`SuggestionEngine` in step with the text and redraws the part of the
line right of the edit point. The active suggestion is drawn after the
buffer text in a muted style; Tab accepts it, Up/Down cycle through the
alternatives, Enter commits the line.

Screen positions are linear offsets into the terminal grid counted from the
top-left cell. ``origin`` is the offset where the buffer starts (right after
the prompt); the cell of buffer index ``i`` is ``origin`` plus the display
width of ``text[:i]``.
"""

from __future__ import annotations

import logging

from ghostline.config import EditorOptions
from ghostline.cursor_model import offset_to_position, position_to_offset, scrolled_rows
from ghostline.input_buffer import InputBuffer
from ghostline.keybindings import EditorKeybindingsManager
from ghostline.keys import KeyEvent
from ghostline.suggestions import SuggestionEngine, SuggestionProvider
from ghostline.terminal import KeySource, ProcessTerminal, Terminal
from ghostline.utils import visible_width
from ghostline.word_boundary import backward_unit_length, forward_unit_length

logger = logging.getLogger(__name__)

# Key-read failures worth retrying; anything else ends the session.
TRANSIENT_READ_ERRORS: tuple[type[BaseException], ...] = (
    InterruptedError,
    BlockingIOError,
    TimeoutError,
)


class LineEditorController:
    """State for one editing session.

    A controller edits exactly one line: construct it, call :meth:`run`, and
    discard it. :func:`edit` does this for every call.
    """

    def __init__(
        self,
        terminal: Terminal,
        keys: KeySource,
        options: EditorOptions | None = None,
    ) -> None:
        self._terminal = terminal
        self._keys = keys
        self._options = options or EditorOptions()
        self.buffer = InputBuffer()
        self.suggestions = SuggestionEngine(
            timeout=self._options.provider_timeout,
            slow_warning=self._options.slow_provider_warning,
        )
        self._provider: SuggestionProvider | None = None
        self._origin: int = 0
        self._started: bool = False
        self.done: bool = False

    # -- session ------------------------------------------------------------

    def run(self, prompt: str, provider: SuggestionProvider) -> str:
        """Write *prompt*, edit until Enter and return the committed text."""
        self.start(prompt, provider)
        try:
            while not self.done:
                self.handle_key(self._read_key())
        finally:
            self.suggestions.close()
        return self.buffer.text

    def start(self, prompt: str, provider: SuggestionProvider) -> None:
        """Draw the prompt and the initial suggestion for the empty line."""
        if self._started:
            raise RuntimeError("LineEditorController sessions cannot be restarted")
        self._started = True
        self._provider = provider

        self._terminal.write(prompt)
        col, row = self._terminal.get_cursor()
        width, _ = self._terminal.get_grid_size()
        if col >= width:
            # Prompt filled its last row; start the buffer on a fresh one
            self._terminal.write("\r\n")
            col, row = self._terminal.get_cursor()
        self._origin = position_to_offset(col, row, width)

        self._recompute()
        self._render(self.buffer.cursor)

    def _read_key(self) -> KeyEvent:
        failures = 0
        while True:
            try:
                return self._keys.next_key()
            except TRANSIENT_READ_ERRORS:
                failures += 1
                if failures > self._options.max_read_retries:
                    logger.error("Giving up after %d failed key reads", failures)
                    raise
                logger.debug("Key read failed (attempt %d), retrying", failures, exc_info=True)

    # -- key handling -------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> None:  # noqa: C901
        if self.done:
            return
        kind = event.kind

        if kind == "backspace":
            self._delete_backward(event.whole_unit)
        elif kind == "delete":
            self._delete_forward(event.whole_unit)
        elif kind == "left":
            self._move_to(
                self.buffer.cursor
                - backward_unit_length(self.buffer.text, self.buffer.cursor, event.whole_unit)
            )
        elif kind == "right":
            self._move_to(
                self.buffer.cursor
                + forward_unit_length(self.buffer.text, self.buffer.cursor, event.whole_unit)
            )
        elif kind == "home":
            self._move_to(0)
        elif kind == "end":
            self._move_to(len(self.buffer))
        elif kind == "up":
            self.suggestions.cycle_previous()
            self._render(self.buffer.cursor)
        elif kind == "down":
            self.suggestions.cycle_next()
            self._render(self.buffer.cursor)
        elif kind == "tab":
            self._insert(self.suggestions.active_text())
        elif kind == "char":
            self._insert(event.char)
        elif kind == "enter":
            self._commit()

    def _delete_backward(self, whole_unit: bool) -> None:
        cursor = self.buffer.cursor
        if cursor == 0:
            return
        length = backward_unit_length(self.buffer.text, cursor, whole_unit)
        start = cursor - length
        removed = self.buffer.remove_range(start, length)
        self.buffer.cursor = start
        self._recompute()
        self._render(start, erased=visible_width(removed))

    def _delete_forward(self, whole_unit: bool) -> None:
        cursor = self.buffer.cursor
        if cursor >= len(self.buffer):
            return
        length = forward_unit_length(self.buffer.text, cursor, whole_unit)
        removed = self.buffer.remove_range(cursor, length)
        self._recompute()
        self._render(cursor, erased=visible_width(removed))

    def _insert(self, text: str) -> None:
        if not text:
            return
        start = self.buffer.cursor
        self.buffer.insert_at(start, text)
        self.buffer.cursor = start + len(text)
        self._recompute()
        self._render(start)

    def _move_to(self, index: int) -> None:
        self.buffer.cursor = index
        self._place_cursor()

    def _commit(self) -> None:
        """Blank the ghost after the line, move to the next line, finish."""
        self.suggestions.clear()
        self.buffer.cursor = len(self.buffer)
        self._render(self.buffer.cursor)
        self._terminal.write("\n")
        self.done = True

    # -- suggestions and rendering -----------------------------------------

    def _recompute(self) -> None:
        assert self._provider is not None
        self.suggestions.recompute(self._provider, self.buffer.text)

    def _screen_offset(self, index: int) -> int:
        return self._origin + visible_width(self.buffer.text[:index])

    def _place_cursor(self) -> None:
        width, height = self._terminal.get_grid_size()
        pos = offset_to_position(self._screen_offset(self.buffer.cursor), width, height)
        self._terminal.set_cursor(pos.col, pos.row)

    def _render(self, from_index: int, erased: int = 0) -> None:
        """Redraw ``text[from_index:]``, the ghost and erase padding.

        *erased* is the width of text just removed from the buffer, whose
        cells at the old end of the line must be blanked as well.
        """
        width, height = self._terminal.get_grid_size()
        start = self._screen_offset(from_index)
        # The cell after the bottom-right corner cannot be addressed; redraw
        # from the previous character so the terminal wraps and scrolls.
        while start >= width * height and from_index > 0:
            from_index -= 1
            start = self._screen_offset(from_index)
        pos = offset_to_position(start, width, height)

        tail = self.buffer.text[from_index:]
        ghost = self.suggestions.active_text()
        padding = self.suggestions.erase_padding() + erased

        self._terminal.write_at(pos.col, pos.row, tail)
        self._terminal.write_styled(ghost, self._options.ghost_style)
        if padding:
            self._terminal.write(" " * padding)

        end = start + visible_width(tail) + visible_width(ghost) + padding
        self._origin -= scrolled_rows(end, width, height) * width

        self._place_cursor()
        self.suggestions.mark_rendered()


def edit(
    prompt: str,
    provider: SuggestionProvider,
    *,
    terminal: Terminal | None = None,
    keys: KeySource | None = None,
    options: EditorOptions | None = None,
) -> str:
    """Read one line with ghost suggestions and return it.

    Without *terminal*, a :class:`ProcessTerminal` is put into raw mode for
    the duration of the call and restored afterwards. A *terminal* that also
    implements :class:`KeySource` is used for input when *keys* is omitted.
    """
    options = options or EditorOptions()

    if terminal is None:
        keybindings = (
            EditorKeybindingsManager(options.keybindings) if options.keybindings else None
        )
        with ProcessTerminal(keybindings=keybindings) as process_terminal:
            controller = LineEditorController(process_terminal, keys or process_terminal, options)
            return controller.run(prompt, provider)

    if keys is None:
        if not isinstance(terminal, KeySource):
            raise TypeError("keys is required when the terminal cannot read keys")
        keys = terminal
    return LineEditorController(terminal, keys, options).run(prompt, provider)
