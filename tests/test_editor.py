"""Tests for ghostline.editor -- the line editor state machine and rendering."""

from __future__ import annotations

import logging
import random
import threading

import pytest

from ghostline.config import EditorOptions
from ghostline.editor import LineEditorController, edit
from ghostline.keys import KeyEvent
from ghostline.providers import word_list_provider

from .virtual_terminal import VirtualTerminal

PROMPT = "> "

BACKSPACE = KeyEvent("backspace")
WORD_BACKSPACE = KeyEvent("backspace", whole_unit=True)
DELETE = KeyEvent("delete")
WORD_DELETE = KeyEvent("delete", whole_unit=True)
LEFT = KeyEvent("left")
RIGHT = KeyEvent("right")
WORD_LEFT = KeyEvent("left", whole_unit=True)
WORD_RIGHT = KeyEvent("right", whole_unit=True)
HOME = KeyEvent("home")
END = KeyEvent("end")
UP = KeyEvent("up")
DOWN = KeyEvent("down")
TAB = KeyEvent("tab")
ENTER = KeyEvent("enter")


def no_suggestions(text: str) -> list[str]:
    return []


class RecordingProvider:
    """Provider that returns fixed suffixes per text and records calls."""

    def __init__(self, table: dict[str, list[str]] | None = None) -> None:
        self.table = table or {}
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[str]:
        self.calls.append(text)
        return list(self.table.get(text, []))


def make_editor(
    provider=no_suggestions,
    *,
    columns: int = 80,
    rows: int = 24,
    options: EditorOptions | None = None,
) -> tuple[VirtualTerminal, LineEditorController]:
    term = VirtualTerminal(rows=rows, columns=columns)
    controller = LineEditorController(term, term, options)
    controller.start(PROMPT, provider)
    return term, controller


def press(controller: LineEditorController, *events: KeyEvent) -> None:
    for event in events:
        controller.handle_key(event)


def type_text(controller: LineEditorController, text: str) -> None:
    press(controller, *(KeyEvent("char", char=ch) for ch in text))


# ---------------------------------------------------------------------------
# Session start
# ---------------------------------------------------------------------------


class TestStart:
    def test_prompt_is_written_and_cursor_follows_it(self) -> None:
        term, controller = make_editor()
        assert term.line(0) == ">"
        assert term.cursor == (2, 0)
        assert controller.buffer.text == ""
        assert controller.buffer.cursor == 0

    def test_initial_suggestions_computed_for_empty_text(self) -> None:
        provider = RecordingProvider({"": ["help"]})
        term, controller = make_editor(provider)
        assert provider.calls == [""]
        assert term.ghost(0) == "help"
        assert term.cursor == (2, 0)

    def test_cannot_start_twice(self) -> None:
        _, controller = make_editor()
        with pytest.raises(RuntimeError):
            controller.start(PROMPT, no_suggestions)

    def test_prompt_filling_the_row_starts_buffer_on_next_row(self) -> None:
        term = VirtualTerminal(rows=3, columns=4)
        controller = LineEditorController(term, term)
        controller.start("abcd", no_suggestions)
        type_text(controller, "x")
        assert term.line(0) == "abcd"
        assert term.line(1) == "x"
        assert term.cursor == (1, 1)


# ---------------------------------------------------------------------------
# Typing and cursor movement
# ---------------------------------------------------------------------------


class TestTyping:
    def test_characters_are_echoed(self) -> None:
        term, controller = make_editor()
        type_text(controller, "hello")
        assert controller.buffer.text == "hello"
        assert controller.buffer.cursor == 5
        assert term.line(0) == "> hello"
        assert term.cursor == (7, 0)

    def test_insert_in_the_middle_redraws_the_tail(self) -> None:
        term, controller = make_editor()
        type_text(controller, "ac")
        press(controller, LEFT)
        type_text(controller, "b")
        assert controller.buffer.text == "abc"
        assert term.line(0) == "> abc"
        assert term.cursor == (4, 0)

    def test_pasted_text_is_inserted_at_once(self) -> None:
        provider = RecordingProvider()
        term, controller = make_editor(provider)
        press(controller, KeyEvent("char", char="git status"))
        assert controller.buffer.text == "git status"
        assert controller.buffer.cursor == 10
        assert provider.calls == ["", "git status"]
        assert term.line(0) == "> git status"

    def test_empty_char_event_is_ignored(self) -> None:
        provider = RecordingProvider()
        _, controller = make_editor(provider)
        press(controller, KeyEvent("char", char=""))
        assert provider.calls == [""]


class TestCursorMovement:
    def test_left_and_right_move_one_character(self) -> None:
        term, controller = make_editor()
        type_text(controller, "abc")
        press(controller, LEFT, LEFT)
        assert controller.buffer.cursor == 1
        assert term.cursor == (3, 0)
        press(controller, RIGHT)
        assert controller.buffer.cursor == 2
        assert term.cursor == (4, 0)

    def test_left_at_start_and_right_at_end_are_noops(self) -> None:
        term, controller = make_editor()
        type_text(controller, "ab")
        press(controller, RIGHT)
        assert controller.buffer.cursor == 2
        press(controller, HOME, LEFT)
        assert controller.buffer.cursor == 0
        assert term.cursor == (2, 0)

    def test_word_movement(self) -> None:
        term, controller = make_editor()
        type_text(controller, "hello world")
        press(controller, WORD_LEFT)
        assert controller.buffer.cursor == 6
        assert term.cursor == (8, 0)
        press(controller, WORD_LEFT)
        assert controller.buffer.cursor == 0
        press(controller, WORD_RIGHT)
        assert controller.buffer.cursor == 5
        press(controller, WORD_RIGHT)
        assert controller.buffer.cursor == 11
        assert term.cursor == (13, 0)

    def test_home_and_end(self) -> None:
        term, controller = make_editor()
        type_text(controller, "hello")
        press(controller, HOME)
        assert controller.buffer.cursor == 0
        assert term.cursor == (2, 0)
        press(controller, END)
        assert controller.buffer.cursor == 5
        assert term.cursor == (7, 0)

    def test_movement_does_not_recompute_suggestions(self) -> None:
        provider = RecordingProvider()
        _, controller = make_editor(provider)
        type_text(controller, "ab")
        calls = len(provider.calls)
        press(controller, LEFT, WORD_LEFT, RIGHT, HOME, END)
        assert len(provider.calls) == calls

    def test_movement_leaves_screen_untouched(self) -> None:
        term, controller = make_editor(word_list_provider(["apple"]))
        type_text(controller, "ap")
        term.clear_writes()
        press(controller, LEFT, HOME, END)
        assert term.writes == []
        assert term.line(0) == "> apple"


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


class TestBackspace:
    def test_word_backspace_removes_last_word(self) -> None:
        term, controller = make_editor()
        type_text(controller, "hello world")
        press(controller, WORD_BACKSPACE)
        assert controller.buffer.text == "hello "
        assert controller.buffer.cursor == 6
        assert term.line(0) == "> hello"
        assert term.cursor == (8, 0)

    def test_character_backspace(self) -> None:
        term, controller = make_editor()
        type_text(controller, "hello world")
        press(controller, BACKSPACE)
        assert controller.buffer.text == "hello worl"
        assert controller.buffer.cursor == 10
        assert term.line(0) == "> hello worl"
        assert term.cursor == (12, 0)

    def test_backspace_at_start_is_a_noop(self) -> None:
        provider = RecordingProvider()
        term, controller = make_editor(provider)
        type_text(controller, "ab")
        press(controller, HOME)
        calls = len(provider.calls)
        press(controller, BACKSPACE, WORD_BACKSPACE)
        assert controller.buffer.text == "ab"
        assert len(provider.calls) == calls

    def test_backspace_in_the_middle_shifts_the_tail(self) -> None:
        term, controller = make_editor()
        type_text(controller, "one two three")
        press(controller, WORD_LEFT)
        press(controller, WORD_BACKSPACE)
        assert controller.buffer.text == "one three"
        assert controller.buffer.cursor == 4
        assert term.line(0) == "> one three"
        assert term.cursor == (6, 0)

    def test_backspace_recomputes_suggestions(self) -> None:
        provider = RecordingProvider()
        _, controller = make_editor(provider)
        type_text(controller, "ab")
        press(controller, BACKSPACE)
        assert provider.calls[-1] == "a"

    def test_insert_then_backspace_restores_state(self) -> None:
        term, controller = make_editor()
        type_text(controller, "base")
        press(controller, LEFT, LEFT)
        before = (controller.buffer.text, controller.buffer.cursor, term.line(0))
        type_text(controller, "xyz")
        press(controller, BACKSPACE, BACKSPACE, BACKSPACE)
        assert (controller.buffer.text, controller.buffer.cursor, term.line(0)) == before


class TestDelete:
    def test_word_delete_removes_spaces_and_next_word(self) -> None:
        term, controller = make_editor()
        type_text(controller, "foo  bar")
        press(controller, HOME, RIGHT, RIGHT, RIGHT)
        press(controller, WORD_DELETE)
        assert controller.buffer.text == "foo"
        assert controller.buffer.cursor == 3
        assert term.line(0) == "> foo"
        assert term.cursor == (5, 0)

    def test_character_delete(self) -> None:
        term, controller = make_editor()
        type_text(controller, "abc")
        press(controller, HOME, DELETE)
        assert controller.buffer.text == "bc"
        assert controller.buffer.cursor == 0
        assert term.line(0) == "> bc"
        assert term.cursor == (2, 0)

    def test_delete_at_end_is_a_noop(self) -> None:
        provider = RecordingProvider()
        term, controller = make_editor(provider)
        type_text(controller, "abc")
        calls = len(provider.calls)
        press(controller, DELETE, WORD_DELETE)
        assert controller.buffer.text == "abc"
        assert len(provider.calls) == calls


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


class TestGhostSuggestions:
    def test_ghost_is_drawn_after_text_in_muted_style(self) -> None:
        term, controller = make_editor(word_list_provider(["apple", "apricot"]))
        type_text(controller, "ap")
        assert term.line(0) == "> apple"
        assert term.ghost(0) == "ple"
        assert term.cursor == (4, 0)

    def test_ghost_uses_configured_style(self) -> None:
        options = EditorOptions(ghost_style="\x1b[2m")
        term = VirtualTerminal()
        controller = LineEditorController(term, term, options)
        styles: list[str] = []
        original = term.write_styled

        def spy(text: str, style: str) -> None:
            styles.append(style)
            original(text, style)

        term.write_styled = spy  # type: ignore[method-assign]
        controller.start(PROMPT, lambda text: ["x"])
        assert styles == ["\x1b[2m"]

    def test_ghost_follows_the_whole_line_when_editing_mid_text(self) -> None:
        provider = RecordingProvider({"ab": ["cd"], "axb": ["yz"]})
        term, controller = make_editor(provider)
        type_text(controller, "ab")
        press(controller, LEFT)
        type_text(controller, "x")
        assert term.line(0) == "> axbyz"
        assert term.ghost(0) == "yz"
        assert term.cursor == (4, 0)

    def test_cycling_wraps_in_both_directions(self) -> None:
        term, controller = make_editor(word_list_provider(["apple", "apricot"]))
        type_text(controller, "ap")
        press(controller, DOWN)
        assert controller.suggestions.active_index == 1
        assert term.line(0) == "> apricot"
        press(controller, DOWN)
        assert controller.suggestions.active_index == 0
        assert term.line(0) == "> apple"
        press(controller, UP)
        assert controller.suggestions.active_index == 1
        assert term.line(0) == "> apricot"
        assert term.cursor == (4, 0)

    def test_cycling_does_not_call_provider(self) -> None:
        provider = RecordingProvider({"": ["one", "two"]})
        _, controller = make_editor(provider)
        press(controller, DOWN, UP, DOWN)
        assert provider.calls == [""]

    def test_shorter_ghost_is_padded_with_exact_blank_count(self) -> None:
        term, controller = make_editor(lambda text: ["abcde", "xy"])
        term.clear_writes()
        press(controller, DOWN)
        assert term.writes == [("styled", "xy"), ("plain", "   ")]
        assert term.line(0) == "> xy"

    def test_longer_ghost_needs_no_padding(self) -> None:
        term, controller = make_editor(lambda text: ["xy", "abcde"])
        term.clear_writes()
        press(controller, DOWN)
        assert term.writes == [("styled", "abcde")]

    def test_provider_receives_full_text_not_just_head(self) -> None:
        provider = RecordingProvider()
        _, controller = make_editor(provider)
        type_text(controller, "abc")
        press(controller, HOME)
        type_text(controller, "x")
        assert provider.calls[-1] == "xabc"


class TestTabAcceptance:
    def test_tab_accepts_active_suggestion(self) -> None:
        provider = RecordingProvider({"ap": ["ple"]})
        term, controller = make_editor(provider)
        type_text(controller, "ap")
        press(controller, TAB)
        assert controller.buffer.text == "apple"
        assert controller.buffer.cursor == 5
        assert provider.calls[-1] == "apple"
        assert term.line(0) == "> apple"
        assert term.ghost(0) == ""
        assert term.cursor == (7, 0)

    def test_tab_accepts_the_cycled_suggestion(self) -> None:
        term, controller = make_editor(word_list_provider(["apple", "apricot"]))
        type_text(controller, "ap")
        press(controller, DOWN, TAB)
        assert controller.buffer.text == "apricot"
        assert term.line(0) == "> apricot"

    def test_tab_without_suggestion_is_a_noop(self) -> None:
        provider = RecordingProvider()
        _, controller = make_editor(provider)
        type_text(controller, "zz")
        calls = len(provider.calls)
        press(controller, TAB)
        assert controller.buffer.text == "zz"
        assert len(provider.calls) == calls


class TestProviderFailures:
    def test_failing_provider_means_no_suggestions(self, caplog) -> None:
        def broken(text: str) -> list[str]:
            raise RuntimeError("backend down")

        with caplog.at_level(logging.WARNING, logger="ghostline.suggestions"):
            term, controller = make_editor(broken)
            type_text(controller, "ok")

        assert controller.buffer.text == "ok"
        assert term.line(0) == "> ok"
        assert term.ghost(0) == ""
        assert "Suggestion provider failed" in caplog.text

    def test_failure_clears_a_previous_ghost(self) -> None:
        def flaky(text: str) -> list[str]:
            if text == "a":
                return ["pple"]
            raise ValueError(text)

        term, controller = make_editor(flaky)
        type_text(controller, "a")
        assert term.line(0) == "> apple"
        type_text(controller, "b")
        assert term.line(0) == "> ab"

    def test_provider_timeout(self, caplog) -> None:
        release = threading.Event()

        def slow(text: str) -> list[str]:
            if text:
                release.wait(2)
            return ["never"]

        options = EditorOptions(provider_timeout=0.05)
        try:
            with caplog.at_level(logging.WARNING, logger="ghostline.suggestions"):
                term, controller = make_editor(slow, options=options)
                type_text(controller, "a")
        finally:
            release.set()
            controller.suggestions.close()

        assert term.line(0) == "> a"
        assert "timed out" in caplog.text


# ---------------------------------------------------------------------------
# Enter and the run loop
# ---------------------------------------------------------------------------


class TestEnter:
    def test_enter_blanks_ghost_and_moves_to_next_line(self) -> None:
        term, controller = make_editor(word_list_provider(["apple"]))
        type_text(controller, "ap")
        press(controller, ENTER)
        assert controller.done is True
        assert term.line(0) == "> ap"
        assert term.cursor == (0, 1)

    def test_enter_from_the_middle_of_the_line(self) -> None:
        term, controller = make_editor(word_list_provider(["apple"]))
        type_text(controller, "ap")
        press(controller, HOME, ENTER)
        assert term.line(0) == "> ap"
        assert term.cursor == (0, 1)

    def test_keys_after_enter_are_ignored(self) -> None:
        _, controller = make_editor()
        type_text(controller, "a")
        press(controller, ENTER)
        type_text(controller, "b")
        assert controller.buffer.text == "a"


class TestRun:
    def test_run_returns_committed_line(self) -> None:
        term = VirtualTerminal()
        term.type_text("ap")
        term.feed(TAB, ENTER)
        controller = LineEditorController(term, term)
        result = controller.run(PROMPT, word_list_provider(["apple"]))
        assert result == "apple"
        assert term.line(0) == "> apple"

    def test_transient_read_errors_are_retried(self) -> None:
        term = VirtualTerminal()
        term.feed(InterruptedError(), KeyEvent("char", char="a"), BlockingIOError(), ENTER)
        result = LineEditorController(term, term).run(PROMPT, no_suggestions)
        assert result == "a"

    def test_retry_limit(self) -> None:
        term = VirtualTerminal()
        term.feed(InterruptedError(), InterruptedError(), InterruptedError())
        controller = LineEditorController(term, term, EditorOptions(max_read_retries=2))
        with pytest.raises(InterruptedError):
            controller.run(PROMPT, no_suggestions)

    def test_fatal_read_errors_propagate(self) -> None:
        term = VirtualTerminal()
        term.type_text("abc")
        with pytest.raises(EOFError):
            LineEditorController(term, term).run(PROMPT, no_suggestions)


class TestEditFunction:
    def test_edit_with_virtual_terminal(self) -> None:
        term = VirtualTerminal()
        term.type_text("hi")
        term.feed(ENTER)
        assert edit(PROMPT, no_suggestions, terminal=term) == "hi"

    def test_sessions_do_not_share_state(self) -> None:
        term = VirtualTerminal()
        term.type_text("first")
        term.feed(ENTER)
        term.type_text("second")
        term.feed(ENTER)
        assert edit(PROMPT, no_suggestions, terminal=term) == "first"
        assert edit(PROMPT, no_suggestions, terminal=term) == "second"

    def test_separate_key_source(self) -> None:
        screen = VirtualTerminal()
        keys = VirtualTerminal()
        keys.type_text("x")
        keys.feed(ENTER)
        assert edit(PROMPT, no_suggestions, terminal=screen, keys=keys) == "x"
        assert screen.line(0) == "> x"

    def test_output_only_terminal_requires_keys(self) -> None:
        class OutputOnly:
            def write(self, text: str) -> None: ...

        with pytest.raises(TypeError):
            edit(PROMPT, no_suggestions, terminal=OutputOnly())  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Wrapping and scrolling
# ---------------------------------------------------------------------------


class TestScrolling:
    def test_line_wrapping_on_bottom_row_scrolls(self) -> None:
        term = VirtualTerminal(rows=3, columns=10)
        term.set_cursor(0, 2)
        controller = LineEditorController(term, term)
        controller.start(PROMPT, no_suggestions)
        type_text(controller, "abcdefghijkl")
        assert term.scroll_count == 1
        assert term.line(1) == "> abcdefgh"
        assert term.line(2) == "ijkl"
        assert term.cursor == (4, 2)

    def test_editing_after_scroll_keeps_positions(self) -> None:
        term = VirtualTerminal(rows=3, columns=10)
        term.set_cursor(0, 2)
        controller = LineEditorController(term, term)
        controller.start(PROMPT, no_suggestions)
        type_text(controller, "abcdefghijkl")
        press(controller, HOME)
        assert term.cursor == (2, 1)
        press(controller, DELETE)
        assert term.line(1) == "> bcdefghi"
        assert term.line(2) == "jkl"
        press(controller, END)
        assert term.cursor == (3, 2)


# ---------------------------------------------------------------------------
# Screen invariant under random editing
# ---------------------------------------------------------------------------


class TestScreenInvariant:
    KEYS = [
        BACKSPACE, WORD_BACKSPACE, DELETE, WORD_DELETE, LEFT, RIGHT,
        WORD_LEFT, WORD_RIGHT, HOME, END, UP, DOWN, TAB,
    ]
    CHARS = list("abcp ._")

    @pytest.mark.parametrize("seed", range(8))
    def test_screen_matches_buffer_and_ghost(self, seed: int) -> None:
        rng = random.Random(seed)
        provider = word_list_provider(["apple", "apricot", "banana", "cab", "a_b.c"])
        term, controller = make_editor(provider, columns=400)

        for _ in range(150):
            if rng.random() < 0.55:
                event = KeyEvent("char", char=rng.choice(self.CHARS))
            else:
                event = rng.choice(self.KEYS)
            controller.handle_key(event)

            buffer = controller.buffer
            ghost = controller.suggestions.active_text()
            assert 0 <= buffer.cursor <= len(buffer.text)
            assert term.line(0) == (PROMPT + buffer.text + ghost).rstrip()
            assert term.ghost(0) == ghost
            assert term.cursor == (len(PROMPT) + buffer.cursor, 0)
