"""ghostline: single-line terminal editor with inline ghost suggestions."""

# Configuration
from ghostline.config import DEFAULT_GHOST_STYLE, EditorOptions

# Cursor/grid mapping
from ghostline.cursor_model import (
    CursorPosition,
    offset_to_position,
    position_to_offset,
    scrolled_rows,
)

# Line editor
from ghostline.editor import LineEditorController, edit

# Buffer
from ghostline.input_buffer import InputBuffer

# Keybindings
from ghostline.keybindings import (
    DEFAULT_EDITOR_KEYBINDINGS,
    EditorAction,
    EditorKeybindingsManager,
    get_editor_keybindings,
    set_editor_keybindings,
)

# Keyboard input handling
from ghostline.keys import Key, KeyEvent, KeyId, KeyKind, parse_key

# Providers
from ghostline.providers import (
    History,
    combine_providers,
    history_provider,
    word_list_provider,
)

# Input buffering
from ghostline.stdin_buffer import StdinBuffer

# Suggestions
from ghostline.suggestions import SuggestionEngine, SuggestionProvider

# Terminal interface and implementation
from ghostline.terminal import KeySource, ProcessTerminal, Terminal

# Utilities
from ghostline.utils import visible_width

# Word units
from ghostline.word_boundary import backward_unit_length, forward_unit_length

__all__ = [
    # Config
    "DEFAULT_GHOST_STYLE",
    "EditorOptions",
    # Cursor model
    "CursorPosition",
    "offset_to_position",
    "position_to_offset",
    "scrolled_rows",
    # Editor
    "LineEditorController",
    "edit",
    # Buffer
    "InputBuffer",
    # Keybindings
    "DEFAULT_EDITOR_KEYBINDINGS",
    "EditorAction",
    "EditorKeybindingsManager",
    "get_editor_keybindings",
    "set_editor_keybindings",
    # Keys
    "Key",
    "KeyEvent",
    "KeyId",
    "KeyKind",
    "parse_key",
    # Providers
    "History",
    "combine_providers",
    "history_provider",
    "word_list_provider",
    # Stdin buffer
    "StdinBuffer",
    # Suggestions
    "SuggestionEngine",
    "SuggestionProvider",
    # Terminal
    "KeySource",
    "ProcessTerminal",
    "Terminal",
    # Utilities
    "visible_width",
    # Word units
    "backward_unit_length",
    "forward_unit_length",
]
