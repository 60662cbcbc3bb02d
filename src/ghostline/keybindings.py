"""Line editor keybindings manager."""

from __future__ import annotations

from typing import Literal

from ghostline.keys import KeyEvent, KeyId, parse_key
from ghostline.utils import has_control_chars

EditorAction = Literal[
    # Cursor movement
    "cursorLeft",
    "cursorRight",
    "cursorWordLeft",
    "cursorWordRight",
    "cursorLineStart",
    "cursorLineEnd",
    # Deletion
    "deleteCharBackward",
    "deleteCharForward",
    "deleteWordBackward",
    "deleteWordForward",
    # Suggestions
    "suggestionPrevious",
    "suggestionNext",
    "acceptSuggestion",
    # Text input
    "submit",
]

EditorKeybindingsConfig = dict[EditorAction, KeyId | list[KeyId]]

DEFAULT_EDITOR_KEYBINDINGS: dict[EditorAction, KeyId | list[KeyId]] = {
    # Cursor movement
    "cursorLeft": ["left", "ctrl+b"],
    "cursorRight": ["right", "ctrl+f"],
    "cursorWordLeft": ["ctrl+left", "alt+left", "alt+b"],
    "cursorWordRight": ["ctrl+right", "alt+right", "alt+f"],
    "cursorLineStart": ["home", "ctrl+a"],
    "cursorLineEnd": ["end", "ctrl+e"],
    # Deletion
    "deleteCharBackward": "backspace",
    "deleteCharForward": ["delete", "ctrl+d"],
    "deleteWordBackward": ["ctrl+backspace", "alt+backspace", "ctrl+w"],
    "deleteWordForward": ["ctrl+delete", "alt+delete", "alt+d"],
    # Suggestions
    "suggestionPrevious": "up",
    "suggestionNext": "down",
    "acceptSuggestion": "tab",
    # Text input
    "submit": "enter",
}

ACTION_EVENTS: dict[EditorAction, KeyEvent] = {
    "cursorLeft": KeyEvent("left"),
    "cursorRight": KeyEvent("right"),
    "cursorWordLeft": KeyEvent("left", whole_unit=True),
    "cursorWordRight": KeyEvent("right", whole_unit=True),
    "cursorLineStart": KeyEvent("home"),
    "cursorLineEnd": KeyEvent("end"),
    "deleteCharBackward": KeyEvent("backspace"),
    "deleteCharForward": KeyEvent("delete"),
    "deleteWordBackward": KeyEvent("backspace", whole_unit=True),
    "deleteWordForward": KeyEvent("delete", whole_unit=True),
    "suggestionPrevious": KeyEvent("up"),
    "suggestionNext": KeyEvent("down"),
    "acceptSuggestion": KeyEvent("tab"),
    "submit": KeyEvent("enter"),
}


class EditorKeybindingsManager:
    """Maps key identifiers to editor actions and key events."""

    def __init__(
        self, config: EditorKeybindingsConfig | None = None
    ) -> None:
        self._action_to_keys: dict[EditorAction, list[KeyId]] = {}
        self._key_to_action: dict[KeyId, EditorAction] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: EditorKeybindingsConfig) -> None:
        self._action_to_keys.clear()
        self._key_to_action.clear()

        # Start with defaults
        for action, keys in DEFAULT_EDITOR_KEYBINDINGS.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        # Override with user config
        for action, keys in config.items():
            if action not in ACTION_EVENTS:
                raise ValueError(f"Unknown editor action: {action!r}")
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        for action, key_ids in self._action_to_keys.items():
            for key_id in key_ids:
                self._key_to_action[key_id] = action

    def action_for(self, key_id: KeyId) -> EditorAction | None:
        return self._key_to_action.get(key_id)

    def get_keys(self, action: EditorAction) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def set_config(self, config: EditorKeybindingsConfig) -> None:
        """Update configuration."""
        self._build_maps(config)

    def resolve(self, data: str) -> KeyEvent | None:
        """Translate one complete input sequence into a key event.

        Bound keys take precedence; otherwise printable text becomes a
        ``"char"`` event. Returns ``None`` for input the editor ignores.
        """
        key_id = parse_key(data)
        if key_id is not None:
            action = self._key_to_action.get(key_id)
            if action is not None:
                return ACTION_EVENTS[action]

        if data and not data.startswith("\x1b") and not has_control_chars(data):
            return KeyEvent("char", char=data)
        return None

    def resolve_paste(self, pasted: str) -> KeyEvent | None:
        """Turn bracketed-paste content into a single insertion."""
        clean = pasted.replace("\r\n", "").replace("\r", "").replace("\n", "")
        clean = clean.replace("\t", " ")
        clean = "".join(ch for ch in clean if not has_control_chars(ch))
        if not clean:
            return None
        return KeyEvent("char", char=clean)


_global_editor_keybindings: EditorKeybindingsManager | None = None


def get_editor_keybindings() -> EditorKeybindingsManager:
    global _global_editor_keybindings
    if _global_editor_keybindings is None:
        _global_editor_keybindings = EditorKeybindingsManager()
    return _global_editor_keybindings


def set_editor_keybindings(manager: EditorKeybindingsManager) -> None:
    global _global_editor_keybindings
    _global_editor_keybindings = manager
