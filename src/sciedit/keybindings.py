"""Keybindings: which key combination runs which editor command.

Commands are named in lower case in ``keybindings.json``, for example
``{"toggle_comment": ["ctrl+slash"]}``. ``PrefsManager.load_keybindings``
merges the global and project files over the defaults.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from .errors import ConfigurationError
from .events import KeyPressed

logger = logging.getLogger(__name__)

_MODIFIERS = ("ctrl", "alt", "shift", "meta")

class EditorCommand(Enum):
    """Commands that can be triggered by keybindings."""

    # Comments
    TOGGLE_COMMENT = auto()
    COMMENT = auto()
    UNCOMMENT = auto()
    INSERT_MULTILINE_COMMENT = auto()

    # Completion
    AUTOCOMPLETE = auto()
    CALLTIP = auto()
    MACRO_LIST = auto()
    COMPLETE_SNIPPET = auto()

    # Indentation
    SMART_LINE_INDENT = auto()
    INCREASE_INDENT_BY_SPACE = auto()
    DECREASE_INDENT_BY_SPACE = auto()
    INSERT_ALTERNATIVE_WHITESPACE = auto()
    SMART_HOME = auto()

    # Folding
    FOLD_ALL = auto()
    UNFOLD_ALL = auto()
    TOGGLE_FOLD = auto()

    # Whitespace
    REPLACE_TABS = auto()
    REPLACE_SPACES = auto()
    STRIP_TRAILING_SPACES = auto()
    ENSURE_FINAL_NEWLINE = auto()

    # Selection
    SELECT_WORD = auto()
    SELECT_LINES = auto()
    SELECT_PARAGRAPH = auto()

    # Markers and view
    TOGGLE_MARKER = auto()
    CLEAR_INDICATORS = auto()
    TOGGLE_USE_TABS = auto()
    TOGGLE_LINE_WRAPPING = auto()
    DISPLAY_CURRENT_LINE = auto()

    @classmethod
    def from_name(cls, name: str) -> "EditorCommand | None":
        """Command for a name such as ``toggle_comment``, or None."""
        return cls.__members__.get(name.strip().upper())

    @property
    def config_name(self) -> str:
        """Name used in keybindings.json and in CommandRun reactions."""
        return self.name.lower()


def normalize_key(key: str) -> str:
    """Canonical form of a key combination: lower case with sorted modifiers."""
    *modifiers, main = key.strip().lower().split("+")
    return "+".join(sorted(m for m in modifiers if m in _MODIFIERS) + [main])


@dataclass
class KeybindingConfig:
    """Keys bound to each editor command.

    A key belongs to at most one command: binding it to a command takes it
    away from whichever command held it before.
    """

    bindings: dict[EditorCommand, list[str]] = field(default_factory=dict)

    def keys_for(self, command: EditorCommand) -> list[str]:
        return self.bindings.get(command, [])

    def bind(self, command: EditorCommand, keys: list[str]) -> None:
        """Replace the keys of command. An empty list unbinds it."""
        taken = {normalize_key(key) for key in keys}
        for other, other_keys in self.bindings.items():
            if other != command:
                self.bindings[other] = [key for key in other_keys if normalize_key(key) not in taken]
        self.bindings[command] = list(keys)

    def merged(self, overrides: dict[str, Any], strict: bool = False) -> "KeybindingConfig":
        """Copy of this config with overrides applied.

        Overrides map command names to key lists, as read from
        ``keybindings.json``. Each listed command gets exactly the given
        keys; unlisted commands keep theirs.

        Raises:
            ConfigurationError: In strict mode, for an unknown command or a
                value that is not a list of key strings
        """
        result = KeybindingConfig({command: list(keys) for command, keys in self.bindings.items()})
        for name, keys in overrides.items():
            command = EditorCommand.from_name(name)
            if isinstance(keys, str):
                keys = [keys]
            if command is None or not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
                if strict:
                    raise ConfigurationError(f"Invalid keybinding {name!r}: {keys!r}")
                logger.warning(f"Ignoring keybinding {name!r}: {keys!r}")
                continue
            result.bind(command, keys)
        return result

    def to_dict(self) -> dict[str, list[str]]:
        """JSON-ready form keyed by command name."""
        return {command.config_name: list(keys) for command, keys in self.bindings.items()}


def get_default_keybindings() -> KeybindingConfig:
    """Default keys, close to those of the common desktop code editors."""
    return KeybindingConfig(
        bindings={
            # Comments
            EditorCommand.TOGGLE_COMMENT: ["ctrl+e"],
            EditorCommand.INSERT_MULTILINE_COMMENT: ["ctrl+shift+d"],
            # Completion
            EditorCommand.AUTOCOMPLETE: ["ctrl+space"],
            EditorCommand.CALLTIP: ["ctrl+shift+space"],
            EditorCommand.MACRO_LIST: ["ctrl+enter"],
            EditorCommand.COMPLETE_SNIPPET: ["tab"],
            # Indentation
            EditorCommand.SMART_LINE_INDENT: ["ctrl+shift+i"],
            EditorCommand.INCREASE_INDENT_BY_SPACE: ["alt+right"],
            EditorCommand.DECREASE_INDENT_BY_SPACE: ["alt+left"],
            EditorCommand.INSERT_ALTERNATIVE_WHITESPACE: ["shift+tab"],
            EditorCommand.SMART_HOME: ["home"],
            # Folding
            EditorCommand.TOGGLE_FOLD: ["ctrl+shift+f"],
            # Selection
            EditorCommand.SELECT_WORD: ["alt+shift+w"],
            EditorCommand.SELECT_LINES: ["alt+shift+l"],
            EditorCommand.SELECT_PARAGRAPH: ["alt+shift+p"],
            # Markers
            EditorCommand.TOGGLE_MARKER: ["ctrl+shift+m"],
        }
    )


class KeybindingManager:
    """Resolves key presses to editor commands."""

    def __init__(self, config: KeybindingConfig | None = None) -> None:
        self.config = config or get_default_keybindings()
        self._lookup: dict[str, EditorCommand] = {}
        self._build_lookup()

    def _build_lookup(self) -> None:
        self._lookup.clear()
        for command, keys in self.config.bindings.items():
            for key in keys:
                normalized = normalize_key(key)
                previous = self._lookup.get(normalized)
                if previous is not None and previous != command:
                    logger.warning(
                        f"Key {normalized} is bound to {previous.config_name} and {command.config_name}; "
                        f"using {command.config_name}"
                    )
                self._lookup[normalized] = command

    def rebind(self, command: EditorCommand, keys: list[str]) -> None:
        """Replace the keys of a command and refresh the lookup."""
        self.config.bind(command, keys)
        self._build_lookup()

    def match(self, key: str) -> EditorCommand | None:
        """Command bound to a key string such as ``ctrl+e``."""
        return self._lookup.get(normalize_key(key))

    def match_event(self, event: KeyPressed) -> EditorCommand | None:
        return self.match(event.key)

    def keys_for(self, command: EditorCommand) -> list[str]:
        return self.config.keys_for(command)
