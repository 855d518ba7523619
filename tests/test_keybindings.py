"""Tests for keybindings."""

import logging

import pytest

from sciedit import (
    ConfigurationError,
    EditorCommand,
    KeybindingConfig,
    KeybindingManager,
    get_default_keybindings,
    normalize_key,
)
from sciedit.events import KeyPressed


class TestEditorCommand:
    def test_from_name(self):
        assert EditorCommand.from_name("toggle_comment") == EditorCommand.TOGGLE_COMMENT
        assert EditorCommand.from_name(" Fold_All ") == EditorCommand.FOLD_ALL
        assert EditorCommand.from_name("nothing") is None

    def test_config_name(self):
        assert EditorCommand.STRIP_TRAILING_SPACES.config_name == "strip_trailing_spaces"


class TestNormalizeKey:
    def test_modifiers_sorted(self):
        assert normalize_key("Shift+Ctrl+I") == "ctrl+shift+i"

    def test_plain_key(self):
        assert normalize_key("Tab") == "tab"


class TestKeybindingConfig:
    def test_keys_for(self):
        config = KeybindingConfig(
            bindings={
                EditorCommand.TOGGLE_COMMENT: ["ctrl+e"],
            }
        )
        assert config.keys_for(EditorCommand.TOGGLE_COMMENT) == ["ctrl+e"]
        assert config.keys_for(EditorCommand.FOLD_ALL) == []

    def test_bind_takes_key_from_other_command(self):
        config = get_default_keybindings()
        config.bind(EditorCommand.FOLD_ALL, ["Ctrl+E"])
        assert config.keys_for(EditorCommand.FOLD_ALL) == ["Ctrl+E"]
        assert config.keys_for(EditorCommand.TOGGLE_COMMENT) == []

    def test_merged_leaves_original(self):
        config = get_default_keybindings()
        merged = config.merged({"toggle_comment": ["ctrl+slash"], "fold_all": "f7"})
        assert merged.keys_for(EditorCommand.TOGGLE_COMMENT) == ["ctrl+slash"]
        assert merged.keys_for(EditorCommand.FOLD_ALL) == ["f7"]
        assert config.keys_for(EditorCommand.TOGGLE_COMMENT) == ["ctrl+e"]

    def test_merged_skips_invalid(self, caplog):
        with caplog.at_level(logging.WARNING, logger="sciedit.keybindings"):
            merged = KeybindingConfig().merged({"no_such_command": ["f1"], "fold_all": [1]})
        assert merged.bindings == {}
        assert "no_such_command" in caplog.text

    def test_merged_strict(self):
        with pytest.raises(ConfigurationError):
            KeybindingConfig().merged({"fold_all": {"key": "f7"}}, strict=True)

    def test_to_dict(self):
        config = KeybindingConfig(bindings={EditorCommand.CALLTIP: ["ctrl+shift+space"]})
        assert config.to_dict() == {"calltip": ["ctrl+shift+space"]}
        assert KeybindingConfig().merged(config.to_dict()).bindings == config.bindings


class TestKeybindingManager:
    def test_match_case_insensitive(self):
        manager = KeybindingManager(
            KeybindingConfig(
                bindings={
                    EditorCommand.COMPLETE_SNIPPET: ["Tab"],
                }
            )
        )
        assert manager.match("tab") == EditorCommand.COMPLETE_SNIPPET
        assert manager.match("TAB") == EditorCommand.COMPLETE_SNIPPET

    def test_match_modifier_order(self):
        manager = KeybindingManager(
            KeybindingConfig(
                bindings={
                    EditorCommand.SMART_LINE_INDENT: ["ctrl+shift+i"],
                }
            )
        )
        assert manager.match("ctrl+shift+i") == EditorCommand.SMART_LINE_INDENT
        assert manager.match("shift+ctrl+i") == EditorCommand.SMART_LINE_INDENT

    def test_match_event(self):
        manager = KeybindingManager()
        assert manager.match_event(KeyPressed(key="ctrl+space")) == EditorCommand.AUTOCOMPLETE

    def test_no_match(self):
        manager = KeybindingManager(KeybindingConfig())
        assert manager.match("tab") is None

    def test_rebind(self):
        manager = KeybindingManager(get_default_keybindings())
        manager.rebind(EditorCommand.TOGGLE_COMMENT, ["ctrl+slash"])
        assert manager.match("ctrl+slash") == EditorCommand.TOGGLE_COMMENT
        assert manager.match("ctrl+e") is None
        assert manager.keys_for(EditorCommand.TOGGLE_COMMENT) == ["ctrl+slash"]

    def test_rebind_moves_key(self):
        manager = KeybindingManager(get_default_keybindings())
        manager.rebind(EditorCommand.FOLD_ALL, ["tab"])
        assert manager.match("tab") == EditorCommand.FOLD_ALL
        assert manager.keys_for(EditorCommand.COMPLETE_SNIPPET) == []

    def test_conflicting_config_warns(self, caplog):
        config = KeybindingConfig(
            bindings={
                EditorCommand.FOLD_ALL: ["f7"],
                EditorCommand.UNFOLD_ALL: ["F7"],
            }
        )
        with caplog.at_level(logging.WARNING, logger="sciedit.keybindings"):
            manager = KeybindingManager(config)
        assert manager.match("f7") == EditorCommand.UNFOLD_ALL
        assert "fold_all" in caplog.text


class TestDefaultKeybindings:
    def test_tab_completes_snippets(self):
        manager = KeybindingManager(get_default_keybindings())
        assert manager.match("tab") == EditorCommand.COMPLETE_SNIPPET

    def test_completion_keys(self):
        manager = KeybindingManager(get_default_keybindings())
        assert manager.match("ctrl+space") == EditorCommand.AUTOCOMPLETE
        assert manager.match("ctrl+shift+space") == EditorCommand.CALLTIP
        assert manager.match("ctrl+enter") == EditorCommand.MACRO_LIST

    def test_comment_keys(self):
        manager = KeybindingManager(get_default_keybindings())
        assert manager.match("ctrl+e") == EditorCommand.TOGGLE_COMMENT
        assert manager.match("ctrl+shift+d") == EditorCommand.INSERT_MULTILINE_COMMENT
