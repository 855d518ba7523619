"""Preferences manager with global/project hierarchy."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from .errors import ConfigurationError
from .keybindings import KeybindingManager, get_default_keybindings
from .prefs import EditorPrefs, IndentMode
from .snippets import SnippetTable

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".sciedit"
PREFS_FILE = "prefs.json"
SNIPPETS_FILE = "snippets.json"
KEYBINDINGS_FILE = "keybindings.json"


def get_default_config_dir() -> Path:
    """Get the default global configuration directory."""
    return Path.home() / CONFIG_DIR_NAME


def deep_merge(base: dict, overrides: dict) -> dict:
    """Deep merge two dictionaries. Overrides take precedence."""
    result = base.copy()

    for key, value in overrides.items():
        if value is None:
            continue

        base_value = result.get(key)

        # For nested dicts, merge recursively
        if isinstance(value, dict) and isinstance(base_value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value

    return result


def dict_to_prefs(data: dict) -> EditorPrefs:
    """Validate a dictionary into EditorPrefs.

    Raises:
        ConfigurationError: If a value fails validation
    """
    try:
        return EditorPrefs.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid preferences: {e}") from e


def prefs_to_dict(prefs: EditorPrefs) -> dict:
    """Convert EditorPrefs to a JSON-ready dictionary."""
    return prefs.model_dump(mode="json")


# Flat keys written by older versions, mapped into the indentation group
_LEGACY_INDENT_KEYS = {
    "indent_width": "width",
    "indent_tab_width": "tab_width",
    "indent_custom_tab_width": "custom_tab_width",
    "indent_use_tabs": "use_tabs",
    "indent_mode": "mode",
    "use_tab_to_indent": "use_tab_to_indent",
}

_CAMEL_CASE_KEYS = {
    "showWhiteSpace": "show_white_space",
    "showIndentGuide": "show_indent_guide",
    "showLineEndings": "show_line_endings",
    "showMarkersMargin": "show_markers_margin",
    "showLinenumberMargin": "show_linenumber_margin",
    "longLineType": "long_line_type",
    "longLineColumn": "long_line_column",
    "longLineColor": "long_line_color",
    "lineWrapping": "line_wrapping",
    "useIndicators": "use_indicators",
    "unfoldAllChildren": "unfold_all_children",
    "smartHomeKey": "smart_home_key",
    "newlineStrip": "newline_strip",
    "autoCloseXmlTags": "auto_close_xml_tags",
    "autoContinueMultiline": "auto_continue_multiline",
    "detectTabMode": "detect_tab_mode",
    "lineBreakColumn": "line_break_column",
    "wordChars": "word_chars",
    "autoCompleteSymbols": "auto_complete_symbols",
    "completeSnippets": "complete_snippets",
    "completeSnippetsWhilstEditing": "complete_snippets_whilst_editing",
    "symbolcompletionMinChars": "symbolcompletion_min_chars",
    "symbolcompletionMaxHeight": "symbolcompletion_max_height",
    "braceMatchLtgt": "brace_match_ltgt",
    "braceMatchMaxDistance": "brace_match_max_distance",
}

_CAMEL_CASE_INDENT_KEYS = {
    "tabWidth": "tab_width",
    "customTabWidth": "custom_tab_width",
    "useTabs": "use_tabs",
    "useTabToIndent": "use_tab_to_indent",
}


def migrate_prefs(data: dict) -> dict:
    """Migrate old preference formats to the current one."""
    for old_key, new_key in _CAMEL_CASE_KEYS.items():
        if old_key in data and new_key not in data:
            data[new_key] = data.pop(old_key)

    indentation = data.get("indentation")
    if not isinstance(indentation, dict):
        indentation = {}

    for old_key, new_key in _LEGACY_INDENT_KEYS.items():
        if old_key in data and new_key not in indentation:
            indentation[new_key] = data.pop(old_key)

    for old_key, new_key in _CAMEL_CASE_INDENT_KEYS.items():
        if old_key in indentation and new_key not in indentation:
            indentation[new_key] = indentation.pop(old_key)

    # Numeric modes 0-3
    mode = indentation.get("mode")
    if isinstance(mode, int) and not isinstance(mode, bool) and 0 <= mode <= 3:
        indentation["mode"] = IndentMode.from_legacy(mode).value

    if indentation:
        data["indentation"] = indentation

    return data


class PrefsManager:
    """
    Manages editor preferences with global/project hierarchy.

    Preferences are loaded from:
    1. Global: ~/.sciedit/prefs.json
    2. Project: <cwd>/.sciedit/prefs.json

    Project preferences override global ones. A file that cannot be read or
    does not validate is reported and ignored.
    """

    def __init__(
        self,
        cwd: str | Path | None = None,
        config_dir: str | Path | None = None,
        persist: bool = True,
        load: bool = True,
    ):
        """
        Initialize preferences manager.

        Args:
            cwd: Working directory for project preferences
            config_dir: Global config directory (default: ~/.sciedit)
            persist: Whether to save changes to disk
            load: Whether to read the preference files
        """
        self._cwd = Path(cwd) if cwd else Path.cwd()
        self._config_dir = Path(config_dir) if config_dir else get_default_config_dir()
        self._persist = persist

        self._global_prefs_path = self._config_dir / PREFS_FILE
        self._project_prefs_path = self._cwd / CONFIG_DIR_NAME / PREFS_FILE

        self._global_prefs: dict = {}
        self._project_prefs: dict = {}
        self._prefs: EditorPrefs = EditorPrefs()
        self._modified_fields: set[str] = set()

        if load:
            self._load()

    @classmethod
    def create(cls, cwd: str | Path | None = None) -> "PrefsManager":
        """Create a preferences manager with default paths."""
        return cls(cwd=cwd)

    @classmethod
    def in_memory(cls, prefs: EditorPrefs | None = None) -> "PrefsManager":
        """Create an in-memory preferences manager (no files, no persistence)."""
        manager = cls(persist=False, load=False)
        if prefs:
            manager._prefs = prefs
        return manager

    def _load(self) -> None:
        """Load preferences from files."""
        self._global_prefs = self._validated(
            self._load_from_file(self._global_prefs_path), {}, self._global_prefs_path
        )
        self._project_prefs = self._validated(
            self._load_from_file(self._project_prefs_path),
            self._global_prefs,
            self._project_prefs_path,
        )

        # Merge: global <- project
        merged = deep_merge(self._global_prefs, self._project_prefs)
        self._prefs = dict_to_prefs(merged) if merged else EditorPrefs()
        logger.debug(f"Loaded preferences (global={bool(self._global_prefs)}, project={bool(self._project_prefs)})")

    def _validated(self, data: dict, base: dict, path: Path) -> dict:
        """Return data if it validates on top of base, else an empty dict."""
        if not data:
            return {}
        try:
            dict_to_prefs(deep_merge(base, data))
        except ConfigurationError as e:
            logger.warning(f"Ignoring preferences in {path}: {e}")
            return {}
        return data

    def _load_from_file(self, path: Path) -> dict:
        """Load preferences from a JSON file."""
        if not path.exists():
            return {}

        try:
            content = path.read_text(encoding="utf-8")
            data = json.loads(content)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load preferences from {path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Could not load preferences from {path}: not a JSON object")
            return {}
        return migrate_prefs(data)

    def _save(self) -> None:
        """Save modified preferences to the global file."""
        if not self._persist or not self._modified_fields:
            return

        try:
            self._global_prefs_path.parent.mkdir(parents=True, exist_ok=True)

            # Load current file to preserve external changes
            current = self._load_from_file(self._global_prefs_path)

            prefs_dict = prefs_to_dict(self._prefs)
            for field_name in self._modified_fields:
                if field_name in prefs_dict:
                    current[field_name] = prefs_dict[field_name]

            self._global_prefs_path.write_text(
                json.dumps(current, indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            logger.warning(f"Could not save preferences: {e}")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def prefs(self) -> EditorPrefs:
        """Get the merged preferences."""
        return self._prefs

    @property
    def cwd(self) -> Path:
        return self._cwd

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    # =========================================================================
    # Updates
    # =========================================================================

    def update(self, **changes: Any) -> EditorPrefs:
        """Validate and apply changes to top-level fields, then persist them.

        Nested groups such as ``indentation`` accept partial dictionaries.

        Raises:
            ConfigurationError: If the result does not validate
        """
        migrated = migrate_prefs(dict(changes))
        self._prefs = dict_to_prefs(deep_merge(prefs_to_dict(self._prefs), migrated))
        self._modified_fields.update(migrated)
        self._save()
        return self._prefs

    def apply_overrides(self, overrides: dict) -> None:
        """Apply additional overrides on top of current preferences, without saving."""
        merged = deep_merge(prefs_to_dict(self._prefs), migrate_prefs(dict(overrides)))
        self._prefs = dict_to_prefs(merged)

    # =========================================================================
    # Raw access
    # =========================================================================

    def get_global_prefs(self) -> dict:
        """Get raw global preferences dict."""
        return self._global_prefs.copy()

    def get_project_prefs(self) -> dict:
        """Get raw project preferences dict."""
        return self._project_prefs.copy()

    # =========================================================================
    # Snippets and keybindings
    # =========================================================================

    def _config_files(self, file_name: str) -> tuple[Path, Path]:
        """Global then project location of a configuration file."""
        return self._config_dir / file_name, self._cwd / CONFIG_DIR_NAME / file_name

    def _read_object(self, path: Path, what: str, strict: bool) -> dict | None:
        """Read a JSON object from path, or None when it is missing or unreadable.

        Raises:
            ConfigurationError: In strict mode, if the file cannot be read
        """
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            if strict:
                raise ConfigurationError(f"Cannot read {what} from {path}: {e}") from e
            logger.warning(f"Could not load {what} from {path}: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Could not load {what} from {path}: not a JSON object")
            return None
        return data

    def load_snippets(self, strict: bool = False) -> SnippetTable:
        """Load snippets.json from the global then the project directory.

        Project entries override global ones per group and name.
        """
        table = SnippetTable(strict=strict)
        for path in self._config_files(SNIPPETS_FILE):
            data = self._read_object(path, "snippets", strict)
            if data is not None:
                table.load(data)
        return table

    def load_keybindings(self, strict: bool = False) -> KeybindingManager:
        """Load keybindings.json from the global then the project directory.

        Each file maps command names to key lists and is applied over the
        default keys, so the project file wins for the commands it lists.
        """
        config = get_default_keybindings()
        for path in self._config_files(KEYBINDINGS_FILE):
            data = self._read_object(path, "keybindings", strict)
            if data is not None:
                config = config.merged(data, strict=strict)
                logger.debug(f"Loaded {len(data)} keybindings from {path}")
        return KeybindingManager(config)
