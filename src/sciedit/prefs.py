"""Editor preferences with Pydantic validation."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .buffer import LongLineMode

# Editing constants
WORDCHARS = "_abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
TOGGLE_MARK = "~ "
MAX_WORD_LENGTH = 192
MAX_AUTOCOMPLETE_WORDS = 30

# Default cap for brace and comment-closer scans, in characters
DEFAULT_SCAN_DISTANCE = 100_000


class IndentMode(str, Enum):
    """Auto-indentation algorithm used when a new line is opened."""

    NONE = "none"
    BASIC = "basic"  # Copy previous line's indent
    CURRENT_CHARS = "current_chars"  # Also indent after openers, continue markers
    MATCH_BRACES = "match_braces"  # Align to the enclosing brace

    @classmethod
    def from_legacy(cls, value: int) -> "IndentMode":
        """Map the numeric modes used by older config files (0-3)."""
        return [cls.NONE, cls.BASIC, cls.CURRENT_CHARS, cls.MATCH_BRACES][value]


class IndentPrefs(BaseModel):
    """Process-wide indentation defaults."""

    model_config = ConfigDict(validate_assignment=True)

    width: int = Field(default=4, ge=1, le=16)
    tab_width: int = Field(default=8, ge=1, le=16)
    custom_tab_width: bool = False  # Whether a tab differs in size from an indent
    use_tabs: bool = True
    use_tab_to_indent: bool = False
    mode: IndentMode = IndentMode.CURRENT_CHARS

    @property
    def effective_tab_width(self) -> int:
        return self.tab_width if self.custom_tab_width else self.width


class EditorPrefs(BaseModel):
    """Process-wide defaults read by every engine."""

    model_config = ConfigDict(validate_assignment=True)

    indentation: IndentPrefs = Field(default_factory=IndentPrefs)

    # Display
    show_white_space: bool = False
    show_indent_guide: bool = False
    show_line_endings: bool = False
    show_markers_margin: bool = True
    show_linenumber_margin: bool = True
    long_line_type: LongLineMode = LongLineMode.LINE
    long_line_column: int = Field(default=72, ge=1)
    long_line_color: str = "#C2EBC2"
    line_wrapping: bool = False
    use_indicators: bool = True
    folding: bool = True
    unfold_all_children: bool = False
    font: str = "Monospace 10"

    # Editing behaviour
    smart_home_key: bool = True
    newline_strip: bool = False
    auto_close_xml_tags: bool = True
    auto_continue_multiline: bool = True
    detect_tab_mode: bool = True
    line_break_column: int = Field(default=72, ge=1)
    word_chars: str = Field(default=WORDCHARS, min_length=1)

    # Completion
    auto_complete_symbols: bool = True
    complete_snippets: bool = True
    complete_snippets_whilst_editing: bool = False
    symbolcompletion_min_chars: int = Field(default=4, ge=1)
    symbolcompletion_max_height: int = Field(default=10, ge=1)

    # Brace matching
    brace_match_ltgt: bool = False  # '<' and '>' are ambiguous with operators
    brace_match_max_distance: int = Field(default=DEFAULT_SCAN_DISTANCE, ge=1)


DEFAULT_PREFS = EditorPrefs()
