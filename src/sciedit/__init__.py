"""
sciedit - Editing intelligence for code editors: indentation, brace matching,
comments, snippets, completion and calltips.

Example:
    from sciedit import Document, PrefsManager, dispatch, editor_create, editor_init
    from sciedit.events import CharAdded

    manager = PrefsManager.create()
    ctx = editor_init(manager.prefs, manager.load_snippets(), keybindings=manager.load_keybindings())
    editor = editor_create(ctx, Document(file_name="main.c", lexer_id="c"))

    editor.buffer.insert(0, "if (x) {\\n")
    editor.buffer.set_cursor(9)
    reactions = dispatch(editor, CharAdded(pos=9, char="\\n"))
"""

__version__ = "0.1.0"

# Buffer
from .buffer import Buffer, EolMode, LongLineMode, TextBuffer

# Lexers
from .lexers import CommentStyle, LexerInfo, LexerTable, TokenKind

# Preferences and configuration
from .prefs import EditorPrefs, IndentMode, IndentPrefs
from .config import PrefsManager
from .errors import ConfigurationError, SciEditError, SnippetError

# Engines
from .braces import BraceMatch, MatchStatus
from .comments import CommentAction
from .completion import (
    CombinedProvider,
    CompletionController,
    CompletionResult,
    StaticSymbolProvider,
    SymbolProvider,
)
from .indent import IndentStyle
from .snippets import SnippetSession, SnippetTable

# Editor
from .editor import (
    Document,
    Editor,
    EditorContext,
    EditorInfo,
    editor_create,
    editor_finalize,
    editor_init,
)
from .dispatch import dispatch

# Keybindings
from .keybindings import (
    EditorCommand,
    KeybindingConfig,
    KeybindingManager,
    get_default_keybindings,
    normalize_key,
)

# Terminal widget
from .widget import SciEditView

__all__ = [
    # Version
    "__version__",
    # Buffer
    "Buffer",
    "EolMode",
    "LongLineMode",
    "TextBuffer",
    # Lexers
    "CommentStyle",
    "LexerInfo",
    "LexerTable",
    "TokenKind",
    # Preferences
    "EditorPrefs",
    "IndentMode",
    "IndentPrefs",
    "PrefsManager",
    "ConfigurationError",
    "SciEditError",
    "SnippetError",
    # Engines
    "BraceMatch",
    "MatchStatus",
    "CommentAction",
    "CombinedProvider",
    "CompletionController",
    "CompletionResult",
    "StaticSymbolProvider",
    "SymbolProvider",
    "IndentStyle",
    "SnippetSession",
    "SnippetTable",
    # Editor
    "Document",
    "Editor",
    "EditorContext",
    "EditorInfo",
    "editor_create",
    "editor_finalize",
    "editor_init",
    "dispatch",
    # Keybindings
    "EditorCommand",
    "KeybindingConfig",
    "KeybindingManager",
    "get_default_keybindings",
    "normalize_key",
    # Widget
    "SciEditView",
]
