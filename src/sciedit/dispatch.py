"""Route host notifications to the editing engines.

``dispatch`` is the single entry point the host calls for each buffer
notification. It runs the engines in a fixed order and returns what they
did, so hosts and tests can react without inspecting the buffer.
"""

import logging

from .braces import CLOSERS, MatchStatus
from .buffer import EolMode
from .editor import Editor
from .events import (
    AutocompleteShown,
    BlockClosed,
    BracesHighlighted,
    CalltipCancelled,
    CalltipShown,
    CharAdded,
    CharDeleted,
    CommandRun,
    CursorMoved,
    DwellStart,
    EditorEvent,
    FoldToggled,
    HoverWord,
    Indented,
    KeyPressed,
    LatexEnvironmentClosed,
    LineBroken,
    MarginClicked,
    MarkerToggled,
    Reaction,
    SavePointChanged,
    SavePointLeft,
    SavePointReached,
    SnippetExpanded,
    TabInserted,
    TabStopJumped,
    TagClosed,
)
from .keybindings import EditorCommand
from .snippets import SnippetSession
from .words import is_word_char, word_before

logger = logging.getLogger(__name__)

MARKER_MARGIN = 1
FOLD_MARGIN = 2

# Characters that can end a member access operator
_MEMBER_TRIGGERS = ".>:"


def dispatch(editor: Editor, event: EditorEvent) -> list[Reaction]:
    """Handle one notification for editor and return the resulting reactions."""
    match event:
        case CharAdded(pos=pos, char=char):
            return _on_char_added(editor, pos, char)
        case CharDeleted(pos=pos):
            return _on_cursor_moved(editor, pos)
        case CursorMoved(pos=pos):
            return _on_cursor_moved(editor, pos)
        case SavePointReached():
            editor.document.changed = False
            return [SavePointChanged(changed=False)]
        case SavePointLeft():
            editor.document.changed = True
            return [SavePointChanged(changed=True)]
        case MarginClicked(margin=margin, pos=pos):
            return _on_margin_clicked(editor, margin, pos)
        case DwellStart(pos=pos):
            return _on_dwell(editor, pos)
        case KeyPressed():
            return _on_key(editor, event)
    logger.debug(f"Ignoring event {event.type}")
    return []


def _is_newline(editor: Editor, char: str) -> bool:
    if editor.document.eol_mode == EolMode.CR:
        return char == "\r"
    return char == "\n"


def _on_char_added(editor: Editor, pos: int, char: str) -> list[Reaction]:
    reactions: list[Reaction] = []
    buffer = editor.buffer

    if _is_newline(editor, char):
        buffer.cancel_autocomplete()
        line = buffer.line_of(pos)
        indent = editor.on_new_line(line)
        if indent is not None:
            reactions.append(Indented(line=line, indent=indent))
        env = editor.auto_latex()
        if env is not None:
            reactions.append(LatexEnvironmentClosed(environment=env))
        return reactions

    if char in CLOSERS:
        line = buffer.line_of(pos - 1)
        indent = editor.close_block(pos - 1)
        if indent is not None:
            reactions.append(BlockClosed(line=line, indent=indent))
        if char == ")" and buffer.calltip_active():
            buffer.cancel_calltip()
            reactions.append(CalltipCancelled())
        reactions.append(_highlight(editor, buffer.cursor))

    elif char == "(" or char == ",":
        found = editor.calltip(pos)
        if found is not None:
            reactions.append(CalltipShown(pos=found[0], text=found[1]))

    if char == ">":
        name = editor.close_xml_tag(pos)
        if name is not None:
            reactions.append(TagClosed(name=name))
    elif char == "/":
        name = editor.complete_closing_tag(pos)
        if name is not None:
            reactions.append(TagClosed(name=name))

    word_chars = editor.prefs.word_chars
    if is_word_char(char, word_chars):
        session = _expand_whilst_editing(editor, pos)
        if session is not None:
            reactions.append(SnippetExpanded(name=session.name, cursor=buffer.cursor))
        else:
            result = editor.auto_complete()
            if result is not None:
                reactions.append(AutocompleteShown(prefix=result.prefix, items=result.items))
    elif char in _MEMBER_TRIGGERS and editor.ctx.lexers.is_c_like(editor.document.lexer_id):
        result = editor.auto_complete()
        if result is not None:
            reactions.append(AutocompleteShown(prefix=result.prefix, items=result.items))
    else:
        buffer.cancel_autocomplete()

    new_line = editor.break_line_if_needed(buffer.cursor)
    if new_line is not None:
        reactions.append(LineBroken(line=new_line))
        indent = editor.on_new_line(new_line)
        if indent is not None:
            reactions.append(Indented(line=new_line, indent=indent))

    return reactions


def _expand_whilst_editing(editor: Editor, pos: int) -> SnippetSession | None:
    """Expand a snippet as soon as its full name has been typed."""
    prefs = editor.prefs
    if not (prefs.complete_snippets and prefs.complete_snippets_whilst_editing):
        return None
    buffer = editor.buffer
    if is_word_char(buffer.char_at(pos), prefs.word_chars):
        return None

    word = word_before(buffer, pos, prefs.word_chars)
    names = editor.ctx.snippets.names(editor.document.lexer_id)
    if word not in names:
        return None
    # Wait while a longer snippet name could still be typed
    if any(name != word and name.startswith(word) for name in names):
        return None
    return editor.expand_snippet(whilst_editing=True)


def _highlight(editor: Editor, pos: int) -> BracesHighlighted:
    result = editor.highlight_braces(pos)
    return BracesHighlighted(status=result.status, origin=result.origin, match=result.match)


def _on_cursor_moved(editor: Editor, pos: int) -> list[Reaction]:
    session = editor.snippet_session
    if session is not None and not session.contains(pos):
        editor.end_snippet_session()

    result = _highlight(editor, pos)
    if result.status == MatchStatus.NOT_A_BRACE:
        return []
    return [result]


def _on_margin_clicked(editor: Editor, margin: int, pos: int) -> list[Reaction]:
    line = editor.buffer.line_of(pos)
    if margin == MARKER_MARGIN:
        return [MarkerToggled(line=line, marked=editor.toggle_marker(line))]
    if margin == FOLD_MARGIN:
        folded = editor.toggle_fold(line)
        if folded is not None:
            return [FoldToggled(line=line, folded=folded)]
    return []


def _on_dwell(editor: Editor, pos: int) -> list[Reaction]:
    word = editor.find_current_word(pos)
    editor.ctx.info.update(word, pos)
    if not word:
        return []

    reactions: list[Reaction] = [HoverWord(word=word, pos=pos)]
    text = editor.ctx.completion.calltip_for_word(editor.buffer, pos, editor.document.lexer_id)
    if text is not None:
        reactions.append(CalltipShown(pos=pos, text=text))
    return reactions


def _on_key(editor: Editor, event: KeyPressed) -> list[Reaction]:
    command = editor.ctx.keybindings.match_event(event)
    if command is None:
        return []

    if command == EditorCommand.COMPLETE_SNIPPET:
        pos = editor.jump_to_next_tab_stop()
        if pos is not None:
            return [TabStopJumped(pos=pos)]
        if editor.prefs.complete_snippets:
            session = editor.expand_snippet()
            if session is not None:
                return [SnippetExpanded(name=session.name, cursor=editor.buffer.cursor)]
        return [TabInserted(text=editor.insert_tab())]

    handled = editor.run_command(command)
    return [CommandRun(command=command.config_name, handled=handled)]
