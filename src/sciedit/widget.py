"""SciEditView - Textual widget that hosts an Editor in the terminal."""

from typing import ClassVar

from rich.console import RenderableType
from rich.text import Text
from textual.binding import Binding
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget

from .buffer import CompletionPopup, EolMode, TextBuffer
from .dispatch import dispatch
from .editor import Document, Editor, EditorContext, editor_create, editor_init
from .events import CharAdded, CharDeleted, CursorMoved, KeyPressed, Reaction, SavePointLeft
from .folding import hidden_lines


class SciEditView(Widget, can_focus=True):
    """Code editor view driven by the editing engines.

    Keys bound to editor commands are routed through ``dispatch``; other
    printable keys are inserted and reported as typed characters, so
    auto-indentation, brace highlighting and completion run as you type.

    Example:
        manager = PrefsManager.create()
        ctx = editor_init(snippets=manager.load_snippets(), keybindings=manager.load_keybindings())
        view = SciEditView(ctx, Document(file_name="main.c", lexer_id="c"))

        @on(SciEditView.Changed)
        def on_change(self, event: SciEditView.Changed) -> None:
            print(event.text)
    """

    DEFAULT_CSS = """
    SciEditView {
        height: 1fr;
        padding: 0 1;
        border: solid $primary;
        background: $surface;
    }

    SciEditView:focus {
        border: solid $accent;
    }
    """

    BINDINGS: ClassVar[list[Binding]] = [
        Binding("escape", "dismiss_popups", "Dismiss", show=False),
    ]

    class Changed(Message):
        """Emitted when text changes."""

        def __init__(self, text: str) -> None:
            self.text = text
            super().__init__()

    class Reacted(Message):
        """Emitted with the reactions of each handled notification."""

        def __init__(self, reactions: list[Reaction]) -> None:
            self.reactions = reactions
            super().__init__()

    cursor: reactive[int] = reactive(0)

    def __init__(
        self,
        ctx: EditorContext | None = None,
        document: Document | None = None,
        *,
        text: str = "",
        name: str | None = None,
        id: str | None = None,
        classes: str | None = None,
    ) -> None:
        super().__init__(name=name, id=id, classes=classes)

        self.ctx = ctx or editor_init()
        self.document = document or Document()
        self.buffer = TextBuffer(text, eol_mode=self.document.eol_mode)
        self.editor: Editor = editor_create(self.ctx, self.document, self.buffer)
        self._completion_index = 0
        self._completion_popup: CompletionPopup | None = None

    @property
    def text(self) -> str:
        return self.buffer.text()

    @text.setter
    def text(self, value: str) -> None:
        self.buffer.set_text(value)
        self.editor.apply_prefs()
        self._sync_cursor()
        self._notify_change()

    # === Rendering ===

    def render(self) -> RenderableType:
        buffer = self.buffer
        hidden = hidden_lines(buffer)
        styles = self._position_styles()

        result = Text()
        first = True
        for line in range(buffer.line_count()):
            if line in hidden:
                continue
            if not first:
                result.append("\n")
            first = False

            marker = "●" if line in buffer.markers else ("▶" if line == buffer.arrow_marker else " ")
            fold = "+" if line in buffer.folded else " "
            result.append(f"{marker}{fold}", style="dim")

            start = buffer.line_start(line)
            for offset, ch in enumerate(buffer.line_text(line)):
                pos = start + offset
                if pos == buffer.cursor:
                    result.append("│", style="bold blink")
                result.append(ch, style=styles.get(pos, ""))
            if buffer.line_end(line) == buffer.cursor:
                result.append("│", style="bold blink")

        self._render_popups(result)
        return result

    def _position_styles(self) -> dict[int, str]:
        buffer = self.buffer
        styles: dict[int, str] = {}
        for start, end in buffer.indicators:
            for pos in range(start, end):
                styles[pos] = "underline red"
        if buffer.brace_highlight is not None:
            for pos in buffer.brace_highlight:
                styles[pos] = "bold reverse"
        if buffer.brace_badlight is not None:
            styles[buffer.brace_badlight] = "bold red"
        return styles

    def _render_popups(self, result: Text) -> None:
        buffer = self.buffer
        if buffer.calltip is not None:
            result.append("\n")
            result.append(buffer.calltip[1], style="italic")
        popup = buffer.autocomplete
        if popup is not None:
            selected = self._completion_selection()
            top = max(0, selected - popup.height + 1)
            for i, item in enumerate(popup.items[top : top + popup.height], start=top):
                result.append("\n")
                result.append(item, style="reverse" if i == selected else "")
        if buffer.user_list:
            result.append("\n")
            result.append("  ".join(buffer.user_list), style="dim")

    # === Input ===

    def on_key(self, event) -> None:
        """Handle keyboard input."""
        if self.buffer.autocomplete is not None and self._handle_completion_key(event.key):
            event.stop()
            return

        reactions = dispatch(self.editor, KeyPressed(key=event.key))
        if reactions:
            self._after_edit(reactions)
            event.stop()
            return

        match event.key:
            case "enter":
                self.type_text(self.editor.get_eol_char())
            case "backspace":
                self.delete_before()
            case "left":
                self.move_cursor(self.buffer.cursor - 1)
            case "right":
                self.move_cursor(self.buffer.cursor + 1)
            case _ if event.is_printable and event.character:
                self.type_text(event.character)
            case _:
                return
        event.stop()

    def type_text(self, text: str) -> list[Reaction]:
        """Insert text at the cursor as if typed, one character at a time."""
        reactions: list[Reaction] = []
        was_changed = self.document.changed
        for ch in text:
            start, end = self.buffer.selection()
            self.buffer.replace_range(start, end, ch)
            self.buffer.set_cursor(start + 1)
            # CRLF reports a single newline, on its LF
            if ch == "\r" and self.document.eol_mode == EolMode.CRLF:
                continue
            reactions.extend(dispatch(self.editor, CharAdded(pos=self.buffer.cursor, char=ch)))
        if not was_changed:
            reactions.extend(dispatch(self.editor, SavePointLeft()))
        self._after_edit(reactions)
        return reactions

    def delete_before(self) -> list[Reaction]:
        start, end = self.buffer.selection()
        if start == end:
            if start == 0:
                return []
            start -= 1
        self.buffer.delete(start, end)
        self.buffer.set_cursor(start)
        reactions = dispatch(self.editor, CharDeleted(pos=start))
        self._after_edit(reactions)
        return reactions

    def move_cursor(self, pos: int) -> list[Reaction]:
        self.buffer.set_cursor(pos)
        self.buffer.cancel_autocomplete()
        reactions = dispatch(self.editor, CursorMoved(pos=self.buffer.cursor))
        self._after_edit(reactions, changed=False)
        return reactions

    def _handle_completion_key(self, key: str) -> bool:
        popup = self.buffer.autocomplete
        if popup is None or not popup.items:
            return False
        index = self._completion_selection()
        match key:
            case "escape":
                self.buffer.cancel_autocomplete()
            case "down":
                self._completion_index = (index + 1) % len(popup.items)
            case "up":
                self._completion_index = (index - 1) % len(popup.items)
            case "enter":
                self.accept_completion()
            case _:
                return False
        self.refresh()
        return True

    def accept_completion(self) -> None:
        """Replace the word before the cursor with the selected item."""
        popup = self.buffer.autocomplete
        if popup is None or not popup.items:
            return
        item = popup.items[self._completion_selection()]
        pos = self.buffer.cursor
        prefix = self.buffer.text_range(pos - popup.word_length, pos)
        self.ctx.completion.apply_completion(self.buffer, pos, prefix, item)
        self._completion_index = 0
        self._after_edit([])

    def _completion_selection(self) -> int:
        """Selected completion index, back at the top whenever a new list is shown."""
        popup = self.buffer.autocomplete
        if popup is not self._completion_popup:
            self._completion_popup = popup
            self._completion_index = 0
        return self._completion_index

    # === Notifications ===

    def _sync_cursor(self) -> None:
        self.cursor = self.buffer.cursor

    def _after_edit(self, reactions: list[Reaction], changed: bool = True) -> None:
        self._sync_cursor()
        self.editor.consume_scroll_percent()
        if reactions:
            self.post_message(self.Reacted(reactions))
        if changed:
            self._notify_change()
        else:
            self.refresh()

    def _notify_change(self) -> None:
        self.refresh()
        self.post_message(self.Changed(self.text))

    # === Actions ===

    def action_dismiss_popups(self) -> None:
        self.buffer.cancel_autocomplete()
        self.buffer.cancel_calltip()
        self.buffer.user_list = None
        self._completion_index = 0
        self.refresh()
