"""Notification events from the host widget and the reactions they produce."""

from pydantic import BaseModel

from .braces import MatchStatus

# === Events ===


class CharAdded(BaseModel):
    """A character was typed; pos is the cursor after it."""

    type: str = "char_added"
    pos: int
    char: str


class CharDeleted(BaseModel):
    """A character was deleted at pos."""

    type: str = "char_deleted"
    pos: int


class CursorMoved(BaseModel):
    """The cursor or selection changed."""

    type: str = "cursor_moved"
    pos: int


class SavePointReached(BaseModel):
    """The buffer matches the saved file again."""

    type: str = "save_point_reached"


class SavePointLeft(BaseModel):
    """The buffer was modified after a save."""

    type: str = "save_point_left"


class MarginClicked(BaseModel):
    """A margin was clicked. Margin 1 holds markers, margin 2 fold points."""

    type: str = "margin_clicked"
    margin: int
    pos: int


class DwellStart(BaseModel):
    """The pointer rested over pos."""

    type: str = "dwell_start"
    pos: int


class KeyPressed(BaseModel):
    """A key combination such as ``ctrl+space`` was pressed."""

    type: str = "key_pressed"
    key: str


# Union type for all events
EditorEvent = (
    CharAdded
    | CharDeleted
    | CursorMoved
    | SavePointReached
    | SavePointLeft
    | MarginClicked
    | DwellStart
    | KeyPressed
)


# === Reactions ===


class Indented(BaseModel):
    type: str = "indented"
    line: int
    indent: str


class BlockClosed(BaseModel):
    type: str = "block_closed"
    line: int
    indent: str


class BracesHighlighted(BaseModel):
    type: str = "braces_highlighted"
    status: MatchStatus
    origin: int
    match: int | None = None


class AutocompleteShown(BaseModel):
    type: str = "autocomplete_shown"
    prefix: str
    items: list[str]


class CalltipShown(BaseModel):
    type: str = "calltip_shown"
    pos: int
    text: str


class CalltipCancelled(BaseModel):
    type: str = "calltip_cancelled"


class SnippetExpanded(BaseModel):
    type: str = "snippet_expanded"
    name: str
    cursor: int


class TabStopJumped(BaseModel):
    type: str = "tab_stop_jumped"
    pos: int


class TabInserted(BaseModel):
    """No snippet applied; the trigger key inserted indentation instead."""

    type: str = "tab_inserted"
    text: str


class TagClosed(BaseModel):
    type: str = "tag_closed"
    name: str


class LatexEnvironmentClosed(BaseModel):
    type: str = "latex_environment_closed"
    environment: str


class LineBroken(BaseModel):
    type: str = "line_broken"
    line: int


class FoldToggled(BaseModel):
    type: str = "fold_toggled"
    line: int
    folded: bool


class MarkerToggled(BaseModel):
    type: str = "marker_toggled"
    line: int
    marked: bool


class SavePointChanged(BaseModel):
    type: str = "save_point_changed"
    changed: bool


class HoverWord(BaseModel):
    type: str = "hover_word"
    word: str
    pos: int


class CommandRun(BaseModel):
    """A keybinding ran an editor command."""

    type: str = "command_run"
    command: str
    handled: bool = True


# Union type for all reactions
Reaction = (
    Indented
    | BlockClosed
    | BracesHighlighted
    | AutocompleteShown
    | CalltipShown
    | CalltipCancelled
    | SnippetExpanded
    | TabStopJumped
    | TabInserted
    | TagClosed
    | LatexEnvironmentClosed
    | LineBroken
    | FoldToggled
    | MarkerToggled
    | SavePointChanged
    | HoverWord
    | CommandRun
)
