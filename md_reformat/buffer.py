"""Text buffer used by the editor commands.

Positions are ``(x, y)`` pairs of column and line, both counted in code
points; offsets index the buffer's string directly.
"""

from __future__ import annotations

import bisect
from typing import NamedTuple, Protocol


class TextPosition(NamedTuple):
    """Column `x` on line `y`."""

    x: int
    y: int

    def key(self) -> tuple[int, int]:
        return (self.y, self.x)


class TextRange(NamedTuple):
    """Half-open range between two positions."""

    start: TextPosition
    end: TextPosition

    def is_empty(self) -> bool:
        return self.start.key() == self.end.key()

    def contains_pos(self, pos: TextPosition) -> bool:
        return self.start.key() <= pos.key() < self.end.key()


class TextBuffer(Protocol):
    """Operations the editor commands need from a text buffer."""

    newline: str

    @property
    def value(self) -> str: ...

    def cursor(self) -> TextPosition: ...

    def set_cursor(self, pos: TextPosition, extend_selection: bool = False) -> None: ...

    def selection(self) -> TextRange: ...

    def has_selection(self) -> bool: ...

    def offset_at(self, pos: TextPosition) -> int: ...

    def position_at(self, offset: int) -> TextPosition: ...

    def offset_range(self, text_range: TextRange) -> tuple[int, int]: ...

    def str_slice(self, text_range: TextRange) -> str: ...

    def line_at(self, y: int) -> str: ...

    def line_width(self, y: int) -> int: ...

    def delete_range(self, text_range: TextRange) -> None: ...

    def insert_str(self, text: str, pos: TextPosition | None = None) -> None: ...

    def begin_undo_seq(self) -> None: ...

    def end_undo_seq(self) -> None: ...


def detect_newline(text: str) -> str:
    """Return the line terminator used by `text`, ``"\\n"`` when it has none."""
    newline = text.find("\n")
    if newline > 0 and text[newline - 1] == "\r":
        return "\r\n"
    return "\n"


class StringBuffer:
    """In-memory `TextBuffer` with a cursor, a selection anchor and undo.

    Edits made between `begin_undo_seq` and `end_undo_seq` are undone
    together by a single `undo` call.

    Args:
        text: Initial content.
        newline: Line terminator for inserted lines; detected from `text`
            when omitted.

    Examples:
        buffer = StringBuffer("# Title\\n")
        buffer.set_cursor(TextPosition(2, 0))
    """

    def __init__(self, text: str = "", newline: str | None = None):
        self._text = text
        self.newline = newline or detect_newline(text)
        self._cursor = 0
        self._anchor = 0
        self._undo: list[tuple[str, int, int]] = []
        self._undo_depth = 0
        self._line_starts = self._compute_line_starts()

    @property
    def value(self) -> str:
        return self._text

    def _compute_line_starts(self) -> list[int]:
        starts = [0]
        pos = self._text.find("\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = self._text.find("\n", pos + 1)
        return starts

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    # Positions

    def line_width(self, y: int) -> int:
        return len(self.line_at(y))

    def line_at(self, y: int) -> str:
        """Return line `y` without its terminator; empty past the last line."""
        if y < 0 or y >= len(self._line_starts):
            return ""
        start = self._line_starts[y]
        end = self._line_starts[y + 1] - 1 if y + 1 < len(self._line_starts) else len(self._text)
        if end > start and self._text[end - 1] == "\r":
            end -= 1
        return self._text[start:end]

    def offset_at(self, pos: TextPosition) -> int:
        """Convert a position to an offset, clamping the column to the line width."""
        if pos.y >= len(self._line_starts):
            return len(self._text)
        y = max(pos.y, 0)
        return self._line_starts[y] + min(max(pos.x, 0), self.line_width(y))

    def position_at(self, offset: int) -> TextPosition:
        offset = min(max(offset, 0), len(self._text))
        y = bisect.bisect_right(self._line_starts, offset) - 1
        return TextPosition(offset - self._line_starts[y], y)

    def offset_range(self, text_range: TextRange) -> tuple[int, int]:
        return self.offset_at(text_range.start), self.offset_at(text_range.end)

    def str_slice(self, text_range: TextRange) -> str:
        start, end = self.offset_range(text_range)
        return self._text[start:end]

    # Cursor and selection

    def cursor(self) -> TextPosition:
        return self.position_at(self._cursor)

    def set_cursor(
        self, pos: TextPosition | tuple[int, int], extend_selection: bool = False
    ) -> None:
        self._cursor = self.offset_at(TextPosition(*pos))
        if not extend_selection:
            self._anchor = self._cursor

    def selection(self) -> TextRange:
        start, end = sorted((self._anchor, self._cursor))
        return TextRange(self.position_at(start), self.position_at(end))

    def has_selection(self) -> bool:
        return self._anchor != self._cursor

    def set_selection(self, anchor: TextPosition, cursor: TextPosition) -> None:
        self._anchor = self.offset_at(anchor)
        self._cursor = self.offset_at(cursor)

    # Editing

    def _record(self) -> None:
        if self._undo_depth == 0:
            self._undo.append((self._text, self._cursor, self._anchor))

    def _replace(self, start: int, end: int, text: str) -> None:
        self._text = self._text[:start] + text + self._text[end:]
        self._line_starts = self._compute_line_starts()

        def shift(offset: int) -> int:
            if offset >= end:
                return offset - (end - start) + len(text)
            if offset > start:
                return start
            return offset

        self._cursor = shift(self._cursor)
        self._anchor = shift(self._anchor)

    def delete_range(self, text_range: TextRange) -> None:
        start, end = self.offset_range(text_range)
        if start < end:
            self._record()
            self._replace(start, end, "")

    def insert_str(self, text: str, pos: TextPosition | None = None) -> None:
        """Insert `text` at `pos`, or at the cursor when `pos` is None."""
        offset = self._cursor if pos is None else self.offset_at(pos)
        if text:
            self._record()
            self._replace(offset, offset, text)

    def begin_undo_seq(self) -> None:
        self._record()
        self._undo_depth += 1

    def end_undo_seq(self) -> None:
        self._undo_depth = max(self._undo_depth - 1, 0)

    def undo(self) -> bool:
        """Revert the latest edit or edit sequence.

        Returns:
            bool: False when there was nothing to undo.
        """
        if not self._undo:
            return False
        self._text, self._cursor, self._anchor = self._undo.pop()
        self._line_starts = self._compute_line_starts()
        return True
