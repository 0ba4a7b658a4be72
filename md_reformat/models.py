"""Data models for md-reformat."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class EventKind(Enum):
    """Kinds of events in the flat Markdown event stream.

    Attributes:
        START: Opening of a construct; the event carries a `Tag`.
        END: Closing of a construct; the event carries the same `Tag`.
        TEXT: Plain text (or one literal line of a code block).
        CODE: Inline code span.
        INLINE_MATH: ``$...$`` span.
        DISPLAY_MATH: ``$$...$$`` span or block.
        HTML: One line of a raw HTML block.
        INLINE_HTML: Inline HTML tag.
        SOFT_BREAK: Line break inside a paragraph.
        HARD_BREAK: Backslash or double-space line break.
        FOOTNOTE_REFERENCE: ``[^label]`` reference.
        TASK_LIST_MARKER: ``[ ]`` or ``[x]`` at the start of a list item.
        RULE: Thematic break.
    """

    START = auto()
    END = auto()
    TEXT = auto()
    CODE = auto()
    INLINE_MATH = auto()
    DISPLAY_MATH = auto()
    HTML = auto()
    INLINE_HTML = auto()
    SOFT_BREAK = auto()
    HARD_BREAK = auto()
    FOOTNOTE_REFERENCE = auto()
    TASK_LIST_MARKER = auto()
    RULE = auto()


class Tag(Enum):
    """Construct kinds carried by `START` and `END` events."""

    PARAGRAPH = auto()
    HEADING = auto()
    BLOCK_QUOTE = auto()
    CODE_BLOCK = auto()
    HTML_BLOCK = auto()
    LIST = auto()
    ITEM = auto()
    FOOTNOTE_DEFINITION = auto()
    DEFINITION_LIST = auto()
    DEFINITION_LIST_TITLE = auto()
    DEFINITION_LIST_DEFINITION = auto()
    TABLE = auto()
    TABLE_HEAD = auto()
    TABLE_ROW = auto()
    EMPHASIS = auto()
    STRONG = auto()
    STRIKETHROUGH = auto()
    LINK = auto()
    IMAGE = auto()


class NewLine(Enum):
    """Line ending written after a wrapped block.

    Attributes:
        NONE: No terminator.
        SOFT: The configured newline.
        HARD: Two spaces followed by the configured newline.
    """

    NONE = auto()
    SOFT = auto()
    HARD = auto()


class TextOutcome(Enum):
    """Result of an editor command.

    Attributes:
        CONTINUE: The command did not apply; the editor should fall back.
        UNCHANGED: The command applied but nothing changed.
        CHANGED: The buffer or cursor was changed.
    """

    CONTINUE = auto()
    UNCHANGED = auto()
    CHANGED = auto()

    @property
    def changed(self) -> bool:
        return self is TextOutcome.CHANGED


@dataclass(frozen=True)
class Event:
    """One parser event with its source range.

    Attributes:
        kind: Event kind.
        start: Source offset where the construct begins.
        end: Source offset just past the construct.
        tag: Construct kind for `START`/`END` events.
        value: Literal text for leaf events (code lines, HTML lines,
            normalized inline spans).
        attrs: Construct attributes (heading level, fence, admonition,
            footnote label, table rows, ...).
    """

    kind: EventKind
    start: int
    end: int
    tag: Tag | None = None
    value: str = ""
    attrs: dict[str, Any] = field(default_factory=dict, compare=False)

    def is_start(self, *tags: Tag) -> bool:
        return self.kind is EventKind.START and (not tags or self.tag in tags)

    def is_end(self, *tags: Tag) -> bool:
        return self.kind is EventKind.END and (not tags or self.tag in tags)


@dataclass
class Word:
    """A wrappable token with its trailing whitespace and break penalty.

    A word is borrowed when `start`/`end` locate its text in the source;
    synthesized words leave them as None and never receive the cursor.

    Attributes:
        text: Visible text of the token.
        whitespace: Whitespace written after the token when no break follows.
        penalty: Text written after the token when a line break follows.
        start: Source offset of the token text, if borrowed.
        end: Source offset just past the token text, if borrowed.
        whitespace_start: Source offset of the whitespace, if borrowed.
        whitespace_end: Source offset just past the whitespace, if borrowed.
    """

    text: str
    whitespace: str = ""
    penalty: str = ""
    start: int | None = None
    end: int | None = None
    whitespace_start: int | None = None
    whitespace_end: int | None = None

    @classmethod
    def borrowed(cls, text: str, start: int, end: int) -> Word:
        return cls(text=text, start=start, end=end, whitespace_start=end, whitespace_end=end)

    @classmethod
    def synthesized(cls, text: str, whitespace: str = "") -> Word:
        return cls(text=text, whitespace=whitespace)


@dataclass(frozen=True)
class LinkReference:
    """A link reference definition found outside every block.

    Attributes:
        label: Label between the brackets, as written.
        destination: Link destination, as written.
        title: Title including its quotes, or None.
        start: Source offset of the definition.
        end: Source offset just past the definition line terminator.
    """

    label: str
    destination: str
    title: str | None
    start: int
    end: int

    def render(self) -> str:
        if self.title is None:
            return f"[{self.label}]: {self.destination}"
        return f"[{self.label}]: {self.destination} {self.title}"


@dataclass
class ParsedDocument:
    """Flat event stream and link references of one source text.

    Attributes:
        text: The parsed source.
        events: Well-nested event sequence.
        references: Link reference definitions in source order.
    """

    text: str
    events: list[Event]
    references: list[LinkReference]


@dataclass(frozen=True)
class ListItemMarker:
    """Marker of a list item, parsed from its raw text.

    Attributes:
        prefix: Whitespace before the marker.
        mark: Bullet character or the ordinal digits.
        mark_suffix: ``.`` or ``)`` for ordered items, empty for bullets.
        mark_nr: Ordinal value, or None for bullets.
        text_prefix: Whitespace between marker and item text.
        text_start: Offset of the item text within the parsed string.
    """

    prefix: str
    mark: str
    mark_suffix: str
    mark_nr: int | None
    text_prefix: str
    text_start: int

    @property
    def ordered(self) -> bool:
        return self.mark_nr is not None


@dataclass(frozen=True)
class BlockQuoteMarker:
    """Leading ``>`` of a quote line.

    Attributes:
        quote: The quote glyph.
        text_prefix: Whitespace between glyph and text.
        text_start: Offset of the text within the parsed string.
    """

    quote: str
    text_prefix: str
    text_start: int


@dataclass(frozen=True)
class HeaderMarker:
    """ATX header marker of one line.

    Attributes:
        level: Number of ``#`` characters.
        text: Header text after the marker.
        text_start: Offset of the header text within the parsed line.
    """

    level: int
    text: str
    text_start: int


@dataclass(frozen=True)
class TableCell:
    """One cell of a table row; `text` is untrimmed.

    Attributes:
        text: Raw cell text between the pipes.
        start: Offset of the cell text within the row.
        end: Offset just past the cell text within the row.
    """

    text: str
    start: int
    end: int


@dataclass
class TableRow:
    """Cells of one table row plus the cursor location inside it.

    The first cell holds the text before the first pipe and the last cell
    the text after the last pipe; both are usually empty.

    Attributes:
        cells: Cells in order.
        cursor_cell: Index of the cell containing the cursor, or None.
        cursor_offset: Cursor offset inside that cell's raw text.
    """

    cells: list[TableCell]
    cursor_cell: int | None = None
    cursor_offset: int = 0
