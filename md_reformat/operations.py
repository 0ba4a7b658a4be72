"""Editor commands for headers, table navigation and table rows."""

from __future__ import annotations

from .buffer import TextBuffer, TextPosition, TextRange
from .command import find_construct, outline
from .events import parse_markdown
from .log import get_logger
from .models import Event, Tag, TextOutcome
from .parser import parse_md_header, parse_md_item, parse_md_row

logger = get_logger(__name__)


def _construct_at(buffer: TextBuffer, *tags: Tag) -> tuple[list[Event], int | None]:
    events = parse_markdown(buffer.value).events
    offset = buffer.offset_at(buffer.cursor())
    return events, find_construct(events, offset, len(buffer.value), *tags)


def md_make_header(buffer: TextBuffer, level: int) -> TextOutcome:
    """Turn the paragraph line under the cursor into a header, or change a header.

    On a paragraph the marker is inserted before the text of the cursor
    line. On an ATX header the level is switched to `level`; a header that
    already has `level` loses its marker. The cursor stays on the same
    character.

    Args:
        buffer: Buffer to edit.
        level: Header level, 1 to 6.

    Returns:
        TextOutcome: `CHANGED`, or `UNCHANGED` when the cursor is on neither.

    Raises:
        ValueError: If `level` is not between 1 and 6.

    Examples:
        md_make_header(StringBuffer("Title\\n"), 2)  # "## Title\\n"
    """
    if not 1 <= level <= 6:
        raise ValueError(f"Header level must be between 1 and 6, got {level}")
    events, index = _construct_at(buffer, Tag.PARAGRAPH, Tag.HEADING)
    if index is None:
        return TextOutcome.UNCHANGED
    construct = outline(events)[index][0]
    cursor = buffer.cursor()
    marker = "#" * level + " "

    if construct.tag is Tag.PARAGRAPH:
        line = buffer.line_at(cursor.y)
        column = len(line) - len(line.lstrip(" \t"))
        if construct.start > buffer.offset_at(TextPosition(0, cursor.y)):
            column = max(column, buffer.position_at(construct.start).x)
        buffer.begin_undo_seq()
        buffer.insert_str(marker, TextPosition(column, cursor.y))
        new_x = cursor.x + len(marker) if cursor.x >= column else cursor.x
        buffer.set_cursor(TextPosition(new_x, cursor.y))
        buffer.end_undo_seq()
        return TextOutcome.CHANGED

    start = buffer.position_at(construct.start)
    line = buffer.line_at(start.y)
    header = parse_md_header(line[start.x :])
    if header is None:
        logger.debug("Header at line %d is not an ATX header", start.y)
        return TextOutcome.UNCHANGED

    text_column = start.x + header.text_start
    if header.level != level:
        replacement = marker + header.text
        shift = len(marker) - header.text_start
    else:
        replacement = header.text
        shift = -header.text_start
    if cursor.y == start.y and cursor.x >= text_column:
        new_cursor = TextPosition(cursor.x + shift, cursor.y)
    elif cursor.y == start.y:
        new_cursor = TextPosition(start.x, cursor.y)
    else:
        new_cursor = cursor

    header_range = TextRange(start, TextPosition(len(line), start.y))
    buffer.begin_undo_seq()
    buffer.delete_range(header_range)
    buffer.insert_str(replacement, start)
    buffer.set_cursor(new_cursor)
    buffer.end_undo_seq()
    return TextOutcome.CHANGED


def next_tab_md_row(text: str, pos: int) -> int:
    """Return the column where the cell after the one at `pos` starts."""
    row = parse_md_row(text, pos)
    if row.cursor_cell is not None and row.cursor_cell + 1 < len(row.cells):
        return row.cells[row.cursor_cell + 1].start
    return pos


def prev_tab_md_row(text: str, pos: int) -> int:
    """Return the column where the cell before the one at `pos` starts."""
    row = parse_md_row(text, pos)
    if row.cursor_cell:
        return row.cells[row.cursor_cell - 1].start
    return pos


def _item_text_column(buffer: TextBuffer, item: Event) -> int:
    start = buffer.position_at(item.start)
    marker = parse_md_item(buffer.line_at(start.y)[start.x :])
    if marker is None:
        return start.x
    return start.x + marker.text_start


def md_tab(buffer: TextBuffer) -> TextOutcome:
    """Jump to the next table cell, or indent up to the list item text.

    Inside a list item with the cursor left of the item's text column,
    spaces are inserted up to that column. On the first line of an item the
    previous item's text column is used.

    Args:
        buffer: Buffer to edit.

    Returns:
        TextOutcome: `CHANGED` when the cursor moved or spaces were inserted,
            otherwise `CONTINUE`.
    """
    events, table = _construct_at(buffer, Tag.TABLE)
    cursor = buffer.cursor()
    if table is not None:
        x = next_tab_md_row(buffer.line_at(cursor.y), cursor.x)
        buffer.set_cursor(TextPosition(x, cursor.y))
        return TextOutcome.CHANGED

    item_index = find_construct(events, buffer.offset_at(cursor), len(buffer.value), Tag.ITEM)
    if item_index is None or buffer.has_selection():
        return TextOutcome.CONTINUE

    nodes = outline(events)
    item, parent = nodes[item_index]
    if buffer.position_at(item.start).y < cursor.y:
        indent_x = _item_text_column(buffer, item)
    else:
        siblings = [
            node
            for node, node_parent in nodes[:item_index]
            if node_parent == parent and node.tag is Tag.ITEM
        ]
        indent_x = _item_text_column(buffer, siblings[-1]) if siblings else 0

    if cursor.x < indent_x:
        buffer.insert_str(" " * (indent_x - cursor.x), cursor)
        return TextOutcome.CHANGED
    return TextOutcome.CONTINUE


def md_backtab(buffer: TextBuffer) -> TextOutcome:
    """Jump to the previous table cell."""
    _events, table = _construct_at(buffer, Tag.TABLE)
    if table is None:
        return TextOutcome.CONTINUE
    cursor = buffer.cursor()
    x = prev_tab_md_row(buffer.line_at(cursor.y), cursor.x)
    buffer.set_cursor(TextPosition(x, cursor.y))
    return TextOutcome.CHANGED


def empty_md_row(text: str, newline: str) -> tuple[int, str]:
    """Build an empty row with the cell widths of `text`.

    Args:
        text: Existing table row.
        newline: Line terminator placed before the new row.

    Returns:
        tuple[int, str]: Cursor column in the new row and the text to insert
            after `text`.

    Examples:
        empty_md_row("| a | b |", "\\n")  # (2, "\\n|   |   |")
    """
    row = parse_md_row(text)
    prefix = row.cells[0].text
    parts = [newline, prefix, "|"]
    for cell in row.cells[1:-1]:
        parts.append(" " * len(cell.text))
        parts.append("|")

    x = len(prefix) + 1
    if len(row.cells) > 1 and row.cells[1].text:
        x += 1
    return x, "".join(parts)


def split_md_row(text: str, cursor: int, newline: str) -> tuple[int, str]:
    """Split a table row at `cursor` into two rows.

    Cells left of the cursor stay in the first row, cells right of it move
    to the second; the cell under the cursor is divided between both.

    Args:
        text: Table row.
        cursor: Column of the split.
        newline: Line terminator.

    Returns:
        tuple[int, str]: Cursor column in the second row and both rows, each
            followed by `newline`.

    Examples:
        split_md_row("| ab | c |", 3, "\\n")  # (2, "| a  |   |\\n| b  | c |\\n")
    """
    row = parse_md_row(text)
    prefix = row.cells[0].text
    first = [prefix, "|"]
    second = [prefix, "|"]
    x = 0
    for cell in row.cells[1:-1]:
        if cell.start <= cursor < cell.end:
            x = cell.start + 1
            if cursor > cell.start:
                second.append(" ")
            split = cursor - cell.start
            first.append(cell.text[:split])
            second.append(cell.text[split:])
            # Pad both halves to the cell width, one blank already added
            for pos in range(cell.start, cell.end):
                if pos < cursor:
                    if pos != cell.start or cursor == cell.start:
                        second.append(" ")
                else:
                    first.append(" ")
        elif cell.start < cursor:
            first.append(cell.text)
            second.append(" " * len(cell.text))
        else:
            first.append(" " * len(cell.text))
            second.append(cell.text)
        first.append("|")
        second.append("|")
    return x, "".join(first) + newline + "".join(second) + newline


def create_md_title(text: str, newline: str) -> tuple[int, str]:
    """Build a separator row of dashes for the header row `text`.

    Returns:
        tuple[int, str]: Cursor column at the end of the separator and the
            text to insert after `text`.

    Examples:
        create_md_title("| a | b |", "\\n")  # (9, "\\n|---|---|")
    """
    row = parse_md_row(text)
    parts = [row.cells[0].text, "|"]
    for cell in row.cells[1:-1]:
        parts.append("-" * len(cell.text))
        parts.append("|")
    title = "".join(parts)
    return len(title), newline + title


def _maybe_table(line: str) -> tuple[bool, bool]:
    if not line.startswith("|"):
        return False, False
    return True, line[1:2] == "-"


def md_line_break(buffer: TextBuffer) -> TextOutcome:
    """Insert a line break with table awareness.

    Inside a table, at the end of a row an empty row with the same cell
    widths is added; elsewhere in the row it is split at the cursor. At the
    end of a line that starts with ``|`` but is not a table yet, a separator
    row is added below a header candidate, or an empty row below a line
    that already looks like a separator.

    Args:
        buffer: Buffer to edit.

    Returns:
        TextOutcome: `CHANGED`, or `CONTINUE` for a plain line break.
    """
    _events, table = _construct_at(buffer, Tag.TABLE)
    cursor = buffer.cursor()
    line = buffer.line_at(cursor.y)
    at_end = cursor.x == buffer.line_width(cursor.y)

    if table is not None:
        if at_end:
            x, row = empty_md_row(line, buffer.newline)
            buffer.insert_str(row, cursor)
            buffer.set_cursor(TextPosition(x, cursor.y + 1))
            return TextOutcome.CHANGED
        x, rows = split_md_row(line, cursor.x, buffer.newline)
        buffer.begin_undo_seq()
        buffer.delete_range(TextRange(TextPosition(0, cursor.y), TextPosition(0, cursor.y + 1)))
        buffer.insert_str(rows, TextPosition(0, cursor.y))
        buffer.set_cursor(TextPosition(x, cursor.y + 1))
        buffer.end_undo_seq()
        return TextOutcome.CHANGED

    if not at_end:
        return TextOutcome.CONTINUE
    maybe_table, maybe_separator = _maybe_table(line)
    if maybe_separator:
        x, row = empty_md_row(line, buffer.newline)
    elif maybe_table:
        x, row = create_md_title(line, buffer.newline)
    else:
        return TextOutcome.CONTINUE
    buffer.insert_str(row, cursor)
    buffer.set_cursor(TextPosition(x, cursor.y + 1))
    return TextOutcome.CHANGED
