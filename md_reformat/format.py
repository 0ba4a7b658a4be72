"""Construct emitters and the top-level reformat driver."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator

from .constants import DEFAULT_TEXT_WIDTH
from .events import parse_markdown
from .exceptions import ParserContractError
from .inline import collect_inline, wrap_words
from .log import get_logger
from .models import Event, EventKind, NewLine, TableCell, TableRow, Tag
from .parser import parse_md_block_quote, parse_md_item, parse_md_row
from .state import ReformatOutput, ReformatState
from .wrap import display_width

logger = get_logger(__name__)

Events = Iterator[Event]


def reformat(
    text: str,
    cursor: int | None = None,
    text_width: int = DEFAULT_TEXT_WIDTH,
    table_columns_equal_width: bool = False,
    newline: str = "\n",
    wrap_algorithm: str = "optimal-fit",
) -> tuple[str, int]:
    """Re-emit Markdown wrapped to `text_width` and translate the cursor.

    Text between top-level constructs is copied verbatim, except for link
    reference definitions, which are moved to the end of the output.

    Args:
        text: Markdown source to reformat.
        cursor: Cursor offset into `text`, or None.
        text_width: Target width of emitted lines, prefixes included.
        table_columns_equal_width: Give interior table columns one common width.
        newline: Terminator of emitted lines.
        wrap_algorithm: ``"optimal-fit"`` or ``"first-fit"``.

    Returns:
        tuple[str, int]: Reformatted text and the cursor offset into it.

    Raises:
        ParserContractError: If the event stream is not well nested.
        FrameMismatchError: If an emitter leaves the indent stack unbalanced.

    Examples:
        reformat("- item one\\n- item two\\n")  # ("- item one\\n- item two\\n", 0)
        reformat("A long line of text.", cursor=2, text_width=10)
    """
    document = parse_markdown(text)
    state = ReformatState(
        text,
        cursor=cursor,
        text_width=text_width,
        table_columns_equal_width=table_columns_equal_width,
        newline=newline,
        wrap_algorithm=wrap_algorithm,
        references=document.references,
    )
    out = ReformatOutput()
    events = iter(document.events)

    last_end = 0
    for event in events:
        if event.kind is not EventKind.START and event.kind is not EventKind.RULE:
            raise ParserContractError(event, "document")

        line_start = max(text.rfind("\n", 0, event.start) + 1, last_end)
        state.indent_prefix(last_end, event.start, out)
        if event.kind is EventKind.RULE and len(out) and not out.ends_with_blank_line(newline):
            out.push_blank_line(newline)
        mark = len(out)

        _reformat_block(state, event, events, out)
        state.dedent()
        out.drop_trailing_blank_line(mark)

        if (
            not out.cursor_placed
            and cursor is not None
            and line_start <= cursor < event.end
        ):
            out.set_cursor(mark)
        last_end = max(event.end, last_end)

    state.copy_gap(last_end, len(text), out)
    if cursor is not None and cursor >= len(text):
        out.set_cursor(len(out))

    if document.references:
        if len(out) and not out.ends_with_blank_line(newline):
            out.push(newline)
        for reference in document.references:
            rendered = reference.render()
            offset = state.translator.offset_in(reference.start, reference.end, len(rendered))
            if offset is not None:
                out.set_cursor(len(out) + offset)
            out.push(rendered + newline)

    logger.debug("Reformatted %d characters into %d", len(text), len(out))
    return out.text, out.cursor


def _reformat_block(
    state: ReformatState, event: Event, events: Events, out: ReformatOutput
) -> None:
    if event.kind is EventKind.RULE:
        _reformat_rule(state, event, out)
        return
    emitter = _EMITTERS.get(event.tag) if event.kind is EventKind.START else None
    if emitter is None:
        raise ParserContractError(event, "block")
    emitter(state, event, events, out)


def _reformat_paragraph(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    frame = state.enter_frame()
    for event in events:
        if event.is_end(Tag.PARAGRAPH):
            break
        if not collect_inline(state, event, out):
            raise ParserContractError(event, "paragraph")
    wrap_words(state, NewLine.SOFT, out)
    state.leave_frame(frame)


def _reformat_heading(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    level = start.attrs.get("level", 1)
    state.indent("#" * level + " ", "")
    for event in events:
        if event.is_end(Tag.HEADING):
            break
        if not collect_inline(state, event, out):
            raise ParserContractError(event, "heading")
    if state.words:
        wrap_words(state, NewLine.SOFT, out)
    else:
        state.flush_first(out)
    state.dedent()


def _reformat_block_quote(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    """Emit a block quote, its optional admonition line and its children.

    Children are separated by a blank quote line unless the previous child
    already ended with one.
    """
    marker = parse_md_block_quote(state.text[start.start : start.end])
    glyph = marker.quote if marker is not None else ">"

    admonition = start.attrs.get("admonition")
    if admonition:
        state.first_out(out)
        out.push(f"{glyph} [!{admonition}]{state.newline}")

    state.indent(glyph, glyph)
    state.indent(" ", " ")
    empty = True
    for event in events:
        if event.is_end(Tag.BLOCK_QUOTE):
            break
        if event.kind is not EventKind.START and event.kind is not EventKind.RULE:
            raise ParserContractError(event, "block quote")
        if not empty and not out.trailing:
            state.empty_out(out)
        if event.is_start(Tag.CODE_BLOCK):
            state.indent_code(event.attrs.get("fenced", False))
            _reformat_code_block(state, event, events, out)
            state.dedent()
        else:
            _reformat_block(state, event, events, out)
        empty = False

    if empty and not admonition:
        state.flush_first(out)
    state.dedent()
    state.dedent()


def _literal_line(state: ReformatState, event: Event, out: ReformatOutput) -> None:
    value = event.value
    if not value and not state.first:
        state.blank_out(out)
        return
    state.first_out(out)
    offset = state.translator.offset_in(event.start, event.end, len(value), inclusive=True)
    if offset is not None:
        out.set_cursor(len(out) + offset)
    out.push(value + state.newline)


def _reformat_code_block(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    lines: list[Event] = []
    for event in events:
        if event.is_end(Tag.CODE_BLOCK):
            break
        if event.kind is not EventKind.TEXT:
            raise ParserContractError(event, "code block")
        lines.append(event)
    lines.sort(key=lambda line: line.start)

    fence = start.attrs.get("fence") if start.attrs.get("fenced") else None
    if fence:
        state.first_out(out)
        out.push(fence + start.attrs.get("info", "") + state.newline)
    for line in lines:
        _literal_line(state, line, out)
    if fence:
        state.first_out(out)
        out.push(fence + state.newline)
    elif not lines:
        state.flush_first(out)


def _reformat_html_block(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    for event in events:
        if event.is_end(Tag.HTML_BLOCK):
            break
        if event.kind is not EventKind.HTML:
            raise ParserContractError(event, "html block")
        _literal_line(state, event, out)
    state.flush_first(out)


def _reformat_rule(state: ReformatState, event: Event, out: ReformatOutput) -> None:
    value = event.value or state.text[event.start : event.end].strip()
    state.first_out(out)
    offset = state.translator.offset_in(event.start, event.end, len(value))
    if offset is not None:
        out.set_cursor(len(out) + offset)
    out.push(value + state.newline)


def _digits(number: int) -> int:
    return int(math.log10(number)) + 1 if number > 0 else 1


def _reformat_list(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    """Emit list items with renumbered ordinals.

    The marker of the first item decides the bullet or the ordinal suffix
    and the starting number for every item.
    """
    marker = parse_md_item(state.text[start.start : start.end])
    if marker is None:
        logger.debug("No list marker at offset %d, using '-'", start.start)
    mark = marker.mark if marker is not None else "-"
    number = marker.mark_nr if marker is not None else None

    for event in events:
        if event.is_end(Tag.LIST):
            break
        if not event.is_start(Tag.ITEM):
            raise ParserContractError(event, "list")
        if number is not None:
            state.indent(f"{number}{marker.mark_suffix} ", " " * (_digits(number) + 2))
            number += 1
        else:
            state.indent(f"{mark} ", "  ")
        _reformat_container(state, Tag.ITEM, events, out)
        state.dedent()


def _reformat_footnote(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    first = f"[^{start.attrs.get('label', '')}]: "
    state.indent(first, " " * display_width(first))
    _reformat_container(state, Tag.FOOTNOTE_DEFINITION, events, out)
    state.dedent()


def _reformat_definition_list(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    for event in events:
        if event.is_end(Tag.DEFINITION_LIST):
            break
        if event.is_start(Tag.DEFINITION_LIST_TITLE):
            frame = state.enter_frame()
            for inner in events:
                if inner.is_end(Tag.DEFINITION_LIST_TITLE):
                    break
                if not collect_inline(state, inner, out):
                    raise ParserContractError(inner, "definition title")
            wrap_words(state, NewLine.SOFT, out)
            state.leave_frame(frame)
        elif event.is_start(Tag.DEFINITION_LIST_DEFINITION):
            state.indent(": ", "  ")
            _reformat_container(state, Tag.DEFINITION_LIST_DEFINITION, events, out)
            state.dedent()
        else:
            raise ParserContractError(event, "definition list")


def _reformat_container(
    state: ReformatState, tag: Tag, events: Events, out: ReformatOutput
) -> None:
    """Emit the inline content and nested blocks of an item, footnote or definition."""
    frame = state.enter_frame()
    for event in events:
        if event.is_end(tag):
            break
        if collect_inline(state, event, out):
            continue
        if event.kind is EventKind.START or event.kind is EventKind.RULE:
            _recurse_container(state, event, events, out)
            continue
        raise ParserContractError(event, tag.name.lower())

    if state.words:
        wrap_words(state, NewLine.SOFT, out)
    else:
        state.flush_first(out)
    state.leave_frame(frame)


def _recurse_container(
    state: ReformatState, event: Event, events: Events, out: ReformatOutput
) -> None:
    if state.words:
        wrap_words(state, NewLine.SOFT, out)

    if event.is_start(Tag.CODE_BLOCK):
        state.indent_code(event.attrs.get("fenced", False))
        _reformat_code_block(state, event, events, out)
        state.dedent()
        state.empty_out(out)
    elif event.kind is EventKind.RULE or event.is_start(
        Tag.PARAGRAPH,
        Tag.HEADING,
        Tag.TABLE,
        Tag.HTML_BLOCK,
        Tag.FOOTNOTE_DEFINITION,
        Tag.BLOCK_QUOTE,
        Tag.DEFINITION_LIST,
    ):
        _reformat_block(state, event, events, out)
        # Nested containers already end with their own separator
        if not out.trailing:
            state.empty_out(out)
    elif event.is_start(Tag.LIST):
        _reformat_block(state, event, events, out)
    else:
        raise ParserContractError(event, "container")


def _table_rows(state: ReformatState, start: Event) -> list[TableRow]:
    text = state.text
    cursor = state.translator.cursor
    rows = []
    for row_start, row_end in start.attrs.get("rows", []):
        line_end = text.find("\n", row_end)
        line_end = len(text) if line_end == -1 else line_end
        row_cursor = None
        if cursor is not None and row_start <= cursor <= line_end:
            row_cursor = min(cursor, row_end) - row_start
        row = parse_md_row(text[row_start:row_end], row_cursor)

        # Rows without outer pipes get empty outer cells
        if len(row.cells) > 1:
            if row.cells[0].text.strip():
                row.cells.insert(0, _empty_cell(row.cells[0].start))
                if row.cursor_cell is not None:
                    row.cursor_cell += 1
            if row.cells[-1].text.strip():
                row.cells.append(_empty_cell(row.cells[-1].end))
        rows.append(row)
    return rows


def _empty_cell(offset: int) -> TableCell:
    return TableCell(text="", start=offset, end=offset)


def _column_widths(state: ReformatState, header: TableRow) -> list[int]:
    widths = [
        max(display_width(cell.text), display_width(cell.text.strip()) + 2)
        for cell in header.cells[1:-1]
    ]
    if state.table_columns_equal_width and widths:
        widths = [max(widths)] * len(widths)
    return widths


def _separator_cell(text: str, width: int) -> str:
    trimmed = text.strip()
    left = trimmed.startswith(":")
    right = trimmed.endswith(":") and len(trimmed) > 1
    dashes = ["-"] * width
    if left and width >= 2:
        dashes[0] = ":"
    if right and width >= (3 if left else 2):
        dashes[-1] = ":"
    return "".join(dashes)


def _cell_cursor(row: TableRow, index: int, row_start: int) -> int | None:
    if row.cursor_cell != index:
        return None
    cell = row.cells[index]
    trimmed = cell.text.strip()
    leading = len(cell.text) - len(cell.text.lstrip())
    return row_start + 2 + min(max(row.cursor_offset - leading, 0), len(trimmed))


def _reformat_table(
    state: ReformatState, start: Event, events: Events, out: ReformatOutput
) -> None:
    """Re-emit a table with aligned columns.

    Column widths come from the header row. Rows are re-read from the
    source because the row events carry no per-cell spans. Rows without a
    pipe are kept as literal lines.
    """
    for event in events:
        if event.is_end(Tag.TABLE):
            break
        if not event.is_start(Tag.TABLE_HEAD, Tag.TABLE_ROW) and not event.is_end(
            Tag.TABLE_HEAD, Tag.TABLE_ROW
        ):
            raise ParserContractError(event, "table")

    rows = _table_rows(state, start)
    if not rows:
        state.flush_first(out)
        return
    widths = _column_widths(state, rows[0])

    for number, row in enumerate(rows):
        state.first_out(out)
        line_start = len(out)
        cursor = None

        if len(row.cells) == 1:
            literal = row.cells[0].text.strip()
            logger.debug("Keeping table row without pipes as literal line: %r", literal)
            if row.cursor_cell is not None:
                cursor = line_start + min(row.cursor_offset, len(literal))
            out.push(literal + state.newline)
            if cursor is not None:
                out.set_cursor(cursor)
            continue

        parts: list[str] = []
        length = 0

        def add(part: str) -> None:
            nonlocal length
            parts.append(part)
            length += len(part)

        first_cell = row.cells[0].text.strip()
        if first_cell:
            found = _cell_cursor(row, 0, line_start)
            if found is not None:
                cursor = found
            add(f"| {first_cell} ")
        elif row.cursor_cell == 0:
            cursor = line_start

        interior = row.cells[1:-1]
        for column, width in enumerate(widths, start=1):
            cell = row.cells[column] if column < len(row.cells) - 1 else None
            if cell is None:
                add("|" + " " * width)
                continue
            if number == 1:
                if row.cursor_cell == column:
                    cursor = line_start + length + 1
                add("|" + _separator_cell(cell.text, width))
                continue
            trimmed = cell.text.strip()
            found = _cell_cursor(row, column, line_start + length)
            if found is not None:
                cursor = found
            padding = " " * max(width - 2 - display_width(trimmed), 0)
            add(f"| {trimmed}{padding} ")

        for column in range(len(widths) + 1, len(interior) + 1):
            trimmed = row.cells[column].text.strip()
            if not trimmed:
                continue
            found = _cell_cursor(row, column, line_start + length)
            if found is not None:
                cursor = found
            add(f"| {trimmed} ")

        add("|")
        if row.cursor_cell is not None and cursor is None:
            cursor = line_start + length
        out.push("".join(parts) + state.newline)
        if cursor is not None:
            out.set_cursor(cursor)


_EMITTERS: dict[Tag, Callable[[ReformatState, Event, Events, ReformatOutput], None]] = {
    Tag.PARAGRAPH: _reformat_paragraph,
    Tag.HEADING: _reformat_heading,
    Tag.BLOCK_QUOTE: _reformat_block_quote,
    Tag.CODE_BLOCK: _reformat_code_block,
    Tag.HTML_BLOCK: _reformat_html_block,
    Tag.LIST: _reformat_list,
    Tag.FOOTNOTE_DEFINITION: _reformat_footnote,
    Tag.DEFINITION_LIST: _reformat_definition_list,
    Tag.TABLE: _reformat_table,
}
