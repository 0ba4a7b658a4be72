"""Scanners for the raw text of individual Markdown constructs.

The event stream tells where a construct is; these helpers read the
construct's own syntax (list markers, quote glyphs, table pipes, link
reference definitions) back out of the source text.
"""

from __future__ import annotations

from .constants import (
    BLOCK_QUOTE_PATTERN,
    HEADER_PATTERN,
    LINK_REFERENCE_PATTERN,
    LIST_ITEM_PATTERN,
)
from .models import (
    BlockQuoteMarker,
    HeaderMarker,
    LinkReference,
    ListItemMarker,
    TableCell,
    TableRow,
)


def is_escaped(text: str, pos: int) -> bool:
    """Determine whether a character is escaped by preceding backslashes.

    Counts consecutive backslashes immediately before `pos`; an odd count marks
    the character as escaped.

    Args:
        text: Text containing the character.
        pos: Zero-based index of the character to inspect.

    Returns:
        bool: True when the character is escaped, otherwise False.

    Examples:
        is_escaped("\\\\|", 2)  # False, two backslashes
        is_escaped("\\|", 1)  # True, one backslash
    """
    backslash_count = 0
    i = pos - 1
    while i >= 0 and text[i] == "\\":
        backslash_count += 1
        i -= 1
    return backslash_count % 2 == 1


def parse_md_item(text: str) -> ListItemMarker | None:
    """Parse the marker at the start of a list item.

    Args:
        text: Raw item text, optionally preceded by whitespace.

    Returns:
        ListItemMarker | None: The marker, or None when `text` does not start
            with a bullet or an ordinal.

    Examples:
        parse_md_item("- item")  # mark "-", text_prefix " "
        parse_md_item("12) item")  # mark "12", mark_suffix ")", mark_nr 12
    """
    match = LIST_ITEM_PATTERN.match(text)
    if match is None:
        return None

    if match.group("bullet") is not None:
        mark, mark_suffix, mark_nr = match.group("bullet"), "", None
    else:
        mark, mark_suffix = match.group("nr"), match.group("suffix")
        mark_nr = int(mark)

    return ListItemMarker(
        prefix=match.group("prefix"),
        mark=mark,
        mark_suffix=mark_suffix,
        mark_nr=mark_nr,
        text_prefix=match.group("text_prefix"),
        text_start=match.end(),
    )


def parse_md_block_quote(text: str) -> BlockQuoteMarker | None:
    match = BLOCK_QUOTE_PATTERN.match(text)
    if match is None:
        return None
    return BlockQuoteMarker(
        quote=match.group("quote"),
        text_prefix=match.group("text_prefix"),
        text_start=match.end(),
    )


def parse_md_header(text: str) -> HeaderMarker | None:
    """Parse an ATX header line.

    Args:
        text: One line of text.

    Returns:
        HeaderMarker | None: Level and text of the header, or None when the
            line is not an ATX header.

    Examples:
        parse_md_header("## Usage")  # level 2, text "Usage"
    """
    match = HEADER_PATTERN.match(text)
    if match is None:
        return None
    return HeaderMarker(
        level=len(match.group("tag")),
        text=text[match.end() :].rstrip("\r\n"),
        text_start=match.end(),
    )


def parse_md_row(text: str, cursor: int | None = None) -> TableRow:
    """Split a table row at its unescaped pipes.

    The first cell holds the text before the first pipe and the last cell the
    text after the last pipe, so ``"| a | b |"`` yields ``["", " a ", " b ", ""]``.
    A cursor on a pipe belongs to the cell that the pipe closes.

    Args:
        text: One row of a table, without line terminator.
        cursor: Optional cursor offset within `text`.

    Returns:
        TableRow: Cells with their offsets and the cursor's cell and offset.

    Examples:
        parse_md_row("| a | b |", cursor=2).cursor_cell  # 1
    """
    row = TableRow(cells=[])
    cell_start = 0
    for idx, char in enumerate(text):
        if idx == cursor:
            row.cursor_cell = len(row.cells)
            row.cursor_offset = idx - cell_start
        if char == "|" and not is_escaped(text, idx):
            row.cells.append(TableCell(text=text[cell_start:idx], start=cell_start, end=idx))
            cell_start = idx + 1

    row.cells.append(TableCell(text=text[cell_start:], start=cell_start, end=len(text)))
    if cursor is not None and cursor >= len(text):
        row.cursor_cell = len(row.cells) - 1
        row.cursor_offset = len(text) - cell_start
    return row


def parse_md_link_ref(text: str, pos: int = 0) -> LinkReference | None:
    """Parse a link reference definition starting at `pos`.

    Args:
        text: Source text.
        pos: Offset of the line where the definition may start.

    Returns:
        LinkReference | None: The definition with its source span, or None.

    Examples:
        parse_md_link_ref('[home]: https://example.com "Home"\\n')
    """
    match = LINK_REFERENCE_PATTERN.match(text, pos)
    if match is None or match.group("label").startswith("^"):
        return None
    if not match.group("label").strip():
        return None
    return LinkReference(
        label=match.group("label"),
        destination=match.group("destination"),
        title=match.group("title"),
        start=pos,
        end=match.end(),
    )


def find_code_span_end(text: str, start: int) -> int | None:
    """Return the offset just past the code span opening at `start`.

    Args:
        text: Text containing the code span.
        start: Offset of the opening backtick run.

    Returns:
        int | None: End offset, or None when the span is not closed.
    """
    opening = 0
    while start + opening < len(text) and text[start + opening] == "`":
        opening += 1

    i = start + opening
    while i < len(text):
        if text[i] != "`":
            i += 1
            continue
        run_start = i
        while i < len(text) and text[i] == "`":
            i += 1
        if i - run_start == opening:
            return i
    return None


def find_link_end(text: str, start: int) -> int | None:
    """Return the offset just past the link or image opening at `start`.

    Handles nested and escaped brackets, balanced parentheses, angle-bracket
    destinations, and full, collapsed, and shortcut reference links.

    Args:
        text: Text containing the link.
        start: Offset of ``[`` (or of ``!`` for images).

    Returns:
        int | None: End offset, or None when the brackets are unbalanced.

    Examples:
        find_link_end("see [a](b) now", 4)  # 10
        find_link_end("[a][ref]", 0)  # 8
    """
    i = start + 1 if text.startswith("![", start) else start
    if i >= len(text) or text[i] != "[":
        return None

    # Find the matching ']', skipping escapes and code spans
    j = i + 1
    bracket_depth = 1
    while j < len(text) and bracket_depth > 0:
        if text[j] == "\\" and j + 1 < len(text):
            j += 2
        elif text[j] == "`":
            code_end = find_code_span_end(text, j)
            j = code_end if code_end is not None else j + 1
        elif text[j] == "[":
            bracket_depth += 1
            j += 1
        elif text[j] == "]":
            bracket_depth -= 1
            j += 1
        else:
            j += 1

    if bracket_depth:
        return None

    if j < len(text) and text[j] == "(":
        return _find_destination_end(text, j)

    if j < len(text) and text[j] == "[":
        k = text.find("]", j + 1)
        return k + 1 if k != -1 else j

    return j


def _find_destination_end(text: str, open_paren: int) -> int | None:
    k = open_paren + 1
    paren_depth = 1
    quote: str | None = None
    while k < len(text):
        char = text[k]
        if char == "\\" and k + 1 < len(text):
            k += 2
            continue
        if quote is not None:
            if char == quote:
                quote = None
        elif char == "<" and paren_depth == 1 and text[open_paren + 1 : k].strip() == "":
            close = text.find(">", k + 1)
            if close == -1:
                return None
            k = close
        elif char in "\"'" and text[k - 1] in " \t\n":
            quote = char
        elif char == "(":
            paren_depth += 1
        elif char == ")":
            paren_depth -= 1
            if paren_depth == 0:
                return k + 1
        k += 1
    return None
