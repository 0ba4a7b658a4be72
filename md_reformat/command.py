"""Editor command that reformats the construct under the cursor."""

from __future__ import annotations

from .buffer import TextBuffer, TextPosition, TextRange
from .constants import DEFAULT_TEXT_WIDTH
from .events import parse_markdown
from .format import reformat
from .log import get_logger
from .models import Event, EventKind, Tag, TextOutcome

logger = get_logger(__name__)


def outline(events: list[Event]) -> list[tuple[Event, int | None]]:
    """List every construct with the index of its parent construct.

    Args:
        events: Well-nested event stream.

    Returns:
        list[tuple[Event, int | None]]: `START` and `RULE` events in document
            order, each paired with the position of its parent in the
            returned list, or None at the top level.
    """
    nodes: list[tuple[Event, int | None]] = []
    stack: list[int] = []
    for event in events:
        if event.kind is EventKind.START:
            nodes.append((event, stack[-1] if stack else None))
            stack.append(len(nodes) - 1)
        elif event.kind is EventKind.END:
            stack.pop()
        elif event.kind is EventKind.RULE:
            nodes.append((event, stack[-1] if stack else None))
    return nodes


def _contains(event: Event, offset: int, text_length: int) -> bool:
    return event.start <= offset < event.end or offset == event.end == text_length


def find_construct(
    events: list[Event], offset: int, text_length: int, *tags: Tag, outermost: bool = False
) -> int | None:
    """Find the construct containing `offset`.

    Args:
        events: Well-nested event stream.
        offset: Offset to look up.
        text_length: Length of the parsed text; an offset at the very end
            belongs to a construct ending there.
        tags: Accepted construct kinds; any when empty. `RULE` leaves count
            as untagged constructs.
        outermost: Return the outermost match instead of the innermost.

    Returns:
        int | None: Position of the match in `outline(events)`, or None.
    """
    found = None
    for index, (event, _parent) in enumerate(outline(events)):
        if tags and event.tag not in tags:
            continue
        if _contains(event, offset, text_length):
            found = index
            if outermost:
                break
    return found


def md_format(
    buffer: TextBuffer,
    text_width: int = DEFAULT_TEXT_WIDTH,
    table_columns_equal_width: bool = False,
    wrap_algorithm: str = "optimal-fit",
) -> TextOutcome:
    """Reformat the selected lines or the top-level construct under the cursor.

    With a selection the scope is every line the selection touches. Without
    one it is the outermost construct containing the cursor, from the start
    of its first line to its end. The replacement is one undo step.

    Args:
        buffer: Buffer to edit.
        text_width: Target width of emitted lines.
        table_columns_equal_width: Give interior table columns one common width.
        wrap_algorithm: ``"optimal-fit"`` or ``"first-fit"``.

    Returns:
        TextOutcome: `CHANGED` after replacing the scope, `UNCHANGED` when no
            construct covers the cursor.

    Raises:
        ParserContractError: If the parser integration is broken; the buffer
            is left untouched.

    Examples:
        buffer = StringBuffer("Some long paragraph ...\\n")
        md_format(buffer, text_width=40).changed
    """
    cursor = buffer.cursor()
    cursor_offset = buffer.offset_at(cursor)
    text = buffer.value

    if buffer.has_selection():
        selection = buffer.selection()
        scope = TextRange(TextPosition(0, selection.start.y), TextPosition(0, selection.end.y + 1))
    else:
        events = parse_markdown(text).events
        nodes = outline(events)
        index = find_construct(events, cursor_offset, len(text), outermost=True)
        if index is None:
            logger.debug("No construct at offset %d", cursor_offset)
            return TextOutcome.UNCHANGED
        construct = nodes[index][0]
        scope = TextRange(
            TextPosition(0, buffer.position_at(construct.start).y),
            buffer.position_at(construct.end),
        )

    start, end = buffer.offset_range(scope)
    relative = cursor_offset - start if start <= cursor_offset <= end else None
    logger.debug("Reformatting scope %d..%d", start, end)

    formatted, new_cursor = reformat(
        text[start:end],
        relative,
        text_width=text_width,
        table_columns_equal_width=table_columns_equal_width,
        newline=buffer.newline,
        wrap_algorithm=wrap_algorithm,
    )

    buffer.begin_undo_seq()
    buffer.delete_range(scope)
    buffer.insert_str(formatted, scope.start)
    if relative is not None:
        buffer.set_cursor(buffer.position_at(start + new_cursor))
    else:
        buffer.set_cursor(cursor)
    buffer.end_undo_seq()
    return TextOutcome.CHANGED
