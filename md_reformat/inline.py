"""Collection of inline words and their wrapped emission."""

from __future__ import annotations

from .log import get_logger
from .models import Event, EventKind, NewLine, Tag, Word
from .state import ReformatOutput, ReformatState
from .wrap import split_words, wrap

logger = get_logger(__name__)

_DELIMITER_TAGS = (Tag.EMPHASIS, Tag.STRONG, Tag.STRIKETHROUGH)
_SPAN_TAGS = (Tag.LINK, Tag.IMAGE)
_ATOMIC_KINDS = (
    EventKind.CODE,
    EventKind.INLINE_MATH,
    EventKind.DISPLAY_MATH,
    EventKind.INLINE_HTML,
    EventKind.FOOTNOTE_REFERENCE,
)


def collect_inline(state: ReformatState, event: Event, out: ReformatOutput) -> bool:
    """Turn one inline event into words.

    Args:
        state: Reformat state receiving the words.
        event: Event to collect.
        out: Output buffer, written to when a hard break flushes the words.

    Returns:
        bool: True when the event was an inline event, otherwise False.
    """
    kind = event.kind

    if kind in (EventKind.START, EventKind.END) and event.tag in _DELIMITER_TAGS:
        if not state.skip_txt:
            text = state.text[event.start : event.end]
            state.words.append(Word.borrowed(text, event.start, event.end))
        return True

    if kind is EventKind.START and event.tag in _SPAN_TAGS:
        if not state.skip_txt:
            state.words.append(_atomic_word(state, event))
        state.skip_txt += 1
        return True

    if kind is EventKind.END and event.tag in _SPAN_TAGS:
        state.skip_txt -= 1
        return True

    if kind not in _ATOMIC_KINDS and kind not in (
        EventKind.TEXT,
        EventKind.TASK_LIST_MARKER,
        EventKind.SOFT_BREAK,
        EventKind.HARD_BREAK,
    ):
        return False

    if state.skip_txt:
        return True

    if kind is EventKind.TEXT:
        _collect_text(state, event)
    elif kind in _ATOMIC_KINDS:
        state.words.append(_atomic_word(state, event))
    elif kind is EventKind.TASK_LIST_MARKER:
        word = Word.borrowed(state.text[event.start : event.end], event.start, event.end)
        word.whitespace = " "
        state.words.append(word)
    elif kind is EventKind.SOFT_BREAK:
        if state.words:
            previous = state.words[-1]
            previous.whitespace = " "
            if previous.whitespace_start is not None:
                previous.whitespace_end = max(event.end, previous.whitespace_start)
    else:
        wrap_words(state, NewLine.HARD, out)
    return True


def _atomic_word(state: ReformatState, event: Event) -> Word:
    text = event.value or state.text[event.start : event.end]
    return Word.borrowed(text, event.start, event.end)


def _collect_text(state: ReformatState, event: Event) -> None:
    text = state.text[event.start : event.end]
    stripped = text.lstrip(" \t")
    leading = len(text) - len(stripped)
    if leading and state.words:
        # Whitespace after an atomic token or a delimiter run belongs to that token
        previous = state.words[-1]
        if not previous.whitespace:
            previous.whitespace = " "
            previous.whitespace_start = event.start
            previous.whitespace_end = event.start + leading
        elif previous.whitespace_end == event.start:
            previous.whitespace_end = event.start + leading
    state.words.extend(split_words(stripped, event.start + leading))


def wrap_words(state: ReformatState, newline: NewLine, out: ReformatOutput) -> None:
    """Wrap the collected words to the current width budgets and emit them.

    The first line is budgeted with the pending first-line prefix, the
    following lines with the continuation prefix. Budgets below zero
    saturate at zero.

    Args:
        state: Reformat state holding the words and indent stack.
        newline: Line ending of the last emitted line.
        out: Output buffer.
    """
    first_width = max(state.text_width - state.first_len(), 0)
    follow_width = max(state.text_width - state.follow_len(), 0)
    lines = wrap(state.words, [first_width, follow_width], state.wrap_algorithm)
    logger.debug(
        "Wrapped %d words into %d lines (widths %d/%d)",
        len(state.words),
        len(lines),
        first_width,
        follow_width,
    )
    append_wrapped(state, lines, newline, out)
    state.words.clear()


def append_wrapped(
    state: ReformatState, lines: list[list[Word]], newline: NewLine, out: ReformatOutput
) -> None:
    """Write wrapped lines with their prefixes, translating the cursor.

    Args:
        state: Reformat state with the indent stack and cursor translator.
        lines: Lines of words.
        newline: Line ending of the last line; inner lines always end with
            the configured newline.
        out: Output buffer.
    """
    translator = state.translator
    last = len(lines) - 1
    for n, line in enumerate(lines):
        state.first_out(out)
        for i, word in enumerate(line):
            translator.place_word(word, out)
            _write_word(state, word.text, out)
            if i < len(line) - 1:
                translator.place_whitespace(word, out, replaced=False)
                out.push(word.whitespace)
            else:
                translator.place_whitespace(word, out, replaced=True)
                out.push(word.penalty)

        if n < last:
            out.push(state.newline)
            continue
        if newline is NewLine.HARD:
            out.push("  ")
        if newline is not NewLine.NONE:
            out.push(state.newline)


def _write_word(state: ReformatState, text: str, out: ReformatOutput) -> None:
    if "\n" not in text:
        out.push(text)
        return
    prefix = "".join(state.follow)
    head, *rest = text.split("\n")
    out.push(head)
    for line in rest:
        out.push(state.newline + (prefix + line if line else prefix.rstrip()))
