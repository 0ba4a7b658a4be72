from __future__ import annotations

import pytest

from md_reformat import command as command_module
from md_reformat.buffer import StringBuffer, TextPosition
from md_reformat.command import find_construct, md_format, outline
from md_reformat.events import parse_markdown
from md_reformat.exceptions import ParserContractError
from md_reformat.models import Event, EventKind, Tag, TextOutcome


def test_outline_pairs_constructs_with_parents():
    events = parse_markdown("> a\n\n***\n").events

    nodes = outline(events)

    assert [(node.tag, node.kind, parent) for node, parent in nodes] == [
        (Tag.BLOCK_QUOTE, EventKind.START, None),
        (Tag.PARAGRAPH, EventKind.START, 0),
        (None, EventKind.RULE, None),
    ]


def test_find_construct_innermost_and_outermost():
    text = "- aaaa\n\n  bbbb\n"
    events = parse_markdown(text).events
    nodes = outline(events)
    offset = text.index("bbbb")

    innermost = find_construct(events, offset, len(text))
    outermost = find_construct(events, offset, len(text), outermost=True)

    assert nodes[innermost][0].tag is Tag.PARAGRAPH
    assert nodes[outermost][0].tag is Tag.LIST


def test_find_construct_filters_by_tag():
    text = "- aaaa\n\n  bbbb\n"
    events = parse_markdown(text).events

    index = find_construct(events, 3, len(text), Tag.ITEM)

    assert outline(events)[index][0].tag is Tag.ITEM
    assert find_construct(events, 3, len(text), Tag.TABLE) is None


def test_find_construct_at_end_of_text():
    events = parse_markdown("abc").events

    assert find_construct(events, 3, 3) == 0
    assert find_construct(events, 3, 4) is None


def test_md_format_reformats_paragraph_under_cursor():
    buffer = StringBuffer("# T\n\naaaa\nbbbb\n\nnext\n")
    buffer.set_cursor(TextPosition(1, 2))

    outcome = md_format(buffer)

    assert outcome is TextOutcome.CHANGED
    assert outcome.changed
    assert buffer.value == "# T\n\naaaa bbbb\n\nnext\n"
    assert buffer.cursor() == TextPosition(1, 2)


def test_md_format_uses_outermost_construct():
    buffer = StringBuffer("- aaaa\n  bbbb\n- cccc\n")
    buffer.set_cursor(TextPosition(2, 2))

    md_format(buffer)

    assert buffer.value == "- aaaa bbbb\n- cccc\n"
    assert buffer.cursor() == TextPosition(2, 1)


def test_md_format_with_selection_covers_touched_lines():
    buffer = StringBuffer("aaaa\nbbbb\n\ncccc\ndddd\n")
    buffer.set_selection(TextPosition(0, 0), TextPosition(4, 4))

    outcome = md_format(buffer)

    assert outcome is TextOutcome.CHANGED
    assert buffer.value == "aaaa bbbb\n\ncccc dddd\n"
    assert not buffer.has_selection()


def test_md_format_passes_width_options():
    buffer = StringBuffer("aaaa bbbb cccc\n")

    md_format(buffer, text_width=4)

    assert buffer.value == "aaaa\nbbbb\ncccc\n"


def test_md_format_keeps_buffer_newline():
    buffer = StringBuffer("aaaa\r\nbbbb\r\n")

    md_format(buffer)

    assert buffer.value == "aaaa bbbb\r\n"


def test_md_format_appends_missing_final_newline():
    buffer = StringBuffer("abc")
    buffer.set_cursor(TextPosition(3, 0))

    assert md_format(buffer) is TextOutcome.CHANGED
    assert buffer.value == "abc\n"


def test_md_format_on_blank_line_is_unchanged():
    buffer = StringBuffer("a\n\nb\n")
    buffer.set_cursor(TextPosition(0, 1))

    outcome = md_format(buffer)

    assert outcome is TextOutcome.UNCHANGED
    assert not outcome.changed
    assert buffer.value == "a\n\nb\n"


def test_md_format_is_a_single_undo_step():
    original = "aaaa\nbbbb\n"
    buffer = StringBuffer(original)

    md_format(buffer)

    assert buffer.value == "aaaa bbbb\n"
    assert buffer.undo()
    assert buffer.value == original
    assert not buffer.undo()


def test_md_format_leaves_buffer_untouched_on_contract_error(monkeypatch):
    def broken_reformat(*_args, **_kwargs):
        raise ParserContractError(Event(EventKind.TEXT, 0, 1), "block")

    monkeypatch.setattr(command_module, "reformat", broken_reformat)
    buffer = StringBuffer("aaaa\nbbbb\n")

    with pytest.raises(ParserContractError):
        md_format(buffer)

    assert buffer.value == "aaaa\nbbbb\n"
    assert not buffer.undo()
