from __future__ import annotations

import pytest

from md_reformat.buffer import StringBuffer, TextPosition, TextRange, detect_newline


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("a\nb\n", "\n"),
        ("a\r\nb\r\n", "\r\n"),
        ("single line", "\n"),
        ("", "\n"),
    ],
)
def test_detect_newline(text: str, expected: str):
    assert detect_newline(text) == expected


def test_lines_and_positions():
    buffer = StringBuffer("ab\ncd")

    assert buffer.line_count == 2
    assert buffer.line_at(1) == "cd"
    assert buffer.line_at(5) == ""
    assert buffer.line_width(0) == 2
    assert buffer.position_at(4) == TextPosition(1, 1)
    assert buffer.offset_at(TextPosition(1, 1)) == 4


def test_offset_at_clamps_out_of_range_positions():
    buffer = StringBuffer("ab\ncd")

    assert buffer.offset_at(TextPosition(5, 0)) == 2
    assert buffer.offset_at(TextPosition(-1, 1)) == 3
    assert buffer.offset_at(TextPosition(0, 9)) == 5
    assert buffer.position_at(99) == TextPosition(2, 1)


def test_crlf_lines_exclude_carriage_return():
    buffer = StringBuffer("ab\r\ncd\r\n")

    assert buffer.newline == "\r\n"
    assert buffer.line_at(0) == "ab"
    assert buffer.line_width(0) == 2
    assert buffer.offset_at(TextPosition(0, 1)) == 4


def test_explicit_newline_wins_over_detection():
    assert StringBuffer("a\r\nb", newline="\n").newline == "\n"


def test_text_range_helpers():
    text_range = TextRange(TextPosition(2, 0), TextPosition(1, 1))

    assert not text_range.is_empty()
    assert text_range.contains_pos(TextPosition(5, 0))
    assert not text_range.contains_pos(TextPosition(1, 1))
    assert TextRange(TextPosition(1, 1), TextPosition(1, 1)).is_empty()


def test_selection_is_ordered():
    buffer = StringBuffer("hello\nworld\n")
    buffer.set_cursor(TextPosition(3, 1))
    buffer.set_cursor(TextPosition(1, 0), extend_selection=True)

    assert buffer.has_selection()
    assert buffer.selection() == TextRange(TextPosition(1, 0), TextPosition(3, 1))
    assert buffer.str_slice(buffer.selection()) == "ello\nwor"

    buffer.set_cursor(TextPosition(0, 0))
    assert not buffer.has_selection()


def test_set_selection():
    buffer = StringBuffer("hello")
    buffer.set_selection(TextPosition(1, 0), TextPosition(4, 0))

    assert buffer.cursor() == TextPosition(4, 0)
    assert buffer.str_slice(buffer.selection()) == "ell"


def test_insert_shifts_cursor_after_insertion_point():
    buffer = StringBuffer("abc")
    buffer.set_cursor(TextPosition(2, 0))

    buffer.insert_str("XY", TextPosition(1, 0))

    assert buffer.value == "aXYbc"
    assert buffer.cursor() == TextPosition(4, 0)


def test_insert_at_cursor_by_default():
    buffer = StringBuffer("ac")
    buffer.set_cursor(TextPosition(1, 0))

    buffer.insert_str("b")

    assert buffer.value == "abc"
    assert buffer.cursor() == TextPosition(2, 0)


def test_delete_moves_cursor_inside_range_to_its_start():
    buffer = StringBuffer("one\ntwo\n")
    buffer.set_cursor(TextPosition(1, 1))

    buffer.delete_range(TextRange(TextPosition(0, 1), TextPosition(0, 2)))

    assert buffer.value == "one\n"
    assert buffer.cursor() == TextPosition(0, 1)
    assert buffer.line_count == 2


def test_each_edit_is_undone_separately():
    buffer = StringBuffer("abc")
    buffer.insert_str("1", TextPosition(0, 0))
    buffer.insert_str("2", TextPosition(0, 0))

    assert buffer.undo()
    assert buffer.value == "1abc"
    assert buffer.undo()
    assert buffer.value == "abc"
    assert not buffer.undo()


def test_undo_sequence_is_one_step():
    buffer = StringBuffer("abc")
    buffer.set_cursor(TextPosition(1, 0))

    buffer.begin_undo_seq()
    buffer.delete_range(TextRange(TextPosition(0, 0), TextPosition(3, 0)))
    buffer.insert_str("xyz!", TextPosition(0, 0))
    buffer.set_cursor(TextPosition(4, 0))
    buffer.end_undo_seq()

    assert buffer.value == "xyz!"
    assert buffer.undo()
    assert buffer.value == "abc"
    assert buffer.cursor() == TextPosition(1, 0)
    assert not buffer.undo()


def test_empty_edits_are_not_recorded():
    buffer = StringBuffer("abc")
    buffer.insert_str("")
    buffer.delete_range(TextRange(TextPosition(1, 0), TextPosition(1, 0)))

    assert not buffer.undo()
