from __future__ import annotations

import textwrap

import pytest

from md_reformat.exceptions import ParserContractError
from md_reformat.format import _reformat_block, reformat
from md_reformat.models import Event, EventKind
from md_reformat.state import ReformatOutput, ReformatState


def _md(content: str) -> str:
    return textwrap.dedent(content).lstrip("\n")


def _formatted(text: str, **options) -> str:
    return reformat(text, **options)[0]


# Paragraphs


def test_long_sentence_wraps_within_width():
    text = (
        "This is a very long sentence that should wrap across more than one "
        "output line for sure."
    )

    formatted = _formatted(text, text_width=20)

    lines = formatted.rstrip("\n").split("\n")
    assert len(lines) > 1
    assert all(len(line) <= 20 for line in lines)
    assert " ".join(lines) == text
    assert formatted.endswith("\n")


def test_paragraph_lines_are_joined():
    assert _formatted("one\ntwo\nthree\n") == "one two three\n"


def test_paragraph_with_crlf_input():
    assert _formatted("aaaa\r\nbbbb\r\n", newline="\r\n") == "aaaa bbbb\r\n"


def test_configured_newline_is_used():
    assert _formatted("aaaa bbbb\n", text_width=4, newline="\r\n") == "aaaa\r\nbbbb\r\n"


def test_zero_width_puts_each_word_on_its_own_line():
    assert _formatted("a b c\n", text_width=0) == "a\nb\nc\n"


@pytest.mark.parametrize("algorithm", ["optimal-fit", "first-fit"])
def test_wrap_algorithm_is_selectable(algorithm: str):
    expected = {
        "optimal-fit": "aaa\nbb cc\nddddd\n",
        "first-fit": "aaa bb\ncc\nddddd\n",
    }

    formatted = _formatted("aaa bb cc ddddd\n", text_width=6, wrap_algorithm=algorithm)

    assert formatted == expected[algorithm]


def test_hard_breaks_are_kept():
    assert _formatted("line one  \nline two\n") == "line one  \nline two\n"


def test_backslash_hard_break_becomes_trailing_spaces():
    assert _formatted("a\\\nb\n") == "a  \nb\n"


def test_emphasis_and_punctuation_stay_together():
    assert _formatted("**bold**, text\n", text_width=5) == "**bold**,\ntext\n"


def test_link_is_never_split():
    formatted = _formatted("see [a link](http://x.y) ok\n", text_width=5)

    assert formatted == "see\n[a link](http://x.y)\nok\n"


def test_display_math_is_reproduced():
    assert _formatted("$$\nx\n$$\n") == "$$\nx\n$$\n"


@pytest.mark.parametrize(
    "text",
    [
        "`a` `b` end\n",
        "[a](b) [c](d)\n",
        "**strong** ~~del~~ end\n",
        "$x$ <br> end\n",
    ],
)
def test_space_between_inline_tokens_is_kept(text: str):
    assert _formatted(text) == text


def test_runs_of_spaces_become_one_space():
    formatted = _formatted("aaaa  bbbb\n", text_width=9)

    assert formatted == "aaaa bbbb\n"
    assert _formatted(formatted, text_width=9) == formatted
    assert _formatted("`a`  `b`\n") == "`a` `b`\n"


# Headings and rules


def test_heading_continuation_has_no_marker():
    formatted = _formatted("# Heading text here", text_width=10)

    first, *rest = formatted.rstrip("\n").split("\n")
    assert first.startswith("# ")
    assert rest
    assert not any(line.startswith("#") for line in rest)
    assert formatted == "# Heading\ntext here\n"


def test_setext_heading_becomes_atx():
    assert _formatted("Title\n=====\n") == "# Title\n"


def test_rule_gets_a_blank_line_before_it():
    assert _formatted("para\n***\n") == "para\n\n***\n"


def test_rule_after_blank_line_is_unchanged():
    assert _formatted("para\n\n---\n") == "para\n\n---\n"


def test_rule_between_paragraphs_is_stable():
    text = "a\n\n***\n\nb\n"

    assert _formatted(text) == text
    assert _formatted(_formatted(text)) == text


# Lists


def test_short_list_is_unchanged():
    assert reformat("- item one\n- item two\n") == ("- item one\n- item two\n", 0)


def test_list_item_continuation_aligns_with_text():
    assert _formatted("- aaaa bbbb cccc\n", text_width=10) == "- aaaa\n  bbbb\n  cccc\n"


def test_ordered_list_is_renumbered():
    assert _formatted("3. a\n7. b\n9. c\n") == "3. a\n4. b\n5. c\n"


def test_renumbering_widens_continuation_indent():
    text = "9. a\n9. bbbb cccc\n"

    assert _formatted(text, text_width=9) == "9. a\n10. bbbb\n    cccc\n"


def test_loose_list_keeps_blank_lines():
    assert _formatted("- a\n\n- b\n") == "- a\n\n- b\n"


def test_nested_list_indentation_is_normalized():
    assert _formatted("- a\n    - b\n") == "- a\n  - b\n"


def test_empty_item_keeps_its_marker():
    assert _formatted("-\n") == "-\n"


def test_task_list_marker_is_kept():
    assert _formatted("- [ ] aaaa bbbb\n", text_width=10) == "- [ ] aaaa\n  bbbb\n"


def test_code_block_inside_list_item():
    text = _md(
        """
        - item

          ```sh
          ls -la
          ```
        """
    )

    assert _formatted(text) == text


# Block quotes


def test_quote_lines_are_joined():
    assert _formatted("> aaaa\n> bbbb\n") == "> aaaa bbbb\n"


def test_lazy_quote_continuation_is_prefixed():
    assert _formatted("> aaaa\nbbbb\n") == "> aaaa bbbb\n"


def test_quote_paragraphs_are_separated_by_bare_glyph():
    assert _formatted(">a\n>\n>b\n") == "> a\n>\n> b\n"


def test_list_inside_quote():
    assert _formatted("> - aaaa bbbb\n", text_width=10) == "> - aaaa\n>   bbbb\n"


def test_admonition_line_is_normalized():
    assert _formatted("> [!note]\n> Be careful.\n") == "> [!NOTE]\n> Be careful.\n"


# Verbatim constructs


def test_fenced_code_is_verbatim():
    text = "```python\nprint(  1 )\n\nx=2\n```\n"

    assert _formatted(text, text_width=5) == text


def test_indented_code_is_verbatim():
    text = "    code   line\n"

    assert _formatted(text, text_width=5) == text


def test_html_block_is_verbatim():
    text = "<div>\n  some   text\n</div>\n"

    assert _formatted(text, text_width=5) == text


def test_front_matter_is_copied():
    text = "---\ntitle: x\n---\naaaa\nbbbb\n"

    assert _formatted(text) == "---\ntitle: x\n---\naaaa bbbb\n"


# Footnotes, definitions, references


def test_footnote_definition_is_rewrapped():
    text = "Text[^1].\n\n[^1]: The note\ncontinues here.\n"

    assert _formatted(text) == "Text[^1].\n\n[^1]: The note continues here.\n"


def test_footnote_continuation_is_indented():
    formatted = _formatted("[^n]: aaaa bbbb\n", text_width=10)

    assert formatted == "[^n]: aaaa\n      bbbb\n"


def test_footnote_closing_a_list_item_adds_no_blank_line():
    text = "- a\n\n  [^1]: note\n"

    assert _formatted(text) == text


def test_definition_list():
    assert _formatted("Term\n: Definition text\n") == "Term\n: Definition text\n"


def test_definition_continuation_is_indented():
    assert _formatted("Term\n: aaaa bbbb\n", text_width=6) == "Term\n: aaaa\n  bbbb\n"


def test_link_references_move_to_the_end():
    text = "See [home].\n\n[home]: https://example.com\n\nMore text.\n"

    expected = "See [home].\n\nMore text.\n\n[home]: https://example.com\n"
    assert _formatted(text) == expected


# Tables


def test_table_is_rendered_from_header_widths():
    text = "| a | b |\n| - | - |\n| 1 | 2 |\n"

    assert _formatted(text) == "| a | b |\n|---|---|\n| 1 | 2 |\n"


def test_table_data_wider_than_header_is_not_truncated():
    text = "| a | b |\n|---|---|\n| long | x |\n"

    assert _formatted(text) == "| a | b |\n|---|---|\n| long | x |\n"


def test_table_columns_equal_width():
    text = "| abc | d |\n|---|---|\n| 1 | 2 |\n"

    formatted = _formatted(text, table_columns_equal_width=True)

    assert formatted == "| abc | d   |\n|-----|-----|\n| 1   | 2   |\n"


def test_table_alignment_colons_are_kept():
    assert _formatted("| a | b |\n|:-|-:|\n") == "| a | b |\n|:--|--:|\n"


def test_table_without_outer_pipes():
    assert _formatted("a | b\n--|--\n1 | 2\n") == "| a | b |\n|---|---|\n| 1 | 2 |\n"


def test_table_rows_are_not_wrapped():
    text = "| header one | header two |\n|---|---|\n| x | y |\n"

    formatted = _formatted(text, text_width=10)

    assert formatted.split("\n")[0] == "| header one | header two |"


# Cursor


def test_cursor_stays_on_same_character_after_rewrap():
    text = "one two three\nfour five six\n"
    cursor = text.index("four") + 2

    formatted, new_cursor = reformat(text, cursor, text_width=10)

    assert formatted[new_cursor - 2 : new_cursor + 2] == "four"


def test_cursor_moves_with_added_prefix():
    text = "> aaaa\nbbbb\n"
    cursor = text.index("bbbb") + 1

    formatted, new_cursor = reformat(text, cursor)

    assert formatted == "> aaaa bbbb\n"
    assert new_cursor == formatted.index("bbbb") + 1


def test_cursor_on_replaced_whitespace_goes_to_line_end():
    assert reformat("aaaa bbbb\n", cursor=4, text_width=4) == ("aaaa\nbbbb\n", 4)


def test_cursor_at_end_of_text_goes_to_end_of_output():
    assert reformat("abc", cursor=3) == ("abc\n", 4)


def test_cursor_inside_code_block():
    text = "```\nabc\n```\n"

    assert reformat(text, cursor=5) == (text, 5)


def test_cursor_in_table_cell():
    text = "| a | b |\n| - | - |\n| 1 | 2 |\n"

    formatted, cursor = reformat(text, cursor=text.index("2"))

    assert formatted[cursor] == "2"


def test_cursor_in_padded_table_cell():
    text = "| abc | d |\n|---|---|\n| 1 | 2 |\n"

    formatted, cursor = reformat(text, cursor=text.index("d"), table_columns_equal_width=True)

    assert formatted[cursor] == "d"


def test_cursor_on_leading_pipe_stays_at_row_start():
    text = "| a | bb |\n|--|--|\n| 1 | 22 |\n"

    assert reformat(text, cursor=0) == ("| a | bb |\n|---|----|\n| 1 | 22 |\n", 0)

    formatted, cursor = reformat(text, cursor=text.index("| 1"))
    assert formatted[cursor:] == "| 1 | 22 |\n"


def test_cursor_on_quote_glyph_falls_back_to_block_start():
    formatted, cursor = reformat("para\n\n>  quoted\n", cursor=6)

    assert formatted == "para\n\n> quoted\n"
    assert cursor == 6


def test_cursor_inside_moved_link_reference():
    text = "[a]: /u\n\nText [a].\n"

    formatted, cursor = reformat(text, cursor=5)

    assert formatted == "Text [a].\n\n[a]: /u\n"
    assert formatted[cursor] == "/"


# Errors


def test_unexpected_event_is_a_contract_violation():
    state = ReformatState("x")
    event = Event(EventKind.TEXT, 0, 1)

    with pytest.raises(ParserContractError) as error:
        _reformat_block(state, event, iter([]), ReformatOutput())

    assert error.value.event is event
    assert error.value.context == "block"
