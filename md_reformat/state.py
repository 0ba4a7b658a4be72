"""Indentation frames, output buffer and cursor translation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .exceptions import FrameMismatchError
from .models import LinkReference, Word
from .wrap import display_width


class ReformatOutput:
    """Append-only output text with the translated cursor.

    Attributes:
        cursor: Cursor offset into the output text.
        cursor_placed: Whether any emitted span has claimed the cursor.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._length = 0
        self._blank_start: int | None = None
        self._blank_end: int | None = None
        self.cursor = 0
        self.cursor_placed = False

    def __len__(self) -> int:
        return self._length

    @property
    def text(self) -> str:
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    @property
    def trailing(self) -> bool:
        """Whether the output ends with a separating blank line."""
        return self._blank_end is not None and self._blank_end == self._length

    def push(self, text: str) -> None:
        if text:
            self._parts.append(text)
            self._length += len(text)

    def push_blank_line(self, text: str) -> None:
        self._blank_start = self._length
        self.push(text)
        self._blank_end = self._length

    def set_cursor(self, offset: int) -> None:
        self.cursor = offset
        self.cursor_placed = True

    def ends_with_blank_line(self, newline: str) -> bool:
        text = self.text
        if not text.endswith(newline):
            return False
        last_line = text[: -len(newline)].rsplit(newline, 1)[-1]
        return last_line.strip() == "" or len(text) == len(newline)

    def drop_trailing_blank_line(self, floor: int) -> bool:
        """Remove the separating blank line at the end, if it starts at or after `floor`."""
        if not self.trailing or self._blank_start is None or self._blank_start < floor:
            return False
        text = self.text[: self._blank_start]
        self._parts = [text]
        self._length = len(text)
        self.cursor = min(self.cursor, self._length)
        self._blank_start = self._blank_end = None
        return True


@dataclass
class CursorTranslator:
    """Locates the original cursor inside borrowed source spans.

    Attributes:
        cursor: Cursor offset into the source text, or None.
    """

    cursor: int | None

    def offset_in(
        self, start: int | None, end: int | None, length: int, inclusive: bool = False
    ) -> int | None:
        """Return the cursor offset relative to `start` when the span holds it.

        Args:
            start: Span start in the source, or None for synthesized text.
            end: Span end in the source.
            length: Length of the text written for the span; the result never
                exceeds it.
            inclusive: Whether a cursor sitting exactly at `end` counts.

        Returns:
            int | None: Offset into the written text, or None.
        """
        if self.cursor is None or start is None or end is None:
            return None
        if start <= self.cursor < end or (inclusive and self.cursor == end):
            return min(self.cursor - start, length)
        return None

    def place_word(self, word: Word, out: ReformatOutput) -> None:
        offset = self.offset_in(word.start, word.end, len(word.text))
        if offset is not None:
            out.set_cursor(len(out) + offset)

    def place_whitespace(self, word: Word, out: ReformatOutput, replaced: bool) -> None:
        offset = self.offset_in(
            word.whitespace_start, word.whitespace_end, len(word.whitespace), inclusive=True
        )
        if offset is not None:
            out.set_cursor(len(out) if replaced else len(out) + offset)


class ReformatState:
    """Indent stack and pending words for one reformat run.

    `first` holds the prefix fragments of the next line to be written when
    it differs from the continuation prefix; it drains on first use, after
    which lines fall back to `follow`.

    Attributes:
        text: Source text being reformatted.
        text_width: Target width of emitted lines.
        table_columns_equal_width: Whether interior table columns share one width.
        newline: Line terminator for emitted lines.
        wrap_algorithm: Name of the wrap algorithm.
        references: Link reference definitions dropped from gap text.
        translator: Cursor translator for the source cursor.
        first: Pending first-line prefix fragments.
        follow: Continuation prefix fragments.
        words: Words collected for the next wrap.
        skip_txt: Depth of link/image spans whose inner text is skipped.
    """

    def __init__(
        self,
        text: str,
        cursor: int | None = None,
        text_width: int = 65,
        table_columns_equal_width: bool = False,
        newline: str = "\n",
        wrap_algorithm: str = "optimal-fit",
        references: Sequence[LinkReference] = (),
    ) -> None:
        self.text = text
        self.text_width = text_width
        self.table_columns_equal_width = table_columns_equal_width
        self.newline = newline
        self.wrap_algorithm = wrap_algorithm
        self.references = list(references)
        self.translator = CursorTranslator(cursor)
        self.first: list[str] = []
        self.follow: list[str] = []
        self.words: list[Word] = []
        self.skip_txt = 0

    def enter_frame(self) -> list[str]:
        return list(self.follow)

    def leave_frame(self, snapshot: list[str]) -> None:
        if snapshot != self.follow or self.words:
            raise FrameMismatchError(snapshot, list(self.follow))

    def indent(self, first: str, follow: str) -> None:
        """Push a first-line fragment and a continuation fragment."""
        if not self.first:
            self.first = list(self.follow)
        self.first.append(first)
        self.follow.append(follow)

    def dedent(self) -> None:
        """Pop the latest fragments; a still pending first fragment is discarded."""
        self.follow.pop()
        if self.first:
            self.first.pop()

    def first_len(self) -> int:
        if self.first:
            return sum(display_width(fragment) for fragment in self.first)
        return self.follow_len()

    def follow_len(self) -> int:
        return sum(display_width(fragment) for fragment in self.follow)

    def first_out(self, out: ReformatOutput) -> None:
        if self.first:
            out.push("".join(self.first))
            self.first.clear()
        else:
            out.push("".join(self.follow))

    def empty_out(self, out: ReformatOutput) -> None:
        """Write a separating blank line carrying only the prefix glyphs."""
        if self.first:
            prefix = "".join(self.first)
            self.first.clear()
        else:
            prefix = "".join(self.follow)
        out.push_blank_line(prefix.rstrip() + self.newline)

    def blank_out(self, out: ReformatOutput) -> None:
        out.push("".join(self.follow).rstrip() + self.newline)

    def flush_first(self, out: ReformatOutput) -> None:
        """Write a pending first-line prefix on its own, for constructs without content."""
        if self.first:
            out.push("".join(self.first).rstrip() + self.newline)
            self.first.clear()

    def indent_prefix(self, last_end: int, pos: int, out: ReformatOutput) -> None:
        """Copy the gap before a top-level construct and push its line prefix as a frame.

        Args:
            last_end: End of the previous top-level construct.
            pos: Start of the construct.
            out: Output buffer.
        """
        line_start = self.text.rfind("\n", 0, pos) + 1
        if last_end < line_start:
            self.copy_gap(last_end, line_start, out)
        prefix = self.text[max(line_start, last_end) : pos]
        self.indent(prefix, prefix)

    def indent_code(self, fenced: bool) -> None:
        """Push the four-column indentation of an indented code block nested in a container."""
        blanks = "" if fenced else "    "
        self.indent(blanks, blanks)

    def copy_gap(self, start: int, end: int, out: ReformatOutput) -> None:
        """Copy source text verbatim, leaving out link reference definitions.

        One blank line following a removed definition is removed with it.
        """
        pos = start
        for reference in self.references:
            if reference.end <= start or reference.start >= end:
                continue
            self._copy_span(pos, max(reference.start, pos), out)
            if self.translator.offset_in(reference.start, reference.end, 0) is not None:
                out.set_cursor(len(out))
            pos = min(reference.end, end)
            next_line_end = self.text.find("\n", pos, end)
            if next_line_end != -1 and not self.text[pos:next_line_end].strip():
                pos = next_line_end + 1
        self._copy_span(pos, end, out)

    def _copy_span(self, start: int, end: int, out: ReformatOutput) -> None:
        if start >= end:
            return
        offset = self.translator.offset_in(start, end, end - start)
        if offset is not None:
            out.set_cursor(len(out) + offset)
        out.push(self.text[start:end])
