"""Word splitting, display width and line breaking."""

from __future__ import annotations

import unicodedata
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .constants import (
    HYPHEN_PENALTY,
    NLINE_PENALTY,
    OVERFLOW_PENALTY,
    SHORT_LAST_LINE_FRACTION,
    SHORT_LAST_LINE_PENALTY,
    WORD_PATTERN,
)
from .models import Word


def display_width(text: str) -> int:
    """Return the number of terminal columns `text` occupies.

    Wide and fullwidth East Asian characters count two columns, combining
    marks and format characters count zero.

    Args:
        text: Text to measure; multi-line text measures its widest line.

    Returns:
        int: Display width in columns.

    Examples:
        display_width("abc")  # 3
        display_width("日本")  # 4
    """
    if "\n" in text:
        return max(display_width(line) for line in text.split("\n"))

    width = 0
    for char in text:
        if unicodedata.combining(char) or unicodedata.category(char) in ("Mn", "Me", "Cf"):
            continue
        if unicodedata.east_asian_width(char) in ("W", "F"):
            width += 2
        else:
            width += 1
    return width


def split_words(text: str, offset: int = 0) -> Iterator[Word]:
    """Split plain text into words with their trailing whitespace.

    Only spaces and tabs separate words, so non-breaking spaces stay inside
    a word. A run of separators becomes a single space; the word keeps the
    source range of the whole run. Leading whitespace of `text` is not part
    of any word.

    Args:
        text: Single-line plain text.
        offset: Source offset of `text`, used to make the words borrowed.

    Yields:
        Word: Borrowed words in order.

    Examples:
        [w.text for w in split_words("a  b")]  # ["a", "b"]
    """
    for match in WORD_PATTERN.finditer(text):
        yield Word(
            text=match.group(1),
            whitespace=" " if match.group(2) else "",
            start=offset + match.start(1),
            end=offset + match.end(1),
            whitespace_start=offset + match.start(2),
            whitespace_end=offset + match.end(2),
        )


@dataclass(frozen=True)
class Penalties:
    """Costs used by the optimal-fit algorithm.

    Attributes:
        nline_penalty: Cost of every line.
        overflow_penalty: Cost per column a line overflows its width.
        short_last_line_fraction: Last lines shorter than width divided by
            this fraction are penalized.
        short_last_line_penalty: Cost of such a short last line.
        hyphen_penalty: Cost of breaking after a word with a penalty string.
    """

    nline_penalty: int = NLINE_PENALTY
    overflow_penalty: int = OVERFLOW_PENALTY
    short_last_line_fraction: int = SHORT_LAST_LINE_FRACTION
    short_last_line_penalty: int = SHORT_LAST_LINE_PENALTY
    hyphen_penalty: int = HYPHEN_PENALTY


@dataclass
class _Unit:
    words: list[Word]
    width: int
    whitespace_width: int
    penalty_width: int


def _glue(words: Sequence[Word]) -> list[_Unit]:
    # A word without trailing whitespace sticks to the next one.
    units: list[_Unit] = []
    pending: list[Word] = []
    pending_width = 0
    for word in words:
        pending.append(word)
        pending_width += display_width(word.text)
        if word.whitespace:
            units.append(
                _Unit(
                    pending,
                    pending_width,
                    display_width(word.whitespace),
                    display_width(word.penalty),
                )
            )
            pending, pending_width = [], 0
    if pending:
        units.append(_Unit(pending, pending_width, 0, display_width(pending[-1].penalty)))
    return units


def _line_target(line_widths: Sequence[int], first_unit: int) -> int:
    if first_unit == 0 or len(line_widths) == 1:
        return max(line_widths[0], 0)
    return max(line_widths[1], 0)


def wrap_optimal_fit(
    words: Sequence[Word], line_widths: Sequence[int], penalties: Penalties | None = None
) -> list[list[Word]]:
    """Break words into lines minimizing the total raggedness cost.

    The first line uses ``line_widths[0]``, every following line
    ``line_widths[1]``. A line only overflows its width when it holds a
    single unbreakable unit.

    Args:
        words: Words in order.
        line_widths: First-line and continuation widths; negative values act as 0.
        penalties: Cost model; defaults to `Penalties()`.

    Returns:
        list[list[Word]]: Lines of words; empty when `words` is empty.

    Examples:
        wrap_optimal_fit(list(split_words("aaa bb cc")), [6, 6])
    """
    penalties = penalties or Penalties()
    units = _glue(words)
    count = len(units)
    if count == 0:
        return []

    minima = [0] + [float("inf")] * count
    breaks = [0] * (count + 1)

    for j in range(1, count + 1):
        line_width = units[j - 1].width + units[j - 1].penalty_width
        for i in range(j - 1, -1, -1):
            if i < j - 1:
                line_width += units[i].width + units[i].whitespace_width
            target = _line_target(line_widths, i)
            if line_width > target and i < j - 1:
                if i > 0 and line_width <= _line_target(line_widths, 0):
                    continue
                break

            cost = minima[i] + penalties.nline_penalty
            if line_width > target:
                cost += (line_width - target) * penalties.overflow_penalty
            elif j < count:
                gap = target - line_width
                cost += gap * gap
            elif i + 1 == j and line_width < target / penalties.short_last_line_fraction:
                cost += penalties.short_last_line_penalty
            if units[j - 1].penalty_width > 0 and j < count:
                cost += penalties.hyphen_penalty

            if cost < minima[j]:
                minima[j] = cost
                breaks[j] = i

    spans: list[tuple[int, int]] = []
    j = count
    while j > 0:
        i = breaks[j]
        spans.append((i, j))
        j = i
    spans.reverse()
    return [[word for unit in units[i:j] for word in unit.words] for i, j in spans]


def wrap_first_fit(words: Sequence[Word], line_widths: Sequence[int]) -> list[list[Word]]:
    """Break words into lines greedily, filling each line before the next.

    Args:
        words: Words in order.
        line_widths: First-line and continuation widths; negative values act as 0.

    Returns:
        list[list[Word]]: Lines of words; empty when `words` is empty.
    """
    units = _glue(words)
    lines: list[list[Word]] = []
    current: list[_Unit] = []
    current_width = 0
    first_unit = 0
    for index, unit in enumerate(units):
        target = _line_target(line_widths, first_unit)
        if current:
            candidate = current_width + current[-1].whitespace_width + unit.width
            if candidate + unit.penalty_width > target:
                lines.append([word for item in current for word in item.words])
                current, current_width, first_unit = [], 0, index
            else:
                current.append(unit)
                current_width = candidate
                continue
        current.append(unit)
        current_width = unit.width
    if current:
        lines.append([word for item in current for word in item.words])
    return lines


def wrap(
    words: Sequence[Word], line_widths: Sequence[int], algorithm: str = "optimal-fit"
) -> list[list[Word]]:
    """Dispatch to the configured wrap algorithm."""
    if algorithm == "first-fit":
        return wrap_first_fit(words, line_widths)
    return wrap_optimal_fit(words, line_widths)
