from __future__ import annotations

import os

import pytest

from md_reformat.exceptions import ReformatError
from md_reformat.format import reformat
from md_reformat.operations import create_md_title, empty_md_row, split_md_row

atheris = pytest.importorskip("atheris")

FRAGMENTS = [
    "# ",
    "> ",
    "- ",
    "1. ",
    "[ ] ",
    "| a | b |\n|---|---|\n",
    "```\n",
    "    ",
    "$$",
    "*",
    "`",
    "[^1]",
    "[x]: /url\n",
    ": ",
    "---\n",
    "\n",
    "\n\n",
    "  \n",
    "\\\n",
    "<div>\n",
]


def _fuzzed_document(provider) -> str:
    parts: list[str] = []
    while provider.remaining_bytes() > 0 and len(parts) < 64:
        if provider.ConsumeBool():
            parts.append(FRAGMENTS[provider.ConsumeIntInRange(0, len(FRAGMENTS) - 1)])
        else:
            parts.append(provider.ConsumeUnicodeNoSurrogates(16))
    return "".join(parts)


def test_reformat_with_fuzzed_documents():
    provider = atheris.FuzzedDataProvider(os.urandom(8192))
    documents = 0

    while provider.remaining_bytes() > 0 and documents < 32:
        text = _fuzzed_document(provider)
        width = provider.ConsumeIntInRange(0, 100)
        cursor = provider.ConsumeIntInRange(0, len(text))
        documents += 1
        try:
            formatted, new_cursor = reformat(text, cursor, text_width=width)
        except ReformatError:
            continue
        assert isinstance(formatted, str)
        assert isinstance(new_cursor, int)

    assert documents  # ensure we exercised the loop


def test_row_builders_with_fuzzed_rows():
    provider = atheris.FuzzedDataProvider(os.urandom(4096))
    rows = 0

    while provider.remaining_bytes() > 0 and rows < 64:
        cells = [provider.ConsumeUnicodeNoSurrogates(6).replace("\n", " ") for _ in range(3)]
        row = "|" + "|".join(cells) + "|"
        cursor = provider.ConsumeIntInRange(0, len(row))
        rows += 1

        x, split = split_md_row(row, cursor, "\n")
        assert split.count("\n") == 2
        assert x <= len(row)
        assert empty_md_row(row, "\n")[1].startswith("\n")
        assert create_md_title(row, "\n")[1].startswith("\n")

    assert rows
