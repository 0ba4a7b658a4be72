"""Constants used across the md-reformat package."""

from __future__ import annotations

import re

# Defaults
DEFAULT_TEXT_WIDTH = 65
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
MARKDOWN_EXTENSIONS = (".md", ".markdown")

NEWLINE_ALIASES = {"lf": "\n", "crlf": "\r\n", "\n": "\n", "\r\n": "\r\n"}
WRAP_ALGORITHMS = ("optimal-fit", "first-fit")

# Raw span patterns
LIST_ITEM_PATTERN = re.compile(
    r"(?P<prefix>[ \t]*)"
    r"(?:(?P<bullet>[-+*])|(?P<nr>\d{1,9})(?P<suffix>[.)]))"
    r"(?P<text_prefix>[ \t]*)"
)
BLOCK_QUOTE_PATTERN = re.compile(r"[ \t]*(?P<quote>>)(?P<text_prefix>[ \t]*)")
HEADER_PATTERN = re.compile(r"[ \t]*(?P<tag>#{1,6})(?:[ \t]+|$)")
LINK_REFERENCE_PATTERN = re.compile(
    r"[ ]{0,3}\[(?P<label>(?:[^\]\\\n]|\\.){1,999})\]:[ \t]*\n?[ \t]*"
    r"(?P<destination><[^>\n]*>|[^ \t\n]+)"
    r"(?:(?:[ \t]+|[ \t]*\n[ \t]*)"
    r"(?P<title>\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'|\((?:[^()\\]|\\.)*\)))?"
    r"[ \t]*(?:\r?\n|$)"
)
ENTITY_PATTERN = re.compile(r"&(?:#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[A-Za-z][A-Za-z0-9]{1,31});")
ADMONITION_PATTERN = re.compile(
    r"\[!(?P<kind>NOTE|TIP|IMPORTANT|WARNING|CAUTION)\][ \t]*$", re.IGNORECASE
)
TASK_MARKER_PATTERN = re.compile(r"\[[ xX]\](?=[ \t\v\f\r]|$)")
WORD_PATTERN = re.compile(r"([^ \t]+)([ \t]*)")

# Line break penalties for the optimal-fit wrap
NLINE_PENALTY = 1000
OVERFLOW_PENALTY = 50 * 50
SHORT_LAST_LINE_FRACTION = 4
SHORT_LAST_LINE_PENALTY = 25
HYPHEN_PENALTY = 25
