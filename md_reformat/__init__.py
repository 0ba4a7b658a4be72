"""
md-reformat: cursor-aware Markdown reformatter.

Rewraps paragraphs, normalizes list and quote indentation, renumbers
ordered lists and aligns tables, while keeping track of where the cursor
ends up in the new text.

CLI Usage:
    md-reformat README.md --width 72 --in-place

Library Usage:
    from md_reformat import reformat

    text = "1. A long paragraph inside a list item that needs rewrapping.\\n"
    formatted, cursor = reformat(text, cursor=10, text_width=30)

Editor Usage:
    from md_reformat import StringBuffer, TextPosition, md_format

    buffer = StringBuffer(text)
    buffer.set_cursor(TextPosition(10, 0))
    md_format(buffer, text_width=30)
"""

from .buffer import StringBuffer, TextBuffer, TextPosition, TextRange
from .command import md_format
from .config import ConfigError, ReformatConfig, build_config
from .events import parse_markdown
from .exceptions import FrameMismatchError, ParserContractError, ReformatError
from .format import reformat
from .models import Event, EventKind, NewLine, Tag, TextOutcome
from .operations import (
    create_md_title,
    empty_md_row,
    md_backtab,
    md_line_break,
    md_make_header,
    md_tab,
    next_tab_md_row,
    prev_tab_md_row,
    split_md_row,
)
from .wrap import wrap

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "reformat",
    "parse_markdown",
    "wrap",
    # Editor commands
    "md_format",
    "md_make_header",
    "md_tab",
    "md_backtab",
    "md_line_break",
    "next_tab_md_row",
    "prev_tab_md_row",
    "empty_md_row",
    "split_md_row",
    "create_md_title",
    # Buffers
    "StringBuffer",
    "TextBuffer",
    "TextPosition",
    "TextRange",
    # Data models
    "Event",
    "EventKind",
    "NewLine",
    "Tag",
    "TextOutcome",
    # Configuration
    "ReformatConfig",
    "build_config",
    # Exceptions
    "ConfigError",
    "FrameMismatchError",
    "ParserContractError",
    "ReformatError",
    # Version
    "__version__",
]
