"""Flat Markdown event stream with source offsets, built on markdown-it-py.

markdown-it produces a token list whose block tokens know their source
lines but whose inline tokens only know their (prefix-stripped) content.
This module turns those tokens into `Event` values carrying exact offsets
into the original text: block starts are found by skipping the prefixes
of every enclosing quote, list item, footnote and definition, and inline
tokens are located inside the content and mapped back line by line.
"""

from __future__ import annotations

import bisect
import html
import re
from dataclasses import dataclass
from functools import lru_cache

from markdown_it import MarkdownIt
from markdown_it.token import Token
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.dollarmath import dollarmath_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.front_matter import front_matter_plugin
from mdit_py_plugins.tasklists import tasklists_plugin

from .constants import ADMONITION_PATTERN, ENTITY_PATTERN, TASK_MARKER_PATTERN
from .log import get_logger
from .models import Event, EventKind, LinkReference, ParsedDocument, Tag
from .parser import find_code_span_end, find_link_end, parse_md_item, parse_md_link_ref

logger = get_logger(__name__)

_LINE_BREAK_PATTERN = re.compile(r"[ \t]*\r?\n[ \t]*")

_BLOCK_TAGS = {
    "paragraph_open": Tag.PARAGRAPH,
    "heading_open": Tag.HEADING,
    "blockquote_open": Tag.BLOCK_QUOTE,
    "bullet_list_open": Tag.LIST,
    "ordered_list_open": Tag.LIST,
    "list_item_open": Tag.ITEM,
    "dl_open": Tag.DEFINITION_LIST,
    "dt_open": Tag.DEFINITION_LIST_TITLE,
    "dd_open": Tag.DEFINITION_LIST_DEFINITION,
    "footnote_reference_open": Tag.FOOTNOTE_DEFINITION,
}

_DELIMITER_TAGS = {
    "em_open": Tag.EMPHASIS,
    "em_close": Tag.EMPHASIS,
    "strong_open": Tag.STRONG,
    "strong_close": Tag.STRONG,
    "s_open": Tag.STRIKETHROUGH,
    "s_close": Tag.STRIKETHROUGH,
}

_COVERING_TOKENS = {
    "paragraph_open",
    "heading_open",
    "code_block",
    "fence",
    "html_block",
    "hr",
    "table_open",
    "math_block",
    "math_block_label",
    "front_matter",
    "inline",
}


@lru_cache(maxsize=1)
def create_parser() -> MarkdownIt:
    """Create the markdown-it parser with the supported extensions.

    CommonMark plus tables, strikethrough, footnotes, definition lists,
    dollar math, front matter and task lists. Footnote definitions stay in
    document order instead of being moved to the end.

    Returns:
        MarkdownIt: Configured parser instance.
    """
    parser = (
        MarkdownIt("commonmark")
        .enable(["table", "strikethrough"])
        .use(footnote_plugin)
        .use(deflist_plugin)
        .use(dollarmath_plugin)
        .use(front_matter_plugin)
        .use(tasklists_plugin)
    )
    return parser.disable("footnote_tail", ignoreInvalid=True)


def parse_markdown(text: str) -> ParsedDocument:
    """Parse Markdown into a flat, well-nested event stream.

    Args:
        text: Markdown source.

    Returns:
        ParsedDocument: Events with source offsets and the link reference
            definitions found between top-level blocks.

    Examples:
        document = parse_markdown("# Title\\n\\nSome *text*.\\n")
        [event.kind for event in document.events]
    """
    tokens = create_parser().parse(text)
    builder = _EventBuilder(text)
    builder.build(tokens)
    references = _find_references(text, builder.events, builder.front_matter)
    logger.debug("Parsed %d tokens into %d events", len(tokens), len(builder.events))
    return ParsedDocument(text=text, events=builder.events, references=references)


class _Lines:
    def __init__(self, text: str):
        self.text = text
        self.starts = [0] + [match.end() for match in re.finditer("\n", text)]

    def __len__(self) -> int:
        return len(self.starts)

    def start(self, line: int) -> int:
        if line >= len(self.starts):
            return len(self.text)
        return self.starts[line]

    def end(self, line: int) -> int:
        if line + 1 >= len(self.starts):
            return len(self.text)
        end = self.starts[line + 1] - 1
        if end > self.starts[line] and self.text[end - 1] == "\r":
            end -= 1
        return end

    def is_blank(self, line: int) -> bool:
        return not self.text[self.start(line) : self.end(line)].strip()


@dataclass
class _Container:
    kind: str
    first_line: int
    content_start: int
    indent: int
    start_index: int
    end_line: int


@dataclass
class _Open:
    tag: Tag | None
    start: int
    end: int
    start_index: int
    container: _Container | None = None


class _ContentMap:
    """Maps offsets in an inline token's content to source offsets."""

    def __init__(self, content: str, sources: list[int]):
        self.offsets = [0]
        for line in content.split("\n")[:-1]:
            self.offsets.append(self.offsets[-1] + len(line) + 1)
        self.sources = sources

    def to_source(self, offset: int) -> int:
        line = bisect.bisect_right(self.offsets, offset) - 1
        return self.sources[line] + offset - self.offsets[line]


def _skip_spaces(text: str, pos: int, end: int, limit: int | None = None) -> int:
    count = 0
    while pos < end and text[pos] in " \t" and (limit is None or count < limit):
        pos += 1
        count += 1
    return pos


def _advance_text(content: str, pos: int, value: str) -> int:
    """Advance over the source of a text token whose decoded value is `value`."""
    k = 0
    while k < len(value) and pos < len(content):
        char = content[pos]
        if char == value[k]:
            pos += 1
            k += 1
        elif char == "\\" and content[pos + 1 : pos + 2] == value[k]:
            pos += 2
            k += 1
        elif char == "&":
            match = ENTITY_PATTERN.match(content, pos)
            decoded = html.unescape(match.group()) if match else ""
            if not decoded or not value.startswith(decoded, k):
                break
            pos = match.end()
            k += len(decoded)
        else:
            break
    return pos


def _normalize(text: str) -> str:
    return _LINE_BREAK_PATTERN.sub(" ", text)


class _EventBuilder:
    def __init__(self, text: str):
        self.text = text
        self.lines = _Lines(text)
        self.events: list[Event] = []
        self.containers: list[_Container] = []
        self.covered: set[int] = set()
        self.front_matter: tuple[int, int] | None = None
        self.skip_until: int | None = None
        self.task_marker: int | None = None

    # Offsets

    def _strip_containers(self, line: int) -> int:
        text = self.text
        pos = self.lines.start(line)
        end = self.lines.end(line)
        for container in self.containers:
            if container.kind == "quote":
                candidate = _skip_spaces(text, pos, end, 3)
                if candidate < end and text[candidate] == ">":
                    pos = candidate + 1
                    if pos < end and text[pos] in " \t":
                        pos += 1
            elif line == container.first_line:
                pos = max(pos, container.content_start)
            else:
                pos = _skip_spaces(text, pos, end, container.indent)
        return pos

    def _block_start(self, line: int, code: bool = False) -> int:
        pos = self._strip_containers(line)
        return _skip_spaces(self.text, pos, self.lines.end(line), 4 if code else None)

    def _block_end(self, first_line: int, end_line: int) -> int:
        last = max(end_line - 1, first_line)
        while last > first_line and self.lines.is_blank(last):
            last -= 1
        return self.lines.start(last + 1)

    def _locate_line(self, line: int, content_line: str, search_from: int | None = None) -> int:
        pos = self._strip_containers(line) if search_from is None else search_from
        end = self.lines.end(line)
        if content_line:
            found = self.text.find(content_line, pos, end)
            if found != -1:
                return found
        return max(end - len(content_line), pos)

    # Emission

    def _emit(self, kind: EventKind, start: int, end: int, **fields) -> None:
        self.events.append(Event(kind=kind, start=start, end=end, **fields))

    def _emit_inline(self, kind: EventKind, start: int, end: int, **fields) -> None:
        if self.skip_until is not None and start < self.skip_until:
            return
        self._emit(kind, start, end, **fields)

    def _cover(self, token: Token) -> None:
        if token.map:
            self.covered.update(range(token.map[0], max(token.map[1], token.map[0] + 1)))

    # Walk

    def build(self, tokens: list[Token]) -> None:
        closers = _match_closers(tokens)
        stack: list[_Open] = []
        index = 0
        while index < len(tokens):
            token = tokens[index]
            if token.type in _COVERING_TOKENS:
                self._cover(token)

            if token.nesting == 1 and token.type in _BLOCK_TAGS:
                stack.append(self._open_block(tokens, index, closers))
            elif token.nesting == -1 and token.type.replace("_close", "_open") in _BLOCK_TAGS:
                self._close_block(stack.pop())
            elif token.type == "table_open":
                self._table(token)
                index = closers.get(index, index)
            elif token.type == "inline":
                self._inline(token, tokens[index - 1] if index else None)
            elif token.type in ("code_block", "fence"):
                self._code_block(token)
            elif token.type == "html_block":
                self._html_block(token)
            elif token.type == "hr":
                start = self._block_start(token.map[0])
                value = self.text[start : self.lines.end(token.map[0])].strip()
                end = self._block_end(token.map[0], token.map[1])
                self._emit(EventKind.RULE, start, end, value=value)
            elif token.type in ("math_block", "math_block_label"):
                self._math_block(token)
            elif token.type == "front_matter":
                self.front_matter = (
                    self.lines.start(token.map[0]),
                    self.lines.start(token.map[1]),
                )
            else:
                logger.debug("Ignoring token %s", token.type)
            index += 1

    def _open_block(self, tokens: list[Token], index: int, closers: dict[int, int]) -> _Open:
        token = tokens[index]
        tag = _BLOCK_TAGS[token.type]
        token_map = token.map or _descendant_map(tokens, index, closers.get(index, index))

        if token_map is None or (tag is Tag.PARAGRAPH and token.hidden):
            return _Open(tag=None, start=0, end=0, start_index=len(self.events))

        first_line, end_line = token_map
        start = self._block_start(first_line)
        end = self._block_end(first_line, end_line)
        attrs: dict[str, object] = {}
        container: _Container | None = None

        if tag is Tag.HEADING:
            attrs["level"] = int(token.tag[1:])
        elif tag is Tag.LIST:
            attrs["ordered"] = token.type == "ordered_list_open"
        elif tag is Tag.BLOCK_QUOTE:
            container = self._quote_container(first_line, start, end_line, attrs)
        elif tag is Tag.ITEM:
            task = "task-list-item" in (token.attrGet("class") or "")
            container = self._item_container(first_line, start, end_line, task)
        elif tag is Tag.FOOTNOTE_DEFINITION:
            attrs["label"] = token.meta.get("label", "")
            content_start = self.text.find("]:", start, self.lines.end(first_line))
            content_start = content_start + 2 if content_start != -1 else start
            container = self._container("footnote", first_line, start, content_start, 4, end_line)
        elif tag is Tag.DEFINITION_LIST_DEFINITION:
            line_end = self.lines.end(first_line)
            content_start = _skip_spaces(self.text, min(start + 1, line_end), line_end)
            indent = content_start - start
            container = self._container(
                "definition", first_line, start, content_start, indent, end_line
            )

        self._emit(EventKind.START, start, end, tag=tag, attrs=attrs)
        opened = _Open(tag=tag, start=start, end=end, start_index=len(self.events) - 1)
        if container is not None:
            container.start_index = opened.start_index
            self.containers.append(container)
            opened.container = container
        return opened

    def _container(
        self,
        kind: str,
        first_line: int,
        start: int,
        content_start: int,
        indent: int,
        end_line: int,
    ) -> _Container:
        line_pos = self._strip_containers(first_line)
        return _Container(
            kind=kind,
            first_line=first_line,
            content_start=content_start,
            indent=max(indent + start - line_pos, 0),
            start_index=-1,
            end_line=end_line,
        )

    def _quote_container(
        self, first_line: int, start: int, end_line: int, attrs: dict[str, object]
    ) -> _Container:
        line_end = self.lines.end(first_line)
        content_start = start + 1
        if content_start < line_end and self.text[content_start] in " \t":
            content_start += 1
        match = ADMONITION_PATTERN.match(self.text, content_start, line_end)
        if match:
            attrs["admonition"] = match.group("kind").upper()
            self.skip_until = line_end
        return _Container("quote", first_line, content_start, 0, -1, end_line)

    def _item_container(
        self, first_line: int, start: int, end_line: int, task: bool = False
    ) -> _Container:
        line_end = self.lines.end(first_line)
        marker = parse_md_item(self.text[start:line_end])
        if marker is None:
            marker_end = start + 1
            spaces = 1
        else:
            marker_end = start + len(marker.prefix) + len(marker.mark) + len(marker.mark_suffix)
            spaces = len(marker.text_prefix)
        if marker_end + spaces >= line_end or spaces > 4 or spaces == 0:
            content_start = min(marker_end + 1, line_end)
        else:
            content_start = marker_end + spaces

        if task:
            match = TASK_MARKER_PATTERN.search(self.text, content_start, line_end)
            if match:
                self.task_marker = match.start()
        return self._container(
            "item", first_line, start, content_start, content_start - start, end_line
        )

    def _close_block(self, opened: _Open) -> None:
        container = opened.container
        if container is not None:
            self._keep_uncovered_lines(container)
            self.containers.pop()
            if container.kind == "quote":
                self.skip_until = None
            if container.kind == "item":
                self.task_marker = None

        if opened.tag is None:
            return
        last = self.events[-1] if self.events else None
        if (
            opened.tag is Tag.PARAGRAPH
            and last is not None
            and last.is_start(Tag.PARAGRAPH)
            and len(self.events) - 1 == opened.start_index
        ):
            # Nothing left of the paragraph (admonition marker line)
            self.events.pop()
            return
        self._emit(EventKind.END, opened.start, opened.end, tag=opened.tag)

    def _keep_uncovered_lines(self, container: _Container) -> None:
        """Report container lines no block claimed (link reference definitions) verbatim."""
        lines: list[tuple[int, int]] = []
        for line in range(container.first_line, container.end_line):
            if line in self.covered:
                continue
            start = self._strip_containers(line)
            end = self.lines.end(line)
            if self.text[start:end].strip():
                lines.append((start, end))
        self.covered.update(range(container.first_line, container.end_line))
        if not lines:
            return

        block = [Event(EventKind.START, lines[0][0], lines[-1][1], tag=Tag.HTML_BLOCK)]
        block.extend(
            Event(EventKind.HTML, start, end, value=self.text[start:end]) for start, end in lines
        )
        block.append(Event(EventKind.END, lines[0][0], lines[-1][1], tag=Tag.HTML_BLOCK))

        # Insert before the first direct child starting after the lines
        depth = 0
        position = len(self.events)
        for index in range(container.start_index + 1, len(self.events)):
            event = self.events[index]
            if depth == 0 and event.kind is not EventKind.END and event.start > lines[0][0]:
                position = index
                break
            if event.kind is EventKind.START:
                depth += 1
            elif event.kind is EventKind.END:
                depth -= 1
        self.events[position:position] = block

    def _code_block(self, token: Token) -> None:
        first_line, end_line = token.map
        fenced = token.type == "fence"
        start = self._block_start(first_line, code=not fenced)
        end = self._block_end(first_line, end_line)
        attrs: dict[str, object] = {"fenced": fenced}
        if fenced:
            attrs["fence"] = token.markup
            attrs["info"] = token.info.strip()

        self._emit(EventKind.START, start, end, tag=Tag.CODE_BLOCK, attrs=attrs)
        content = token.content[:-1] if token.content.endswith("\n") else token.content
        content_first = first_line + 1 if fenced else first_line
        if token.content:
            for offset, line_text in enumerate(content.split("\n")):
                line = content_first + offset
                line_start = self._locate_line(line, line_text)
                self._emit(
                    EventKind.TEXT, line_start, line_start + len(line_text), value=line_text
                )
        self._emit(EventKind.END, start, end, tag=Tag.CODE_BLOCK)

    def _html_block(self, token: Token) -> None:
        first_line, end_line = token.map
        start = self._strip_containers(first_line)
        end = self._block_end(first_line, end_line)
        self._emit(EventKind.START, start, end, tag=Tag.HTML_BLOCK)
        content = token.content[:-1] if token.content.endswith("\n") else token.content
        for offset, line_text in enumerate(content.split("\n")):
            line_start = self._locate_line(first_line + offset, line_text)
            self._emit(EventKind.HTML, line_start, line_start + len(line_text), value=line_text)
        self._emit(EventKind.END, start, end, tag=Tag.HTML_BLOCK)

    def _math_block(self, token: Token) -> None:
        first_line, end_line = token.map
        start = self._block_start(first_line)
        end = self._block_end(first_line, end_line)
        parts = [self.text[start : self.lines.end(first_line)]]
        for line in range(first_line + 1, end_line):
            parts.append(self.text[self._strip_containers(line) : self.lines.end(line)])
        while len(parts) > 1 and not parts[-1].strip():
            parts.pop()
        value = "\n".join(parts)
        last_line = first_line + len(parts) - 1
        self._emit(EventKind.START, start, end, tag=Tag.PARAGRAPH)
        self._emit(EventKind.DISPLAY_MATH, start, self.lines.end(last_line), value=value)
        self._emit(EventKind.END, start, end, tag=Tag.PARAGRAPH)

    def _table(self, token: Token) -> None:
        first_line, end_line = token.map
        rows: list[tuple[int, int]] = []
        for line in range(first_line, end_line):
            if self.lines.is_blank(line):
                continue
            row_start = self._block_start(line)
            row_end = self.lines.end(line)
            while row_end > row_start and self.text[row_end - 1] in " \t":
                row_end -= 1
            rows.append((row_start, row_end))

        start = rows[0][0] if rows else self._block_start(first_line)
        end = self._block_end(first_line, end_line)
        self._emit(EventKind.START, start, end, tag=Tag.TABLE, attrs={"rows": rows})
        for number, (row_start, row_end) in enumerate(rows):
            if number == 1:
                continue
            tag = Tag.TABLE_HEAD if number == 0 else Tag.TABLE_ROW
            self._emit(EventKind.START, row_start, row_end, tag=tag)
            self._emit(EventKind.END, row_start, row_end, tag=tag)
        self._emit(EventKind.END, start, end, tag=Tag.TABLE)

    # Inline content

    def _inline(self, token: Token, parent: Token | None) -> None:
        token_map = token.map or (parent.map if parent is not None else None)
        if token_map is None or parent is None or parent.type in ("th_open", "td_open"):
            return

        content = token.content
        sources: list[int] = []
        for offset, content_line in enumerate(content.split("\n")):
            line = token_map[0] + offset
            search_from = None
            if offset == 0 and parent.type == "heading_open" and parent.markup.startswith("#"):
                search_from = self._block_start(line) + len(parent.markup)
            elif offset == 0 and self.task_marker is not None:
                # The task list plugin drops the marker from the content
                search_from = self.task_marker + 3
            sources.append(self._locate_line(line, content_line, search_from))
        mapper = _ContentMap(content, sources)

        if self.task_marker is not None:
            self._emit_inline(
                EventKind.TASK_LIST_MARKER, self.task_marker, self.task_marker + 3
            )
            self.task_marker = None

        _InlineLocator(self, content, mapper).run(token.children or [])


class _InlineLocator:
    """Finds each inline child token inside its parent's content."""

    def __init__(self, builder: _EventBuilder, content: str, mapper: _ContentMap):
        self.builder = builder
        self.content = content
        self.mapper = mapper
        self.pos = 0
        self.search = 0

    def emit(self, kind: EventKind, start: int, end: int, **fields) -> None:
        self.builder._emit_inline(
            kind, self.mapper.to_source(start), self.mapper.to_source(end), **fields
        )

    def flush_text(self, upto: int) -> None:
        if upto <= self.pos:
            return
        segments = self.content[self.pos : upto].split("\n")
        offset = self.pos
        for number, segment in enumerate(segments):
            if number:
                self.emit(EventKind.SOFT_BREAK, offset - 1, offset)
            if segment:
                self.emit(EventKind.TEXT, offset, offset + len(segment))
            offset += len(segment) + 1
        self.pos = upto

    def atomic(self, kind: EventKind, start: int, end: int) -> None:
        self.flush_text(start)
        self.emit(kind, start, end, value=_normalize(self.content[start:end]))
        self.pos = self.search = end

    def run(self, children: list[Token]) -> None:
        content = self.content
        index = 0
        while index < len(children):
            child = children[index]
            kind = child.type
            index += 1

            if kind in ("text", "text_special"):
                self.search = _advance_text(content, self.search, child.content)
            elif kind in ("softbreak", "hardbreak"):
                self._break(kind == "hardbreak")
            elif kind == "code_inline":
                start = content.find(child.markup, self.search)
                if start == -1:
                    continue
                end = find_code_span_end(content, start) or start + len(child.markup)
                self.atomic(EventKind.CODE, start, end)
            elif kind in _DELIMITER_TAGS:
                start = content.find(child.markup, self.search)
                if start == -1:
                    continue
                self.flush_text(start)
                end = start + len(child.markup)
                event_kind = EventKind.START if kind.endswith("_open") else EventKind.END
                self.emit(event_kind, start, end, tag=_DELIMITER_TAGS[kind])
                self.pos = self.search = end
            elif kind == "link_open":
                index = self._link(child, children, index)
            elif kind == "image":
                start = content.find("![", self.search)
                if start == -1:
                    continue
                end = find_link_end(content, start) or len(content)
                self.flush_text(start)
                value = _normalize(content[start:end])
                self.emit(EventKind.START, start, end, tag=Tag.IMAGE, value=value)
                self.emit(EventKind.END, start, end, tag=Tag.IMAGE)
                self.pos = self.search = end
            elif kind == "html_inline":
                start = content.find(child.content, self.search)
                if start != -1:
                    self.atomic(EventKind.INLINE_HTML, start, start + len(child.content))
            elif kind == "footnote_ref":
                self._footnote_ref(child)
            elif kind in ("math_inline", "math_inline_double"):
                self._math(child)
            else:
                logger.debug("Ignoring inline token %s", kind)

        self.flush_text(len(content))

    def _break(self, hard: bool) -> None:
        content = self.content
        newline = content.find("\n", self.search)
        if newline == -1:
            return
        start = newline
        if hard and start > 0 and content[start - 1] == "\\":
            start -= 1
        while start > self.pos and content[start - 1] in " \t":
            start -= 1
        self.flush_text(start)
        end = _skip_spaces(content, newline + 1, len(content))
        self.emit(EventKind.HARD_BREAK if hard else EventKind.SOFT_BREAK, start, end)
        self.pos = self.search = end

    def _link(self, child: Token, children: list[Token], index: int) -> int:
        content = self.content
        # Skip the link text tokens; the whole link is one span
        depth = 1
        while index < len(children) and depth:
            if children[index].type == "link_open":
                depth += 1
            elif children[index].type == "link_close":
                depth -= 1
            index += 1

        if child.markup in ("autolink", "linkify"):
            start = content.find("<", self.search)
            end = content.find(">", start) + 1 if start != -1 else 0
        else:
            start = content.find("[", self.search)
            end = (find_link_end(content, start) or len(content)) if start != -1 else 0
        if start == -1 or end <= start:
            return index

        self.flush_text(start)
        value = _normalize(content[start:end])
        self.emit(EventKind.START, start, end, tag=Tag.LINK, value=value)
        self.emit(EventKind.END, start, end, tag=Tag.LINK)
        self.pos = self.search = end
        return index

    def _footnote_ref(self, child: Token) -> None:
        content = self.content
        if child.meta and child.meta.get("label") is not None:
            start = content.find("[^", self.search)
            end = content.find("]", start) + 1 if start != -1 else 0
        else:
            start = content.find("^[", self.search)
            end = (find_link_end(content, start + 1) or len(content)) if start != -1 else 0
        if start != -1 and end > start:
            self.atomic(EventKind.FOOTNOTE_REFERENCE, start, end)

    def _math(self, child: Token) -> None:
        content = self.content
        markup = child.markup or ("$$" if child.type == "math_inline_double" else "$")
        start = content.find(markup, self.search)
        if start == -1:
            return
        body_start = start + len(markup)
        if content.startswith(child.content, body_start):
            end = body_start + len(child.content) + len(markup)
        else:
            close = content.find(markup, body_start)
            end = close + len(markup) if close != -1 else len(content)
        kind = EventKind.DISPLAY_MATH if len(markup) == 2 else EventKind.INLINE_MATH
        self.atomic(kind, start, end)


def _match_closers(tokens: list[Token]) -> dict[int, int]:
    closers: dict[int, int] = {}
    stack: list[int] = []
    for index, token in enumerate(tokens):
        if token.nesting == 1:
            stack.append(index)
        elif token.nesting == -1 and stack:
            closers[stack.pop()] = index
    return closers


def _descendant_map(tokens: list[Token], start: int, end: int) -> list[int] | None:
    lines = [token.map for token in tokens[start + 1 : end] if token.map]
    if not lines:
        return None
    return [min(line[0] for line in lines), max(line[1] for line in lines)]


def _top_level_spans(events: list[Event]) -> list[tuple[int, int]]:
    spans = []
    depth = 0
    for event in events:
        if event.kind is EventKind.START:
            if depth == 0:
                spans.append((event.start, event.end))
            depth += 1
        elif event.kind is EventKind.END:
            depth -= 1
        elif depth == 0:
            spans.append((event.start, event.end))
    return spans


def _find_references(
    text: str, events: list[Event], front_matter: tuple[int, int] | None
) -> list[LinkReference]:
    skipped = _top_level_spans(events)
    if front_matter is not None:
        skipped.append(front_matter)
    skipped.sort()

    references: list[LinkReference] = []
    pos = 0
    span_index = 0
    while pos < len(text):
        while span_index < len(skipped) and skipped[span_index][1] <= pos:
            span_index += 1
        if span_index < len(skipped) and skipped[span_index][0] <= pos:
            pos = skipped[span_index][1]
            continue
        limit = skipped[span_index][0] if span_index < len(skipped) else len(text)
        reference = parse_md_link_ref(text, pos)
        if reference is not None and pos < reference.end <= limit:
            references.append(reference)
            pos = reference.end
            continue
        newline = text.find("\n", pos)
        pos = newline + 1 if newline != -1 else len(text)
    return references
