"""
Default Markdown-to-tree adapter. Line-based block parser producing the read-only
node tree the strategies consume; inline markup is only rendered to plain text.
"""

import re
from typing import NamedTuple

from mdchunker.config.logging import get_logger
from mdchunker.services.chunking.nodes import Document, Node, NodeKind, SourceSpan
from mdchunker.services.chunking.tables import split_table_row

logger = get_logger(__name__)

_ATX_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_ATX_CLOSING_RE = re.compile(r"(?:^|[ \t]+)#+$")
_SETEXT_UNDERLINE_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
_THEMATIC_BREAK_RE = re.compile(r"^ {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")
_BLOCKQUOTE_RE = re.compile(r"^ {0,3}> ?")
_LIST_ITEM_RE = re.compile(r"^( {0,3})([*+-]|\d{1,9}[.)])(?:([ \t]+)(.*))?$")
_TABLE_DELIMITER_RE = re.compile(r"^ {0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$")

# Inline markup, applied in order when rendering plain text.
_INLINE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"!\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\[[^\]]*\]"), r"\1"),
    (re.compile(r"<((?:https?://|mailto:)[^>\s]+)>"), r"\1"),
    (re.compile(r"`+([^`]*?)`+"), r"\1"),
    (re.compile(r"(\*\*|__)(.+?)\1"), r"\2"),
    (re.compile(r"(?<![\w*])\*(?!\s)(.+?)(?<!\s)\*(?!\w)"), r"\1"),
    (re.compile(r"(?<!\w)_(?!\s)(.+?)(?<!\s)_(?!\w)"), r"\1"),
    (re.compile(r"~~(.+?)~~"), r"\1"),
    (re.compile(r"</?[A-Za-z][^>]*>"), ""),
    (re.compile(r"\\([\\`*_{}\[\]()#+\-.!|>~])"), r"\1"),
]


class _Line(NamedTuple):
    """A line of (possibly de-prefixed) container content and where it starts in the source."""

    text: str
    lineno: int
    col: int


def render_inline(text: str) -> str:
    """Render inline Markdown to plain text and collapse whitespace."""
    for pattern, repl in _INLINE_RULES:
        text = pattern.sub(repl, text)
    return " ".join(text.split())


def _indent_width(text: str) -> int:
    width = 0
    for ch in text:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += 4 - (width % 4)
        else:
            break
    return width


def _display_width(text: str) -> int:
    """Columns taken by `text`, with tabs expanded to the next multiple of 4."""
    width = 0
    for ch in text:
        width += 4 - (width % 4) if ch == "\t" else 1
    return width


def _shift(line: _Line, width: int) -> _Line:
    """Drop up to `width` columns of leading whitespace from a line."""
    removed = 0
    consumed = 0
    for ch in line.text:
        if removed >= width or ch not in " \t":
            break
        removed += 1 if ch == " " else 4 - (removed % 4)
        consumed += 1
    return _Line(line.text[consumed:], line.lineno, line.col + consumed)


def _is_blank(line: _Line) -> bool:
    return not line.text.strip()


class _BlockParser:
    """Recursive block parser. Container content is re-parsed as a nested line sequence."""

    def __init__(self, source: str):
        self._source_lines = source.split("\n")

    def parse(self) -> tuple[Node, ...]:
        lines = [_Line(text, i + 1, 1) for i, text in enumerate(self._source_lines)]
        return tuple(self._parse_blocks(lines))

    def _span(self, first: _Line, last: _Line) -> SourceSpan:
        return SourceSpan(
            start_line=first.lineno,
            start_col=first.col,
            end_line=last.lineno,
            end_col=last.col + len(last.text) - 1,
        )

    def _slice(self, span: SourceSpan) -> str:
        """Exact source text covered by a span."""
        lines = self._source_lines[span.start_line - 1 : span.end_line]
        if not lines:
            return ""
        if len(lines) == 1:
            return lines[0][span.start_col - 1 : span.end_col]
        first = lines[0][span.start_col - 1 :]
        last = lines[-1][: span.end_col]
        return "\n".join([first, *lines[1:-1], last])

    def _node(
        self,
        kind: NodeKind,
        first: _Line,
        last: _Line,
        plain_text: str,
        level: int = 0,
        children: list[Node] | None = None,
        **attrs,
    ) -> Node:
        span = self._span(first, last)
        return Node(
            kind=kind,
            span=span,
            raw_content=self._slice(span),
            plain_text=plain_text,
            level=level,
            children=tuple(children or ()),
            attrs=attrs,
        )

    def _starts_block(self, text: str) -> bool:
        """True if the line would interrupt a paragraph."""
        if _FENCE_OPEN_RE.match(text) or _ATX_HEADING_RE.match(text):
            return True
        if _THEMATIC_BREAK_RE.match(text) or _BLOCKQUOTE_RE.match(text):
            return True
        m = _LIST_ITEM_RE.match(text)
        return bool(m and m.group(4))

    def _parse_blocks(self, lines: list[_Line]) -> list[Node]:
        nodes: list[Node] = []
        i = 0
        while i < len(lines):
            line = lines[i]
            if _is_blank(line):
                i += 1
                continue
            text = line.text
            if _FENCE_OPEN_RE.match(text) and not self._is_backtick_info_invalid(text):
                node, i = self._parse_fenced_code(lines, i)
            elif _ATX_HEADING_RE.match(text):
                node, i = self._parse_atx_heading(lines, i)
            elif _THEMATIC_BREAK_RE.match(text):
                node, i = self._node(NodeKind.THEMATIC_BREAK, line, line, "---"), i + 1
            elif _BLOCKQUOTE_RE.match(text):
                node, i = self._parse_blockquote(lines, i)
            elif _LIST_ITEM_RE.match(text):
                node, i = self._parse_list(lines, i)
            elif _indent_width(text) >= 4:
                node, i = self._parse_indented_code(lines, i)
            elif self._is_table_start(lines, i):
                node, i = self._parse_table(lines, i)
            else:
                node, i = self._parse_paragraph(lines, i)
            nodes.append(node)
        return nodes

    @staticmethod
    def _is_backtick_info_invalid(text: str) -> bool:
        m = _FENCE_OPEN_RE.match(text)
        return m.group(2)[0] == "`" and "`" in m.group(3)

    def _parse_atx_heading(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        line = lines[i]
        m = _ATX_HEADING_RE.match(line.text)
        title = _ATX_CLOSING_RE.sub("", m.group(2) or "").strip()
        node = self._node(NodeKind.HEADING, line, line, render_inline(title), level=len(m.group(1)))
        return node, i + 1

    def _parse_fenced_code(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        opening = lines[i]
        m = _FENCE_OPEN_RE.match(opening.text)
        indent, fence, info = len(m.group(1)), m.group(2), m.group(3).strip()
        language = info.split()[0] if info else ""
        closing_re = re.compile(r"^ {0,3}" + re.escape(fence[0]) + "{" + str(len(fence)) + r",}[ \t]*$")
        body: list[str] = []
        j = i + 1
        last = opening
        closed = False
        while j < len(lines):
            if closing_re.match(lines[j].text):
                last = lines[j]
                closed = True
                j += 1
                break
            body.append(_shift(lines[j], indent).text)
            j += 1
        if not closed:
            # Unterminated fence runs to the end of the container; trailing blanks excluded.
            k = j - 1
            while k > i and _is_blank(lines[k]):
                k -= 1
            last = lines[k]
        while body and not body[-1].strip():
            body.pop()
        node = self._node(NodeKind.CODE, opening, last, "\n".join(body), language=language, fenced=True)
        return node, j

    def _parse_indented_code(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        j = i
        last_content = i
        while j < len(lines) and (_is_blank(lines[j]) or _indent_width(lines[j].text) >= 4):
            if not _is_blank(lines[j]):
                last_content = j
            j += 1
        body = [_shift(line, 4).text for line in lines[i : last_content + 1]]
        node = self._node(NodeKind.CODE, lines[i], lines[last_content], "\n".join(body), language="", fenced=False)
        return node, last_content + 1

    def _is_table_start(self, lines: list[_Line], i: int) -> bool:
        if i + 1 >= len(lines) or "|" not in lines[i].text:
            return False
        delimiter = lines[i + 1].text
        return bool(_TABLE_DELIMITER_RE.match(delimiter)) and "-" in delimiter

    def _parse_table(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        rows = [lines[i].text]
        j = i + 2
        while j < len(lines) and not _is_blank(lines[j]) and not self._starts_block(lines[j].text):
            rows.append(lines[j].text)
            j += 1
        text = "\n".join(" | ".join(render_inline(c) for c in split_table_row(row)) for row in rows)
        node = self._node(NodeKind.TABLE, lines[i], lines[j - 1], text)
        return node, j

    def _parse_paragraph(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        collected = [lines[i]]
        j = i + 1
        while j < len(lines):
            line = lines[j]
            if _is_blank(line):
                break
            m = _SETEXT_UNDERLINE_RE.match(line.text)
            if m:
                level = 1 if m.group(1)[0] == "=" else 2
                title = render_inline(" ".join(c.text.strip() for c in collected))
                return self._node(NodeKind.HEADING, collected[0], line, title, level=level), j + 1
            if self._starts_block(line.text):
                break
            collected.append(line)
            j += 1
        text = render_inline(" ".join(c.text.strip() for c in collected))
        return self._node(NodeKind.PARAGRAPH, collected[0], collected[-1], text), j

    def _parse_blockquote(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        inner: list[_Line] = []
        last = lines[i]
        j = i
        while j < len(lines):
            line = lines[j]
            m = _BLOCKQUOTE_RE.match(line.text)
            if m:
                inner.append(_Line(line.text[m.end() :], line.lineno, line.col + m.end()))
            elif not _is_blank(line) and inner and not _is_blank(inner[-1]) and not self._starts_block(line.text):
                # Lazy paragraph continuation
                inner.append(line)
            else:
                break
            last = line
            j += 1
        children = self._parse_blocks(inner)
        text = " ".join(c.plain_text for c in children if c.plain_text)
        return self._node(NodeKind.BLOCKQUOTE, lines[i], last, text, children=children), j

    def _parse_list(self, lines: list[_Line], i: int) -> tuple[Node, int]:
        first = _LIST_ITEM_RE.match(lines[i].text)
        marker = first.group(2)
        ordered = marker[0].isdigit()
        delimiter = marker[-1]

        def same_list(m: re.Match) -> bool:
            other = m.group(2)
            if ordered:
                return other[0].isdigit() and other[-1] == delimiter
            return other == marker

        items: list[list[_Line]] = []
        content_indent = 0
        last_content = i
        j = i
        while j < len(lines):
            line = lines[j]
            m = _LIST_ITEM_RE.match(line.text)
            # Items indented to the content column belong to a nested list.
            sibling = not items or _indent_width(line.text) < content_indent
            if m and sibling and same_list(m) and not _THEMATIC_BREAK_RE.match(line.text):
                if m.group(4) is not None and m.group(4).strip():
                    start = m.start(4)
                    content_indent = _display_width(line.text[:start])
                    items.append([_Line(line.text[start:], line.lineno, line.col + start)])
                else:
                    content_indent = _display_width(line.text[: m.end(2)]) + 1
                    items.append([])
                last_content = j
                j += 1
                continue
            if _is_blank(line):
                k = j
                while k < len(lines) and _is_blank(lines[k]):
                    k += 1
                if k >= len(lines):
                    break
                nxt = _LIST_ITEM_RE.match(lines[k].text)
                if _indent_width(lines[k].text) < content_indent and not (nxt and same_list(nxt)):
                    break
                items[-1].extend(_Line("", lines[b].lineno, 1) for b in range(j, k))
                j = k
                continue
            if _indent_width(line.text) >= content_indent:
                items[-1].append(_shift(line, content_indent))
            elif not _is_blank(lines[j - 1]) and not self._starts_block(line.text):
                items[-1].append(_shift(line, _indent_width(line.text)))
            else:
                break
            last_content = j
            j += 1

        children: list[Node] = []
        item_texts: list[str] = []
        for item_lines in items:
            item_children = self._parse_blocks(item_lines)
            children.extend(item_children)
            item_text = " ".join(c.plain_text for c in item_children if c.plain_text)
            if item_text:
                item_texts.append(item_text)
        node = self._node(
            NodeKind.LIST,
            lines[i],
            lines[last_content],
            " ".join(item_texts),
            children=children,
            ordered=ordered,
            item_count=len(items),
        )
        return node, last_content + 1


def parse_markdown(source: str) -> Document:
    """
    Parse Markdown source into a Document. Line endings are normalized to '\\n' and the
    normalized text is kept as Document.source. Malformed input never raises; it degrades
    to paragraphs.
    """
    normalized = source.replace("\r\n", "\n").replace("\r", "\n")
    children = _BlockParser(normalized).parse()
    logger.debug("Parsed markdown", extra={"node_count": len(children), "source_length": len(normalized)})
    return Document(children=children, source=normalized)
