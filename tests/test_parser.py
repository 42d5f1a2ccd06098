from mdchunker.services.chunking.nodes import NodeKind, SourceSpan, walk
from mdchunker.services.chunking.parser import parse_markdown, render_inline

SAMPLE = (
    "# Title\n"
    "\n"
    "Intro paragraph with **bold**.\n"
    "\n"
    "## Section\n"
    "\n"
    "- one\n"
    "- two\n"
    "\n"
    "```python\n"
    "print('x')\n"
    "```\n"
    "\n"
    "> quoted\n"
    "\n"
    "---\n"
    "\n"
    "| a | b |\n"
    "|---|---|\n"
    "| 1 | 2 |\n"
)


def test_block_kinds_in_source_order():
    doc = parse_markdown(SAMPLE)
    assert [n.kind for n in doc.children] == [
        NodeKind.HEADING,
        NodeKind.PARAGRAPH,
        NodeKind.HEADING,
        NodeKind.LIST,
        NodeKind.CODE,
        NodeKind.BLOCKQUOTE,
        NodeKind.THEMATIC_BREAK,
        NodeKind.TABLE,
    ]


def test_heading_span_and_raw_content():
    heading = parse_markdown(SAMPLE).children[0]
    assert heading.level == 1
    assert heading.plain_text == "Title"
    assert heading.raw_content == "# Title"
    assert heading.span == SourceSpan(1, 1, 1, 7)


def test_inline_markup_is_rendered_to_plain_text():
    paragraph = parse_markdown(SAMPLE).children[1]
    assert paragraph.raw_content == "Intro paragraph with **bold**."
    assert paragraph.plain_text == "Intro paragraph with bold."


def test_fenced_code_keeps_language_and_fences():
    code = parse_markdown(SAMPLE).children[4]
    assert code.attrs["language"] == "python"
    assert code.plain_text == "print('x')"
    assert code.raw_content == "```python\nprint('x')\n```"


def test_list_items_become_children():
    lst = parse_markdown(SAMPLE).children[3]
    assert lst.attrs["ordered"] is False
    assert lst.attrs["item_count"] == 2
    assert [c.plain_text for c in lst.children] == ["one", "two"]
    assert lst.is_container


def test_nested_list_is_a_child_not_a_sibling():
    doc = parse_markdown("- a\n  - b\n- c\n")
    lst = doc.children[0]
    assert lst.attrs["item_count"] == 2
    kinds = [c.kind for c in lst.children]
    assert kinds == [NodeKind.PARAGRAPH, NodeKind.LIST, NodeKind.PARAGRAPH]
    assert lst.children[1].plain_text == "b"


def test_blockquote_children_and_depth():
    doc = parse_markdown("> first\n> second\n\ntext\n")
    quote = doc.children[0]
    assert quote.kind == NodeKind.BLOCKQUOTE
    assert quote.children[0].plain_text == "first second"
    depths = [(n.kind, d) for n, d in walk(doc.children)]
    assert depths == [(NodeKind.BLOCKQUOTE, 0), (NodeKind.PARAGRAPH, 1), (NodeKind.PARAGRAPH, 0)]


def test_setext_heading():
    doc = parse_markdown("Title\n=====\n\nSub\n---\n")
    assert [(n.kind, n.level, n.plain_text) for n in doc.children] == [
        (NodeKind.HEADING, 1, "Title"),
        (NodeKind.HEADING, 2, "Sub"),
    ]


def test_table_text_excludes_delimiter_row():
    table = parse_markdown(SAMPLE).children[-1]
    assert table.raw_content == "| a | b |\n|---|---|\n| 1 | 2 |"
    assert table.plain_text == "a | b\n1 | 2"


def test_line_endings_are_normalized():
    doc = parse_markdown("a\r\nb\r\n\r\nc")
    assert doc.source == "a\nb\n\nc"
    assert [n.plain_text for n in doc.children] == ["a b", "c"]


def test_indented_code_block():
    doc = parse_markdown("para\n\n    code line\n    more\n")
    code = doc.children[1]
    assert code.kind == NodeKind.CODE
    assert code.plain_text == "code line\nmore"
    assert code.attrs["fenced"] is False


def test_render_inline_links_and_images():
    assert render_inline("See [docs](https://x.io) and ![alt](a.png)") == "See docs and alt"
