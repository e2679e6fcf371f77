# ───────────────────────── tests/test_document.py ─────────────────────────
"""
Tests for the document node model and the markdown/text builders.
"""

import pytest

from proofscan.document import Node, NodeType, parse_markdown, parse_text


def strs(document):
    return [n for n in document.walk() if n.type is NodeType.STR]


def types(document):
    return [n.type for n in document.walk()]


class TestNode:
    """Test tree helpers."""

    def test_is_child_of(self):
        root = Node(NodeType.DOCUMENT, 0, 10)
        quote = root.append(Node(NodeType.BLOCK_QUOTE, 0, 10))
        paragraph = quote.append(Node(NodeType.PARAGRAPH, 2, 10))
        leaf = paragraph.append(Node(NodeType.STR, 2, 10, "teh"))

        assert leaf.is_child_of([NodeType.BLOCK_QUOTE])
        assert not leaf.is_child_of([NodeType.LINK])
        assert not root.is_child_of([NodeType.DOCUMENT])

    def test_walk_order(self):
        root = Node(NodeType.DOCUMENT, 0, 3)
        first = root.append(Node(NodeType.PARAGRAPH, 0, 1))
        second = root.append(Node(NodeType.PARAGRAPH, 2, 3))
        assert list(root.walk()) == [root, first, second]


class TestParseMarkdown:
    """Test the markdown builder."""

    def test_offsets_match_source(self):
        source = "# Title teh\n\nHello *there* and **teh** [link](http://x) end\n"
        for node in strs(parse_markdown(source)):
            assert source[node.start:node.end] == node.value

    def test_paragraph(self):
        document = parse_markdown("teh cat")
        assert [(n.start, n.end, n.value) for n in strs(document)] == [(0, 7, "teh cat")]
        assert document.children[0].type is NodeType.PARAGRAPH

    def test_block_quote(self):
        source = "intro\n\n> teh dog\n> more\n"
        document = parse_markdown(source)

        quoted = [n for n in strs(document) if n.is_child_of([NodeType.BLOCK_QUOTE])]
        assert [n.value for n in quoted] == ["teh dog", "more"]
        assert quoted[0].start == source.index("teh dog")

    def test_inline_spans(self):
        document = parse_markdown("a *b* **c** [d](u) ![e](i.png) `f` <https://g.example>")
        assert NodeType.EMPHASIS in types(document)
        assert NodeType.STRONG in types(document)
        assert NodeType.LINK in types(document)
        assert NodeType.IMAGE in types(document)
        assert NodeType.CODE in types(document)

        emphasized = [n.value for n in strs(document) if n.is_child_of([NodeType.EMPHASIS])]
        linked = [n.value for n in strs(document) if n.is_child_of([NodeType.LINK])]
        strong = [n.value for n in strs(document) if n.is_child_of([NodeType.STRONG])]
        assert emphasized == ["b"]
        assert linked == ["d"]
        assert strong == ["c"]
        assert "e" not in [n.value for n in strs(document)]
        assert "f" not in [n.value for n in strs(document)]

    def test_strong_emphasis_nests_emphasis(self):
        source = "a ***teh*** b ___teh___"
        document = parse_markdown(source)

        inner = [n for n in strs(document) if n.value == "teh"]
        assert len(inner) == 2
        assert all(n.is_child_of([NodeType.EMPHASIS]) for n in inner)
        assert all(n.is_child_of([NodeType.STRONG]) for n in inner)
        assert inner[0].start == source.index("teh")
        assert "*teh" not in [n.value for n in strs(document)]

    def test_underscore_inside_word_is_not_emphasis(self):
        document = parse_markdown("snake_case_name")
        assert NodeType.EMPHASIS not in types(document)
        assert [n.value for n in strs(document)] == ["snake_case_name"]

    def test_code_block_has_no_text(self):
        document = parse_markdown("```\nteh\n```\nafter")
        assert [n.value for n in strs(document)] == ["after"]
        assert document.children[0].type is NodeType.CODE_BLOCK

    def test_heading(self):
        document = parse_markdown("## teh title ##")
        assert document.children[0].type is NodeType.HEADER
        assert [n.value for n in strs(document)] == ["teh title"]


class TestParseText:
    """Test the plain text builder."""

    def test_lines_are_str_nodes(self):
        source = "> teh\n*teh*\n\nlast"
        document = parse_text(source)

        assert [n.value for n in strs(document)] == ["> teh", "*teh*", "last"]
        assert len(document.children) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
