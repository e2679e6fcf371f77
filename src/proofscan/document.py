# ───────────────────────── src/proofscan/document.py ─────────────────────────
"""
Document node model handed to the scanner.

The scanner only needs a tree of typed nodes with source offsets: it reads
the text of ``Str`` nodes and asks whether a node sits inside a quotation,
link, image or emphasis. Hosts with their own parser can build ``Node`` trees
directly; ``parse_markdown`` and ``parse_text`` cover the common cases.

The markdown builder is small. It recognizes ATX headings,
fenced code blocks, block quotes, paragraphs, and inline code, images, links,
autolinks, strong and emphasis spans. Code never produces ``Str`` nodes.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional


class NodeType(Enum):
    DOCUMENT = "Document"
    PARAGRAPH = "Paragraph"
    HEADER = "Header"
    BLOCK_QUOTE = "BlockQuote"
    CODE_BLOCK = "CodeBlock"
    STR = "Str"
    CODE = "Code"
    LINK = "Link"
    IMAGE = "Image"
    STRONG = "Strong"
    EMPHASIS = "Emphasis"


@dataclass(eq=False)
class Node:
    """A document node covering ``source[start:end]``.

    Attributes:
        type: Node type.
        start: Start offset in the document source.
        end: Exclusive end offset.
        value: Text of leaf nodes (``Str``, ``Code``, ``Image`` alt text);
            the whole source for the ``Document`` node.
        children: Child nodes in document order.
        parent: Enclosing node, None for the root.
    """

    type: NodeType
    start: int
    end: int
    value: str = ""
    children: List["Node"] = field(default_factory=list)
    parent: Optional["Node"] = field(default=None, repr=False)

    def append(self, child: "Node") -> "Node":
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator["Node"]:
        """Yield this node and its descendants in document order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def is_child_of(self, types: Iterable[NodeType]) -> bool:
        """Tell whether any ancestor has one of the given types."""
        wanted = set(types)
        node = self.parent
        while node is not None:
            if node.type in wanted:
                return True
            node = node.parent
        return False


_FENCE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_HEADING = re.compile(r"^ {0,3}#{1,6}[ \t]+(?P<body>.*?)[ \t#]*$")
_QUOTE = re.compile(r"^ {0,3}> ?(?P<body>.*)$")

_INLINE = re.compile(
    r"(?P<code>`+)(?P<code_body>.+?)(?P=code)"
    r"|(?P<image>!\[(?P<alt>[^\]]*)\]\([^)\s]*(?:\s+\"[^\"]*\")?\))"
    r"|(?P<link>\[(?P<label>[^\]]+)\]\([^)\s]*(?:\s+\"[^\"]*\")?\))"
    r"|(?P<autolink><(?:https?|mailto):[^>\s]+>)"
    r"|(?P<strong_em>\*\*\*(?P<strong_em_star>[^*\s][^*]*?)\*\*\*"
    r"|(?<!\w)___(?P<strong_em_under>[^_\s][^_]*?)___(?!\w))"
    r"|(?P<strong>\*\*(?P<strong_star>.+?)\*\*|(?<!\w)__(?P<strong_under>.+?)__(?!\w))"
    r"|(?P<emphasis>\*(?P<em_star>[^*\s][^*]*?)\*"
    r"|(?<!\w)_(?P<em_under>[^_\s][^_]*?)_(?!\w))"
)


def _str(parent: Node, source: str, start: int, end: int) -> None:
    if start < end:
        parent.append(Node(NodeType.STR, start, end, source[start:end]))


def _parse_inline(parent: Node, source: str, start: int, end: int) -> None:
    """Parse ``source[start:end]`` into inline children of ``parent``."""
    position = start
    for m in _INLINE.finditer(source, start, end):
        _str(parent, source, position, m.start())
        position = m.end()

        if m.group("code") is not None:
            parent.append(Node(NodeType.CODE, m.start(), m.end(), m.group("code_body")))
        elif m.group("image") is not None:
            parent.append(Node(NodeType.IMAGE, m.start(), m.end(), m.group("alt")))
        elif m.group("link") is not None:
            link = parent.append(Node(NodeType.LINK, m.start(), m.end()))
            _parse_inline(link, source, *m.span("label"))
        elif m.group("autolink") is not None:
            parent.append(Node(NodeType.LINK, m.start(), m.end()))
        elif m.group("strong_em") is not None:
            body = "strong_em_star" if m.group("strong_em_star") is not None else "strong_em_under"
            strong = parent.append(Node(NodeType.STRONG, m.start(), m.end()))
            emphasis = strong.append(Node(NodeType.EMPHASIS, m.start() + 2, m.end() - 2))
            _parse_inline(emphasis, source, *m.span(body))
        else:
            if m.group("strong") is not None:
                node_type = NodeType.STRONG
                body = "strong_star" if m.group("strong_star") is not None else "strong_under"
            else:
                node_type = NodeType.EMPHASIS
                body = "em_star" if m.group("em_star") is not None else "em_under"
            span = parent.append(Node(node_type, m.start(), m.end()))
            _parse_inline(span, source, *m.span(body))

    _str(parent, source, position, end)


def _lines(source: str) -> Iterator[tuple]:
    """Yield (start, end) offsets of each line, excluding the line break."""
    offset = 0
    for line in source.splitlines(keepends=True):
        content = line.rstrip("\r\n")
        yield offset, offset + len(content)
        offset += len(line)


def parse_markdown(source: str) -> Node:
    """Build a node tree from markdown source.

    Args:
        source: Markdown text.

    Returns:
        The ``Document`` root node.

    Examples:
        >>> doc = parse_markdown("teh cat\\n\\n> teh dog")
        >>> [n.value for n in doc.walk() if n.type is NodeType.STR]
        ['teh cat', 'teh dog']
    """
    document = Node(NodeType.DOCUMENT, 0, len(source), source)
    paragraph: Optional[Node] = None
    quote: Optional[Node] = None
    quote_paragraph: Optional[Node] = None
    fence: Optional[str] = None
    code_block: Optional[Node] = None

    for start, end in _lines(source):
        line = source[start:end]

        if fence is not None:
            code_block.end = end
            if line.strip().startswith(fence):
                fence = None
            continue

        fence_match = _FENCE.match(line)
        if fence_match:
            paragraph = quote = quote_paragraph = None
            fence = fence_match.group(1)
            code_block = document.append(Node(NodeType.CODE_BLOCK, start, end))
            continue

        if not line.strip():
            paragraph = quote = quote_paragraph = None
            continue

        quote_match = _QUOTE.match(line)
        if quote_match:
            paragraph = None
            if quote is None:
                quote = document.append(Node(NodeType.BLOCK_QUOTE, start, end))
            quote.end = end
            if not quote_match.group("body").strip():
                quote_paragraph = None
                continue
            body_start, body_end = (start + i for i in quote_match.span("body"))
            if quote_paragraph is None:
                quote_paragraph = quote.append(
                    Node(NodeType.PARAGRAPH, body_start, body_end)
                )
            quote_paragraph.end = body_end
            _parse_inline(quote_paragraph, source, body_start, body_end)
            continue

        quote = quote_paragraph = None

        heading_match = _HEADING.match(line)
        if heading_match:
            paragraph = None
            header = document.append(Node(NodeType.HEADER, start, end))
            _parse_inline(header, source, *(start + i for i in heading_match.span("body")))
            continue

        if paragraph is None:
            paragraph = document.append(Node(NodeType.PARAGRAPH, start, end))
        paragraph.end = end
        _parse_inline(paragraph, source, start, end)

    return document


def parse_text(source: str) -> Node:
    """Build a node tree from plain text: paragraphs of ``Str`` lines.

    Examples:
        >>> doc = parse_text("> teh")
        >>> [n.value for n in doc.walk() if n.type is NodeType.STR]
        ['> teh']
    """
    document = Node(NodeType.DOCUMENT, 0, len(source), source)
    paragraph: Optional[Node] = None
    for start, end in _lines(source):
        if not source[start:end].strip():
            paragraph = None
            continue
        if paragraph is None:
            paragraph = document.append(Node(NodeType.PARAGRAPH, start, end))
        paragraph.end = end
        _str(paragraph, source, start, end)
    return document
