"""Detection of `<meta name="robots" content="noindex">` in HTML files.

The document is streamed through lxml's HTML parser into a small node arena:
each node records its kind and the index of its parent, which is all the
ancestry check needs. The arena is dropped as soon as the answer is known.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Optional, Tuple

from lxml import etree

from .log import get_logger

logger = get_logger("sitemap_from_files.html_meta")

CHUNK_SIZE = 64 * 1024
DOCUMENT = 0

# Elements that HTML5 moves back into `<head>` when they appear between
# `</head>` and `<body>`.
HEAD_CONTENT = frozenset({
    "base", "basefont", "bgsound", "link", "meta", "noframes", "script", "style", "template", "title",
})


class NodeKind(enum.Enum):
    DOCUMENT = "document"
    ELEMENT = "element"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "pi"
    DOCUMENT_FRAGMENT = "fragment"


@dataclass
class Node:
    kind: NodeKind
    parent: Optional[int] = None
    name: Optional[str] = None
    is_meta_name_robots: bool = False
    is_meta_content_noindex: bool = False


@dataclass(frozen=True)
class HtmlMeta:
    no_index: bool


def _content_has_noindex(content: str) -> bool:
    return any(part.strip().lower() == "noindex" for part in content.split(","))


class _ArenaBuilder:
    """lxml parser target that records nodes and parent links."""

    def __init__(self) -> None:
        self.nodes: List[Node] = [Node(NodeKind.DOCUMENT)]
        self.meta_elements: List[int] = []
        # (element index, index new children attach to); a template's
        # children attach to its parentless content fragment.
        self._open: List[Tuple[int, int]] = [(DOCUMENT, DOCUMENT)]
        self._head: Optional[int] = None
        self._head_closed = False
        self._body_seen = False

    def _add(self, node: Node) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    @property
    def _insertion_parent(self) -> int:
        return self._open[-1][1]

    def _is_root_html(self, index: int) -> bool:
        return self._is_element(index, "html") and self.nodes[index].parent == DOCUMENT

    def _parent_for(self, name: str) -> int:
        parent = self._insertion_parent
        if name in HEAD_CONTENT:
            if self._head_closed and not self._body_seen and self._is_root_html(parent):
                return self._head
        elif name not in ("html", "head") and (self._head_closed or name in ("body", "frameset")):
            self._body_seen = True
        return parent

    def start(self, tag: str, attrib: Dict[str, str], nsmap=None) -> None:
        name = tag.lower() if isinstance(tag, str) else str(tag)
        node = Node(NodeKind.ELEMENT, parent=self._parent_for(name), name=name)
        index = self._add(node)
        if name == "head" and self._head is None:
            self._head = index

        if name == "meta":
            name_attr = attrib.get("name")
            content_attr = attrib.get("content")
            node.is_meta_name_robots = name_attr == "robots"
            node.is_meta_content_noindex = content_attr is not None and _content_has_noindex(content_attr)
            self.meta_elements.append(index)

        if name == "template":
            fragment = self._add(Node(NodeKind.DOCUMENT_FRAGMENT))
            self._open.append((index, fragment))
        else:
            self._open.append((index, index))

    def end(self, tag: str) -> None:
        name = tag.lower() if isinstance(tag, str) else str(tag)
        for depth in range(len(self._open) - 1, 0, -1):
            if self.nodes[self._open[depth][0]].name == name:
                if any(element == self._head for element, _ in self._open[depth:]):
                    self._head_closed = True
                del self._open[depth:]
                return

    def data(self, data: str) -> None:
        if self._head_closed and data.strip():
            self._body_seen = True

    def comment(self, text: str) -> None:
        self._add(Node(NodeKind.COMMENT, parent=self._insertion_parent))

    def pi(self, target: str, data: Optional[str] = None) -> None:
        self._add(Node(NodeKind.PROCESSING_INSTRUCTION, parent=self._insertion_parent))

    def doctype(self, name, pubid, system) -> None:
        pass

    def close(self) -> None:
        return None

    def _is_element(self, index: int, name: str) -> bool:
        node = self.nodes[index]
        return node.kind is NodeKind.ELEMENT and node.name == name

    def is_noindex_meta(self, index: int) -> bool:
        node = self.nodes[index]
        if not (node.is_meta_name_robots and node.is_meta_content_noindex):
            return False
        # Only `Document > html > head > meta` counts.
        head = node.parent
        if head is None or not self._is_element(head, "head"):
            return False
        html = self.nodes[head].parent
        if html is None or not self._is_element(html, "html"):
            return False
        return self.nodes[html].parent == DOCUMENT

    def no_index(self) -> bool:
        return any(self.is_noindex_meta(index) for index in self.meta_elements)


class HtmlMetaScanner:
    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def read(self, stream: BinaryIO) -> HtmlMeta:
        """Parse ``stream`` as HTML and report whether it asks not to be indexed.

        Markup errors never fail the scan; whatever tree the parser managed to
        build is evaluated. Errors raised while reading ``stream`` propagate.
        """
        builder = _ArenaBuilder()
        parser = etree.HTMLParser(
            target=builder,
            encoding="utf-8",
            recover=True,
            no_network=True,
            remove_comments=False,
            remove_pis=False,
        )

        fed = False
        try:
            while True:
                chunk = stream.read(self.chunk_size)
                if not chunk:
                    break
                fed = True
                parser.feed(chunk)
            if fed:
                parser.close()
        except etree.LxmlError as exc:
            logger.debug(f"Ignoring HTML parse error: {exc}")

        return HtmlMeta(no_index=builder.no_index())
