"""
Tree Accessor
Read-only view of an element tree, plus the BeautifulSoup host adapter
"""

import logging
from typing import Any, List, Optional, Tuple
from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)


class TreeAccessError(RuntimeError):
    """Raised by an accessor when the host cannot read a node"""


class TreeAccessor:
    """
    Narrow interface the core uses to read the host tree.

    Nodes are opaque handles. The core never compares them with ``==``;
    identity is ``id(node)``. Anything that is not an element (text,
    comments, the document object) must be reported by ``is_element``
    as False and is skipped by every traversal.
    """

    def is_element(self, node: Any) -> bool:
        raise NotImplementedError

    def tag(self, node: Any) -> str:
        raise NotImplementedError

    def parent(self, node: Any) -> Optional[Any]:
        raise NotImplementedError

    def children(self, node: Any) -> List[Any]:
        raise NotImplementedError

    def attribute(self, node: Any, name: str) -> Optional[str]:
        return None

    def same_tag_sibling_ordinal(self, node: Any) -> int:
        """1-based rank of node among same-tag siblings (XPath convention)"""
        parent = self.parent(node)
        if parent is None:
            return 1

        tag = self.tag(node)
        ordinal = 0
        for child in self.children(parent):
            if self.tag(child) == tag:
                ordinal += 1
            if child is node:
                return ordinal

        return 1

    def describe(self, node: Any) -> str:
        """Short ``tag#id.class`` label for logs and summaries"""
        if not self.is_element(node):
            return '?'

        label = self.tag(node)
        node_id = self.attribute(node, 'id')
        if node_id:
            label += f"#{node_id}"
        classes = (self.attribute(node, 'class') or '').split()
        if classes:
            label += f".{classes[0]}"
        return label


class SoupTreeAccessor(TreeAccessor):
    """TreeAccessor over a BeautifulSoup parse tree"""

    def is_element(self, node: Any) -> bool:
        return isinstance(node, Tag) and not isinstance(node, BeautifulSoup)

    def tag(self, node: Any) -> str:
        name = getattr(node, 'name', None)
        if not name:
            raise TreeAccessError(f"Node without a tag name: {type(node).__name__}")
        return name.lower()

    def parent(self, node: Any) -> Optional[Any]:
        parent = node.parent
        return parent if self.is_element(parent) else None

    def children(self, node: Any) -> List[Any]:
        return [child for child in node.children if self.is_element(child)]

    def attribute(self, node: Any, name: str) -> Optional[str]:
        value = node.get(name)
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return ' '.join(value)
        return str(value)

    def same_tag_sibling_ordinal(self, node: Any) -> int:
        tag = self.tag(node)
        ordinal = 1
        for sibling in node.previous_siblings:
            if self.is_element(sibling) and sibling.name and sibling.name.lower() == tag:
                ordinal += 1
        return ordinal


def parse_html(html: str, parser: str = 'html.parser') -> Tuple[BeautifulSoup, Optional[Tag]]:
    """
    Parse HTML and locate the root element

    Args:
        html: Raw HTML document or fragment
        parser: BeautifulSoup parser name ('html.parser' or 'lxml')

    Returns:
        (soup, root) where root is <html>, or the first top-level element
        for fragments, or None for documents without elements
    """
    soup = BeautifulSoup(html, parser)

    root = soup.find('html')
    if root is None:
        root = soup.find(True, recursive=False)

    if root is None:
        logger.debug("   Parsed document has no elements")

    return soup, root
