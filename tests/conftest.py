"""Shared fixtures and tree builders"""

from typing import Any, List, Optional

import pytest

from dom_cores.core.tree_accessor import SoupTreeAccessor, TreeAccessor


@pytest.fixture
def accessor():
    return SoupTreeAccessor()


def page(body: str) -> str:
    return f"<html><head></head><body>{body}</body></html>"


class Node:
    """Plain in-memory element for accessor tests that do not need HTML"""

    def __init__(self, tag: str, children: Optional[List['Node']] = None):
        self.tag = tag
        self.parent = None
        self.children = []
        for child in children or []:
            self.append(child)

    def append(self, child: 'Node') -> 'Node':
        child.parent = self
        self.children.append(child)
        return child


class NodeAccessor(TreeAccessor):
    """TreeAccessor over Node objects, using the default ordinal lookup"""

    def is_element(self, node: Any) -> bool:
        return isinstance(node, Node)

    def tag(self, node: Any) -> str:
        return node.tag

    def parent(self, node: Any) -> Optional[Any]:
        return node.parent

    def children(self, node: Any) -> List[Any]:
        return list(node.children)
