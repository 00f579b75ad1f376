"""
Core flag set - caller-owned, monotonic "core" marking keyed by node identity
"""

from typing import Any, Dict, Iterable, Iterator, List


class CoreFlagSet:
    """
    Set of nodes flagged as core.

    Keys are ``id(node)``; the node itself is held so the id stays valid for
    the lifetime of the set. Marking is idempotent and flags are never
    cleared by marking, only by an explicit ``clear()``.
    """

    def __init__(self):
        self._nodes: Dict[int, Any] = {}

    def mark(self, node: Any) -> bool:
        """Flag node; returns True only if it was not flagged before"""
        key = id(node)
        if key in self._nodes:
            return False
        self._nodes[key] = node
        return True

    def mark_all(self, nodes: Iterable[Any]) -> int:
        """Flag every node; returns how many were newly flagged"""
        newly = 0
        for node in nodes:
            if node is not None and self.mark(node):
                newly += 1
        return newly

    def update(self, other: 'CoreFlagSet') -> int:
        """Union with another flag set (order-independent merge)"""
        return self.mark_all(other.nodes())

    def clear(self):
        self._nodes.clear()

    def nodes(self) -> List[Any]:
        """Flagged nodes in the order they were first flagged"""
        return list(self._nodes.values())

    def __contains__(self, node: Any) -> bool:
        return id(node) in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._nodes.values()))

    def __repr__(self) -> str:
        return f"CoreFlagSet({len(self._nodes)} nodes)"
