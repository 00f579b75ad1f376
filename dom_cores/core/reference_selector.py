"""
Reference Selector
Picks the median-sized group member as the alignment reference
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from .tree_accessor import TreeAccessor, TreeAccessError

logger = logging.getLogger(__name__)


def _element_children(accessor: TreeAccessor, node: Any) -> List[Any]:
    try:
        return accessor.children(node)
    except TreeAccessError as e:
        logger.debug(f"   Unreadable children skipped: {e}")
        return []


def count_subtree_elements(
    accessor: TreeAccessor,
    root: Any,
    max_nodes: Optional[int] = None,
    max_depth: Optional[int] = None
) -> Tuple[int, bool]:
    """
    Count element nodes in root's subtree (root included)

    Uses an explicit stack, so arbitrarily deep trees are safe. Counting
    stops at max_nodes; nodes deeper than max_depth below root are skipped.

    Returns:
        (count, cap_hit) where cap_hit tells whether an element was left
        uncounted because of max_nodes or max_depth
    """
    count = 0
    cap_hit = False
    stack = [(root, 0)]

    while stack:
        node, depth = stack.pop()
        if not accessor.is_element(node):
            continue
        if max_depth is not None and depth > max_depth:
            cap_hit = True
            continue
        if max_nodes is not None and count >= max_nodes:
            cap_hit = True
            break

        count += 1
        stack.extend((child, depth + 1) for child in _element_children(accessor, node))

    return count, cap_hit


def preorder_elements(
    accessor: TreeAccessor,
    root: Any,
    max_nodes: Optional[int] = None,
    max_depth: Optional[int] = None
) -> Tuple[List[Any], bool]:
    """
    Element nodes of root's subtree in preorder (parents before children)

    Returns:
        (nodes, cap_hit) where cap_hit tells whether max_nodes or max_depth
        cut the walk short
    """
    nodes = []
    cap_hit = False
    stack = [(root, 0)]

    while stack:
        node, depth = stack.pop()
        if not accessor.is_element(node):
            continue
        if max_depth is not None and depth > max_depth:
            cap_hit = True
            continue
        if max_nodes is not None and len(nodes) >= max_nodes:
            cap_hit = True
            break

        nodes.append(node)

        # Reversed so the first child is popped first
        children = _element_children(accessor, node)
        for child in reversed(children):
            stack.append((child, depth + 1))

    return nodes, cap_hit


@dataclass
class ReferencePick:
    """Chosen reference member of a group"""
    node: Any
    index: int  # Position in the group's member list
    subtree_count: int
    truncated: bool = False  # This member's count was cut short by a cap
    group_truncated: bool = False  # Any measured member's count was


class ReferenceSelector:
    """
    Median-size reference selection.

    The smallest instance tends to lack optional trailing parts most
    instances have; the largest may carry injected extras. The lower
    median sits between both.
    """

    def __init__(
        self,
        accessor: TreeAccessor,
        max_nodes: Optional[int] = None,
        max_depth: Optional[int] = None
    ):
        self.accessor = accessor
        self.max_nodes = max_nodes
        self.max_depth = max_depth

    def measure(self, members: Sequence[Any]) -> List[ReferencePick]:
        """Subtree size of every element member, in group order"""
        sized = []
        for index, node in enumerate(members):
            if not self.accessor.is_element(node):
                continue
            count, truncated = count_subtree_elements(
                self.accessor, node, self.max_nodes, self.max_depth
            )
            sized.append(ReferencePick(
                node=node, index=index, subtree_count=count, truncated=truncated
            ))
        return sized

    def pick(self, members: Sequence[Any]) -> Optional[ReferencePick]:
        """
        Pick the lower-median member by subtree element count

        Args:
            members: Group members in document order

        Returns:
            ReferencePick, or None when no member is an element
        """
        sized = self.measure(members)
        if not sized:
            return None

        # sorted() is stable: equal counts keep document order
        ranked = sorted(sized, key=lambda pick: pick.subtree_count)
        chosen = ranked[len(ranked) // 2]
        chosen.group_truncated = any(p.truncated for p in sized)
        if chosen.group_truncated:
            logger.debug("   Some member counts were capped; median may be approximate")

        logger.debug(
            f"   Reference #{chosen.index} of {len(sized)} "
            f"(subtree={chosen.subtree_count}, "
            f"range={ranked[0].subtree_count}..{ranked[-1].subtree_count})"
        )
        return chosen
