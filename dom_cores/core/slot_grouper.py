"""
Slot Grouper
Groups same-tag siblings under one parent by starred XPath signature
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .tree_accessor import TreeAccessor, TreeAccessError

logger = logging.getLogger(__name__)


@dataclass
class SlotGroup:
    """Same-tag siblings under one parent, in document order"""
    signature: str  # e.g. /html[1]/body[1]/ul[2]/li[*]
    members: List[Any] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.members)


class SlotGrouper:
    """
    Partition a tree into structural slots

    Example: every <li> directly under /html[1]/body[1]/ul[2] lands in the
    group "/html[1]/body[1]/ul[2]/li[*]". A parent holding <li>, <div> and
    <span> children yields three groups.
    """

    def __init__(self, accessor: TreeAccessor):
        self.accessor = accessor

    def xpath_parts(self, node: Any) -> List[str]:
        """Path segments root->node, each like 'div[2]'"""
        parts = []
        current = node
        while current is not None and self.accessor.is_element(current):
            tag = self.accessor.tag(current)
            parts.append(f"{tag}[{self.accessor.same_tag_sibling_ordinal(current)}]")
            current = self.accessor.parent(current)
        parts.reverse()
        return parts

    def xpath(self, node: Any) -> Optional[str]:
        try:
            parts = self.xpath_parts(node)
        except TreeAccessError as e:
            logger.debug(f"   No xpath for node: {e}")
            return None
        return '/' + '/'.join(parts) if parts else None

    def parent_xpath(self, node: Any) -> Optional[str]:
        try:
            parent = self.accessor.parent(node)
        except TreeAccessError:
            return None
        if parent is None:
            return None
        return self.xpath(parent)

    def xpath_star(self, node: Any) -> Optional[str]:
        """XPath with the last ordinal replaced by a wildcard"""
        try:
            parts = self.xpath_parts(node)
        except TreeAccessError as e:
            logger.debug(f"   No starred xpath for node: {e}")
            return None
        if not parts:
            return None

        last = parts[-1]
        parts[-1] = last[:last.rindex('[')] + '[*]'
        return '/' + '/'.join(parts)

    def _walk_slots(self, root: Any) -> Dict[str, Dict[str, List[Any]]]:
        """
        One preorder pass collecting both groupings.

        Returns:
            {'star': {starred xpath: members}, 'parent': {parent xpath: children}}
        """
        by_star: Dict[str, List[Any]] = {}
        by_parent: Dict[str, List[Any]] = {}

        if root is None or not self.accessor.is_element(root):
            return {'star': by_star, 'parent': by_parent}

        root_path = self.xpath(root)
        root_star = self.xpath_star(root)
        if root_path is None or root_star is None:
            logger.warning(" Root element is unreadable, no slots to group")
            return {'star': by_star, 'parent': by_parent}

        by_star.setdefault(root_star, []).append(root)
        stack = [(root, root_path)]

        while stack:
            node, path = stack.pop()

            try:
                children = self.accessor.children(node)
            except TreeAccessError as e:
                logger.debug(f"   Skipping children of {path}: {e}")
                continue

            ordinals: Dict[str, int] = {}
            visited = []
            for child in children:
                try:
                    tag = self.accessor.tag(child)
                except TreeAccessError as e:
                    logger.debug(f"   Skipping malformed child of {path}: {e}")
                    continue

                ordinals[tag] = ordinals.get(tag, 0) + 1
                by_star.setdefault(f"{path}/{tag}[*]", []).append(child)
                by_parent.setdefault(path, []).append(child)
                visited.append((child, f"{path}/{tag}[{ordinals[tag]}]"))

            # Reversed so siblings are expanded in document order
            stack.extend(reversed(visited))

        return {'star': by_star, 'parent': by_parent}

    def group(self, root: Any, min_group_size: int = 1) -> List[SlotGroup]:
        """
        Group the tree's elements by starred XPath

        Args:
            root: Tree root (or subtree root; signatures stay absolute)
            min_group_size: Drop groups with fewer members

        Returns:
            Groups ordered by the document position of their first member
        """
        by_star = self._walk_slots(root)['star']
        groups = [
            SlotGroup(signature=signature, members=members)
            for signature, members in by_star.items()
            if len(members) >= min_group_size
        ]

        logger.info(
            f" Found {len(groups)} slot groups with >= {min_group_size} members "
            f"({len(by_star)} slots total)"
        )
        return groups

    def group_by_parent(self, root: Any, min_group_size: int = 1) -> List[SlotGroup]:
        """Group siblings of any tag under their parent's xpath"""
        by_parent = self._walk_slots(root)['parent']
        return [
            SlotGroup(signature=signature, members=members)
            for signature, members in by_parent.items()
            if len(members) >= min_group_size
        ]

    @staticmethod
    def from_mapping(
        mapping: Mapping[str, Sequence[Any]],
        min_group_size: int = 1
    ) -> List[SlotGroup]:
        """Wrap a precomputed signature -> members mapping as groups"""
        groups = []
        for signature, members in mapping.items():
            if not members or len(members) < min_group_size:
                continue
            groups.append(SlotGroup(signature=signature, members=list(members)))
        return groups

    @staticmethod
    def top_groups(groups: Sequence[SlotGroup], top_n: int = 10) -> List[SlotGroup]:
        """Largest groups first (stable for equal sizes)"""
        return sorted(groups, key=lambda g: g.size, reverse=True)[:top_n]
