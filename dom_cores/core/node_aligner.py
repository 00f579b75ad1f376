"""
Node Aligner
Aligns a reference member against every other member of a slot group and
marks nodes whose correspondence holds across enough members.

Algorithm (per group):
1. Seed: the reference root corresponds to each member's own root
2. Walk the reference subtree in preorder; for each node u and member m,
   look for u's counterpart among the children of u's parent's match in m
3. support(u) = members with a match / members
4. support >= threshold -> flag u and all its matches as core
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .core_flags import CoreFlagSet
from .reference_selector import ReferencePick, preorder_elements
from .tree_accessor import TreeAccessor, TreeAccessError

logger = logging.getLogger(__name__)

NO_MATCH = float('-inf')


def containment_score(required: Counter, candidate: Counter) -> float:
    """
    How well a candidate's child tags contain the reference's child tags

    Score is the sum over required tags of min(required, present). Any tag
    present fewer times than required rejects the candidate (-inf). Extra
    children are not penalized.
    """
    score = 0
    for tag, required_count in required.items():
        present = candidate.get(tag, 0)
        if present < required_count:
            return NO_MATCH
        score += min(required_count, present)
    return score


@dataclass
class _ReferenceProfile:
    tag: str
    ordinal: int
    child_count: int
    child_tags: Counter


@dataclass
class AlignedNode:
    """One reference node and its counterpart in each member (None = no match)"""
    reference: Any
    matches: List[Optional[Any]] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return sum(1 for m in self.matches if m is not None)

    @property
    def support(self) -> float:
        if not self.matches:
            return 0.0
        return self.match_count / len(self.matches)


@dataclass
class AlignmentResult:
    """Outcome of aligning and marking one group"""
    member_count: int
    reference_index: int
    reference_subtree_count: int
    reference_nodes: int = 0  # Reference nodes visited
    flagged_reference_nodes: int = 0  # Reference nodes that reached threshold
    newly_flagged: int = 0  # Nodes flagged for the first time by this group
    cap_hit: bool = False
    supports: List[float] = field(default_factory=list)  # Per reference node, preorder


class NodeAligner:
    """Top-down anchored alignment of group members against a reference"""

    def __init__(
        self,
        accessor: TreeAccessor,
        support_threshold: float = 0.8,
        max_nodes: Optional[int] = None,
        max_depth: Optional[int] = None
    ):
        self.accessor = accessor
        self.support_threshold = support_threshold
        self.max_nodes = max_nodes
        self.max_depth = max_depth

    def child_tag_counts(self, node: Any) -> Counter:
        return Counter(self.accessor.tag(child) for child in self.accessor.children(node))

    def _profile(self, ref_node: Any) -> _ReferenceProfile:
        children = self.accessor.children(ref_node)
        return _ReferenceProfile(
            tag=self.accessor.tag(ref_node),
            ordinal=self.accessor.same_tag_sibling_ordinal(ref_node),
            child_count=len(children),
            child_tags=Counter(self.accessor.tag(child) for child in children),
        )

    def _candidates(self, profile: _ReferenceProfile, member_parent: Any) -> List[Tuple[Any, int]]:
        """Same-tag children with at least the reference's child count, with ordinals"""
        candidates = []
        ordinal = 0

        for child in self.accessor.children(member_parent):
            try:
                if self.accessor.tag(child) != profile.tag:
                    continue
                ordinal += 1
                child_count = len(self.accessor.children(child))
            except TreeAccessError as e:
                logger.debug(f"   Unreadable candidate skipped: {e}")
                continue

            # Containment rule: more children allowed, never fewer
            if child_count < profile.child_count:
                continue
            candidates.append((child, ordinal))

        return candidates

    def find_best_match(
        self,
        ref_node: Any,
        member_parent: Any,
        profile: Optional[_ReferenceProfile] = None
    ) -> Optional[Any]:
        """
        Best counterpart of ref_node among member_parent's children

        Tie-breaks, in order:
        1. same-tag ordinal closest to the reference's own ordinal
        2. highest containment score of the reference's child tags
        3. first in document order

        Returns:
            Matching node, or None when no child qualifies
        """
        if member_parent is None or not self.accessor.is_element(member_parent):
            return None
        if profile is None:
            profile = self._profile(ref_node)

        candidates = self._candidates(profile, member_parent)
        if not candidates:
            return None
        if len(candidates) == 1:
            return candidates[0][0]

        best_distance = min(abs(ordinal - profile.ordinal) for _, ordinal in candidates)
        nearest = [
            node for node, ordinal in candidates
            if abs(ordinal - profile.ordinal) == best_distance
        ]
        if len(nearest) == 1:
            return nearest[0]

        best = None
        best_score = NO_MATCH
        for node in nearest:
            try:
                score = containment_score(profile.child_tags, self.child_tag_counts(node))
            except TreeAccessError:
                continue
            if score > best_score:
                best = node
                best_score = score

        # Nothing fully contains the reference: fall back to the first nearest
        return best if best is not None else nearest[0]

    def align(self, reference_root: Any, roots: Sequence[Any]) -> Tuple[List[AlignedNode], bool]:
        """
        Propagate correspondence from reference_root into every member root

        Args:
            reference_root: Chosen reference member
            roots: All member roots of the group (reference included)

        Returns:
            (aligned nodes in reference preorder, cap_hit)
        """
        ref_nodes, cap_hit = preorder_elements(
            self.accessor, reference_root, self.max_nodes, self.max_depth
        )

        # Per-member correspondence: id(reference node) -> member node
        correspondence: List[Dict[int, Any]] = [{id(reference_root): root} for root in roots]
        aligned = []

        for ref_node in ref_nodes:
            if ref_node is reference_root:
                aligned.append(AlignedNode(reference=ref_node, matches=list(roots)))
                continue

            try:
                ref_parent = self.accessor.parent(ref_node)
                profile = self._profile(ref_node)
            except TreeAccessError as e:
                logger.debug(f"   Unreadable reference node, no matches: {e}")
                aligned.append(AlignedNode(reference=ref_node, matches=[None] * len(roots)))
                continue

            matches = []
            for member_map in correspondence:
                # Unmatched parent -> unmatched node (and so all its descendants)
                member_parent = member_map.get(id(ref_parent)) if ref_parent is not None else None
                if member_parent is None:
                    matches.append(None)
                    continue

                try:
                    match = self.find_best_match(ref_node, member_parent, profile)
                except TreeAccessError as e:
                    logger.debug(f"   Host read failed while matching: {e}")
                    match = None

                if match is not None:
                    member_map[id(ref_node)] = match
                matches.append(match)

            aligned.append(AlignedNode(reference=ref_node, matches=matches))

        return aligned, cap_hit

    def align_group(
        self,
        roots: Sequence[Any],
        reference: ReferencePick,
        flags: CoreFlagSet
    ) -> AlignmentResult:
        """
        Align one group and flag supported nodes

        Args:
            roots: Element members of the group, in document order
            reference: Pick from ReferenceSelector
            flags: Caller-owned flag set; only ever added to

        Returns:
            AlignmentResult with per-group diagnostics
        """
        aligned, cap_hit = self.align(reference.node, roots)

        result = AlignmentResult(
            member_count=len(roots),
            reference_index=reference.index,
            reference_subtree_count=reference.subtree_count,
            reference_nodes=len(aligned),
            cap_hit=cap_hit,
        )

        for node in aligned:
            support = node.support
            result.supports.append(support)
            if support < self.support_threshold:
                continue

            result.flagged_reference_nodes += 1
            if flags.mark(node.reference):
                result.newly_flagged += 1
            result.newly_flagged += flags.mark_all(node.matches)

        if cap_hit:
            logger.warning(
                f" Node cap reached while aligning ({len(aligned)} reference nodes); "
                f"unreached nodes left unmatched"
            )

        return result
