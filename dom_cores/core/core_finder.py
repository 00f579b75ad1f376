"""
Core Finder - Main orchestration class
Slot grouping -> reference selection -> alignment -> support marking
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .config import CoreConfig
from .core_flags import CoreFlagSet
from .node_aligner import NodeAligner
from .reference_selector import ReferenceSelector
from .slot_grouper import SlotGroup, SlotGrouper
from .tree_accessor import SoupTreeAccessor, TreeAccessor, parse_html

logger = logging.getLogger(__name__)


@dataclass
class GroupSummary:
    """Per-group diagnostics"""
    signature: str
    member_count: int
    reference_index: int = -1
    reference_subtree_count: int = 0
    reference_label: Optional[str] = None
    reference_nodes: int = 0
    flagged_reference_nodes: int = 0
    newly_flagged: int = 0
    cap_hit: bool = False
    skipped_reason: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CoreRunResult:
    """Flags plus diagnostics of one run"""
    flags: CoreFlagSet
    groups: List[SlotGroup] = field(default_factory=list)
    summaries: List[GroupSummary] = field(default_factory=list)
    root: Optional[Any] = None
    execution_time: float = 0.0

    @property
    def newly_flagged(self) -> int:
        return sum(s.newly_flagged for s in self.summaries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'flagged_nodes': len(self.flags),
            'newly_flagged': self.newly_flagged,
            'group_count': len(self.groups),
            'execution_time': round(self.execution_time, 4),
            'groups': [s.to_dict() for s in self.summaries],
        }


GroupsInput = Union[Mapping[str, Sequence[Any]], Sequence[SlotGroup]]


class CoreFinder:
    """
    Find repeating structural cores in an element tree

    Flags live in a caller-owned CoreFlagSet. Runs only ever add flags;
    call reset() (or set config.clear_existing_flags) before an
    independent run.
    """

    def __init__(
        self,
        accessor: Optional[TreeAccessor] = None,
        config: Optional[CoreConfig] = None
    ):
        self.accessor = accessor or SoupTreeAccessor()
        self.config = config or CoreConfig()

        self.grouper = SlotGrouper(self.accessor)
        self.selector = ReferenceSelector(
            self.accessor,
            max_nodes=self.config.max_nodes_per_group,
            max_depth=self.config.max_depth
        )
        self.aligner = NodeAligner(
            self.accessor,
            support_threshold=self.config.support_threshold,
            max_nodes=self.config.max_nodes_per_group,
            max_depth=self.config.max_depth
        )

    def reset(self, flags: CoreFlagSet):
        """Clear every flag before a fresh run"""
        cleared = len(flags)
        flags.clear()
        logger.debug(f"   Cleared {cleared} core flags")

    def _resolve_groups(self, root: Any, groups: Optional[GroupsInput]) -> List[SlotGroup]:
        min_size = self.config.min_group_size
        if groups is None:
            return self.grouper.group(root, min_size)
        if isinstance(groups, Mapping):
            return SlotGrouper.from_mapping(groups, min_size)
        return [g for g in groups if g.size >= min_size]

    def process_group(self, group: SlotGroup, flags: CoreFlagSet) -> GroupSummary:
        """Align and mark a single group; never raises for data problems"""
        summary = GroupSummary(signature=group.signature, member_count=group.size)

        roots = [m for m in group.members if self.accessor.is_element(m)]
        if len(roots) < 2:
            summary.skipped_reason = 'degenerate'
            logger.debug(f"   Skipping {group.signature}: {len(roots)} element member(s)")
            return summary

        reference = self.selector.pick(group.members)
        if reference is None:
            summary.skipped_reason = 'no_reference'
            return summary

        summary.reference_index = reference.index
        summary.reference_subtree_count = reference.subtree_count
        summary.reference_label = self.accessor.describe(reference.node)

        result = self.aligner.align_group(roots, reference, flags)

        summary.member_count = result.member_count
        summary.reference_nodes = result.reference_nodes
        summary.flagged_reference_nodes = result.flagged_reference_nodes
        summary.newly_flagged = result.newly_flagged
        summary.cap_hit = result.cap_hit or reference.group_truncated

        logger.debug(
            f"   {group.signature}: {result.member_count} members, "
            f"ref #{reference.index} ({reference.subtree_count} nodes), "
            f"{result.flagged_reference_nodes}/{result.reference_nodes} supported, "
            f"+{result.newly_flagged} flags"
        )
        return summary

    def run(
        self,
        root: Any,
        flags: Optional[CoreFlagSet] = None,
        groups: Optional[GroupsInput] = None
    ) -> CoreRunResult:
        """
        Find cores in the tree under root

        Args:
            root: Tree root element
            flags: Caller-owned flag set to accumulate into (new one if None)
            groups: Precomputed groups or signature -> members mapping;
                    computed from root when None

        Returns:
            CoreRunResult with the flag set and per-group summaries
        """
        start_time = time.time()

        if flags is None:
            flags = CoreFlagSet()
        elif self.config.clear_existing_flags:
            self.reset(flags)

        slot_groups = self._resolve_groups(root, groups)
        logger.info(
            f" Aligning {len(slot_groups)} groups "
            f"(min_size={self.config.min_group_size}, "
            f"threshold={self.config.support_threshold})"
        )

        summaries = []
        for group in slot_groups:
            try:
                summaries.append(self.process_group(group, flags))
            except Exception as e:
                logger.warning(f"  Group {group.signature} failed: {e}")
                summaries.append(GroupSummary(
                    signature=group.signature,
                    member_count=group.size,
                    error=str(e)
                ))

        result = CoreRunResult(
            flags=flags,
            groups=slot_groups,
            summaries=summaries,
            root=root,
            execution_time=time.time() - start_time
        )

        logger.info(
            f"✅ Flagged {result.newly_flagged} new core nodes "
            f"({len(flags)} total) in {result.execution_time:.2f}s"
        )
        return result


def find_cores(
    html: str,
    config: Optional[CoreConfig] = None,
    parser: str = 'html.parser',
    flags: Optional[CoreFlagSet] = None
) -> CoreRunResult:
    """
    Parse HTML and find its repeating cores

    Args:
        html: HTML document or fragment
        config: CoreConfig (defaults when None)
        parser: BeautifulSoup parser name
        flags: Optional caller-owned flag set

    Returns:
        CoreRunResult; result.root is the parsed root element
    """
    _, root = parse_html(html, parser)
    finder = CoreFinder(SoupTreeAccessor(), config)
    return finder.run(root, flags=flags)
