"""Core structural alignment modules"""

from .config import CoreConfig
from .core_finder import CoreFinder, CoreRunResult, GroupSummary, find_cores
from .core_flags import CoreFlagSet
from .dot_exporter import DotCluster, DotExporter
from .node_aligner import NodeAligner, containment_score
from .reference_selector import ReferenceSelector, count_subtree_elements, preorder_elements
from .slot_grouper import SlotGroup, SlotGrouper
from .tree_accessor import SoupTreeAccessor, TreeAccessor, TreeAccessError, parse_html

__all__ = [
    "CoreConfig",
    "CoreFinder",
    "CoreRunResult",
    "GroupSummary",
    "find_cores",
    "CoreFlagSet",
    "DotCluster",
    "DotExporter",
    "NodeAligner",
    "containment_score",
    "ReferenceSelector",
    "count_subtree_elements",
    "preorder_elements",
    "SlotGroup",
    "SlotGrouper",
    "SoupTreeAccessor",
    "TreeAccessor",
    "TreeAccessError",
    "parse_html",
]
