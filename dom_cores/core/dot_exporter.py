"""
DOT Exporter
Renders the element tree as a Graphviz digraph with core nodes colored
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .core_flags import CoreFlagSet
from .slot_grouper import SlotGroup
from .tree_accessor import TreeAccessor, SoupTreeAccessor

logger = logging.getLogger(__name__)

# One color per sibling position (repeats past 20)
PALETTE = [
    "#8B0000", "#B22222", "#DC143C", "#FF4500", "#FF8C00",
    "#DAA520", "#228B22", "#2E8B57", "#1E90FF", "#4169E1",
    "#6A5ACD", "#8A2BE2", "#9932CC", "#C71585", "#A52A2A",
    "#008B8B", "#20B2AA", "#556B2F", "#708090", "#2F4F4F",
]

# Feature heat ramp, level 1 (light) .. level 10 (deepest red)
HEAT_COLORS = [
    "#fff5f0", "#fee0d2", "#fcbba1", "#fc9272", "#fb6a4a",
    "#ef3b2c", "#cb181d", "#a50f15", "#7f0000", "#4a0000",
]
NO_FEATURE_COLOR = "#f0f0f0"

SCORE_BOOL_KEYS = [
    'has_avatar',
    'has_author',
    'has_relative_time_or_timestamp',
    'has_microaction',
    'has_related_keyword',
    'link_with_at_or_hash',
    'emoji_only',
    'emoji_mixed',
    'has_question',
]
WORD_SLOT_AT_LEAST = 30

# Signature words that mark a group as likely discussion content
SUSPECT_KEYWORDS = ("comment", "reply", "thread")

CLUSTER_STYLE = {
    "fontcolor": "gray15",
    "color": "gray35",
    "penwidth": 2.5,
    "style": "rounded",
    "margin": 10,
}

FeatureVector = Callable[[Any], Optional[Mapping[str, Any]]]


def escape_dot(value: Any) -> str:
    """Escape a value for use inside a double-quoted DOT string"""
    return (
        str(value if value is not None else '')
        .replace('\\', '\\\\')
        .replace('"', '\\"')
        .replace('\n', '\\n')
    )


def feature_count(record: Optional[Mapping[str, Any]]) -> int:
    """
    Number of scoring features a node matched, 0..10

    Each truthy boolean feature counts one; a word count of at least
    WORD_SLOT_AT_LEAST counts one more.
    """
    if not record:
        return 0

    count = sum(1 for key in SCORE_BOOL_KEYS if record.get(key))
    if (record.get('text_word_count') or 0) >= WORD_SLOT_AT_LEAST:
        count += 1

    return max(0, min(10, count))


def heat_color(count: int) -> str:
    if not count:
        return NO_FEATURE_COLOR
    return HEAT_COLORS[min(10, max(1, count)) - 1]


def sibling_index_map(
    accessor: TreeAccessor,
    groups: Sequence[SlotGroup],
    flags: CoreFlagSet
) -> Dict[int, int]:
    """
    Map id(flagged node) -> index of the group member whose subtree holds it

    When subtrees overlap across groups the first assignment wins.
    """
    index_map: Dict[int, int] = {}

    for group in groups:
        roots = [m for m in group.members if accessor.is_element(m)]
        for sibling_index, root in enumerate(roots):
            stack = [root]
            while stack:
                node = stack.pop()
                if not accessor.is_element(node):
                    continue
                if node in flags and id(node) not in index_map:
                    index_map[id(node)] = sibling_index
                stack.extend(reversed(accessor.children(node)))

    return index_map


@dataclass
class DotCluster:
    """Subtree drawn as one Graphviz cluster, labelled with a group signature"""
    signature: str
    container: Any


def group_looks_suspected(
    group: SlotGroup,
    feature_vector: Optional[FeatureVector] = None
) -> bool:
    """
    Whether a group looks like discussion content worth outlining

    A member whose feature record has has_related_keyword decides it;
    otherwise the signature is checked for SUSPECT_KEYWORDS.
    """
    if not group.members:
        return False

    if feature_vector is not None:
        for member in group.members:
            record = feature_vector(member)
            if record and record.get('has_related_keyword'):
                return True

    signature = str(group.signature or '').lower()
    return any(word in signature for word in SUSPECT_KEYWORDS)


def suspected_clusters(
    accessor: TreeAccessor,
    groups: Sequence[SlotGroup],
    feature_vector: Optional[FeatureVector] = None
) -> List[DotCluster]:
    """One cluster per suspected group, wrapping the members' shared parent"""
    clusters = []
    for group in groups:
        if not group_looks_suspected(group, feature_vector):
            continue

        first = group.members[0]
        container = accessor.parent(first) if accessor.is_element(first) else None
        if container is None:
            continue
        clusters.append(DotCluster(signature=group.signature, container=container))

    return clusters


@dataclass
class DotResult:
    dot: str
    nodes_count: int
    edges_count: int
    clusters_count: int = 0


class DotExporter:
    """Whole-tree DOT export; labels are tag names only"""

    def __init__(self, accessor: Optional[TreeAccessor] = None):
        self.accessor = accessor or SoupTreeAccessor()

    def build(
        self,
        root: Any,
        flags: CoreFlagSet,
        groups: Sequence[SlotGroup] = (),
        feature_vector: Optional[FeatureVector] = None,
        title: str = "DOM Core Map (color = sibling identity)",
        clusters: Optional[Sequence[DotCluster]] = None
    ) -> DotResult:
        """
        Build the DOT graph

        Args:
            root: Tree root element
            flags: Core flags from a CoreFinder run
            groups: Groups of that run, used to color cores per sibling
            feature_vector: Optional node -> feature record; when given,
                            nodes are filled by feature count and cores get
                            a thick colored border
            title: Graph label
            clusters: Subtrees to outline; defaults to suspected_clusters()
                      over groups. Pass [] for none.

        Returns:
            DotResult with the DOT text and counts
        """
        if not self.accessor.is_element(root):
            raise ValueError("root must be an element")

        index_map = sibling_index_map(self.accessor, groups, flags)
        if clusters is None:
            clusters = suspected_clusters(self.accessor, groups, feature_vector)

        # Collision-free ids in traversal order
        dot_ids: Dict[int, str] = {}

        def get_id(node: Any) -> str:
            key = id(node)
            if key not in dot_ids:
                dot_ids[key] = f"n{len(dot_ids) + 1}"
            return dot_ids[key]

        node_lines = []
        edges = []
        stack = [root]

        while stack:
            node = stack.pop()
            if not self.accessor.is_element(node):
                continue

            node_id = get_id(node)
            node_lines.append(self._node_line(node_id, node, flags, index_map, feature_vector))

            children = self.accessor.children(node)
            for child in children:
                edges.append((node_id, get_id(child)))
            stack.extend(reversed(children))

        lines = [
            "digraph DOMCoreMap {",
            f'  graph [rankdir=TB, fontsize=12, labelloc="t", label="{escape_dot(title)}"];',
            '  node  [shape=box, style="rounded,filled", fontsize=9, fontname="Helvetica"];',
            '  edge  [color="gray70"];',
            "",
        ]
        # Clusters go before nodes and edges
        cluster_count = 0
        for cluster in clusters:
            if id(cluster.container) not in dot_ids:
                logger.debug(f"   Cluster {cluster.signature} is outside the tree, skipped")
                continue
            cluster_count += 1
            lines.extend(self._cluster_lines(cluster_count, cluster, get_id))

        lines.extend(node_lines)
        lines.append("")
        lines.extend(f"  {a} -> {b};" for a, b in edges)
        lines.append("}")

        logger.debug(
            f"   DOT: {len(node_lines)} nodes, {len(edges)} edges, {cluster_count} clusters"
        )
        return DotResult(
            dot="\n".join(lines) + "\n",
            nodes_count=len(node_lines),
            edges_count=len(edges),
            clusters_count=cluster_count
        )

    def _cluster_lines(
        self,
        number: int,
        cluster: DotCluster,
        get_id: Callable[[Any], str]
    ) -> List[str]:
        lines = [
            f"  subgraph cluster_{number} {{",
            f'    label="{escape_dot(cluster.signature)}";',
        ]
        for key, value in CLUSTER_STYLE.items():
            rendered = f'"{value}"' if isinstance(value, str) else value
            lines.append(f"    {key}={rendered};")

        # Container plus all its descendants
        stack = [cluster.container]
        while stack:
            node = stack.pop()
            if not self.accessor.is_element(node):
                continue
            lines.append(f"    {get_id(node)};")
            stack.extend(reversed(self.accessor.children(node)))

        lines.extend(["  }", ""])
        return lines

    def _node_line(
        self,
        node_id: str,
        node: Any,
        flags: CoreFlagSet,
        index_map: Dict[int, int],
        feature_vector: Optional[FeatureVector]
    ) -> str:
        label = escape_dot(self.accessor.tag(node))
        is_core = node in flags
        core_color = PALETTE[index_map.get(id(node), 0) % len(PALETTE)] if is_core else None

        if feature_vector is not None:
            count = feature_count(feature_vector(node))
            fill = heat_color(count)
            font = "white" if count >= 6 else "black"
            border = core_color or "gray60"
            penwidth = 3 if is_core else 1
            return (
                f'  {node_id} [label="{label}", fillcolor="{fill}", color="{border}", '
                f'fontcolor="{font}", penwidth={penwidth}];'
            )

        fill = core_color or "white"
        font = "white" if is_core else "gray20"
        border = core_color or "gray60"
        return f'  {node_id} [label="{label}", fillcolor="{fill}", color="{border}", fontcolor="{font}"];'
