"""
Tests for subtree traversal and median reference selection
"""

from dom_cores.core.reference_selector import (
    ReferenceSelector,
    count_subtree_elements,
    preorder_elements,
)
from dom_cores.core.tree_accessor import parse_html
from conftest import Node, NodeAccessor, page


def sized_members(accessor, sizes):
    """One <div> per size, each with size-1 <i> children"""
    body = "".join(
        f"<div id='m{i}'>{'<i></i>' * (size - 1)}</div>" for i, size in enumerate(sizes)
    )
    _, root = parse_html(page(body))
    return accessor.children(root.find('body'))


class TestTraversal:

    def test_count_includes_root(self, accessor):
        _, root = parse_html("<div><p><b></b></p><p></p>text</div>")

        assert count_subtree_elements(accessor, root) == (4, False)

    def test_count_respects_caps(self, accessor):
        _, root = parse_html("<div><p><b><i></i></b></p></div>")

        assert count_subtree_elements(accessor, root, max_nodes=2) == (2, True)
        assert count_subtree_elements(accessor, root, max_depth=1) == (2, True)

    def test_count_exactly_at_cap_is_not_truncated(self, accessor):
        _, root = parse_html("<div><p><b></b></p></div>")

        assert count_subtree_elements(accessor, root, max_nodes=3, max_depth=2) == (3, False)

    def test_preorder_parents_first(self, accessor):
        _, root = parse_html("<a1><b1><c1></c1></b1><b2></b2></a1>")

        nodes, cap_hit = preorder_elements(accessor, root)

        assert [n.name for n in nodes] == ['a1', 'b1', 'c1', 'b2']
        assert cap_hit is False

    def test_preorder_reports_cap(self, accessor):
        _, root = parse_html("<a1><b1><c1></c1></b1><b2></b2></a1>")

        nodes, cap_hit = preorder_elements(accessor, root, max_nodes=3)

        assert [n.name for n in nodes] == ['a1', 'b1', 'c1']
        assert cap_hit is True

    def test_deep_tree_does_not_recurse(self):
        root = Node('div')
        current = root
        for _ in range(5000):
            current = current.append(Node('div'))
        accessor = NodeAccessor()

        assert count_subtree_elements(accessor, root) == (5001, False)
        nodes, _ = preorder_elements(accessor, root)
        assert len(nodes) == 5001


class TestReferenceSelector:

    def test_picks_median(self, accessor):
        members = sized_members(accessor, [1, 9, 3, 5, 7])

        pick = ReferenceSelector(accessor).pick(members)

        # sorted sizes 1, 3, 5, 7, 9 -> size 5 sits at group index 3
        assert pick.index == 3
        assert pick.subtree_count == 5

    def test_even_count_takes_lower_median(self, accessor):
        # sorted: 2, 4, 6, 8 -> index 2 -> size 6
        members = sized_members(accessor, [8, 2, 6, 4])

        pick = ReferenceSelector(accessor).pick(members)

        assert pick.subtree_count == 6
        assert pick.index == 2

    def test_ties_keep_document_order(self, accessor):
        members = sized_members(accessor, [3, 3, 3, 3, 3])

        pick = ReferenceSelector(accessor).pick(members)

        assert pick.index == 2
        assert pick.node is members[2]

    def test_outlier_is_not_chosen(self, accessor):
        members = sized_members(accessor, [3, 3, 40, 3, 1])

        pick = ReferenceSelector(accessor).pick(members)

        assert pick.subtree_count == 3

    def test_non_elements_are_skipped_but_index_kept(self, accessor):
        members = sized_members(accessor, [2, 2])
        mixed = ['stray text', members[0], members[1]]

        pick = ReferenceSelector(accessor).pick(mixed)

        assert pick.node is members[1]
        assert pick.index == 2

    def test_no_elements(self, accessor):
        assert ReferenceSelector(accessor).pick(['a', None]) is None

    def test_capped_member_count_is_reported(self, accessor):
        members = sized_members(accessor, [3, 3, 12, 3, 3])

        selector = ReferenceSelector(accessor, max_nodes=4)
        sized = selector.measure(members)
        pick = selector.pick(members)

        assert [p.truncated for p in sized] == [False, False, True, False, False]
        assert sized[2].subtree_count == 4
        assert pick.truncated is False
        assert pick.group_truncated is True

    def test_uncapped_group_is_not_truncated(self, accessor):
        pick = ReferenceSelector(accessor, max_nodes=50).pick(sized_members(accessor, [3, 12]))

        assert pick.group_truncated is False
