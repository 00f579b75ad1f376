"""
Tests for anchored node alignment and support marking
"""

from collections import Counter

import pytest

from dom_cores.core.core_flags import CoreFlagSet
from dom_cores.core.node_aligner import NO_MATCH, NodeAligner, containment_score
from dom_cores.core.reference_selector import ReferenceSelector
from dom_cores.core.tree_accessor import SoupTreeAccessor, TreeAccessError, parse_html
from conftest import page


def members_of(html, accessor, container='section'):
    _, root = parse_html(page(html))
    return root, accessor.children(root.find(container))


class TestContainmentScore:

    def test_sums_required_counts(self):
        required = Counter({'span': 2, 'em': 1})
        candidate = Counter({'span': 3, 'em': 1, 'b': 4})

        assert containment_score(required, candidate) == 3

    def test_missing_required_tag_rejects(self):
        required = Counter({'span': 2})

        assert containment_score(required, Counter({'span': 1})) == NO_MATCH
        assert containment_score(required, Counter({'em': 5})) == NO_MATCH

    def test_no_requirements_scores_zero(self):
        assert containment_score(Counter(), Counter({'p': 1})) == 0


class TestFindBestMatch:

    REF = "<ul id='ref'><li><i></i></li><li id='u'><span></span><em></em></li></ul>"

    def _setup(self, member_html):
        _, root = parse_html(page(self.REF + member_html))
        return root.find(id='u'), root.find(id='m')

    def test_single_candidate(self, accessor):
        u, parent = self._setup("<ul id='m'><p></p><li id='x'><b></b><b></b></li></ul>")

        match = NodeAligner(accessor).find_best_match(u, parent)

        # Lone candidate wins without tag containment
        assert match['id'] == 'x'

    def test_candidates_need_at_least_reference_child_count(self, accessor):
        u, parent = self._setup("<ul id='m'><li><span></span></li><li></li></ul>")

        assert NodeAligner(accessor).find_best_match(u, parent) is None

    def test_extra_children_still_match(self, accessor):
        u, parent = self._setup(
            "<ul id='m'><li><i></i></li>"
            "<li id='x'><span></span><em></em><small>edited</small></li></ul>"
        )

        match = NodeAligner(accessor).find_best_match(u, parent)

        assert match['id'] == 'x'

    def test_closest_ordinal_wins(self, accessor):
        u, parent = self._setup(
            "<ul id='m'>"
            "<li id='x1'><span></span><em></em></li>"
            "<li id='x2'><span></span><em></em></li>"
            "<li id='x3'><span></span><em></em></li>"
            "</ul>"
        )

        match = NodeAligner(accessor).find_best_match(u, parent)

        assert match['id'] == 'x2'

    @pytest.mark.parametrize('swapped', [False, True])
    def test_equal_distance_resolved_by_containment(self, accessor, swapped):
        good = "<span></span><em></em>"
        bad = "<span></span><b></b>"
        first, third = (bad, good) if not swapped else (good, bad)
        u, parent = self._setup(
            "<ul id='m'>"
            f"<li id='x1'>{first}</li>"
            "<li id='x2'></li>"
            f"<li id='x3'>{third}</li>"
            "</ul>"
        )

        match = NodeAligner(accessor).find_best_match(u, parent)

        expected = 'x3' if not swapped else 'x1'
        assert match['id'] == expected

    def test_full_tie_takes_first_in_document_order(self, accessor):
        u, parent = self._setup(
            "<ul id='m'>"
            "<li id='x1'><span></span><em></em></li>"
            "<li id='x2'></li>"
            "<li id='x3'><span></span><em></em></li>"
            "</ul>"
        )

        match = NodeAligner(accessor).find_best_match(u, parent)

        assert match['id'] == 'x1'

    def test_all_rejected_falls_back_to_first_nearest(self, accessor):
        u, parent = self._setup(
            "<ul id='m'>"
            "<li id='x1'><b></b><b></b></li>"
            "<li id='x2'></li>"
            "<li id='x3'><i></i><i></i></li>"
            "</ul>"
        )

        match = NodeAligner(accessor).find_best_match(u, parent)

        assert match['id'] == 'x1'

    def test_no_parent(self, accessor):
        u, _ = self._setup("")

        assert NodeAligner(accessor).find_best_match(u, None) is None


class TestAlign:

    def test_seed_root_fully_supported(self, accessor):
        _, roots = members_of(
            "<section>"
            "<div><p></p></div><div></div><div><span></span></div><div></div>"
            "</section>",
            accessor
        )
        pick = ReferenceSelector(accessor).pick(roots)

        aligned, cap_hit = NodeAligner(accessor).align(pick.node, roots)

        assert aligned[0].reference is pick.node
        assert aligned[0].support == 1.0
        assert all(a is b for a, b in zip(aligned[0].matches, roots))
        assert cap_hit is False

    def test_reference_matches_itself(self, accessor):
        _, roots = members_of(
            "<section>" + "<div><h3></h3><p></p><p></p></div>" * 4 + "</section>",
            accessor
        )
        pick = ReferenceSelector(accessor).pick(roots)

        aligned, _ = NodeAligner(accessor).align(pick.node, roots)

        for node in aligned:
            assert node.matches[pick.index] is node.reference

    def test_broken_anchor_unmatches_descendants(self, accessor):
        # Last member has <aside> where the others have <header>
        normal = "<div><header><p><span></span></p></header></div>"
        odd = "<div><aside><p><span></span></p></aside></div>"
        _, roots = members_of("<section>" + normal * 4 + odd + "</section>", accessor)
        pick = ReferenceSelector(accessor).pick(roots)

        aligned, _ = NodeAligner(accessor).align(pick.node, roots)

        tags = [node.reference.name for node in aligned]
        assert tags == ['div', 'header', 'p', 'span']
        for node in aligned[1:]:
            assert node.matches[4] is None
            assert node.match_count == 4

    def test_candidate_reuse_is_not_prevented(self, accessor):
        # Reference has two <p>; the member's single <p> serves both
        _, roots = members_of(
            "<section>"
            "<div><p></p><p></p></div><div><p></p><p></p></div>"
            "<div><p></p><p></p></div><div><p id='only'></p></div>"
            "</section>",
            accessor
        )
        pick = ReferenceSelector(accessor).pick(roots)

        aligned, _ = NodeAligner(accessor).align(pick.node, roots)

        assert aligned[1].matches[3]['id'] == 'only'
        assert aligned[2].matches[3] is aligned[1].matches[3]

    def test_host_read_failure_is_no_match_for_that_member(self):
        class FlakyAccessor(SoupTreeAccessor):
            def children(self, node):
                if node.get('data-broken'):
                    raise TreeAccessError("detached node")
                return super().children(node)

        accessor = FlakyAccessor()
        _, roots = members_of(
            "<section>"
            + "<div><p><b></b></p></div>" * 4
            + "<div><p data-broken='1'><b></b></p></div>"
            + "</section>",
            accessor
        )
        pick = ReferenceSelector(accessor).pick(roots)

        aligned, _ = NodeAligner(accessor).align(pick.node, roots)

        p_row, b_row = aligned[1], aligned[2]
        assert p_row.match_count == 4
        assert p_row.matches[4] is None
        assert b_row.match_count == 4


class TestAlignGroup:

    def test_example_extra_trailing_child(self, accessor):
        article = "<article><header></header><p></p></article>"
        extra = "<article id='extra'><header></header><p></p><p id='x'></p></article>"
        _, roots = members_of(
            "<section>" + article * 2 + extra + article * 2 + "</section>",
            accessor
        )
        flags = CoreFlagSet()
        pick = ReferenceSelector(accessor).pick(roots)

        result = NodeAligner(accessor, support_threshold=0.8).align_group(roots, pick, flags)

        assert pick.subtree_count == 3
        assert result.supports == [1.0, 1.0, 1.0]
        assert result.newly_flagged == 15
        extra_root = roots[2]
        assert extra_root.find(id='x') not in flags
        assert extra_root.find('header') in flags
        assert extra_root.find('p') in flags

    def test_below_threshold_not_flagged(self, accessor):
        # <em> only in 3 of 5 members -> 0.6 < 0.8
        with_em = "<div><span></span><em></em></div>"
        without = "<div><span></span></div>"
        _, roots = members_of(
            "<section>" + with_em * 3 + without * 2 + "</section>",
            accessor
        )
        flags = CoreFlagSet()
        pick = ReferenceSelector(accessor).pick(roots)

        result = NodeAligner(accessor, support_threshold=0.8).align_group(roots, pick, flags)

        assert pick.subtree_count == 3
        assert result.supports == [1.0, 1.0, 0.6]
        assert all(r.find('em') not in flags for r in roots)
        assert all(r.find('span') in flags for r in roots)

    def test_threshold_is_inclusive(self, accessor):
        with_em = "<div><span></span><em></em></div>"
        without = "<div><span></span></div>"
        _, roots = members_of(
            "<section>" + with_em * 3 + without * 2 + "</section>",
            accessor
        )
        flags = CoreFlagSet()
        pick = ReferenceSelector(accessor).pick(roots)

        NodeAligner(accessor, support_threshold=0.6).align_group(roots, pick, flags)

        assert sum(1 for r in roots if r.find('em') in flags) == 3

    def test_cap_truncates_and_reports(self, accessor):
        _, roots = members_of(
            "<section>" + "<div><p></p><p></p><p></p></div>" * 4 + "</section>",
            accessor
        )
        flags = CoreFlagSet()
        pick = ReferenceSelector(accessor).pick(roots)

        result = NodeAligner(accessor, max_nodes=2).align_group(roots, pick, flags)

        assert result.cap_hit is True
        assert result.reference_nodes == 2
        assert len(flags) == 8
