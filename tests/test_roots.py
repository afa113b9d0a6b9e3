"""
Tests for the batch containers: Roots and SearchResults.
"""

import pytest

from xhotzero.search.encoding import ActionEncoder
from xhotzero.search.roots import Roots, SearchResults


@pytest.fixture
def roots():
    """Two roots, the first restricted to actions 1 and 3."""
    return Roots(2, [[1, 3], []])


class TestRoots:
    """Tests for root preparation and batch read-outs."""

    def test_one_tree_per_slot(self, roots):
        """Each root lives in its own arena."""
        assert roots.num == 2
        assert roots.roots[0].arena is not roots.roots[1].arena
        assert roots.roots[0].legal_actions == [1, 3]

    def test_prepare_no_noise(self, roots):
        """Roots are expanded with a virtual visit."""
        roots.prepare_no_noise([0.1, 0.2], [[0.0] * 4, [0.0] * 4], [-1, -1])

        for index, root in enumerate(roots.roots):
            assert root.expanded()
            assert root.visit_count == 1
            assert root.value_sum == 0.0
            assert root.current_latent_state_index == 0
            assert root.batch_index == index
        assert roots.roots[1].legal_actions == [0, 1, 2, 3]
        assert roots.roots[0].get_child(1).prior == pytest.approx(0.5)

    def test_prepare_adds_noise(self, roots):
        """Noise is blended into the priors of every root."""
        roots.prepare(0.5, [[1.0, 0.0], [0.25] * 4], [0.0, 0.0], [[0.0] * 4, [0.0] * 4], [-1, -1])

        assert roots.roots[0].get_child(1).prior == pytest.approx(0.75)
        assert roots.roots[0].get_child(3).prior == pytest.approx(0.25)
        assert roots.roots[1].get_child(2).prior == pytest.approx(0.25)
        assert [root.visit_count for root in roots.roots] == [1, 1]

    def test_prepare_rejects_mismatched_noise(self, roots):
        """Noise must match the legal actions of its root."""
        with pytest.raises(ValueError):
            roots.prepare(0.5, [[1.0], [0.25] * 4], [0.0, 0.0], [[0.0] * 4, [0.0] * 4], [-1, -1])

    def test_rejected_prepare_leaves_roots_untouched(self, roots):
        """A bad noise vector on a later slot is caught before any root changes."""
        with pytest.raises(ValueError):
            roots.prepare(0.5, [[0.5, 0.5], [0.25] * 3], [0.0, 0.0], [[0.0] * 4, [0.0] * 4], [-1, -1])

        assert [root.expanded() for root in roots.roots] == [False, False]
        assert [root.visit_count for root in roots.roots] == [0, 0]

        roots.prepare(0.5, [[0.5, 0.5], [0.25] * 4], [0.0, 0.0], [[0.0] * 4, [0.0] * 4], [-1, -1])
        assert [root.visit_count for root in roots.roots] == [1, 1]

    def test_rejected_policy_leaves_roots_untouched(self, roots):
        """Logits outside the action space on a later slot leave every root unexpanded."""
        with pytest.raises(ValueError):
            roots.prepare_no_noise([0.0, 0.0], [[0.0] * 4, [0.0] * 6], [-1, -1])

        assert [root.expanded() for root in roots.roots] == [False, False]
        assert [root.visit_count for root in roots.roots] == [0, 0]

    def test_duplicate_legal_actions(self):
        """Each legal action is listed once."""
        with pytest.raises(ValueError):
            Roots(1, [[0, 0, 1]])

    @pytest.mark.parametrize(
        'value_prefixes, policies, to_play',
        [
            ([0.0], [[0.0] * 4, [0.0] * 4], [-1, -1]),
            ([0.0, 0.0], [[0.0] * 4], [-1, -1]),
            ([0.0, 0.0], [[0.0] * 4, [0.0] * 4], [-1]),
        ],
    )
    def test_prepare_rejects_mismatched_batches(self, roots, value_prefixes, policies, to_play):
        """Every batch input needs one entry per root."""
        with pytest.raises(ValueError):
            roots.prepare_no_noise(value_prefixes, policies, to_play)

    def test_legal_actions_list_must_match_root_num(self):
        """One legal action list per root."""
        with pytest.raises(ValueError):
            Roots(3, [[0], [1]])

    def test_read_outs_before_search(self, roots):
        """Fresh roots have no visits below them and no trajectory."""
        roots.prepare_no_noise([0.0, 0.0], [[0.0] * 4, [0.0] * 4], [-1, -1])

        assert roots.get_distributions() == [[0, 0], [0, 0, 0, 0]]
        assert roots.get_values() == [0.0, 0.0]
        assert roots.get_trajectories() == [[], []]

    def test_clear(self, roots):
        """Clearing drops every tree."""
        roots.clear()

        assert roots.num == 0
        assert roots.get_values() == []

    def test_encoder_shared_by_trees(self):
        """The codec is handed to every arena."""
        encoder = ActionEncoder(num_action_heads=2, actions_per_head=2)
        roots = Roots(2, [[], []], encoder)

        assert all(root.arena.encoder is encoder for root in roots.roots)
        assert roots.roots[0].best_action == [-1, -1]


class TestSearchResults:
    """Tests for the per round scratch buffer."""

    def test_sized_per_slot(self):
        """Every field has one entry per slot."""
        results = SearchResults(3)

        assert results.num == 3
        assert len(results.search_paths) == 3
        assert results.nodes == [None, None, None]
        assert results.search_lens == [0, 0, 0]
        assert results.latent_state_index_in_search_path == [-1, -1, -1]

    def test_reset_gives_fresh_paths(self):
        """Resetting drops the previous paths."""
        results = SearchResults(2)
        results.search_paths[0].append('node')
        results.reset()

        assert results.search_paths == [[], []]
        assert results.search_paths[0] is not results.search_paths[1]
