"""
Tests for the min-max normalizer of backed-up values.
"""

import pytest

from xhotzero.search.helpers import KnownBounds, MinMaxStats, MinMaxStatsList


class TestMinMaxStats:
    """Tests for MinMaxStats normalization."""

    def test_initial_state(self):
        """Empty stats have inverted infinite bounds."""
        stats = MinMaxStats()

        assert stats.maximum == float('-inf')
        assert stats.minimum == float('inf')

    def test_identity_without_range(self):
        """Without a positive range values pass through unchanged."""
        stats = MinMaxStats()
        assert stats.normalize(0.7) == 0.7

        stats.update(2.0)
        assert stats.normalize(3.5) == 3.5

    def test_normalize_into_unit_interval(self):
        """Observed bounds map to 0 and 1."""
        stats = MinMaxStats()
        for value in (-1.0, 3.0, 1.0):
            stats.update(value)

        assert stats.normalize(-1.0) == 0.0
        assert stats.normalize(3.0) == 1.0
        assert stats.normalize(1.0) == pytest.approx(0.5)

    def test_known_bounds(self):
        """Known bounds seed the range."""
        stats = MinMaxStats(KnownBounds(min=0.0, max=2.0))

        assert stats.normalize(1.0) == pytest.approx(0.5)

    def test_value_delta_max_widens_small_ranges(self):
        """A range narrower than value_delta_max is widened to it."""
        stats = MinMaxStats(value_delta_max=0.5)
        stats.update(0.0)
        stats.update(0.1)

        assert stats.normalize(0.1) == pytest.approx(0.2)

    def test_clear_restores_bounds(self):
        """Clearing forgets observed values but keeps known bounds."""
        stats = MinMaxStats(KnownBounds(min=0.0, max=1.0))
        stats.update(5.0)
        stats.clear()

        assert (stats.minimum, stats.maximum) == (0.0, 1.0)


class TestMinMaxStatsList:
    """Tests for the per slot normalizers."""

    def test_independent_slots(self):
        """Each slot owns its own normalizer."""
        stats_lst = MinMaxStatsList(3)
        stats_lst[0].update(1.0)

        assert len(stats_lst) == 3
        assert stats_lst[0].maximum == 1.0
        assert stats_lst[1].maximum == float('-inf')

    def test_set_delta(self):
        """set_delta applies to every slot."""
        stats_lst = MinMaxStatsList(2)
        stats_lst.set_delta(0.01)

        assert all(stats.value_delta_max == 0.01 for stats in stats_lst.stats_lst)
