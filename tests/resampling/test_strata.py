"""
Tests for stratum codes.
"""

import numpy as np

from pymlshop.resampling import strata_groups
from pymlshop.resampling._strata import merge_small, quantile_buckets
from pymlshop.survival import Surv


class TestStrataGroups:

    def test_labels(self):
        codes = strata_groups(np.array(["b", "a", "b", "c"]), min_size=1)
        np.testing.assert_array_equal(codes, [1, 0, 1, 2])

    def test_numeric_quantiles(self):
        x = np.arange(100, dtype=float)
        codes = strata_groups(x, breaks=4, min_size=1)
        assert np.bincount(codes).tolist() == [25, 25, 25, 25]
        assert np.all(np.diff(codes) >= 0)

    def test_small_strata_merged(self):
        labels = np.repeat(["a", "b", "c"], [30, 3, 30])
        codes = strata_groups(labels, min_size=20)
        assert len(np.unique(codes)) == 2
        assert np.min(np.bincount(codes)) >= 20

    def test_everything_merges_to_one(self):
        codes = strata_groups(np.array([1, 2, 3]), min_size=20)
        np.testing.assert_array_equal(codes, [0, 0, 0])

    def test_survival_separates_status(self):
        time = np.tile(np.arange(1.0, 41.0), 2)
        event = np.repeat([0, 1], 40)
        codes = strata_groups(Surv(time, event), breaks=2, min_size=1)
        assert len(np.unique(codes)) == 4
        assert set(codes[:40]).isdisjoint(codes[40:])


class TestHelpers:

    def test_quantile_buckets_with_ties(self):
        codes = quantile_buckets(np.array([1.0, 1.0, 1.0, 1.0, 2.0]), breaks=4)
        assert codes.tolist() == [0, 0, 0, 0, 1]

    def test_merge_into_smaller_neighbour(self):
        codes = np.repeat([0, 1, 2], [10, 2, 30])
        merged = merge_small(codes, min_size=5)
        assert np.bincount(merged).tolist() == [12, 30]
