"""
Tests for resampling controls and their train/test splits.
"""

import numpy as np
import pytest

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.resampling import (
    BootControl,
    BootOptimismControl,
    CVControl,
    CVOptimismControl,
    OOBControl,
    SplitControl,
    TrainControl,
    as_control,
)


# ═══════════════════════════════════════════════════════════════════════
# Construction
# ═══════════════════════════════════════════════════════════════════════

class TestConstruction:

    def test_structural_equality(self):
        assert CVControl(folds=5, seed=1) == CVControl(folds=5, seed=1)
        assert CVControl(folds=5, seed=1) != CVControl(folds=5, seed=2)
        assert CVControl(seed=1) != CVOptimismControl(seed=1)

    def test_seed_drawn_when_omitted(self):
        assert isinstance(BootControl().seed, int)

    def test_times_normalized(self):
        control = CVControl(times=np.array([1, 2.5]), seed=1)
        assert control.times == (1.0, 2.5)
        assert CVControl(times=[], seed=1).times is None

    @pytest.mark.parametrize("make", [
        lambda: CVControl(folds=1),
        lambda: CVControl(repeats=0),
        lambda: BootControl(samples=0),
        lambda: SplitControl(prop=1.0),
        lambda: CVControl(seed="abc"),
        lambda: CVControl(seed=True),
        lambda: CVControl(times=[0.0, 1.0]),
        lambda: CVControl(strata_breaks=0),
        lambda: TrainControl(strata_size=0),
    ])
    def test_invalid(self, make):
        with pytest.raises(ConfigurationError):
            make()

    def test_as_control(self):
        assert isinstance(as_control(None), CVControl)
        assert isinstance(as_control(OOBControl), OOBControl)
        with pytest.raises(ConfigurationError):
            as_control("cv")

    def test_labels(self):
        assert CVControl(seed=1).label == "K-Fold Cross-Validation"
        assert BootOptimismControl.optimism and not BootControl.optimism


# ═══════════════════════════════════════════════════════════════════════
# Splits
# ═══════════════════════════════════════════════════════════════════════

class TestCrossValidation:

    def test_folds_partition_each_repeat(self):
        n, folds, repeats = 23, 5, 3
        splits = CVControl(folds=folds, repeats=repeats, seed=7).splits(n)
        assert len(splits) == folds * repeats
        for r in range(repeats):
            block = splits[r * folds:(r + 1) * folds]
            tests = np.concatenate([s.test for s in block])
            np.testing.assert_array_equal(np.sort(tests), np.arange(n))
            sizes = [len(s.test) for s in block]
            assert max(sizes) - min(sizes) <= 1
            for s in block:
                np.testing.assert_array_equal(np.union1d(s.train, s.test), np.arange(n))
                assert len(np.intersect1d(s.train, s.test)) == 0

    def test_labels(self):
        splits = CVControl(folds=3, repeats=2, seed=1).splits(9)
        assert [s.label for s in splits] == [
            "Fold01.Rep1", "Fold02.Rep1", "Fold03.Rep1",
            "Fold01.Rep2", "Fold02.Rep2", "Fold03.Rep2",
        ]

    def test_repeats_differ(self):
        splits = CVControl(folds=2, repeats=2, seed=3).splits(40)
        assert not np.array_equal(splits[0].test, splits[2].test)

    def test_stratified_balance(self):
        groups = np.repeat([0, 1, 2], [13, 7, 20])
        splits = CVControl(folds=4, seed=5).splits(40, groups)
        for g in range(3):
            counts = [np.sum(groups[s.test] == g) for s in splits]
            assert max(counts) - min(counts) <= 1

    def test_too_many_folds(self):
        with pytest.raises(ConfigurationError, match="exceeds"):
            CVControl(folds=10, seed=1).splits(5)

    def test_deterministic_given_seed(self):
        a = CVControl(seed=11).splits(50)
        b = CVControl(seed=11).splits(50)
        for s, t in zip(a, b):
            np.testing.assert_array_equal(s.test, t.test)


class TestBootstrap:

    def test_full_data_predicted(self):
        splits = BootControl(samples=4, seed=2).splits(30)
        assert [s.label for s in splits] == ["Boot01", "Boot02", "Boot03", "Boot04"]
        for s in splits:
            assert len(s.train) == 30
            np.testing.assert_array_equal(s.test, np.arange(30))

    def test_out_of_bag(self):
        for s in OOBControl(samples=5, seed=2).splits(30):
            np.testing.assert_array_equal(s.test, np.setdiff1d(np.arange(30), s.train))

    def test_stratified_sample_stays_in_stratum(self):
        groups = np.repeat([0, 1], [10, 20])
        for s in BootControl(samples=3, seed=4).splits(30, groups):
            assert np.sum(groups[s.train] == 0) == 10

    def test_label_width(self):
        splits = BootControl(samples=100, seed=1).splits(5)
        assert splits[0].label == "Boot001"


class TestSplitAndTrain:

    def test_split_proportion(self):
        (split,) = SplitControl(prop=0.75, seed=1).splits(40)
        assert split.label == "Split"
        assert len(split.train) == 30
        np.testing.assert_array_equal(np.sort(np.concatenate([split.train, split.test])),
                                      np.arange(40))

    def test_split_empty_side(self):
        with pytest.raises(ConfigurationError):
            SplitControl(prop=0.1, seed=1).splits(3)

    def test_train(self):
        (split,) = TrainControl(seed=1).splits(6)
        assert split.label == "Train"
        np.testing.assert_array_equal(split.train, split.test)
