"""
Tests for survival prediction matrices.
"""

import numpy as np
import pytest

from pymlshop.core.exceptions import DimensionError, StructuralMismatchError
from pymlshop.prediction.matrix import SurvEvents, SurvProbs


@pytest.fixture
def probs():
    return SurvProbs([[0.9, 0.7, 0.4], [0.8, 0.5, 0.2]], [1.0, 2.0, 3.0])


class TestConstruction:

    def test_shape_and_times(self, probs):
        assert probs.shape == (2, 3)
        assert probs.times == (1.0, 2.0, 3.0)

    def test_times_must_match_columns(self):
        with pytest.raises(DimensionError, match="columns"):
            SurvProbs([[0.9, 0.8]], [1.0])

    def test_values_read_only(self, probs):
        with pytest.raises(ValueError):
            probs.values[0, 0] = 0.0


class TestIndexing:

    def test_column_subset_keeps_times(self, probs):
        sub = probs[:, [0, 2]]
        assert isinstance(sub, SurvProbs)
        assert sub.times == (1.0, 3.0)
        np.testing.assert_array_equal(sub.values, [[0.9, 0.4], [0.8, 0.2]])

    def test_single_row(self, probs):
        row = probs[1]
        assert row.shape == (1, 3)

    def test_take(self, probs):
        assert probs.take([1, 1, 0]).shape == (3, 3)

    def test_with_origin(self, probs):
        full = probs.with_origin()
        assert full.times[0] == 0.0
        np.testing.assert_array_equal(full.values[:, 0], [1.0, 1.0])
        events = SurvEvents([[0, 1]], [1.0, 2.0]).with_origin()
        np.testing.assert_array_equal(events.values, [[0.0, 0.0, 1.0]])


class TestCombination:

    def test_concat(self, probs):
        both = probs.concat(probs)
        assert both.shape == (4, 3)
        assert both.times == probs.times

    def test_concat_different_times(self, probs):
        other = SurvProbs([[0.5, 0.4, 0.3]], [1.0, 2.0, 4.0])
        with pytest.raises(StructuralMismatchError) as exc_info:
            probs.concat(other)
        assert exc_info.value.what == "times"

    def test_concat_different_class(self, probs):
        events = SurvEvents([[0, 0, 1]], [1.0, 2.0, 3.0])
        with pytest.raises(StructuralMismatchError):
            probs.concat(events)

    def test_subtract(self, probs):
        diff = probs - probs
        np.testing.assert_array_equal(diff.values, np.zeros((2, 3)))
        assert diff.times == probs.times

    def test_equality(self, probs):
        same = SurvProbs(probs.values.copy(), probs.times)
        assert probs == same
        assert probs != SurvEvents(probs.values, probs.times)
