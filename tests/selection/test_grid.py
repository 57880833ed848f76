"""
Tests for tuning grids.
"""

import numpy as np
import pandas as pd
import pytest

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.models import LMModel, NullModel, SurvRegModel, TrainingContext
from pymlshop.selection import Grid, as_grid, expand_params

CONTEXT = TrainingContext(n_observations=50, n_features=3)


class TestExpandParams:

    def test_last_parameter_varies_fastest(self):
        grid = expand_params(a=[1, 2], b=["x", "y"])
        assert grid == (
            {"a": 1, "b": "x"}, {"a": 1, "b": "y"},
            {"a": 2, "b": "x"}, {"a": 2, "b": "y"},
        )

    def test_scalars_and_arrays(self):
        grid = expand_params(a=np.array([0.1, 0.2]), b=5)
        assert [g["b"] for g in grid] == [5, 5]
        assert len(grid) == 2

    def test_empty(self):
        with pytest.raises(ConfigurationError):
            expand_params()
        with pytest.raises(ConfigurationError, match="no values"):
            expand_params(a=[])


class TestGrid:

    def test_default_grid(self):
        grid = Grid(size=3).expand(LMModel(), CONTEXT)
        assert [g["lambda_"] for g in grid] == pytest.approx([0.0, 0.01, 100.0])

    def test_size_one(self):
        assert Grid(size=1).expand(LMModel(), CONTEXT) == ({"lambda_": 0.0},)

    def test_size_per_parameter(self):
        grid = Grid(size={"dist": 2}).expand(SurvRegModel(), CONTEXT)
        assert grid == ({"dist": "weibull"}, {"dist": "exponential"})
        with pytest.raises(ConfigurationError, match="no grid size"):
            Grid(size={"other": 2}).expand(SurvRegModel(), CONTEXT)

    def test_random_subset(self):
        full = Grid(size=5).expand(LMModel(), CONTEXT)
        sub = Grid(size=5, random=2).expand(LMModel(), CONTEXT, np.random.default_rng(0))
        assert len(sub) == 2
        assert all(point in full for point in sub)
        again = Grid(size=5, random=2).expand(LMModel(), CONTEXT, np.random.default_rng(0))
        assert sub == again

    def test_random_larger_than_grid(self):
        assert len(Grid(size=2, random=10).expand(LMModel(), CONTEXT)) == 2

    def test_model_without_grid(self):
        with pytest.raises(ConfigurationError, match="no default tuning grid"):
            Grid().expand(NullModel(), CONTEXT)

    @pytest.mark.parametrize("kwargs", [
        {"size": 0}, {"size": True}, {"size": {"a": 0}}, {"random": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            Grid(**kwargs)


class TestAsGrid:

    def test_int_is_default_grid_size(self):
        assert len(as_grid(2, LMModel(), CONTEXT)) == 2

    def test_default_grid_needs_model(self):
        with pytest.raises(ConfigurationError):
            as_grid(Grid())

    def test_dict_of_lists(self):
        assert as_grid({"n": [1, 2]}) == ({"n": 1}, {"n": 2})

    def test_list_of_dicts(self):
        assert as_grid([{"n": 1}, {"n": 3, "m": 2}]) == ({"n": 1}, {"n": 3, "m": 2})

    def test_dataframe(self):
        df = pd.DataFrame({"n": [1, 2], "alpha": [0.5, 0.25]})
        assert as_grid(df) == ({"n": 1, "alpha": 0.5}, {"n": 2, "alpha": 0.25})

    @pytest.mark.parametrize("grid", [[], "lambda_", [1, 2]])
    def test_invalid(self, grid):
        with pytest.raises(ConfigurationError):
            as_grid(grid)
