"""
Tests for the immutable Settings object.
"""

from dataclasses import FrozenInstanceError

import pytest

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.settings import Settings, default_settings, resolve_settings


class TestDefaults:

    def test_default_values(self):
        s = default_settings()
        assert s.n_jobs == 1
        assert s.executor == "sequential"
        assert s.fit_errors == "strict"
        assert s.stat_train == "mean"
        assert s.stats_resample == ("mean", "median", "sd", "min", "max")
        assert s.grid_size == 3
        assert s.cutoff == 0.5
        assert s.p_adjust == "holm"

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            default_settings().n_jobs = 4

    def test_resolve_none(self):
        assert resolve_settings(None) == Settings()

    def test_resolve_rejects_other_types(self):
        with pytest.raises(ConfigurationError):
            resolve_settings({"n_jobs": 2})


class TestReplace:

    def test_replace_returns_copy(self):
        s = default_settings()
        t = s.replace(n_jobs=4, executor="thread")
        assert t.n_jobs == 4 and t.executor == "thread"
        assert s.n_jobs == 1

    def test_unknown_field(self):
        with pytest.raises(ConfigurationError, match="unknown settings"):
            default_settings().replace(workers=2)

    @pytest.mark.parametrize("changes", [
        {"n_jobs": 0},
        {"executor": "gpu"},
        {"fit_errors": "ignore"},
        {"cutoff": 1.0},
        {"dist_surv": "lognormal"},
        {"p_adjust": "sidak"},
        {"stats_resample": ()},
    ])
    def test_invalid_values(self, changes):
        with pytest.raises(ConfigurationError):
            default_settings().replace(**changes)
