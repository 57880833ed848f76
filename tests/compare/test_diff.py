"""
Tests for model differences and paired t-tests.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose
from scipy import stats

from pymlshop.compare import combine, diff, p_adjust, t_test
from pymlshop.core.exceptions import ValidationError
from pymlshop.models import LMModel, NullModel
from pymlshop.performance import Performance, PerformanceDiff, performance, rmse
from pymlshop.performance.metrics import METRICS
from pymlshop.resampling import CVControl, resample, resample_models
from pymlshop.settings import default_settings


def _perf(values, models=("A", "B", "C")):
    values = np.asarray(values, dtype=float)
    if values.ndim == 2:
        values = values[:, np.newaxis, :]
    return Performance.from_arrays(values, [f"It{i}" for i in range(len(values))],
                                   [METRICS["rmse"]], models)


@pytest.fixture
def three_models():
    rng = np.random.default_rng(12)
    base = rng.normal(1.0, 0.1, 20)
    return np.column_stack([base, base + 0.05 + rng.normal(0, 0.02, 20),
                            base + rng.normal(0, 0.05, 20)])


# ═══════════════════════════════════════════════════════════════════════
# diff()
# ═══════════════════════════════════════════════════════════════════════

class TestDiff:

    def test_pairs_in_combination_order(self, three_models):
        d = diff(_perf(three_models))
        assert isinstance(d, PerformanceDiff)
        assert d.models == ("A - B", "A - C", "B - C")
        assert d.pairs == (("A", "B"), ("A", "C"), ("B", "C"))
        assert d.source_models == ("A", "B", "C")
        assert_allclose(d.values[:, 0, 0], three_models[:, 0] - three_models[:, 1])
        assert_allclose(d.values[:, 0, 2], three_models[:, 1] - three_models[:, 2])

    def test_combined_runs_equal_subtraction(self, regression_frame):
        control = CVControl(folds=5, seed=4)
        p_null = performance(resample(regression_frame, NullModel(), control))
        p_lm = performance(resample(regression_frame, LMModel(), control))
        d = diff(combine(p_null, p_lm))
        assert_allclose(d.values[:, :, 0], p_null.values[:, :, 0] - p_lm.values[:, :, 0])

    def test_from_resamples(self, regression_frame):
        res = resample_models(regression_frame, {"a": NullModel(), "b": LMModel()},
                              CVControl(folds=3, seed=1))
        assert diff(res).models == ("a - b",)

    def test_needs_two_models(self, three_models):
        with pytest.raises(ValidationError, match="at least two"):
            diff(_perf(three_models[:, :1], models=("A",)))

    def test_diff_of_diff(self, three_models):
        with pytest.raises(ValidationError):
            diff(diff(_perf(three_models)))

    def test_missing_values_propagate(self, three_models):
        values = three_models.copy()
        values[3, 1] = np.nan
        d = diff(_perf(values))
        assert np.isnan(d.values[3, 0, 0])
        assert not np.isnan(d.values[3, 0, 1])

    def test_select_pairs(self, three_models):
        d = diff(_perf(three_models)).select(["B - C"])
        assert d.pairs == (("B", "C"),)
        test = t_test(d)
        assert np.isnan(test.p_value("A", "B"))
        assert not np.isnan(test.p_value("B", "C"))


# ═══════════════════════════════════════════════════════════════════════
# t_test()
# ═══════════════════════════════════════════════════════════════════════

class TestTTest:

    def test_matches_scipy_with_holm(self, three_models):
        test = t_test(diff(_perf(three_models)))
        raw = [stats.ttest_rel(three_models[:, i], three_models[:, j]).pvalue
               for i, j in [(0, 1), (0, 2), (1, 2)]]
        expected = p_adjust(raw, "holm")
        assert test.adjust == "holm"
        assert test.p_value("A", "B") == pytest.approx(expected[0], rel=1e-10)
        assert test.p_value("A", "C") == pytest.approx(expected[1], rel=1e-10)
        assert test.p_value("B", "C") == pytest.approx(expected[2], rel=1e-10)

    def test_unadjusted(self, three_models):
        test = t_test(diff(_perf(three_models)), adjust="none")
        raw = stats.ttest_rel(three_models[:, 0], three_models[:, 1])
        assert test.p_value("A", "B") == pytest.approx(raw.pvalue, rel=1e-10)
        assert test.t_statistics[0, 1, 0] == pytest.approx(raw.statistic, rel=1e-10)

    def test_adjust_from_settings(self, three_models):
        settings = default_settings().replace(p_adjust="bonferroni")
        assert t_test(diff(_perf(three_models)), settings=settings).adjust == "bonferroni"

    def test_symmetry(self, three_models):
        test = t_test(diff(_perf(three_models)))
        p = test.p_values[:, :, 0]
        m = test.mean_diffs[:, :, 0]
        assert_allclose(p, p.T)
        assert np.all(np.isnan(np.diag(p)))
        assert_allclose(m, -m.T)
        assert_allclose(np.diag(m), 0.0)
        assert test.mean_diff("B", "A") == pytest.approx(
            np.mean(three_models[:, 1] - three_models[:, 0]))

    def test_model_order_invariance(self, three_models):
        forward = t_test(diff(_perf(three_models)))
        order = [2, 0, 1]
        permuted = t_test(diff(_perf(three_models[:, order],
                                     models=("C", "A", "B"))))
        for a in "ABC":
            for b in "ABC":
                if a == b:
                    continue
                assert permuted.p_value(a, b) == pytest.approx(forward.p_value(a, b))
                assert permuted.mean_diff(a, b) == pytest.approx(forward.mean_diff(a, b))

    def test_triangular(self, three_models):
        test = t_test(diff(_perf(three_models)))
        tri = test.triangular()[:, :, 0]
        assert tri[1, 0] == test.p_value("B", "A")
        assert tri[0, 1] == test.mean_diff("A", "B")
        assert np.all(np.isnan(np.diag(tri)))

    def test_constant_differences(self):
        values = np.array([[1.0, 2.0], [2.0, 3.0], [3.0, 4.0]])
        test = t_test(diff(_perf(values, models=("A", "B"))))
        assert np.isnan(test.p_value("A", "B"))
        assert test.mean_diff("A", "B") == pytest.approx(-1.0)
        assert any("essentially constant" in w for w in test.warnings)

    def test_missing_iterations_dropped(self, three_models):
        values = three_models.copy()
        values[0, 0] = np.nan
        test = t_test(diff(_perf(values)), adjust="none")
        raw = stats.ttest_rel(values[1:, 0], values[1:, 1]).pvalue
        assert test.p_value("A", "B") == pytest.approx(raw, rel=1e-10)

    def test_requires_diff(self, three_models):
        with pytest.raises(ValidationError):
            t_test(_perf(three_models))

    def test_to_dataframe(self, three_models):
        df = t_test(diff(_perf(three_models))).to_dataframe()
        assert list(df["pair"]) == ["A - B", "A - C", "B - C"]
        assert set(df.columns) == {"metric", "pair", "mean_diff", "t", "p_value"}

    def test_metric_values_consistent(self, regression_frame):
        res = resample_models(regression_frame, {"a": NullModel(), "b": LMModel()},
                              CVControl(folds=5, seed=2))
        d = diff(res)
        record_a = res.records[0]
        record_b = res.records[5]
        expected = (rmse(record_a.observed, record_a.predicted)
                    - rmse(record_b.observed, record_b.predicted))
        assert d.values[0, 0, 0] == pytest.approx(expected)
