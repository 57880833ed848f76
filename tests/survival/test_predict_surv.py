"""
Tests for converting survival model outputs into predictions.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pymlshop.core.exceptions import ValidationError
from pymlshop.prediction.matrix import SurvProbs
from pymlshop.settings import default_settings
from pymlshop.survival import (
    Surv,
    Weibull,
    empirical_surv,
    exponential,
    predict_surv,
    rayleigh,
    surv_mean,
)


@pytest.fixture
def lp(surv_data):
    X, _ = surv_data
    return 0.8 * X[:, 0] - 0.5 * X[:, 1]


class TestLinearPredictor:

    def test_empirical_probs(self, surv_data, lp):
        _, y = surv_data
        times = [0.5, 1.0, 2.0]
        new_lp = lp[:5]
        probs = predict_surv(y, lp, times, new_lp=new_lp, dist="empirical")

        assert isinstance(probs, SurvProbs)
        assert probs.shape == (5, 3)
        expected = empirical_surv(y, np.exp(lp)).predict(times, np.exp(new_lp))
        assert_allclose(probs.values, expected)

    def test_exponential_means(self, surv_data, lp):
        _, y = surv_data
        means = predict_surv(y, lp, new_lp=lp[:4], dist="exponential")
        rate = exponential(y, np.exp(lp)).scale * np.exp(lp[:4])
        assert_allclose(means, 1.0 / rate)

    def test_higher_risk_lower_survival(self, surv_data, lp):
        _, y = surv_data
        new_lp = np.array([-1.0, 0.0, 1.0])
        probs = predict_surv(y, lp, [1.0], new_lp=new_lp)
        assert probs.values[0, 0] >= probs.values[1, 0] >= probs.values[2, 0]

    def test_new_lp_required(self, surv_data, lp):
        _, y = surv_data
        with pytest.raises(ValidationError, match="new_lp"):
            predict_surv(y, lp, [1.0])

    def test_default_dist_from_settings(self, surv_data, lp):
        _, y = surv_data
        settings = default_settings().replace(dist_surv="rayleigh")
        means = predict_surv(y, lp, new_lp=[0.0], settings=settings)
        assert_allclose(means, [rayleigh(y, np.exp(lp)).mean()])

    def test_empty_times_means(self, surv_data, lp):
        _, y = surv_data
        means = predict_surv(y, lp, [], new_lp=[0.0, 1.0])
        assert means.shape == (2,)


class TestCurves:

    def test_empirical_curve_list(self, surv_data):
        _, y = surv_data
        curves = [empirical_surv(y.take(np.arange(i, 80, 4))) for i in range(4)]
        means = predict_surv(y, curves, dist="empirical")
        max_time = float(np.max(y.time))
        assert_allclose(means, [c.mean(max_time=max_time) for c in curves])

        probs = predict_surv(y, curves, [0.5, 1.5], dist="empirical")
        assert probs.shape == (4, 2)
        assert_allclose(probs.values[2], curves[2].predict([0.5, 1.5])[0])


class TestProbabilityMatrix:

    def test_unlabelled_columns_follow_training_times(self):
        y = Surv([3.0, 1.0, 2.0], [1, 1, 1])
        # Columns are in case order: times 3, 1, 2
        values = np.array([[0.2, 0.9, 0.5]])
        probs = predict_surv(y, values, [1.0, 2.5, 3.0], dist="empirical")
        assert_allclose(probs.values, [[0.9, 0.5, 0.2]])

    def test_empirical_means(self):
        probs = SurvProbs([[0.5, 0.0]], [1.0, 2.0])
        means = predict_surv(Surv([1.0, 2.0], [1, 1]), probs, dist="empirical")
        assert_allclose(means, surv_mean([1.0, 2.0], [[0.5, 0.0]]))
        assert_allclose(means, [1.5])

    def test_weibull_refit(self):
        times = np.array([0.5, 1.0, 2.0])
        scales = np.array([0.3, 0.6])
        probs = SurvProbs(Weibull.from_params(1.2, scales).predict(times), times)
        y = Surv([0.5, 1.0, 2.0], [1, 1, 1])
        new_times = [0.75, 4.0]
        pred = predict_surv(y, probs, new_times, dist="weibull")
        assert_allclose(pred.values,
                        Weibull.from_params(1.2, scales).predict(new_times),
                        rtol=1e-8)
