"""
Tests for the resampling driver.
"""

import logging

import numpy as np
import pytest

from pymlshop.core.exceptions import ConfigurationError, ModelFitError, ValidationError
from pymlshop.core.frame import ModelFrame
from pymlshop.models import LMModel, MLModel, NullModel
from pymlshop.prediction.matrix import SurvProbs
from pymlshop.resampling import (
    BootOptimismControl,
    CVControl,
    OOBControl,
    TrainControl,
    resample,
    resample_models,
)
from pymlshop.settings import default_settings


def _draw_fit(frame, *, rng, settings):
    return rng.random()


def _draw_predict(obj, X, *, y, times, settings):
    return np.full(X.shape[0], obj)


def DrawModel():
    """Predicts one random draw from its fit generator."""
    return MLModel(name="DrawModel", label="Draw", response_types="numeric",
                   fit=_draw_fit, predict=_draw_predict)


def _broken_fit(frame, *, rng, settings):
    raise ValueError("singular design")


def _broken_predict(obj, X, *, y, times, settings):
    raise ValueError("cannot predict")


def BrokenModel(stage="fit"):
    return MLModel(
        name="BrokenModel",
        label="Broken",
        response_types="numeric",
        fit=_broken_fit if stage == "fit" else _draw_fit,
        predict=_broken_predict if stage == "predict" else _draw_predict,
    )


# ═══════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════

class TestRecords:

    def test_cross_validation(self, regression_frame):
        res = resample(regression_frame, LMModel(), CVControl(folds=5, repeats=2, seed=1))
        assert len(res) == 10
        assert res.models == ("LMModel",)
        assert res.iterations[0] == "Fold01.Rep1"
        assert res.iterations[-1] == "Fold05.Rep2"
        assert res.n_failed == 0
        for record in res.records:
            assert len(record.predicted) == len(record.test_index)
            np.testing.assert_array_equal(record.observed,
                                          regression_frame.y[record.test_index])

    def test_default_control(self, regression_frame):
        res = resample(regression_frame, NullModel())
        assert len(res) == 10
        assert isinstance(res.control, CVControl)

    def test_name(self, regression_frame):
        res = resample(regression_frame, LMModel(), TrainControl(seed=1), name="lm")
        assert res.models == ("lm",)
        assert res.records[0].model == "lm"

    def test_models_share_splits(self, regression_frame):
        res = resample_models(regression_frame,
                              {"null": NullModel(), "lm": LMModel()},
                              OOBControl(samples=3, seed=4))
        assert [r.model for r in res.records] == ["null"] * 3 + ["lm"] * 3
        for a, b in zip(res.records[:3], res.records[3:]):
            np.testing.assert_array_equal(a.test_index, b.test_index)

        lm = res.subset("lm")
        assert lm.models == ("lm",) and len(lm) == 3
        with pytest.raises(KeyError):
            res.subset("glm")

    def test_optimism_apparent_records(self, regression_frame):
        res = resample(regression_frame, LMModel(), BootOptimismControl(samples=3, seed=2))
        assert len(res.records) == 3
        (apparent,) = res.apparent
        assert apparent.label == "Apparent"
        assert len(apparent.test_index) == 60
        for record in res.records:
            assert record.train_predicted is not None
            assert len(record.train_predicted) == len(record.train_index)

    def test_survival_times(self, surv_frame):
        control = CVControl(folds=3, times=[0.5, 1.0], seed=3)
        res = resample(surv_frame, "CoxModel", control)
        predicted = res.records[0].predicted
        assert isinstance(predicted, SurvProbs)
        assert predicted.times == (0.5, 1.0)

    def test_strata_recorded(self, rng):
        labels = np.repeat(["a", "b"], 30)
        frame = ModelFrame.from_arrays(X=rng.standard_normal((60, 1)),
                                       y=rng.standard_normal(60), strata=labels)
        control = CVControl(folds=3, seed=1)
        res = resample(frame, LMModel(), control)
        np.testing.assert_array_equal(res.strata, labels)
        for record in res.records:
            assert np.sum(labels[record.test_index] == "a") == 10
        assert res.same_strata(resample(frame, NullModel(), control))


# ═══════════════════════════════════════════════════════════════════════
# Validation before any iteration runs
# ═══════════════════════════════════════════════════════════════════════

class TestValidation:

    def test_requires_frame(self, regression_frame):
        with pytest.raises(ValidationError):
            resample(regression_frame.X, LMModel())

    def test_unsupported_response(self, factor_frame):
        with pytest.raises(ConfigurationError):
            resample(factor_frame, LMModel(), CVControl(seed=1))

    def test_times_need_survival(self, regression_frame):
        with pytest.raises(ConfigurationError, match="times"):
            resample(regression_frame, LMModel(), CVControl(times=[1.0], seed=1))

    def test_no_models(self, regression_frame):
        with pytest.raises(ConfigurationError):
            resample_models(regression_frame, {})


# ═══════════════════════════════════════════════════════════════════════
# Execution backends
# ═══════════════════════════════════════════════════════════════════════

class TestReproducibility:

    def _predictions(self, res):
        return [r.predicted for r in res.records]

    @pytest.mark.parametrize("executor, n_jobs", [("thread", 3), ("thread", 1)])
    def test_thread_pool_matches_sequential(self, regression_frame, executor, n_jobs):
        control = CVControl(folds=5, repeats=2, seed=9)
        seq = resample(regression_frame, DrawModel(), control)
        par = resample(regression_frame, DrawModel(), control,
                       settings=default_settings().replace(executor=executor,
                                                           n_jobs=n_jobs))
        for a, b in zip(self._predictions(seq), self._predictions(par)):
            np.testing.assert_array_equal(a, b)

    def test_process_pool_matches_sequential(self, regression_frame):
        control = CVControl(folds=4, seed=9)
        seq = resample(regression_frame, LMModel(), control)
        par = resample(regression_frame, LMModel(), control,
                       settings=default_settings().replace(executor="process", n_jobs=2))
        for a, b in zip(self._predictions(seq), self._predictions(par)):
            np.testing.assert_array_equal(a, b)

    def test_iterations_get_distinct_generators(self, regression_frame):
        res = resample(regression_frame, DrawModel(), CVControl(folds=5, seed=9))
        draws = [r.predicted[0] for r in res.records]
        assert len(set(draws)) == 5

    def test_same_seed_same_results(self, regression_frame):
        a = resample(regression_frame, DrawModel(), CVControl(folds=5, seed=9))
        b = resample(regression_frame, DrawModel(), CVControl(folds=5, seed=9))
        assert [r.predicted[0] for r in a.records] == [r.predicted[0] for r in b.records]

    def test_debug_logging(self, regression_frame, caplog):
        with caplog.at_level(logging.DEBUG, logger="pymlshop.resampling"):
            resample(regression_frame, NullModel(), TrainControl(seed=1))
        assert any("iteration Train finished" in m for m in caplog.messages)


# ═══════════════════════════════════════════════════════════════════════
# Fit error policy
# ═══════════════════════════════════════════════════════════════════════

class TestFitErrors:

    def test_strict_raises(self, regression_frame):
        with pytest.raises(ModelFitError) as exc_info:
            resample(regression_frame, BrokenModel(), CVControl(folds=3, seed=1))
        err = exc_info.value
        assert err.model == "BrokenModel"
        assert err.iteration == "Fold01.Rep1"
        assert err.stage == "fit"
        assert isinstance(err.__cause__, ValueError)

    def test_strict_raises_from_thread_pool(self, regression_frame):
        settings = default_settings().replace(executor="thread", n_jobs=2)
        with pytest.raises(ModelFitError) as exc_info:
            resample(regression_frame, BrokenModel("predict"),
                     CVControl(folds=3, seed=1), settings=settings)
        assert exc_info.value.iteration == "Fold01.Rep1"
        assert exc_info.value.stage == "predict"

    def test_lenient_records_failures(self, regression_frame):
        settings = default_settings().replace(fit_errors="lenient")
        with pytest.warns(UserWarning, match="singular design"):
            res = resample(regression_frame, BrokenModel(), CVControl(folds=3, seed=1),
                           settings=settings)
        assert res.n_failed == 3
        assert all(r.failed and "fit failed" in r.error for r in res.records)
        assert len(res.warnings) == 3
