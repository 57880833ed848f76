"""
Tests for combining results from separate runs.
"""

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from pymlshop.compare import combine
from pymlshop.core.exceptions import StructuralMismatchError, ValidationError
from pymlshop.models import LMModel, NullModel
from pymlshop.performance import performance
from pymlshop.prediction.matrix import SurvEvents, SurvProbs
from pymlshop.resampling import CVControl, resample, resample_models


@pytest.fixture
def control():
    return CVControl(folds=4, seed=17)


@pytest.fixture
def runs(regression_frame, control):
    return (resample(regression_frame, NullModel(), control),
            resample(regression_frame, LMModel(), control))


class TestResamples:

    def test_matches_joint_run(self, regression_frame, control, runs):
        combined = combine(*runs)
        joint = resample_models(regression_frame,
                                {"NullModel": NullModel(), "LMModel": LMModel()},
                                control)
        assert combined.models == joint.models
        assert_array_equal(performance(combined).values, performance(joint).values)

    def test_keyword_names(self, runs):
        combined = combine(null=runs[0], lm=runs[1])
        assert combined.models == ("null", "lm")
        assert {r.model for r in combined.records} == {"null", "lm"}

    def test_duplicate_names_made_unique(self, runs):
        combined = combine(runs[1], runs[1], runs[1])
        assert combined.models == ("LMModel", "LMModel.1", "LMModel.2")

    def test_multi_model_keyword_prefix(self, regression_frame, control, runs):
        pair = resample_models(regression_frame,
                               {"a": NullModel(), "b": LMModel()}, control)
        combined = combine(first=pair, runs=runs[1])
        assert combined.models == ("first.a", "first.b", "runs")

    def test_different_control(self, regression_frame, runs):
        other = resample(regression_frame, LMModel(), CVControl(folds=4, seed=18))
        with pytest.raises(StructuralMismatchError) as exc_info:
            combine(runs[0], other)
        assert exc_info.value.what == "control"
        assert runs[0].models == ("NullModel",)
        assert len(runs[0]) == 4

    def test_different_strata(self, regression_frame, control, runs):
        stratified = type(regression_frame).from_arrays(
            X=regression_frame.X, y=regression_frame.y,
            strata=np.repeat(["a", "b"], 30),
        )
        other = resample(stratified, LMModel(), control)
        with pytest.raises(StructuralMismatchError) as exc_info:
            combine(runs[0], other)
        assert exc_info.value.what == "strata"


class TestPerformance:

    def test_concatenates_models(self, runs):
        p0, p1 = performance(runs[0]), performance(runs[1])
        combined = combine(p0, p1)
        assert combined.models == ("NullModel", "LMModel")
        assert_array_equal(combined.values[:, :, 0], p0.values[:, :, 0])
        assert_array_equal(combined.values[:, :, 1], p1.values[:, :, 0])

    def test_different_metrics(self, runs):
        with pytest.raises(StructuralMismatchError) as exc_info:
            combine(performance(runs[0], metrics="rmse"),
                    performance(runs[1], metrics="mae"))
        assert exc_info.value.what == "metrics"

    def test_different_iterations(self, regression_frame, runs):
        other = performance(resample(regression_frame, LMModel(),
                                     CVControl(folds=5, seed=17)))
        with pytest.raises(StructuralMismatchError) as exc_info:
            combine(performance(runs[0]), other)
        assert exc_info.value.what == "iterations"


class TestOtherKinds:

    def test_surv_matrices(self):
        a = SurvProbs([[0.9, 0.5]], [1.0, 2.0])
        b = SurvProbs([[0.8, 0.4], [0.7, 0.1]], [1.0, 2.0])
        combined = combine(a, b)
        assert combined.shape == (3, 2)
        assert combined.times == (1.0, 2.0)

    def test_surv_matrix_times_differ(self):
        with pytest.raises(StructuralMismatchError):
            combine(SurvProbs([[0.9]], [1.0]), SurvProbs([[0.9]], [2.0]))

    def test_surv_matrix_classes_differ(self):
        with pytest.raises(StructuralMismatchError):
            combine(SurvProbs([[0.9]], [1.0]), SurvEvents([[1.0]], [1.0]))

    def test_mixed_types(self, runs):
        with pytest.raises(StructuralMismatchError) as exc_info:
            combine(runs[0], performance(runs[1]))
        assert exc_info.value.what == "type"

    def test_nothing_to_combine(self):
        with pytest.raises(ValidationError):
            combine()

    def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            combine([1, 2], [3])
