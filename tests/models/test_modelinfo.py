"""
Tests for model information lookup.
"""

import numpy as np

from pymlshop.models import CoxModel, LMModel, modelinfo
from pymlshop.prediction.response import ResponseType
from pymlshop.survival import Surv


class TestModelInfo:

    def test_all_models(self):
        info = modelinfo()
        assert set(info) == {"NullModel", "LMModel", "CoxModel", "SurvRegModel"}
        assert info["LMModel"]["grid"] is True
        assert info["NullModel"]["varimp"] is False

    def test_given_models(self):
        info = modelinfo(CoxModel, "LMModel")
        assert list(info) == ["CoxModel", "LMModel"]
        assert "lambda_" in info["LMModel"]["arguments"].parameters

    def test_filter_by_response(self):
        info = modelinfo(Surv([1.0, 2.0], [1, 0]))
        assert set(info) == {"NullModel", "CoxModel", "SurvRegModel"}

    def test_models_filtered_by_response(self):
        info = modelinfo(LMModel(), CoxModel(), np.array([1.0, 2.0]))
        assert list(info) == ["LMModel"]

    def test_response_type_value(self):
        info = modelinfo(ResponseType.MATRIX)
        assert set(info) == {"NullModel", "LMModel"}
        assert info["LMModel"]["response_types"] == ("matrix", "numeric")
