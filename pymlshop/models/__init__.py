"""
Model specifications, fitting, and the built-in model library.

Public API:
    MLModel, DynamicParam, TrainingContext, MLModelFit
    fit(frame, model, settings, seed) -> MLModelFit
    NullModel, LMModel, CoxModel, SurvRegModel
    modelinfo(...)
"""

from pymlshop.models.model import (
    DynamicParam,
    MLModel,
    MLModelFit,
    TrainingContext,
    resolve_params,
)
from pymlshop.models.library import CoxModel, LMModel, NullModel, SurvRegModel
from pymlshop.models.solvers import as_model, fit
from pymlshop.models.modelinfo import modelinfo

__all__ = [
    "DynamicParam",
    "MLModel",
    "MLModelFit",
    "TrainingContext",
    "resolve_params",
    "CoxModel",
    "LMModel",
    "NullModel",
    "SurvRegModel",
    "as_model",
    "fit",
    "modelinfo",
]
