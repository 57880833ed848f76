"""
PyMLShop: resampled performance evaluation and model selection.

Estimate predictive performance by resampling (cross-validation, bootstrap,
out-of-bag, optimism corrected, split, training resubstitution), compare
models with pairwise differences and paired t-tests, and select or tune
models by their resampled performance.

Submodules:
    survival: Empirical and Weibull survival curves and predictions
    prediction: Survival prediction matrices and response kinds
    models: Model specifications and the built-in model library
    resampling: Resampling controls and the resampling driver
    performance: Metrics, performance arrays and summaries
    compare: combine, diff, t_test
    selection: SelectedModel, TunedModel and tuning grids
"""

__version__ = "0.1.0"

from pymlshop.core.frame import ModelFrame
from pymlshop.settings import Settings, default_settings
from pymlshop.survival import Surv
from pymlshop.prediction import SurvEvents, SurvMatrix, SurvProbs
from pymlshop.models import (
    CoxModel,
    DynamicParam,
    LMModel,
    MLModel,
    NullModel,
    SurvRegModel,
    fit,
    modelinfo,
)
from pymlshop.resampling import (
    BootControl,
    BootOptimismControl,
    CVControl,
    CVOptimismControl,
    OOBControl,
    SplitControl,
    TrainControl,
    resample,
)
from pymlshop.performance import Metric, performance, summary
from pymlshop.compare import combine, diff, t_test
from pymlshop.selection import Grid, SelectedModel, TunedModel, expand_params

__all__ = [
    "__version__",
    "ModelFrame",
    "Settings",
    "default_settings",
    "Surv",
    "SurvEvents",
    "SurvMatrix",
    "SurvProbs",
    "CoxModel",
    "DynamicParam",
    "LMModel",
    "MLModel",
    "NullModel",
    "SurvRegModel",
    "fit",
    "modelinfo",
    "BootControl",
    "BootOptimismControl",
    "CVControl",
    "CVOptimismControl",
    "OOBControl",
    "SplitControl",
    "TrainControl",
    "resample",
    "Metric",
    "performance",
    "summary",
    "combine",
    "diff",
    "t_test",
    "Grid",
    "SelectedModel",
    "TunedModel",
    "expand_params",
]
