"""
Survival curves and survival predictions.

Public API:
    Surv(time, event)
    empirical_surv(...) -> EmpiricalSurv
    weibull(...), exponential(...), rayleigh(...) -> Weibull
    weibull_from_curve(...), weibull_from_probs(...) -> Weibull
    predict_surv(...) -> SurvProbs | NDArray
"""

from pymlshop.survival.design import Surv
from pymlshop.survival.solution import EmpiricalSurv, Weibull
from pymlshop.survival.solvers import (
    empirical_surv,
    exponential,
    predict_surv,
    probs_mean,
    probs_predict,
    rayleigh,
    surv_dist,
    weibull,
    weibull_from_curve,
    weibull_from_probs,
)
from pymlshop.survival._utils import surv_mean, surv_metric_mean

__all__ = [
    "Surv",
    "EmpiricalSurv",
    "Weibull",
    "empirical_surv",
    "exponential",
    "predict_surv",
    "probs_mean",
    "probs_predict",
    "rayleigh",
    "surv_dist",
    "surv_mean",
    "surv_metric_mean",
    "weibull",
    "weibull_from_curve",
    "weibull_from_probs",
]
