"""
Built-in model specifications.

    NullModel()                          all response kinds
    LMModel(lambda_=0.0)                 numeric, matrix
    CoxModel(ties="efron", penalty=0.0)  survival
    SurvRegModel(dist="weibull")         survival

Fit and predict closures are module-level functions so that model
specifications can be sent to process pool workers.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pymlshop.core.exceptions import ConfigurationError, InsufficientDataError
from pymlshop.core.validation import check_choice
from pymlshop.models._cox import TIES, cox_fit
from pymlshop.models._linear import ridge_fit, ridge_predict
from pymlshop.models.model import DynamicParam, MLModel, TrainingContext
from pymlshop.prediction.matrix import SurvProbs
from pymlshop.prediction.response import ALL_RESPONSE_TYPES, ResponseType
from pymlshop.survival._weibull import WeibullFit, weibull_mle
from pymlshop.survival.solution import Weibull
from pymlshop.survival.solvers import FIXED_SHAPES, predict_surv

SURVREG_DISTS = ("weibull", "exponential", "rayleigh")


# -- Tuning grids --

def penalty_grid(size: int, context: TrainingContext) -> list[float]:
    """0 followed by log-spaced penalties from 0.01 to 100."""
    if size == 1:
        return [0.0]
    return [0.0] + [float(v) for v in np.logspace(-2, 2, size - 1)]


def survreg_dist_grid(size: int, context: TrainingContext) -> list[str]:
    return list(SURVREG_DISTS[:size])


def _pval_importance(coef: NDArray, se: NDArray) -> NDArray:
    """-log(p) of two-sided Wald tests."""
    with np.errstate(divide="ignore", invalid="ignore"):
        z = np.where(se > 0, np.abs(coef) / se, 0.0)
    log_p = np.log(2.0) + stats.norm.logsf(z)
    return -log_p


# -- NullModel --

@dataclass(frozen=True)
class NullFit:
    response_type: ResponseType
    value: Any


def _null_fit(frame, *, rng, settings) -> NullFit:
    w = frame.weights
    kind = frame.response_type
    if kind is ResponseType.SURV:
        return NullFit(kind, None)
    if kind in (ResponseType.FACTOR, ResponseType.ORDERED):
        totals = np.array([np.sum(w[frame.y == level]) for level in frame.levels])
        return NullFit(kind, totals / np.sum(w))
    return NullFit(kind, (w @ frame.y) / np.sum(w))


def _null_predict(obj: NullFit, X, *, y, times, settings):
    n = X.shape[0]
    if obj.response_type is ResponseType.SURV:
        return predict_surv(y, np.zeros(len(y)), times, new_lp=np.zeros(n),
                            settings=settings)
    if np.ndim(obj.value) == 0:
        return np.full(n, obj.value)
    return np.tile(obj.value, (n, 1))


def NullModel() -> MLModel:
    """Null model: mean, class proportions, or the marginal survival curve."""
    return MLModel(
        name="NullModel",
        label="Null Model",
        response_types=ALL_RESPONSE_TYPES,
        fit=_null_fit,
        predict=_null_predict,
    )


# -- LMModel --

def _lm_fit(frame, *, rng, settings, lambda_=0.0):
    return ridge_fit(frame.X, frame.y, frame.weights, lambda_=float(lambda_))


def _lm_predict(obj, X, *, y, times, settings):
    return ridge_predict(obj, X)


def _lm_varimp(obj, columns):
    coef = np.abs(obj.coefficients)
    if coef.ndim == 2:
        coef = np.sqrt(np.sum(coef ** 2, axis=1))
    return coef * obj.x_scale


def LMModel(lambda_=0.0) -> MLModel:
    """
    Linear (ridge) regression.

    Args:
        lambda_: Ridge penalty on the coefficients (0 = least squares).
            May be a DynamicParam.
    """
    if not isinstance(lambda_, DynamicParam) and lambda_ < 0:
        raise ConfigurationError(f"lambda_ must be >= 0, got {lambda_}",
                                 field="lambda_", value=lambda_)
    return MLModel(
        name="LMModel",
        label="Linear Model",
        response_types=(ResponseType.NUMERIC, ResponseType.MATRIX),
        fit=_lm_fit,
        predict=_lm_predict,
        params={"lambda_": lambda_},
        gridinfo={"lambda_": penalty_grid},
        varimp=_lm_varimp,
    )


# -- CoxModel --

@dataclass(frozen=True)
class CoxModelFit:
    fit: Any
    x_mean: NDArray
    lp: NDArray


def _cox_fit(frame, *, rng, settings, ties="efron", penalty=0.0):
    check_choice(ties, TIES, "ties")
    x_mean = np.mean(frame.X, axis=0)
    Xc = frame.X - x_mean
    fit = cox_fit(frame.y.time, frame.y.event, Xc, ties=ties, penalty=float(penalty))
    return CoxModelFit(fit=fit, x_mean=x_mean, lp=Xc @ fit.coefficients)


def _cox_predict(obj: CoxModelFit, X, *, y, times, settings):
    new_lp = (X - obj.x_mean) @ obj.fit.coefficients
    return predict_surv(y, obj.lp, times, new_lp=new_lp,
                        method=obj.fit.ties, settings=settings)


def _cox_varimp(obj: CoxModelFit, columns):
    return _pval_importance(obj.fit.coefficients, obj.fit.standard_errors)


def CoxModel(ties: str = "efron", penalty=0.0) -> MLModel:
    """
    Cox proportional hazards regression.

    Predictions convert the linear predictor with the empirical baseline
    survival of the training data (tie method ``ties``), or a Weibull
    approximation for mean times per settings.dist_surv.

    Args:
        ties: "efron" or "breslow"
        penalty: Ridge penalty on the coefficients
    """
    check_choice(ties, TIES, "ties")
    return MLModel(
        name="CoxModel",
        label="Cox Regression",
        response_types=(ResponseType.SURV,),
        fit=_cox_fit,
        predict=_cox_predict,
        params={"ties": ties, "penalty": penalty},
        gridinfo={"penalty": penalty_grid},
        varimp=_cox_varimp,
    )


# -- SurvRegModel --

def _survreg_fit(frame, *, rng, settings, dist="weibull"):
    check_choice(dist, SURVREG_DISTS, "dist")
    shape = FIXED_SHAPES[dist]
    try:
        return weibull_mle(frame.y.time, frame.y.event, X=frame.X, shape=shape)
    except InsufficientDataError as e:
        warnings.warn(f"SurvRegModel parameters set to NA: {e}", stacklevel=2)
        p1 = frame.X.shape[1] + 1
        return WeibullFit(
            coefficients=np.full(p1, np.nan),
            shape=np.nan if shape is None else float(shape),
            loglik=np.nan,
            converged=False,
            n_iter=0,
            covariance=np.full((p1, p1), np.nan),
        )


def _survreg_predict(obj, X, *, y, times, settings):
    eta = obj.coefficients[0] + X @ obj.coefficients[1:]
    curves = Weibull.from_params(obj.shape, np.exp(eta))
    if times is not None:
        return SurvProbs(curves.predict(times), times)
    return np.atleast_1d(curves.mean())


def _survreg_varimp(obj, columns):
    se = np.sqrt(np.maximum(np.diag(obj.covariance), 0.0))
    return _pval_importance(obj.coefficients[1:], se[1:])


def SurvRegModel(dist: str = "weibull") -> MLModel:
    """
    Parametric proportional hazards survival regression.

    Args:
        dist: "weibull", "exponential" (shape 1) or "rayleigh" (shape 2)
    """
    check_choice(dist, SURVREG_DISTS, "dist")
    return MLModel(
        name="SurvRegModel",
        label="Parametric Survival",
        response_types=(ResponseType.SURV,),
        fit=_survreg_fit,
        predict=_survreg_predict,
        params={"dist": dist},
        gridinfo={"dist": survreg_dist_grid},
        varimp=_survreg_varimp,
    )


MODELS = {
    "NullModel": NullModel,
    "LMModel": LMModel,
    "CoxModel": CoxModel,
    "SurvRegModel": SurvRegModel,
}
