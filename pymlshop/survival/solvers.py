"""
Public API for survival curves.

    empirical_surv(y, risk, method) -> EmpiricalSurv
    weibull(y, risk, shape) -> Weibull
    exponential(y, risk) -> Weibull         # shape = 1
    rayleigh(y, risk) -> Weibull            # shape = 2
    weibull_from_curve(curve, shape) -> Weibull
    weibull_from_probs(probs, shape) -> Weibull
    predict_surv(y, object, times, new_lp, dist, method) -> SurvProbs | NDArray

Each fitting function validates inputs, runs the estimator, and wraps the
Result in a Solution. predict_surv() converts any of the supported model
outputs (per-case curves, a probability matrix, or a linear predictor)
into mean survival times or survival probabilities.
"""

from __future__ import annotations

import warnings
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import InsufficientDataError, ValidationError
from pymlshop.core.result import Result
from pymlshop.core.compute.timing import Timer
from pymlshop.core.validation import check_array, check_choice, check_consistent_length
from pymlshop.prediction.matrix import SurvProbs
from pymlshop.settings import Settings, resolve_settings
from pymlshop.survival._common import WeibullParams
from pymlshop.survival._empirical import METHODS, empirical_surv_fit
from pymlshop.survival._utils import step_lookup, surv_mean
from pymlshop.survival._weibull import weibull_loglinear, weibull_mle
from pymlshop.survival.design import Surv
from pymlshop.survival.solution import EmpiricalSurv, Weibull

DistName = Literal["empirical", "exponential", "rayleigh", "weibull"]

FIXED_SHAPES: dict[str, float | None] = {
    "exponential": 1.0,
    "rayleigh": 2.0,
    "weibull": None,
}


def _check_surv(y) -> Surv:
    if not isinstance(y, Surv):
        raise ValidationError(
            f"y must be a Surv response, got {type(y).__name__}"
        )
    return y


def _check_risk(y: Surv, risk) -> NDArray:
    if risk is None:
        return np.ones(len(y), dtype=np.float64)
    risk = check_array(risk, "risk").ravel()
    check_consistent_length(y.time, risk, names=("y", "risk"))
    if np.any(risk <= 0) or not np.all(np.isfinite(risk)):
        raise ValidationError("risk: must be positive and finite")
    return risk


def empirical_surv(
    y: Surv,
    risk=None,
    method: Literal["breslow", "efron", "fleming-harrington"] | None = None,
    *,
    settings: Settings | None = None,
) -> EmpiricalSurv:
    """Empirical survival curve with optional case risk weights.

    Parameters
    ----------
    y : Surv
        Observed survival response.
    risk : array-like or None
        Relative risks (e.g. exp of a linear predictor). Default 1.
    method : str or None
        Tie handling: "breslow", "efron", or "fleming-harrington".
        Defaults to settings.method_empirical_surv.

    Returns
    -------
    EmpiricalSurv
    """
    y = _check_surv(y)
    risk = _check_risk(y, risk)
    if method is None:
        method = resolve_settings(settings).method_empirical_surv
    check_choice(method, METHODS, "method")

    timer = Timer()
    timer.start()
    params = empirical_surv_fit(y.time, y.event, risk, method=method)
    timer.stop()

    result = Result(
        params=params,
        info={"method": method, "weighted": bool(np.any(risk != 1.0))},
        timing=timer.result(),
        backend_name=f"cpu_{method}",
    )
    return EmpiricalSurv(result)


def weibull(
    y: Surv,
    risk=None,
    shape: float | None = None,
) -> Weibull:
    """Weibull curve fitted by maximum likelihood.

    The curve is S(t) = exp(-scale * r * t^shape) for relative risk r, the
    proportional hazards form; risks enter as log offsets. With too few
    distinct event times the curve has NaN parameters and a warning is
    issued instead of raising.

    Parameters
    ----------
    y : Surv
        Observed survival response.
    risk : array-like or None
        Relative risks. Default 1.
    shape : float or None
        Fixed shape parameter, or None to estimate it.

    Returns
    -------
    Weibull
    """
    y = _check_surv(y)
    risk = _check_risk(y, risk)
    if shape is not None and shape <= 0:
        raise ValidationError(f"shape must be positive, got {shape}")

    timer = Timer()
    timer.start()
    warnings_list = []
    try:
        fit = weibull_mle(y.time, y.event, offset=np.log(risk), shape=shape)
    except InsufficientDataError as e:
        msg = f"Weibull parameters set to NA: {e}"
        warnings.warn(msg, stacklevel=2)
        warnings_list.append(msg)
        params = WeibullParams(shape=np.nan, scale=np.nan,
                               fixed_shape=shape is not None, converged=False)
    else:
        if not fit.converged:
            msg = f"Weibull fit did not converge in {fit.n_iter} iterations"
            warnings.warn(msg, stacklevel=2)
            warnings_list.append(msg)
        params = WeibullParams(
            shape=fit.shape,
            scale=float(np.exp(fit.coefficients[0])),
            fixed_shape=shape is not None,
            converged=fit.converged,
            n_iter=fit.n_iter,
            loglik=fit.loglik,
        )
    timer.stop()

    result = Result(
        params=params,
        info={"method": "maximum likelihood", "shape": shape},
        timing=timer.result(),
        backend_name="cpu_weibull",
        warnings=tuple(warnings_list),
    )
    return Weibull(result)


def exponential(y: Surv, risk=None) -> Weibull:
    """Exponential curve: Weibull with shape 1."""
    return weibull(y, risk, shape=1.0)


def rayleigh(y: Surv, risk=None) -> Weibull:
    """Rayleigh curve: Weibull with shape 2."""
    return weibull(y, risk, shape=2.0)


def weibull_from_curve(curve: EmpiricalSurv, shape: float | None = None) -> Weibull:
    """Refit a Weibull curve to the events and censorings of an empirical curve."""
    n_event = np.rint(curve.n_event).astype(int)
    n_censor = np.rint(curve.n_censor).astype(int)
    time = np.concatenate([np.repeat(curve.time, n_event),
                           np.repeat(curve.time, n_censor)])
    event = np.concatenate([np.ones(n_event.sum()), np.zeros(n_censor.sum())])
    return weibull(Surv(time, event), shape=shape)


def weibull_from_probs(probs: SurvProbs, shape: float | None = None) -> Weibull:
    """Per-case Weibull curves from a survival probability matrix.

    Each row is fitted by least squares of log(-log S) on log(t), using
    only the points where S strictly decreases and both logs are finite.
    Rows that cannot be fitted get NaN parameters.
    """
    times = np.asarray(probs.times, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        log_time = np.log(times)
        loglog = np.log(-np.log(probs.values))

    shapes = np.empty(len(probs))
    scales = np.empty(len(probs))
    for i, surv in enumerate(probs.values):
        keep = (np.diff(np.concatenate([[1.0], surv])) < 0)
        keep &= np.isfinite(log_time) & np.isfinite(loglog[i])
        shapes[i], scales[i] = weibull_loglinear(log_time[keep], loglog[i, keep], shape)

    warnings_list = []
    n_na = int(np.sum(np.isnan(scales)))
    if n_na:
        msg = f"Weibull parameters set to NA for {n_na} of {len(probs)} curves"
        warnings.warn(msg, stacklevel=2)
        warnings_list.append(msg)

    params = WeibullParams(
        shape=float(shape) if shape is not None else shapes,
        scale=scales,
        fixed_shape=shape is not None,
    )
    result = Result(
        params=params,
        info={"method": "log-log least squares"},
        timing=None,
        backend_name="cpu_weibull_probs",
        warnings=tuple(warnings_list),
    )
    return Weibull(result)


def surv_dist(name: str):
    """Curve constructor for a distribution name.

    Returns a function (y, risk=None, method=None) -> curve.
    """
    if name == "empirical":
        return lambda y, risk=None, method=None: empirical_surv(y, risk, method)
    if name in FIXED_SHAPES:
        shape = FIXED_SHAPES[name]
        return lambda y, risk=None, method=None: weibull(y, risk, shape=shape)
    raise ValidationError(
        f"dist must be 'empirical', 'exponential', 'rayleigh', or 'weibull', "
        f"got {name!r}"
    )


# -- Predictions --

def probs_predict(probs: SurvProbs, times) -> NDArray:
    """Step-function lookup of a probability matrix at new times."""
    return step_lookup(np.asarray(probs.times), probs.values, np.atleast_1d(times))


def probs_mean(probs: SurvProbs) -> NDArray:
    """Mean survival time of each row, integrated to the last time."""
    return surv_mean(np.asarray(probs.times), probs.values)


def predict_surv(
    y: Surv,
    object,
    times=None,
    new_lp=None,
    dist: DistName | None = None,
    method: str | None = None,
    *,
    settings: Settings | None = None,
):
    """Convert a survival model output into predictions.

    Parameters
    ----------
    y : Surv
        Training response the model was fitted to.
    object : list of EmpiricalSurv, SurvProbs, 2D array, or 1D array
        Model output: one curve per new case; a probability matrix (an
        unlabelled 2D array has one column per training time); or the
        training linear predictor, in which case ``new_lp`` holds the
        linear predictor of the new cases.
    times : array-like or None
        Prediction times. If given, survival probabilities are returned,
        otherwise mean survival times.
    dist : str or None
        Distribution used for the conversion. Defaults to
        settings.dist_surv_probs with times and settings.dist_surv without.
    method : str or None
        Empirical estimator tie method.

    Returns
    -------
    SurvProbs (with times) or NDArray of mean times.
    """
    settings = resolve_settings(settings)
    y = _check_surv(y)
    if times is not None:
        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        if len(times) == 0:
            times = None
    if dist is None:
        dist = settings.dist_surv_probs if times is not None else settings.dist_surv
    if method is None:
        method = settings.method_empirical_surv

    if isinstance(object, (list, tuple)):
        return _predict_curves(y, object, times, dist)

    if isinstance(object, SurvProbs) or np.ndim(object) == 2:
        return _predict_probs(y, object, times, dist)

    if new_lp is None:
        raise ValidationError(
            "predict_surv: new_lp is required with a linear predictor"
        )
    risk = np.exp(check_array(object, "lp").ravel())
    new_risk = np.exp(check_array(new_lp, "new_lp").ravel())
    curve = surv_dist(dist)(y, risk, method)
    if times is not None:
        return SurvProbs(curve.predict(times, new_risk), times)
    return np.atleast_1d(curve.mean(new_risk, max_time=float(np.max(y.time))))


def _predict_curves(y: Surv, curves, times, dist: str):
    shape = FIXED_SHAPES.get(dist)
    converted = [
        c if dist == "empirical" else weibull_from_curve(c, shape) for c in curves
    ]
    if times is not None:
        values = np.vstack([np.asarray(c.predict(times))[0] for c in converted])
        return SurvProbs(values, times)
    max_time = float(np.max(y.time))
    return np.array([c.mean(max_time=max_time) for c in converted])


def _predict_probs(y: Surv, object, times, dist: str):
    if isinstance(object, SurvProbs):
        probs = object
    else:
        values = check_array(object, "object")
        order = y.order()
        probs = SurvProbs(values[:, order], y.time[order])

    if dist == "empirical":
        if times is not None:
            return SurvProbs(probs_predict(probs, times), times)
        return probs_mean(probs)

    fitted = weibull_from_probs(probs, FIXED_SHAPES[dist])
    if times is not None:
        return SurvProbs(fitted.predict(times), times)
    return np.atleast_1d(fitted.mean())
