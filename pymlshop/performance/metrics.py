"""
Performance metrics.

A Metric is a record: name, label, a function, a polarity flag, and the
response kinds it applies to. Metric functions take the observed response
and the canonical predictions

    fn(observed, predicted, *, weights=None, cutoff=0.5, levels=None) -> float

where factor predictions are (cases x levels) probability matrices and
survival predictions are either SurvProbs or predicted mean times. Empty
inputs give NaN.

Built-ins:
    numeric / matrix   rmse, mae, r2
    factor             brier, accuracy, cross_entropy
    survival           cindex (Harrell), brier (inverse probability of
                       censoring weighted, averaged over prediction times)

References:
    Harrell, F. E., Califf, R. M., Pryor, D. B., Lee, K. L., & Rosati, R. A.
        (1982). Evaluating the yield of medical tests. JAMA, 247(18).
    Graf, E., Schmoor, C., Sauerbrei, W., & Schumacher, M. (1999).
        Assessment and comparison of prognostic classification schemes for
        survival data. Statistics in Medicine, 18(17-18), 2529-2545.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import ConfigurationError, ValidationError
from pymlshop.models.model import classify
from pymlshop.prediction.matrix import SurvProbs
from pymlshop.prediction.response import ResponseType, as_response_types, response_type
from pymlshop.survival._utils import km_censoring, surv_metric_mean
from pymlshop.survival.design import Surv

_EPS = 1e-15


@dataclass(frozen=True, eq=False)
class Metric:
    """
    Performance metric.

    Attributes:
        name: Short name, used as the metric label in results
        label: Descriptive label
        fn: fn(observed, predicted, **kwargs) -> float
        maximize: True if larger values are better
        response_types: Response kinds the metric applies to
    """
    name: str
    label: str
    fn: Callable[..., float]
    maximize: bool
    response_types: frozenset[ResponseType]

    def __post_init__(self) -> None:
        object.__setattr__(self, "response_types", as_response_types(self.response_types))

    def __call__(self, observed, predicted, **kwargs) -> float:
        return self.fn(observed, predicted, **kwargs)

    def supports(self, kind: ResponseType) -> bool:
        if kind is ResponseType.ORDERED and ResponseType.FACTOR in self.response_types:
            return True
        return kind in self.response_types

    def __repr__(self) -> str:
        return f"Metric({self.name!r}, maximize={self.maximize})"


def _weights(weights, n: int) -> NDArray:
    return np.ones(n) if weights is None else np.asarray(weights, dtype=np.float64)


def _wmean(values: NDArray, weights: NDArray) -> float:
    if len(values) == 0 or np.sum(weights) == 0:
        return np.nan
    return float(np.sum(weights * values) / np.sum(weights))


def _codes(observed, levels) -> NDArray:
    if levels is None:
        raise ValidationError("factor metrics need the response levels")
    lookup = {level: i for i, level in enumerate(levels)}
    return np.array([lookup[v] for v in np.asarray(observed).tolist()], dtype=np.intp)


def _residuals(observed, predicted) -> NDArray:
    observed = np.asarray(observed, dtype=np.float64)
    predicted = np.asarray(predicted, dtype=np.float64)
    if observed.shape != predicted.shape:
        raise ValidationError(
            f"observed {observed.shape} and predicted {predicted.shape} shapes differ"
        )
    resid = observed - predicted
    return resid[:, np.newaxis] if resid.ndim == 1 else resid


# -- Numeric and matrix --

def rmse(observed, predicted, *, weights=None, **kwargs) -> float:
    """Root mean squared error."""
    resid = _residuals(observed, predicted)
    return float(np.sqrt(_wmean(np.mean(resid ** 2, axis=1), _weights(weights, len(resid)))))


def mae(observed, predicted, *, weights=None, **kwargs) -> float:
    """Mean absolute error."""
    resid = _residuals(observed, predicted)
    return _wmean(np.mean(np.abs(resid), axis=1), _weights(weights, len(resid)))


def r2(observed, predicted, *, weights=None, **kwargs) -> float:
    """Coefficient of determination, pooled over matrix columns."""
    resid = _residuals(observed, predicted)
    if len(resid) == 0:
        return np.nan
    w = _weights(weights, len(resid))
    obs = np.asarray(observed, dtype=np.float64).reshape(resid.shape)
    centered = obs - (w @ obs) / np.sum(w)
    sst = np.sum(w[:, np.newaxis] * centered ** 2)
    if sst == 0:
        return np.nan
    return float(1.0 - np.sum(w[:, np.newaxis] * resid ** 2) / sst)


# -- Factor --

def accuracy(observed, predicted, *, weights=None, cutoff=0.5, levels=None, **kwargs) -> float:
    """Proportion correctly classified."""
    predicted = np.asarray(predicted, dtype=np.float64)
    labels = classify(predicted, levels, cutoff) if len(predicted) else np.array([])
    correct = (labels == np.asarray(observed)).astype(np.float64)
    return _wmean(correct, _weights(weights, len(correct)))


def cross_entropy(observed, predicted, *, weights=None, levels=None, **kwargs) -> float:
    """Mean negative log-probability of the observed class."""
    predicted = np.asarray(predicted, dtype=np.float64)
    codes = _codes(observed, levels)
    p = np.clip(predicted[np.arange(len(codes)), codes], _EPS, 1.0)
    return _wmean(-np.log(p), _weights(weights, len(codes)))


def _factor_brier(observed, predicted, weights, levels) -> float:
    predicted = np.asarray(predicted, dtype=np.float64)
    codes = _codes(observed, levels)
    w = _weights(weights, len(codes))
    if predicted.shape[1] == 2:
        return _wmean((codes - predicted[:, 1]) ** 2, w)
    onehot = np.zeros_like(predicted)
    onehot[np.arange(len(codes)), codes] = 1.0
    return _wmean(np.sum((onehot - predicted) ** 2, axis=1), w)


# -- Survival --

def _risk_order_score(predicted) -> NDArray:
    """Per-case score that increases with predicted survival."""
    if isinstance(predicted, SurvProbs):
        return np.sum(predicted.values, axis=1)
    return np.asarray(predicted, dtype=np.float64).ravel()


def cindex(observed, predicted, **kwargs) -> float:
    """
    Harrell's concordance index.

    Over pairs where the case with the shorter time had an event, the
    proportion in which that case has the lower predicted survival
    (mean time, or summed survival probabilities). Ties count 1/2.
    Missing scores in any comparable pair give a missing index.
    """
    if not isinstance(observed, Surv):
        raise ValidationError("cindex requires a Surv response")
    score = _risk_order_score(predicted)
    time, status = observed.time, observed.status
    comparable = (status[:, np.newaxis] > 0) & (time[:, np.newaxis] < time[np.newaxis, :])
    n_pairs = np.sum(comparable)
    if n_pairs == 0:
        return np.nan
    missing = np.isnan(score)
    if np.any(comparable & (missing[:, np.newaxis] | missing[np.newaxis, :])):
        return np.nan
    diff = score[:, np.newaxis] - score[np.newaxis, :]
    concordant = np.sum(comparable & (diff < 0))
    tied = np.sum(comparable & (diff == 0))
    return float((concordant + 0.5 * tied) / n_pairs)


def _surv_brier(observed: Surv, predicted, weights) -> float:
    if not isinstance(predicted, SurvProbs):
        raise ValidationError(
            "survival brier requires SurvProbs predictions; set control times"
        )
    if len(observed) == 0:
        return np.nan
    time, status = observed.time, observed.status
    grid, G = km_censoring(time, observed.event)
    G_pad = np.concatenate([[1.0], G])
    G_before = G_pad[np.searchsorted(grid, time, side="left")]
    w = _weights(weights, len(time))

    scores = []
    for j, t in enumerate(predicted.times):
        surv = predicted.values[:, j]
        G_t = G_pad[np.searchsorted(grid, t, side="right")]
        with np.errstate(divide="ignore", invalid="ignore"):
            died = (time <= t) & (status > 0)
            alive = time > t
            contrib = np.zeros(len(time))
            contrib[died] = surv[died] ** 2 / G_before[died]
            contrib[alive] = (1.0 - surv[alive]) ** 2 / G_t
        scores.append(_wmean(contrib, w))
    if len(scores) == 1:
        return scores[0]
    return surv_metric_mean(np.array(scores), predicted.times)


def brier(observed, predicted, *, weights=None, levels=None, **kwargs) -> float:
    """Brier score for factor or survival responses."""
    if isinstance(observed, Surv):
        return _surv_brier(observed, predicted, weights)
    return _factor_brier(observed, predicted, weights, levels)


_FACTOR = (ResponseType.FACTOR, ResponseType.ORDERED)
_NUMERIC = (ResponseType.NUMERIC, ResponseType.MATRIX)

METRICS: dict[str, Metric] = {
    m.name: m for m in (
        Metric("rmse", "Root Mean Squared Error", rmse, False, _NUMERIC),
        Metric("mae", "Mean Absolute Error", mae, False, _NUMERIC),
        Metric("r2", "Coefficient of Determination", r2, True, _NUMERIC),
        Metric("accuracy", "Accuracy", accuracy, True, _FACTOR),
        Metric("cross_entropy", "Cross Entropy", cross_entropy, False, _FACTOR),
        Metric("brier", "Brier Score", brier, False, _FACTOR + (ResponseType.SURV,)),
        Metric("cindex", "Concordance Index", cindex, True, (ResponseType.SURV,)),
    )
}


def get_metric(metric) -> Metric:
    """Look up a built-in metric by name, or pass a Metric through."""
    if isinstance(metric, Metric):
        return metric
    if isinstance(metric, str) and metric in METRICS:
        return METRICS[metric]
    raise ConfigurationError(
        f"unknown metric {metric!r}; available: {sorted(METRICS)}",
        field="metrics",
        value=metric,
    )


def default_metrics(observed, predicted: Any = None) -> tuple[Metric, ...]:
    """
    Default metrics for an observed response (or a ResponseType).

    Survival responses get the Brier score only when predictions are
    survival probabilities.
    """
    kind = observed if isinstance(observed, ResponseType) else response_type(observed)
    if kind in _NUMERIC:
        names = ("rmse", "r2", "mae")
    elif kind in _FACTOR:
        names = ("brier", "accuracy", "cross_entropy")
    elif isinstance(predicted, SurvProbs):
        names = ("cindex", "brier")
    else:
        names = ("cindex",)
    return tuple(METRICS[name] for name in names)


def as_metrics(metrics, kind: ResponseType, predicted: Any = None) -> tuple[Metric, ...]:
    """Resolve a metric spec (None, name, Metric, or sequence) for a response kind."""
    if metrics is None:
        return default_metrics(kind, predicted)
    if isinstance(metrics, (str, Metric)):
        metrics = (metrics,)
    resolved = tuple(get_metric(m) for m in metrics)
    if not resolved:
        raise ConfigurationError("at least one metric is required", field="metrics")
    names = [m.name for m in resolved]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"duplicate metric names: {names}", field="metrics")
    for m in resolved:
        if not m.supports(kind):
            raise ConfigurationError(
                f"metric {m.name!r} does not apply to {kind.value} responses",
                field="metrics",
                value=m.name,
            )
    return resolved
