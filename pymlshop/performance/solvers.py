"""
Public API for performance evaluation.

    performance(resamples, metrics=None, cutoff=None) -> Performance
    summary(obj, stats=None) -> PerformanceSummary

Failed iterations (no predictions) and metrics that cannot be computed on
an iteration are NaN. Summaries ignore NaN values and report how many
there were.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from pymlshop.core.exceptions import ConfigurationError, ValidationError
from pymlshop.core.result import Result
from pymlshop.performance.metrics import Metric, as_metrics
from pymlshop.performance.solution import (
    Performance,
    PerformanceSummary,
    SummaryParams,
)
from pymlshop.resampling.solution import ResampleRecord, Resamples
from pymlshop.settings import Settings, resolve_settings


def _sd(x: NDArray) -> float:
    return float(np.std(x, ddof=1)) if len(x) > 1 else np.nan


STATS: dict[str, Callable[[NDArray], float]] = {
    "mean": np.mean,
    "median": np.median,
    "sd": _sd,
    "min": np.min,
    "max": np.max,
}


def resolve_stat(stat) -> tuple[str, Callable[[NDArray], float]]:
    """(name, function) of a statistic given by name or as a callable."""
    if callable(stat):
        return getattr(stat, "__name__", "stat"), stat
    if stat in STATS:
        return stat, STATS[stat]
    raise ConfigurationError(
        f"unknown statistic {stat!r}; available: {sorted(STATS)}",
        field="stats",
        value=stat,
    )


def apply_stat(fn: Callable[[NDArray], float], values: NDArray) -> float:
    """Statistic of the non-missing values; NaN when none remain."""
    values = np.asarray(values, dtype=np.float64)
    values = values[~np.isnan(values)]
    if len(values) == 0:
        return np.nan
    return float(fn(values))


def _first_prediction(records) -> Any:
    return next((r.predicted for r in records if r.predicted is not None), None)


def _score(metric: Metric, observed, predicted, weights, cutoff, levels) -> float:
    if predicted is None:
        return np.nan
    return float(metric(observed, predicted, weights=weights, cutoff=cutoff,
                        levels=levels))


def _test_scores(record: ResampleRecord, metrics, cutoff, levels) -> NDArray:
    return np.array([
        _score(m, record.observed, record.predicted, record.weights, cutoff, levels)
        for m in metrics
    ])


def _train_scores(record: ResampleRecord, metrics, cutoff, levels) -> NDArray:
    return np.array([
        _score(m, record.train_observed, record.train_predicted,
               record.train_weights, cutoff, levels)
        for m in metrics
    ])


def performance(
    resamples: Resamples,
    metrics=None,
    cutoff: float | None = None,
    settings: Settings | None = None,
) -> Performance:
    """
    Compute resampled performance.

    Parameters
    ----------
    resamples : Resamples
        Output of resample().
    metrics : str, Metric, sequence of them, or None
        Metrics to compute; the defaults for the response kind when None.
    cutoff : float or None
        Binary classification cutoff; settings.cutoff when None.
    settings : Settings or None

    Returns
    -------
    Performance
        Values with shape (iterations, metrics, models). For optimism
        corrected controls each value is the apparent performance minus
        the optimism (training minus test performance) of the iteration.
    """
    if not isinstance(resamples, Resamples):
        raise ValidationError(
            f"performance() requires Resamples, got {type(resamples).__name__}"
        )
    settings = resolve_settings(settings)
    cutoff = settings.cutoff if cutoff is None else cutoff
    metrics = as_metrics(metrics, resamples.response_type,
                         _first_prediction(resamples.records))
    levels = resamples.levels

    iterations = resamples.iterations
    values = np.full((len(iterations), len(metrics), len(resamples.models)), np.nan)
    for k, model in enumerate(resamples.models):
        records = [r for r in resamples.records if r.model == model]
        apparent = [r for r in resamples.apparent if r.model == model]
        apparent_scores = (_test_scores(apparent[0], metrics, cutoff, levels)
                           if apparent else None)
        for i, record in enumerate(records):
            test = _test_scores(record, metrics, cutoff, levels)
            if apparent_scores is not None:
                train = _train_scores(record, metrics, cutoff, levels)
                test = apparent_scores - (train - test)
            values[i, :, k] = test

    return Performance.from_arrays(values, iterations, metrics, resamples.models,
                                   resamples.control, warnings=resamples.warnings)


def _stat_columns(stats, settings: Settings) -> list[tuple[str, Callable]]:
    if stats is None:
        stats = settings.stats_resample
    if isinstance(stats, dict):
        columns = [(name, resolve_stat(fn)[1]) for name, fn in stats.items()]
    else:
        if isinstance(stats, str) or callable(stats):
            stats = (stats,)
        columns = [resolve_stat(s) for s in stats]
    if not columns:
        raise ConfigurationError("at least one statistic is required", field="stats")
    names = [name for name, _ in columns]
    if "NA" in names or len(set(names)) != len(names):
        raise ConfigurationError(f"statistic names must be unique and not 'NA': {names}",
                                 field="stats")
    return columns


def summary(obj, stats=None, settings: Settings | None = None) -> PerformanceSummary:
    """
    Summarize resampled performance over iterations.

    Parameters
    ----------
    obj : Performance, PerformanceDiff, or Resamples
        Resamples are first evaluated with the default metrics.
    stats : names, callables, dict of name -> callable, or None
        Statistics to compute; settings.stats_resample when None.

    Returns
    -------
    PerformanceSummary
        metrics x (stats + "NA") x models. Statistics ignore missing
        values; "NA" counts them.
    """
    settings = resolve_settings(settings)
    if isinstance(obj, Resamples):
        obj = performance(obj, settings=settings)
    if not isinstance(obj, Performance):
        raise ValidationError(
            f"summary() requires Performance or Resamples, got {type(obj).__name__}"
        )
    columns = _stat_columns(stats, settings)

    n_iter, n_metric, n_model = obj.shape
    out = np.empty((n_metric, len(columns) + 1, n_model))
    for j in range(n_metric):
        for k in range(n_model):
            x = obj.values[:, j, k]
            for s, (_, fn) in enumerate(columns):
                out[j, s, k] = apply_stat(fn, x)
            out[j, -1, k] = np.sum(np.isnan(x))

    params = SummaryParams(
        values=out,
        metrics=obj.metrics,
        stats=tuple(name for name, _ in columns) + ("NA",),
        models=obj.models,
    )
    return PerformanceSummary(Result(params=params, info={}, timing=None,
                                     backend_name="summary"))
