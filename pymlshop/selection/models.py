"""
Model selection and tuning.

    SelectedModel(*models, control, metrics, stat, cutoff, **named)
    TunedModel(model, grid, fixed, control, metrics, stat, cutoff)

Both return MLModel records, so they resample, combine and nest like any
other model. Fitting one runs

    build candidates -> resample each -> summarize the selection metric
    -> select the best candidate -> refit it on the full training data

The selection metric is the first of ``metrics``; the candidate with the
largest statistic is chosen for metrics that are maximized and the
smallest otherwise, ties going to the first candidate. The refit winner is
returned with a TrainBits record of every candidate's performance.
"""

from __future__ import annotations

import logging

import numpy as np

from pymlshop.core.exceptions import ConfigurationError
from pymlshop.core.names import make_unique
from pymlshop.models.model import MLModel, MLModelFit, TrainingContext
from pymlshop.models.solvers import as_model, fit
from pymlshop.performance.metrics import Metric, get_metric
from pymlshop.performance.solvers import apply_stat, performance, resolve_stat
from pymlshop.resampling.control import as_control
from pymlshop.resampling.solvers import resample_models
from pymlshop.selection.grid import Grid, ParamGrid, as_grid
from pymlshop.selection.trainbits import TrainBits, select_index

logger = logging.getLogger(__name__)


def _check_metrics(metrics):
    if metrics is None:
        return None
    if isinstance(metrics, (str, Metric)):
        metrics = (metrics,)
    metrics = tuple(get_metric(m) for m in metrics)
    if not metrics:
        raise ConfigurationError("at least one metric is required", field="metrics")
    return metrics


def _check_stat(stat):
    if stat is not None:
        resolve_stat(stat)
    return stat


def _select(frame, candidates: dict[str, MLModel], grid: ParamGrid, *, rng,
            settings, control, metrics, stat, cutoff) -> MLModelFit:
    """Resample the candidates, pick the best, and refit it on ``frame``."""
    resamples = resample_models(frame, candidates, control, settings)
    perf = performance(resamples, metrics=metrics, cutoff=cutoff, settings=settings)

    metric = perf.metric_info[0]
    stat_name, stat_fn = resolve_stat(settings.stat_train if stat is None else stat)
    values = np.array([apply_stat(stat_fn, perf.values[:, 0, k])
                       for k in range(len(perf.models))])
    selected = select_index(values, metric.maximize)
    name = perf.models[selected]
    logger.debug("selected %s: %s %s = %.6g", name, stat_name, metric.name,
                 values[selected])

    winner = fit(frame, candidates[name], settings=settings,
                 seed=int(rng.integers(2**31)))
    trainbits = TrainBits(
        grid=grid,
        performance=perf,
        selected=selected,
        values=values,
        metric=metric,
        stat=stat_name,
    )
    return winner.with_trainbits(trainbits)


def _selection_predict(obj, X, *, y, times, settings):
    return obj.predict_raw(X, times, settings)


# -- SelectedModel --

def _selected_fit(frame, *, rng, settings, candidates, control, metrics, stat, cutoff):
    models = dict(candidates)
    return _select(frame, models, tuple({} for _ in models), rng=rng,
                   settings=settings, control=control, metrics=metrics,
                   stat=stat, cutoff=cutoff)


def SelectedModel(*models, control=None, metrics=None, stat=None, cutoff=None,
                  **named) -> MLModel:
    """
    Select the best of several models by resampled performance.

    Args:
        *models: Candidate models (MLModel, constructor or library name),
            named by their model names
        control: Resampling control for the selection; CVControl() if None
        metrics: Metrics to compute; the first one drives the selection
        stat: Statistic of the selection metric; settings.stat_train if None
        cutoff: Binary classification cutoff for the metrics
        **named: Further candidates, named by keyword

    Returns:
        MLModel whose fit is the refit selected candidate

    Raises:
        ConfigurationError: No candidates, or candidates with no response
            type in common
    """
    candidates = [(m.name, m) for m in map(as_model, models)]
    candidates += [(key, as_model(m)) for key, m in named.items()]
    if not candidates:
        raise ConfigurationError("SelectedModel requires at least one model",
                                 field="models")
    names = make_unique([name for name, _ in candidates])
    candidates = tuple(zip(names, (m for _, m in candidates)))

    response_types = frozenset.intersection(*(m.response_types for _, m in candidates))
    if not response_types:
        raise ConfigurationError(
            f"models {names} have no response type in common",
            field="models",
            value=names,
        )

    return MLModel(
        name="SelectedModel",
        label="Selected Model",
        response_types=response_types,
        fit=_selected_fit,
        predict=_selection_predict,
        params={
            "candidates": candidates,
            "control": as_control(control),
            "metrics": _check_metrics(metrics),
            "stat": _check_stat(stat),
            "cutoff": cutoff,
        },
    )


# -- TunedModel --

def _tuned_fit(frame, *, rng, settings, model, grid, fixed, control, metrics,
               stat, cutoff):
    if grid is None:
        grid = Grid(size=settings.grid_size)
    points = as_grid(grid, model, TrainingContext.from_frame(frame), rng)
    overlap = sorted(set(fixed) & set().union(*points))
    if overlap:
        raise ConfigurationError(
            f"parameters {overlap} are both fixed and tuned",
            field="fixed",
            value=overlap,
        )
    candidates = {
        f"{model.name}.{i + 1}": model.update(**fixed, **point)
        for i, point in enumerate(points)
    }
    logger.debug("tuning %s over %d grid points", model.name, len(points))
    return _select(frame, candidates, points, rng=rng, settings=settings,
                   control=control, metrics=metrics, stat=stat, cutoff=cutoff)


def TunedModel(model, grid=None, fixed=None, control=None, metrics=None,
               stat=None, cutoff=None) -> MLModel:
    """
    Tune a model over a grid of parameter values.

    Args:
        model: Model to tune (MLModel, constructor or library name)
        grid: Grid(size, random) for the model's default grid (None uses
            settings.grid_size), an int size, a dict of value lists, a list
            of parameter dicts, or a pandas DataFrame
        fixed: Parameters set on every candidate
        control: Resampling control for the tuning; CVControl() if None
        metrics: Metrics to compute; the first one drives the selection
        stat: Statistic of the selection metric; settings.stat_train if None
        cutoff: Binary classification cutoff for the metrics

    Returns:
        MLModel whose fit is the model refit with the selected parameters

    Raises:
        ConfigurationError: Invalid grid, or a default grid requested for
            a model that has none
    """
    model = as_model(model)
    fixed = dict(fixed or {})
    if grid is None or isinstance(grid, (Grid, int)):
        if not model.has_grid:
            raise ConfigurationError(
                f"{model.name} has no default tuning grid; supply one",
                field="grid",
                value=model.name,
            )
    else:
        # User grids do not depend on the data and are checked now
        grid = as_grid(grid)

    return MLModel(
        name="TunedModel",
        label="Grid Tuned Model",
        response_types=model.response_types,
        fit=_tuned_fit,
        predict=_selection_predict,
        params={
            "model": model,
            "grid": grid,
            "fixed": fixed,
            "control": as_control(control),
            "metrics": _check_metrics(metrics),
            "stat": _check_stat(stat),
            "cutoff": cutoff,
        },
    )
