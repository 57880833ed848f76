"""
Pairwise model differences and paired t-tests.

    diff(obj) -> PerformanceDiff
    t_test(diff, adjust=None) -> PerformanceDiffTest
"""

from __future__ import annotations

import itertools

import numpy as np
from numpy.typing import NDArray
from scipy import stats as sp_stats

from pymlshop.compare._p_adjust import p_adjust
from pymlshop.compare.solution import DiffTestParams, PerformanceDiffTest
from pymlshop.core.exceptions import ValidationError
from pymlshop.core.result import Result
from pymlshop.models.model import MLModelFit
from pymlshop.performance.solution import (
    Performance,
    PerformanceDiff,
    PerformanceParams,
)
from pymlshop.performance.solvers import performance
from pymlshop.resampling.solution import Resamples
from pymlshop.settings import Settings, resolve_settings


def _as_performance(obj, settings: Settings) -> Performance:
    if isinstance(obj, PerformanceDiff):
        raise ValidationError("diff() of a PerformanceDiff is not defined")
    if isinstance(obj, Performance):
        return obj
    if isinstance(obj, Resamples):
        return performance(obj, settings=settings)
    if isinstance(obj, MLModelFit):
        if not obj.trainbits:
            raise ValidationError("model fit has no selection results to compare")
        return obj.trainbits[0].performance
    raise ValidationError(
        f"diff() requires Performance, Resamples or a trained MLModelFit, "
        f"got {type(obj).__name__}"
    )


def diff(obj, settings: Settings | None = None) -> PerformanceDiff:
    """
    Pairwise differences between model performances.

    Parameters
    ----------
    obj : Performance, Resamples, or MLModelFit
        Multi-model results; a fit from SelectedModel or TunedModel
        compares its candidates.

    Returns
    -------
    PerformanceDiff
        iterations x metrics x pairs, with pairs in combination order
        (0-1, 0-2, ..., 1-2, ...) labelled "a - b" and holding a minus b.
    """
    settings = resolve_settings(settings)
    perf = _as_performance(obj, settings)
    if len(perf.models) < 2:
        raise ValidationError(
            f"diff() needs at least two models, got {list(perf.models)}"
        )

    pairs = tuple(itertools.combinations(range(len(perf.models)), 2))
    values = np.stack(
        [perf.values[:, :, i] - perf.values[:, :, j] for i, j in pairs], axis=2
    )
    names = tuple((perf.models[i], perf.models[j]) for i, j in pairs)
    params = PerformanceParams(
        values=values,
        iterations=perf.iterations,
        metrics=perf.metric_info,
        models=tuple(f"{a} - {b}" for a, b in names),
        control=perf.control,
    )
    return PerformanceDiff(Result(
        params=params,
        info={'source_models': perf.models, 'pairs': names},
        timing=None,
        backend_name="diff",
        warnings=perf.warnings,
    ))


def _paired_t(d: NDArray) -> tuple[float, float, float, str | None]:
    """(mean, t, two-sided p) of paired differences with NaN pairs removed."""
    d = d[~np.isnan(d)]
    n = len(d)
    if n == 0:
        return np.nan, np.nan, np.nan, "no non-missing differences"
    mean_d = float(np.mean(d))
    if n < 2:
        return mean_d, np.nan, np.nan, "not enough observations"
    se = np.sqrt(np.var(d, ddof=1) / n)
    if se == 0.0:
        return mean_d, np.nan, np.nan, "data are essentially constant"
    t_stat = mean_d / se
    p_value = 2.0 * sp_stats.t.sf(abs(t_stat), n - 1)
    return mean_d, float(t_stat), float(p_value), None


def t_test(
    diff: PerformanceDiff,
    adjust: str | None = None,
    settings: Settings | None = None,
) -> PerformanceDiffTest:
    """
    Paired t-tests of model differences.

    Parameters
    ----------
    diff : PerformanceDiff
        Output of diff().
    adjust : str or None
        p-value adjustment across the pairs of each metric; defaults to
        settings.p_adjust ("holm").

    Returns
    -------
    PerformanceDiffTest
    """
    if not isinstance(diff, PerformanceDiff):
        raise ValidationError(
            f"t_test() requires a PerformanceDiff, got {type(diff).__name__}"
        )
    settings = resolve_settings(settings)
    adjust = settings.p_adjust if adjust is None else adjust

    models = diff.source_models
    index = {m: i for i, m in enumerate(models)}
    n_models, n_metrics = len(models), len(diff.metrics)
    p_values = np.full((n_models, n_models, n_metrics), np.nan)
    mean_diffs = np.full((n_models, n_models, n_metrics), np.nan)
    t_stats = np.full((n_models, n_models, n_metrics), np.nan)
    for i in range(n_models):
        mean_diffs[i, i, :] = 0.0

    warnings_list = []
    for k, metric in enumerate(diff.metrics):
        raw = np.empty(len(diff.pairs))
        for c, (a, b) in enumerate(diff.pairs):
            mean_d, t_stat, p, warning = _paired_t(diff.values[:, k, c])
            if warning is not None:
                warnings_list.append(f"{metric} {a} - {b}: {warning}")
            i, j = index[a], index[b]
            mean_diffs[i, j, k], mean_diffs[j, i, k] = mean_d, -mean_d
            t_stats[i, j, k], t_stats[j, i, k] = t_stat, -t_stat
            raw[c] = p
        adjusted = p_adjust(raw, adjust)
        for c, (a, b) in enumerate(diff.pairs):
            i, j = index[a], index[b]
            p_values[i, j, k] = p_values[j, i, k] = adjusted[c]

    params = DiffTestParams(
        p_values=p_values,
        mean_diffs=mean_diffs,
        t_statistics=t_stats,
        models=models,
        metrics=diff.metrics,
        adjust=adjust,
    )
    return PerformanceDiffTest(Result(
        params=params,
        info={'method': "Paired t-test", 'adjust': adjust},
        timing=None,
        backend_name="paired_t",
        warnings=tuple(warnings_list),
    ))
